from __future__ import annotations

import calendar as pycal
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Union

import numpy as np
import pandas as pd


# ===== Number checks =====
def is_numeric(x: Any) -> bool:
    """True only for real, finite numbers (numeric strings count, unit text does not)."""
    if x is None or isinstance(x, bool):
        return False
    if isinstance(x, (int, float, np.integer, np.floating)):
        return bool(np.isfinite(x))
    try:
        return bool(np.isfinite(float(str(x).strip())))
    except ValueError:
        return False


def is_missing(x: Any) -> bool:
    """None, NaN and NaT all count as a missing cell."""
    if x is None:
        return True
    try:
        return bool(pd.isna(x))
    except (TypeError, ValueError):
        # list-likes are never "missing" cells
        return False


# ===== Calendar dates =====

# M/D/YYYY with 1-2 digit month/day and a 19xx/20xx year
_MDY_RE = re.compile(r"^(0?[1-9]|1[0-2])[-/. ](0?[1-9]|[12][0-9]|3[01])[-/. ]((?:19|20)\d{2})$")


@dataclass(frozen=True)
class ParsedDate:
    value: date


@dataclass(frozen=True)
class InvalidDate:
    text: str
    reason: str


DateParse = Union[ParsedDate, InvalidDate]


def days_in_month(year: int, month: int) -> int:
    """Number of days in `month` (1-12) of `year`, leap years included."""
    return pycal.monthrange(year, month)[1]


def parse_mdy(text: Any) -> DateParse:
    """
    Strictly parse 'M/D/YYYY'. Never returns a partially-correct date:
    a day past the end of the month is reported as invalid, not rolled over.
    """
    s = str(text).strip() if text is not None else ""
    if not s:
        return InvalidDate(s, "empty")
    m = _MDY_RE.match(s)
    if not m:
        return InvalidDate(s, "not M/D/YYYY")
    month, day, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
    if day > days_in_month(year, month):
        return InvalidDate(s, f"day {day} out of range for {month}/{year}")
    return ParsedDate(date(year, month, day))


def as_date(x: Any) -> Optional[date]:
    """Coerce a category value (date, datetime, Timestamp, string) to a calendar date."""
    if is_missing(x):
        return None
    if isinstance(x, pd.Timestamp):
        return x.date()
    if isinstance(x, date):
        return x.date() if hasattr(x, "hour") else x
    ts = pd.to_datetime(x, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def canonical_date(d: date) -> str:
    """Unpadded M/D/YYYY, the join key between data points and cells."""
    return f"{d.month}/{d.day}/{d.year}"


def split_canonical(s: str) -> tuple[int, int, int]:
    """'3/15/2024' -> (2024, 3, 15), ready for numeric comparison."""
    month, day, year = (int(p) for p in s.split("/"))
    return year, month, day


def cell_id_for(month: int, day: int, year: int) -> str:
    return f"a{month}_{day}_{year}"


def cell_id_from_canonical(s: str) -> str:
    return "a" + s.replace("/", "_")


def js_weekday(d: date) -> int:
    """Weekday with Sunday=0 … Saturday=6."""
    return (d.weekday() + 1) % 7


def add_months(d: date, n: int) -> date:
    """Shift to the first day of the month `n` months away."""
    idx = d.year * 12 + (d.month - 1) + n
    return date(idx // 12, idx % 12 + 1, 1)
