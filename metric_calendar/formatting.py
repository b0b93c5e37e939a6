from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd

from .theme import PALETTE
from .utils import canonical_date, is_missing, is_numeric


def format_value(value: Any, fmt: Optional[str] = None) -> str:
    """
    Render a metric value for tooltips.
    `fmt` is a Python format spec (',.2f', '.1%', ...). Without one, whole
    numbers drop the trailing '.0' and everything else falls back to str().
    """
    if is_missing(value):
        return ""
    if fmt and is_numeric(value):
        try:
            return format(float(value), fmt)
        except ValueError:
            pass
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_date(d: Any, fmt: Optional[str] = None) -> str:
    """strftime pattern when given, otherwise the unpadded M/D/YYYY form."""
    if is_missing(d):
        return ""
    day = pd.Timestamp(d).date() if not isinstance(d, date) else d
    if fmt:
        return pd.Timestamp(day).strftime(fmt)
    return canonical_date(day)


class ColorPalette:
    """
    Stable per-series colour assignment.
    Explicit overrides win; otherwise the next unused palette entry is
    handed out the first time a key is asked for and remembered after that.
    """

    def __init__(self, overrides: Optional[Dict[str, str]] = None, palette: Optional[List[str]] = None):
        self.overrides = dict(overrides or {})
        self.palette = list(palette or PALETTE)
        self._assigned: Dict[str, str] = {}

    def get_color(self, key: str) -> str:
        if self.overrides.get(key):
            return self.overrides[key]
        if key not in self._assigned:
            self._assigned[key] = self.palette[len(self._assigned) % len(self.palette)]
        return self._assigned[key]

    def __call__(self, key: str) -> str:
        return self.get_color(key)
