from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, List, Optional

import pandas as pd

from .utils import as_date, is_missing

METRIC_ROLE = "metrics"
TOOLTIP_ROLE = "tooltips"

# Tried in order when no date column is named
DATE_CANDIDATES = ["date", "day", "datetime", "timestamp", "time"]


@dataclass
class CategoryColumn:
    display_name: str
    values: List[Any]
    format: Optional[str] = None  # strftime pattern for headers


@dataclass
class ValueColumn:
    display_name: str
    values: List[Any]
    roles: FrozenSet[str] = frozenset({METRIC_ROLE})
    format: Optional[str] = None  # Python format spec for tooltip values
    query_name: Optional[str] = None

    @property
    def is_metric(self) -> bool:
        return METRIC_ROLE in self.roles

    @property
    def is_tooltip(self) -> bool:
        return TOOLTIP_ROLE in self.roles


@dataclass
class DataView:
    category: Optional[CategoryColumn]
    values: List[ValueColumn] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.category is not None and len(self.values) > 0


def _find_date_col(df: pd.DataFrame) -> Optional[str]:
    lower = {c.lower(): c for c in df.columns}
    return next((lower[c] for c in DATE_CANDIDATES if c in lower), None)


def _cell(x: Any) -> Any:
    if is_missing(x):
        return None
    # numpy scalars -> plain python
    return x.item() if hasattr(x, "item") else x


def from_frame(
    df: pd.DataFrame,
    *,
    date_col: Optional[str] = None,
    metric_cols: Optional[Iterable[str]] = None,
    tooltip_cols: Optional[Iterable[str]] = None,
    date_format: Optional[str] = None,
    value_format: Optional[str] = None,
) -> DataView:
    """
    Turn a wide frame (one date column + one column per metric) into a DataView.
    Metric columns default to every numeric column that is not a tooltip column.
    """
    d = df.copy()
    d.columns = [str(c).strip() for c in d.columns]

    dcol = date_col if date_col else _find_date_col(d)
    if not dcol or dcol not in d.columns:
        raise ValueError(f"Missing date column (tried {date_col or DATE_CANDIDATES})")

    tooltips = [c for c in (tooltip_cols or []) if c in d.columns and c != dcol]
    if metric_cols is None:
        metrics = [
            c
            for c in d.columns
            if c != dcol and c not in tooltips and pd.api.types.is_numeric_dtype(d[c])
        ]
    else:
        missing = [c for c in metric_cols if c not in d.columns]
        if missing:
            raise ValueError(f"Missing metric columns: {missing}")
        metrics = [c for c in metric_cols if c != dcol and c not in tooltips]

    dates = pd.to_datetime(d[dcol], errors="coerce")
    category = CategoryColumn(
        display_name=dcol,
        values=[as_date(x) for x in dates],
        format=date_format,
    )

    values: List[ValueColumn] = []
    for c in d.columns:
        if c in metrics:
            roles = frozenset({METRIC_ROLE})
        elif c in tooltips:
            roles = frozenset({TOOLTIP_ROLE})
        else:
            continue
        values.append(
            ValueColumn(
                display_name=c,
                values=[_cell(x) for x in d[c].tolist()],
                roles=roles,
                format=value_format,
                query_name=f"Sum({c})",
            )
        )
    return DataView(category=category, values=values)


def load_data_view(file_or_path, **kwargs) -> DataView:
    """
    Load a CSV path or file-like object (or an in-memory DataFrame) into a DataView.
    Keyword arguments are passed through to `from_frame`.
    """
    raw = file_or_path if isinstance(file_or_path, pd.DataFrame) else pd.read_csv(file_or_path)
    return from_frame(raw, **kwargs)


def validate(view: Optional[DataView]) -> List[str]:
    """Return a list of human-readable issues. Empty list means valid."""
    issues: List[str] = []
    if view is None or view.category is None:
        issues.append("No date category")
        return issues
    if not view.values:
        issues.append("No value columns")
        return issues

    bad_dates = [i for i, v in enumerate(view.category.values) if v is None]
    if bad_dates:
        issues.append(f"Unparseable or empty dates at rows: {bad_dates[:5]}...")

    if not any(v.is_metric for v in view.values):
        issues.append("No stacked metric columns (only tooltip columns)")

    n = len(view.category.values)
    for col in view.values:
        if len(col.values) != n:
            issues.append(f"Column '{col.display_name}' has {len(col.values)} values for {n} dates")
    return issues
