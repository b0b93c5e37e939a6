# metric_calendar/data/transform.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from ..formatting import format_date
from ..io import DataView, ValueColumn
from ..selection import SelectionIdBuilder, SelectionIdentity, series_identity
from ..utils import as_date, canonical_date, cell_id_from_canonical, is_missing, split_canonical
from .date_range import DateRange

logger = logging.getLogger(__name__)

MAX_COLUMNS = 100

ROLE_METRIC = "metric"
ROLE_TOOLTIP = "tooltip"


@dataclass
class DataPoint:
    canonical_date: str  # M/D/YYYY, unpadded
    display_date: str
    metric_name: str
    value: Any
    color: str
    stack_order: int  # 0 = bottom of the stack
    cell_id: str
    role: str
    identity: Optional[SelectionIdentity] = None
    value_format: Optional[str] = None

    @property
    def day(self) -> date:
        y, m, d = split_canonical(self.canonical_date)
        return date(y, m, d)

    @property
    def is_metric(self) -> bool:
        return self.role == ROLE_METRIC


@dataclass
class MetricDescriptor:
    name: str
    color: str
    identity: SelectionIdentity
    role: str = ROLE_METRIC


@dataclass
class TransformResult:
    data_points: List[DataPoint] = field(default_factory=list)
    metrics: List[MetricDescriptor] = field(default_factory=list)
    tooltip_columns: List[str] = field(default_factory=list)
    dates: List[str] = field(default_factory=list)  # unique canonical dates, newest first
    category_format: Optional[str] = None

    def color_of(self, name: str) -> str:
        return next((m.color for m in self.metrics if m.name == name), "")

    def by_cell(self) -> Dict[str, List[DataPoint]]:
        """cell id -> data points of that day, in sorted order."""
        out: Dict[str, List[DataPoint]] = {}
        for p in self.data_points:
            out.setdefault(p.cell_id, []).append(p)
        return out


def _role(col: ValueColumn) -> str:
    return ROLE_METRIC if col.is_metric else ROLE_TOOLTIP


def _sort_key(p: DataPoint):
    return split_canonical(p.canonical_date)


def sort_data_points(points: List[DataPoint]) -> List[DataPoint]:
    """Newest day first, compared as (year, month, day) numbers."""
    return sorted(points, key=_sort_key, reverse=True)


def transform(view: Optional[DataView], color_of: Callable[[str], str]) -> TransformResult:
    """
    Flatten the data view into one DataPoint per (day, metric) with a value.
    Rows where either the date or the value is missing are skipped.
    """
    if view is None or not view.is_complete:
        logger.warning("Data view is missing its date category or value columns")
        return TransformResult()

    category = view.category
    columns = view.values[:MAX_COLUMNS]
    if len(view.values) > MAX_COLUMNS:
        logger.debug("Ignoring %d columns past the first %d", len(view.values) - MAX_COLUMNS, MAX_COLUMNS)

    total = len(columns)
    points: List[DataPoint] = []
    metrics: List[MetricDescriptor] = []

    for pos, col in enumerate(columns):
        color = color_of(col.display_name)
        order = total - 1 - pos  # last-declared column sits at the bottom
        n = max(len(category.values), len(col.values))
        for j in range(n):
            raw_day = category.values[j] if j < len(category.values) else None
            value = col.values[j] if j < len(col.values) else None
            if is_missing(raw_day) or is_missing(value):
                continue
            day = as_date(raw_day)
            if day is None:
                continue
            cdate = canonical_date(day)
            points.append(
                DataPoint(
                    canonical_date=cdate,
                    display_date=format_date(day, category.format),
                    metric_name=col.display_name,
                    value=value,
                    color=color,
                    stack_order=order,
                    cell_id=cell_id_from_canonical(cdate),
                    role=_role(col),
                    value_format=col.format,
                )
            )
        metrics.append(
            MetricDescriptor(
                name=col.display_name,
                color=color,
                identity=series_identity(col.display_name, col.query_name),
                role=_role(col),
            )
        )

    points = sort_data_points(points)

    dates: List[str] = []
    for p in points:
        if not dates or dates[-1] != p.canonical_date:
            dates.append(p.canonical_date)

    builder = SelectionIdBuilder([category])
    position = {d: i for i, d in enumerate(dates)}
    for p in points:
        p.identity = builder.create_selection_id(
            position[p.canonical_date],
            measure=p.canonical_date,
            series=p.metric_name,
            metadata=p.canonical_date,
        )

    tooltip_columns = sorted(c.display_name for c in columns if c.is_tooltip)

    return TransformResult(
        data_points=points,
        metrics=metrics,
        tooltip_columns=tooltip_columns,
        dates=dates,
        category_format=category.format,
    )


def visible_points(points: List[DataPoint], rng: DateRange) -> List[DataPoint]:
    """Points inside the visible months, from the start day of the first month on."""
    return [p for p in points if rng.contains(p.day)]


def legend_metrics(result: TransformResult, rng: DateRange) -> List[MetricDescriptor]:
    """Metrics that draw at least one stacked bar in the visible range, declaration order kept."""
    if not result.data_points:
        return list(result.metrics)
    drawn = {p.metric_name for p in result.data_points if p.is_metric and rng.contains(p.day)}
    return [m for m in result.metrics if m.name in drawn]
