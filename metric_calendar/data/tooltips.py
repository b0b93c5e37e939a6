# metric_calendar/data/tooltips.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Sequence

from ..formatting import format_date, format_value
from .layout import is_zero
from .transform import DataPoint


@dataclass
class TooltipItem:
    header: str
    display_name: Optional[str] = None
    color: Optional[str] = None
    value: Optional[str] = None  # None when the day has no value for the column


def without_zero(points: Sequence[DataPoint]) -> List[DataPoint]:
    return [p for p in points if not is_zero(p.value)]


def _find(points: Sequence[DataPoint], name: str) -> Optional[DataPoint]:
    # last match wins
    found = None
    for p in points:
        if p.metric_name == name:
            found = p
    return found


def _column_item(header: str, name: str, points: Sequence[DataPoint], color_of: Callable[[str], str]) -> TooltipItem:
    item = TooltipItem(header=header, display_name=name, color=color_of(name))
    match = _find(points, name)
    if match is not None:
        item.value = format_value(match.value, match.value_format)
    return item


def preference_order(tooltip_columns: Sequence[str], metric_names: Sequence[str]) -> List[str]:
    """Tooltip-only columns first, then the remaining metrics in column order."""
    order = list(tooltip_columns)
    order += [m for m in metric_names if m not in order]
    return order


def day_tooltip(
    day: date,
    points: Sequence[DataPoint],
    tooltip_columns: Sequence[str],
    color_of: Callable[[str], str],
    date_format: Optional[str] = None,
) -> List[TooltipItem]:
    """
    Tooltip for the cell itself: a bare header when every value is zero,
    otherwise one row per tooltip column (value left empty when absent).
    """
    header = format_date(day, date_format)
    nonzero = without_zero(points)
    if not nonzero:
        return [TooltipItem(header=header)]
    return [_column_item(header, name, nonzero, color_of) for name in tooltip_columns]


def bar_tooltip(
    point: DataPoint,
    points: Sequence[DataPoint],
    tooltip_columns: Sequence[str],
    metric_names: Sequence[str],
    color_of: Callable[[str], str],
) -> List[TooltipItem]:
    """Tooltip for one stacked bar: its own value plus every other tooltip column."""
    nonzero = without_zero(points)
    items = [
        TooltipItem(
            header=point.display_date,
            display_name=point.metric_name,
            color=point.color,
            value=format_value(point.value, point.value_format),
        )
    ]
    for name in tooltip_columns:
        if name != point.metric_name:
            items.append(_column_item(point.display_date, name, nonzero, color_of))

    order = preference_order(tooltip_columns, metric_names)
    rank = {name: i for i, name in enumerate(order)}
    return sorted(items, key=lambda it: rank.get(it.display_name, -1))
