from datetime import date
from typing import Dict, List, Optional

from metric_calendar.data.transform import ROLE_METRIC, DataPoint
from metric_calendar.io import METRIC_ROLE, TOOLTIP_ROLE, CategoryColumn, DataView, ValueColumn
from metric_calendar.selection import SelectionIdentity


def make_view(
    days: List[Optional[date]],
    metrics: Dict[str, list],
    tooltips: Optional[Dict[str, list]] = None,
    date_format: Optional[str] = None,
) -> DataView:
    """Small DataView builder: metric columns first, tooltip-only columns after."""
    values = [
        ValueColumn(display_name=name, values=list(vals), roles=frozenset({METRIC_ROLE}), query_name=f"Sum({name})")
        for name, vals in metrics.items()
    ]
    for name, vals in (tooltips or {}).items():
        values.append(
            ValueColumn(display_name=name, values=list(vals), roles=frozenset({TOOLTIP_ROLE}), query_name=f"Sum({name})")
        )
    return DataView(category=CategoryColumn(display_name="date", values=list(days), format=date_format), values=values)


def point(name, value, order, role=ROLE_METRIC, cdate="3/15/2024"):
    """One DataPoint on `cdate` with a bar-level identity."""
    return DataPoint(
        canonical_date=cdate,
        display_date=cdate,
        metric_name=name,
        value=value,
        color="#000",
        stack_order=order,
        cell_id="a" + cdate.replace("/", "_"),
        role=role,
        identity=SelectionIdentity(category_index=0, measure=cdate, series=name, metadata=cdate),
    )
