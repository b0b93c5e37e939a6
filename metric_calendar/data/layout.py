# metric_calendar/data/layout.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

import numpy as np

from ..selection import SelectionIdentity
from ..utils import is_numeric
from .transform import DataPoint

logger = logging.getLogger(__name__)

# share of the cell kept free above the bars for the day number
LABEL_MARGIN = 1 / 2.3


@dataclass
class Bar:
    point: DataPoint
    fraction: float
    x: float
    y: float
    width: float
    height: float

    @property
    def cell_id(self) -> str:
        return self.point.cell_id


@dataclass
class ClickTarget:
    cell_id: str
    identity: Optional[SelectionIdentity]
    metric_name: str
    visible: bool  # False for zero-valued entries (clickable through the cell only)


@dataclass
class CellStack:
    cell_id: str
    entries: List[DataPoint] = field(default_factory=list)
    bars: List[Bar] = field(default_factory=list)
    targets: List[ClickTarget] = field(default_factory=list)

    @property
    def cell_target(self) -> Optional[ClickTarget]:
        """What a click on the bare cell selects: the bottom entry."""
        return self.targets[0] if self.targets else None


def is_zero(v: Any) -> bool:
    """Numeric zero, including numeric strings such as "0"."""
    return is_numeric(v) and float(v) == 0


def stack_entries(points: Sequence[DataPoint]) -> List[DataPoint]:
    """Stacked-metric points of one cell, bottom first."""
    return sorted((p for p in points if p.is_metric), key=lambda p: p.stack_order)


def height_fractions(entries: Sequence[DataPoint]) -> List[float]:
    """
    Share of each entry in the day's total. Non-numeric values count as 0 on
    both sides; a zero total gives every entry 0.
    """
    vals = np.array([float(p.value) if is_numeric(p.value) else 0.0 for p in entries], dtype=float)
    if len(vals) and len(vals) != sum(is_numeric(p.value) for p in entries):
        logger.debug("Non-numeric values in stack for %s", entries[0].cell_id)
    total = vals.sum()
    if total == 0:
        return [0.0] * len(vals)
    return list(vals / total)


def stack_cell(
    cell_id: str,
    points: Sequence[DataPoint],
    *,
    cell_x: float = 0.0,
    cell_y: float = 0.0,
    cell_size: float = 50,
) -> CellStack:
    """
    Stack the day's metrics bottom-up inside the cell.
    Zero-valued entries draw nothing but remain click targets of the cell.
    """
    entries = stack_entries(points)
    stack = CellStack(cell_id=cell_id, entries=entries)
    if not entries:
        return stack

    available = cell_size - cell_size * LABEL_MARGIN
    fractions = height_fractions(entries)
    previous_y = cell_size

    for p, frac in zip(entries, fractions):
        if is_zero(p.value):
            stack.targets.append(ClickTarget(cell_id, p.identity, p.metric_name, visible=False))
            continue
        height = available * frac
        stack.bars.append(
            Bar(
                point=p,
                fraction=frac,
                x=cell_x + 1,
                y=cell_y + previous_y - height - 1,
                width=cell_size - 2,
                height=height,
            )
        )
        stack.targets.append(ClickTarget(cell_id, p.identity, p.metric_name, visible=True))
        previous_y -= height
    return stack
