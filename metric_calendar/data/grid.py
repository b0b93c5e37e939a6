# metric_calendar/data/grid.py
from __future__ import annotations

import calendar as pycal
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from ..utils import add_months, cell_id_for, days_in_month, js_weekday
from .date_range import DateRange

WEEK_DAYS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


@dataclass(frozen=True)
class MonthDescriptor:
    year: int
    month_index: int  # 0-11
    is_first_visible: bool = False

    @property
    def month(self) -> int:
        return self.month_index + 1

    @property
    def title(self) -> str:
        return f"{pycal.month_name[self.month]} {self.year}"


@dataclass
class DayCell:
    id: Optional[str]  # None for blank placeholder slots
    day_of_month: Optional[int]
    week_row: int
    week_column: int
    in_range: bool
    x: float = 0.0
    y: float = 0.0


@dataclass
class MonthGrid:
    descriptor: MonthDescriptor
    rows: int
    days_in_month: int
    cells: List[DayCell] = field(default_factory=list)

    def day_cells(self) -> List[DayCell]:
        return [c for c in self.cells if c.in_range]

    def by_id(self) -> Dict[str, DayCell]:
        return {c.id: c for c in self.cells if c.id}


def week_day_labels(first_day: int) -> List[str]:
    """Column headers starting at `first_day` (0 = Sunday)."""
    return [WEEK_DAYS[(first_day + i) % 7] for i in range(7)]


def count_weeks(anchor: date, first_day: int) -> int:
    """Grid rows needed to show `anchor` through the end of its month."""
    weekday = js_weekday(anchor)
    shown = days_in_month(anchor.year, anchor.month) - anchor.day + 1

    if first_day > weekday:
        first_week = first_day - weekday
    else:
        first_week = 7 - (weekday - first_day)

    return 1 + math.ceil((shown - first_week) / 7)


def visible_months(rng: DateRange) -> List[MonthDescriptor]:
    out: List[MonthDescriptor] = []
    for i in range(rng.months):
        m = add_months(rng.start, i)
        out.append(MonthDescriptor(year=m.year, month_index=m.month - 1, is_first_visible=(i == 0)))
    return out


def build_month(
    desc: MonthDescriptor,
    start: date,
    *,
    first_day: int = 0,
    cell_size: float = 50,
) -> MonthGrid:
    """
    Lay out one month as 7 columns x N rows.
    The first visible month begins at `start`; later months begin on the 1st.
    Slots before the first day and after the last are blank placeholders.
    Row 0 sits two cells below the top (month header + week-day labels).
    """
    if desc.is_first_visible:
        anchor = start
    else:
        anchor = date(desc.year, desc.month, 1)

    offset = (js_weekday(anchor) - first_day) % 7
    n_days = days_in_month(desc.year, desc.month)
    rows = count_weeks(anchor, first_day)

    grid = MonthGrid(descriptor=desc, rows=rows, days_in_month=n_days)
    day = anchor.day
    count = 0
    for row in range(rows):
        for col in range(7):
            x = 1 + cell_size * col
            y = 1 + cell_size * 2 + cell_size * row
            if count >= offset and day <= n_days:
                grid.cells.append(
                    DayCell(
                        id=cell_id_for(desc.month, day, desc.year),
                        day_of_month=day,
                        week_row=row,
                        week_column=col,
                        in_range=True,
                        x=x,
                        y=y,
                    )
                )
                day += 1
            else:
                grid.cells.append(
                    DayCell(id=None, day_of_month=None, week_row=row, week_column=col, in_range=False, x=x, y=y)
                )
            count += 1
    return grid
