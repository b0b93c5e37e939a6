# metric_calendar/data/date_range.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..settings import CalendarAppearance, CalendarType
from ..utils import InvalidDate, add_months, parse_mdy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateRange:
    start: date  # always the 1st of a month
    months: int

    @property
    def end(self) -> date:
        """First day after the last visible month."""
        return add_months(self.start, self.months)

    def contains(self, d: date) -> bool:
        return self.start <= d < self.end


def fixed_start(text: str, today: date) -> date:
    """Configured start date anchored to the 1st; today's month when the text is invalid."""
    parsed = parse_mdy(text)
    if isinstance(parsed, InvalidDate):
        logger.debug("Start date %r rejected (%s), using today", parsed.text, parsed.reason)
        return today.replace(day=1)
    return parsed.value.replace(day=1)


def months_to_show(cal: CalendarAppearance) -> int:
    if cal.calendar_type == CalendarType.FIXED:
        return cal.num_of_months
    if cal.calendar_type == CalendarType.RELATIVE:
        return cal.num_of_previous_months + cal.num_of_following_months
    return 12


def resolve(cal: CalendarAppearance, today: Optional[date] = None) -> DateRange:
    """
    Fixed: the configured start month.
    Relative / Yearly: `num_of_previous_months` before today's month.
    """
    today = today or date.today()
    if cal.calendar_type == CalendarType.FIXED:
        start = fixed_start(cal.start_date, today)
    else:
        start = add_months(today, -cal.num_of_previous_months)
    return DateRange(start=start, months=months_to_show(cal))
