from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import IntEnum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .theme import CELL_BORDER, FG, HEADER_BG, HEADER_FG
from .utils import canonical_date


class CalendarType(IntEnum):
    FIXED = 0
    RELATIVE = 1
    YEARLY = 2


# (min, max) per numeric knob
RANGES: Dict[str, tuple] = {
    "num_of_months": (1, 60),
    "num_of_previous_months": (0, 60),
    "num_of_following_months": (1, 60),
    "cell_size": (20, 60),
    "first_day": (0, 6),
    "font_size": (4, 30),
}

# schema (camelCase) name -> attribute name
_CALENDAR_KEYS = {
    "startDate": "start_date",
    "numOfMonths": "num_of_months",
    "calendarType": "calendar_type",
    "numOfPreviousMonths": "num_of_previous_months",
    "numOfFollowingMonths": "num_of_following_months",
    "cellSize": "cell_size",
    "firstDay": "first_day",
    "cellBorderColor": "cell_border_color",
    "calendarHeaderColor": "header_color",
    "calendarHeaderTitleColor": "header_title_color",
    "weekDayLabelsColor": "week_day_labels_color",
    "dayLabelsColor": "day_labels_color",
}
# knobs whose presence depends on the calendar type
_MODE_KEYS = ("calendarType", "startDate", "numOfMonths", "numOfPreviousMonths", "numOfFollowingMonths")

_LEGEND_KEYS = {
    "show": "show",
    "legendLabelColor": "label_color",
    "legendLabelFontSize": "font_size",
    "legendTitleShow": "title_show",
    "legendTitleName": "title_name",
}


def _default_start_date() -> str:
    return canonical_date(date.today())


@dataclass
class CalendarAppearance:
    start_date: str = field(default_factory=_default_start_date)
    num_of_months: int = 12
    calendar_type: CalendarType = CalendarType.FIXED
    num_of_previous_months: int = 0
    num_of_following_months: int = 5
    cell_size: int = 50
    first_day: int = 0  # 0 = Sunday
    cell_border_color: str = CELL_BORDER
    header_color: str = HEADER_BG
    header_title_color: str = HEADER_FG
    week_day_labels_color: str = FG
    day_labels_color: str = FG


@dataclass
class MetricsAppearance:
    # metric display name -> colour
    colors: Dict[str, str] = field(default_factory=dict)


@dataclass
class LegendAppearance:
    show: bool = False
    label_color: str = FG
    font_size: int = 10
    title_show: bool = False
    title_name: str = "Metrics"


@dataclass
class CalendarSettings:
    calendar: CalendarAppearance = field(default_factory=CalendarAppearance)
    metrics: MetricsAppearance = field(default_factory=MetricsAppearance)
    legend: LegendAppearance = field(default_factory=LegendAppearance)

    def validate(self) -> List[str]:
        """Return a list of human-readable issues. Empty list means valid."""
        issues: List[str] = []
        cal = self.calendar
        checks = [
            ("cell_size", cal.cell_size),
            ("first_day", cal.first_day),
            ("font_size", self.legend.font_size),
        ]
        if cal.calendar_type == CalendarType.FIXED:
            checks.append(("num_of_months", cal.num_of_months))
        else:
            checks.append(("num_of_previous_months", cal.num_of_previous_months))
            checks.append(("num_of_following_months", cal.num_of_following_months))
        for name, value in checks:
            lo, hi = RANGES[name]
            if not isinstance(value, int) or isinstance(value, bool) or not (lo <= value <= hi):
                issues.append(f"'{name}' must be an integer in [{lo}, {hi}], got {value!r}")
        return issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "calendarSettings": {k: getattr(self.calendar, a) for k, a in _CALENDAR_KEYS.items()},
            "metricsSettings": dict(self.metrics.colors),
            "legendSettings": {k: getattr(self.legend, a) for k, a in _LEGEND_KEYS.items()},
        }


def parse_settings(
    objects: Optional[Mapping[str, Any]] = None, base: Optional[CalendarSettings] = None
) -> CalendarSettings:
    """
    Build settings from the nested property-pane mapping
    ({'calendarSettings': {...}, 'metricsSettings': {...}, 'legendSettings': {...}}).
    Knobs missing from `objects` keep their value from `base` (or the defaults).
    Unknown keys are ignored; out-of-range knobs raise ValueError listing every issue.
    """
    settings = copy.deepcopy(base) if base is not None else CalendarSettings()
    objects = objects or {}

    for key, value in (objects.get("calendarSettings") or {}).items():
        attr = _CALENDAR_KEYS.get(key)
        if attr is None:
            continue
        if attr == "calendar_type":
            try:
                value = CalendarType(int(value))
            except (TypeError, ValueError):
                raise ValueError(f"Unknown calendarType: {value!r}")
        setattr(settings.calendar, attr, value)

    colors = objects.get("metricsSettings") or {}
    settings.metrics.colors.update({str(k): str(v) for k, v in colors.items() if v})

    for key, value in (objects.get("legendSettings") or {}).items():
        attr = _LEGEND_KEYS.get(key)
        if attr is not None:
            setattr(settings.legend, attr, value)

    issues = settings.validate()
    if issues:
        raise ValueError("; ".join(issues))
    return settings


def _number_range(name: str) -> Dict[str, Any]:
    lo, hi = RANGES[name]
    return {"numberRange": {"min": lo, "max": hi}}


def enumerate_object_instances(
    settings: CalendarSettings, object_name: str, metrics: Sequence[Any] = ()
) -> List[Dict[str, Any]]:
    """
    Describe the configurable knobs of one settings group.
    `metrics` are MetricDescriptor-like objects (name, color, identity).
    """
    if object_name == "metricsSettings":
        return [
            {
                "objectName": object_name,
                "displayName": m.name,
                "properties": {"metricColor": m.color},
                "selector": m.identity,
            }
            for m in metrics
        ]

    if object_name == "legendSettings":
        legend = asdict(settings.legend)
        return [
            {
                "objectName": object_name,
                "displayName": "Legend",
                "properties": {k: legend[a] for k, a in _LEGEND_KEYS.items()},
                "validValues": {"legendLabelFontSize": _number_range("font_size")},
                "selector": None,
            }
        ]

    if object_name == "calendarSettings":
        cal = settings.calendar
        if cal.calendar_type == CalendarType.FIXED:
            mode_keys = ["startDate", "numOfMonths"]
            valid = {"numOfMonths": _number_range("num_of_months")}
        else:
            mode_keys = ["numOfPreviousMonths", "numOfFollowingMonths"]
            valid = {
                "numOfPreviousMonths": _number_range("num_of_previous_months"),
                "numOfFollowingMonths": _number_range("num_of_following_months"),
            }
        keys = ["calendarType", *mode_keys] + [k for k in _CALENDAR_KEYS if k not in _MODE_KEYS]
        valid["cellSize"] = _number_range("cell_size")
        return [
            {
                "objectName": object_name,
                "displayName": "Calendar",
                "properties": {k: getattr(cal, _CALENDAR_KEYS[k]) for k in keys},
                "validValues": valid,
                "selector": None,
            }
        ]

    return []
