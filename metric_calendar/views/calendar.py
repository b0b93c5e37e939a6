# metric_calendar/views/calendar.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import streamlit as st

from ..charts.calendar import LEGEND_TARGET, PlotlyCalendarPainter
from ..engine import CalendarEngine
from ..io import DataView
from ..selection import SelectionState
from ..settings import CalendarSettings, CalendarType, enumerate_object_instances, parse_settings
from ..data.grid import WEEK_DAYS

logger = logging.getLogger(__name__)


# ---------- CSS ----------
def _inject_css():
    st.markdown(
        """
<style>
  .cal-status { font-size: 13px; color: #6b7280; margin: 2px 0 8px 0; }
  .cal-status b { color: #1f2937; }
</style>
        """,
        unsafe_allow_html=True,
    )


# ---------- settings ----------
_LABELS = {
    "numOfMonths": "Months",
    "numOfPreviousMonths": "Previous months",
    "numOfFollowingMonths": "Following months",
    "cellSize": "Cell size",
    "cellBorderColor": "Cell border color",
    "calendarHeaderColor": "Header color",
    "calendarHeaderTitleColor": "Header title color",
    "weekDayLabelsColor": "Week day labels color",
    "dayLabelsColor": "Day labels color",
}


def _calendar_widgets(entry: Dict[str, Any]) -> Dict[str, Any]:
    props = entry["properties"]
    valid = entry.get("validValues", {})
    out: Dict[str, Any] = {}

    def _rng(name):
        r = valid.get(name, {}).get("numberRange", {})
        return r.get("min"), r.get("max")

    types = list(CalendarType)
    out["calendarType"] = st.selectbox(
        "Calendar type",
        types,
        index=types.index(CalendarType(props["calendarType"])),
        format_func=lambda t: t.name.title(),
        key="cal_w_type",
    )
    for name, value in props.items():
        if name == "calendarType":
            continue
        if name == "startDate":
            out[name] = st.text_input("Start date (M/D/YYYY)", value=value, key="cal_w_start")
        elif name == "firstDay":
            out[name] = st.selectbox(
                "First day of week", range(7), index=int(value), format_func=lambda i: WEEK_DAYS[i], key="cal_w_first"
            )
        elif isinstance(value, int):
            lo, hi = _rng(name)
            out[name] = int(
                st.number_input(_LABELS.get(name, name), min_value=lo, max_value=hi, value=int(value), step=1, key=f"cal_w_{name}")
            )
        else:
            out[name] = st.text_input(_LABELS.get(name, name), value=str(value), key=f"cal_w_{name}")
    return out


def _settings_sidebar(settings: CalendarSettings, engine: CalendarEngine) -> CalendarSettings:
    """Build the property pane from the settings schema; returns the parsed settings."""
    metrics = engine.model.result.metrics if engine.model else []
    objects: Dict[str, Any] = {}
    with st.sidebar:
        st.subheader("Calendar")
        for entry in enumerate_object_instances(settings, "calendarSettings"):
            objects["calendarSettings"] = _calendar_widgets(entry)

        with st.expander("Metric colors", expanded=False):
            colors = {}
            for entry in enumerate_object_instances(settings, "metricsSettings", metrics):
                name = entry["displayName"]
                colors[name] = st.text_input(name, value=entry["properties"]["metricColor"], key=f"cal_c_{name}")
            objects["metricsSettings"] = {k: v for k, v in colors.items() if v}

        with st.expander("Legend", expanded=False):
            for entry in enumerate_object_instances(settings, "legendSettings"):
                props = entry["properties"]
                rng = entry["validValues"]["legendLabelFontSize"]["numberRange"]
                objects["legendSettings"] = {
                    "show": st.checkbox("Show legend", value=props["show"], key="cal_l_show"),
                    "legendLabelColor": st.text_input("Label color", value=props["legendLabelColor"], key="cal_l_color"),
                    "legendLabelFontSize": int(
                        st.number_input(
                            "Font size",
                            min_value=rng["min"],
                            max_value=rng["max"],
                            value=int(props["legendLabelFontSize"]),
                            key="cal_l_size",
                        )
                    ),
                    "legendTitleShow": st.checkbox("Show title", value=props["legendTitleShow"], key="cal_l_tshow"),
                    "legendTitleName": st.text_input("Title", value=props["legendTitleName"], key="cal_l_title"),
                }

        st.slider("Viewport width", min_value=400, max_value=2400, step=50, key="cal_viewport_width")

    try:
        return parse_settings(objects, base=settings)
    except ValueError as e:
        st.error(f"Invalid calendar settings: {e}")
        st.stop()


# ---------- interaction ----------
def _event_points(event: Any) -> List[Dict[str, Any]]:
    if not event:
        return []
    selection = event.get("selection") or {}
    return list(selection.get("points") or [])


def _signature(points: List[Dict[str, Any]]) -> tuple:
    return tuple(tuple(p.get("customdata") or ()) for p in points)


def _dispatch_event(engine: CalendarEngine, event: Any, additive: bool) -> None:
    """Translate the latest plotly selection event into one engine click."""
    points = _event_points(event)
    sig = _signature(points)
    if sig == st.session_state.get("_cal_last_event"):
        return
    st.session_state["_cal_last_event"] = sig

    if not points:
        engine.click_background()
        return
    custom = points[-1].get("customdata") or []
    if not custom:
        return
    cell_id, metric = custom[0], (custom[1] if len(custom) > 1 else "")
    logger.debug("Chart click on %s %s (additive=%s)", cell_id, metric or "<cell>", additive)
    if cell_id == LEGEND_TARGET:
        engine.click_legend(metric)
    elif metric:
        engine.click_bar(cell_id, metric, additive=additive)
    else:
        engine.click_cell(cell_id, additive=additive)


def _status(engine: CalendarEngine) -> None:
    state = engine.selection.state
    if state == SelectionState.IDLE:
        text = "No selection"
    else:
        text = f"<b>{len(engine.selection.selected)}</b> day(s) selected ({state.value})"
    st.markdown(f"<div class='cal-status'>{text}</div>", unsafe_allow_html=True)


def render(*, view: Optional[DataView], key: str = "cal"):
    _inject_css()
    engine: CalendarEngine = st.session_state["cal_engine"]

    settings = _settings_sidebar(st.session_state["cal_settings"], engine)
    st.session_state["cal_settings"] = settings

    width = float(st.session_state.get("cal_viewport_width", 1200))
    engine.update(settings, view, viewport=(width, 0.0))

    # previous run's click, now that the model for this run is in place
    _dispatch_event(engine, st.session_state.get(key), st.session_state.get("cal_multi", False))

    top_l, top_r = st.columns([3, 1])
    with top_l:
        _status(engine)
    with top_r:
        st.toggle("Multi-select (Ctrl)", key="cal_multi")
        if st.button("Clear selection", key="cal_clear"):
            engine.click_background()

    if engine.model.is_empty:
        st.info("No data points for this dataset. The calendar is shown without metrics.")

    painter = PlotlyCalendarPainter(viewport=(width, 0.0), cell_size=settings.calendar.cell_size)
    engine.render(painter)

    st.plotly_chart(
        painter.figure(),
        use_container_width=False,
        key=key,
        on_select="rerun",
        selection_mode="points",
        config={"displayModeBar": False},
    )

    with st.expander("Current selection", expanded=False):
        ids = engine.current_selection()
        if not ids:
            st.caption("Nothing selected.")
        for ident in ids:
            st.write(
                {
                    "date": ident.metadata,
                    "series": ident.series,
                    "category_index": ident.category_index,
                }
            )
