# metric_calendar/state.py
from __future__ import annotations

import streamlit as st

from .engine import CalendarEngine
from .settings import CalendarSettings


def ensure_defaults() -> None:
    """Initialize Streamlit session_state defaults once."""
    if "cal_settings" not in st.session_state:
        st.session_state["cal_settings"] = CalendarSettings()
    # Engine (and with it the selection state) survives reruns
    if "cal_engine" not in st.session_state:
        st.session_state["cal_engine"] = CalendarEngine()
    if "cal_multi" not in st.session_state:
        st.session_state["cal_multi"] = False
    if "_cal_last_event" not in st.session_state:
        st.session_state["_cal_last_event"] = ()
    if "cal_viewport_width" not in st.session_state:
        st.session_state["cal_viewport_width"] = 1200
