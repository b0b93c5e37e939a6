# app.py (top of file)
import logging
from datetime import date

import numpy as np
import pandas as pd
import streamlit as st

# 👇 our modules
from metric_calendar.io import load_data_view, validate
from metric_calendar.state import ensure_defaults
from metric_calendar.views.calendar import render as render_calendar

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("metric_calendar.app")


def _demo_frame(months: int = 6, seed: int = 7) -> pd.DataFrame:
    """A few months of daily numbers so the calendar has something to stack."""
    rng = np.random.default_rng(seed)
    start = pd.Timestamp(date.today()).replace(day=1) - pd.DateOffset(months=months // 2)
    days = pd.date_range(start, periods=months * 30, freq="D")
    df = pd.DataFrame(
        {
            "date": days,
            "Sales": rng.integers(0, 40, len(days)),
            "Returns": rng.integers(0, 10, len(days)),
            "Refunds": rng.integers(0, 5, len(days)),
            "Visitors": rng.integers(100, 900, len(days)),
        }
    )
    # some empty days
    df.loc[rng.random(len(days)) < 0.1, ["Sales", "Returns", "Refunds"]] = 0
    return df


ensure_defaults()

st.set_page_config(
    page_title="Metric Calendar",
    page_icon="📅",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ===================== Data: Upload OR demo =====================
with st.sidebar:
    st.header("Data")
    uploaded = st.file_uploader("Browse file", type=["csv"], key="cal_file")
    date_col = st.text_input("Date column (blank = auto)", value="", key="cal_date_col")
    tooltip_raw = st.text_input("Tooltip-only columns (comma separated)", value="Visitors", key="cal_tooltips")
    date_format = st.text_input("Tooltip date format (strftime, blank = M/D/YYYY)", value="", key="cal_date_fmt")

tooltip_cols = [c.strip() for c in tooltip_raw.split(",") if c.strip()]
source = uploaded if uploaded is not None else _demo_frame()
source_label = f"uploaded: {getattr(uploaded, 'name', 'file.csv')}" if uploaded is not None else "demo data"

try:
    view = load_data_view(
        source,
        date_col=date_col or None,
        tooltip_cols=tooltip_cols,
        date_format=date_format or None,
    )
except Exception as e:
    logger.warning("Could not load %s: %s", source_label, e)
    st.error(f"Could not read that file: {e}")
    st.stop()

issues = validate(view)
if issues:
    st.warning("We found issues in your data:")
    for i, msg in enumerate(issues, start=1):
        st.write(f"{i}. {msg}")

st.title("Metric Calendar")
st.caption(f"Source: {source_label}")
render_calendar(view=view)
