# metric_calendar/theme.py
# ---- Surfaces ----
BG = "#ffffff"  # figure background
FG = "#1f2937"  # primary foreground text

# ---- Cell fills ----
CELL_DEFAULT = "white"  # unselected day cell
CELL_SELECTED = "darkgrey"  # highlighted day cell

# ---- Header ----
HEADER_BG = "black"
HEADER_FG = "white"
CELL_BORDER = "black"

# ---- Opacity ----
LEGEND_DIMMED = 0.5
METRIC_DIMMED = 0.3

# ---- Series palette (assigned in order of first request) ----
PALETTE = [
    "#01B8AA",
    "#374649",
    "#FD625E",
    "#F2C80F",
    "#5F6B6D",
    "#8AD4EB",
    "#FE9666",
    "#A66999",
    "#3599B8",
    "#DFBFBF",
    "#4AC5BB",
    "#5F6B6D",
    "#FB8281",
    "#F4D25A",
    "#7F898A",
    "#A4DDEE",
    "#FDAB89",
    "#B687AC",
    "#28738A",
    "#A78F8F",
]
