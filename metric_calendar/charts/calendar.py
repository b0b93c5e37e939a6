# metric_calendar/charts/calendar.py
from __future__ import annotations

import html
from typing import Dict, List, Optional, Tuple

import plotly.graph_objects as go

from ..data.grid import DayCell, MonthGrid
from ..data.layout import Bar
from ..data.tooltips import TooltipItem
from ..data.transform import MetricDescriptor
from ..selection import FILL_SELECTED, LegendHighlight
from ..settings import CalendarSettings, LegendAppearance
from ..theme import BG, CELL_DEFAULT, CELL_SELECTED

MONTH_GAP = 15
LEGEND_BAND = 30

# first customdata entry of legend click targets (cell ids always start with "a")
LEGEND_TARGET = "legend"

FILLS = {FILL_SELECTED: CELL_SELECTED}


def tooltip_html(items: Optional[List[TooltipItem]]) -> str:
    """Header once, then one '■ name: value' row per item."""
    if not items:
        return ""
    rows = [f"<b>{html.escape(items[0].header)}</b>"]
    for it in items:
        if it.display_name is None:
            continue
        swatch = f"<span style='color:{it.color or '#999'}'>■</span>"
        value = html.escape(it.value) if it.value is not None else ""
        rows.append(f"{swatch} {html.escape(it.display_name)}: {value}")
    return "<br>".join(rows)


class PlotlyCalendarPainter:
    """
    Collects shapes / annotations / hover points for every month and builds
    one plotly figure. Cell and bar shapes are indexed by id so the selection
    and legend highlight can repaint them in place.
    """

    def __init__(self, viewport: Tuple[float, float] = (0.0, 0.0), cell_size: float = 50):
        self.viewport = viewport
        self.cell_size = cell_size
        self.shapes: List[dict] = []
        self.annos: List[dict] = []
        self._cell_shapes: Dict[str, int] = {}
        self._bar_shapes: Dict[str, List[int]] = {}  # metric name -> shape indexes
        self._legend_annos: Dict[str, int] = {}
        # hover/click points: (x, y, customdata, text)
        self.cell_points: List[tuple] = []
        self.bar_points: List[tuple] = []
        self.legend_points: List[tuple] = []
        self.legend_offset = 0.0
        self.month_count = 0
        self.cell_fill = CELL_DEFAULT
        self.border_color = "black"

    # ---------- geometry ----------
    @property
    def month_width(self) -> float:
        return self.cell_size * 7 + MONTH_GAP

    @property
    def month_height(self) -> float:
        # header + week-day labels + up to 6 weeks
        return self.cell_size * 8 + MONTH_GAP

    @property
    def per_row(self) -> int:
        width = self.viewport[0] or 0
        return max(1, int(width // self.month_width)) if width else 3

    def origin(self, month_no: int) -> Tuple[float, float]:
        row, col = divmod(month_no, self.per_row)
        return col * self.month_width, self.legend_offset + row * self.month_height

    # ---------- paint contract ----------
    def draw_month(self, month_no: int, grid: MonthGrid, week_labels: List[str], settings: CalendarSettings) -> None:
        cal = settings.calendar
        self.cell_size = cal.cell_size
        self.month_count = max(self.month_count, month_no + 1)
        ox, oy = self.origin(month_no)
        cs = cal.cell_size

        self.shapes.append(
            dict(
                type="rect",
                x0=ox + 1,
                x1=ox + 1 + cs * 7,
                y0=oy + 1,
                y1=oy + 1 + cs,
                line=dict(color=cal.header_color, width=1),
                fillcolor=cal.header_color,
                layer="below",
            )
        )
        self.annos.append(
            dict(
                x=ox + 1 + cs * 3.5,
                y=oy + cs * 0.6,
                xref="x",
                yref="y",
                text=grid.descriptor.title,
                showarrow=False,
                font=dict(size=cs / 2, color=cal.header_title_color),
                xanchor="center",
                yanchor="middle",
            )
        )
        for c, label in enumerate(week_labels):
            self.annos.append(
                dict(
                    x=ox + 1 + cs * (c + 0.5),
                    y=oy + cs * 1.5,
                    xref="x",
                    yref="y",
                    text=label,
                    showarrow=False,
                    font=dict(size=max(8, round(cs / 3)), color=cal.week_day_labels_color),
                    xanchor="center",
                    yanchor="middle",
                )
            )
        self.border_color = cal.cell_border_color

    def draw_cell(self, month_no: int, cell: DayCell, fill_state: str, tooltip: Optional[List[TooltipItem]]) -> None:
        ox, oy = self.origin(month_no)
        cs = self.cell_size
        self._cell_shapes[cell.id] = len(self.shapes)
        self.shapes.append(
            dict(
                type="rect",
                x0=ox + cell.x,
                x1=ox + cell.x + cs,
                y0=oy + cell.y,
                y1=oy + cell.y + cs,
                line=dict(color=self.border_color, width=1),
                fillcolor=FILLS.get(fill_state, self.cell_fill),
                layer="below",
            )
        )
        self.cell_points.append(
            (ox + cell.x + cs / 2, oy + cell.y + cs / 4, [cell.id, ""], tooltip_html(tooltip))
        )

    def draw_label(self, month_no: int, x: float, y: float, text: str, size: float, color: str) -> None:
        ox, oy = self.origin(month_no)
        self.annos.append(
            dict(
                x=ox + x,
                y=oy + y,
                xref="x",
                yref="y",
                text=text,
                showarrow=False,
                font=dict(size=size, color=color),
                xanchor="center",
                yanchor="middle",
            )
        )

    def paint_cell(self, cell_id: str, fill_state: str) -> None:
        idx = self._cell_shapes.get(cell_id)
        if idx is not None:
            self.shapes[idx]["fillcolor"] = FILLS.get(fill_state, self.cell_fill)

    def paint_bar(self, month_no: int, bar: Bar, color: str, tooltip: List[TooltipItem]) -> None:
        ox, oy = self.origin(month_no)
        metric = bar.point.metric_name
        self._bar_shapes.setdefault(metric, []).append(len(self.shapes))
        self.shapes.append(
            dict(
                type="rect",
                x0=ox + bar.x,
                x1=ox + bar.x + bar.width,
                y0=oy + bar.y,
                y1=oy + bar.y + bar.height,
                line=dict(width=0),
                fillcolor=color,
                opacity=1,
                layer="above",
            )
        )
        self.bar_points.append(
            (
                ox + bar.x + bar.width / 2,
                oy + bar.y + bar.height / 2,
                [bar.cell_id, metric],
                tooltip_html(tooltip),
            )
        )

    def draw_legend(self, metrics: List[MetricDescriptor], legend: LegendAppearance) -> None:
        self.legend_offset = LEGEND_BAND
        x = 4.0
        if legend.title_show:
            self.annos.append(
                dict(
                    x=x,
                    y=LEGEND_BAND / 2,
                    xref="x",
                    yref="y",
                    text=f"<b>{html.escape(legend.title_name)}</b>",
                    showarrow=False,
                    font=dict(size=legend.font_size, color=legend.label_color),
                    xanchor="left",
                    yanchor="middle",
                )
            )
            x += (len(legend.title_name) + 2) * legend.font_size * 0.7
        for m in metrics:
            self._legend_annos[m.name] = len(self.annos)
            self.annos.append(
                dict(
                    x=x,
                    y=LEGEND_BAND / 2,
                    xref="x",
                    yref="y",
                    text=f"<span style='color:{m.color}'>●</span> {html.escape(m.name)}",
                    showarrow=False,
                    font=dict(size=legend.font_size, color=legend.label_color),
                    xanchor="left",
                    yanchor="middle",
                    opacity=1,
                )
            )
            self.legend_points.append(
                (x + legend.font_size * 0.5, LEGEND_BAND / 2, [LEGEND_TARGET, m.name], html.escape(m.name))
            )
            x += (len(m.name) + 3) * legend.font_size * 0.7

    def apply_highlight(self, highlight: LegendHighlight) -> None:
        for name, idxs in self._bar_shapes.items():
            for i in idxs:
                self.shapes[i]["opacity"] = highlight.metric_opacity.get(name, 1.0)
        for name, i in self._legend_annos.items():
            self.annos[i]["opacity"] = highlight.legend_opacity.get(name, 1.0)

    # ---------- output ----------
    def figure(self) -> go.Figure:
        rows = max(1, -(-self.month_count // self.per_row))  # ceil div
        total_w = min(self.month_count, self.per_row) * self.month_width if self.month_count else self.month_width
        total_h = self.legend_offset + rows * self.month_height

        fig = go.Figure()
        for name, pts, size in (
            ("cells", self.cell_points, self.cell_size * 0.45),
            ("bars", self.bar_points, self.cell_size * 0.3),
            ("legend", self.legend_points, LEGEND_BAND * 0.5),
        ):
            if not pts:
                continue
            fig.add_scatter(
                x=[p[0] for p in pts],
                y=[p[1] for p in pts],
                customdata=[p[2] for p in pts],
                hovertext=[p[3] for p in pts],
                hovertemplate="%{hovertext}<extra></extra>",
                mode="markers",
                marker=dict(size=size, color="rgba(0,0,0,0)"),
                name=name,
                showlegend=False,
            )

        fig.update_layout(
            paper_bgcolor=BG,
            plot_bgcolor=BG,
            shapes=self.shapes,
            annotations=self.annos,
            xaxis=dict(range=[0, total_w], showgrid=False, zeroline=False, tickvals=[], fixedrange=True),
            yaxis=dict(range=[total_h, 0], showgrid=False, zeroline=False, tickvals=[], fixedrange=True),
            margin=dict(l=4, r=4, t=4, b=4),
            height=int(total_h) + 8,
            clickmode="event+select",
            dragmode=False,
            hovermode="closest",
        )
        return fig
