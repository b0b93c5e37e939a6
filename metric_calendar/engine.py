# metric_calendar/engine.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .data.date_range import DateRange, resolve
from .data.grid import DayCell, MonthGrid, build_month, visible_months, week_day_labels
from .data.layout import Bar, CellStack, stack_cell
from .data.tooltips import TooltipItem, bar_tooltip, day_tooltip
from .data.transform import (
    DataPoint,
    MetricDescriptor,
    TransformResult,
    legend_metrics,
    transform,
    visible_points,
)
from .formatting import ColorPalette
from .io import DataView
from .selection import (
    FILL_DEFAULT,
    FILL_SELECTED,
    LegendHighlight,
    PendingResult,
    SelectionIdentity,
    SelectionManager,
    SelectionState,
    SelectionStateMachine,
    SessionSelectionManager,
    legend_highlight,
)
from .settings import CalendarSettings, LegendAppearance

logger = logging.getLogger(__name__)


class Painter(Protocol):
    """Drawing surface. The engine only writes to it."""

    def draw_month(self, month_no: int, grid: MonthGrid, week_labels: List[str], settings: CalendarSettings) -> None: ...

    def draw_cell(self, month_no: int, cell: DayCell, fill_state: str, tooltip: Optional[List[TooltipItem]]) -> None: ...

    def draw_label(self, month_no: int, x: float, y: float, text: str, size: float, color: str) -> None: ...

    def paint_cell(self, cell_id: str, fill_state: str) -> None: ...

    def paint_bar(self, month_no: int, bar: Bar, color: str, tooltip: List[TooltipItem]) -> None: ...

    def draw_legend(self, metrics: List[MetricDescriptor], legend: LegendAppearance) -> None: ...

    def apply_highlight(self, highlight: LegendHighlight) -> None: ...


@dataclass
class CellView:
    cell: DayCell
    day: date
    points: List[DataPoint] = field(default_factory=list)
    stack: Optional[CellStack] = None
    tooltip: Optional[List[TooltipItem]] = None
    bar_tooltips: List[List[TooltipItem]] = field(default_factory=list)


@dataclass
class MonthView:
    grid: MonthGrid
    cells: Dict[str, CellView] = field(default_factory=dict)


@dataclass
class CalendarModel:
    settings: CalendarSettings
    date_range: DateRange
    result: TransformResult
    legend: List[MetricDescriptor]
    months: List[MonthView]
    cells: Dict[str, CellView]  # every in-range cell of every visible month
    viewport: Tuple[float, float] = (0.0, 0.0)

    @property
    def is_empty(self) -> bool:
        return not self.result.data_points


class CalendarEngine:
    """
    Owns the selection state between update cycles; everything else is
    rebuilt from scratch on every `update`.
    """

    def __init__(self, manager: Optional[SelectionManager] = None, today: Optional[date] = None):
        self.manager = manager if manager is not None else SessionSelectionManager()
        self.selection = SelectionStateMachine(self.manager)
        self.pending = PendingResult()
        self.manager.register_on_select_callback(self.on_host_selection_changed)
        self.today = today
        self.model: Optional[CalendarModel] = None
        self.highlight: Optional[LegendHighlight] = None
        self.painter: Optional[Painter] = None

    # ---------- update cycle ----------
    def update(
        self,
        settings: CalendarSettings,
        data_view: Optional[DataView],
        viewport: Tuple[float, float] = (0.0, 0.0),
    ) -> CalendarModel:
        cal = settings.calendar
        rng = resolve(cal, self.today)
        palette = ColorPalette(settings.metrics.colors)
        result = transform(data_view, palette)

        self.selection.sync_with_host()
        legend = legend_metrics(result, rng)

        by_cell: Dict[str, List[DataPoint]] = {}
        for p in visible_points(result.data_points, rng):
            by_cell.setdefault(p.cell_id, []).append(p)

        metric_names = [m.name for m in legend]
        months: List[MonthView] = []
        cells: Dict[str, CellView] = {}
        for desc in visible_months(rng):
            grid = build_month(desc, rng.start, first_day=cal.first_day, cell_size=cal.cell_size)
            view = MonthView(grid=grid)
            for cell in grid.day_cells():
                cv = CellView(cell=cell, day=date(desc.year, desc.month, cell.day_of_month))
                pts = by_cell.get(cell.id, [])
                if pts:
                    cv.points = pts
                    cv.stack = stack_cell(cell.id, pts, cell_x=cell.x, cell_y=cell.y, cell_size=cal.cell_size)
                    cv.tooltip = day_tooltip(
                        cv.day, pts, result.tooltip_columns, result.color_of, result.category_format
                    )
                    cv.bar_tooltips = [
                        bar_tooltip(b.point, pts, result.tooltip_columns, metric_names, result.color_of)
                        for b in cv.stack.bars
                    ]
                view.cells[cell.id] = cv
                cells[cell.id] = cv
            months.append(view)

        logger.debug(
            "Calendar update: %d points, %d months from %s",
            len(result.data_points),
            len(months),
            rng.start.isoformat(),
        )
        self.model = CalendarModel(
            settings=settings,
            date_range=rng,
            result=result,
            legend=legend,
            months=months,
            cells=cells,
            viewport=viewport,
        )
        if not self.manager.get_selection_ids():
            self.highlight = None
        return self.model

    def render(self, painter: Painter) -> Painter:
        """Replay the current model onto `painter` and route later repaints to it."""
        if self.model is None:
            raise RuntimeError("render() called before update()")
        model = self.model
        cal = model.settings.calendar
        labels = week_day_labels(cal.first_day)

        if model.settings.legend.show and not model.is_empty:
            painter.draw_legend(model.legend, model.settings.legend)

        for month_no, view in enumerate(model.months):
            painter.draw_month(month_no, view.grid, labels, model.settings)
            for cell in view.grid.day_cells():
                cv = view.cells[cell.id]
                fill = FILL_SELECTED if self.selection.is_selected(cell.id) else FILL_DEFAULT
                painter.draw_cell(month_no, cell, fill, cv.tooltip)
                painter.draw_label(
                    month_no,
                    cell.x + cal.cell_size / 2,
                    cell.y + cal.cell_size / 3,
                    str(cell.day_of_month),
                    cal.cell_size / 4,
                    cal.day_labels_color,
                )
                if cv.stack is None:
                    continue
                for bar, tip in zip(cv.stack.bars, cv.bar_tooltips):
                    painter.paint_bar(month_no, bar, bar.point.color, tip)

        if self.highlight is not None:
            painter.apply_highlight(self.highlight)
        self.painter = painter
        self.selection.paint = painter.paint_cell
        return painter

    # ---------- interaction ----------
    def click_cell(self, cell_id: str, additive: bool = False) -> SelectionState:
        """Click on the bare cell (or its day label)."""
        cv = self.model.cells.get(cell_id) if self.model else None
        if cv is None or cv.stack is None or cv.stack.cell_target is None:
            return self.selection.state
        return self.selection.click(cell_id, [cv.stack.cell_target.identity], additive)

    def click_bar(self, cell_id: str, metric_name: str, additive: bool = False) -> SelectionState:
        """Click on one stacked bar: selects that bar's identity, highlights its day."""
        cv = self.model.cells.get(cell_id) if self.model else None
        if cv is None or cv.stack is None:
            return self.selection.state
        target = next((t for t in cv.stack.targets if t.metric_name == metric_name and t.visible), None)
        if target is None:
            return self.click_cell(cell_id, additive)
        return self.selection.click(cell_id, [target.identity], additive)

    def click_background(self) -> None:
        self.selection.background_click()
        # a legend selection has no highlighted cells
        if self.manager.get_selection_ids():
            self.manager.clear()
        if self.highlight is not None:
            names = list(self.highlight.metric_opacity)
            self.highlight = None
            if self.painter is not None:
                self.painter.apply_highlight(legend_highlight(names, "", 0, 0))

    def click_legend(self, metric_name: str) -> Optional[int]:
        """Select a whole series; highlight is applied when the host acknowledges."""
        if self.model is None:
            return None
        metric = next((m for m in self.model.legend if m.name == metric_name), None)
        if metric is None:
            return None
        names = [m.name for m in self.model.legend]
        future = self.manager.select(metric.identity)
        return self.pending.issue(future, lambda ids: self._apply_legend(names, metric.name, ids))

    def _apply_legend(self, names: List[str], clicked: str, ids: List[Any]) -> None:
        selected = len(self.manager.get_selection_ids())
        self.highlight = legend_highlight(names, clicked, selected, len(ids))
        if self.painter is not None:
            self.painter.apply_highlight(self.highlight)

    def on_host_selection_changed(self, ids: List[SelectionIdentity]) -> None:
        self.selection.apply_host_selection(ids)

    def current_selection(self) -> List[SelectionIdentity]:
        return self.manager.get_selection_ids()
