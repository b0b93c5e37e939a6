import unittest
from datetime import date

from helpers import make_view

from metric_calendar.charts.calendar import LEGEND_TARGET, PlotlyCalendarPainter, tooltip_html
from metric_calendar.data.tooltips import TooltipItem
from metric_calendar.engine import CalendarEngine
from metric_calendar.selection import SelectionIdentity, SelectionState, SessionSelectionManager
from metric_calendar.settings import parse_settings
from metric_calendar.theme import CELL_DEFAULT, CELL_SELECTED, METRIC_DIMMED

TODAY = date(2024, 3, 15)


def settings(**legend):
    return parse_settings(
        {
            "calendarSettings": {"startDate": "3/1/2024", "numOfMonths": 2},
            "legendSettings": legend,
        }
    )


def view():
    return make_view(
        [date(2024, 3, 1), date(2024, 3, 2), date(2024, 6, 1)],
        {"Sales": [30, 5, 7], "Returns": [10, 0, 1]},
        tooltips={"Visitors": [100, 200, 300]},
    )


class TestCalendarEngine(unittest.TestCase):
    def setUp(self) -> None:
        self.manager = SessionSelectionManager()
        self.engine = CalendarEngine(self.manager, today=TODAY)
        self.model = self.engine.update(settings(show=True), view(), viewport=(1200, 0))
        self.painter = self.engine.render(PlotlyCalendarPainter(viewport=(1200, 0)))

    def fill_of(self, cell_id: str) -> str:
        return self.painter.shapes[self.painter._cell_shapes[cell_id]]["fillcolor"]

    def test_update_builds_visible_months_only(self) -> None:
        self.assertEqual([m.grid.descriptor.title for m in self.model.months], ["March 2024", "April 2024"])
        self.assertEqual(len(self.model.cells), 31 + 30)
        self.assertEqual([m.name for m in self.model.legend], ["Sales", "Returns"])
        self.assertNotIn("a6_1_2024", self.model.cells)

    def test_cell_stacks_and_tooltips(self) -> None:
        first = self.model.cells["a3_1_2024"]
        self.assertEqual([b.point.metric_name for b in first.stack.bars], ["Returns", "Sales"])
        self.assertEqual([i.display_name for i in first.tooltip], ["Visitors"])
        second = self.model.cells["a3_2_2024"]
        self.assertEqual([t.visible for t in second.stack.targets], [False, True])
        self.assertIsNone(self.model.cells["a3_3_2024"].stack)

    def test_click_cell_selects_bottom_entry_and_repaints(self) -> None:
        self.assertEqual(self.fill_of("a3_1_2024"), CELL_DEFAULT)
        state = self.engine.click_cell("a3_1_2024")
        self.assertEqual(state, SelectionState.SINGLE)
        self.assertEqual(self.fill_of("a3_1_2024"), CELL_SELECTED)
        (ident,) = self.engine.current_selection()
        self.assertEqual((ident.series, ident.metadata), ("Returns", "3/1/2024"))

    def test_click_bar_selects_that_series(self) -> None:
        self.engine.click_bar("a3_1_2024", "Sales")
        self.assertEqual(self.engine.current_selection()[0].series, "Sales")
        # zero-valued bar falls back to the cell click
        self.engine.click_bar("a3_2_2024", "Returns", additive=True)
        self.assertEqual(self.engine.selection.state, SelectionState.MULTI)

    def test_click_on_empty_day_is_ignored(self) -> None:
        self.assertEqual(self.engine.click_cell("a3_3_2024"), SelectionState.IDLE)
        self.assertEqual(self.engine.current_selection(), [])

    def test_background_click_unpaints(self) -> None:
        self.engine.click_cell("a3_1_2024")
        self.engine.click_background()
        self.assertEqual(self.fill_of("a3_1_2024"), CELL_DEFAULT)
        self.assertEqual(self.engine.current_selection(), [])

    def test_selection_survives_update(self) -> None:
        self.engine.click_cell("a3_1_2024")
        self.engine.update(settings(show=True), view())
        painter = self.engine.render(PlotlyCalendarPainter())
        shape = painter.shapes[painter._cell_shapes["a3_1_2024"]]
        self.assertEqual(shape["fillcolor"], CELL_SELECTED)

    def test_host_selection_change(self) -> None:
        self.manager.push_external([SelectionIdentity(series="Sales", metadata="3/2/2024")])
        self.assertEqual(self.engine.selection.selected, ["a3_2_2024"])
        self.assertEqual(self.fill_of("a3_2_2024"), CELL_SELECTED)

    def test_legend_click_dims_other_series(self) -> None:
        self.engine.click_legend("Sales")
        hl = self.engine.highlight
        self.assertEqual(hl.metric_opacity["Returns"], METRIC_DIMMED)
        idx = self.painter._bar_shapes["Returns"][0]
        self.assertEqual(self.painter.shapes[idx]["opacity"], METRIC_DIMMED)
        self.assertIsNone(self.engine.click_legend("Nope"))

    def test_legend_highlight_survives_rerender_until_cleared(self) -> None:
        self.engine.click_legend("Sales")
        self.engine.update(settings(show=True), view())
        painter = self.engine.render(PlotlyCalendarPainter())
        idx = painter._bar_shapes["Returns"][0]
        self.assertEqual(painter.shapes[idx]["opacity"], METRIC_DIMMED)

        self.engine.click_background()
        self.assertEqual(self.engine.current_selection(), [])
        self.assertIsNone(self.engine.highlight)
        self.assertEqual(painter.shapes[idx]["opacity"], 1.0)

    def test_figure_has_click_targets(self) -> None:
        fig = self.painter.figure()
        names = [t.name for t in fig.data]
        self.assertEqual(names, ["cells", "bars", "legend"])
        self.assertEqual(list(fig.data[0].customdata[0]), ["a3_1_2024", ""])
        top, bottom = fig.layout.yaxis.range
        self.assertGreater(top, bottom)  # y grows downwards

    def test_legend_entries_are_figure_click_targets(self) -> None:
        targets = [list(p[2]) for p in self.painter.legend_points]
        self.assertEqual(targets, [[LEGEND_TARGET, "Sales"], [LEGEND_TARGET, "Returns"]])
        self.assertEqual(list(self.painter._legend_annos), ["Sales", "Returns"])

        self.engine.update(settings(show=False), view())
        hidden = self.engine.render(PlotlyCalendarPainter())
        self.assertEqual(hidden.legend_points, [])
        self.assertNotIn("legend", [t.name for t in hidden.figure().data])

    def test_empty_data_still_draws_calendar(self) -> None:
        engine = CalendarEngine(today=TODAY)
        model = engine.update(settings(show=True), None)
        self.assertTrue(model.is_empty)
        self.assertEqual(len(model.months), 2)
        painter = engine.render(PlotlyCalendarPainter())
        self.assertEqual(painter._legend_annos, {})
        self.assertEqual(painter.bar_points, [])

    def test_render_before_update(self) -> None:
        with self.assertRaises(RuntimeError):
            CalendarEngine().render(PlotlyCalendarPainter())


class TestTooltipHtml(unittest.TestCase):
    def test_header_only(self) -> None:
        self.assertEqual(tooltip_html([TooltipItem(header="3/15/2024")]), "<b>3/15/2024</b>")
        self.assertEqual(tooltip_html(None), "")

    def test_rows_escape_names(self) -> None:
        out = tooltip_html([TooltipItem(header="d", display_name="<b>", color="red", value="1")])
        self.assertIn("&lt;b&gt;: 1", out)


if __name__ == "__main__":
    unittest.main()
