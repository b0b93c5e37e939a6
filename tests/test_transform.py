import unittest
from datetime import date

from helpers import make_view

from metric_calendar.data.date_range import DateRange
from metric_calendar.data.transform import (
    MAX_COLUMNS,
    ROLE_METRIC,
    ROLE_TOOLTIP,
    legend_metrics,
    transform,
)
from metric_calendar.formatting import ColorPalette
from metric_calendar.io import CategoryColumn, DataView


class TestTransform(unittest.TestCase):
    def test_points_sorted_newest_first_by_calendar_value(self) -> None:
        view = make_view(
            [date(2022, 12, 1), date(2023, 1, 5), date(2023, 1, 1)],
            {"Sales": [1, 2, 3]},
        )
        res = transform(view, ColorPalette())
        self.assertEqual(res.dates, ["1/5/2023", "1/1/2023", "12/1/2022"])
        self.assertEqual([p.canonical_date for p in res.data_points], res.dates)

    def test_missing_dates_and_values_are_skipped(self) -> None:
        view = make_view(
            [date(2024, 1, 1), None, date(2024, 1, 3)],
            {"Sales": [5, 6, None], "Returns": [1, 2, 3]},
        )
        res = transform(view, ColorPalette())
        got = sorted((p.canonical_date, p.metric_name) for p in res.data_points)
        self.assertEqual(
            got,
            [("1/1/2024", "Returns"), ("1/1/2024", "Sales"), ("1/3/2024", "Returns")],
        )

    def test_stack_order_puts_last_column_at_bottom(self) -> None:
        view = make_view([date(2024, 1, 1)], {"A": [1], "B": [2], "C": [3]})
        res = transform(view, ColorPalette())
        order = {p.metric_name: p.stack_order for p in res.data_points}
        self.assertEqual(order, {"A": 2, "B": 1, "C": 0})

    def test_column_cap(self) -> None:
        cols = {f"m{i:03d}": [i] for i in range(MAX_COLUMNS + 1)}
        res = transform(make_view([date(2024, 1, 1)], cols), ColorPalette())
        self.assertEqual(len(res.metrics), MAX_COLUMNS)
        self.assertNotIn(f"m{MAX_COLUMNS:03d}", {p.metric_name for p in res.data_points})

    def test_tooltip_columns_sorted_and_roles(self) -> None:
        view = make_view(
            [date(2024, 1, 1)],
            {"Sales": [1]},
            tooltips={"Visitors": [10], "Avg": [2.5]},
        )
        res = transform(view, ColorPalette())
        self.assertEqual(res.tooltip_columns, ["Avg", "Visitors"])
        roles = {p.metric_name: p.role for p in res.data_points}
        self.assertEqual(roles["Sales"], ROLE_METRIC)
        self.assertEqual(roles["Visitors"], ROLE_TOOLTIP)

    def test_cell_id_and_identity(self) -> None:
        view = make_view([date(2024, 3, 15), date(2024, 3, 16)], {"Sales": [1, 2]})
        res = transform(view, ColorPalette())
        p = res.data_points[-1]
        self.assertEqual(p.cell_id, "a3_15_2024")
        self.assertEqual(p.identity.metadata, "3/15/2024")
        self.assertEqual(p.identity.series, "Sales")
        self.assertEqual(p.identity.category_index, 1)
        self.assertEqual(p.identity.cell_id, p.cell_id)

    def test_colors_come_from_palette(self) -> None:
        view = make_view([date(2024, 1, 1)], {"A": [1], "B": [2]})
        res = transform(view, ColorPalette({"B": "#123456"}, palette=["red", "blue"]))
        self.assertEqual(res.color_of("A"), "red")
        self.assertEqual(res.color_of("B"), "#123456")
        self.assertEqual(res.color_of("nope"), "")

    def test_incomplete_view_gives_empty_result(self) -> None:
        self.assertEqual(transform(None, ColorPalette()).data_points, [])
        no_values = DataView(category=CategoryColumn("date", [date(2024, 1, 1)]), values=[])
        self.assertEqual(transform(no_values, ColorPalette()).metrics, [])

    def test_date_format_drives_display_date(self) -> None:
        view = make_view([date(2024, 1, 2)], {"A": [1]}, date_format="%Y-%m-%d")
        p = transform(view, ColorPalette()).data_points[0]
        self.assertEqual(p.display_date, "2024-01-02")
        self.assertEqual(p.canonical_date, "1/2/2024")


class TestLegendMetrics(unittest.TestCase):
    def test_only_metrics_drawn_in_range(self) -> None:
        view = make_view(
            [date(2024, 1, 10), date(2024, 5, 1)],
            {"Jan": [1, None], "May": [None, 1]},
            tooltips={"Visitors": [3, 4]},
        )
        res = transform(view, ColorPalette())
        rng = DateRange(start=date(2024, 1, 1), months=2)
        self.assertEqual([m.name for m in legend_metrics(res, rng)], ["Jan"])


if __name__ == "__main__":
    unittest.main()
