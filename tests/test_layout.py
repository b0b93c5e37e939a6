import unittest

from helpers import point

from metric_calendar.data.layout import LABEL_MARGIN, height_fractions, stack_cell
from metric_calendar.data.transform import ROLE_TOOLTIP


class TestStackLayout(unittest.TestCase):
    def test_proportional_heights_bottom_up(self) -> None:
        pts = [point("Top", 10, 1), point("Bottom", 30, 0)]
        stack = stack_cell("a3_15_2024", pts, cell_x=100, cell_y=200, cell_size=50)

        self.assertEqual([b.point.metric_name for b in stack.bars], ["Bottom", "Top"])
        bottom, top = stack.bars
        self.assertAlmostEqual(bottom.fraction, 0.75)
        self.assertAlmostEqual(top.fraction, 0.25)

        available = 50 - 50 * LABEL_MARGIN
        self.assertAlmostEqual(bottom.height, available * 0.75)
        self.assertAlmostEqual(bottom.y, 200 + 50 - bottom.height - 1)
        # top bar sits directly on the bottom one
        self.assertAlmostEqual(top.y + top.height, bottom.y)
        self.assertEqual((bottom.x, bottom.width), (101, 48))
        self.assertAlmostEqual(bottom.height + top.height, available)

    def test_zero_value_is_invisible_target(self) -> None:
        pts = [point("A", 0, 1), point("B", 5, 0)]
        stack = stack_cell("a3_15_2024", pts)
        self.assertEqual([b.point.metric_name for b in stack.bars], ["B"])
        self.assertEqual([(t.metric_name, t.visible) for t in stack.targets], [("B", True), ("A", False)])
        self.assertEqual(stack.cell_target.metric_name, "B")

    def test_numeric_string_zero_is_invisible_target(self) -> None:
        pts = [point("A", "0", 1), point("B", 5, 0)]
        stack = stack_cell("a3_15_2024", pts)
        self.assertEqual([b.point.metric_name for b in stack.bars], ["B"])
        self.assertEqual([(t.metric_name, t.visible) for t in stack.targets], [("B", True), ("A", False)])

    def test_tooltip_points_do_not_stack(self) -> None:
        pts = [point("Visitors", 100, 0, role=ROLE_TOOLTIP), point("B", 5, 1)]
        stack = stack_cell("a3_15_2024", pts)
        self.assertEqual([e.metric_name for e in stack.entries], ["B"])
        self.assertAlmostEqual(stack.bars[0].fraction, 1.0)

    def test_non_numeric_counts_as_zero(self) -> None:
        pts = [point("A", "n/a", 1), point("B", 4, 0)]
        self.assertEqual(height_fractions(sorted(pts, key=lambda p: p.stack_order)), [1.0, 0.0])

    def test_all_zero_total(self) -> None:
        self.assertEqual(height_fractions([point("A", 0, 0), point("B", 0, 1)]), [0.0, 0.0])

    def test_empty_cell(self) -> None:
        stack = stack_cell("a1_1_2024", [])
        self.assertEqual(stack.bars, [])
        self.assertIsNone(stack.cell_target)


if __name__ == "__main__":
    unittest.main()
