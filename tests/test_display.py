import unittest

from robustcp.display import constraint_to_str, mixed_to_str, uncertain_to_str
from robustcp.expressions import UncertainExpression
from robustcp.robust_model import RobustModel


class TestDisplay(unittest.TestCase):

    def setUp(self):
        self.m = RobustModel()
        self.x = self.m.add_uncertain("x")
        self.y = self.m.add_uncertain("y")
        self.z = self.m.add_uncertain("z")
        self.a = self.m.add_variable("a")
        self.b = self.m.add_variable("b")

    def test_terms(self):
        expr = self.x - self.y + 2.5*self.z
        self.assertEqual(uncertain_to_str(expr), "x - y + 2.5 z")

    def test_order_and_collect(self):
        expr = 2*self.z + self.x + self.z - 3*self.x
        self.assertEqual(str(expr), "-2 x + 3 z")

    def test_small_constant_hidden(self):
        expr = self.x - self.y + 2.5*self.z + 0.0000001
        self.assertEqual(uncertain_to_str(expr, True), "x - y + 2.5 z")

    def test_constant(self):
        expr = self.x - 4
        self.assertEqual(uncertain_to_str(expr), "x - 4")
        self.assertEqual(uncertain_to_str(expr, show_constant=False), "x")
        self.assertEqual(uncertain_to_str(UncertainExpression(constant=1.5)), "1.5")

    def test_zero(self):
        self.assertEqual(uncertain_to_str(self.x - self.x), "0")
        self.assertEqual(uncertain_to_str(UncertainExpression([self.x], [0.])), "0")

    def test_mixed(self):
        expr = (2*self.x + 1)*self.a + self.y*self.b - 3*self.b + self.z + 1
        self.assertEqual(mixed_to_str(expr), "(2 x + 1) a + y b - 3 b + z + 1")
        self.assertEqual(mixed_to_str(expr, show_constant=False), "(2 x + 1) a + y b - 3 b")

    def test_constraints(self):
        self.assertEqual(constraint_to_str(self.x + self.y <= 2), "x + y <= 2")
        self.assertEqual(str(self.x*self.a >= 1), "x a >= 1")
        self.assertEqual(str(self.a + self.b == 3), "a + b == 3")

    def test_model(self):
        self.m.add_constraint(self.x*self.a + self.b <= 4)
        self.m.add_constraint(self.x + self.y <= 1)
        text = str(self.m)
        self.assertIn("Uncertain constraints:\nx a + b <= 4", text)
        self.assertIn("Uncertainty set:\nx + y <= 1", text)
        self.assertIn("-inf <= z <= inf", text)
