import unittest

import cvxpy as cp
import numpy.testing as npt

from robustcp.constraints import UncertainConstraint
from robustcp.error import VectorizedConstraintError
from robustcp.robust_model import RobustModel
from robustcp.settings import OPTIMAL
from robustcp.uncertainty_sets.basic import BasicUncertaintySet
from robustcp.uncertainty_sets.budget import BudgetUncertaintySet
from tests.settings import SOLVER
from tests.settings import TESTS_ATOL as ATOL
from tests.settings import TESTS_RTOL as RTOL


class TestRobustModel(unittest.TestCase):

    def setUp(self):
        self.m = RobustModel()
        self.x = self.m.add_variable("x", lb=0, ub=10)
        self.y = self.m.add_variable("y", lb=0, ub=10)
        self.u = self.m.add_uncertain("u", lb=1, ub=2)
        self.w = self.m.add_uncertain("w", lb=0, ub=1)

    def test_default_names(self):
        m = RobustModel()
        self.assertEqual(m.add_variable().name, "x0")
        self.assertEqual(m.add_uncertain().name, "u0")
        self.assertIsInstance(m.default_uncertainty_set, BasicUncertaintySet)

    def test_routing(self):
        self.assertIsNone(self.m.add_constraint(self.x + self.y <= 3))
        self.assertIsNone(self.m.add_constraint(self.x.cvx >= 1))
        self.assertIsNone(self.m.add_constraint(self.u + self.w <= 2))
        self.assertIsNone(self.m.add_constraint(UncertainConstraint(self.u - self.w, lb=0)))
        self.assertEqual(self.m.add_constraint(self.u*self.x <= 4), 0)
        self.assertEqual(self.m.add_constraint(self.x + self.w*self.y >= 1), 1)

        self.assertEqual(len(self.m.certain_constraints), 2)
        self.assertEqual(len(self.m.uncertain_constraints), 2)
        self.assertEqual(len(self.m.default_uncertainty_set.set_constraints), 2)

    def test_explicit_set(self):
        budget = BudgetUncertaintySet(1)
        idx = self.m.add_constraint(self.u*self.x <= 4, budget)
        self.assertIs(self.m.set_for(idx), budget)
        other = self.m.add_constraint(self.u*self.y <= 4)
        self.assertIs(self.m.set_for(other), self.m.default_uncertainty_set)

    def test_add_constraints(self):
        constraints = [self.u*self.x <= 4, self.u*self.y <= 4]
        with self.assertRaises(VectorizedConstraintError):
            self.m.add_constraint(constraints)
        self.assertEqual(self.m.add_constraints(constraints), [0, 1])

    def test_not_a_constraint(self):
        with self.assertRaises(TypeError):
            self.m.add_constraint(self.x)

    def test_uncertain_objective(self):
        with self.assertRaises(ValueError):
            self.m.minimize(self.u*self.x)
        with self.assertRaises(ValueError):
            self.m.maximize(self.w)
        with self.assertRaises(ValueError):
            self.m.set_objective(self.x, sense="up")

    def test_objectives(self):
        self.m.add_constraint(self.u*self.x + self.y <= 8)
        self.m.minimize(self.x + self.y)
        npt.assert_allclose(self.m.solve(solver=SOLVER), 0, rtol=RTOL, atol=ATOL)
        self.m.maximize(2*self.x + self.y)
        npt.assert_allclose(self.m.solve(solver=SOLVER), 8, rtol=RTOL, atol=ATOL)
        self.m.maximize(cp.sum(self.x.cvx))
        npt.assert_allclose(self.m.solve(solver=SOLVER), 4, rtol=RTOL, atol=ATOL)

    def test_solve_result(self):
        self.assertIsNone(self.m.status)
        self.m.maximize(self.x)
        self.m.add_constraint(self.u*self.x + self.w <= 5)
        self.m.solve(solver=SOLVER, prefer_cuts=True)
        self.assertEqual(self.m.status, OPTIMAL)
        npt.assert_allclose(self.m.get_value(self.x), 2, rtol=RTOL, atol=ATOL)
        npt.assert_allclose(self.m.get_value(2*self.x.cvx), 4, rtol=RTOL, atol=ATOL)
        stats = self.m.result.solver_stats
        self.assertEqual(stats.solver_name, SOLVER)
        self.assertEqual(stats.num_constraints, 5)

    def test_verbose_summary(self):
        self.m.maximize(self.x)
        self.m.add_constraint(self.u*self.x <= 5)
        with self.assertLogs("robustcp.orchestrator", level="INFO") as cm:
            self.m.solve(solver=SOLVER, verbose=True)
        self.assertIn("optimal", cm.output[0])

    def test_get_value_type(self):
        with self.assertRaises(TypeError):
            self.m.get_value(self.u)

    @unittest.skipUnless(cp.SCIPY in cp.installed_solvers(), "needs a MILP solver")
    def test_integer(self):
        m = RobustModel()
        x = m.add_variable("x", lb=0, ub=4, integer=True)
        y = m.add_variable("y", lb=0, ub=10, integer=True)
        u1 = m.add_uncertain("u1", lb=1, ub=2)
        u2 = m.add_uncertain("u2", lb=1, ub=3)
        m.maximize(x + 3*y)
        m.add_constraint(u1*x + u2*y <= 10)
        npt.assert_allclose(m.solve(solver=cp.SCIPY), 9, rtol=RTOL, atol=ATOL)
        npt.assert_allclose(m.solve(solver=cp.SCIPY, prefer_cuts=True), 9,
                            rtol=RTOL, atol=ATOL)
        npt.assert_allclose(m.get_value(y), 3, rtol=RTOL, atol=ATOL)
