import unittest

import numpy as np
import numpy.testing as npt

from robustcp.error import ProtocolNotImplementedError
from robustcp.robust_model import RobustModel
from robustcp.uncertainty_sets.budget import BudgetUncertaintySet
from tests.settings import SOLVER
from tests.settings import TESTS_ATOL as ATOL
from tests.settings import TESTS_RTOL as RTOL


class TestBudgetUncertainty(unittest.TestCase):

    def build(self, gamma, **kwargs):
        """max sum(x) s.t. sum(u_i x_i) <= 6, u_i in [0, 2], 0 <= x_i <= 10"""
        self.uset = BudgetUncertaintySet(gamma, **kwargs)
        m = RobustModel(self.uset)
        xs = [m.add_variable(f"x{i}", lb=0, ub=10) for i in range(3)]
        us = [m.add_uncertain(f"u{i}", lb=0, ub=2) for i in range(3)]
        m.maximize(xs[0] + xs[1] + xs[2])
        m.add_constraint(us[0]*xs[0] + us[1]*xs[1] + us[2]*xs[2] <= 6)
        return m

    def test_reform_and_cuts(self):
        # sum(x) plus the gamma largest deviations must stay below 6
        for gamma, target in [(0, 6), (1, 4.5), (1.5, 4), (2, 3.6), (3, 3)]:
            reform_value = self.build(gamma).solve(solver=SOLVER)
            npt.assert_allclose(reform_value, target, rtol=RTOL, atol=ATOL)
            cut_value = self.build(gamma).solve(solver=SOLVER, prefer_cuts=True)
            npt.assert_allclose(cut_value, target, rtol=RTOL, atol=ATOL)

    def test_defaults_from_bounds(self):
        m = self.build(1)
        m.solve(solver=SOLVER)
        npt.assert_allclose(self.uset.nominal, np.ones(3))
        npt.assert_allclose(self.uset.deviation, np.ones(3))

    def test_explicit_nominal_deviation(self):
        m = self.build(3, nominal=[1, 1, 1], deviation=[0, 0, 0])
        npt.assert_allclose(m.solve(solver=SOLVER), 6, rtol=RTOL, atol=ATOL)
        m = self.build(1, nominal=[0.5, 0.5, 0.5], deviation=[0.5, 0.5, 0.5])
        npt.assert_allclose(m.solve(solver=SOLVER), 9, rtol=RTOL, atol=ATOL)

    def test_scenario(self):
        m = self.build(1)
        m.solve(solver=SOLVER, prefer_cuts=True, report_scenarios=True)
        scenario = m.get_scenario(0)
        npt.assert_allclose(np.sort(scenario.values), [1, 1, 2], rtol=RTOL, atol=ATOL)

    def test_fractional_scenario(self):
        m = self.build(1.5)
        m.solve(solver=SOLVER, prefer_cuts=True, report_scenarios=True)
        scenario = m.get_scenario(0)
        npt.assert_allclose(np.sort(scenario.values), [1, 1.5, 2], rtol=RTOL, atol=ATOL)

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            BudgetUncertaintySet(-1)
        with self.assertRaises(ValueError):
            BudgetUncertaintySet(1, deviation=[1, -1, 1])
        with self.assertRaises(ValueError):
            self.build(1, nominal=[1, 1]).solve(solver=SOLVER)

    def test_unbounded_parameter(self):
        m = RobustModel(BudgetUncertaintySet(1))
        x = m.add_variable("x", lb=0, ub=1)
        u = m.add_uncertain("u", lb=0)
        m.add_uncertain("w")
        m.maximize(x)
        m.add_constraint(u*x <= 1)
        with self.assertRaises(ValueError):
            m.solve(solver=SOLVER)

    def test_unused_unbounded_parameter(self):
        m = RobustModel(BudgetUncertaintySet(1))
        x = m.add_variable("x", lb=0, ub=1)
        u = m.add_uncertain("u", lb=0, ub=4)
        m.add_uncertain("w")
        m.maximize(x)
        m.add_constraint(u*x <= 1)
        npt.assert_allclose(m.solve(solver=SOLVER), 0.25, rtol=RTOL, atol=ATOL)
        m.solve(solver=SOLVER, prefer_cuts=True, report_scenarios=True)
        scenario = m.get_scenario(0)
        npt.assert_allclose(scenario.get(0), 4, rtol=RTOL, atol=ATOL)
        self.assertTrue(np.isnan(scenario.get(1)))

    def test_no_set_constraints(self):
        m = self.build(1)
        with self.assertRaises(ProtocolNotImplementedError):
            m.add_constraint(m.uncertain_parameters[0] <= 1)
