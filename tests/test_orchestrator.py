import unittest

import numpy.testing as npt

from robustcp.error import ProtocolNotImplementedError
from robustcp.orchestrator import ResolutionOrchestrator, ResolutionSettings
from robustcp.robust_model import RobustModel
from robustcp.settings import INFEASIBLE, ITERATION_LIMIT, OPTIMAL
from robustcp.uncertainty_sets.basic import BasicUncertaintySet
from robustcp.uncertainty_sets.uncertainty_set import ALL_PHASES, Phase, UncertaintySet
from tests.settings import SOLVER
from tests.settings import TESTS_ATOL as ATOL
from tests.settings import TESTS_RTOL as RTOL

LOOP_PHASES = {Phase.REGISTER, Phase.SETUP, Phase.CUT, Phase.SCENARIO}


class RecordingSet(UncertaintySet):
    """Keeps track of the protocol calls it receives."""

    def __init__(self, phases=LOOP_PHASES):
        super(RecordingSet, self).__init__(phases)
        self.registered = []
        self.setup_calls = 0
        self.cut_calls = 0
        self.scenario_calls = []

    def register_constraint(self, model, idx, prefs):
        self.registered.append(idx)

    def setup_set(self, model, scenarios_requested, prefs):
        self.setup_calls += 1

    def generate_cut(self, det_model, model, idxs):
        self.cut_calls += 1
        return []

    def generate_scenario(self, det_model, model, idxs):
        self.scenario_calls.append(list(idxs))
        return [None for _ in idxs]


class AlwaysCutSet(RecordingSet):
    """Returns the same cut forever."""

    def __init__(self):
        super(AlwaysCutSet, self).__init__({Phase.REGISTER, Phase.SETUP, Phase.CUT})

    def generate_cut(self, det_model, model, idxs):
        self.cut_calls += 1
        return [model.variables[0].cvx <= 10]


class FullReformSet(RecordingSet):
    """Reformulates every constraint as ``x <= 5``."""

    def __init__(self):
        super(FullReformSet, self).__init__(ALL_PHASES)

    def generate_reform(self, det_model, model, idxs):
        det_model.add_constraint(model.variables[0].cvx <= 5)
        return list(idxs)


class CountReformSet(RecordingSet):
    """Reports a number of reformulated constraints instead of their indices."""

    def __init__(self, count=None):
        super(CountReformSet, self).__init__(ALL_PHASES)
        self.count = count

    def generate_reform(self, det_model, model, idxs):
        if self.count is None:
            det_model.add_constraint(model.variables[0].cvx <= 5)
            return len(idxs)
        return self.count


class FirstOnlyReformSet(BasicUncertaintySet):
    """Reformulates the first constraint it is given and leaves the rest to cuts."""

    def generate_reform(self, det_model, model, idxs):
        return super(FirstOnlyReformSet, self).generate_reform(det_model, model, idxs[:1])


class BadReformSet(RecordingSet):

    def __init__(self):
        super(BadReformSet, self).__init__(ALL_PHASES)

    def generate_reform(self, det_model, model, idxs):
        return [max(idxs) + 1]


class TestResolutionOrchestrator(unittest.TestCase):

    def setUp(self):
        self.m = RobustModel()
        self.x = self.m.add_variable("x", lb=0, ub=10)
        self.u = self.m.add_uncertain("u", lb=0.5, ub=1)
        self.m.maximize(self.x)

    def run_orchestrator(self, **kwargs):
        prefs = kwargs.pop("prefs", None)
        resolution_settings = ResolutionSettings(solver=SOLVER, **kwargs)
        return ResolutionOrchestrator(self.m, resolution_settings, prefs).run()

    def test_iteration_bound(self):
        uset = AlwaysCutSet()
        self.m.add_constraint(self.u*self.x <= 5, uset)
        with self.assertWarns(UserWarning):
            result = self.run_orchestrator(max_iter=5)
        self.assertEqual(result.status, ITERATION_LIMIT)
        self.assertEqual(result.iterations, 5)
        self.assertEqual(result.num_cuts, 5)
        self.assertEqual(uset.cut_calls, 6)

    def test_iteration_bound_zero(self):
        uset = AlwaysCutSet()
        self.m.add_constraint(self.u*self.x <= 5, uset)
        with self.assertWarns(UserWarning):
            result = self.run_orchestrator(max_iter=0)
        self.assertEqual(result.status, ITERATION_LIMIT)
        self.assertEqual(result.iterations, 0)

    def test_full_reformulation(self):
        uset = FullReformSet()
        self.m.add_constraint(self.u*self.x <= 5, uset)
        for report_scenarios in [False, True]:
            result = self.run_orchestrator(report_scenarios=report_scenarios)
            self.assertEqual(result.status, OPTIMAL)
            self.assertEqual(result.iterations, 0)
            self.assertEqual(result.num_reformulated, 1)
            self.assertEqual(result.scenarios, {})
            npt.assert_allclose(result.value, 5, rtol=RTOL, atol=ATOL)
        self.assertEqual(uset.cut_calls, 0)
        self.assertEqual(uset.scenario_calls, [])
        self.assertEqual(uset.setup_calls, 2)

    def test_reformulation_count(self):
        uset = CountReformSet()
        self.m.add_constraint(self.u*self.x <= 5, uset)
        self.m.add_constraint(self.u*self.x <= 6, uset)
        result = self.run_orchestrator(report_scenarios=True)
        self.assertEqual(result.status, OPTIMAL)
        self.assertEqual(result.num_reformulated, 2)
        self.assertEqual(result.scenarios, {})
        self.assertTrue(result.scenarios_reported)
        self.assertEqual(uset.cut_calls, 0)
        npt.assert_allclose(result.value, 5, rtol=RTOL, atol=ATOL)

    def test_reformulation_count_zero(self):
        uset = CountReformSet(0)
        self.m.add_constraint(self.u*self.x <= 5, uset)
        result = self.run_orchestrator()
        self.assertEqual(result.num_reformulated, 0)
        self.assertEqual(uset.cut_calls, 1)
        npt.assert_allclose(result.value, 10, rtol=RTOL, atol=ATOL)

    def test_ambiguous_reformulation_count(self):
        uset = CountReformSet(1)
        self.m.add_constraint(self.u*self.x <= 5, uset)
        self.m.add_constraint(self.u*self.x <= 6, uset)
        with self.assertRaisesRegex(ValueError, "CountReformSet"):
            self.run_orchestrator()

    def test_scenarios_only_for_unreformulated(self):
        reform_set = FullReformSet()
        loop_set = RecordingSet()
        self.m.add_constraint(self.u*self.x <= 8, loop_set)
        self.m.add_constraint(self.u*self.x <= 5, reform_set)
        result = self.run_orchestrator(report_scenarios=True)
        self.assertEqual(result.num_reformulated, 1)
        self.assertEqual(result.scenarios, {0: None})
        self.assertEqual(loop_set.scenario_calls, [[0]])
        self.assertEqual(reform_set.scenario_calls, [])
        self.assertEqual(reform_set.cut_calls, 0)

    def test_partial_reformulation(self):
        uset = FirstOnlyReformSet()
        y = self.m.add_variable("y", lb=0, ub=10)
        self.m.maximize(self.x + y)
        self.m.add_constraint(self.u*self.x <= 4, uset)
        self.m.add_constraint(self.u*y <= 3, uset)
        result = self.run_orchestrator(report_scenarios=True)
        self.assertEqual(result.status, OPTIMAL)
        self.assertEqual(result.num_reformulated, 1)
        self.assertEqual(result.iterations, 1)
        self.assertEqual(list(result.scenarios), [1])
        npt.assert_allclose(result.value, 7, rtol=RTOL, atol=ATOL)
        npt.assert_allclose(result.scenarios[1].get(self.u), 1, rtol=RTOL, atol=ATOL)

    def test_sets_visited_in_registration_order(self):
        first, second = RecordingSet(), RecordingSet()
        self.m.add_constraint(self.u*self.x <= 5, second)
        self.m.add_constraint(self.u*self.x <= 6, first)
        self.m.add_constraint(self.u*self.x <= 7, second)
        orchestrator = ResolutionOrchestrator(self.m, ResolutionSettings(solver=SOLVER))
        orchestrator.run()
        self.assertEqual(orchestrator.registry.sets(), [second, first])
        self.assertEqual(second.registered, [0, 2])
        self.assertEqual(first.registered, [1])

    def test_missing_cut_phase(self):
        uset = RecordingSet({Phase.REGISTER, Phase.SETUP})
        self.m.add_constraint(self.u*self.x <= 5, uset)
        with self.assertRaises(ProtocolNotImplementedError) as cm:
            self.run_orchestrator()
        self.assertEqual(cm.exception.phase, "generate_cut")
        self.assertEqual(cm.exception.set_name, "RecordingSet")

    def test_missing_scenario_phase(self):
        uset = RecordingSet({Phase.REGISTER, Phase.SETUP, Phase.CUT})
        self.m.add_constraint(self.u*self.x <= 5, uset)
        self.run_orchestrator()
        with self.assertRaises(ProtocolNotImplementedError):
            self.run_orchestrator(report_scenarios=True)

    def test_missing_register_phase(self):
        uset = RecordingSet({Phase.SETUP, Phase.CUT})
        self.m.add_constraint(self.u*self.x <= 5, uset)
        with self.assertRaises(ProtocolNotImplementedError):
            self.run_orchestrator()
        self.assertEqual(uset.setup_calls, 0)

    def test_unknown_reformulated_index(self):
        self.m.add_constraint(self.u*self.x <= 5, BadReformSet())
        with self.assertRaises(ValueError):
            self.run_orchestrator()

    def test_infeasible_master_stops(self):
        uset = AlwaysCutSet()
        self.m.add_constraint(self.u*self.x <= 5, uset)
        self.m.add_constraint(self.x >= 11)
        result = self.run_orchestrator()
        self.assertEqual(result.status, INFEASIBLE)
        self.assertEqual(result.iterations, 0)
        self.assertEqual(uset.cut_calls, 0)

    def test_no_uncertain_constraints(self):
        result = self.run_orchestrator(report_scenarios=True)
        self.assertEqual(result.status, OPTIMAL)
        self.assertEqual(result.iterations, 0)
        npt.assert_allclose(result.value, 10, rtol=RTOL, atol=ATOL)

    def test_negative_max_iter(self):
        with self.assertRaises(ValueError):
            ResolutionSettings(max_iter=-1)
