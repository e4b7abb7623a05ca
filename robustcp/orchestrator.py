import logging
import warnings

import numpy as np

import robustcp.settings as settings
from robustcp.error import ProtocolNotImplementedError
from robustcp.registry import ConstraintRegistry
from robustcp.uncertainty_sets.uncertainty_set import Phase

logger = logging.getLogger(__name__)


class ResolutionSettings():
    """
    A resolution settings class.
    Contains default settings unless changed.
    Args:
    -------------
        solver : str, optional
            The cvxpy solver used for the deterministic model. Default chosen by cvxpy.
        solver_args : dict, optional
            The optional arguments passed to the solver. Default None.
        max_iter : int, optional
            The maximal number of rounds of cuts added to the deterministic model.
            Default 100.
        report_scenarios : bool, optional
            Whether or not to collect worst-case scenarios at the optimum. Default False.
        verbose : bool, optional
            Whether or not to log a summary of the solve at INFO level. Default False.
    """
    def __init__(self, solver=settings.SOLVER_DEFAULT,
                 solver_args=settings.SOLVER_ARGS_DEFAULT,
                 max_iter=settings.MAX_ITER_DEFAULT,
                 report_scenarios=settings.REPORT_SCENARIOS_DEFAULT,
                 verbose=settings.VERBOSE_DEFAULT):
        if max_iter < 0:
            raise ValueError("max_iter must be nonnegative.")
        self.solver = solver
        self.solver_args = {} if solver_args is None else dict(solver_args)
        self.max_iter = max_iter
        self.report_scenarios = report_scenarios
        self.verbose = verbose


class SolveResult:
    """
    Results of the resolution of a robust model.

    Attributes
    ----------
    status : str
        The cvxpy status of the last deterministic solve, or ``ITERATION_LIMIT`` if
        cuts were still being generated after ``max_iter`` rounds.
    value : float
        Objective value of the last deterministic solve.
    iterations : int
        Number of rounds of cuts added to the deterministic model.
    num_cuts : int
        Total number of cuts added.
    num_reformulated : int
        Number of uncertain constraints resolved by reformulation.
    scenarios : dict
        Scenario (or None) by uncertain constraint index, if scenarios were requested
        and the model was solved to optimality.
    scenarios_reported : bool
        Whether or not the scenario pass ran. If it did, constraints missing from
        ``scenarios`` were resolved by reformulation.
    solver_stats : SolverStats
        Solver information of the last deterministic solve.
    """

    def __init__(self, status, value, iterations, num_cuts, num_reformulated,
                 scenarios, solver_stats, scenarios_reported=False):
        self.status = status
        self.value = value
        self.iterations = iterations
        self.num_cuts = num_cuts
        self.num_reformulated = num_reformulated
        self.scenarios = scenarios
        self.solver_stats = solver_stats
        self.scenarios_reported = scenarios_reported

    def __repr__(self):
        return (f"SolveResult(status={self.status!r}, value={self.value}, "
                f"iterations={self.iterations}, num_cuts={self.num_cuts}, "
                f"num_reformulated={self.num_reformulated})")


def _require(uncertainty_set, phase: Phase, method: str) -> None:
    if not uncertainty_set.supports(phase):
        raise ProtocolNotImplementedError(uncertainty_set, method)


def _reformulated_indices(uncertainty_set, reformulated, idxs) -> set:
    """
    The indices reported by ``generate_reform``, given as a collection of indices or
    as a count. A count of 0 means none and ``len(idxs)`` means all of them.
    """
    if reformulated is None:
        return set()
    if isinstance(reformulated, (int, np.integer)) and not isinstance(reformulated, bool):
        if reformulated == 0:
            return set()
        if reformulated == len(idxs):
            return set(idxs)
        raise ValueError(f"{type(uncertainty_set).__name__} reported reformulating "
                         f"{reformulated} of {len(idxs)} constraints. Return the "
                         "reformulated indices instead of a count.")
    return set(reformulated)


class ResolutionOrchestrator():
    """
    Drives the resolution protocol of a robust model for one solve.

    The uncertain constraints are registered to their uncertainty sets, every set is
    set up once, the sets reformulate what they can and the remaining constraints
    are enforced by a cutting plane loop around the deterministic model. Sets are
    always visited in the order they first received a constraint.

    Parameters
    ----------
    model : RobustModel
        The model to solve.
    resolution_settings : ResolutionSettings, optional
        Loop settings. Defaults to ResolutionSettings().
    prefs : dict, optional
        Keyword preferences passed unchanged to every protocol phase.
    """

    def __init__(self, model, resolution_settings=None, prefs=None):
        self._model = model
        self._settings = ResolutionSettings() if resolution_settings is None \
                                             else resolution_settings
        self._prefs = {} if prefs is None else dict(prefs)
        self._registry = None
        self._det_model = None

    @property
    def registry(self):
        return self._registry

    @property
    def deterministic_model(self):
        return self._det_model

    def run(self) -> SolveResult:
        model = self._model
        self._registry = self._register()
        self._setup()

        self._det_model = model.deterministic_model()
        remaining, num_reformulated = self._reformulate()

        status, iterations, num_cuts = self._cutting_plane_loop(remaining)

        scenarios = {}
        scenarios_reported = self._settings.report_scenarios and \
            status in settings.CONFIRMED_OPTIMUM
        if scenarios_reported:
            scenarios = self._collect_scenarios(remaining)

        result = SolveResult(status, self._det_model.value, iterations, num_cuts,
                             num_reformulated, scenarios, self._det_model.solver_stats,
                             scenarios_reported)
        log = logger.info if self._settings.verbose else logger.debug
        log("Robust solve finished with status %s, objective %s: %d reformulated, "
            "%d cuts in %d iterations", status, result.value, num_reformulated,
            num_cuts, iterations)
        return result

    def _register(self) -> ConstraintRegistry:
        model = self._model
        registry = ConstraintRegistry()
        for idx in range(len(model.uncertain_constraints)):
            uncertainty_set = model.set_for(idx)
            _require(uncertainty_set, Phase.REGISTER, "register_constraint")
            uncertainty_set.register_constraint(model, idx, self._prefs)
            registry.register(idx, uncertainty_set)
        registry.check_complete(len(model.uncertain_constraints))
        return registry

    def _setup(self) -> None:
        for uncertainty_set in self._registry.sets():
            _require(uncertainty_set, Phase.SETUP, "setup_set")
            uncertainty_set.setup_set(self._model, self._settings.report_scenarios,
                                      self._prefs)

    def _reformulate(self):
        """
        Returns:
            remaining (dict):
                The indices left to the cutting plane loop, by set.
            num_reformulated (int):
                The number of reformulated constraints.
        """
        remaining = {}
        num_reformulated = 0
        for uncertainty_set in self._registry.sets():
            idxs = self._registry.indices(uncertainty_set)
            if uncertainty_set.supports(Phase.REFORM):
                done = _reformulated_indices(
                    uncertainty_set,
                    uncertainty_set.generate_reform(self._det_model, self._model,
                                                    list(idxs)),
                    idxs)
                unknown = done.difference(idxs)
                if unknown:
                    raise ValueError(f"{type(uncertainty_set).__name__} reported "
                                     f"reformulating constraints {sorted(unknown)} it "
                                     "does not own.")
                num_reformulated += len(done)
                idxs = [idx for idx in idxs if idx not in done]
            remaining[uncertainty_set] = idxs
        return remaining, num_reformulated

    def _cutting_plane_loop(self, remaining):
        """
        Returns:
            status (str):
                Final status.
            iterations (int):
                Number of rounds of cuts added.
            num_cuts (int):
                Total number of cuts added.
        """
        det_model = self._det_model
        iterations = 0
        num_cuts = 0
        while True:
            logger.debug("Resolution iteration %d", iterations)
            status = det_model.solve(self._settings.solver, **self._settings.solver_args)
            if status not in settings.CONFIRMED_OPTIMUM:
                logger.debug("Deterministic model is %s, stopping", status)
                return status, iterations, num_cuts

            cuts = []
            for uncertainty_set, idxs in remaining.items():
                if not idxs:
                    continue
                _require(uncertainty_set, Phase.CUT, "generate_cut")
                cuts += uncertainty_set.generate_cut(det_model, self._model, list(idxs))
            if not cuts:
                return status, iterations, num_cuts

            if iterations >= self._settings.max_iter:
                warnings.warn(f"Cuts were still being generated after {iterations} "
                              "iterations. The solution may not be robust feasible. "
                              "Increase max_iter to keep iterating.")
                return settings.ITERATION_LIMIT, iterations, num_cuts

            det_model.add_constraints(cuts)
            iterations += 1
            num_cuts += len(cuts)
            logger.debug("Added %d cuts, objective %s", len(cuts), det_model.value)

    def _collect_scenarios(self, remaining) -> dict:
        scenarios = {}
        for uncertainty_set, idxs in remaining.items():
            if not idxs:
                continue
            _require(uncertainty_set, Phase.SCENARIO, "generate_scenario")
            found = uncertainty_set.generate_scenario(self._det_model, self._model,
                                                      list(idxs))
            if len(found) != len(idxs):
                raise ValueError(f"{type(uncertainty_set).__name__} returned "
                                 f"{len(found)} scenarios for {len(idxs)} constraints.")
            scenarios.update(zip(idxs, found))
        return scenarios
