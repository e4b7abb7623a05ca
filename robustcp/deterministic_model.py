import logging
import warnings

import cvxpy as cp
from cvxpy import error
from cvxpy import settings as s
from cvxpy.constraints.constraint import Constraint
from cvxpy.problems.objective import Maximize, Minimize
from cvxpy.reductions.solution import INF_OR_UNB_MESSAGE

from robustcp.error import VectorizedConstraintError
from robustcp.settings import CONFIRMED_OPTIMUM
from robustcp.solver_stats import SolverStats
from robustcp.variable import DecisionVariable

logger = logging.getLogger(__name__)


class DeterministicModel():
    """
    The deterministic (master) problem solved in every iteration of the resolution
    loop.

    It holds a cvxpy objective and a growing list of cvxpy constraints. Uncertainty
    sets add reformulated constraints to it directly during the reformulation phase;
    cuts are added by the orchestrator. A new ``cvxpy.Problem`` is built from the
    current constraints on every solve.

    Parameters
    ----------
    objective : cvxpy.Minimize | cvxpy.Maximize, optional
        The objective. Defaults to a feasibility problem.
    constraints : list[cvxpy.Constraint], optional
        The initial constraints.
    """

    def __init__(self, objective=None, constraints=None):
        self._objective = objective if objective is not None else Minimize(0)
        self._constraints = [] if constraints is None else list(constraints)
        self._problem = None
        self._status = None
        self._value = None
        self._solver_stats = None

    @property
    def objective(self):
        return self._objective

    @property
    def constraints(self):
        return self._constraints

    @property
    def num_constraints(self):
        return len(self._constraints)

    @property
    def problem(self):
        """The cvxpy problem of the last solve, or None before the first solve."""
        return self._problem

    @property
    def status(self):
        return self._status

    @property
    def value(self):
        return self._value

    @property
    def solver_stats(self):
        return self._solver_stats

    def is_optimal(self) -> bool:
        return self._status in CONFIRMED_OPTIMUM

    def add_constraint(self, constraint: Constraint) -> None:
        if isinstance(constraint, (list, tuple)):
            raise VectorizedConstraintError()
        if not isinstance(constraint, Constraint):
            raise TypeError(f"Expected a cvxpy constraint, got {type(constraint).__name__}.")
        self._constraints.append(constraint)

    def add_constraints(self, constraints) -> None:
        for constraint in constraints:
            self.add_constraint(constraint)

    def get_value(self, var) -> float | None:
        """Value of a DecisionVariable (or a cvxpy expression) at the last solution."""
        if isinstance(var, DecisionVariable):
            return var.value
        return None if var.value is None else float(var.value)

    def solve(self, solver: str = None, verbose: bool = False, **solver_args) -> str:
        """
        Solve the deterministic problem with the current constraints.

        Returns:
            The cvxpy status string.

        Raises:
            cvxpy.error.SolverError if the solver failed.
        """
        self._problem = cp.Problem(self._objective, self._constraints)
        self._problem.solve(solver=solver, verbose=verbose, **solver_args)
        self._status = self._problem.status
        self._value = self._problem.value
        self._solver_stats = SolverStats.from_problem(self._problem, self.num_constraints)

        if self._status in s.INACCURATE:
            warnings.warn(
                "Solution may be inaccurate. Try another solver, "
                "adjusting the solver settings, or solve with "
                "verbose=True for more information."
            )
        if self._status == s.INFEASIBLE_OR_UNBOUNDED:
            warnings.warn(INF_OR_UNB_MESSAGE)
        if self._status in s.ERROR:
            raise error.SolverError(
                    f"Solver {self._solver_stats.solver_name} failed. "
                    "Try another solver, or solve with verbose=True for more "
                    "information.")
        logger.debug("Deterministic solve with %d constraints: status %s, value %s",
                     self.num_constraints, self._status, self._value)
        return self._status

    def __str__(self):
        sense = "maximize" if isinstance(self._objective, Maximize) else "minimize"
        lines = [f"{sense} {self._objective.expr}", "subject to"]
        lines += [f"  {constraint}" for constraint in self._constraints]
        return "\n".join(lines)
