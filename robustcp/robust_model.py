import cvxpy as cp
import numpy as np
from cvxpy.constraints.constraint import Constraint
from cvxpy.expressions.expression import Expression

import robustcp.settings as settings
from robustcp.constraints import UncertainConstraint, UncertainSetConstraint
from robustcp.deterministic_model import DeterministicModel
from robustcp.display import model_to_str
from robustcp.error import VectorizedConstraintError
from robustcp.expressions import MixedExpression, UncertainExpression
from robustcp.orchestrator import ResolutionOrchestrator, ResolutionSettings
from robustcp.uncertain_parameter import UncertainParameter
from robustcp.uncertainty_sets.basic import BasicUncertaintySet
from robustcp.uncertainty_sets.uncertainty_set import UncertaintySet
from robustcp.utils import unique_list
from robustcp.variable import DecisionVariable


def _certain_to_cvxpy(expr: MixedExpression) -> Expression:
    """Convert a MixedExpression without uncertain parameters to a cvxpy expression."""
    cvx_expr = cp.Constant(float(expr.constant.constant))
    for var, coeff in zip(expr.vars, expr.coeffs):
        cvx_expr = cvx_expr + float(coeff.constant)*var.cvx
    return cvx_expr


class RobustModel():
    """
    A robust optimization model: decision variables, uncertain parameters, ordinary
    constraints, and uncertain constraints that must hold for every realization of
    the parameters in their uncertainty set.

    Constraints are written with the arithmetic and comparison operators of
    DecisionVariable and UncertainParameter, or directly in cvxpy using
    ``DecisionVariable.cvx``.

    Parameters
    ----------
    uncertainty_set : UncertaintySet, optional
        The set used for uncertain constraints added without an explicit set.
        Default a new BasicUncertaintySet.
    """

    def __init__(self, uncertainty_set: UncertaintySet | None = None):
        self._default_set = BasicUncertaintySet() if uncertainty_set is None \
                                                  else uncertainty_set
        self._variables = []
        self._uncertain_parameters = []
        self._certain_constraints = []
        self._uncertain_constraints = []
        self._set_assignment = {}
        self._objective = cp.Minimize(0)
        self._result = None

    @property
    def default_uncertainty_set(self):
        return self._default_set

    @property
    def variables(self):
        return self._variables

    @property
    def num_variables(self):
        return len(self._variables)

    @property
    def uncertain_parameters(self):
        return self._uncertain_parameters

    @property
    def num_uncertain(self):
        return len(self._uncertain_parameters)

    @property
    def uncertain_constraints(self):
        return self._uncertain_constraints

    @property
    def certain_constraints(self):
        return self._certain_constraints

    @property
    def objective(self):
        return self._objective

    @property
    def result(self):
        """The SolveResult of the last solve, or None."""
        return self._result

    @property
    def status(self):
        return None if self._result is None else self._result.status

    def add_variable(self, name=None, lb=None, ub=None, integer=False) -> DecisionVariable:
        index = len(self._variables)
        name = f"x{index}" if name is None else name
        var = DecisionVariable(self, index, name, lb=lb, ub=ub, integer=integer)
        self._variables.append(var)
        return var

    def add_uncertain(self, name=None, lb=None, ub=None) -> UncertainParameter:
        index = len(self._uncertain_parameters)
        name = f"u{index}" if name is None else name
        param = UncertainParameter(self, index, name, lb=lb, ub=ub)
        self._uncertain_parameters.append(param)
        return param

    def set_for(self, idx: int) -> UncertaintySet:
        """The uncertainty set responsible for uncertain constraint ``idx``."""
        return self._set_assignment.get(idx, self._default_set)

    def uncertainty_sets(self) -> list:
        """The default set followed by the explicitly assigned sets, without duplicates."""
        assigned = [self._set_assignment[idx] for idx in sorted(self._set_assignment)]
        return unique_list([self._default_set] + assigned)

    def add_constraint(self, constraint, uncertainty_set: UncertaintySet | None = None):
        """
        Add a constraint to the model.

        * An UncertainConstraint with decision variables and uncertain parameters is
          an uncertain constraint, resolved by ``uncertainty_set`` (or the default
          set). Its index is returned.
        * An UncertainConstraint without uncertain parameters, or a cvxpy constraint,
          is an ordinary constraint of the deterministic model.
        * An UncertainSetConstraint, or an UncertainConstraint without decision
          variables, constrains the uncertain parameters and is added to
          ``uncertainty_set`` (or the default set).

        Raises:
            VectorizedConstraintError if given a container of constraints.
            TypeError if ``constraint`` is not a constraint.
        """
        if isinstance(constraint, (list, tuple, np.ndarray)):
            raise VectorizedConstraintError()
        target = self._default_set if uncertainty_set is None else uncertainty_set

        if isinstance(constraint, Constraint):
            self._certain_constraints.append(constraint)
            return None
        if isinstance(constraint, UncertainSetConstraint):
            target.add_constraint(constraint)
            return None
        if not isinstance(constraint, UncertainConstraint):
            raise TypeError(f"Expected a constraint, got {type(constraint).__name__}.")

        if not constraint.has_variables():
            target.add_constraint(constraint)
            return None
        if constraint.is_certain():
            self._certain_constraints += self._certain_constraints_of(constraint)
            return None

        idx = len(self._uncertain_constraints)
        self._uncertain_constraints.append(constraint)
        if uncertainty_set is not None:
            self._set_assignment[idx] = uncertainty_set
        return idx

    def add_constraints(self, constraints, uncertainty_set: UncertaintySet | None = None):
        """Add every constraint of a (possibly nested) container."""
        return [self.add_constraint(constraint, uncertainty_set)
                for constraint in np.ravel(np.asarray(constraints, dtype=object))]

    @staticmethod
    def _certain_constraints_of(constraint: UncertainConstraint) -> list:
        cvx_expr = _certain_to_cvxpy(constraint.expr)
        if constraint.is_equality():
            return [cvx_expr == constraint.ub]
        constraints = []
        if np.isfinite(constraint.lb):
            constraints += [cvx_expr >= constraint.lb]
        if np.isfinite(constraint.ub):
            constraints += [cvx_expr <= constraint.ub]
        return constraints

    def set_objective(self, expr, sense: str = "min") -> None:
        """
        Set the objective to minimize (``sense="min"``) or maximize (``sense="max"``)
        ``expr``, a certain expression of the decision variables or a cvxpy expression.

        Raises:
            ValueError if ``expr`` depends on uncertain parameters. Use an epigraph
            variable and an uncertain constraint instead.
        """
        if sense not in ("min", "max"):
            raise ValueError(f"Unknown objective sense {sense}, expected 'min' or 'max'.")
        if isinstance(expr, (UncertainParameter, UncertainExpression)):
            expr = MixedExpression.cast(expr)
        if isinstance(expr, (DecisionVariable, MixedExpression)):
            expr = MixedExpression.cast(expr)
            if not expr.is_certain():
                raise ValueError("The objective depends on uncertain parameters. Minimize "
                                 "an auxiliary variable t and add the uncertain constraint "
                                 "objective <= t instead.")
            expr = _certain_to_cvxpy(expr)
        self._objective = cp.Minimize(expr) if sense == "min" else cp.Maximize(expr)

    def minimize(self, expr) -> None:
        self.set_objective(expr, "min")

    def maximize(self, expr) -> None:
        self.set_objective(expr, "max")

    def deterministic_model(self) -> DeterministicModel:
        """
        A new deterministic model with the objective, the ordinary constraints and the
        variable bounds, to which the uncertainty sets add their reformulations and
        cuts.
        """
        constraints = list(self._certain_constraints)
        for var in self._variables:
            constraints += var.bound_constraints()
        return DeterministicModel(self._objective, constraints)

    def solve(self,
              solver: str = settings.SOLVER_DEFAULT,
              max_iter: int = settings.MAX_ITER_DEFAULT,
              report_scenarios: bool = settings.REPORT_SCENARIOS_DEFAULT,
              verbose: bool = settings.VERBOSE_DEFAULT,
              solver_args: dict | None = settings.SOLVER_ARGS_DEFAULT,
              **prefs):
        """
        Solve the robust model.

        Args:
            solver: The cvxpy solver for the deterministic model.
            max_iter: The maximal number of rounds of cuts.
            report_scenarios: Whether or not to collect worst-case scenarios, available
                with ``get_scenario`` afterwards.
            verbose: Whether or not to log a summary of the solve at INFO level.
            solver_args: Extra keyword arguments of the solver.
            prefs: Preferences passed to the uncertainty sets, e.g. ``prefer_cuts``.

        Returns:
            The objective value of the last deterministic solve.
        """
        resolution_settings = ResolutionSettings(solver=solver, solver_args=solver_args,
                                                 max_iter=max_iter,
                                                 report_scenarios=report_scenarios,
                                                 verbose=verbose)
        self._result = ResolutionOrchestrator(self, resolution_settings, prefs).run()
        return self._result.value

    def get_value(self, var) -> float | None:
        """Value of a decision variable (or cvxpy expression) at the last solution."""
        if isinstance(var, DecisionVariable):
            return var.value
        if isinstance(var, Expression):
            return None if var.value is None else float(var.value)
        raise TypeError(f"Cannot get the value of {type(var).__name__}.")

    def get_scenario(self, constraint):
        """
        Worst-case scenario of an uncertain constraint, given by index or by the
        UncertainConstraint itself.

        Raises:
            ValueError if the last solve did not report scenarios.
        """
        if self._result is None or not self._result.scenarios_reported:
            raise ValueError("No scenarios available. Solve with report_scenarios=True.")
        if isinstance(constraint, UncertainConstraint):
            idx = next((i for i, c in enumerate(self._uncertain_constraints)
                        if c is constraint), None)
            if idx is None:
                raise ValueError("The constraint is not an uncertain constraint of this "
                                 "model.")
            constraint = idx
        if constraint not in self._result.scenarios:
            raise ValueError(f"No scenario for uncertain constraint {constraint}: it was "
                             "resolved by reformulation.")
        return self._result.scenarios[constraint]

    def __str__(self):
        return model_to_str(self)
