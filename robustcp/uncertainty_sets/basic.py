import cvxpy as cp
import numpy as np
from cvxpy import error
from cvxpy import settings as s

from robustcp.settings import ADVERSARY_SOLVER, ADVERSARY_SOLVER_DEFAULT, CONFIRMED_OPTIMUM
from robustcp.sparse import SparseAccumulator
from robustcp.uncertainty_sets.cutting_plane import CuttingPlaneSet
from robustcp.uncertainty_sets.uncertainty_set import ALL_PHASES
from robustcp.uncertainty_sets.utils import get_pref, parameter_bounds
from robustcp.utils import affine_map


class BasicUncertaintySet(CuttingPlaneSet):
    r"""
    Polyhedral uncertainty set given explicitly by linear constraints,

    .. math::
        \mathcal{U}_{\text{basic}} = \{u \ | \ l \le u \le h, \ Au \le b, \ Eu = f\},

    where :math:`l, h` are the bounds of the uncertain parameters of the model and the
    rows of :math:`A, E` are the constraints added with ``add_constraint``. This is
    the default uncertainty set of a RobustModel.

    By default every constraint is replaced by its LP dual,

    .. math::
        b^T\lambda + f^T\mu + c(x) \le r, \quad A^T\lambda + E^T\mu = g(x),
        \quad \lambda \ge 0.

    With ``prefer_cuts`` the constraints are instead enforced by cutting planes, the
    worst case being computed by an adversarial LP built once per solve (or read off
    the box directly if the set has no constraints besides the bounds).

    Recognized preferences
    ----------------------
    prefer_cuts, cut_tol :
        See CuttingPlaneSet.
    adversary_solver : str
        cvxpy solver for the adversarial LP. Default chosen by cvxpy.
    """

    def __init__(self):
        super(BasicUncertaintySet, self).__init__(ALL_PHASES)
        self._set_constraints = []
        self._lb = None
        self._ub = None
        self._a = None
        self._b = None
        self._e = None
        self._f = None
        self._adversary = None
        self._adversary_solver = ADVERSARY_SOLVER_DEFAULT

    @property
    def set_constraints(self):
        return self._set_constraints

    @property
    def box_only(self):
        return not self._set_constraints

    def add_set_constraint(self, constraint):
        self._set_constraints.append(constraint)

    def _setup(self, model, scenarios_requested, prefs):
        self._adversary_solver = get_pref(prefs, ADVERSARY_SOLVER, ADVERSARY_SOLVER_DEFAULT)
        self._lb, self._ub = parameter_bounds(model)
        self._a, self._b, self._e, self._f = self._polyhedron(model.num_uncertain)
        self._adversary = None
        if self._prefer_cuts and not self.box_only:
            self._adversary = self._build_adversary(model.num_uncertain)

    def _polyhedron(self, n):
        """
        Collect the bounds and set constraints into ``A u <= b`` and ``E u == f``.
        """
        a_rows, b, e_rows, f = [], [], [], []
        for i in range(n):
            unit = np.eye(1, n, i).ravel()
            if self._lb[i] == self._ub[i]:
                e_rows.append(unit)
                f.append(self._ub[i])
                continue
            if np.isfinite(self._ub[i]):
                a_rows.append(unit)
                b.append(self._ub[i])
            if np.isfinite(self._lb[i]):
                a_rows.append(-unit)
                b.append(-self._lb[i])

        accumulator = SparseAccumulator(n)
        for constraint in self._set_constraints:
            row = np.zeros(n)
            for index, coeff in constraint.expr.collect(accumulator):
                row[index] = coeff
            if constraint.is_equality():
                e_rows.append(row)
                f.append(constraint.ub)
                continue
            for sign, rhs in constraint.sides():
                a_rows.append(sign*row)
                b.append(rhs)

        def _stack(rows):
            return np.vstack(rows) if rows else np.zeros((0, n))
        return _stack(a_rows), np.array(b, dtype=float), _stack(e_rows), np.array(f, dtype=float)

    def _build_adversary(self, n):
        """The adversarial LP ``max c @ u`` over the set, with ``c`` a parameter."""
        u = cp.Variable(n)
        c = cp.Parameter(n)
        constraints = []
        if self._b.size:
            constraints += [self._a @ u <= self._b]
        if self._f.size:
            constraints += [self._e @ u == self._f]
        return cp.Problem(cp.Maximize(c @ u), constraints), u, c

    def _free_value(self, i):
        """Value of a parameter the worst case does not depend on."""
        lb, ub = self._lb[i], self._ub[i]
        if np.isfinite(lb) and np.isfinite(ub):
            return (lb + ub)/2
        if np.isfinite(lb):
            return lb
        if np.isfinite(ub):
            return ub
        return np.nan

    def _box_vertex(self, g):
        u = np.empty(g.shape[0])
        for i, g_i in enumerate(g):
            if g_i == 0:
                u[i] = self._free_value(i)
                continue
            u[i] = self._ub[i] if g_i > 0 else self._lb[i]
            if not np.isfinite(u[i]):
                raise ValueError(f"The worst case is unbounded: uncertain parameter {i} has "
                                 "no bound in the direction of the constraint. Add bounds "
                                 "or constraints to the uncertainty set.")
        return u

    def _worst_case(self, g):
        if self.box_only:
            return self._box_vertex(g)
        if self._adversary is None:
            self._adversary = self._build_adversary(g.shape[0])
        problem, u, c = self._adversary
        c.value = g
        problem.solve(solver=self._adversary_solver)
        if problem.status in s.INF_OR_UNB:
            raise ValueError(f"The adversarial problem is {problem.status}: the uncertainty "
                             "set is empty or unbounded in the direction of a constraint.")
        if problem.status not in CONFIRMED_OPTIMUM:
            raise error.SolverError(f"The adversarial problem could not be solved "
                                    f"(status {problem.status}).")
        return np.asarray(u.value, dtype=float).ravel()

    def _reformulate_side(self, g_mat, g_off, certain_expr, rhs, variables):
        g_expr = affine_map(g_mat, g_off, variables)
        dual_lhs = 0
        dual_obj = 0
        if self._b.size:
            lmbda = cp.Variable(self._b.size, nonneg=True)
            dual_lhs = dual_lhs + self._a.T @ lmbda
            dual_obj = dual_obj + self._b @ lmbda
        if self._f.size:
            mu = cp.Variable(self._f.size)
            dual_lhs = dual_lhs + self._e.T @ mu
            dual_obj = dual_obj + self._f @ mu
        return [g_expr == dual_lhs, certain_expr + dual_obj <= rhs]
