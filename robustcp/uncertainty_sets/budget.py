import cvxpy as cp
import numpy as np

from robustcp.uncertainty_sets.cutting_plane import CuttingPlaneSet
from robustcp.uncertainty_sets.uncertainty_set import ALL_PHASES
from robustcp.uncertainty_sets.utils import parameter_bounds, used_parameters
from robustcp.utils import affine_map


class BudgetUncertaintySet(CuttingPlaneSet):
    r"""
    Budget uncertainty set from "The Price of Robustness" (Bertsimas and Sim),

    .. math::
        \mathcal{U}_{\text{budget}} = \{\bar{u} + \operatorname{diag}(\hat{u}) z \ | \
        \|z\|_\infty \le 1, \ \|z\|_1 \le \Gamma\},

    i.e. every parameter stays within its deviation of its nominal value and at most
    :math:`\Gamma` of them (fractionally) reach their extreme values.

    The set does not accept constraints on the uncertain parameters.

    Parameters
    ----------
    gamma : float
        The budget :math:`\Gamma`. Must be nonnegative.
    nominal : np.array, optional
        Nominal values :math:`\bar{u}`, indexed by parameter index. By default the
        midpoints of the parameter bounds.
    deviation : np.array, optional
        Maximal deviations :math:`\hat{u}`, indexed by parameter index. By default the
        half-widths of the parameter bounds.

    Recognized preferences
    ----------------------
    prefer_cuts, cut_tol :
        See CuttingPlaneSet.

    Returns
    -------
    BudgetUncertaintySet
        Budget uncertainty set.
    """

    def __init__(self, gamma, nominal=None, deviation=None):
        if gamma < 0:
            raise ValueError("Gamma must be nonnegative.")
        if deviation is not None and np.any(np.asarray(deviation) < 0):
            raise ValueError("Deviations must be nonnegative.")
        super(BudgetUncertaintySet, self).__init__(ALL_PHASES)
        self._gamma = float(gamma)
        self._nominal_init = None if nominal is None else np.asarray(nominal, dtype=float)
        self._deviation_init = None if deviation is None else np.asarray(deviation, dtype=float)
        self._nominal = None
        self._deviation = None

    @property
    def gamma(self):
        return self._gamma

    @property
    def nominal(self):
        return self._nominal

    @property
    def deviation(self):
        return self._deviation

    def _setup(self, model, scenarios_requested, prefs):
        n = model.num_uncertain
        lb, ub = parameter_bounds(model)
        with np.errstate(invalid="ignore"):
            nominal = (lb + ub)/2 if self._nominal_init is None else self._nominal_init
            deviation = (ub - lb)/2 if self._deviation_init is None else self._deviation_init
        for name, vec in (("nominal", nominal), ("deviation", deviation)):
            if vec.shape != (n,):
                raise ValueError(f"Mismatching dimension for {name}: expected {n} values, "
                                 f"got {vec.shape}.")

        for i in used_parameters(self._q_mats.values()):
            if not (np.isfinite(nominal[i]) and np.isfinite(deviation[i])):
                raise ValueError(f"{type(self).__name__} needs a finite nominal value and "
                                 f"deviation for {model.uncertain_parameters[i].name}. "
                                 "Give it finite bounds or pass nominal and deviation.")
        self._nominal = nominal
        self._deviation = deviation

    def _worst_case(self, g):
        z = np.zeros(g.shape[0])
        contrib = np.zeros(g.shape[0])
        nonzero = g != 0
        contrib[nonzero] = self._deviation[nonzero]*np.abs(g[nonzero])
        budget = self._gamma
        for i in np.argsort(-contrib, kind="stable"):
            if budget <= 0 or contrib[i] <= 0:
                break
            step = min(1., budget)
            z[i] = step*np.sign(g[i])
            budget -= step
        with np.errstate(invalid="ignore"):
            shift = np.where(nonzero, self._deviation*z, 0.)
        return self._nominal + shift

    def _reformulate_side(self, g_mat, g_off, certain_expr, rhs, variables):
        active = [i for i in range(g_mat.shape[0])
                  if g_off[i] != 0 or np.any(g_mat[i] != 0)]
        if not active:
            return [certain_expr <= rhs]
        g_expr = affine_map(g_mat[active], g_off[active], variables)
        nominal_expr = certain_expr + g_expr @ self._nominal[active]
        deviation = self._deviation[active]
        if self._gamma == 0 or not np.any(deviation > 0):
            return [nominal_expr <= rhs]

        k = len(active)
        t = cp.Variable(k)
        p = cp.Variable(k, nonneg=True)
        pi = cp.Variable(nonneg=True)
        dev_g = cp.multiply(deviation, g_expr)
        return [t >= dev_g, t >= -dev_g, pi + p >= t,
                nominal_expr + self._gamma*pi + cp.sum(p) <= rhs]
