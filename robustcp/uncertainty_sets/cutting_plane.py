import logging
from abc import abstractmethod

import numpy as np

from robustcp.scenario import Scenario
from robustcp.settings import CUT_TOL, CUT_TOL_DEFAULT, PREFER_CUTS, PREFER_CUTS_DEFAULT
from robustcp.uncertainty_sets.uncertainty_set import ALL_PHASES, UncertaintySet
from robustcp.uncertainty_sets.utils import get_pref, split_side
from robustcp.utils import (
    affine_expression,
    parameter_sensitivity,
    substitute_parameters,
    variable_values,
)

logger = logging.getLogger(__name__)


class CuttingPlaneSet(UncertaintySet):
    r"""
    Base class for uncertainty sets that resolve constraints either by a dual
    reformulation or by cutting planes, selected with the ``prefer_cuts`` preference.

    Every registered constraint is stored as its bilinear form ``Q`` (see
    ``MixedExpression.coefficient_matrix``) and split into ``sign * expr <= rhs``
    sides. Subclasses provide the worst case of a linear function over the set,

    .. math::
        u^\star(g) \in \arg\max_{u \in \mathcal{U}} g^T u,

    and the deterministic constraints equivalent to one side.

    Recognized preferences
    ----------------------
    prefer_cuts : bool
        If True, no reformulation is done and all constraints go to the cutting plane
        loop. Default False.
    cut_tol : float
        A side is cut off only if its worst-case violation is above this value.
        Default 1e-6.
    """

    def __init__(self, phases=ALL_PHASES):
        super(CuttingPlaneSet, self).__init__(phases)
        self._model = None
        self._idxs = []
        self._q_mats = {}
        self._prefer_cuts = PREFER_CUTS_DEFAULT
        self._cut_tol = CUT_TOL_DEFAULT

    @property
    def idxs(self):
        return self._idxs

    @property
    def prefer_cuts(self):
        return self._prefer_cuts

    @property
    def cut_tol(self):
        return self._cut_tol

    def register_constraint(self, model, idx, prefs):
        self._check_registrable(model, idx)
        if model is not self._model:
            self._model = model
            self._idxs = []
        if idx not in self._idxs:
            self._idxs.append(idx)

    def setup_set(self, model, scenarios_requested, prefs):
        self._prefer_cuts = get_pref(prefs, PREFER_CUTS, PREFER_CUTS_DEFAULT)
        self._cut_tol = get_pref(prefs, CUT_TOL, CUT_TOL_DEFAULT)
        n, nv = model.num_uncertain, model.num_variables
        self._q_mats = {idx: model.uncertain_constraints[idx].expr.coefficient_matrix(n, nv)
                        for idx in self._idxs}
        self._setup(model, scenarios_requested, prefs)

    def _setup(self, model, scenarios_requested, prefs):
        """Variant specific preprocessing, called at the end of setup_set."""
        return

    def generate_reform(self, det_model, model, idxs):
        if self._prefer_cuts:
            return []
        n = model.num_uncertain
        for idx in idxs:
            q_dense = self._q_mats[idx].toarray()
            for sign, rhs in model.uncertain_constraints[idx].sides():
                g_mat, g_off, certain = split_side(q_dense, sign, n)
                certain_expr = affine_expression(certain, model.variables)
                det_model.add_constraints(self._reformulate_side(g_mat, g_off, certain_expr,
                                                                 rhs, model.variables))
        logger.debug("%s reformulated %d constraints", type(self).__name__, len(idxs))
        return list(idxs)

    def _side_worst_case(self, q_mat, sign, x_hat):
        """
        Returns:
            u (np.ndarray):
                Worst-case parameter values, ``nan`` for parameters the set leaves free
                and the side does not depend on.
            lhs (float):
                The value of the side at ``u`` and the current solution.
        """
        g, h = parameter_sensitivity(q_mat, sign, x_hat)
        u = self._worst_case(g)
        return u, float(np.nan_to_num(u) @ g) + h

    def generate_cut(self, det_model, model, idxs):
        x_hat = variable_values(model.variables)
        cuts = []
        for idx in idxs:
            q_mat = self._q_mats[idx]
            for sign, rhs in model.uncertain_constraints[idx].sides():
                u, lhs = self._side_worst_case(q_mat, sign, x_hat)
                if lhs - rhs > self._cut_tol:
                    coeffs = substitute_parameters(q_mat, sign, np.nan_to_num(u))
                    cuts.append(affine_expression(coeffs, model.variables) <= rhs)
        logger.debug("%s generated %d cuts", type(self).__name__, len(cuts))
        return cuts

    def generate_scenario(self, det_model, model, idxs):
        x_hat = variable_values(model.variables)
        scenarios = []
        for idx in idxs:
            q_mat = self._q_mats[idx]
            best = None
            for sign, rhs in model.uncertain_constraints[idx].sides():
                u, lhs = self._side_worst_case(q_mat, sign, x_hat)
                slack = rhs - lhs
                if best is None or slack < best[0]:
                    best = (slack, u)
            scenarios.append(Scenario(best[1]))
        return scenarios

    @abstractmethod
    def _worst_case(self, g: np.ndarray) -> np.ndarray:
        """Maximize ``g @ u`` over the set and return the maximizer."""
        return NotImplemented

    @abstractmethod
    def _reformulate_side(self, g_mat, g_off, certain_expr, rhs, variables) -> list:
        """
        Return deterministic constraints equivalent to
        ``max_{u in set} (g_mat @ x + g_off) @ u + certain_expr <= rhs``.
        """
        return NotImplemented
