from abc import ABC
from enum import Enum

import numpy as np

from robustcp.constraints import UncertainConstraint, UncertainSetConstraint
from robustcp.error import ConstraintTypeError, ProtocolNotImplementedError, VectorizedConstraintError

"""
Phases of the resolution protocol, in the order the orchestrator runs them:
#REGISTER:
    register_constraint, once per uncertain constraint owned by the set
#SETUP:
    setup_set, once per solve after all registrations
#REFORM:
    generate_reform, once before the cutting plane loop
#CUT:
    generate_cut, every iteration of the cutting plane loop
#SCENARIO:
    generate_scenario, once at optimality if scenarios were requested
"""
Phase = Enum("Phase", "REGISTER SETUP REFORM CUT SCENARIO")

ALL_PHASES = frozenset(Phase)


class UncertaintySet(ABC):
    """
    Base class of all uncertainty sets.

    An uncertainty set decides how the uncertain constraints registered to it are
    turned into deterministic constraints, either by a static reformulation or by
    generating cutting planes, and can report worst-case scenarios at optimality.
    Every protocol method receives the models and indices it works on; a set keeps
    only the state it builds across phases of one solve.

    Variants declare the phases they implement with ``phases``; the orchestrator
    checks ``supports`` before invoking a phase. The default implementation of every
    phase raises ProtocolNotImplementedError.

    Parameters
    ----------
    phases : iterable of Phase
        The protocol phases implemented by the variant.
    """

    def __init__(self, phases=ALL_PHASES):
        self._phases = frozenset(phases)

    @property
    def phases(self):
        return self._phases

    def supports(self, phase: Phase) -> bool:
        return phase in self._phases

    def register_constraint(self, model, idx: int, prefs: dict) -> None:
        """
        Called when a RobustModel is being solved. Notifies the set that it is
        responsible for the uncertain constraint of ``model`` with index ``idx``.
        ``prefs`` are the keyword preferences passed to ``RobustModel.solve``.
        """
        raise ProtocolNotImplementedError(self, "register_constraint")

    def setup_set(self, model, scenarios_requested: bool, prefs: dict) -> None:
        """
        Called once, after all constraints have been registered and before any
        reformulation or cut is requested. If ``scenarios_requested`` is True the set
        may prepare its cutting plane machinery even if cuts are not going to be used.
        """
        raise ProtocolNotImplementedError(self, "setup_set")

    def generate_reform(self, det_model, model, idxs: list[int]):
        """
        Called once before the cutting plane loop. May add any constraints and
        variables to ``det_model``, generally deterministic equivalents of uncertain
        constraints in ``idxs``.

        Returns:
            The indices that were fully reformulated.
        """
        raise ProtocolNotImplementedError(self, "generate_reform")

    def generate_cut(self, det_model, model, idxs: list[int]) -> list:
        """
        Called every iteration of the cutting plane loop with the current solution of
        ``det_model``.

        Returns:
            A list of cvxpy constraints cutting off the current solution, empty if no
            constraint in ``idxs`` is violated.
        """
        raise ProtocolNotImplementedError(self, "generate_cut")

    def generate_scenario(self, det_model, model, idxs: list[int]) -> list:
        """
        Called at optimality if scenarios were requested.

        Returns:
            A list aligned with ``idxs`` of Scenario objects (or None if the set cannot
            provide one), giving parameter values that reduce slack in each constraint
            the most.
        """
        raise ProtocolNotImplementedError(self, "generate_scenario")

    def add_set_constraint(self, constraint: UncertainSetConstraint) -> None:
        """Add a constraint on the uncertain parameters to the set."""
        raise ProtocolNotImplementedError(self, "adding constraints on uncertain parameters")

    def add_constraint(self, constraint) -> None:
        """
        Add a constraint on the uncertain parameters. An UncertainConstraint without
        decision variables is re-classified as an UncertainSetConstraint first.

        Raises:
            ConstraintTypeError if the constraint has decision variables.
            VectorizedConstraintError if given a container of constraints.
        """
        if isinstance(constraint, (list, tuple, np.ndarray)):
            raise VectorizedConstraintError()
        if isinstance(constraint, UncertainConstraint):
            if constraint.has_variables():
                raise ConstraintTypeError("Can't add a constraint with decision variables "
                                          f"to {type(self).__name__}: constraint has "
                                          "decision-variable terms.")
            constraint = constraint.to_set_constraint()
        if not isinstance(constraint, UncertainSetConstraint):
            raise TypeError(f"Expected an uncertain set constraint, got "
                            f"{type(constraint).__name__}.")
        self.add_set_constraint(constraint)

    def add_constraints(self, constraints) -> None:
        for constraint in np.ravel(np.asarray(constraints, dtype=object)):
            self.add_constraint(constraint)

    def _check_registrable(self, model, idx: int) -> UncertainConstraint:
        """
        Return the uncertain constraint ``idx`` of ``model``.

        Raises:
            ConstraintTypeError if the constraint has no decision variables, in which
            case it belongs to a set (``add_constraint``) instead.
        """
        constraint = model.uncertain_constraints[idx]
        if not constraint.has_variables():
            raise ConstraintTypeError(f"Uncertain constraint {idx} cannot be registered to "
                                      f"{type(self).__name__}: constraint has no "
                                      "decision-variable terms. Add it to the uncertainty "
                                      "set as a constraint on uncertain parameters instead.")
        return constraint

    def __repr__(self):
        return "%s()" % type(self).__name__
