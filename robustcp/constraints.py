import numpy as np

from robustcp.expressions import MixedExpression, UncertainExpression


class _BoundedConstraint():
    """Common bound handling for ``lb <= expr <= ub`` constraints."""

    def __init__(self, expr, lb=None, ub=None):
        lb = -np.inf if lb is None else float(lb)
        ub = np.inf if ub is None else float(ub)
        if lb > ub:
            raise ValueError(f"Constraint lower bound {lb} is greater than its upper bound {ub}.")
        if not (np.isfinite(lb) or np.isfinite(ub)):
            raise ValueError("A constraint needs at least one finite bound.")
        self.expr = expr
        self.lb = lb
        self.ub = ub

    def is_equality(self) -> bool:
        return self.lb == self.ub

    def sides(self) -> list[tuple[float, float]]:
        """
        Normalize the constraint to ``sign * expr <= rhs`` rows.

        Returns:
            A list of (sign, rhs) pairs, one for each finite bound. The upper bound
            comes first.
        """
        sides = []
        if np.isfinite(self.ub):
            sides.append((1., self.ub))
        if np.isfinite(self.lb):
            sides.append((-1., -self.lb))
        return sides

    def __str__(self):
        from robustcp.display import constraint_to_str
        return constraint_to_str(self)


class UncertainSetConstraint(_BoundedConstraint):
    """
    A constraint ``lb <= expr <= ub`` on uncertain parameters only. It describes the
    geometry of an uncertainty set rather than a requirement on the decisions.
    """

    def __init__(self, expr, lb=None, ub=None):
        super(UncertainSetConstraint, self).__init__(UncertainExpression.cast(expr), lb, ub)

    def __repr__(self):
        return "UncertainSetConstraint(%s)" % str(self)


class UncertainConstraint(_BoundedConstraint):
    """
    A constraint ``lb <= expr <= ub`` where ``expr`` is a MixedExpression. It must hold
    for every realization of the uncertain parameters in the owning uncertainty set.
    """

    def __init__(self, expr, lb=None, ub=None):
        super(UncertainConstraint, self).__init__(MixedExpression.cast(expr), lb, ub)

    def has_variables(self) -> bool:
        return self.expr.has_variables()

    def is_certain(self) -> bool:
        return self.expr.is_certain()

    def to_set_constraint(self) -> UncertainSetConstraint:
        """Re-classify a constraint without decision variables as a set constraint."""
        return UncertainSetConstraint(self.expr.constant, self.lb, self.ub)

    def __repr__(self):
        return "UncertainConstraint(%s)" % str(self)


def make_constraint(diff, sense: str):
    """
    Build the constraint ``diff <sense> 0``, moving the numeric constant of ``diff`` into
    the bounds.
    """
    if isinstance(diff, MixedExpression):
        rhs = -diff.constant.constant
        expr = MixedExpression(diff.vars, diff.coeffs,
                               UncertainExpression(diff.constant.params, diff.constant.coeffs))
        constraint_type = UncertainConstraint
    elif isinstance(diff, UncertainExpression):
        rhs = -diff.constant
        expr = UncertainExpression(diff.params, diff.coeffs)
        constraint_type = UncertainSetConstraint
    else:
        raise TypeError(f"Cannot build a constraint from {type(diff).__name__}.")

    if sense == "<=":
        return constraint_type(expr, ub=rhs)
    elif sense == ">=":
        return constraint_type(expr, lb=rhs)
    elif sense == "==":
        return constraint_type(expr, lb=rhs, ub=rhs)
    raise ValueError(f"Unknown constraint sense {sense}.")
