"""
Text rendering of uncertain expressions, constraints and robust models.
"""
import numpy as np

from robustcp.expressions import MixedExpression, UncertainExpression
from robustcp.settings import DISPLAY_CONSTANT_TOL, ZERO_TOL
from robustcp.utils import format_number


def _join_signed(pieces: list[tuple[float, str]]) -> str:
    """Join (sign, text) pairs with " + " / " - ", the first one carrying a bare "-"."""
    res = ""
    for i, (sign, text) in enumerate(pieces):
        if i == 0:
            res += ("-" if sign < 0 else "") + text
        else:
            res += (" - " if sign < 0 else " + ") + text
    return res

def _append_constant(res: str, constant_str: str) -> str:
    if constant_str.startswith("-"):
        return f"{res} - {constant_str[1:]}"
    return f"{res} + {constant_str}"

def uncertain_to_str(expr: UncertainExpression, show_constant: bool = True) -> str:
    """
    Render an UncertainExpression, e.g. ``"x - y + 2.5 z"``.

    Like terms are collected, terms are ordered by parameter index and coefficients of
    +1/-1 are not printed. The constant is appended if ``show_constant`` is True and
    its magnitude is at least 1e-6.
    """
    if not expr.params:
        return format_number(expr.constant) if show_constant else "0"

    names = {param.index: param.name for param in expr.params}
    pieces = []
    for index, coeff in sorted(expr.collect()):
        if abs(abs(coeff) - 1) <= ZERO_TOL:
            pieces.append((coeff, names[index]))
        else:
            pieces.append((coeff, f"{format_number(abs(coeff))} {names[index]}"))
    res = _join_signed(pieces) if pieces else "0"

    if show_constant and abs(expr.constant) >= DISPLAY_CONSTANT_TOL:
        res = _append_constant(res, format_number(expr.constant))
    return res

def mixed_to_str(expr: MixedExpression, show_constant: bool = True) -> str:
    """
    Render a MixedExpression, e.g. ``"(2 u + 1) x + y - 3"``.

    Like terms are not collected. A coefficient that is a plain number is printed as
    in ``uncertain_to_str``; a single uncertain parameter with unit coefficient is
    printed bare and anything else is parenthesized.
    """
    if not expr.vars:
        return uncertain_to_str(expr.constant) if show_constant else "0"

    pieces = []
    for var, uexpr in zip(expr.vars, expr.coeffs):
        if uexpr.is_constant():
            coeff = uexpr.constant
            if abs(coeff) <= ZERO_TOL:
                continue
            if abs(abs(coeff) - 1) <= ZERO_TOL:
                pieces.append((coeff, var.name))
            else:
                pieces.append((coeff, f"{format_number(abs(coeff))} {var.name}"))
        elif len(uexpr.params) == 1 and abs(uexpr.constant) <= ZERO_TOL \
                and abs(abs(uexpr.coeffs[0]) - 1) <= ZERO_TOL:
            pieces.append((uexpr.coeffs[0], f"{uexpr.params[0].name} {var.name}"))
        else:
            pieces.append((1., f"({uncertain_to_str(uexpr)}) {var.name}"))
    res = _join_signed(pieces) if pieces else "0"

    if show_constant:
        constant_str = uncertain_to_str(expr.constant)
        if constant_str not in ("", "0"):
            res = _append_constant(res, constant_str)
    return res

def constraint_to_str(constraint) -> str:
    """Render an UncertainConstraint or UncertainSetConstraint."""
    if isinstance(constraint.expr, MixedExpression):
        expr_str = mixed_to_str(constraint.expr)
    else:
        expr_str = uncertain_to_str(constraint.expr)
    lb, ub = constraint.lb, constraint.ub
    if lb == ub:
        return f"{expr_str} == {format_number(ub)}"
    if np.isfinite(lb) and np.isfinite(ub):
        return f"{format_number(lb)} <= {expr_str} <= {format_number(ub)}"
    if np.isfinite(ub):
        return f"{expr_str} <= {format_number(ub)}"
    return f"{expr_str} >= {format_number(lb)}"

def model_to_str(model) -> str:
    """
    Render a RobustModel: the deterministic part, the uncertain constraints, the set
    constraints of every uncertainty set in use and the parameter bounds.
    """
    lines = [str(model.deterministic_model())]
    lines.append("Uncertain constraints:")
    for constraint in model.uncertain_constraints:
        lines.append(constraint_to_str(constraint))
    lines.append("Uncertainty set:")
    for uncertainty_set in model.uncertainty_sets():
        for constraint in getattr(uncertainty_set, "set_constraints", []):
            lines.append(constraint_to_str(constraint))
    for param in model.uncertain_parameters:
        lines.append(f"{format_number(param.lb)} <= {param.name} <= {format_number(param.ub)}")
    return "\n".join(lines)
