import cvxpy as cp
import numpy as np
from cvxpy.expressions.expression import Expression
from scipy.sparse import csr_matrix

from robustcp.settings import ZERO_TOL


def unique_list(duplicates_list):
    """
    Return unique list preserving the order.
    https://stackoverflow.com/a/480227
    """
    used = set()
    unique = [x for x in duplicates_list if not (x in used or used.add(x))]

    return unique

def format_number(value: float) -> str:
    """
    Print integral floats without a decimal point, and other floats with the shortest
    representation that round-trips.
    """
    value = float(value)
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)

def variable_values(variables) -> np.ndarray:
    """
    Return the current values of the decision variables with a trailing 1, i.e. the
    ``[x, 1]`` vector used with ``MixedExpression.coefficient_matrix``. Variables
    that do not appear in the deterministic model yet have no value and are taken at 0.
    """
    values = np.ones(len(variables) + 1)
    for j, var in enumerate(variables):
        values[j] = 0. if var.value is None else var.value
    return values

def affine_map(mat: np.ndarray, offset: np.ndarray, variables) -> Expression:
    """
    Build the vector expression ``mat @ x + offset``, one column of ``mat`` per decision
    variable. All-zero columns are skipped.
    """
    expr = cp.Constant(np.asarray(offset, dtype=float))
    for j, var in enumerate(variables):
        column = np.asarray(mat[:, j], dtype=float).ravel()
        if np.any(np.abs(column) >= ZERO_TOL):
            expr = expr + cp.multiply(column, var.cvx)
    return expr

def affine_expression(coeffs: np.ndarray, variables) -> Expression:
    """
    Build ``coeffs[:-1] @ x + coeffs[-1]`` as a cvxpy expression, skipping the terms
    whose coefficient is negligible.
    """
    expr = cp.Constant(float(coeffs[-1]))
    for j, var in enumerate(variables):
        if abs(coeffs[j]) >= ZERO_TOL:
            expr = expr + float(coeffs[j])*var.cvx
    return expr

def parameter_sensitivity(q_mat: csr_matrix, sign: float, x_hat: np.ndarray) \
                                                        -> tuple[np.ndarray, float]:
    """
    Split ``sign * [u, 1] @ Q @ [x, 1]`` at a fixed ``x`` into the coefficient vector
    of ``u`` and the certain part.

    Returns:
        g (np.ndarray):
            Coefficients of the uncertain parameters.
        h (float):
            The part of the expression that does not depend on the parameters.
    """
    full = sign*(q_mat @ x_hat)
    return np.asarray(full[:-1]).ravel(), float(full[-1])

def substitute_parameters(q_mat: csr_matrix, sign: float, u: np.ndarray) -> np.ndarray:
    """
    Fix the uncertain parameters of ``sign * [u, 1] @ Q @ [x, 1]`` to ``u``.

    Returns:
        The coefficients of ``[x, 1]``.
    """
    u_hat = np.append(u, 1.)
    return sign*np.asarray(q_mat.T @ u_hat).ravel()
