import numpy as np


def get_pref(prefs: dict | None, key: str, default):
    """Look up a keyword preference passed to ``RobustModel.solve``."""
    if not prefs:
        return default
    return prefs.get(key, default)

def parameter_bounds(model) -> tuple[np.ndarray, np.ndarray]:
    """Return the lower and upper bounds of all uncertain parameters of ``model``."""
    lb = np.array([param.lb for param in model.uncertain_parameters], dtype=float)
    ub = np.array([param.ub for param in model.uncertain_parameters], dtype=float)
    return lb, ub

def split_side(q_dense: np.ndarray, sign: float, num_params: int) \
                        -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Split the dense bilinear form of one constraint side, ``sign * [u, 1] @ Q @ [x, 1]``,
    into the parts needed by a reformulation.

    Returns:
        g_mat (np.ndarray):
            ``(num_params, num_vars)`` matrix, the coefficient of ``u_i`` is
            ``g_mat[i] @ x + g_off[i]``.
        g_off (np.ndarray):
            ``(num_params,)`` vector.
        certain (np.ndarray):
            ``(num_vars + 1,)`` coefficients of ``[x, 1]`` that do not multiply any
            uncertain parameter.
    """
    q_side = sign*q_dense
    return q_side[:num_params, :-1], q_side[:num_params, -1], q_side[num_params, :]

def used_parameters(q_mats) -> np.ndarray:
    """Indices of the uncertain parameters appearing in any of the bilinear forms."""
    used = set()
    for q_mat in q_mats:
        rows = q_mat[:-1].tocoo().row
        used.update(int(i) for i in rows)
    return np.array(sorted(used), dtype=int)
