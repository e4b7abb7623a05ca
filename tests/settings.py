import cvxpy as cp

SOLVER = cp.CLARABEL
TESTS_ATOL = 1e-4
TESTS_RTOL = 1e-4
