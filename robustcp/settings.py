from cvxpy import settings as s

# General constants
ZERO_TOL = 1e-20 # Accumulated coefficients below this are treated as absent.
DISPLAY_CONSTANT_TOL = 1e-6 # Constants below this are not printed.

# Solve statuses, on top of the ones defined by cvxpy
OPTIMAL = s.OPTIMAL
OPTIMAL_INACCURATE = s.OPTIMAL_INACCURATE
INFEASIBLE = s.INFEASIBLE
ITERATION_LIMIT = "iteration_limit"
CONFIRMED_OPTIMUM = (OPTIMAL, OPTIMAL_INACCURATE)

# Resolution loop defaults
SOLVER_DEFAULT = None
SOLVER_ARGS_DEFAULT = None
MAX_ITER_DEFAULT = 100
REPORT_SCENARIOS_DEFAULT = False
VERBOSE_DEFAULT = False

# Uncertainty set preference keys and defaults
PREFER_CUTS = "prefer_cuts"
CUT_TOL = "cut_tol"
ADVERSARY_SOLVER = "adversary_solver"
PREFER_CUTS_DEFAULT = False
CUT_TOL_DEFAULT = 1e-6
ADVERSARY_SOLVER_DEFAULT = None
