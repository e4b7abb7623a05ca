from dataclasses import dataclass
from typing import Optional


@dataclass
class SolverStats:
    """Reports the solver information of the last deterministic solve, together with
    the size of the deterministic model at that point.

    Attributes
    ----------
    solver_name : str
        The name of the solver.
    solve_time : double
        The time (in seconds) it took for the solver to solve the problem.
    setup_time : double
        The time (in seconds) it took for the solver to setup the problem.
    num_iters : int
        The number of iterations the solver had to go through to find a solution.
    num_constraints : int
        The number of constraints of the deterministic model, including added cuts
        and reformulations.
    extra_stats : object
        Extra statistics specific to the solver, as returned by CVXPY.
    """

    solver_name: str
    solve_time: Optional[float] = None
    setup_time: Optional[float] = None
    num_iters: Optional[int] = None
    num_constraints: Optional[int] = None
    extra_stats: Optional[dict] = None

    @classmethod
    def from_problem(cls, problem, num_constraints: int | None = None) -> "SolverStats":
        """Construct a SolverStats object from a solved cvxpy problem.

        Parameters
        ----------
        problem : cvxpy.Problem
            A problem on which ``solve`` has been called.
        num_constraints : int, optional
            The number of constraints of the deterministic model.

        Returns
        -------
        SolverStats
            A SolverStats object.
        """
        stats = problem.solver_stats
        return cls(
            stats.solver_name,
            solve_time=stats.solve_time,
            setup_time=stats.setup_time,
            num_iters=stats.num_iters,
            num_constraints=num_constraints,
            extra_stats=stats.extra_stats,
        )
