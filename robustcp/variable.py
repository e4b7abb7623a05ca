import cvxpy as cp
import numpy as np


class DecisionVariable():
    """
    A scalar decision variable of a robust model, backed by a ``cvxpy.Variable``.

    The cvxpy variable is available as ``cvx`` for writing ordinary cvxpy
    constraints and objectives. Bounds are added to the deterministic model when
    the robust model is solved.
    """

    __array_priority__ = 100

    def __init__(self, model, index, name, lb=None, ub=None, integer=False):
        lb = -np.inf if lb is None else float(lb)
        ub = np.inf if ub is None else float(ub)
        if lb > ub:
            raise ValueError(f"Lower bound {lb} of {name} is greater than its upper bound {ub}.")
        self._model = model
        self._index = index
        self._name = name
        self._lb = lb
        self._ub = ub
        self._integer = integer
        self._cvx = cp.Variable(name=name, integer=integer)

    @property
    def model(self):
        return self._model

    @property
    def index(self):
        return self._index

    @property
    def name(self):
        return self._name

    @property
    def lb(self):
        return self._lb

    @property
    def ub(self):
        return self._ub

    @property
    def integer(self):
        return self._integer

    @property
    def cvx(self):
        return self._cvx

    @property
    def value(self):
        if self._cvx.value is None:
            return None
        return float(self._cvx.value)

    def bound_constraints(self) -> list:
        constraints = []
        if np.isfinite(self._lb):
            constraints += [self._cvx >= self._lb]
        if np.isfinite(self._ub):
            constraints += [self._cvx <= self._ub]
        return constraints

    def _to_expr(self):
        from robustcp.expressions import MixedExpression, UncertainExpression
        return MixedExpression([self], [UncertainExpression(constant=1.)])

    def __add__(self, other):
        return self._to_expr() + other

    def __radd__(self, other):
        return self._to_expr() + other

    def __sub__(self, other):
        return self._to_expr() - other

    def __rsub__(self, other):
        return other - self._to_expr()

    def __neg__(self):
        return -self._to_expr()

    def __mul__(self, other):
        return self._to_expr() * other

    def __rmul__(self, other):
        return self._to_expr() * other

    def __truediv__(self, other):
        return self._to_expr() / other

    def __le__(self, other):
        return self._to_expr() <= other

    def __ge__(self, other):
        return self._to_expr() >= other

    def __eq__(self, other):
        return self._to_expr() == other

    __hash__ = object.__hash__

    def __str__(self):
        return self._name

    def __repr__(self):
        return "DecisionVariable(%s)" % self._name
