import numpy as np


class UncertainParameter():
    """
    A scalar uncertain parameter of a robust model.

    Uncertain parameters are created by ``RobustModel.add_uncertain`` and are
    immutable afterwards. They can be combined with numbers, other uncertain
    parameters and decision variables through the arithmetic operators; comparing
    an expression of uncertain parameters only (``<=``, ``>=``, ``==``) gives a
    constraint on the uncertainty set itself.

    Parameters
    ----------
    model : RobustModel
        The owning model.
    index : int
        Position of the parameter in the model's parameter table.
    name : str
        Display name.
    lb : float, optional
        Lower bound. ``-inf`` if not given.
    ub : float, optional
        Upper bound. ``inf`` if not given.
    """

    __array_priority__ = 100

    def __init__(self, model, index, name, lb=None, ub=None):
        lb = -np.inf if lb is None else float(lb)
        ub = np.inf if ub is None else float(ub)
        if lb > ub:
            raise ValueError(f"Lower bound {lb} of {name} is greater than its upper bound {ub}.")
        self._model = model
        self._index = index
        self._name = name
        self._lb = lb
        self._ub = ub

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

    def _to_expr(self):
        from robustcp.expressions import UncertainExpression
        return UncertainExpression([self], [1.])

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
        return "UncertainParameter(%s, lb=%s, ub=%s)" % (self._name, self._lb, self._ub)
