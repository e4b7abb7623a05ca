from numbers import Number

import numpy as np
from scipy.sparse import coo_matrix, csr_matrix

from robustcp.sparse import SparseAccumulator
from robustcp.uncertain_parameter import UncertainParameter
from robustcp.variable import DecisionVariable


def _is_number(value) -> bool:
    if isinstance(value, Number) and not isinstance(value, bool):
        return True
    return isinstance(value, np.ndarray) and value.size == 1 and value.dtype.kind in "iuf"


class UncertainExpression():
    """
    An affine expression in uncertain parameters: ``sum(coeffs[i] * params[i]) + constant``.

    Terms are stored as added, so the same parameter can appear more than once.
    ``collect`` consolidates them into one coefficient per parameter.

    Parameters
    ----------
    params : list[UncertainParameter], optional
        The uncertain parameters of the terms.
    coeffs : list[float], optional
        The coefficients of the terms, same length as ``params``.
    constant : float, optional
        The constant term. Default 0.
    """

    __array_priority__ = 100

    def __init__(self, params=None, coeffs=None, constant=0.):
        params = [] if params is None else list(params)
        coeffs = [] if coeffs is None else [float(c) for c in coeffs]
        if len(params) != len(coeffs):
            raise ValueError(f"Got {len(params)} parameters but {len(coeffs)} coefficients.")
        self.params = params
        self.coeffs = coeffs
        self.constant = float(constant)

    @staticmethod
    def cast(value):
        """Convert a number, parameter or expression to an UncertainExpression."""
        if isinstance(value, UncertainExpression):
            return value
        if isinstance(value, UncertainParameter):
            return UncertainExpression([value], [1.])
        if _is_number(value):
            return UncertainExpression(constant=float(value))
        raise TypeError(f"Cannot convert {type(value).__name__} to an uncertain expression.")

    def copy(self):
        return UncertainExpression(self.params, self.coeffs, self.constant)

    def is_constant(self) -> bool:
        """True if no uncertain parameter appears in the expression (even with zero
        coefficient)."""
        return len(self.params) == 0

    def model(self):
        if self.params:
            return self.params[0].model
        return None

    def collect(self, accumulator: SparseAccumulator | None = None) -> list[tuple[int, float]]:
        """
        Consolidate like terms.

        Returns the (parameter index, coefficient) pairs with negligible coefficients
        dropped, in the order the parameters first appear in the expression.

        Args:
            accumulator (SparseAccumulator, optional):
                Scratch accumulator to reuse. It is cleared before and after use.
        """
        if not self.params:
            return []
        if accumulator is None:
            size = max(p.index for p in self.params) + 1
            accumulator = SparseAccumulator(size)
        accumulator.clear()
        for param, coeff in zip(self.params, self.coeffs):
            accumulator.add(param.index, coeff)
        terms = accumulator.items()
        accumulator.clear()
        return terms

    def value(self, param_values) -> float:
        """Evaluate the expression given a vector of values indexed by parameter index."""
        res = self.constant
        for param, coeff in zip(self.params, self.coeffs):
            res += coeff*param_values[param.index]
        return res

    def __add__(self, other):
        if isinstance(other, (DecisionVariable, MixedExpression)):
            return MixedExpression(constant=self) + other
        other = UncertainExpression.cast(other)
        return UncertainExpression(self.params + other.params, self.coeffs + other.coeffs,
                                   self.constant + other.constant)

    def __radd__(self, other):
        return self + other

    def __neg__(self):
        return self*-1.

    def __sub__(self, other):
        return self + (-other)

    def __rsub__(self, other):
        return (-self) + other

    def __mul__(self, other):
        if _is_number(other):
            other = float(other)
            return UncertainExpression(self.params, [c*other for c in self.coeffs],
                                       self.constant*other)
        if isinstance(other, DecisionVariable):
            return MixedExpression([other], [self.copy()])
        if isinstance(other, MixedExpression):
            return other*self
        if isinstance(other, (UncertainParameter, UncertainExpression)):
            if self.is_constant():
                return UncertainExpression.cast(other)*self.constant
            if UncertainExpression.cast(other).is_constant():
                return self*UncertainExpression.cast(other).constant
            raise TypeError("Cannot multiply two uncertain expressions: the product is not "
                            "affine in the uncertain parameters.")
        return NotImplemented

    def __rmul__(self, other):
        return self*other

    def __truediv__(self, other):
        if not _is_number(other):
            raise TypeError("Can only divide an uncertain expression by a number.")
        return self*(1./float(other))

    def _compare(self, other, sense):
        from robustcp.constraints import make_constraint
        return make_constraint(self - other, sense)

    def __le__(self, other):
        return self._compare(other, "<=")

    def __ge__(self, other):
        return self._compare(other, ">=")

    def __eq__(self, other):
        return self._compare(other, "==")

    def __str__(self):
        from robustcp.display import uncertain_to_str
        return uncertain_to_str(self)

    def __repr__(self):
        return "UncertainExpression(%s)" % str(self)


class MixedExpression():
    """
    An affine expression in decision variables whose coefficients are affine in the
    uncertain parameters: ``sum(coeffs[j] * vars[j]) + constant``, where each
    ``coeffs[j]`` and ``constant`` is an UncertainExpression.

    Parameters
    ----------
    variables : list[DecisionVariable], optional
        The decision variables of the terms.
    coeffs : list[UncertainExpression], optional
        The uncertain coefficients of the terms.
    constant : UncertainExpression, optional
        The constant term. Default 0.
    """

    __array_priority__ = 100

    def __init__(self, variables=None, coeffs=None, constant=None):
        variables = [] if variables is None else list(variables)
        coeffs = [] if coeffs is None else [UncertainExpression.cast(c) for c in coeffs]
        if len(variables) != len(coeffs):
            raise ValueError(f"Got {len(variables)} variables but {len(coeffs)} coefficients.")
        self.vars = variables
        self.coeffs = coeffs
        self.constant = UncertainExpression() if constant is None else \
                        UncertainExpression.cast(constant)

    @staticmethod
    def cast(value):
        if isinstance(value, MixedExpression):
            return value
        if isinstance(value, DecisionVariable):
            return MixedExpression([value], [UncertainExpression(constant=1.)])
        return MixedExpression(constant=UncertainExpression.cast(value))

    def copy(self):
        return MixedExpression(self.vars, [c.copy() for c in self.coeffs], self.constant.copy())

    def has_variables(self) -> bool:
        return len(self.vars) > 0

    def is_certain(self) -> bool:
        """True if no uncertain parameter appears in any coefficient or the constant."""
        return self.constant.is_constant() and all(c.is_constant() for c in self.coeffs)

    def __add__(self, other):
        other = MixedExpression.cast(other)
        return MixedExpression(self.vars + other.vars, self.coeffs + other.coeffs,
                               self.constant + other.constant)

    def __radd__(self, other):
        return self + other

    def __neg__(self):
        return self*-1.

    def __sub__(self, other):
        return self + (-other)

    def __rsub__(self, other):
        return (-self) + other

    def __mul__(self, other):
        if _is_number(other) or isinstance(other, (UncertainParameter, UncertainExpression)):
            if not _is_number(other) and not self.is_certain():
                raise TypeError("Cannot multiply an uncertain coefficient by an uncertain "
                                "parameter: the product is not affine in the uncertain "
                                "parameters.")
            return MixedExpression(self.vars, [c*other for c in self.coeffs],
                                   self.constant*other)
        if isinstance(other, (DecisionVariable, MixedExpression)):
            raise TypeError("Cannot multiply decision variables: the product is not affine "
                            "in the decision variables.")
        return NotImplemented

    def __rmul__(self, other):
        return self*other

    def __truediv__(self, other):
        if not _is_number(other):
            raise TypeError("Can only divide an expression by a number.")
        return self*(1./float(other))

    def _compare(self, other, sense):
        from robustcp.constraints import make_constraint
        return make_constraint(self - other, sense)

    def __le__(self, other):
        return self._compare(other, "<=")

    def __ge__(self, other):
        return self._compare(other, ">=")

    def __eq__(self, other):
        return self._compare(other, "==")

    def coefficient_matrix(self, num_params: int, num_vars: int) -> csr_matrix:
        """
        Return the bilinear form ``Q`` of the expression, so that the expression equals
        ``[u, 1] @ Q @ [x, 1]`` for parameter values ``u`` and variable values ``x``.

        ``Q`` has shape ``(num_params + 1, num_vars + 1)``. Row ``num_params`` holds the
        certain part and column ``num_vars`` the terms without a decision variable.
        Duplicate entries are summed.
        """
        rows, cols, data = [], [], []
        accumulator = SparseAccumulator(num_params)

        def _add_coeff(uexpr, col):
            for p_ind, coeff in uexpr.collect(accumulator):
                rows.append(p_ind)
                cols.append(col)
                data.append(coeff)
            if uexpr.constant != 0:
                rows.append(num_params)
                cols.append(col)
                data.append(uexpr.constant)

        for var, uexpr in zip(self.vars, self.coeffs):
            _add_coeff(uexpr, var.index)
        _add_coeff(self.constant, num_vars)
        return coo_matrix((data, (rows, cols)), shape=(num_params + 1, num_vars + 1)).tocsr()

    def __str__(self):
        from robustcp.display import mixed_to_str
        return mixed_to_str(self)

    def __repr__(self):
        return "MixedExpression(%s)" % str(self)
