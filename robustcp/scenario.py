import numpy as np

from robustcp.uncertain_parameter import UncertainParameter


class Scenario():
    """
    A realization of the uncertain parameters of a model, typically the one that
    leaves the least slack in an uncertain constraint at the optimal solution.

    Parameters
    ----------
    values : np.ndarray
        Dense vector of parameter values, indexed by parameter index. Parameters the
        uncertainty set did not specify are ``nan``.
    """

    def __init__(self, values):
        self._values = np.array(values, dtype=float)

    @property
    def values(self):
        return self._values

    def get(self, param: UncertainParameter | int) -> float:
        """Return the value of ``param`` in this scenario (``nan`` if unspecified)."""
        index = param.index if isinstance(param, UncertainParameter) else param
        return float(self._values[index])

    def __getitem__(self, param):
        return self.get(param)

    def __len__(self):
        return self._values.shape[0]

    def __repr__(self):
        return "Scenario(%s)" % np.array2string(self._values)
