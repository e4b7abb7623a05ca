import numpy as np

from robustcp.settings import ZERO_TOL

# Keeps a touched entry registered after it cancels out to exactly zero.
_CANCELLED = 1e-50


class SparseAccumulator():
    """
    A dense-backed sparse vector used to collect like terms.

    Contributions for the same index are summed in place. Indices are enumerated in
    the order they were first touched, and entries whose accumulated absolute value is
    below ``ZERO_TOL`` are skipped. ``clear`` only resets the touched entries, so one
    accumulator can be reused across many expressions.

    Parameters
    ----------
    n : int
        The number of indices (e.g. the number of uncertain parameters in a model).
    """

    def __init__(self, n: int):
        self._elts = np.zeros(n)
        self._nzidx = np.zeros(n, dtype=int)
        self._nnz = 0

    @property
    def size(self):
        return self._elts.shape[0]

    def add(self, index: int, value: float) -> None:
        """Accumulate ``value`` into ``index``."""
        if value == 0:
            return
        if self._elts[index] == 0:
            self._nzidx[self._nnz] = index
            self._nnz += 1
        self._elts[index] += value
        if self._elts[index] == 0:
            self._elts[index] = _CANCELLED

    def __getitem__(self, index: int) -> float:
        value = self._elts[index]
        if abs(value) < ZERO_TOL:
            return 0.
        return float(value)

    def indices(self) -> list[int]:
        """Active indices, in first-insertion order."""
        return [int(i) for i in self._nzidx[:self._nnz] if abs(self._elts[i]) >= ZERO_TOL]

    def items(self) -> list[tuple[int, float]]:
        """Active (index, value) pairs, in first-insertion order."""
        return [(i, float(self._elts[i])) for i in self.indices()]

    def __len__(self):
        return len(self.indices())

    def __iter__(self):
        return iter(self.items())

    def to_dense(self) -> np.ndarray:
        dense = np.zeros(self.size)
        for i, value in self.items():
            dense[i] = value
        return dense

    def clear(self) -> None:
        self._elts[self._nzidx[:self._nnz]] = 0.
        self._nnz = 0
