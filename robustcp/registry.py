from robustcp.error import RegistrationConflictError, RegistrationError


class ConstraintRegistry():
    """
    Ownership of uncertain constraints by uncertainty sets during one solve.

    Every uncertain constraint index has exactly one owning set, and the reverse
    lookup lists each index once, in registration order. Sets are enumerated in the
    order they first received a constraint.
    """

    def __init__(self):
        self._owner = {}
        self._indices = {}

    def register(self, idx: int, uncertainty_set) -> None:
        """
        Record ``uncertainty_set`` as the owner of constraint ``idx``.

        Raises:
            RegistrationConflictError if ``idx`` is already owned by another set.
        """
        owner = self._owner.get(idx)
        if owner is uncertainty_set:
            return
        if owner is not None:
            raise RegistrationConflictError(idx, owner, uncertainty_set)
        self._owner[idx] = uncertainty_set
        self._indices.setdefault(uncertainty_set, []).append(idx)

    def owner(self, idx: int):
        return self._owner[idx]

    def indices(self, uncertainty_set) -> list[int]:
        return list(self._indices.get(uncertainty_set, []))

    def sets(self) -> list:
        return list(self._indices)

    def check_complete(self, num_constraints: int) -> None:
        """
        Raises:
            RegistrationError if some uncertain constraint has no owning set.
        """
        missing = [idx for idx in range(num_constraints) if idx not in self._owner]
        if missing:
            raise RegistrationError(f"Uncertain constraints {missing} are not registered "
                                    "to any uncertainty set.")

    def __contains__(self, idx):
        return idx in self._owner

    def __len__(self):
        return len(self._owner)
