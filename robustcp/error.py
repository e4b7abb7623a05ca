class ProtocolNotImplementedError(NotImplementedError):
    """
    This exception is thrown when an uncertainty set is asked to perform a phase
    of the resolution protocol it does not implement.
    """
    def __init__(self, uncertainty_set, phase):
        self.set_name = uncertainty_set if isinstance(uncertainty_set, str) \
                                        else type(uncertainty_set).__name__
        self.phase = phase
        self.message = f"{self.set_name} has not implemented {phase}"
        super().__init__(self.message)


class RegistrationError(ValueError):
    """
    This exception is thrown when uncertain constraints and uncertainty sets are not
    matched one-to-one.
    """
    def __init__(self, message):
        self.message = message
        super().__init__(self.message)


class RegistrationConflictError(RegistrationError):
    """
    This exception is thrown when an uncertain constraint is registered to a second
    uncertainty set.
    """
    def __init__(self, idx, owner, other):
        self.idx = idx
        self.owner = owner
        self.other = other
        super().__init__(f"Uncertain constraint {idx} is already owned by "
                         f"{type(owner).__name__}, cannot register it to "
                         f"{type(other).__name__}.")


class ConstraintTypeError(TypeError):
    """
    This exception is thrown when a constraint is passed to a path that expects the
    other kind of constraint (with or without decision variables).
    """
    def __init__(self, message):
        self.message = message
        super().__init__(self.message)


class VectorizedConstraintError(ValueError):
    """
    This exception is thrown when a container of constraints is passed where a single
    scalar constraint is expected.
    """
    def __init__(self, method="add_constraint"):
        self.message = (f"{method} only accepts a single scalar constraint. If you are "
                        "trying to add a vectorized constraint, build the element-wise "
                        "constraints and pass them to add_constraints instead.")
        super().__init__(self.message)
