"""
rotkin.errors — Error Taxonomy
==============================

Every failure raised by the kinematics core derives from ``RotkinError``,
itself a ``ValueError`` so that callers catching bad numeric input keep
working unchanged.
"""


class RotkinError(ValueError):
    """Base class for all rotational kinematics errors."""


class DegenerateConfigurationError(RotkinError):
    """Vectors are parallel or zero, the answer is not uniquely determined."""


class InconsistentObservationsError(RotkinError):
    """Two vector-pair observations do not describe the same rigid rotation."""


class UnrepresentableRotationError(RotkinError):
    """Rotation sits on the Modified Rodrigues singularity for the chosen sign.

    Retry with the opposite sign.
    """

    def __init__(self, sign: float, q0: float):
        self.sign = sign
        self.q0 = q0
        super().__init__(
            f"Rotation with q0 = {q0:.17g} is not representable as a Modified "
            f"Rodrigues vector with sign {sign:+g}; use the opposite sign."
        )


class UnsupportedOrderError(RotkinError):
    """Derivation order outside 0..2."""

    def __init__(self, order: int, max_order: int = 2):
        self.order = order
        super().__init__(
            f"Derivation order {order} is not supported (expected 0 to {max_order})."
        )


class NotEnoughDataError(RotkinError):
    """Too few samples to interpolate."""

    def __init__(self, available: int, required: int):
        self.available = available
        self.required = required
        super().__init__(
            f"Not enough data for interpolation: {available} sample(s), "
            f"at least {required} required."
        )


class InterpolationSingularityError(RotkinError):
    """Every restart of the interpolation offset model hit the Rodrigues singularity."""

    def __init__(self, date, attempts: int):
        self.date = date
        self.attempts = attempts
        super().__init__(
            f"Interpolation at {date!r} hit the Modified Rodrigues singularity "
            f"on all {attempts} attempts."
        )
