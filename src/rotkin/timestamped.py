"""
rotkin.timestamped — Time-Stamped States and Interpolation
==========================================================

``TimeStampedKinematicState`` attaches a time point to a kinematic state.
Equality, ordering and hashing delegate to the time point; everything else
behaves as for ``KinematicState``.  Time points are ``float`` seconds or
``datetime.datetime`` instances (see ``utils.duration`` / ``utils.shift_time``).

Interpolation Scheme
--------------------
Quaternions double cover the rotation group and cannot be fed to a
polynomial interpolator directly.  Samples are therefore:

  1. re-expressed relative to a linear offset model that goes through the
     sample nearest to the target date and turns at the mean sample rate,
  2. kept on one quaternion hemisphere (consecutive dot products ≥ 0),
  3. converted to Modified Rodrigues vectors (+ derivatives per the filter),
  4. Hermite-interpolated (repeated abscissae carry the derivatives),
  5. converted back and composed with the offset model.

A sample too close to the 2π singularity restarts the pass with the
offset model turned by ε = 2π/n around +X.
"""

import functools
import logging
from enum import Enum

import numpy as np
from scipy.interpolate import KroghInterpolator

from .coordinates import KinematicState
from .errors import InterpolationSingularityError, NotEnoughDataError
from .rotation import Rotation
from .utils import INTERPOLATION_MARGIN, PLUS_I, duration, linear_combination, shift_time

logger = logging.getLogger(__name__)


class DerivativesFilter(Enum):
    """Which derivatives of the samples take part in interpolation."""
    USE_R = 0      # rotation only
    USE_RR = 1     # rotation and rate
    USE_RRA = 2    # rotation, rate and acceleration

    @property
    def order(self) -> int:
        return self.value

    @classmethod
    def of(cls, use_rates) -> "DerivativesFilter":
        """Accept a filter or a boolean (True → USE_RRA, False → USE_R)."""
        if isinstance(use_rates, cls):
            return use_rates
        return cls.USE_RRA if use_rates else cls.USE_R


@functools.total_ordering
class TimeStampedKinematicState(KinematicState):
    """Kinematic state at a given time point.

    Parameters
    ----------
    date : float or datetime — time point
    rotation : Rotation — A→B rotation
    rate : (3,) array — angular velocity in B [rad/s]
    acceleration : (3,) array — angular acceleration in B [rad/s²]
    """

    def __init__(self, date, rotation: Rotation, rate=None, acceleration=None):
        if date is None:
            raise ValueError("A time-stamped state needs a date.")
        object.__setattr__(self, "date", date)
        object.__setattr__(self, "rotation", rotation)
        object.__setattr__(self, "rate", rate)
        object.__setattr__(self, "acceleration", acceleration)
        self.__post_init__()

    @classmethod
    def from_state(cls, date, state: KinematicState) -> "TimeStampedKinematicState":
        return cls(date, state.rotation, state.rate, state.acceleration)

    def _derived(self, rotation, rate, acceleration):
        return TimeStampedKinematicState(self.date, rotation, rate, acceleration)

    def shifted_by(self, dt: float) -> "TimeStampedKinematicState":
        """Constant-acceleration propagation; the date moves by ``dt`` too."""
        shifted = KinematicState.shifted_by(self, dt)
        return TimeStampedKinematicState(shift_time(self.date, dt),
                                         shifted.rotation, shifted.rate, shifted.acceleration)

    def duration_from(self, other) -> float:
        """Seconds elapsed from ``other`` (state or time point) to this state."""
        if isinstance(other, TimeStampedKinematicState):
            other = other.date
        return duration(self.date, other)

    # ── Time-point semantics ──

    def __eq__(self, other):
        if not isinstance(other, TimeStampedKinematicState):
            return NotImplemented
        return self.duration_from(other) == 0.0

    def __lt__(self, other):
        if not isinstance(other, TimeStampedKinematicState):
            return NotImplemented
        return self.duration_from(other) < 0.0

    def __hash__(self):
        return hash(self.date)

    def __repr__(self):
        return (f"TimeStampedKinematicState(date={self.date!r}, rotation={self.rotation!r}, "
                f"rate={self.rate!r}, acceleration={self.acceleration!r})")

    @staticmethod
    def interpolate(date, use_rates, sample) -> "TimeStampedKinematicState":
        """See ``rotkin.timestamped.interpolate``."""
        return interpolate(date, use_rates, sample)


# ════════════════════════════════════════════════════════════════════════════
#  Interpolation
# ════════════════════════════════════════════════════════════════════════════

def interpolate(date, use_rates, sample) -> TimeStampedKinematicState:
    """Interpolate a kinematic state at ``date`` from time-stamped samples.

    Parameters
    ----------
    date : float or datetime — target time point
    use_rates : bool or DerivativesFilter — derivatives taken from the samples
    sample : iterable of TimeStampedKinematicState — distinct dates, real scalars

    Returns
    -------
    TimeStampedKinematicState — dated ``date``; the samples are reproduced
        exactly at their own dates up to the derivatives in use

    Raises
    ------
    NotEnoughDataError — empty sample, or a single sample without rates
    InterpolationSingularityError — every restart of the offset model failed
    ValueError — two samples share a date
    """
    filt = DerivativesFilter.of(use_rates)
    sample = sorted((s.to_float() for s in sample), key=lambda s: duration(s.date, date))
    n = len(sample)
    if n == 0:
        raise NotEnoughDataError(0, 1)
    if filt is DerivativesFilter.USE_R and n < 2:
        raise NotEnoughDataError(n, 2)
    for previous, current in zip(sample[:-1], sample[1:]):
        if current.duration_from(previous) == 0.0:
            raise ValueError(f"Duplicate sample date {current.date!r}.")

    # 2π singularity guard
    epsilon = 2 * np.pi / n
    threshold = min(-(1.0 - INTERPOLATION_MARGIN), -np.cos(epsilon / 4))

    # linear offset model through the nearest sample, turning at the mean rate
    mean_rate = _mean_rate(sample, filt)
    reference = min(sample, key=lambda s: abs(s.duration_from(date)))
    offset = TimeStampedKinematicState(reference.date, reference.rotation, mean_rate)
    offset = offset.shifted_by(duration(date, reference.date))

    for attempt in range(n + 2):
        rows = _rodrigues_samples(sample, date, offset, filt, threshold)
        if rows is None:
            logger.debug("Interpolation at %r restarted (attempt %d): sample too close "
                         "to the Rodrigues singularity", date, attempt + 1)
            offset = offset.add_offset(KinematicState(Rotation.from_axis_angle(PLUS_I, epsilon)))
            continue

        xi, yi = [], []
        for s, r in zip(sample, rows):
            dt = s.duration_from(date)
            for k in range(filt.order + 1):
                xi.append(dt)
                yi.append(r[k])
        interpolator = KroghInterpolator(np.array(xi), np.array(yi))
        p = interpolator.derivatives(0.0, der=3)
        relative = KinematicState.create_from_modified_rodrigues(p)
        result = relative.add_offset(offset)
        return TimeStampedKinematicState(date, result.rotation, result.rate, result.acceleration)

    raise InterpolationSingularityError(date, n + 2)


def _mean_rate(sample, filt: DerivativesFilter):
    """Mean sample rate, or mean finite-difference rate when rates are not used."""
    if filt is not DerivativesFilter.USE_R:
        terms = []
        for s in sample:
            terms += [1.0 / len(sample), s.rate]
        return linear_combination(*terms)
    terms = []
    for previous, current in zip(sample[:-1], sample[1:]):
        rate = KinematicState.estimate_rate(previous.rotation, current.rotation,
                                            current.duration_from(previous))
        terms += [1.0 / (len(sample) - 1), rate]
    return linear_combination(*terms)


def _rodrigues_samples(sample, date, offset, filt, threshold):
    """Rodrigues rows of every sample relative to the offset model, None on restart."""
    previous = np.array([1.0, 0.0, 0.0, 0.0])
    out = []
    for s in sample:
        fixed = s.subtract_offset(offset.shifted_by(s.duration_from(date)))
        q = fixed.rotation.quaternion
        # stay on the hemisphere of the previous sample
        sign = -1.0 if np.dot(q, previous) < 0 else 1.0
        previous = sign * q
        if previous[0] < threshold:
            return None
        out.append(fixed.get_modified_rodrigues(sign))
    return out
