"""
rotkin.ephemeris — Sampled Attitude Ephemeris
=============================================

``KinematicEphemeris`` stores a chronologically sorted set of time-stamped
kinematic states and answers orientation queries at arbitrary dates by
interpolating over the ``neighbors`` samples closest to the query.

Neighbour selection centres the window on the query date and slides it
inwards at both ends of the ephemeris, so every query uses exactly
``neighbors`` consecutive samples.
"""

import logging

import numpy as np

from .errors import NotEnoughDataError
from .timestamped import DerivativesFilter, TimeStampedKinematicState, interpolate
from .utils import duration

logger = logging.getLogger(__name__)


class KinematicEphemeris:
    """Interpolating store of time-stamped kinematic states.

    Parameters
    ----------
    states : iterable of TimeStampedKinematicState — at least ``neighbors`` samples
    neighbors : int — samples used per interpolation (≥ 1, ≥ 2 for USE_R)
    derivatives_filter : DerivativesFilter or bool — derivatives used from the samples
    extrapolation_tolerance : float — allowed distance outside the sample span [s]
    """

    def __init__(self, states, neighbors: int = 4,
                 derivatives_filter=DerivativesFilter.USE_RRA,
                 extrapolation_tolerance: float = 0.0):
        self.filter = DerivativesFilter.of(derivatives_filter)
        required = 2 if self.filter is DerivativesFilter.USE_R else 1
        if neighbors < required:
            raise ValueError(f"At least {required} neighbours required, got {neighbors}.")
        states = sorted(states)
        if len(states) < neighbors:
            raise NotEnoughDataError(len(states), neighbors)
        for previous, current in zip(states[:-1], states[1:]):
            if current == previous:
                raise ValueError(f"Duplicate ephemeris date {current.date!r}.")

        self.neighbors = neighbors
        self.extrapolation_tolerance = extrapolation_tolerance
        self._states = tuple(states)
        self._offsets = np.array([s.duration_from(states[0]) for s in states])

    def __len__(self):
        return len(self._states)

    def __iter__(self):
        return iter(self._states)

    @property
    def min_date(self):
        return self._states[0].date

    @property
    def max_date(self):
        return self._states[-1].date

    def get_neighbors(self, date) -> list[TimeStampedKinematicState]:
        """The ``neighbors`` consecutive samples surrounding ``date``."""
        t = duration(date, self.min_date)
        # last sample at or before the date
        i = int(np.searchsorted(self._offsets, t, side="right")) - 1
        start = i - (self.neighbors - 1) // 2
        start = max(0, min(start, len(self._states) - self.neighbors))
        logger.debug("Neighbours of %r: samples %d to %d", date, start, start + self.neighbors - 1)
        return list(self._states[start:start + self.neighbors])

    def interpolate(self, date) -> TimeStampedKinematicState:
        """Kinematic state at ``date``.

        Raises
        ------
        ValueError — date outside the ephemeris span by more than the tolerance
        """
        before = duration(self.min_date, date)
        after = duration(date, self.max_date)
        if before > self.extrapolation_tolerance or after > self.extrapolation_tolerance:
            raise ValueError(
                f"Date {date!r} is outside the ephemeris span "
                f"[{self.min_date!r}, {self.max_date!r}].")
        return interpolate(date, self.filter, self.get_neighbors(date))
