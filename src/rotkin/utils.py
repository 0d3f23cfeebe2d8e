"""
rotkin.utils — Foundational Utilities
=====================================

Constants, tolerances, 3-vector helpers and time-point utilities.

The vector helpers accept ``(3,)`` arrays holding plain reals or jets
(``object`` dtype) and compute every component explicitly, so the same
code serves both scalar kinds.  Time points are either ``float`` seconds
or ``datetime.datetime`` instances.
"""

from datetime import datetime, timedelta

import numpy as np
from numpy.typing import NDArray

from .jets import Jet, sqrt, value_of

# ── Physical Constants ──────────────────────────────────────────────────────
OMEGA_EARTH = 7.2921150e-5      # Earth rotation rate              [rad/s]
J2000_JD = 2_451_545.0          # Julian Date of the J2000.0 epoch

# ── Numerical Tolerances ────────────────────────────────────────────────────
EPS_NORM = 1e-15                # below this a vector counts as zero
RODRIGUES_SINGULARITY = 1e-14   # minimum 1 + sign·q0 for a representable MRV
INTERPOLATION_MARGIN = 1.0e-4   # 2π singularity guard during interpolation

# ── Vector Helpers ──────────────────────────────────────────────────────────


def vector(x, y, z) -> NDArray:
    """Build a 3-vector, ``object`` dtype as soon as one component is a jet."""
    if isinstance(x, Jet) or isinstance(y, Jet) or isinstance(z, Jet):
        v = np.empty(3, dtype=object)
        v[0], v[1], v[2] = x, y, z
        return v
    return np.array([x, y, z], dtype=np.float64)


def as_vector(v) -> NDArray:
    """Coerce input to a (3,) vector, preserving jet components."""
    if isinstance(v, np.ndarray) and v.dtype == object:
        if v.shape != (3,):
            raise ValueError(f"Expected a (3,) vector, got shape {v.shape}.")
        return vector(v[0], v[1], v[2])
    if any(isinstance(c, Jet) for c in v):
        return vector(*v)
    out = np.array(v, dtype=np.float64)
    if out.shape != (3,):
        raise ValueError(f"Expected a (3,) vector, got shape {out.shape}.")
    return out


PLUS_I = np.array([1.0, 0.0, 0.0])
PLUS_J = np.array([0.0, 1.0, 0.0])
PLUS_K = np.array([0.0, 0.0, 1.0])
for _axis in (PLUS_I, PLUS_J, PLUS_K):
    _axis.flags.writeable = False


def components(v) -> tuple:
    """Components as Python floats or jets, never NumPy scalars."""
    return tuple(c if isinstance(c, Jet) else float(c) for c in v)


def dot(a: NDArray, b: NDArray):
    """Dot product of two 3-vectors."""
    a, b = components(a), components(b)
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: NDArray, b: NDArray) -> NDArray:
    """Cross product a × b."""
    a, b = components(a), components(b)
    return vector(a[1] * b[2] - a[2] * b[1],
                  a[2] * b[0] - a[0] * b[2],
                  a[0] * b[1] - a[1] * b[0])


def norm_sq(v: NDArray):
    v = components(v)
    return v[0] * v[0] + v[1] * v[1] + v[2] * v[2]


def norm(v: NDArray):
    return sqrt(norm_sq(v))


def scale(k, v: NDArray) -> NDArray:
    """k · v with k placed on the left of every product."""
    v = components(v)
    k = k if isinstance(k, Jet) else float(k)
    return vector(k * v[0], k * v[1], k * v[2])


def linear_combination(*terms) -> NDArray:
    """Σ kᵢ·vᵢ for alternating (k₁, v₁, k₂, v₂, ...) arguments."""
    if len(terms) % 2:
        raise ValueError("linear_combination expects (coefficient, vector) pairs.")
    x = y = z = 0.0
    for k, v in zip(terms[0::2], terms[1::2]):
        v = components(v)
        k = k if isinstance(k, Jet) else float(k)
        x = x + k * v[0]
        y = y + k * v[1]
        z = z + k * v[2]
    return vector(x, y, z)


def real_vector(v: NDArray) -> NDArray:
    """Real part of every component."""
    return np.array([value_of(c) for c in v], dtype=np.float64)


def normalize(v: NDArray) -> NDArray:
    """Return unit vector.  Works on single vectors (real or jet) or (N,3) arrays."""
    if isinstance(v, np.ndarray) and v.dtype == object:
        n = norm(v)
        if value_of(n) < EPS_NORM:
            raise ValueError("Cannot normalize a near-zero vector.")
        inv = 1.0 / n
        return scale(inv, v)
    v = np.asarray(v, dtype=np.float64)
    if v.ndim == 1:
        mag = np.linalg.norm(v)
        if mag < EPS_NORM:
            raise ValueError("Cannot normalize a near-zero vector.")
        return v / mag
    elif v.ndim == 2:
        mag = np.linalg.norm(v, axis=1, keepdims=True)
        if np.any(mag < EPS_NORM):
            raise ValueError("Cannot normalize a near-zero vector.")
        return v / mag
    else:
        raise ValueError(f"Expected 1-D or 2-D array, got {v.ndim}-D.")


def angle_between(a: NDArray, b: NDArray) -> float:
    """Angle between two real vectors [rad], robust near 0 and π."""
    a, b = real_vector(a), real_vector(b)
    return float(np.arctan2(np.linalg.norm(np.cross(a, b)), np.dot(a, b)))


# ── Time Utilities ──────────────────────────────────────────────────────────

def duration(t1, t0) -> float:
    """Elapsed seconds t1 − t0 for float or datetime time points."""
    if isinstance(t1, datetime) and isinstance(t0, datetime):
        return (t1 - t0).total_seconds()
    if isinstance(t1, datetime) or isinstance(t0, datetime):
        raise ValueError(f"Cannot mix time point types {type(t1).__name__} "
                         f"and {type(t0).__name__}.")
    return float(t1) - float(t0)


def shift_time(t, dt: float):
    """Time point t shifted by dt seconds."""
    if isinstance(t, datetime):
        return t + timedelta(seconds=dt)
    return float(t) + dt


def julian_date(year: int, month: int, day: int,
                hour: float = 0.0, minute: float = 0.0,
                second: float = 0.0) -> float:
    """Compute Julian Date from calendar date (UTC)."""
    if month <= 2:
        year -= 1
        month += 12
    A = int(year / 100)
    B = 2 - A + int(A / 4)
    JD = (int(365.25 * (year + 4716))
          + int(30.6001 * (month + 1))
          + day + B - 1524.5)
    JD += (hour + minute / 60.0 + second / 3600.0) / 24.0
    return JD


def datetime_to_jd(t: datetime) -> float:
    """Julian Date of a (naive, UTC) datetime."""
    return julian_date(t.year, t.month, t.day, t.hour, t.minute,
                       t.second + t.microsecond * 1e-6)


def gmst(jd: float) -> float:
    """Greenwich Mean Sidereal Time [rad] from Julian Date.

    Uses the IAU 1982 model (accurate to ~0.1 arcsec for dates near J2000).
    """
    T = (jd - J2000_JD) / 36_525.0
    # GMST in seconds of time at 0h UT
    theta_sec = 67310.54841 + (876600.0 * 3600.0 + 8640184.812866) * T \
                + 0.093104 * T**2 - 6.2e-6 * T**3
    theta_deg = (theta_sec / 240.0) % 360.0  # convert seconds→degrees
    return np.deg2rad(theta_deg)
