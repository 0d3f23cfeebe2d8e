"""
rotkin.frames — Rotating Frames and Batch Transport
===================================================

Helpers built on ``KinematicState`` for frames that spin uniformly about a
fixed axis, the Earth-fixed frame being the canonical example.

**ECI (Earth-Centered Inertial, J2000)**
  - X: Vernal equinox direction at J2000.0
  - Z: Mean celestial pole at J2000.0
  - Inertial frame.

**ECR (Earth-Centered Rotating / ECEF)**
  - X: Greenwich meridian, Z: Celestial pole
  - Rotates with the Earth at ω_⊕ ≈ 7.2921150 × 10⁻⁵ rad/s about +Z.

The ECI→ECR state has rotation ``R_z(θ)`` (θ = GMST) and rate
``[0, 0, ω_⊕]``, so that transporting a position / velocity pair yields
the transport theorem::

    r_ecr = R · r_eci
    v_ecr = R · v_eci − ω × r_ecr

Batch transport works on (N,3) arrays of real vectors and matches
``KinematicState.apply_to`` sample by sample.
"""

from datetime import datetime

import numpy as np
from numpy.typing import NDArray

from .coordinates import KinematicState
from .rotation import Rotation
from .utils import OMEGA_EARTH, PLUS_K, datetime_to_jd, gmst, normalize, real_vector


# ════════════════════════════════════════════════════════════════════════════
#  Internal Helpers
# ════════════════════════════════════════════════════════════════════════════

def _apply_dcm(R: NDArray, vec: NDArray) -> NDArray:
    """Apply 3×3 DCM to a single (3,) or batch (N,3) of vectors."""
    vec = np.asarray(vec, dtype=np.float64)
    if vec.ndim == 1:
        return R @ vec
    return (R @ vec.T).T


def _skew(w: NDArray) -> NDArray:
    """Matrix [w×] such that [w×] @ u = w × u."""
    return np.array([
        [0.0, -w[2], w[1]],
        [w[2], 0.0, -w[0]],
        [-w[1], w[0], 0.0],
    ])


# ════════════════════════════════════════════════════════════════════════════
#  Uniformly Rotating Frames
# ════════════════════════════════════════════════════════════════════════════

def uniform_rotation(axis: NDArray, angle: float, rate: float) -> KinematicState:
    """State of a frame B turned by ``angle`` about ``axis`` and spinning at ``rate``.

    Parameters
    ----------
    axis : (3,) array — spin axis, common to both frames
    angle : float — current angle of B with respect to A [rad]
    rate : float — spin rate of B with respect to A [rad/s]

    Returns
    -------
    KinematicState — A→B state with zero angular acceleration
    """
    k = normalize(np.asarray(axis, dtype=np.float64))
    # coordinates turn opposite to the frame axes
    return KinematicState(Rotation.from_axis_angle(k, -angle), rate * k)


def earth_rotation_state(epoch) -> KinematicState:
    """ECI→ECR kinematic state at an epoch (GMST rotation about +Z).

    ``epoch`` is a Julian Date or a naive UTC ``datetime``.
    """
    jd = datetime_to_jd(epoch) if isinstance(epoch, datetime) else epoch
    return uniform_rotation(PLUS_K, gmst(jd), OMEGA_EARTH)


# ════════════════════════════════════════════════════════════════════════════
#  Batch Transport
# ════════════════════════════════════════════════════════════════════════════

def apply_to_batch(state: KinematicState, positions: NDArray,
                   velocities: NDArray | None = None,
                   accelerations: NDArray | None = None
                   ) -> tuple[NDArray, NDArray, NDArray]:
    """Transport (N,3) position / velocity / acceleration arrays from A to B.

    Parameters
    ----------
    state : KinematicState — A→B state (real scalars)
    positions : (3,) or (N,3) — positions in A
    velocities, accelerations : same shape, zero if omitted

    Returns
    -------
    p, v, a : arrays of the input shape, expressed in B
    """
    state = state.to_float()
    R = state.rotation.matrix()
    omega = real_vector(state.rate)
    omega_dot = real_vector(state.acceleration)

    p = np.asarray(positions, dtype=np.float64)
    v = np.zeros_like(p) if velocities is None else np.asarray(velocities, dtype=np.float64)
    a = np.zeros_like(p) if accelerations is None else np.asarray(accelerations, dtype=np.float64)

    p_b = _apply_dcm(R, p)
    cross_p = np.cross(omega, p_b)
    v_b = _apply_dcm(R, v) - cross_p
    a_b = (_apply_dcm(R, a) - 2.0 * np.cross(omega, v_b)
           - np.cross(omega, cross_p) - np.cross(omega_dot, p_b))
    return p_b, v_b, a_b


def transport_jacobian(state: KinematicState) -> NDArray:
    """6×6 Jacobian of (p, v) in B with respect to (p, v) in A.

    ::

        | R        0 |
        | −[ω×]R   R |
    """
    state = state.to_float()
    R = state.rotation.matrix()
    M = np.zeros((6, 6), dtype=np.float64)
    M[:3, :3] = R
    M[3:, 3:] = R
    M[3:, :3] = -_skew(real_vector(state.rate)) @ R
    return M


def transform_covariance(P: NDArray, state: KinematicState) -> NDArray:
    """Covariance rotation P' = J P Jᵀ, including the Coriolis coupling.

    Handles 3×3 (position-only) and 6×6 (full-state) covariance matrices.
    """
    P = np.asarray(P, dtype=np.float64)
    if P.shape == (3, 3):
        R = state.to_float().rotation.matrix()
        return R @ P @ R.T
    elif P.shape == (6, 6):
        M = transport_jacobian(state)
        return M @ P @ M.T
    else:
        raise ValueError(f"Covariance must be (3,3) or (6,6), got {P.shape}")
