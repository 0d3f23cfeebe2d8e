"""
rotkin.coordinates — Rotational Kinematic State
===============================================

A ``KinematicState`` describes the orientation of frame B with respect to
frame A together with its first two time derivatives:

  - ``rotation``      R, maps coordinates in A onto coordinates in B
  - ``rate``          ω, angular velocity of B with respect to A, in B [rad/s]
  - ``acceleration``  ω̇, angular acceleration of B with respect to A, in B [rad/s²]

With this convention a vector fixed in A appears to turn by −ω in B::

    d/dt (R·u) = −ω × (R·u)

Composition
-----------
``a.add_offset(b)`` chains ``b`` (A→B) and ``a`` (B→C)::

    R   = R_a ∘ R_b
    ω   = ω_a + R_a·ω_b
    ω̇   = ω̇_a + R_a·ω̇_b − ω_a × (R_a·ω_b)

``subtract_offset(b)`` is ``add_offset(b.revert())`` and the two are
exact inverses of each other.  Composition does not commute.

Modified Rodrigues Vectors
--------------------------
``r = q_vec / (1 + q0)`` (tan(θ/4)·axis up to orientation) is a flat ℝ³
parameterization, singular only where ``q0 = −1``.  The sign argument of
``get_modified_rodrigues`` flips the quaternion hemisphere so that callers
can move the singularity away from the angle they actually meet.

Scalars are plain reals or jets (see ``rotkin.jets``); every operation
here is written once for both.
"""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .errors import (
    DegenerateConfigurationError, InconsistentObservationsError,
    UnrepresentableRotationError, UnsupportedOrderError,
)
from .jets import MAX_DERIVATION_ORDER, Jet, order_of, value_of
from .pv import VectorTriple
from .rotation import Rotation
from .utils import (
    RODRIGUES_SINGULARITY, angle_between, as_vector, components, cross, dot,
    linear_combination, norm, norm_sq, real_vector, scale, vector,
)

logger = logging.getLogger(__name__)


def _frozen(v) -> NDArray:
    out = as_vector(v).copy()
    out.flags.writeable = False
    return out


def _matrix(rows) -> NDArray:
    """Stack 3-component rows into an array (object dtype if any jet)."""
    flat = [c for row in rows for c in row]
    if any(isinstance(c, Jet) for c in flat):
        m = np.empty((len(rows), 3), dtype=object)
        for i, row in enumerate(rows):
            for j in range(3):
                m[i, j] = row[j]
        return m
    return np.array(rows, dtype=np.float64)


# ════════════════════════════════════════════════════════════════════════════
#  Kinematic State
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class KinematicState:
    """Rotation, angular rate and angular acceleration of frame B w.r.t. frame A.

    Parameters
    ----------
    rotation : Rotation — A→B rotation
    rate : (3,) array — angular velocity in B [rad/s] (zero if omitted)
    acceleration : (3,) array — angular acceleration in B [rad/s²] (zero if omitted)
    """
    rotation: Rotation
    rate: NDArray = None
    acceleration: NDArray = None

    def __post_init__(self):
        for name in ("rate", "acceleration"):
            value = getattr(self, name)
            object.__setattr__(self, name, _frozen(np.zeros(3) if value is None else value))

    def _derived(self, rotation, rate, acceleration):
        """New instance of the same kind (subclasses carry extra fields along)."""
        return KinematicState(rotation, rate, acceleration)

    @classmethod
    def identity(cls, order: int | None = None) -> "KinematicState":
        """Fixed identity orientation.

        With ``order`` set, every component is a constant jet of that order
        instead of a plain real.
        """
        if order is None:
            return KinematicState(Rotation.identity())
        one, zero = Jet.constant(1.0, order), Jet.constant(0.0, order)
        zeros = vector(zero, zero, zero)
        return KinematicState(Rotation(one, zero, zero, zero), zeros, zeros)

    # ── Comparison ──

    def is_close(self, other: "KinematicState", angle_tol: float = 1e-12,
                 rate_tol: float | None = None, acc_tol: float | None = None) -> bool:
        """Near-equality by rotation distance and rate / acceleration distance."""
        rate_tol = angle_tol if rate_tol is None else rate_tol
        acc_tol = rate_tol if acc_tol is None else acc_tol
        d_rot = value_of(Rotation.distance(self.rotation, other.rotation))
        d_rate = np.linalg.norm(real_vector(self.rate) - real_vector(other.rate))
        d_acc = np.linalg.norm(real_vector(self.acceleration) - real_vector(other.acceleration))
        return d_rot <= angle_tol and d_rate <= rate_tol and d_acc <= acc_tol

    # ── Composition ──

    def revert(self) -> "KinematicState":
        """State describing the A orientation with respect to B."""
        rev_rate = scale(-1.0, self.rotation.apply_inverse_to(self.rate))
        # the cross term of the composition rule cancels for collinear rates
        rev_acc = scale(-1.0, self.rotation.apply_inverse_to(self.acceleration))
        return self._derived(self.rotation.revert(), rev_rate, rev_acc)

    def add_offset(self, offset: "KinematicState") -> "KinematicState":
        """Chain ``offset`` (applied first) with the instance.

        Parameters
        ----------
        offset : KinematicState — A→B state, the instance being B→C

        Returns
        -------
        KinematicState — A→C state (same kind as the instance)
        """
        r_omega = self.rotation.apply_to(offset.rate)
        r_omega_dot = self.rotation.apply_to(offset.acceleration)
        return self._derived(
            self.rotation.compose(offset.rotation),
            linear_combination(1.0, self.rate, 1.0, r_omega),
            linear_combination(1.0, self.acceleration, 1.0, r_omega_dot,
                               -1.0, cross(self.rate, r_omega)),
        )

    def subtract_offset(self, offset: "KinematicState") -> "KinematicState":
        """``add_offset(offset.revert())``; undoes ``add_offset(offset)``."""
        return self.add_offset(offset.revert())

    # ── Propagation ──

    def shifted_by(self, dt: float) -> "KinematicState":
        """Propagate under constant angular acceleration.

        The rotation advances by the rotation vector ``Φ = ω·dt + ½·ω̇·dt²``
        (exact for constant rate), the rate by ``ω̇·dt``; the acceleration
        is kept.
        """
        phi = linear_combination(dt, self.rate, 0.5 * dt * dt, self.acceleration)
        if value_of(norm_sq(phi)) == 0.0:
            rotation = self.rotation
        else:
            # fixed vectors of A seem to turn backwards in B
            evolution = Rotation.from_axis_angle(phi, -norm(phi))
            rotation = evolution.compose(self.rotation)
        return self._derived(rotation,
                             linear_combination(1.0, self.rate, dt, self.acceleration),
                             self.acceleration)

    @staticmethod
    def estimate_rate(start: Rotation, end: Rotation, dt: float) -> NDArray:
        """Constant rate turning ``start`` into ``end`` in ``dt`` seconds.

        Exact for a pure constant-rate motion with a rotation angle below π.
        """
        if dt == 0:
            raise ValueError("Cannot estimate a rotation rate over a zero time span.")
        evolution = start.compose(end.revert())
        return scale(evolution.angle / dt, evolution.axis)

    # ── Transport ──

    def apply_to(self, pv: VectorTriple) -> VectorTriple:
        """Transport a (position, velocity, acceleration) triple from A to B.

        Position :      p' = R·p
        Velocity :      v' = R·v − ω × p'
        Acceleration :  a' = R·a − 2ω × v' − ω × (ω × p') − ω̇ × p'
        """
        omega = self.rate
        p = self.rotation.apply_to(pv.position)
        cross_p = cross(omega, p)
        v = linear_combination(1.0, self.rotation.apply_to(pv.velocity), -1.0, cross_p)
        cross_v = cross(omega, v)
        cross_cross_p = cross(omega, cross_p)
        cross_dot_p = cross(self.acceleration, p)
        a = linear_combination(1.0, self.rotation.apply_to(pv.acceleration),
                               -2.0, cross_v, -1.0, cross_cross_p, -1.0, cross_dot_p)
        return VectorTriple(p, v, a)

    # ── Reconstruction ──

    @classmethod
    def from_vector_pairs(cls, u1: VectorTriple, u2: VectorTriple,
                          v1: VectorTriple, v2: VectorTriple,
                          tolerance: float = 1.0e-10) -> "KinematicState":
        """State mapping two vector triples observed in A onto the same ones observed in B.

        Parameters
        ----------
        u1, u2 : VectorTriple — observations in frame A
        v1, v2 : VectorTriple — the same physical vectors observed in frame B
        tolerance : float — relative tolerance on rigidity checks

        Raises
        ------
        DegenerateConfigurationError — collinear or zero positions
        InconsistentObservationsError — pairs not related by one rigid rotation
        """
        _check_rigidity(u1.position, u2.position, v1.position, v2.position, tolerance)
        rotation = Rotation.from_vector_pairs(u1.position, u2.position,
                                              v1.position, v2.position)

        # ω × vᵢ = R·u̇ᵢ − v̇ᵢ
        c1 = linear_combination(1.0, rotation.apply_to(u1.velocity), -1.0, v1.velocity)
        c2 = linear_combination(1.0, rotation.apply_to(u2.velocity), -1.0, v2.velocity)
        try:
            rate = inverse_cross_products(v1.position, c1, v2.position, c2, tolerance)
        except DegenerateConfigurationError as err:
            raise InconsistentObservationsError(
                f"Velocities are not compatible with a rigid rotation: {err}") from err

        # ω̇ × vᵢ = R·üᵢ − 2ω × v̇ᵢ − ω × (ω × vᵢ) − v̈ᵢ
        d1 = linear_combination(1.0, rotation.apply_to(u1.acceleration),
                                -2.0, cross(rate, v1.velocity),
                                -1.0, cross(rate, cross(rate, v1.position)),
                                -1.0, v1.acceleration)
        d2 = linear_combination(1.0, rotation.apply_to(u2.acceleration),
                                -2.0, cross(rate, v2.velocity),
                                -1.0, cross(rate, cross(rate, v2.position)),
                                -1.0, v2.acceleration)
        try:
            acceleration = inverse_cross_products(v1.position, d1, v2.position, d2, tolerance)
        except DegenerateConfigurationError as err:
            raise InconsistentObservationsError(
                f"Accelerations are not compatible with a rigid rotation: {err}") from err

        return KinematicState(rotation, rate, acceleration)

    # ── Modified Rodrigues transform ──

    def get_modified_rodrigues(self, sign: float = 1.0) -> NDArray:
        """Modified Rodrigues vector and its first two time derivatives.

        Parameters
        ----------
        sign : float — +1 or −1, quaternion hemisphere used for the transform

        Returns
        -------
        rows : (3,3) array — [r, ṙ, r̈]

        Raises
        ------
        UnrepresentableRotationError — ``1 + sign·q0`` vanishes (retry with −sign)
        """
        rot = self.rotation
        q0, q1, q2, q3 = sign * rot.q0, sign * rot.q1, sign * rot.q2, sign * rot.q3
        if value_of(1.0 + q0) < RODRIGUES_SINGULARITY:
            raise UnrepresentableRotationError(sign, value_of(rot.q0))

        q0_dot, q1_dot, q2_dot, q3_dot, q0_dd, q1_dd, q2_dd, q3_dd = \
            _quaternion_derivatives(q0, q1, q2, q3, self.rate, self.acceleration)

        # r = q / (1 + q0), differentiated twice by the chain rule
        inv = 1.0 / (1.0 + q0)
        m_two_inv_q0_dot = -2.0 * inv * q0_dot
        r1, r2, r3 = inv * q1, inv * q2, inv * q3
        m_inv_r1, m_inv_r2, m_inv_r3 = -inv * r1, -inv * r2, -inv * r3
        r1_dot = inv * q1_dot + m_inv_r1 * q0_dot
        r2_dot = inv * q2_dot + m_inv_r2 * q0_dot
        r3_dot = inv * q3_dot + m_inv_r3 * q0_dot
        r1_dd = inv * q1_dd + m_two_inv_q0_dot * r1_dot + m_inv_r1 * q0_dd
        r2_dd = inv * q2_dd + m_two_inv_q0_dot * r2_dot + m_inv_r2 * q0_dd
        r3_dd = inv * q3_dd + m_two_inv_q0_dot * r3_dot + m_inv_r3 * q0_dd

        return _matrix([[r1, r2, r3],
                        [r1_dot, r2_dot, r3_dot],
                        [r1_dd, r2_dd, r3_dd]])

    @classmethod
    def create_from_modified_rodrigues(cls, rows) -> "KinematicState":
        """Inverse of ``get_modified_rodrigues``.

        Parameters
        ----------
        rows : (k,3) array, 1 ≤ k ≤ 3 — [r], [r, ṙ] or [r, ṙ, r̈]; missing
               derivatives give a zero rate and/or acceleration
        """
        if len(rows) < 1 or len(rows) > MAX_DERIVATION_ORDER + 1:
            raise ValueError(f"Expected 1 to 3 Rodrigues rows, got {len(rows)}.")
        r = components(rows[0])

        # rotation
        r_squared = r[0] * r[0] + r[1] * r[1] + r[2] * r[2]
        o_p_q0 = 2.0 / (1.0 + r_squared)
        q0 = o_p_q0 - 1.0
        q1, q2, q3 = o_p_q0 * r[0], o_p_q0 * r[1], o_p_q0 * r[2]
        rotation = Rotation(q0, q1, q2, q3)
        if len(rows) == 1:
            return KinematicState(rotation)

        # rotation rate
        r_dot = components(rows[1])
        o_p_q0_2 = o_p_q0 * o_p_q0
        q0_dot = -o_p_q0_2 * (r[0] * r_dot[0] + r[1] * r_dot[1] + r[2] * r_dot[2])
        q1_dot = o_p_q0 * r_dot[0] + r[0] * q0_dot
        q2_dot = o_p_q0 * r_dot[1] + r[1] * q0_dot
        q3_dot = o_p_q0 * r_dot[2] + r[2] * q0_dot
        rate = _rate_from_quaternion(q0, q1, q2, q3, q0_dot, q1_dot, q2_dot, q3_dot)
        if len(rows) == 2:
            return KinematicState(rotation, rate)

        # rotation acceleration
        r_dd = components(rows[2])
        q0_dd = ((1.0 - q0) / o_p_q0 * q0_dot * q0_dot
                 - o_p_q0_2 * (r[0] * r_dd[0] + r[1] * r_dd[1] + r[2] * r_dd[2])
                 - (q1_dot * q1_dot + q2_dot * q2_dot + q3_dot * q3_dot))
        q1_dd = o_p_q0 * r_dd[0] + 2.0 * r_dot[0] * q0_dot + r[0] * q0_dd
        q2_dd = o_p_q0 * r_dd[1] + 2.0 * r_dot[1] * q0_dot + r[1] * q0_dd
        q3_dd = o_p_q0 * r_dd[2] + 2.0 * r_dot[2] * q0_dot + r[2] * q0_dd
        acceleration = _rate_from_quaternion(q0, q1, q2, q3, q0_dd, q1_dd, q2_dd, q3_dd)
        return KinematicState(rotation, rate, acceleration)

    # ── Derivative structures ──

    def to_derivative_structure_rotation(self, order: int) -> Rotation:
        """Rotation as a function of time, as jets carrying ``order`` derivatives.

        Order 0 keeps the orientation only, order 1 adds the rate
        information, order 2 the acceleration information.

        Raises
        ------
        UnsupportedOrderError — order outside 0..2
        """
        if order < 0 or order > MAX_DERIVATION_ORDER:
            raise UnsupportedOrderError(order, MAX_DERIVATION_ORDER)
        rot = self.rotation.to_float()
        q = (rot.q0, rot.q1, rot.q2, rot.q3)
        d = _quaternion_derivatives(*q, real_vector(self.rate), real_vector(self.acceleration))
        first, second = d[:4], d[4:]
        return Rotation(*[Jet(*(q[i], first[i], second[i])[:order + 1]) for i in range(4)])

    @classmethod
    def from_derivative_structure_rotation(cls, rotation: Rotation) -> "KinematicState":
        """Inverse of ``to_derivative_structure_rotation``.

        Rate and acceleration are read only when the jet order provides
        them, otherwise they are zero.
        """
        comps = (rotation.q0, rotation.q1, rotation.q2, rotation.q3)
        orders = [order_of(c) for c in comps]
        order = 0 if any(o is None for o in orders) else min(orders)
        q0, q1, q2, q3 = [value_of(c) for c in comps]
        real_rotation = Rotation(q0, q1, q2, q3)
        if order == 0:
            return KinematicState(real_rotation)
        dots = [c.derivative(1) for c in comps]
        rate = _rate_from_quaternion(q0, q1, q2, q3, *dots)
        if order == 1:
            return KinematicState(real_rotation, rate)
        dot_dots = [c.derivative(2) for c in comps]
        acceleration = _rate_from_quaternion(q0, q1, q2, q3, *dot_dots)
        return KinematicState(real_rotation, rate, acceleration)

    # ── Conversion ──

    def to_float(self) -> "KinematicState":
        """Same state with every jet replaced by its value."""
        return self._derived(self.rotation.to_float(),
                             real_vector(self.rate), real_vector(self.acceleration))

    def __repr__(self):
        return (f"{type(self).__name__}(rotation={self.rotation!r}, "
                f"rate={self.rate!r}, acceleration={self.acceleration!r})")


# ════════════════════════════════════════════════════════════════════════════
#  Inverse Cross Products
# ════════════════════════════════════════════════════════════════════════════
#
#  Solve ω × v₁ = c₁ and ω × v₂ = c₂.  With n = v₁ × v₂ and ω expanded on
#  the (v₁, v₂, n) basis:
#
#      ω = [(c₂·n)·v₁ − (c₁·n)·v₂ + (c₁·v₂)·n] / |n|²
#
#  When n vanishes only the component of ω orthogonal to the non-zero
#  vector is observable; the minimum-norm solution (v × c) / |v|² is used.
# ════════════════════════════════════════════════════════════════════════════

def inverse_cross_products(v1, c1, v2, c2, tolerance: float = 1.0e-10) -> NDArray:
    """Find ω such that ω × v1 = c1 and ω × v2 = c2.

    Parameters
    ----------
    v1, v2 : (3,) arrays — vectors crossed by ω
    c1, c2 : (3,) arrays — cross products
    tolerance : float — relative tolerance for degeneracy and consistency

    Returns
    -------
    omega : (3,) array

    Raises
    ------
    DegenerateConfigurationError — no ω satisfies both equations, or both
        vectors vanish while the cross products do not
    """
    v1, c1, v2, c2 = as_vector(v1), as_vector(c1), as_vector(v2), as_vector(c2)
    v1n, v2n = value_of(norm(v1)), value_of(norm(v2))
    threshold = tolerance * max(v1n, v2n)

    n = cross(v1, v2)
    n2 = norm_sq(n)
    if value_of(n2) > 0 and np.sqrt(value_of(n2)) > tolerance * v1n * v2n:
        # average both estimates of ω·n = c₁·v₂ = −c₂·v₁
        omega_n = 0.5 * (dot(c1, v2) - dot(c2, v1))
        inv = 1.0 / n2
        omega = linear_combination(inv * dot(c2, n), v1,
                                   -inv * dot(c1, n), v2,
                                   inv * omega_n, n)
    else:
        c1n, c2n = value_of(norm(c1)), value_of(norm(c2))
        logger.debug("Degenerate cross-product inversion: |v1|=%g |v2|=%g |c1|=%g |c2|=%g",
                     v1n, v2n, c1n, c2n)
        if c1n <= threshold and c2n <= threshold:
            return vector(0.0, 0.0, 0.0)
        if v1n <= threshold and c1n > threshold:
            raise DegenerateConfigurationError(
                f"|c1| = {c1n:g} is not zero although v1 vanishes.")
        if v2n <= threshold and c2n > threshold:
            raise DegenerateConfigurationError(
                f"|c2| = {c2n:g} is not zero although v2 vanishes.")
        if v1n >= v2n:
            omega = scale(1.0 / norm_sq(v1), cross(v1, c1))
        else:
            omega = scale(1.0 / norm_sq(v2), cross(v2, c2))

    d1 = value_of(norm(linear_combination(1.0, cross(omega, v1), -1.0, c1)))
    d2 = value_of(norm(linear_combination(1.0, cross(omega, v2), -1.0, c2)))
    if d1 > threshold or d2 > threshold:
        raise DegenerateConfigurationError(
            f"Inconsistent cross products: residuals {d1:g} and {d2:g} exceed {threshold:g}.")
    return omega


# ════════════════════════════════════════════════════════════════════════════
#  Internal Helpers
# ════════════════════════════════════════════════════════════════════════════

def _quaternion_derivatives(q0, q1, q2, q3, rate, acceleration):
    """q̇ = ½·q ⊗ ω and q̈ = ½·(q̇ ⊗ ω + q ⊗ ω̇)."""
    o_x, o_y, o_z = components(rate)
    o_x_dot, o_y_dot, o_z_dot = components(acceleration)

    q0_dot = 0.5 * (-q1 * o_x - q2 * o_y - q3 * o_z)
    q1_dot = 0.5 * (q0 * o_x - q3 * o_y + q2 * o_z)
    q2_dot = 0.5 * (q3 * o_x + q0 * o_y - q1 * o_z)
    q3_dot = 0.5 * (-q2 * o_x + q1 * o_y + q0 * o_z)

    q0_dd = -0.5 * (q1 * o_x_dot + q2 * o_y_dot + q3 * o_z_dot
                    + q1_dot * o_x + q2_dot * o_y + q3_dot * o_z)
    q1_dd = 0.5 * (q0 * o_x_dot + q2 * o_z_dot - q3 * o_y_dot
                   + q0_dot * o_x + q2_dot * o_z - q3_dot * o_y)
    q2_dd = 0.5 * (q0 * o_y_dot + q3 * o_x_dot - q1 * o_z_dot
                   + q0_dot * o_y + q3_dot * o_x - q1_dot * o_z)
    q3_dd = 0.5 * (q0 * o_z_dot + q1 * o_y_dot - q2 * o_x_dot
                   + q0_dot * o_z + q1_dot * o_y - q2_dot * o_x)
    return q0_dot, q1_dot, q2_dot, q3_dot, q0_dd, q1_dd, q2_dd, q3_dd


def _rate_from_quaternion(q0, q1, q2, q3, d0, d1, d2, d3) -> NDArray:
    """ω = 2·vec(q̄ ⊗ q̇); applied to q̈ it yields ω̇."""
    return vector(2.0 * (-q1 * d0 + q0 * d1 + q3 * d2 - q2 * d3),
                  2.0 * (-q2 * d0 - q3 * d1 + q0 * d2 + q1 * d3),
                  2.0 * (-q3 * d0 + q2 * d1 - q1 * d2 + q0 * d3))


def _check_rigidity(u1, u2, v1, v2, tolerance: float):
    """Norms and mutual angle must be preserved between the two frames."""
    for label, u, v in (("first", u1, v1), ("second", u2, v2)):
        un, vn = value_of(norm(u)), value_of(norm(v))
        if abs(un - vn) > tolerance * max(un, vn):
            raise InconsistentObservationsError(
                f"Norm of the {label} vector differs between frames: {un:g} vs {vn:g}.")
    alpha_u = angle_between(u1, u2)
    alpha_v = angle_between(v1, v2)
    if abs(alpha_u - alpha_v) > tolerance:
        raise InconsistentObservationsError(
            f"Angle between the observed vectors differs between frames: "
            f"{alpha_u:.12g} vs {alpha_v:.12g} rad.")
