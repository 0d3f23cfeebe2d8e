"""
rotkin.rotation — Unit-Quaternion Rotation Algebra
==================================================

Immutable rotations stored as quaternions ``(q0, q1, q2, q3)`` whose
components are plain reals or jets.

Convention
----------
``apply_to`` is an active vector operator: ``from_axis_angle(axis, θ)``
turns vectors by ``+θ`` around ``axis`` (right-hand rule).  The stored
quaternion is the conjugate of the textbook operator quaternion, so that
for a vector ``u``::

    apply_to(u) = q̄ ⊗ u ⊗ q
                = 2·[q0·(q0·u − q×u) + (q·u)·q] − u

A rotation ``R`` describing the orientation of frame B with respect to
frame A maps coordinates expressed in A onto coordinates expressed in B.

Composition reads right to left: ``r1.compose(r2)`` applies ``r2`` first
then ``r1``.  The quaternion ``q`` and ``−q`` describe the same rotation;
``distance`` and ``angle`` are insensitive to that sign.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .errors import DegenerateConfigurationError
from .jets import Jet, arccos, arcsin, cos, sin, sqrt, value_of
from .utils import (
    EPS_NORM, PLUS_I, as_vector, components, cross, norm, norm_sq, scale, vector,
)


def _scalar(x):
    return x if isinstance(x, Jet) else float(x)


@dataclass(frozen=True, eq=False)
class Rotation:
    """Rotation as a unit quaternion (scalar part first)."""
    q0: object   # scalar part
    q1: object
    q2: object
    q3: object

    def __post_init__(self):
        for name in ("q0", "q1", "q2", "q3"):
            object.__setattr__(self, name, _scalar(getattr(self, name)))

    # ── Factories ──

    @classmethod
    def identity(cls) -> "Rotation":
        return cls(1.0, 0.0, 0.0, 0.0)

    @classmethod
    def normalized(cls, q0, q1, q2, q3) -> "Rotation":
        """Build a rotation from a quaternion of arbitrary non-zero norm."""
        n2 = q0 * q0 + q1 * q1 + q2 * q2 + q3 * q3
        if value_of(n2) < EPS_NORM:
            raise DegenerateConfigurationError("Cannot build a rotation from a zero quaternion.")
        inv = 1.0 / sqrt(n2)
        return cls(inv * q0, inv * q1, inv * q2, inv * q3)

    @classmethod
    def from_axis_angle(cls, axis, angle) -> "Rotation":
        """Rotation turning vectors by ``angle`` [rad] around ``axis``.

        Parameters
        ----------
        axis : (3,) array — rotation axis, any non-zero norm
        angle : float or Jet — rotation angle [rad]
        """
        axis = as_vector(axis)
        n = norm(axis)
        if value_of(n) < EPS_NORM:
            raise DegenerateConfigurationError("Rotation axis has zero norm.")
        half = -0.5 * angle
        coeff = sin(half) / n
        q = scale(coeff, axis)
        return cls(cos(half), q[0], q[1], q[2])

    @classmethod
    def from_matrix(cls, m) -> "Rotation":
        """Rotation from an orthonormal (3,3) matrix such that ``apply_to(u) = m @ u``.

        The quaternion component with the largest magnitude is extracted
        first to keep the division well conditioned.
        """
        m = np.asarray(m, dtype=object if any(isinstance(c, Jet) for c in np.ravel(m)) else np.float64)
        if m.shape != (3, 3):
            raise ValueError(f"Expected a (3,3) matrix, got shape {m.shape}.")
        m00, m01, m02 = components(m[0])
        m10, m11, m12 = components(m[1])
        m20, m21, m22 = components(m[2])
        trace = m00 + m11 + m22
        pick = int(np.argmax([value_of(trace), value_of(m00), value_of(m11), value_of(m22)]))
        if pick == 0:
            q0 = 0.5 * sqrt(trace + 1.0)
            inv = 0.25 / q0
            return cls(q0, inv * (m12 - m21), inv * (m20 - m02), inv * (m01 - m10))
        if pick == 1:
            q1 = 0.5 * sqrt(1.0 + m00 - m11 - m22)
            inv = 0.25 / q1
            return cls(inv * (m12 - m21), q1, inv * (m01 + m10), inv * (m02 + m20))
        if pick == 2:
            q2 = 0.5 * sqrt(1.0 - m00 + m11 - m22)
            inv = 0.25 / q2
            return cls(inv * (m20 - m02), inv * (m01 + m10), q2, inv * (m12 + m21))
        q3 = 0.5 * sqrt(1.0 - m00 - m11 + m22)
        inv = 0.25 / q3
        return cls(inv * (m01 - m10), inv * (m02 + m20), inv * (m12 + m21), q3)

    @classmethod
    def from_vector_pairs(cls, u1, u2, v1, v2) -> "Rotation":
        """TRIAD rotation mapping the pair (u1, u2) onto the pair (v1, v2).

        ``u1`` is mapped exactly onto the direction of ``v1`` and the plane
        spanned by ``(u1, u2)`` onto the plane spanned by ``(v1, v2)``.
        Vector norms are irrelevant.

        Raises
        ------
        DegenerateConfigurationError — a vector is zero or a pair is collinear
        """
        a = _triad(as_vector(u1), as_vector(u2), "u")
        b = _triad(as_vector(v1), as_vector(v2), "v")
        m = np.empty((3, 3), dtype=object)
        for i in range(3):
            for j in range(3):
                m[i, j] = b[0][i] * a[0][j] + b[1][i] * a[1][j] + b[2][i] * a[2][j]
        return cls.from_matrix(m)

    # ── Algebra ──

    def compose(self, other: "Rotation") -> "Rotation":
        """Rotation applying ``other`` first, then ``self``."""
        q0, q1, q2, q3 = self.q0, self.q1, self.q2, self.q3
        r0, r1, r2, r3 = other.q0, other.q1, other.q2, other.q3
        return Rotation(r0 * q0 - (r1 * q1 + r2 * q2 + r3 * q3),
                        r1 * q0 + r0 * q1 + (r2 * q3 - r3 * q2),
                        r2 * q0 + r0 * q2 + (r3 * q1 - r1 * q3),
                        r3 * q0 + r0 * q3 + (r1 * q2 - r2 * q1))

    def compose_inverse(self, other: "Rotation") -> "Rotation":
        """Rotation applying ``other`` first, then the inverse of ``self``."""
        return self.revert().compose(other)

    def revert(self) -> "Rotation":
        """Inverse rotation."""
        return Rotation(-self.q0, self.q1, self.q2, self.q3)

    def negate(self) -> "Rotation":
        """Same rotation, opposite quaternion sign."""
        return Rotation(-self.q0, -self.q1, -self.q2, -self.q3)

    def apply_to(self, u) -> NDArray:
        """Rotate a 3-vector."""
        return _apply(self.q0, self.q1, self.q2, self.q3, u)

    def apply_inverse_to(self, u) -> NDArray:
        """Rotate a 3-vector by the inverse rotation."""
        return _apply(-self.q0, self.q1, self.q2, self.q3, u)

    # ── Accessors ──

    @property
    def quaternion(self) -> NDArray:
        """(4,) array [q0, q1, q2, q3]."""
        q = (self.q0, self.q1, self.q2, self.q3)
        if any(isinstance(c, Jet) for c in q):
            out = np.empty(4, dtype=object)
            out[:] = q
            return out
        return np.array(q, dtype=np.float64)

    @property
    def is_jet(self) -> bool:
        return any(isinstance(c, Jet) for c in (self.q0, self.q1, self.q2, self.q3))

    @property
    def angle(self):
        """Rotation angle in [0, π] [rad]."""
        q0 = value_of(self.q0)
        if q0 < -0.1 or q0 > 0.1:
            return 2.0 * arcsin(sqrt(self.q1 * self.q1 + self.q2 * self.q2 + self.q3 * self.q3))
        if q0 < 0:
            return 2.0 * arccos(-self.q0)
        return 2.0 * arccos(self.q0)

    @property
    def axis(self) -> NDArray:
        """Unit rotation axis, oriented so that ``from_axis_angle(axis, angle)`` rebuilds self.

        An arbitrary axis (+X) is returned for the identity.
        """
        q = vector(self.q1, self.q2, self.q3)
        squared_sine = norm_sq(q)
        if value_of(squared_sine) == 0.0:
            return PLUS_I.copy()
        sgn = 1.0 if value_of(self.q0) < 0 else -1.0
        return scale(sgn / sqrt(squared_sine), q)

    def matrix(self) -> NDArray:
        """(3,3) matrix ``m`` with ``apply_to(u) = m @ u``."""
        q0, q1, q2, q3 = self.q0, self.q1, self.q2, self.q3
        q0q0, q0q1, q0q2, q0q3 = q0 * q0, q0 * q1, q0 * q2, q0 * q3
        q1q1, q1q2, q1q3 = q1 * q1, q1 * q2, q1 * q3
        q2q2, q2q3, q3q3 = q2 * q2, q2 * q3, q3 * q3
        rows = [
            [2.0 * (q0q0 + q1q1) - 1.0, 2.0 * (q1q2 + q0q3), 2.0 * (q1q3 - q0q2)],
            [2.0 * (q1q2 - q0q3), 2.0 * (q0q0 + q2q2) - 1.0, 2.0 * (q2q3 + q0q1)],
            [2.0 * (q1q3 + q0q2), 2.0 * (q2q3 - q0q1), 2.0 * (q0q0 + q3q3) - 1.0],
        ]
        if self.is_jet:
            m = np.empty((3, 3), dtype=object)
            for i in range(3):
                for j in range(3):
                    m[i, j] = rows[i][j]
            return m
        return np.array(rows, dtype=np.float64)

    def to_float(self) -> "Rotation":
        """Drop derivative content, keeping the values."""
        return Rotation(value_of(self.q0), value_of(self.q1), value_of(self.q2), value_of(self.q3))

    @staticmethod
    def distance(r1: "Rotation", r2: "Rotation"):
        """Angle [rad] of the rotation taking r1 to r2."""
        return r1.compose_inverse(r2).angle

    def __repr__(self):
        return f"Rotation({self.q0!r}, {self.q1!r}, {self.q2!r}, {self.q3!r})"


# ════════════════════════════════════════════════════════════════════════════
#  Internal Helpers
# ════════════════════════════════════════════════════════════════════════════

def _apply(q0, q1, q2, q3, u) -> NDArray:
    ux, uy, uz = components(u)
    s = q1 * ux + q2 * uy + q3 * uz
    return vector(2.0 * (q0 * (q0 * ux - (q2 * uz - q3 * uy)) + s * q1) - ux,
                  2.0 * (q0 * (q0 * uy - (q3 * ux - q1 * uz)) + s * q2) - uy,
                  2.0 * (q0 * (q0 * uz - (q1 * uy - q2 * ux)) + s * q3) - uz)


def _triad(w1: NDArray, w2: NDArray, label: str):
    """Orthonormal basis (e1, e2, e3) with e1 ∥ w1 and e3 ∥ w1 × w2."""
    n1 = norm(w1)
    n2 = norm(w2)
    if value_of(n1) < EPS_NORM or value_of(n2) < EPS_NORM:
        raise DegenerateConfigurationError(f"Zero-norm vector in the {label} pair.")
    w3 = cross(w1, w2)
    n3 = norm(w3)
    if value_of(n3) <= EPS_NORM * value_of(n1) * value_of(n2):
        raise DegenerateConfigurationError(f"Vectors of the {label} pair are collinear.")
    e1 = scale(1.0 / n1, w1)
    e3 = scale(1.0 / n3, w3)
    e2 = cross(e3, e1)
    return components(e1), components(e2), components(e3)
