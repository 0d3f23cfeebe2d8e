"""
rotkin.pv — Position / Velocity / Acceleration Triples
======================================================

``VectorTriple`` bundles a 3-vector with its first two time derivatives.
It is the payload transported between frames by a kinematic state and
the observation type used to reconstruct a state from two vector pairs.

Triples support componentwise linear combination, the derivative-aware
cross product and normalization, and conversion to and from vectors of
jets (one jet per coordinate, time as the free variable).
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .errors import UnsupportedOrderError
from .jets import MAX_DERIVATION_ORDER, Jet, order_of, value_of
from .utils import (
    EPS_NORM, as_vector, components, cross, dot, linear_combination, norm, vector,
)


def _frozen(v) -> NDArray:
    out = as_vector(v).copy()
    out.flags.writeable = False
    return out


@dataclass(frozen=True, eq=False)
class VectorTriple:
    """(position, velocity, acceleration) in one frame.

    Parameters
    ----------
    position : (3,) array — vector value
    velocity : (3,) array — first time derivative (zero if omitted)
    acceleration : (3,) array — second time derivative (zero if omitted)
    """
    position: NDArray
    velocity: NDArray = None
    acceleration: NDArray = None

    def __post_init__(self):
        object.__setattr__(self, "position", _frozen(self.position))
        for name in ("velocity", "acceleration"):
            value = getattr(self, name)
            object.__setattr__(self, name, _frozen(np.zeros(3) if value is None else value))

    # ── Linear combination ──

    def __add__(self, other: "VectorTriple") -> "VectorTriple":
        return VectorTriple(self.position + other.position,
                            self.velocity + other.velocity,
                            self.acceleration + other.acceleration)

    def __sub__(self, other: "VectorTriple") -> "VectorTriple":
        return VectorTriple(self.position - other.position,
                            self.velocity - other.velocity,
                            self.acceleration - other.acceleration)

    def __neg__(self) -> "VectorTriple":
        return VectorTriple(-self.position, -self.velocity, -self.acceleration)

    def scaled(self, k: float) -> "VectorTriple":
        return VectorTriple(linear_combination(k, self.position),
                            linear_combination(k, self.velocity),
                            linear_combination(k, self.acceleration))

    @staticmethod
    def linear_combination(*terms) -> "VectorTriple":
        """Σ kᵢ·tᵢ for alternating (k₁, t₁, k₂, t₂, ...) arguments."""
        if len(terms) % 2:
            raise ValueError("linear_combination expects (coefficient, triple) pairs.")
        pairs = list(zip(terms[0::2], terms[1::2]))
        return VectorTriple(
            linear_combination(*[x for k, t in pairs for x in (k, t.position)]),
            linear_combination(*[x for k, t in pairs for x in (k, t.velocity)]),
            linear_combination(*[x for k, t in pairs for x in (k, t.acceleration)]),
        )

    # ── Derivative-aware products ──

    @staticmethod
    def cross_product(a: "VectorTriple", b: "VectorTriple") -> "VectorTriple":
        """Cross product of two time-dependent vectors with its derivatives."""
        return VectorTriple(
            cross(a.position, b.position),
            linear_combination(1.0, cross(a.velocity, b.position),
                               1.0, cross(a.position, b.velocity)),
            linear_combination(1.0, cross(a.acceleration, b.position),
                               2.0, cross(a.velocity, b.velocity),
                               1.0, cross(a.position, b.acceleration)),
        )

    def normalize(self) -> "VectorTriple":
        """Unit vector along the position, with its derivatives."""
        n = norm(self.position)
        if value_of(n) < EPS_NORM:
            raise ValueError("Cannot normalize a near-zero position.")
        inv = 1.0 / n
        u = linear_combination(inv, self.position)
        v = linear_combination(inv, self.velocity)
        w = linear_combination(inv, self.acceleration)
        uv = dot(u, v)
        v2 = dot(v, v)
        uw = dot(u, w)
        u_dot = linear_combination(1.0, v, -uv, u)
        u_dot_dot = linear_combination(1.0, w, -2.0 * uv, v, 3.0 * uv * uv - v2 - uw, u)
        return VectorTriple(u, u_dot, u_dot_dot)

    def shifted_by(self, dt: float) -> "VectorTriple":
        """Second-order Taylor shift (constant acceleration)."""
        return VectorTriple(
            linear_combination(1.0, self.position, dt, self.velocity, 0.5 * dt * dt, self.acceleration),
            linear_combination(1.0, self.velocity, dt, self.acceleration),
            self.acceleration,
        )

    # ── Jet conversion ──

    def to_jets(self, order: int) -> NDArray:
        """Position as a vector of jets carrying ``order`` time derivatives."""
        if order < 0 or order > MAX_DERIVATION_ORDER:
            raise UnsupportedOrderError(order, MAX_DERIVATION_ORDER)
        p, v, a = components(self.position), components(self.velocity), components(self.acceleration)
        return vector(*[Jet(*(value_of(p[i]), value_of(v[i]), value_of(a[i]))[:order + 1])
                        for i in range(3)])

    @classmethod
    def from_jets(cls, jets) -> "VectorTriple":
        """Inverse of ``to_jets``; derivatives beyond the jet order are zero."""
        p, v, a = [], [], []
        for c in jets:
            order = order_of(c) or 0
            p.append(value_of(c))
            v.append(c.derivative(1) if order >= 1 else 0.0)
            a.append(c.derivative(2) if order >= 2 else 0.0)
        return cls(np.array(p), np.array(v), np.array(a))

    def __repr__(self):
        return (f"VectorTriple(position={self.position!r}, velocity={self.velocity!r}, "
                f"acceleration={self.acceleration!r})")
