"""
rotkin.jets — Scalar Arithmetic Contract
========================================

The kinematics core is written once against a small scalar contract and
runs either on plain reals (``float`` / ``numpy.float64``) or on ``Jet``
instances, univariate derivative structures that carry a value together
with its first and second derivatives with respect to a single free
variable (time, in every use made by this package).

Jet Algebra
-----------
A jet of order *n* stores ``(f, f', ..., f⁽ⁿ⁾)`` with ``0 ≤ n ≤ 2``::

    (f·g)'   = f'g + fg'
    (f·g)''  = f''g + 2f'g' + fg''
    h(f)'    = h'(f)·f'
    h(f)''   = h''(f)·f'² + h'(f)·f''

Combining jets of different order truncates the result to the lower
order.  Plain numbers behave as jets of unlimited order with zero
derivatives.

Jets are immutable and carry no global state, so independent
computations never interfere.  Branch decisions in the core always look
at ``value_of(x)`` only.

Vectors of jets are ``(3,)`` NumPy arrays of ``object`` dtype; element-wise
array arithmetic dispatches to the jet operators below.
"""

import math
from numbers import Real

import numpy as np

from .errors import UnsupportedOrderError

MAX_DERIVATION_ORDER = 2


class Jet:
    """Value plus up to two derivatives with respect to one free variable.

    Parameters
    ----------
    value : float — function value
    *derivatives : float — first (and optionally second) derivative
    """

    __slots__ = ("_d",)

    def __init__(self, value, *derivatives):
        if len(derivatives) > MAX_DERIVATION_ORDER:
            raise UnsupportedOrderError(len(derivatives), MAX_DERIVATION_ORDER)
        self._d = (float(value),) + tuple(float(d) for d in derivatives)

    @classmethod
    def _from(cls, d):
        jet = cls.__new__(cls)
        jet._d = tuple(d)
        return jet

    @classmethod
    def constant(cls, value: float, order: int) -> "Jet":
        """Constant of the given order (all derivatives zero)."""
        _check_order(order)
        return cls(value, *([0.0] * order))

    @classmethod
    def variable(cls, value: float, order: int) -> "Jet":
        """The free variable itself, evaluated at ``value``."""
        _check_order(order)
        return cls(value, *[1.0, 0.0][:order])

    # ── Accessors ──

    @property
    def value(self) -> float:
        return self._d[0]

    @property
    def order(self) -> int:
        return len(self._d) - 1

    @property
    def derivatives(self) -> tuple:
        """All stored components, value first."""
        return self._d

    def derivative(self, k: int) -> float:
        """k-th derivative (0 returns the value)."""
        if k < 0 or k > self.order:
            raise UnsupportedOrderError(k, self.order)
        return self._d[k]

    def truncated(self, order: int) -> "Jet":
        _check_order(order)
        if order > self.order:
            raise UnsupportedOrderError(order, self.order)
        return Jet._from(self._d[:order + 1])

    def __repr__(self):
        return f"Jet({', '.join(repr(c) for c in self._d)})"

    # ── Internal helpers ──

    def _pair(self, other):
        """Aligned component tuples, or None if ``other`` is not a scalar."""
        if isinstance(other, Jet):
            n = min(self.order, other.order) + 1
            return self._d[:n], other._d[:n]
        if isinstance(other, Real):
            return self._d, (float(other),) + (0.0,) * self.order
        return None

    def _compose(self, g0, g1, g2):
        """Chain rule for a unary function with derivatives g0, g1, g2 at value."""
        d = self._d
        out = [g0]
        if len(d) > 1:
            out.append(g1 * d[1])
        if len(d) > 2:
            out.append(g2 * d[1] * d[1] + g1 * d[2])
        return Jet._from(out)

    # ── Arithmetic ──

    def __neg__(self):
        return Jet._from(-c for c in self._d)

    def __pos__(self):
        return self

    def __add__(self, other):
        p = self._pair(other)
        if p is None:
            return NotImplemented
        return Jet._from(a + b for a, b in zip(*p))

    __radd__ = __add__

    def __sub__(self, other):
        p = self._pair(other)
        if p is None:
            return NotImplemented
        return Jet._from(a - b for a, b in zip(*p))

    def __rsub__(self, other):
        p = self._pair(other)
        if p is None:
            return NotImplemented
        return Jet._from(b - a for a, b in zip(*p))

    def __mul__(self, other):
        p = self._pair(other)
        if p is None:
            return NotImplemented
        a, b = p
        out = [a[0] * b[0]]
        if len(a) > 1:
            out.append(a[1] * b[0] + a[0] * b[1])
        if len(a) > 2:
            out.append(a[2] * b[0] + 2.0 * a[1] * b[1] + a[0] * b[2])
        return Jet._from(out)

    __rmul__ = __mul__

    def __truediv__(self, other):
        if isinstance(other, Jet):
            return self * other.reciprocal()
        if isinstance(other, Real):
            return Jet._from(c / float(other) for c in self._d)
        return NotImplemented

    def __rtruediv__(self, other):
        if isinstance(other, Real):
            return self.reciprocal() * float(other)
        return NotImplemented

    # ── Elementary functions (also reached through numpy object ufuncs) ──

    def reciprocal(self):
        x = self._d[0]
        inv = 1.0 / x
        return self._compose(inv, -inv * inv, 2.0 * inv * inv * inv)

    def sqrt(self):
        x = self._d[0]
        s = math.sqrt(x)
        return self._compose(s, 0.5 / s, -0.25 / (s * x))

    def sin(self):
        s, c = math.sin(self._d[0]), math.cos(self._d[0])
        return self._compose(s, c, -s)

    def cos(self):
        s, c = math.sin(self._d[0]), math.cos(self._d[0])
        return self._compose(c, -s, -c)

    def tan(self):
        t = math.tan(self._d[0])
        g1 = 1.0 + t * t
        return self._compose(t, g1, 2.0 * t * g1)

    def arcsin(self):
        x = self._d[0]
        g1 = 1.0 / math.sqrt(1.0 - x * x)
        return self._compose(math.asin(x), g1, x * g1 * g1 * g1)

    def arccos(self):
        x = self._d[0]
        g1 = 1.0 / math.sqrt(1.0 - x * x)
        return self._compose(math.acos(x), -g1, -x * g1 * g1 * g1)

    def arctan(self):
        x = self._d[0]
        g1 = 1.0 / (1.0 + x * x)
        return self._compose(math.atan(x), g1, -2.0 * x * g1 * g1)

    def arctan2(self, x):
        """atan2(self, x) with self as the ordinate."""
        y = self
        if not isinstance(x, Jet):
            x = Jet.constant(float(x), y.order)
        n = min(y.order, x.order) + 1
        yd, xd = y._d[:n], x._d[:n]
        r2 = xd[0] * xd[0] + yd[0] * yd[0]
        out = [math.atan2(yd[0], xd[0])]
        if n > 1:
            num = xd[0] * yd[1] - yd[0] * xd[1]
            out.append(num / r2)
        if n > 2:
            r2dot = 2.0 * (xd[0] * xd[1] + yd[0] * yd[1])
            out.append((xd[0] * yd[2] - yd[0] * xd[2]) / r2 - num * r2dot / (r2 * r2))
        return Jet._from(out)


def _check_order(order: int):
    if order < 0 or order > MAX_DERIVATION_ORDER:
        raise UnsupportedOrderError(order, MAX_DERIVATION_ORDER)


# ════════════════════════════════════════════════════════════════════════════
#  Dispatchers — accept plain reals or jets
# ════════════════════════════════════════════════════════════════════════════

def is_jet(x) -> bool:
    return isinstance(x, Jet)


def value_of(x) -> float:
    """Real part of a scalar (the value of a jet, the float itself otherwise)."""
    return x.value if isinstance(x, Jet) else float(x)


def order_of(x) -> int | None:
    """Derivation order of a jet, None for plain reals."""
    return x.order if isinstance(x, Jet) else None


def sqrt(x):
    return x.sqrt() if isinstance(x, Jet) else np.sqrt(x)


def sin(x):
    return x.sin() if isinstance(x, Jet) else np.sin(x)


def cos(x):
    return x.cos() if isinstance(x, Jet) else np.cos(x)


def tan(x):
    return x.tan() if isinstance(x, Jet) else np.tan(x)


def arcsin(x):
    return x.arcsin() if isinstance(x, Jet) else np.arcsin(x)


def arccos(x):
    return x.arccos() if isinstance(x, Jet) else np.arccos(x)


def arctan(x):
    return x.arctan() if isinstance(x, Jet) else np.arctan(x)


def arctan2(y, x):
    if isinstance(y, Jet):
        return y.arctan2(x)
    if isinstance(x, Jet):
        return Jet.constant(float(y), x.order).arctan2(x)
    return np.arctan2(y, x)
