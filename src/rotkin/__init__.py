"""
rotkin — Rotational Kinematics Library
======================================

A NumPy library for the time-varying orientation of one reference frame
with respect to another: rotation, angular rate and angular acceleration,
with the operations needed to compose, invert, propagate, interpolate and
reconstruct such states.

Building Blocks
---------------

**Scalars** (``rotkin.jets``)
  - Plain reals, or ``Jet`` derivative structures carrying exact time
    derivatives up to second order.  Every algorithm runs on both.

**Rotation** (``rotkin.rotation``)
  - Unit quaternion, active vector operator, right-to-left composition.

**KinematicState** (``rotkin.coordinates``)
  - (R, ω, ω̇) of frame B w.r.t. frame A, ω and ω̇ expressed in B.
  - Composition / reversion, constant-acceleration propagation,
    Modified Rodrigues transform, reconstruction from two observed
    vector pairs, transport of position / velocity / acceleration triples.

**TimeStampedKinematicState** (``rotkin.timestamped``)
  - Dated state, Hermite interpolation through Modified Rodrigues vectors.

**KinematicEphemeris** (``rotkin.ephemeris``)
  - Sorted samples with nearest-neighbour interpolation.

Frame Convention
----------------
``R`` maps coordinates in A onto coordinates in B; a vector fixed in A
appears to rotate by −ω in B::

    v_B = R · v_A − ω × (R · p_A)
"""

from .errors import (
    RotkinError,
    DegenerateConfigurationError,
    InconsistentObservationsError,
    UnrepresentableRotationError,
    UnsupportedOrderError,
    NotEnoughDataError,
    InterpolationSingularityError,
)

from .jets import (
    Jet, MAX_DERIVATION_ORDER, value_of, order_of, is_jet,
)

from .utils import (
    # ── Constants ──
    OMEGA_EARTH, J2000_JD,
    EPS_NORM, RODRIGUES_SINGULARITY, INTERPOLATION_MARGIN,
    PLUS_I, PLUS_J, PLUS_K,
    # ── Vectors ──
    vector, as_vector, dot, cross, norm, normalize, linear_combination,
    angle_between,
    # ── Time ──
    duration, shift_time, julian_date, datetime_to_jd, gmst,
)

from .rotation import Rotation

from .pv import VectorTriple

from .coordinates import KinematicState, inverse_cross_products

from .timestamped import (
    DerivativesFilter, TimeStampedKinematicState, interpolate,
)

from .ephemeris import KinematicEphemeris

from .frames import (
    uniform_rotation, earth_rotation_state,
    apply_to_batch, transport_jacobian, transform_covariance,
)

__version__ = "0.1.0"
