"""
example_attitude_analysis.py — Demonstration of the rotkin Library
==================================================================

Demonstrates kinematic-state composition, propagation, interpolation and
reconstruction for a slowly tumbling LEO spacecraft observed from both
the inertial (ECI) and the Earth-fixed (ECR) frames.
"""

import numpy as np

from rotkin import (
    # States
    Rotation, KinematicState, TimeStampedKinematicState, VectorTriple,
    # Interpolation
    DerivativesFilter, KinematicEphemeris,
    # Frames
    earth_rotation_state, transform_covariance,
    # Utils
    normalize, julian_date, OMEGA_EARTH, PLUS_K,
)


def main():
    print("=" * 70)
    print("  rotkin — Rotational Kinematics Library Demo")
    print("=" * 70)

    # ── 1. Earth Rotation ───────────────────────────────────────────────
    print("\n1. ECI → ECR KINEMATIC STATE")
    print("-" * 40)

    jd = julian_date(2026, 2, 24, 12, 0, 0)
    earth = earth_rotation_state(jd)
    r_eci = np.array([-4_453_783.0, 2_084_123.0, 4_743_341.0])
    v_eci = np.array([-3_424.9, -6_832.1, 1_213.7])
    ecr = earth.apply_to(VectorTriple(r_eci, v_eci))

    print(f"  GMST angle:       {np.rad2deg(earth.rotation.angle):.4f}°")
    print(f"  Rotation rate:    {earth.rate[2]:.7e} rad/s (ω_⊕ = {OMEGA_EARTH:.7e})")
    print(f"  Position (ECR):   [{ecr.position[0]/1e3:.1f}, {ecr.position[1]/1e3:.1f}, "
          f"{ecr.position[2]/1e3:.1f}] km")
    print(f"  Velocity (ECR):   [{ecr.velocity[0]/1e3:.3f}, {ecr.velocity[1]/1e3:.3f}, "
          f"{ecr.velocity[2]/1e3:.3f}] km/s")
    print(f"  |v| ECI vs ECR:   {np.linalg.norm(v_eci):.1f} vs "
          f"{np.linalg.norm(ecr.velocity):.1f} m/s")

    # ── 2. Spacecraft Attitude ──────────────────────────────────────────
    print("\n2. SPACECRAFT ATTITUDE (ECI → BODY)")
    print("-" * 40)

    attitude = KinematicState(
        Rotation.from_axis_angle(np.array([1.0, 1.0, 0.0]), np.deg2rad(30.0)),
        np.deg2rad(np.array([0.5, -0.2, 2.0])),       # deg/s → rad/s
        np.deg2rad(np.array([0.001, 0.0, -0.002])),   # deg/s² → rad/s²
    )
    # ECR → BODY: go back to ECI first, then to the body
    body_from_ecr = attitude.add_offset(earth.revert())

    print(f"  Attitude angle:          {np.rad2deg(attitude.rotation.angle):.3f}°")
    print(f"  Body rate w.r.t. ECI:    {np.rad2deg(attitude.rate)} deg/s")
    print(f"  Body rate w.r.t. ECR:    {np.rad2deg(body_from_ecr.rate)} deg/s")
    back = body_from_ecr.add_offset(earth)
    print(f"  Round trip error:        "
          f"{Rotation.distance(back.rotation, attitude.rotation):.2e} rad")

    # ── 3. Propagation ──────────────────────────────────────────────────
    print("\n3. CONSTANT-ACCELERATION PROPAGATION")
    print("-" * 40)

    for dt in (10.0, 60.0, 300.0):
        shifted = attitude.shifted_by(dt)
        turned = Rotation.distance(attitude.rotation, shifted.rotation)
        print(f"  dt = {dt:5.0f} s:  turned {np.rad2deg(turned):8.3f}°,  "
              f"|ω| = {np.rad2deg(np.linalg.norm(shifted.rate)):.4f} deg/s")

    # ── 4. Modified Rodrigues Vector ────────────────────────────────────
    print("\n4. MODIFIED RODRIGUES REPRESENTATION")
    print("-" * 40)

    rows = attitude.get_modified_rodrigues(1.0)
    for label, row in zip(("r  ", "ṙ  ", "r̈  "), rows):
        print(f"    {label}: [{row[0]:+.6e}, {row[1]:+.6e}, {row[2]:+.6e}]")
    rebuilt = KinematicState.create_from_modified_rodrigues(rows)
    print(f"  Round trip closeness:    {rebuilt.is_close(attitude, 1e-12)}")

    # ── 5. Ephemeris Interpolation ──────────────────────────────────────
    print("\n5. ATTITUDE EPHEMERIS (10 s samples over 2 min)")
    print("-" * 40)

    states = [TimeStampedKinematicState.from_state(t, attitude.shifted_by(t))
              for t in np.arange(0.0, 121.0, 10.0)]
    for filt in DerivativesFilter:
        eph = KinematicEphemeris(states, neighbors=4, derivatives_filter=filt)
        worst = 0.0
        for t in np.arange(5.0, 120.0, 10.0):
            found = eph.interpolate(t)
            worst = max(worst, Rotation.distance(found.rotation, attitude.shifted_by(t).rotation))
        print(f"  {filt.name:8s} max mid-sample error: {np.rad2deg(worst) * 3600:.3e} arcsec")

    # ── 6. Reconstruction From Two Observations ─────────────────────────
    print("\n6. STATE FROM TWO VECTOR OBSERVATIONS")
    print("-" * 40)

    # Sun and magnetic-field directions seen in ECI (slowly varying)
    sun = VectorTriple(normalize(np.array([0.3, 0.9, 0.2])),
                       np.array([2.0e-7, -1.0e-7, 0.0]))
    mag = VectorTriple(normalize(np.array([-0.5, 0.1, 0.85])),
                       np.array([1.0e-3, 0.0, 6.0e-4]),
                       np.array([0.0, -1.0e-6, 0.0]))
    sun_body, mag_body = attitude.apply_to(sun), attitude.apply_to(mag)
    found = KinematicState.from_vector_pairs(sun, mag, sun_body, mag_body)

    print(f"  Attitude error:          "
          f"{Rotation.distance(found.rotation, attitude.rotation):.2e} rad")
    print(f"  Rate error:              {np.linalg.norm(found.rate - attitude.rate):.2e} rad/s")
    print(f"  Acceleration error:      "
          f"{np.linalg.norm(found.acceleration - attitude.acceleration):.2e} rad/s²")

    # ── 7. Covariance Transport ─────────────────────────────────────────
    print("\n7. POSITION / VELOCITY COVARIANCE ECI → ECR")
    print("-" * 40)

    P_eci = np.diag([100.0**2, 100.0**2, 100.0**2, 0.1**2, 0.1**2, 0.1**2])
    P_ecr = transform_covariance(P_eci, earth)
    print(f"  Trace (ECI):   {np.trace(P_eci):.4e}")
    print(f"  Trace (ECR):   {np.trace(P_ecr):.4e}")
    print(f"  Max pos/vel coupling (ECR): {np.max(np.abs(P_ecr[:3, 3:])):.4e}")
    print(f"  Spin axis (ECR): {earth.rotation.apply_to(PLUS_K)}")

    print("\n" + "=" * 70)
    print("  Demo complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
