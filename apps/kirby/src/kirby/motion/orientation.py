from __future__ import annotations

import math

from panda3d.core import LPoint3f, LQuaternionf, LVector3f, NodePath

# Heading offsets (degrees about world up) that turn the rest pose toward the direction of travel.
FACE_RIGHT_YAW_DEG = 90.0
FACE_LEFT_YAW_DEG = -90.0


def yaw_quat(yaw_deg: float) -> LQuaternionf:
    q = LQuaternionf()
    q.setFromAxisAngle(float(yaw_deg), LVector3f.up())
    return q


def yawed(base: LQuaternionf, yaw_deg: float) -> LQuaternionf:
    """Return `base` turned by `yaw_deg` about world up (yaw applied after the base rotation)."""

    # Panda3D composes left-to-right: `a * b` applies `a` first.
    return LQuaternionf(base * yaw_quat(yaw_deg))


def slerp(q0: LQuaternionf, q1: LQuaternionf, t: float) -> LQuaternionf:
    t = max(0.0, min(1.0, float(t)))
    if t <= 0.0:
        return LQuaternionf(q0)
    if t >= 1.0:
        return LQuaternionf(q1)

    a = (q0.getR(), q0.getI(), q0.getJ(), q0.getK())
    b = [q1.getR(), q1.getI(), q1.getJ(), q1.getK()]
    dot = sum(x * y for x, y in zip(a, b))
    # Take the short arc.
    if dot < 0.0:
        b = [-x for x in b]
        dot = -dot

    if dot > 0.9995:
        w0 = 1.0 - t
        w1 = t
    else:
        theta = math.acos(min(1.0, dot))
        s = math.sin(theta)
        w0 = math.sin((1.0 - t) * theta) / s
        w1 = math.sin(t * theta) / s

    out = LQuaternionf(*(w0 * x + w1 * y for x, y in zip(a, b)))
    out.normalize()
    return out


def facing_orientation(*, position: LPoint3f, reference_point: LPoint3f, pitch_deg: float) -> LQuaternionf:
    """
    Orientation that faces `reference_point` from `position`, then pitches by `pitch_deg` about its own right axis.
    """

    probe = NodePath("baseline-probe")
    probe.setPos(position)
    probe.lookAt(reference_point)
    probe.setP(probe, float(pitch_deg))
    return LQuaternionf(probe.getQuat())
