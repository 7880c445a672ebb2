from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class MotionTuning:
    # Jump arc: a single half-sine over `jump_duration` seconds.
    jump_height: float = 0.6
    jump_duration: float = 0.5
    # Walk alternates between these two x endpoints. Missing/equal endpoints fall back to `forward_distance`.
    left_x: float | None = -5.0
    right_x: float | None = 5.0
    forward_distance: float = 0.01
    walk_speed: float = 20.0
    turn_duration: float = 0.35
    # 0 disables grid snapping.
    step_size: float = 0.03
    return_to_front: bool = True
    # Rest pose: face the reference viewpoint, then pitch by this much (degrees, relative; negative tips the face down).
    baseline_pitch_deg: float = -15.0

    jump_fade_in: float = 0.10
    walk_fade_in: float = 0.10
    walk_fade_out: float = 0.12
    walk_clip_speed: float = 1.0


@dataclass(frozen=True)
class JumpConfig:
    height: float
    duration: float
    clip_fade_in: float


@dataclass(frozen=True)
class WalkConfig:
    left_x: float | None
    right_x: float | None
    forward_distance: float
    walk_speed: float
    turn_duration: float
    step_size: float
    return_to_front: bool
    clip_fade_in: float
    clip_fade_out: float
    clip_speed: float

    @property
    def has_endpoints(self) -> bool:
        return self.left_x is not None and self.right_x is not None and self.left_x != self.right_x


def _finite_or_none(value: float | None) -> float | None:
    if value is None:
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


def _non_negative(value: float | None, default: float = 0.0) -> float:
    v = _finite_or_none(value)
    if v is None:
        return float(default)
    return max(0.0, v)


def derive_jump_config(*, tuning: MotionTuning) -> JumpConfig:
    return JumpConfig(
        height=_finite_or_none(tuning.jump_height) or 0.0,
        duration=_non_negative(tuning.jump_duration),
        clip_fade_in=_non_negative(tuning.jump_fade_in),
    )


def derive_walk_config(*, tuning: MotionTuning) -> WalkConfig:
    """
    Build the immutable per-session walk config from persisted tuning fields.

    Degenerate values never raise: non-finite endpoints become None (forward-nudge
    fallback), negative speeds/durations/steps clamp to 0, and missing or non-numeric
    values fall back to 0 (walk speed and clip speed to their tuning defaults).
    """

    forward = _finite_or_none(tuning.forward_distance) or 0.0
    return WalkConfig(
        left_x=_finite_or_none(tuning.left_x),
        right_x=_finite_or_none(tuning.right_x),
        forward_distance=forward,
        walk_speed=max(0.01, _non_negative(tuning.walk_speed, MotionTuning.walk_speed)),
        turn_duration=_non_negative(tuning.turn_duration),
        step_size=_non_negative(tuning.step_size),
        return_to_front=bool(tuning.return_to_front),
        clip_fade_in=_non_negative(tuning.walk_fade_in),
        clip_fade_out=_non_negative(tuning.walk_fade_out),
        clip_speed=_non_negative(tuning.walk_clip_speed, MotionTuning.walk_clip_speed),
    )
