from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from panda3d.core import LQuaternionf, NodePath

from kirby.motion.clips import ClipHandle, ClipLibrary, ClipLoop
from kirby.motion.config import WalkConfig
from kirby.motion.orientation import FACE_LEFT_YAW_DEG, FACE_RIGHT_YAW_DEG, slerp, yawed

logger = logging.getLogger(__name__)

# Being this close to an endpoint counts as standing on it.
ENDPOINT_TOLERANCE = 1e-3
# A snapped target closer than this to the start counts as "no displacement".
SNAP_COLLAPSE_EPS = 1e-9
MIN_ARRIVAL_EPS = 1e-4


class WalkState(str, Enum):
    IDLE = "idle"
    TURNING_AWAY = "turning_away"
    MOVING = "moving"
    TURNING_BACK = "turning_back"
    DONE = "done"


@dataclass
class WalkSession:
    target_x: float
    base_orientation: LQuaternionf
    state: WalkState = WalkState.IDLE
    turn_start: float = 0.0
    turn_from: LQuaternionf = field(default_factory=LQuaternionf)
    turn_to: LQuaternionf = field(default_factory=LQuaternionf)
    move_start_x: float = 0.0
    clip: ClipHandle | None = None


def _sign(v: float) -> float:
    if v > 0.0:
        return 1.0
    if v < 0.0:
        return -1.0
    return 0.0


def arrival_epsilon(step_size: float) -> float:
    return max(MIN_ARRIVAL_EPS, float(step_size) * 0.25 if step_size > 0.0 else 0.0)


def choose_walk_target(current_x: float, cfg: WalkConfig) -> float:
    """
    Pick the next x to walk to.

    On (or next to) one endpoint: the other one. Anywhere else: the farther endpoint.
    Without a usable endpoint pair: nudge by `forward_distance`.
    """

    x = float(current_x)
    if not cfg.has_endpoints:
        fwd = float(cfg.forward_distance)
        return x + _sign(fwd) * abs(fwd)

    left = float(cfg.left_x)
    right = float(cfg.right_x)
    dist_l = abs(x - left)
    dist_r = abs(x - right)
    if dist_l < ENDPOINT_TOLERANCE:
        return right
    if dist_r < ENDPOINT_TOLERANCE:
        return left
    return right if dist_l < dist_r else left


def snap_walk_target(current_x: float, target_x: float, cfg: WalkConfig) -> float:
    step = float(cfg.step_size)
    if step <= 0.0:
        return float(target_x)

    x = float(current_x)
    direction = _sign(float(target_x) - x) or 1.0
    snapped = round(float(target_x) / step) * step
    if cfg.has_endpoints:
        # Endpoints off the grid stay reachable instead of being rounded past.
        lo = min(float(cfg.left_x), float(cfg.right_x))
        hi = max(float(cfg.left_x), float(cfg.right_x))
        snapped = max(lo, min(hi, snapped))
    if abs(snapped - x) < SNAP_COLLAPSE_EPS:
        return x + direction * step
    return snapped


def advance_toward(current_x: float, target_x: float, *, distance: float, step_size: float) -> float:
    """
    One frame of travel from `current_x` toward `target_x`.

    Never passes the target. On a step grid the result lands on the next grid line in
    the direction of travel, and always advances at least one full step (or to the target).
    """

    x = float(current_x)
    target = float(target_x)
    direction = _sign(target - x) or 1.0
    remaining = abs(target - x)
    step = min(max(0.0, float(distance)), remaining)
    new_x = x + direction * step

    grid = float(step_size)
    if grid > 0.0:
        if direction > 0.0:
            snapped = min(target, math.ceil(new_x / grid) * grid)
        else:
            snapped = max(target, math.floor(new_x / grid) * grid)

        if abs(snapped - x) < arrival_epsilon(grid):
            forced = x + direction * grid
            new_x = min(forced, target) if direction > 0.0 else max(forced, target)
        else:
            new_x = snapped
    return new_x


class WalkMotion:
    """
    Turn to face a horizontal target, walk there, and optionally turn back to the rest pose.

    Idle -> TurningAway -> Moving -> (TurningBack ->) Done -> Idle
    """

    def __init__(
        self,
        *,
        cfg: WalkConfig,
        clips: ClipLibrary | None = None,
        on_state: Callable[[WalkState], None] | None = None,
    ) -> None:
        self.cfg = cfg
        self._clips = clips
        self._on_state = on_state
        self.session: WalkSession | None = None

    @property
    def active(self) -> bool:
        return self.session is not None

    @property
    def state(self) -> WalkState:
        return self.session.state if self.session is not None else WalkState.IDLE

    def trigger(
        self,
        now: float,
        root: NodePath,
        base_orientation: LQuaternionf,
        *,
        jump_active: bool = False,
    ) -> bool:
        if self.session is not None or jump_active:
            logger.debug("walk rejected (state=%s jump_active=%s)", self.state.value, jump_active)
            return False

        current_x = float(root.getX())
        target_x = snap_walk_target(current_x, choose_walk_target(current_x, self.cfg), self.cfg)
        yaw_deg = FACE_RIGHT_YAW_DEG if target_x > current_x else FACE_LEFT_YAW_DEG

        self.session = WalkSession(
            target_x=target_x,
            base_orientation=LQuaternionf(base_orientation),
            turn_start=float(now),
            turn_from=LQuaternionf(root.getQuat()),
            turn_to=yawed(base_orientation, yaw_deg),
            move_start_x=current_x,
        )
        logger.debug("walk started: x=%.4f -> %.4f", current_x, target_x)
        self._enter(WalkState.TURNING_AWAY)
        return True

    def update(self, now: float, dt: float, root: NodePath) -> None:
        s = self.session
        if s is None:
            return

        if s.state == WalkState.TURNING_AWAY:
            if self._turn(now, root):
                s.move_start_x = float(root.getX())
                if self._clips is not None:
                    s.clip = self._clips.resolve("walk")
                    self._clips.play(
                        s.clip,
                        loop=ClipLoop.REPEAT,
                        fade_in=self.cfg.clip_fade_in,
                        time_scale=self.cfg.clip_speed,
                        clamp_when_finished=False,
                    )
                self._enter(WalkState.MOVING)
        elif s.state == WalkState.MOVING:
            self._move(now, dt, root)
        elif s.state == WalkState.TURNING_BACK:
            if self._turn(now, root):
                self._enter(WalkState.DONE)

        if s.state == WalkState.DONE:
            self.session = None
            self._notify(WalkState.IDLE)

    def _turn(self, now: float, root: NodePath) -> bool:
        s = self.session
        duration = float(self.cfg.turn_duration)
        p = 1.0 if duration <= 0.0 else max(0.0, min(1.0, (float(now) - s.turn_start) / duration))
        root.setQuat(slerp(s.turn_from, s.turn_to, p))
        return p >= 1.0

    def _move(self, now: float, dt: float, root: NodePath) -> None:
        s = self.session
        new_x = advance_toward(
            float(root.getX()),
            s.target_x,
            distance=self.cfg.walk_speed * max(0.0, float(dt)),
            step_size=self.cfg.step_size,
        )
        root.setX(new_x)

        if abs(s.target_x - new_x) > arrival_epsilon(self.cfg.step_size):
            return

        root.setX(s.target_x)
        if self._clips is not None:
            self._clips.stop(s.clip, fade_out=self.cfg.clip_fade_out)
        if self.cfg.return_to_front:
            s.turn_from = LQuaternionf(root.getQuat())
            s.turn_to = LQuaternionf(s.base_orientation)
            s.turn_start = float(now)
            self._enter(WalkState.TURNING_BACK)
        else:
            self._enter(WalkState.DONE)

    def _enter(self, state: WalkState) -> None:
        self.session.state = state
        self._notify(state)

    def _notify(self, state: WalkState) -> None:
        logger.debug("walk state -> %s", state.value)
        if self._on_state is not None:
            self._on_state(state)
