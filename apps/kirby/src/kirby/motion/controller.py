from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass

from panda3d.core import ClockObject, LPoint3f, LQuaternionf, NodePath

from kirby.motion.clips import ClipLibrary
from kirby.motion.config import MotionTuning, derive_jump_config, derive_walk_config
from kirby.motion.jump import JumpMotion
from kirby.motion.orientation import facing_orientation
from kirby.motion.triggers import TriggerLatch
from kirby.motion.walk import WalkMotion, WalkState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Baseline:
    """Rest pose captured once per character; every "return to rest" targets it."""

    height: float
    orientation: LQuaternionf


def _global_frame_time() -> float:
    return float(ClockObject.getGlobalClock().getFrameTime())


class MotionController:
    """
    Owns the character root transform and arbitrates between jump and walk.

    The host calls `on_frame(now, dt)` once per rendered frame and the trigger methods
    from input handlers. At most one motion is active at any time; a trigger arriving
    while either motion runs is dropped.
    """

    def __init__(
        self,
        *,
        root: NodePath,
        tuning: MotionTuning | None = None,
        clips: ClipLibrary | None = None,
        clock: Callable[[], float] | None = None,
        on_walk_state: Callable[[WalkState], None] | None = None,
    ) -> None:
        self.root = root
        self.tuning = tuning if tuning is not None else MotionTuning()
        self.clips = clips if clips is not None else ClipLibrary()
        self._clock = clock if clock is not None else _global_frame_time
        self._baseline: Baseline | None = None

        self.jump = JumpMotion(cfg=derive_jump_config(tuning=self.tuning), clips=self.clips)
        self.walk = WalkMotion(cfg=derive_walk_config(tuning=self.tuning), clips=self.clips, on_state=on_walk_state)
        self._jump_latch = TriggerLatch()
        self._walk_latch = TriggerLatch()

    @property
    def baseline(self) -> Baseline | None:
        return self._baseline

    @property
    def jump_active(self) -> bool:
        return self.jump.active

    @property
    def walk_state(self) -> WalkState:
        return self.walk.state

    @property
    def busy(self) -> bool:
        return self.jump.active or self.walk.active

    def capture_baseline(self, reference_point: LPoint3f) -> Baseline:
        if self._baseline is not None:
            return self._baseline
        orientation = facing_orientation(
            position=LPoint3f(self.root.getPos()),
            reference_point=LPoint3f(reference_point),
            pitch_deg=float(self.tuning.baseline_pitch_deg),
        )
        self.root.setQuat(orientation)
        self._baseline = Baseline(height=float(self.root.getZ()), orientation=LQuaternionf(orientation))
        logger.debug("baseline captured: height=%.3f", self._baseline.height)
        return self._baseline

    def trigger_jump(self, now: float | None = None) -> bool:
        if self._baseline is None:
            logger.debug("jump dropped: baseline not captured yet")
            return False
        return self.jump.trigger(self._now(now), walk_active=self.walk.active)

    def trigger_walk(self, now: float | None = None) -> bool:
        if self._baseline is None:
            logger.debug("walk dropped: baseline not captured yet")
            return False
        return self.walk.trigger(
            self._now(now),
            self.root,
            self._baseline.orientation,
            jump_active=self.jump.active,
        )

    def observe_jump_token(self, token: Hashable | None, now: float | None = None) -> bool:
        if not self._jump_latch.observe(token):
            return False
        return self.trigger_jump(now)

    def observe_walk_token(self, token: Hashable | None, now: float | None = None) -> bool:
        if not self._walk_latch.observe(token):
            return False
        return self.trigger_walk(now)

    def on_frame(self, now: float, dt: float) -> None:
        self.clips.update(dt)
        base = self._baseline
        if base is None:
            return
        if self.jump.active:
            self.root.setZ(self.jump.update(now, base.height))
        elif self.walk.active:
            self.walk.update(now, dt, self.root)

    def _now(self, now: float | None) -> float:
        return float(now) if now is not None else float(self._clock())
