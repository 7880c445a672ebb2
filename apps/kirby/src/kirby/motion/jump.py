from __future__ import annotations

import logging
import math

from kirby.motion.clips import ClipLibrary, ClipLoop
from kirby.motion.config import JumpConfig

logger = logging.getLogger(__name__)


class JumpMotion:
    """Vertical half-sine hop over a fixed duration."""

    def __init__(self, *, cfg: JumpConfig, clips: ClipLibrary | None = None) -> None:
        self.cfg = cfg
        self._clips = clips
        self.active = False
        self.start_time = 0.0

    def trigger(self, now: float, *, walk_active: bool = False) -> bool:
        if self.active or walk_active:
            logger.debug("jump rejected (active=%s walk_active=%s)", self.active, walk_active)
            return False
        self.start_time = float(now)
        self.active = True
        if self._clips is not None:
            self._clips.play(
                self._clips.resolve("jump"),
                loop=ClipLoop.ONCE,
                fade_in=self.cfg.clip_fade_in,
                clamp_when_finished=True,
            )
        logger.debug("jump started at %.3f", self.start_time)
        return True

    def progress(self, now: float) -> float:
        duration = float(self.cfg.duration)
        if duration <= 0.0:
            return 1.0
        return max(0.0, min(1.0, (float(now) - self.start_time) / duration))

    def update(self, now: float, base_height: float) -> float:
        p = self.progress(now)
        if p >= 1.0:
            # Exact landing; sampled frames never leave residual height.
            self.active = False
            return float(base_height)
        return float(base_height) + float(self.cfg.height) * math.sin(math.pi * p)
