"""Procedural jump/walk motion layered over skeletal clips."""

from kirby.motion.clips import ClipHandle, ClipLibrary, ClipLoop
from kirby.motion.config import JumpConfig, MotionTuning, WalkConfig, derive_jump_config, derive_walk_config
from kirby.motion.controller import Baseline, MotionController
from kirby.motion.jump import JumpMotion
from kirby.motion.triggers import TriggerLatch
from kirby.motion.walk import WalkMotion, WalkSession, WalkState

__all__ = [
    "Baseline",
    "ClipHandle",
    "ClipLibrary",
    "ClipLoop",
    "JumpConfig",
    "JumpMotion",
    "MotionController",
    "MotionTuning",
    "TriggerLatch",
    "WalkConfig",
    "WalkMotion",
    "WalkSession",
    "WalkState",
    "derive_jump_config",
    "derive_walk_config",
]
