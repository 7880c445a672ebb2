from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# Locomotion should always animate something, even when no clip is named for it.
_FALLBACK_TO_FIRST_HINTS = frozenset({"walk"})


class ClipLoop(str, Enum):
    ONCE = "once"
    REPEAT = "repeat"


@dataclass(frozen=True)
class ClipHandle:
    name: str


@dataclass
class _ClipPlayback:
    weight: float = 0.0
    target: float = 0.0
    # Weight units per second; 0 means "jump to target".
    rate: float = 0.0
    loop: ClipLoop = ClipLoop.ONCE
    clamp_when_finished: bool = False
    playing: bool = False


class ClipLibrary:
    """
    Name-based access to the skeletal clips of a Panda3D `Actor`.

    Clips are addressed by semantic hints ("jump", "walk") resolved against whatever
    animation names the actor was loaded with. All playback goes through actor blend
    control effects so starting a clip cross-fades instead of cutting. Without an actor
    (or with an unresolved handle) every operation is a no-op.
    """

    def __init__(self, actor: Any | None = None) -> None:
        self._actor = actor
        self._playback: dict[str, _ClipPlayback] = {}
        if actor is not None:
            actor.enableBlend()

    def names(self) -> list[str]:
        if self._actor is None:
            return []
        return [str(n) for n in self._actor.getAnimNames()]

    def resolve(self, hint: str) -> ClipHandle | None:
        names = self.names()
        needle = str(hint or "").lower()
        for name in names:
            if needle and needle in name.lower():
                return ClipHandle(name=name)
        if needle in _FALLBACK_TO_FIRST_HINTS and names:
            logger.debug("no clip matches %r; falling back to %r", hint, names[0])
            return ClipHandle(name=names[0])
        logger.debug("no clip matches %r", hint)
        return None

    def weight(self, handle: ClipHandle | None) -> float:
        if handle is None:
            return 0.0
        pb = self._playback.get(handle.name)
        return float(pb.weight) if pb is not None else 0.0

    def is_playing(self, handle: ClipHandle | None) -> bool:
        if handle is None:
            return False
        pb = self._playback.get(handle.name)
        return bool(pb is not None and pb.playing)

    def play(
        self,
        handle: ClipHandle | None,
        *,
        loop: ClipLoop = ClipLoop.ONCE,
        fade_in: float = 0.0,
        time_scale: float = 1.0,
        clamp_when_finished: bool = False,
    ) -> None:
        if handle is None or self._actor is None:
            return
        name = handle.name
        fade = max(0.0, float(fade_in))

        # Cross-fade everything else out over the same window.
        for other, pb in self._playback.items():
            if other != name and (pb.weight > 0.0 or pb.target > 0.0):
                self._fade_to(pb, target=0.0, seconds=fade)

        pb = self._playback.setdefault(name, _ClipPlayback())
        pb.loop = ClipLoop(loop)
        pb.clamp_when_finished = bool(clamp_when_finished)
        pb.playing = True
        pb.weight = 0.0 if fade > 0.0 else 1.0
        self._fade_to(pb, target=1.0, seconds=fade)

        self._actor.setPlayRate(float(time_scale), name)
        if pb.loop == ClipLoop.REPEAT:
            self._actor.loop(name, restart=1)
        else:
            self._actor.play(name)
        self._apply_effects()

    def stop(self, handle: ClipHandle | None, *, fade_out: float = 0.0) -> None:
        if handle is None or self._actor is None:
            return
        pb = self._playback.get(handle.name)
        if pb is None or not pb.playing:
            return
        self._fade_to(pb, target=0.0, seconds=max(0.0, float(fade_out)))
        if pb.rate <= 0.0:
            self._halt(handle.name, pb)

    def update(self, dt: float) -> None:
        if self._actor is None or not self._playback:
            return
        frame_dt = max(0.0, float(dt))
        for name, pb in self._playback.items():
            if not pb.playing:
                continue
            if pb.loop == ClipLoop.ONCE and not pb.clamp_when_finished and pb.target > 0.0:
                ctrl = self._actor.getAnimControl(name)
                if ctrl is not None and not ctrl.isPlaying():
                    pb.target = 0.0
                    pb.rate = 0.0
            if pb.weight != pb.target:
                if pb.rate <= 0.0:
                    pb.weight = pb.target
                elif pb.weight < pb.target:
                    pb.weight = min(pb.target, pb.weight + pb.rate * frame_dt)
                else:
                    pb.weight = max(pb.target, pb.weight - pb.rate * frame_dt)
            if pb.weight <= 0.0 and pb.target <= 0.0:
                self._halt(name, pb)
        self._apply_effects()

    @staticmethod
    def _fade_to(pb: _ClipPlayback, *, target: float, seconds: float) -> None:
        pb.target = float(target)
        pb.rate = (1.0 / seconds) if seconds > 0.0 else 0.0
        if pb.rate <= 0.0:
            pb.weight = pb.target

    def _halt(self, name: str, pb: _ClipPlayback) -> None:
        pb.weight = 0.0
        pb.target = 0.0
        pb.playing = False
        self._actor.stop(name)
        self._actor.setControlEffect(name, 0.0)

    def _apply_effects(self) -> None:
        for name, pb in self._playback.items():
            if pb.playing:
                self._actor.setControlEffect(name, float(pb.weight))
