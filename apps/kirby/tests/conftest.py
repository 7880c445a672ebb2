from __future__ import annotations

import pytest


class FakeAnimControl:
    def __init__(self) -> None:
        self.playing = False

    def isPlaying(self) -> bool:
        return self.playing


class FakeActor:
    """Records the subset of `direct.actor.Actor` calls made by ClipLibrary."""

    def __init__(self, names: list[str]) -> None:
        self._names = list(names)
        self.controls = {n: FakeAnimControl() for n in names}
        self.effects: dict[str, float] = {}
        self.rates: dict[str, float] = {}
        self.calls: list[tuple[str, str]] = []
        self.blend_enabled = False

    def getAnimNames(self) -> list[str]:
        return list(self._names)

    def enableBlend(self) -> None:
        self.blend_enabled = True

    def setControlEffect(self, name: str, effect: float) -> None:
        self.effects[name] = float(effect)

    def setPlayRate(self, rate: float, name: str) -> None:
        self.rates[name] = float(rate)

    def play(self, name: str) -> None:
        self.calls.append(("play", name))
        self.controls[name].playing = True

    def loop(self, name: str, restart: int = 1) -> None:
        self.calls.append(("loop", name))
        self.controls[name].playing = True

    def stop(self, name: str) -> None:
        self.calls.append(("stop", name))
        self.controls[name].playing = False

    def getAnimControl(self, name: str) -> FakeAnimControl | None:
        return self.controls.get(name)


@pytest.fixture
def fake_actor() -> FakeActor:
    return FakeActor(["Armature|Idle", "Armature|Walk_Cycle", "Armature|JUMP"])


@pytest.fixture
def make_actor():
    return FakeActor
