from __future__ import annotations

from collections.abc import Hashable


class TriggerLatch:
    """
    Edge detector for trigger tokens (counters bumped by the UI, or None).

    `observe` reports True only when the token differs from the last observed one.
    Every observed token is remembered, including ones whose start was later rejected,
    so re-rendering with an unchanged token never retriggers.
    """

    def __init__(self, initial: Hashable | None = None) -> None:
        self._last = initial

    @property
    def last(self) -> Hashable | None:
        return self._last

    def observe(self, token: Hashable | None) -> bool:
        changed = token is not None and token != self._last
        self._last = token
        return changed
