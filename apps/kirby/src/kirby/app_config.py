from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RunConfig:
    smoke: bool = False
    # JSON settings file. If None, `kirby.settings.settings_path()` is used.
    settings_path: Path | None = None
    # Overrides the model path from settings (animations still come from settings).
    model: str | None = None
    # Frames to render in smoke mode before exiting.
    smoke_frames: int = 90
