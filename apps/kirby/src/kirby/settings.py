from __future__ import annotations

import json
import logging
import os
import secrets
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from kirby.motion.config import MotionTuning

logger = logging.getLogger(__name__)


@dataclass
class SceneSettings:
    # Panda3D model path (any format the loader understands) and extra animation files by clip name.
    model: str = "models/panda-model"
    animations: dict[str, str] = field(default_factory=lambda: {"walk": "models/panda-walk4"})
    model_scale: float = 0.005
    start_height: float = -6.0
    camera_pos: tuple[float, float, float] = (0.0, -20.0, -6.77)
    camera_target: tuple[float, float, float] = (0.0, 0.0, -2.0)


@dataclass
class Settings:
    tuning: MotionTuning = field(default_factory=MotionTuning)
    scene: SceneSettings = field(default_factory=SceneSettings)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Settings":
        tuning_payload = payload.get("tuning", {})
        scene_payload = payload.get("scene", {})
        return cls(
            tuning=MotionTuning(**_known_fields(MotionTuning, tuning_payload)),
            scene=_scene_from_dict(scene_payload),
        )


def _known_fields(cls: type, payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        return {}
    names = {f.name for f in fields(cls)}
    unknown = sorted(k for k in payload if k not in names)
    if unknown:
        logger.warning("ignoring unknown %s keys: %s", cls.__name__, ", ".join(map(str, unknown)))
    return {k: v for k, v in payload.items() if k in names}


def _scene_from_dict(payload: Any) -> SceneSettings:
    known = _known_fields(SceneSettings, payload)
    for key in ("camera_pos", "camera_target"):
        raw = known.get(key)
        if isinstance(raw, (list, tuple)) and len(raw) == 3:
            known[key] = tuple(float(v) for v in raw)
        else:
            known.pop(key, None)
    anims = known.get("animations")
    if isinstance(anims, dict):
        known["animations"] = {str(k): str(v) for k, v in anims.items()}
    else:
        known.pop("animations", None)
    return SceneSettings(**known)


def settings_dir() -> Path:
    """
    Directory for the persisted settings file.

    Override for tests/dev via `KIRBY_SETTINGS_DIR`.
    """

    override = os.environ.get("KIRBY_SETTINGS_DIR")
    if override:
        return Path(override)
    return Path.home() / ".kirby"


def settings_path() -> Path:
    return settings_dir() / "settings.json"


def load_settings(path: Path | None = None) -> Settings:
    p = Path(path) if path is not None else settings_path()
    if not p.exists():
        return Settings()
    try:
        payload = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("could not read settings %s (%s); using defaults", p, e)
        return Settings()
    if not isinstance(payload, dict):
        logger.warning("settings %s is not a JSON object; using defaults", p)
        return Settings()
    try:
        return Settings.from_dict(payload)
    except (TypeError, ValueError) as e:
        logger.warning("invalid settings in %s (%s); using defaults", p, e)
        return Settings()


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    p = Path(path) if path is not None else settings_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    # Unique tmp name so parallel runs never interleave writes.
    tmp = p.with_name(f"{p.name}.{os.getpid()}.{secrets.token_hex(6)}.tmp")
    tmp.write_text(json.dumps(settings.to_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    tmp.replace(p)
    return p
