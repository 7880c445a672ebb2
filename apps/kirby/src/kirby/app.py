from __future__ import annotations

import logging

from direct.actor.Actor import Actor
from direct.gui.DirectGui import DirectButton
from direct.gui.OnscreenText import OnscreenText
from direct.showbase.ShowBase import ShowBase
from direct.showbase.ShowBaseGlobal import globalClock
from direct.task import Task
from panda3d.core import AmbientLight, DirectionalLight, LPoint3f, LVector4, TextNode, loadPrcFileData

from kirby.app_config import RunConfig
from kirby.common.error_log import ErrorLog
from kirby.motion import ClipLibrary, MotionController, WalkState
from kirby.settings import Settings, load_settings

logger = logging.getLogger(__name__)


class KirbyApp(ShowBase):
    def __init__(self, cfg: RunConfig) -> None:
        loadPrcFileData("", "audio-library-name null")
        if cfg.smoke:
            loadPrcFileData("", "window-type offscreen")

        super().__init__()

        self.cfg = cfg
        self.disableMouse()
        self.error_log = ErrorLog(max_items=30)
        self.settings: Settings = load_settings(cfg.settings_path)

        self._setup_scene()
        self._setup_input()
        self._setup_ui()

        self.taskMgr.add(self._update, "motion-update")

        if cfg.smoke:
            self._frames_left = max(1, int(cfg.smoke_frames))
            self.taskMgr.add(self._smoke_task, "smoke-exit")

    def _setup_scene(self) -> None:
        scene = self.settings.scene
        model = self.cfg.model or scene.model
        self.actor = Actor(model, dict(scene.animations))
        self.actor.setScale(scene.model_scale)

        # Motion writes the transform on a parent node so model scale/offsets stay untouched.
        self.character = self.render.attachNewNode("character")
        self.actor.reparentTo(self.character)
        self.character.setPos(0.0, 0.0, scene.start_height)

        camera_pos = LPoint3f(*scene.camera_pos)
        self.camera.setPos(camera_pos)
        self.camera.lookAt(LPoint3f(*scene.camera_target))

        ambient = AmbientLight("ambient")
        ambient.setColor(LVector4(0.7, 0.7, 0.7, 1))
        self.render.setLight(self.render.attachNewNode(ambient))

        sun = DirectionalLight("sun")
        sun.setColor(LVector4(1.0, 0.95, 0.9, 1))
        sun_np = self.render.attachNewNode(sun)
        sun_np.setHpr(30, -50, 0)
        self.render.setLight(sun_np)

        self.clips = ClipLibrary(self.actor)
        logger.info("clips available: %s", ", ".join(self.clips.names()) or "(none)")
        self.motion = MotionController(
            root=self.character,
            tuning=self.settings.tuning,
            clips=self.clips,
            clock=globalClock.getFrameTime,
            on_walk_state=self._on_walk_state,
        )
        self.motion.capture_baseline(camera_pos)

    def _setup_input(self) -> None:
        self.accept("space", self._safe_call, ["input.jump", self.motion.trigger_jump])
        self.accept("w", self._safe_call, ["input.walk", self.motion.trigger_walk])

    def _setup_ui(self) -> None:
        self._title = OnscreenText(
            text="Hey Kirby!",
            parent=self.aspect2d,
            pos=(0.0, 0.8),
            align=TextNode.ACenter,
            scale=0.09,
            fg=(1, 1, 1, 1),
            shadow=(0, 0, 0, 0.6),
        )
        self._jump_button = DirectButton(
            text="Jump",
            scale=0.07,
            pos=(-0.25, 0, -0.85),
            command=self._safe_call,
            extraArgs=["ui.jump", self.motion.trigger_jump],
        )
        self._walk_button = DirectButton(
            text="Walk",
            scale=0.07,
            pos=(0.25, 0, -0.85),
            command=self._safe_call,
            extraArgs=["ui.walk", self.motion.trigger_walk],
        )

    def _on_walk_state(self, state: WalkState) -> None:
        logger.debug("walk: %s", state.value)

    def _safe_call(self, context: str, fn) -> None:
        try:
            fn()
        except Exception as e:
            self.error_log.log_exception(context=context, exc=e)

    def _update(self, task: Task) -> int:
        now = float(globalClock.getFrameTime())
        dt = float(globalClock.getDt())
        self._safe_call("motion.frame", lambda: self.motion.on_frame(now, dt))
        return task.cont

    def _smoke_task(self, task: Task) -> int:
        # Exercise both motions: a jump right away, a walk once it has landed.
        if task.frame == 1:
            self.motion.trigger_jump()
        if not self.motion.busy and self.motion.walk_state == WalkState.IDLE and task.frame > 1:
            self.motion.trigger_walk()
        self._frames_left -= 1
        if self._frames_left <= 0:
            self.userExit()
            return task.done
        return task.cont


def run(cfg: RunConfig) -> None:
    app = KirbyApp(cfg)
    app.run()
