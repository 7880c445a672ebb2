from __future__ import annotations

import math

import pytest
from panda3d.core import LPoint3f, LQuaternionf, NodePath

from kirby.motion.clips import ClipLibrary
from kirby.motion.config import MotionTuning, derive_walk_config
from kirby.motion.orientation import facing_orientation
from kirby.motion.walk import (
    WalkMotion,
    WalkState,
    advance_toward,
    arrival_epsilon,
    choose_walk_target,
    snap_walk_target,
)


def _cfg(**kw):
    base = dict(left_x=-5.0, right_x=5.0, step_size=0.03, walk_speed=20.0, turn_duration=0.35, return_to_front=True)
    base.update(kw)
    return derive_walk_config(tuning=MotionTuning(**base))


def _root(x: float = 0.0) -> tuple[NodePath, LQuaternionf]:
    root = NodePath("character")
    root.setPos(x, 0.0, -6.0)
    # Face straight down -y so turns land exactly on +-x.
    base = facing_orientation(position=LPoint3f(x, 0, -6), reference_point=LPoint3f(x, -20, -6), pitch_deg=0.0)
    root.setQuat(base)
    return root, base


def _run(walk: WalkMotion, root: NodePath, *, now: float, dt: float, max_frames: int) -> tuple[float, int]:
    frames = 0
    while walk.active and frames < max_frames:
        now += dt
        walk.update(now, dt, root)
        frames += 1
    return now, frames


def test_target_alternates_between_endpoints() -> None:
    cfg = _cfg()
    assert choose_walk_target(-5.0, cfg) == 5.0
    assert choose_walk_target(5.0, cfg) == -5.0
    assert choose_walk_target(-5.0005, cfg) == 5.0
    assert choose_walk_target(4.9995, cfg) == -5.0


def test_target_off_endpoint_is_farther_side() -> None:
    cfg = _cfg()
    assert choose_walk_target(1.0, cfg) == -5.0
    assert choose_walk_target(-2.5, cfg) == 5.0
    # Equidistant: walk left.
    assert choose_walk_target(0.0, cfg) == -5.0


def test_degenerate_endpoints_nudge_forward() -> None:
    cfg = _cfg(left_x=None, right_x=None, forward_distance=0.25, step_size=0.0)
    assert choose_walk_target(1.0, cfg) == pytest.approx(1.25)
    cfg = _cfg(left_x=3.0, right_x=3.0, forward_distance=-0.5, step_size=0.0)
    assert choose_walk_target(1.0, cfg) == pytest.approx(0.5)


def test_snapped_target_stays_on_off_grid_endpoint() -> None:
    cfg = _cfg()
    assert snap_walk_target(-5.0, 5.0, cfg) == 5.0
    assert snap_walk_target(5.0, -5.0, cfg) == -5.0


def test_snapped_target_rounds_to_grid() -> None:
    cfg = _cfg(left_x=-10.0, right_x=10.0, step_size=0.5)
    assert snap_walk_target(0.0, 3.3, cfg) == 3.5


def test_collapsed_snap_pushes_one_step_in_travel_direction() -> None:
    cfg = _cfg(left_x=None, right_x=None, forward_distance=0.01, step_size=0.03)
    assert snap_walk_target(0.0, 0.01, cfg) == pytest.approx(0.03)
    assert snap_walk_target(0.0, -0.01, cfg) == pytest.approx(-0.03)
    assert snap_walk_target(0.0, 0.0, cfg) == pytest.approx(0.03)


@pytest.mark.parametrize("step_size", [0.0, 0.03, 0.5, 2.0])
@pytest.mark.parametrize("distance", [0.0, 1e-6, 0.01, 0.33, 7.0])
@pytest.mark.parametrize("start,target", [(-5.0, 5.0), (5.0, -5.0), (0.01, 0.4), (1.0, -0.97)])
def test_advance_never_overshoots(step_size: float, distance: float, start: float, target: float) -> None:
    x = start
    for _ in range(5000):
        before = abs(target - x)
        nx = advance_toward(x, target, distance=distance, step_size=step_size)
        after = abs(target - nx)
        assert after <= before
        if target > start:
            assert nx <= target
        else:
            assert nx >= target
        x = nx
        if after <= arrival_epsilon(step_size) or (distance == 0.0 and step_size == 0.0):
            break


def test_advance_forces_one_step_on_tiny_delta() -> None:
    nx = advance_toward(0.0, 1.0, distance=1e-7, step_size=0.25)
    assert nx == pytest.approx(0.25)
    nx = advance_toward(0.9, 1.0, distance=1e-7, step_size=0.25)
    assert nx == 1.0


def test_walk_reaches_done_with_tiny_frame_deltas() -> None:
    root, base = _root(-5.0)
    walk = WalkMotion(cfg=_cfg(turn_duration=0.0))
    assert walk.trigger(0.0, root, base)
    _, frames = _run(walk, root, now=0.0, dt=1e-6, max_frames=2000)
    assert walk.state == WalkState.IDLE
    assert frames < 2000
    assert root.getX() == 5.0


def test_full_walk_sequence_ends_at_rest_orientation() -> None:
    seen: list[WalkState] = []
    root, base = _root(-5.0)
    walk = WalkMotion(cfg=_cfg(), on_state=seen.append)

    assert walk.trigger(0.0, root, base)
    assert walk.session.target_x == 5.0

    xs = []
    now = 0.0
    for _ in range(600):
        now += 1.0 / 60.0
        before = root.getX()
        walk.update(now, 1.0 / 60.0, root)
        xs.append((before, root.getX()))
        if not walk.active:
            break

    assert seen == [
        WalkState.TURNING_AWAY,
        WalkState.MOVING,
        WalkState.TURNING_BACK,
        WalkState.DONE,
        WalkState.IDLE,
    ]
    assert root.getX() == 5.0
    assert root.getQuat().almostEqual(base, 1e-5)
    assert all(b <= a <= 5.0 for b, a in xs)


def test_turn_away_faces_direction_of_travel() -> None:
    root, base = _root(5.0)
    walk = WalkMotion(cfg=_cfg())
    walk.trigger(0.0, root, base)
    walk.update(0.35, 0.0, root)
    assert walk.state == WalkState.MOVING
    assert root.getQuat().getForward().x < -0.999


def test_turn_is_interpolated_over_duration() -> None:
    root, base = _root(-5.0)
    walk = WalkMotion(cfg=_cfg())
    walk.trigger(0.0, root, base)
    walk.update(0.175, 1.0 / 60.0, root)
    assert walk.state == WalkState.TURNING_AWAY
    fwd = root.getQuat().getForward()
    assert math.isclose(fwd.x, math.sqrt(0.5), abs_tol=1e-4)
    assert root.getX() == -5.0


def test_no_return_to_front_skips_turning_back() -> None:
    seen: list[WalkState] = []
    root, base = _root(-5.0)
    walk = WalkMotion(cfg=_cfg(return_to_front=False), on_state=seen.append)
    walk.trigger(0.0, root, base)
    _run(walk, root, now=0.0, dt=1.0 / 60.0, max_frames=600)
    assert WalkState.TURNING_BACK not in seen
    assert root.getQuat().getForward().x > 0.999


def test_second_trigger_during_walk_is_dropped() -> None:
    root, base = _root(-5.0)
    walk = WalkMotion(cfg=_cfg())
    assert walk.trigger(0.0, root, base)
    target = walk.session.target_x
    assert not walk.trigger(0.1, root, base)
    assert walk.session.target_x == target


def test_walk_rejected_while_jumping() -> None:
    root, base = _root(-5.0)
    walk = WalkMotion(cfg=_cfg())
    assert not walk.trigger(0.0, root, base, jump_active=True)
    assert walk.state == WalkState.IDLE


def test_walk_clip_plays_while_moving_and_stops_on_arrival(fake_actor) -> None:
    clips = ClipLibrary(fake_actor)
    handle = clips.resolve("walk")
    root, base = _root(-5.0)
    walk = WalkMotion(cfg=_cfg(), clips=clips)
    walk.trigger(0.0, root, base)
    assert not clips.is_playing(handle)

    now = 0.0
    while walk.state != WalkState.MOVING:
        now += 1.0 / 60.0
        walk.update(now, 1.0 / 60.0, root)
        clips.update(1.0 / 60.0)
    assert clips.is_playing(handle)
    assert ("loop", handle.name) in fake_actor.calls

    while walk.state == WalkState.MOVING:
        now += 1.0 / 60.0
        walk.update(now, 1.0 / 60.0, root)
        clips.update(1.0 / 60.0)
    for _ in range(10):
        clips.update(1.0 / 60.0)
    assert not clips.is_playing(handle)
