import asyncio
import threading

from fakes import FakeCamera, RecordingPublisher, ScriptedDetector, make_face
from detectors.detector_base import DetectorInitError
from render.canvas import Canvas
from session.manager import SessionManager
from state.schema import ErrorKind, Phase


def make_manager(camera=None, factory=None, detector=None, **kwargs):
    detector = detector or ScriptedDetector(default=[make_face()])
    kwargs.setdefault("tick_seconds", 3600)
    kwargs.setdefault("frame_interval", 0.001)
    return SessionManager(
        camera=camera or FakeCamera(),
        detector_factory=factory or (lambda: detector),
        canvas=Canvas(),
        **kwargs,
    )


async def wait_for(predicate, timeout=1.0):
    for _ in range(int(timeout / 0.005)):
        if predicate():
            return True
        await asyncio.sleep(0.005)
    return predicate()


def test_start_runs_session_and_face_activates_timer():
    async def scenario():
        detector = ScriptedDetector(default=[make_face()])
        manager = make_manager(detector=detector)
        await manager.mount()
        started = await manager.start()
        activated = await wait_for(lambda: manager.state.timer_active)
        snapshot = (manager.state.phase, manager.state.started, manager.camera.is_open)
        await manager.teardown()
        return started, activated, snapshot, manager, detector

    started, activated, snapshot, manager, detector = asyncio.run(scenario())
    assert started is True
    assert activated is True
    assert snapshot == (Phase.RUNNING, True, True)
    assert manager.state.phase == Phase.STOPPED
    assert manager.camera.stops == 1
    assert detector.released is True
    assert manager.state.detector is None


def test_start_before_bootstrap_finishes():
    gate = threading.Event()
    detector = ScriptedDetector(default=[make_face()])

    def slow_factory():
        gate.wait(2)
        return detector

    async def scenario():
        manager = make_manager(factory=slow_factory)
        manager.mount()
        started = await manager.start()
        await asyncio.sleep(0.02)
        before = (manager.state.detector, manager.canvas.revision)
        gate.set()
        activated = await wait_for(lambda: manager.state.timer_active)
        await manager.teardown()
        return started, before, activated

    started, before, activated = asyncio.run(scenario())
    assert started is True
    assert before == (None, 0)
    assert activated is True


def test_start_is_offered_once():
    async def scenario():
        manager = make_manager()
        manager.mount()
        first = await manager.start()
        second = await manager.start()
        await manager.teardown()
        return first, second, manager.camera.starts

    assert asyncio.run(scenario()) == (True, False, 1)


def test_camera_failure_is_surfaced_and_start_can_be_retried():
    async def scenario():
        camera = FakeCamera(fail=True)
        manager = make_manager(camera=camera)
        await manager.mount()
        first = await manager.start()
        failed_state = (manager.state.phase, manager.state.started, manager.state.error.kind)

        camera.fail = False
        second = await manager.start()
        recovered = (manager.state.phase, manager.state.error)
        await manager.teardown()
        return first, failed_state, second, recovered

    first, failed_state, second, recovered = asyncio.run(scenario())
    assert first is False
    assert failed_state == (Phase.ERROR, False, ErrorKind.CAMERA)
    assert second is True
    assert recovered == (Phase.RUNNING, None)


def test_detector_failure_is_surfaced_and_retried_on_start():
    detector = ScriptedDetector(default=[make_face()])
    attempts = []

    def flaky_factory():
        attempts.append(1)
        if len(attempts) == 1:
            raise DetectorInitError("model download failed")
        return detector

    async def scenario():
        manager = make_manager(factory=flaky_factory)
        await manager.mount()
        error = manager.state.error
        failed = (manager.state.phase, manager.state.started)

        started = await manager.start()
        loaded = await wait_for(lambda: manager.state.detector is detector)
        await manager.teardown()
        return error, failed, started, loaded

    error, failed, started, loaded = asyncio.run(scenario())
    assert error.kind == ErrorKind.DETECTOR
    assert "model download failed" in error.message
    assert failed == (Phase.ERROR, False)
    assert started is True
    assert loaded is True
    assert len(attempts) == 2


def test_teardown_stops_all_state_mutation():
    async def scenario():
        detector = ScriptedDetector(default=[make_face()])
        manager = make_manager(detector=detector, duration_seconds=100)
        await manager.mount()
        await manager.start()
        await wait_for(lambda: manager.state.timer_active)
        await manager.teardown()

        state = manager.state
        frozen = (state.remaining_seconds, state.timer_active, manager.canvas.revision)

        # Drive everything by hand after teardown.
        state.detector = detector
        await manager.frame_loop.tick()
        manager.timer.tick()
        manager.timer.set_active(False)
        await asyncio.sleep(0.02)
        return frozen, (state.remaining_seconds, state.timer_active, manager.canvas.revision), manager

    frozen, after, manager = asyncio.run(scenario())
    assert frozen == after
    assert manager.frame_loop.stopped
    assert not manager.timer.running


def test_teardown_releases_detector_built_after_cancellation():
    gate = threading.Event()
    detector = ScriptedDetector()

    def slow_factory():
        gate.wait(2)
        return detector

    async def scenario():
        manager = make_manager(factory=slow_factory)
        manager.mount()
        await asyncio.sleep(0.01)
        await manager.teardown()
        gate.set()
        released = await wait_for(lambda: detector.released)
        return manager, released

    manager, released = asyncio.run(scenario())
    assert released is True
    assert manager.state.detector is None
    assert manager.state.phase == Phase.STOPPED


def test_teardown_is_idempotent():
    async def scenario():
        manager = make_manager()
        await manager.mount()
        await manager.start()
        await manager.teardown()
        await manager.teardown()
        return manager

    manager = asyncio.run(scenario())
    assert manager.camera.stops == 1


def test_start_after_teardown_is_ignored():
    async def scenario():
        manager = make_manager()
        await manager.teardown()
        return await manager.start(), manager

    started, manager = asyncio.run(scenario())
    assert started is False
    assert manager.camera.starts == 0


def test_phases_are_published():
    async def scenario():
        publisher = RecordingPublisher()
        manager = make_manager(publisher=publisher)
        await manager.mount()
        await manager.start()
        await wait_for(lambda: manager.state.timer_active)
        await manager.teardown()
        return publisher

    publisher = asyncio.run(scenario())
    assert publisher.phases == ["idle", "starting", "running", "stopped"]
    assert publisher.full_syncs == 1
    assert any(active for _, _, active in publisher.states)


def test_finished_session_cannot_restart():
    async def scenario():
        manager = make_manager(duration_seconds=1, tick_seconds=0.005)
        await manager.mount()
        await manager.start()
        finished = await wait_for(lambda: manager.state.phase == Phase.FINISHED)
        manager.state.started = False
        again = await manager.start()
        await manager.teardown()
        return finished, again, manager.state.remaining_seconds

    assert asyncio.run(scenario()) == (True, False, 0)


def test_unexpected_bootstrap_error_is_surfaced():
    def factory():
        raise PermissionError("models/ not writable")

    async def scenario():
        manager = make_manager(factory=factory)
        await manager.mount()
        after_mount = (manager.state.phase, manager.state.error)

        await manager.start()
        failed_again = await wait_for(lambda: manager.state.phase == Phase.ERROR)
        after_start = (manager.state.started, manager.state.error.kind)
        await manager.teardown()
        return after_mount, failed_again, after_start

    (phase, error), failed_again, after_start = asyncio.run(scenario())
    assert phase == Phase.ERROR
    assert error.kind == ErrorKind.DETECTOR
    assert "PermissionError" in error.message
    assert "models/ not writable" in error.message
    assert failed_again is True
    assert after_start == (False, ErrorKind.DETECTOR)


def test_teardown_waits_for_detection_before_release():
    async def scenario():
        detector = ScriptedDetector(default=[make_face()], delay=0.2)
        manager = make_manager(detector=detector)
        await manager.mount()
        await manager.start()
        await wait_for(lambda: detector.in_flight > 0)
        busy = detector.in_flight
        await manager.teardown()
        return busy, detector

    busy, detector = asyncio.run(scenario())
    assert busy == 1
    assert detector.released is True
    assert detector.released_mid_detect is False


def test_teardown_stops_camera_opened_after_start_was_cancelled():
    async def scenario():
        camera = FakeCamera(start_delay=0.2)
        manager = make_manager(camera=camera)
        await manager.mount()
        start = asyncio.get_running_loop().create_task(manager.start())
        await asyncio.sleep(0.05)
        start.cancel()
        try:
            await start
        except asyncio.CancelledError:
            pass
        await manager.teardown()
        return camera

    camera = asyncio.run(scenario())
    assert camera.starts == 1
    assert camera.stops == 1
    assert not camera.is_open
