import asyncio
from typing import Callable, Iterable

from camera.camera_base import CameraError, CameraSource
from detectors.detector_base import Detector, DetectorInitError
from render.canvas import Canvas
from session.frame_loop import FrameLoop
from session.timer import CountdownTimer
from state.schema import DEFAULT_DURATION_SECONDS, ErrorKind, Phase, SessionError, SessionState


def _release_late_detector(future: asyncio.Future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().release()


class SessionManager:
    """
    Owns one focus session: its state, the detector bootstrap, the camera,
    the frame loop and the countdown.

    Lifecycle:
        mount()     start loading the detector in the background
        start()     the Start action: open the camera and arm the frame loop
        teardown()  stop everything and release the camera and detector

    Camera and detector failures are surfaced on `state.error` with the
    session put back to "not started", so Start can be taken again.
    A Start after a failed bootstrap retries the bootstrap.
    """

    def __init__(
        self,
        camera: CameraSource,
        detector_factory: Callable[[], Detector],
        canvas: Canvas,
        duration_seconds: int = DEFAULT_DURATION_SECONDS,
        tick_seconds: float = 1.0,
        frame_interval: float = 1 / 60,
        connections: Iterable[tuple[int, int]] | None = None,
        print_detections: bool = False,
        publisher=None,
    ):
        self.state   = SessionState(duration_seconds)
        self.camera  = camera
        self.canvas  = canvas
        self._detector_factory = detector_factory
        self._publisher = publisher

        self.timer = CountdownTimer(self.state, tick_seconds, on_change=self._publish)
        self.frame_loop = FrameLoop(
            self.state,
            camera,
            canvas,
            self.timer,
            frame_interval=frame_interval,
            connections=connections,
            print_detections=print_detections,
        )

        self._bootstrap_task: asyncio.Task | None = None
        self._frame_task: asyncio.Task | None = None
        self._camera_start: asyncio.Future | None = None
        self._torn_down = False

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    # ── Detector bootstrap ──────────────────────────────────────────────────

    def mount(self) -> asyncio.Task | None:
        """Schedule the detector bootstrap unless one is loaded or loading."""
        if self._torn_down or self.state.detector is not None:
            return None
        if self._bootstrap_task is not None and not self._bootstrap_task.done():
            return self._bootstrap_task

        # Startup sync: every field, not only the changed ones.
        self._publish(self.state, resync=True)
        self._bootstrap_task = asyncio.get_running_loop().create_task(self.initialize_detector())
        return self._bootstrap_task

    async def initialize_detector(self) -> Detector | None:
        print("[SessionManager] Loading face landmarker...")
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, self._detector_factory)
        try:
            # The worker thread can't be interrupted; if we are cancelled,
            # whatever it builds is released once it is done.
            detector = await asyncio.shield(future)
        except asyncio.CancelledError:
            future.add_done_callback(_release_late_detector)
            raise
        except DetectorInitError as e:
            if not self._torn_down:
                self._fail(ErrorKind.DETECTOR, f"Face detector failed to load: {e}")
            return None
        except Exception as e:
            # e.g. ImportError from mediapipe, or PermissionError creating models/.
            if not self._torn_down:
                self._fail(ErrorKind.DETECTOR, f"Face detector failed to load: {type(e).__name__}: {e}")
            return None

        if self._torn_down:
            detector.release()
            return None

        self.state.detector = detector
        print("[SessionManager] Face landmarker ready.")
        return detector

    # ── Start flow ──────────────────────────────────────────────────────────

    async def request_camera(self) -> bool:
        loop = asyncio.get_running_loop()
        self._camera_start = loop.run_in_executor(None, self.camera.start)
        try:
            # Shielded so teardown can wait for an open in progress before
            # stopping the camera.
            await asyncio.shield(self._camera_start)
        except CameraError as e:
            if not self._torn_down:
                self._fail(ErrorKind.CAMERA, f"Camera unavailable: {e}")
            return False

        if self._torn_down:
            self.camera.stop()
            return False
        return True

    async def start(self) -> bool:
        """The Start action. Returns True once the frame loop is armed."""
        if self._torn_down or self.state.started:
            return False
        if self.state.phase == Phase.FINISHED:
            return False

        self.state.started = True
        self.state.error = None
        self._set_phase(Phase.STARTING)

        if self.state.detector is None:
            self.mount()

        if not self.camera.is_open and not await self.request_camera():
            return False

        if self._frame_task is None:
            self._frame_task = asyncio.get_running_loop().create_task(self.frame_loop.run())

        # The bootstrap may have failed while the camera was opening.
        if self.state.error is not None:
            return False

        self._set_phase(Phase.RUNNING)
        print("[SessionManager] Session running.")
        return True

    # ── Teardown ────────────────────────────────────────────────────────────

    async def teardown(self) -> None:
        if self._torn_down:
            return
        self._torn_down = True
        print("[SessionManager] Tearing down.")

        self.frame_loop.stop()
        self.timer.close()

        tasks = [t for t in (self._frame_task, self._bootstrap_task) if t is not None]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                print(f"[SessionManager] Warning: error stopping task: {e}")
        self._frame_task = None
        self._bootstrap_task = None

        # Worker threads can't be cancelled: wait for any that still use the
        # camera or the detector before releasing them.
        await self.frame_loop.drain()
        await self._wait_camera_start()

        self.camera.stop()
        if self.state.detector is not None:
            self.state.detector.release()
            self.state.detector = None

        self.state.phase = Phase.STOPPED
        self._publish(self.state)

    # ── Helpers ─────────────────────────────────────────────────────────────

    async def _wait_camera_start(self) -> None:
        pending, self._camera_start = self._camera_start, None
        if pending is None or pending.done():
            return
        try:
            await pending
        except Exception as e:
            print(f"[SessionManager] Warning: camera open failed during shutdown: {e}")

    def _fail(self, kind: ErrorKind, message: str) -> None:
        print(f"[SessionManager] Error ({kind.value}): {message}")
        self.state.error = SessionError(kind, message)
        self.state.started = False
        self._set_phase(Phase.ERROR)

    def _set_phase(self, phase: Phase) -> None:
        self.state.phase = phase
        self._publish(self.state)

    def _publish(self, state: SessionState, resync: bool = False) -> None:
        if self._publisher is None:
            return
        try:
            if resync:
                self._publisher.send_all(state)
            else:
                self._publisher.send_state(state)
        except OSError as e:
            print(f"[SessionManager] Warning: status publish failed: {e}")
