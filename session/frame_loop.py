import asyncio
import time
from typing import Callable, Iterable

from camera.camera_base import CameraSource
from render.canvas import Canvas
from session.timer import CountdownTimer
from state.schema import SessionState


class FrameLoop:
    """
    Per-frame detect → draw → update-timer-flag → re-arm cycle.

    Each tick re-reads the detector handle from the session state, so a
    bootstrap that finishes after Start is picked up on the next tick.
    Camera reads and detection run in the default executor and are
    awaited before the next tick is scheduled: at most one detection
    call is ever in flight, and a slow detector just lowers the frame rate.

    A detection error counts as a missed frame: it is logged, the timer
    flag is left as it was, and the loop carries on.
    """

    def __init__(
        self,
        state: SessionState,
        camera: CameraSource,
        canvas: Canvas,
        timer: CountdownTimer,
        frame_interval: float = 1 / 60,
        connections: Iterable[tuple[int, int]] | None = None,
        print_detections: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.state            = state
        self.camera           = camera
        self.canvas           = canvas
        self.timer            = timer
        self.frame_interval   = frame_interval
        self.connections      = list(connections) if connections else None
        self.print_detections = print_detections
        self._clock           = clock

        self._origin: float | None = None
        self._last_timestamp_ms = -1
        self._in_flight = False
        self._stopped   = False
        self._pending: asyncio.Future | None = None
        self.frames_processed = 0

    @property
    def stopped(self) -> bool:
        return self._stopped

    def next_timestamp_ms(self) -> int:
        """Milliseconds since the loop started, strictly increasing across calls."""
        now = self._clock()
        if self._origin is None:
            self._origin = now
        ts = int((now - self._origin) * 1000)
        if ts <= self._last_timestamp_ms:
            ts = self._last_timestamp_ms + 1
        self._last_timestamp_ms = ts
        return ts

    async def tick(self) -> bool:
        """Run one frame. Returns True if the canvas was redrawn."""
        if self._stopped:
            return False

        detector = self.state.detector
        if detector is None:
            return False

        if self._in_flight:
            raise RuntimeError("FrameLoop.tick() re-entered while a detection is in flight")
        self._in_flight = True
        try:
            success, frame = await self._in_worker(self.camera.read)
            if not success or frame is None:
                print("[FrameLoop] Warning: empty frame, skipping.")
                return False

            timestamp_ms = self.next_timestamp_ms()
            try:
                faces = await self._in_worker(detector.detect, frame, timestamp_ms)
            except Exception as e:
                print(f"[FrameLoop] Detection failed at {timestamp_ms} ms, skipping frame: {e}")
                return False
        finally:
            self._in_flight = False

        # Torn down while the detector was busy: drop the result.
        if self._stopped:
            return False

        self.canvas.clear()
        self.canvas.draw_image(frame)

        if faces:
            self.canvas.draw_landmarks(faces[0], self.connections)
            self.timer.set_active(True)
        else:
            self.timer.set_active(False)

        self.frames_processed += 1
        if self.print_detections:
            print(f"[FrameLoop] t={timestamp_ms}ms faces={len(faces)} {self.state}")
        return True

    async def run(self) -> None:
        print("[FrameLoop] Started.")
        try:
            while not self._stopped:
                await self.tick()
                await asyncio.sleep(self.frame_interval)
        finally:
            print(f"[FrameLoop] Stopped after {self.frames_processed} frames.")

    def stop(self) -> None:
        self._stopped = True

    async def drain(self) -> None:
        """Wait for a camera read or detection still running in a worker thread."""
        pending, self._pending = self._pending, None
        if pending is None or pending.done():
            return
        try:
            await pending
        except Exception as e:
            print(f"[FrameLoop] Warning: worker call failed during shutdown: {e}")

    async def _in_worker(self, func, *args):
        # Shielded: cancelling the tick leaves the future for drain() to await.
        future = asyncio.get_running_loop().run_in_executor(None, func, *args)
        self._pending = future
        return await asyncio.shield(future)
