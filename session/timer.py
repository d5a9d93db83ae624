import asyncio
from typing import Callable

from state.schema import Phase, SessionState


class CountdownTimer:
    """
    One-second countdown that only runs while a face is present.

    `set_active()` is called by the frame loop on every detection outcome.
    A flip of the flag cancels the periodic task, and a flip to True starts
    a fresh one, so the first decrement after a face reappears lands a full
    period later.

    At zero the countdown stops, the session moves to FINISHED and further
    activation is ignored. After `close()` nothing here touches the state.
    """

    def __init__(
        self,
        state: SessionState,
        tick_seconds: float = 1.0,
        on_change: Callable[[SessionState], None] | None = None,
    ):
        self.state        = state
        self.tick_seconds = tick_seconds
        self._on_change   = on_change
        self._task: asyncio.Task | None = None
        self._closed      = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_active(self, active: bool) -> None:
        if self._closed:
            return
        if active and self.state.remaining_seconds == 0:
            return
        if active == self.state.timer_active:
            return

        self.state.timer_active = active
        self._cancel()
        if active:
            self._task = asyncio.get_running_loop().create_task(self._run())
        self._notify()

    def tick(self) -> bool:
        """Advance one period. Returns True if the countdown moved."""
        if self._closed or not self.state.timer_active:
            return False

        self.state.remaining_seconds = max(self.state.remaining_seconds - 1, 0)
        if self.state.remaining_seconds == 0:
            print("[CountdownTimer] Time's up.")
            self.state.timer_active = False
            self.state.phase = Phase.FINISHED
        self._notify()
        return True

    def close(self) -> None:
        self._closed = True
        self._cancel()

    async def _run(self) -> None:
        while self.state.timer_active and not self._closed:
            await asyncio.sleep(self.tick_seconds)
            self.tick()

    def _cancel(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        # The periodic task ends on its own when it finishes the countdown.
        if task is asyncio.current_task():
            return
        task.cancel()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.state)
