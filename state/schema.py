from enum import Enum

DEFAULT_DURATION_SECONDS = 30 * 60


class Phase(str, Enum):
    IDLE     = "idle"       # waiting for Start
    STARTING = "starting"
    RUNNING  = "running"
    FINISHED = "finished"   # countdown reached zero
    ERROR    = "error"
    STOPPED  = "stopped"    # torn down


class ErrorKind(str, Enum):
    CAMERA   = "camera"
    DETECTOR = "detector"


def format_remaining(seconds: int) -> str:
    """Format a countdown value as M:SS (minutes unpadded, seconds padded)."""
    if seconds < 0:
        raise ValueError(f"remaining seconds must be >= 0, got {seconds}")
    return f"{seconds // 60}:{seconds % 60:02d}"


class SessionError:
    """A failure surfaced to the user. Cleared when Start is retried."""

    def __init__(self, kind: ErrorKind, message: str):
        self.kind    = kind
        self.message = message

    def __repr__(self):
        return f"SessionError(kind={self.kind.value}, message={self.message!r})"


class SessionState:
    """
    Everything the session's callbacks share.

    The controller owns one instance; the timer loop writes
    `remaining_seconds`, the frame loop flips `timer_active`, and the
    controller writes the rest. `detector` stays None until bootstrap
    completes, and the frame loop re-reads it every tick.
    """

    def __init__(self, remaining_seconds: int = DEFAULT_DURATION_SECONDS):
        if remaining_seconds < 0:
            raise ValueError(f"remaining_seconds must be >= 0, got {remaining_seconds}")
        self.remaining_seconds = remaining_seconds
        self.timer_active      = False
        self.started           = False
        self.phase             = Phase.IDLE
        self.error: SessionError | None = None
        self.detector          = None

    @property
    def display(self) -> str:
        return format_remaining(self.remaining_seconds)

    def __repr__(self):
        return (
            f"SessionState("
            f"remaining={self.display}, "
            f"active={self.timer_active}, "
            f"started={self.started}, "
            f"phase={self.phase.value})"
        )
