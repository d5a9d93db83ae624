from session.timer      import CountdownTimer
from session.frame_loop import FrameLoop
from session.manager    import SessionManager

__all__ = ["CountdownTimer", "FrameLoop", "SessionManager"]
