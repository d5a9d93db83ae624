import cv2

from render.canvas import Canvas
from render.overlay import compose_view, hit_start_button
from state.schema import SessionState

START = "start"
QUIT  = "quit"

_START_KEYS = (ord(" "), 13)       # Space, Enter
_QUIT_KEYS  = (ord("q"), 27)       # q, Esc


class PreviewWindow:
    """
    OpenCV window showing the Start button, then the canvas, plus the
    countdown readout.

    poll() returns START when the button is clicked or Space/Enter is
    pressed while it is visible, QUIT on q/Esc or when the window is
    closed, and None otherwise.
    """

    def __init__(self, title: str = "eye-timer"):
        self.title = title
        self._size = (0, 0)
        self._start_visible = False
        self._hover = False
        self._clicked = False
        self._opened = False

    def open(self) -> None:
        cv2.namedWindow(self.title, cv2.WINDOW_AUTOSIZE)
        cv2.setMouseCallback(self.title, self._on_mouse)
        self._opened = True

    def render(self, state: SessionState, canvas: Canvas) -> None:
        self._size = (canvas.width, canvas.height)
        self._start_visible = not state.started
        view = compose_view(state, canvas, hover=self._hover and self._start_visible)
        cv2.imshow(self.title, view)

    def poll(self) -> str | None:
        key = cv2.waitKey(1) & 0xFF
        if key in _QUIT_KEYS:
            return QUIT
        if self._opened and cv2.getWindowProperty(self.title, cv2.WND_PROP_VISIBLE) < 1:
            return QUIT

        clicked, self._clicked = self._clicked, False
        if self._start_visible and (clicked or key in _START_KEYS):
            return START
        return None

    def close(self) -> None:
        if self._opened:
            cv2.destroyWindow(self.title)
            self._opened = False

    def _on_mouse(self, event, x, y, flags, param) -> None:
        width, height = self._size
        inside = hit_start_button(x, y, width, height)
        if event == cv2.EVENT_MOUSEMOVE:
            self._hover = inside
        elif event == cv2.EVENT_LBUTTONUP and inside and self._start_visible:
            self._clicked = True
