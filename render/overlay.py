import cv2
import numpy as np

from render.canvas import Canvas
from state.schema import Phase, SessionState

PANEL_HEIGHT = 90

BUTTON_SIZE   = (200, 70)
BUTTON_COLOR  = (80, 175, 76)    # #4CAF50 in BGR
BUTTON_HOVER  = (73, 160, 69)    # #45a049
TEXT_COLOR    = (255, 255, 255)
ERROR_COLOR   = (60, 60, 230)
DONE_COLOR    = (0, 200, 255)
IDLE_BG       = (30, 30, 30)


def start_button_rect(width: int, height: int) -> tuple[int, int, int, int]:
    """Start button (x1, y1, x2, y2), centered on the canvas area."""
    bw, bh = BUTTON_SIZE
    x1 = (width - bw) // 2
    y1 = (height - bh) // 2
    return x1, y1, x1 + bw, y1 + bh


def hit_start_button(x: int, y: int, width: int, height: int) -> bool:
    x1, y1, x2, y2 = start_button_rect(width, height)
    return x1 <= x <= x2 and y1 <= y <= y2


def _put_centered(image, text, cy, scale, color, thickness=2) -> None:
    (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, scale, thickness)
    x = (image.shape[1] - tw) // 2
    cv2.putText(image, text, (x, cy + th // 2), cv2.FONT_HERSHEY_SIMPLEX,
                scale, color, thickness, cv2.LINE_AA)


def draw_start_button(image: np.ndarray, hover: bool = False) -> None:
    h, w = image.shape[:2]
    x1, y1, x2, y2 = start_button_rect(w, h)
    cv2.rectangle(image, (x1, y1), (x2, y2), BUTTON_HOVER if hover else BUTTON_COLOR, -1)
    _put_centered(image, "Start", (y1 + y2) // 2, 1.1, TEXT_COLOR)


def compose_view(state: SessionState, canvas: Canvas, hover: bool = False) -> np.ndarray:
    """
    Build the window image: the canvas area on top, a status panel below.

    Before the session starts the canvas area holds the Start button;
    afterwards it shows the canvas. The panel always carries the
    countdown readout, plus the current error or the end-of-session note.
    """
    view = np.zeros((canvas.height + PANEL_HEIGHT, canvas.width, 3), dtype=np.uint8)
    area = view[:canvas.height]

    if state.started:
        area[:] = canvas.image
    else:
        area[:] = IDLE_BG
        draw_start_button(area, hover)

    panel = view[canvas.height:]
    _put_centered(panel, f"Time remaining: {state.display}", 28, 0.9, TEXT_COLOR)

    if state.error is not None:
        _put_centered(panel, state.error.message.splitlines()[0], 66, 0.55, ERROR_COLOR, 1)
    elif state.phase == Phase.FINISHED:
        _put_centered(panel, "Time's up", 66, 0.7, DONE_COLOR)
    elif state.started and state.detector is None:
        _put_centered(panel, "Loading face detector...", 66, 0.55, TEXT_COLOR, 1)
    elif state.started and not state.timer_active:
        _put_centered(panel, "Paused (no face detected)", 66, 0.55, TEXT_COLOR, 1)

    return view
