import pytest

import ui.window as window_module
from render.canvas import Canvas
from render.overlay import start_button_rect
from state.schema import SessionState
from ui.window import QUIT, START, PreviewWindow


@pytest.fixture
def gui(monkeypatch):
    """Headless stand-in for the OpenCV HighGUI calls."""
    calls = {"keys": [], "shown": []}
    cv2 = window_module.cv2
    monkeypatch.setattr(cv2, "namedWindow", lambda *a, **k: None)
    monkeypatch.setattr(cv2, "setMouseCallback", lambda *a, **k: None)
    monkeypatch.setattr(cv2, "imshow", lambda title, img: calls["shown"].append(img.shape))
    monkeypatch.setattr(cv2, "waitKey", lambda delay: calls["keys"].pop(0) if calls["keys"] else -1)
    monkeypatch.setattr(cv2, "getWindowProperty", lambda *a: 1.0)
    monkeypatch.setattr(cv2, "destroyWindow", lambda *a: None)
    return calls


def open_window(state, canvas):
    window = PreviewWindow("test")
    window.open()
    window.render(state, canvas)
    return window


def test_space_starts_while_button_visible(gui):
    window = open_window(SessionState(), Canvas())
    gui["keys"] = [ord(" ")]
    assert window.poll() == START
    assert gui["shown"] == [(680 + 90, 840, 3)]


def test_start_keys_ignored_once_started(gui):
    state = SessionState()
    state.started = True
    window = open_window(state, Canvas())
    gui["keys"] = [13]
    assert window.poll() is None


def test_click_on_button_starts(gui):
    window = open_window(SessionState(), Canvas())
    x1, y1, x2, y2 = start_button_rect(840, 680)
    window._on_mouse(window_module.cv2.EVENT_LBUTTONUP, (x1 + x2) // 2, (y1 + y2) // 2, 0, None)
    assert window.poll() == START
    assert window.poll() is None


def test_click_outside_button_does_nothing(gui):
    window = open_window(SessionState(), Canvas())
    window._on_mouse(window_module.cv2.EVENT_LBUTTONUP, 1, 1, 0, None)
    assert window.poll() is None


@pytest.mark.parametrize("key", [ord("q"), 27])
def test_quit_keys(gui, key):
    window = open_window(SessionState(), Canvas())
    gui["keys"] = [key]
    assert window.poll() == QUIT


def test_closing_window_quits(gui, monkeypatch):
    window = open_window(SessionState(), Canvas())
    monkeypatch.setattr(window_module.cv2, "getWindowProperty", lambda *a: 0.0)
    assert window.poll() == QUIT
