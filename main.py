"""
eye-timer: main entry point

Shows a Start button; once pressed, opens the camera, tracks the face
with MediaPipe and counts down 30 minutes, pausing whenever no face
is in view.

Usage:
    python main.py
    python main.py --config path/to/config.yaml
    python main.py --autostart
"""

import argparse
import asyncio
from functools import partial

import yaml

from camera.factory  import create_camera
from detectors       import create_detector
from osc.sender      import OSCSender
from render.canvas   import Canvas, CANVAS_HEIGHT, CANVAS_WIDTH
from session.manager import SessionManager
from state.schema    import DEFAULT_DURATION_SECONDS, Phase
from ui.window       import PreviewWindow, QUIT, START


def load_config(path: str = "config.yaml") -> dict:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def build_session(config: dict) -> SessionManager:
    """Wire camera, detector factory, canvas and status publisher from config."""
    timer_cfg = config.get("timer", {})
    ui_cfg    = config.get("ui", {})
    osc_cfg   = config.get("osc", {})
    debug_cfg = config.get("debug", {})

    connections = None
    if ui_cfg.get("draw_connections", False):
        from detectors.face_landmarks import face_tesselation
        connections = face_tesselation()

    publisher = None
    if osc_cfg.get("enabled", False):
        publisher = OSCSender(
            host=osc_cfg.get("host", "127.0.0.1"),
            port=osc_cfg.get("port", 7000),
        )

    return SessionManager(
        camera=create_camera(config),
        detector_factory=partial(create_detector, config),
        canvas=Canvas(
            width=ui_cfg.get("canvas_width", CANVAS_WIDTH),
            height=ui_cfg.get("canvas_height", CANVAS_HEIGHT),
        ),
        duration_seconds=timer_cfg.get("duration_seconds", DEFAULT_DURATION_SECONDS),
        tick_seconds=timer_cfg.get("tick_seconds", 1.0),
        frame_interval=1.0 / ui_cfg.get("frame_rate", 60),
        connections=connections,
        print_detections=debug_cfg.get("print_detections", False),
        publisher=publisher,
    )


async def run(config: dict, autostart: bool = False) -> None:
    ui_cfg    = config.get("ui", {})
    debug_cfg = config.get("debug", {})

    show_preview = debug_cfg.get("show_preview", True)
    autostart    = autostart or ui_cfg.get("autostart", False) or not show_preview
    ui_interval  = 1.0 / ui_cfg.get("refresh_rate", 30)

    session = build_session(config)
    window  = PreviewWindow(ui_cfg.get("title", "Eye Tracking Timer")) if show_preview else None

    start_tasks: set[asyncio.Task] = set()

    def request_start() -> None:
        task = asyncio.get_running_loop().create_task(session.start())
        start_tasks.add(task)
        task.add_done_callback(start_tasks.discard)

    # ── Mount ────────────────────────────────────────────────────────────────
    session.mount()
    if autostart:
        request_start()

    print("\n[main] Ready. Press Start (or Space), Q / Esc to quit.\n")

    try:
        if window:
            window.open()

        while True:
            if window:
                window.render(session.state, session.canvas)
                action = window.poll()
                if action == QUIT:
                    print("[main] Quit requested.")
                    break
                if action == START:
                    request_start()

            # Without a window nobody can press Start again, so stop on the end states.
            elif session.state.phase in (Phase.FINISHED, Phase.ERROR):
                print(f"[main] Session ended: {session.state.phase.value}.")
                break

            await asyncio.sleep(ui_interval)

    finally:
        for task in start_tasks:
            task.cancel()
        await session.teardown()
        if window:
            window.close()


def main():
    parser = argparse.ArgumentParser(description="eye-timer: focus countdown that pauses when you look away")
    parser.add_argument("--config", default="config.yaml", help="Path to config YAML")
    parser.add_argument("--autostart", action="store_true", help="Start the session without pressing Start")
    args = parser.parse_args()

    config = load_config(args.config)

    try:
        asyncio.run(run(config, autostart=args.autostart))
    except KeyboardInterrupt:
        print("\n[main] Interrupted — shutting down.")
    finally:
        print("[main] Done.")


if __name__ == "__main__":
    main()
