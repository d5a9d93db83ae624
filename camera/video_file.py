from pathlib import Path

import cv2
import numpy as np
from camera.camera_base import CameraError, CameraSource


class VideoFileSource(CameraSource):
    """
    Plays a recorded clip as if it were a live camera.

    Handy for demos and for reproducing a session without a webcam.
    With `loop=True` the clip rewinds when it runs out; otherwise
    read() keeps returning (False, None) at the end.
    """

    def __init__(self, path: str | Path, loop: bool = True):
        self.path = Path(path)
        self.loop = loop
        self._cap: cv2.VideoCapture | None = None

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def start(self) -> None:
        if not self.path.exists():
            raise CameraError(f"Video file not found: {self.path}")
        cap = cv2.VideoCapture(str(self.path))
        if not cap.isOpened():
            cap.release()
            raise CameraError(f"Could not open video file: {self.path}")
        self._cap = cap
        print(f"[VideoFileSource] Started — {self.path.name}")

    def read(self) -> tuple[bool, np.ndarray]:
        if self._cap is None:
            raise RuntimeError("Camera not started. Call start() first.")
        success, frame = self._cap.read()
        if not success and self.loop:
            self._cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
            success, frame = self._cap.read()
        return success, frame

    def stop(self) -> None:
        if self._cap:
            self._cap.release()
            self._cap = None
            print("[VideoFileSource] Stopped.")
