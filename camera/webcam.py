import cv2
import numpy as np
from camera.camera_base import CameraError, CameraSource


class WebcamSource(CameraSource):
    """OpenCV webcam implementation."""

    def __init__(self, device_index: int = 0, width: int = 1280, height: int = 720, mirror: bool = True):
        self.device_index = device_index
        self.width = width
        self.height = height
        self.mirror = mirror
        self._cap: cv2.VideoCapture | None = None

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def start(self) -> None:
        cap = cv2.VideoCapture(self.device_index)
        if not cap.isOpened():
            cap.release()
            raise CameraError(
                f"Could not open webcam at device index {self.device_index} "
                "(no camera connected, or access was denied)"
            )
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._cap = cap
        print(f"[WebcamSource] Started — device {self.device_index} @ {self.width}x{self.height}")

    def read(self) -> tuple[bool, np.ndarray]:
        if self._cap is None:
            raise RuntimeError("Camera not started. Call start() first.")
        success, frame = self._cap.read()
        if success and self.mirror:
            frame = cv2.flip(frame, 1)  # selfie view
        return success, frame

    def stop(self) -> None:
        if self._cap:
            self._cap.release()
            self._cap = None
            print("[WebcamSource] Stopped.")
