from abc import ABC, abstractmethod
import numpy as np


class CameraError(RuntimeError):
    """The camera could not be opened (permission denied, no device, bad file)."""


class CameraSource(ABC):
    """Abstract base class for all camera sources."""

    @abstractmethod
    def start(self) -> None:
        """Open the source. Raises CameraError if it cannot be opened."""
        ...

    @abstractmethod
    def read(self) -> tuple[bool, np.ndarray]:
        """
        Read a frame from the camera.
        Returns (success, frame) where frame is a BGR numpy array.
        """
        ...

    @abstractmethod
    def stop(self) -> None:
        """Release camera resources."""
        ...

    @property
    def is_open(self) -> bool:
        return False

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args):
        self.stop()
