from abc import ABC, abstractmethod
from typing import Sequence
import numpy as np

# One face: ordered normalized points exposing .x, .y (0.0–1.0) and .z
LandmarkSet = Sequence


class DetectorInitError(RuntimeError):
    """The detection engine could not be built (model fetch, hardware, bad file)."""


class Detector(ABC):
    """
    Base class for landmark detectors.
    A detector is built once, then called by the frame loop with
    strictly increasing timestamps.
    """

    @abstractmethod
    def detect(self, frame: np.ndarray, timestamp_ms: int) -> list[LandmarkSet]:
        """
        Analyze a BGR frame and return one landmark set per detected face.
        An empty list means no face was found.
        """
        ...

    def release(self) -> None:
        """Optional cleanup hook (e.g. close MediaPipe sessions)."""
        pass
