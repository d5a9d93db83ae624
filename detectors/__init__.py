from detectors.detector_base import Detector, DetectorInitError, LandmarkSet
from detectors.factory       import create_detector

__all__ = ["Detector", "DetectorInitError", "LandmarkSet", "create_detector"]
