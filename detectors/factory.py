from detectors.detector_base import Detector


def create_detector(config: dict) -> Detector:
    """
    Factory function that builds the landmark detector named in config.
    Blocking: loads (and possibly downloads) the model.
    """
    det_cfg = config.get("detection", {})
    det_type = det_cfg.get("type", "face_landmarker").lower()

    if det_type == "face_landmarker":
        from detectors.face_landmarks import FaceLandmarkDetector, FACE_LANDMARKER_MODEL_PATH
        return FaceLandmarkDetector(
            model_path=det_cfg.get("model_path") or FACE_LANDMARKER_MODEL_PATH,
            delegate=det_cfg.get("delegate", "gpu"),
            min_detection_confidence=det_cfg.get("min_detection_confidence", 0.5),
            download=det_cfg.get("download_model", True),
        )

    else:
        raise ValueError(f"Unknown detector type: '{det_type}'. Valid options: face_landmarker")
