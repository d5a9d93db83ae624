import cv2
import numpy as np
import mediapipe as mp
from pathlib import Path
from detectors.detector_base import Detector, DetectorInitError, LandmarkSet
from utils.download_models import download_model

BaseOptions           = mp.tasks.BaseOptions
FaceLandmarker        = mp.tasks.vision.FaceLandmarker
FaceLandmarkerOptions = mp.tasks.vision.FaceLandmarkerOptions
VisionRunningMode     = mp.tasks.vision.RunningMode

FACE_LANDMARKER_MODEL = "face_landmarker.task"
FACE_LANDMARKER_MODEL_PATH = Path(__file__).parent.parent / "models" / FACE_LANDMARKER_MODEL

# Tried in order; the first one MediaPipe accepts wins.
_DELEGATE_CHAIN = {
    "gpu": ("gpu", "cpu"),
    "cpu": ("cpu",),
}


def face_tesselation() -> list[tuple[int, int]]:
    """(start, end) index pairs of the face mesh, for the optional wireframe overlay."""
    connections = mp.tasks.vision.FaceLandmarksConnections.FACE_LANDMARKS_TESSELATION
    return [(c.start, c.end) for c in connections]


class FaceLandmarkDetector(Detector):
    """
    MediaPipe Face Landmarker in VIDEO mode, tracking a single face.

    Returns the landmark sets from `result.face_landmarks`: one list of
    478 normalized points per face (x, y in 0.0–1.0, z relative depth).
    The GPU delegate is tried first and the CPU delegate is the fallback.

    If the model file is missing it is downloaded on construction, unless
    `download=False`. Every construction failure is raised as
    DetectorInitError so the caller can show it.
    """

    def __init__(
        self,
        model_path: str | Path = FACE_LANDMARKER_MODEL_PATH,
        delegate: str = "gpu",
        min_detection_confidence: float = 0.5,
        download: bool = True,
    ):
        delegate = delegate.lower()
        if delegate not in _DELEGATE_CHAIN:
            raise ValueError(f"Unknown delegate: '{delegate}'. Valid options: gpu, cpu")

        self.model_path = self._resolve_model(Path(model_path), download)
        self.min_detection_confidence = min_detection_confidence
        self.delegate = None
        self._landmarker = self._create(_DELEGATE_CHAIN[delegate])

    @staticmethod
    def _resolve_model(model_path: Path, download: bool) -> Path:
        if model_path.exists():
            return model_path
        if not download:
            raise DetectorInitError(
                f"Model not found: {model_path}\n"
                "Run: python -m utils.download_models"
            )
        try:
            return download_model(model_path.name, model_path.parent)
        except (RuntimeError, ValueError) as e:
            raise DetectorInitError(f"Could not fetch face landmarker model: {e}") from e

    def _options(self, delegate: str) -> FaceLandmarkerOptions:
        accel = BaseOptions.Delegate.GPU if delegate == "gpu" else BaseOptions.Delegate.CPU
        return FaceLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=str(self.model_path), delegate=accel),
            running_mode=VisionRunningMode.VIDEO,
            num_faces=1,
            min_face_detection_confidence=self.min_detection_confidence,
            min_face_presence_confidence=self.min_detection_confidence,
            min_tracking_confidence=self.min_detection_confidence,
        )

    def _create(self, delegates: tuple[str, ...]):
        last_error: Exception | None = None
        for delegate in delegates:
            try:
                landmarker = FaceLandmarker.create_from_options(self._options(delegate))
            except (RuntimeError, ValueError, NotImplementedError) as e:
                print(f"[FaceLandmarkDetector] {delegate.upper()} delegate unavailable: {e}")
                last_error = e
                continue
            self.delegate = delegate
            print(f"[FaceLandmarkDetector] Ready — {self.model_path.name} on {delegate.upper()}")
            return landmarker

        raise DetectorInitError(
            f"Face landmarker could not start on any delegate ({', '.join(delegates)}): {last_error}"
        ) from last_error

    def detect(self, frame: np.ndarray, timestamp_ms: int) -> list[LandmarkSet]:
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        result = self._landmarker.detect_for_video(mp_image, int(timestamp_ms))
        return list(result.face_landmarks)

    def release(self) -> None:
        self._landmarker.close()
