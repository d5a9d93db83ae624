"""
Download the MediaPipe model files used by eye-timer.

The face landmarker is fetched automatically on first start, but it can
be pulled ahead of time:
    python -m utils.download_models
"""

import subprocess
from pathlib import Path

MODELS_DIR = Path(__file__).parent.parent / "models"

MODELS = {
    "face_landmarker.task": (
        "https://storage.googleapis.com/mediapipe-models/"
        "face_landmarker/face_landmarker/float16/1/face_landmarker.task"
    ),
}


def download_model(filename: str, dest_dir: Path = MODELS_DIR) -> Path:
    """
    Fetch one model into `dest_dir` unless it is already there.
    Raises RuntimeError if the download fails.
    """
    url = MODELS.get(filename)
    if url is None:
        raise ValueError(f"Unknown model '{filename}'. Known: {', '.join(MODELS)}")

    dest_dir = Path(dest_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest = dest_dir / filename
    if dest.exists():
        print(f"[skip] {filename} already exists")
        return dest

    print(f"[download] {filename} ...")
    try:
        result = subprocess.run(
            ["curl", "-fL", "-o", str(dest), url],
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise RuntimeError("curl is not installed; download the model manually") from e

    if result.returncode != 0:
        dest.unlink(missing_ok=True)  # remove partial file
        raise RuntimeError(f"Failed to download {filename}:\n{result.stderr}")

    print(f"[done] {filename} saved to {dest}")
    return dest


def download_models(dest_dir: Path = MODELS_DIR) -> None:
    for filename in MODELS:
        try:
            download_model(filename, dest_dir)
        except RuntimeError as e:
            print(f"[error] {e}")


if __name__ == "__main__":
    download_models()
    print("\nAll models ready.")
