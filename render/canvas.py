from typing import Iterable

import cv2
import numpy as np

CANVAS_WIDTH  = 840
CANVAS_HEIGHT = 680

LANDMARK_COLOR  = (48, 255, 48)   # #30FF30 in BGR
LANDMARK_RADIUS = 2
CONNECTION_COLOR = (192, 192, 192)


class Canvas:
    """
    Fixed-size BGR drawing surface the frame loop paints into.

    `revision` increases on every mutation so the window only re-blits
    when something was actually drawn.
    """

    def __init__(self, width: int = CANVAS_WIDTH, height: int = CANVAS_HEIGHT):
        self.width    = width
        self.height   = height
        self.image    = np.zeros((height, width, 3), dtype=np.uint8)
        self.revision = 0

    def clear(self) -> None:
        self.image[:] = 0
        self.revision += 1

    def draw_image(self, frame: np.ndarray) -> None:
        """Stretch a frame over the whole canvas."""
        if frame.shape[:2] != (self.height, self.width):
            frame = cv2.resize(frame, (self.width, self.height), interpolation=cv2.INTER_LINEAR)
        self.image[:] = frame
        self.revision += 1

    def draw_point(self, x: float, y: float, color=LANDMARK_COLOR, radius: int = LANDMARK_RADIUS) -> None:
        cv2.circle(self.image, (int(round(x)), int(round(y))), radius, color, -1, cv2.LINE_AA)
        self.revision += 1

    def draw_line(self, start: tuple[float, float], end: tuple[float, float],
                  color=CONNECTION_COLOR, thickness: int = 1) -> None:
        p1 = (int(round(start[0])), int(round(start[1])))
        p2 = (int(round(end[0])), int(round(end[1])))
        cv2.line(self.image, p1, p2, color, thickness, cv2.LINE_AA)
        self.revision += 1

    def draw_landmarks(self, landmarks, connections: Iterable[tuple[int, int]] | None = None) -> None:
        """
        Draw one face. Landmarks are normalized (0.0–1.0) and scaled to the
        canvas; connections are (start, end) index pairs drawn under the points.
        """
        points = [(lm.x * self.width, lm.y * self.height) for lm in landmarks]

        if connections:
            for start, end in connections:
                if start < len(points) and end < len(points):
                    self.draw_line(points[start], points[end])

        for x, y in points:
            self.draw_point(x, y)

    def snapshot(self) -> np.ndarray:
        return self.image.copy()
