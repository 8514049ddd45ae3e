"""
Geometry helpers shared by the animation consumers and the viewer:
Euler rotation matrices and a fixed perspective view camera.
"""

import math
import logging
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)


def euler_to_matrix(x: float, y: float, z: float) -> np.ndarray:
    """Rotation matrix for intrinsic XYZ Euler angles (R = Rx @ Ry @ Rz)."""
    cx, sx = math.cos(x), math.sin(x)
    cy, sy = math.cos(y), math.sin(y)
    cz, sz = math.cos(z), math.sin(z)

    rx = np.array([[1.0, 0.0, 0.0],
                   [0.0, cx, -sx],
                   [0.0, sx, cx]])
    ry = np.array([[cy, 0.0, sy],
                   [0.0, 1.0, 0.0],
                   [-sy, 0.0, cy]])
    rz = np.array([[cz, -sz, 0.0],
                   [sz, cz, 0.0],
                   [0.0, 0.0, 1.0]])
    return rx @ ry @ rz


def rotate_points(points: np.ndarray, orientation) -> np.ndarray:
    """Rotate an (N, 3) array about the origin by (x, y, z) Euler angles."""
    matrix = euler_to_matrix(*orientation)
    return points @ matrix.T


class ViewCamera:
    """Perspective camera on the +z axis looking at the origin.

    Normalized device coordinates follow the screen convention used by the
    cursor: x to the right, y up, [-1, 1] across the viewport.
    """

    def __init__(self, config: dict = None):
        config = config or {}
        position = config.get("camera_position", [0.0, 0.0, 15.0])
        self.position = np.asarray(position, dtype=np.float64)
        self.fov_deg = float(config.get("fov", 60.0))
        self.aspect = float(config.get("aspect", 4.0 / 3.0))
        self.near = float(config.get("near", 0.1))
        self._tan_half = math.tan(math.radians(self.fov_deg) / 2.0)

    def set_aspect(self, width: int, height: int):
        if height > 0:
            self.aspect = width / height

    def unproject(self, ndc: Tuple[float, float], plane_z: float = 0.0) -> np.ndarray:
        """Intersect the view ray through ``ndc`` with the plane z = plane_z."""
        direction = np.array([
            ndc[0] * self._tan_half * self.aspect,
            ndc[1] * self._tan_half,
            -1.0,
        ])
        t = self.position[2] - plane_z
        return self.position + direction * t

    def project(self, points: np.ndarray, width: int, height: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Project world points to pixel coordinates.

        Returns:
            (pixels (N, 2) int32, depth (N,), visible mask (N,))
        """
        rel = points - self.position
        depth = -rel[:, 2]
        visible = depth > self.near
        safe_depth = np.where(visible, depth, 1.0)

        ndc_x = rel[:, 0] / (safe_depth * self._tan_half * self.aspect)
        ndc_y = rel[:, 1] / (safe_depth * self._tan_half)

        pixels = np.empty((len(points), 2), dtype=np.int32)
        pixels[:, 0] = ((ndc_x + 1.0) * 0.5 * width).astype(np.int32)
        pixels[:, 1] = ((1.0 - ndc_y) * 0.5 * height).astype(np.int32)

        visible &= (pixels[:, 0] >= 0) & (pixels[:, 0] < width)
        visible &= (pixels[:, 1] >= 0) & (pixels[:, 1] < height)
        return pixels, depth, visible
