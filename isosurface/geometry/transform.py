"""
Affine transform utilities for placing shapes in world space.

Provides:
- AffineTransform class for representing and composing 4x4 transforms
- Scale, translation and per-axis rotation constructors
- ShapeTransform: scale/rotate/translate parameters with cached
  local-to-world and world-to-local matrices

Composition order (local -> world) is Translate @ Rz @ Ry @ Rx @ Scale.
The inverse is built from the inverted pieces in reverse order rather than
by a general matrix inversion.
"""

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from isosurface.exceptions import InvalidShapeConfiguration

logger = logging.getLogger(__name__)

Vector3 = Tuple[float, float, float]


@dataclass
class AffineTransform:
    """3D affine transform represented as a homogeneous matrix.

    Attributes:
        matrix: 4x4 matrix whose last row is (0, 0, 0, 1)
    """
    matrix: NDArray[np.float64]

    def __post_init__(self):
        """Validate transform matrix."""
        self.matrix = np.asarray(self.matrix, dtype=np.float64)
        if self.matrix.shape != (4, 4):
            raise ValueError(f"Transform matrix must be 4x4, got {self.matrix.shape}")

    @classmethod
    def identity(cls) -> 'AffineTransform':
        """Create identity transform."""
        return cls(np.eye(4))

    @classmethod
    def scaling(cls, sx: float, sy: float, sz: float) -> 'AffineTransform':
        """Create non-uniform scale about the origin."""
        return cls(np.diag([sx, sy, sz, 1.0]))

    @classmethod
    def translation(cls, tx: float, ty: float, tz: float) -> 'AffineTransform':
        """Create translation."""
        matrix = np.eye(4)
        matrix[:3, 3] = (tx, ty, tz)
        return cls(matrix)

    @classmethod
    def around_x(cls, angle_deg: float) -> 'AffineTransform':
        """Create rotation around X axis (angle in degrees)."""
        c, s = _cos_sin(angle_deg)
        return cls(np.array([
            [1, 0, 0, 0],
            [0, c, -s, 0],
            [0, s, c, 0],
            [0, 0, 0, 1],
        ]))

    @classmethod
    def around_y(cls, angle_deg: float) -> 'AffineTransform':
        """Create rotation around Y axis (angle in degrees)."""
        c, s = _cos_sin(angle_deg)
        return cls(np.array([
            [c, 0, s, 0],
            [0, 1, 0, 0],
            [-s, 0, c, 0],
            [0, 0, 0, 1],
        ]))

    @classmethod
    def around_z(cls, angle_deg: float) -> 'AffineTransform':
        """Create rotation around Z axis (angle in degrees)."""
        c, s = _cos_sin(angle_deg)
        return cls(np.array([
            [c, -s, 0, 0],
            [s, c, 0, 0],
            [0, 0, 1, 0],
            [0, 0, 0, 1],
        ]))

    def apply(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Apply transform to points.

        Args:
            points: single 3D point or Nx3 array of points

        Returns:
            Transformed point(s), same shape as input
        """
        points = np.asarray(points, dtype=np.float64)
        linear = self.matrix[:3, :3]
        offset = self.matrix[:3, 3]
        if points.ndim == 1:
            return linear @ points + offset
        return points @ linear.T + offset

    def compose(self, other: 'AffineTransform') -> 'AffineTransform':
        """Compose with another transform: self * other.

        Result applies `other` first, then `self`.
        """
        return AffineTransform(self.matrix @ other.matrix)

    def is_identity(self, tol: float = 1e-12) -> bool:
        """Check if transform is identity."""
        return np.allclose(self.matrix, np.eye(4), atol=tol)

    def __matmul__(self, other: 'AffineTransform') -> 'AffineTransform':
        """Matrix multiplication operator."""
        return self.compose(other)


def _cos_sin(angle_deg: float) -> Tuple[float, float]:
    angle_rad = np.radians(angle_deg)
    return float(np.cos(angle_rad)), float(np.sin(angle_rad))


def _as_vector3(values: Sequence[float], name: str) -> Vector3:
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


class ShapeTransform:
    """Scale, rotation (degrees, about X then Y then Z) and translation of a shape.

    Any parameter change marks the combined matrices dirty; they are rebuilt
    before the next point transform, so queries never see a stale transform.
    """

    def __init__(
        self,
        scale: Sequence[float] = (1.0, 1.0, 1.0),
        rotation_deg: Sequence[float] = (0.0, 0.0, 0.0),
        translation: Sequence[float] = (0.0, 0.0, 0.0),
    ):
        self._scale = _as_vector3(scale, "scale")
        self._rotation_deg = _as_vector3(rotation_deg, "rotation_deg")
        self._translation = _as_vector3(translation, "translation")
        self._local_to_world = AffineTransform.identity()
        self._world_to_local = AffineTransform.identity()
        self._dirty = True

    @property
    def scale(self) -> Vector3:
        return self._scale

    @scale.setter
    def scale(self, values: Sequence[float]) -> None:
        self._scale = _as_vector3(values, "scale")
        self._dirty = True

    @property
    def rotation_deg(self) -> Vector3:
        return self._rotation_deg

    @rotation_deg.setter
    def rotation_deg(self, values: Sequence[float]) -> None:
        self._rotation_deg = _as_vector3(values, "rotation_deg")
        self._dirty = True

    @property
    def translation(self) -> Vector3:
        return self._translation

    @translation.setter
    def translation(self, values: Sequence[float]) -> None:
        self._translation = _as_vector3(values, "translation")
        self._dirty = True

    @property
    def is_dirty(self) -> bool:
        """True when a parameter changed since the matrices were last built."""
        return self._dirty

    @property
    def local_to_world(self) -> AffineTransform:
        self._refresh()
        return self._local_to_world

    @property
    def world_to_local(self) -> AffineTransform:
        self._refresh()
        return self._world_to_local

    def transform_to_world(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Map local-space point(s) to world space."""
        return self.local_to_world.apply(points)

    def transform_to_local(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Map world-space point(s) to local space."""
        return self.world_to_local.apply(points)

    def _refresh(self) -> None:
        if not self._dirty:
            return

        sx, sy, sz = self._scale
        rx, ry, rz = self._rotation_deg
        tx, ty, tz = self._translation

        scale = AffineTransform.scaling(sx, sy, sz)
        rot_x = AffineTransform.around_x(rx)
        rot_y = AffineTransform.around_y(ry)
        rot_z = AffineTransform.around_z(rz)
        translate = AffineTransform.translation(tx, ty, tz)

        if sx == 0.0 or sy == 0.0 or sz == 0.0:
            raise InvalidShapeConfiguration(
                f"Cannot invert shape transform with zero scale {self._scale}"
            )

        # Rotation inverses are transposes; scale and translation invert per component
        inv_scale = AffineTransform.scaling(1.0 / sx, 1.0 / sy, 1.0 / sz)
        inv_rot_x = AffineTransform(rot_x.matrix.T)
        inv_rot_y = AffineTransform(rot_y.matrix.T)
        inv_rot_z = AffineTransform(rot_z.matrix.T)
        inv_translate = AffineTransform.translation(-tx, -ty, -tz)

        self._local_to_world = translate @ rot_z @ rot_y @ rot_x @ scale
        self._world_to_local = inv_scale @ inv_rot_x @ inv_rot_y @ inv_rot_z @ inv_translate
        self._dirty = False

        logger.debug(
            "Shape transform rebuilt",
            extra={
                'scale': list(self._scale),
                'rotation_deg': list(self._rotation_deg),
                'translation': list(self._translation),
            }
        )

    def __repr__(self) -> str:
        return (
            f"ShapeTransform(scale={self._scale}, rotation_deg={self._rotation_deg}, "
            f"translation={self._translation})"
        )


def clamp_scale(value: float, minimum: float = 0.001) -> float:
    """Clamp a scale component away from zero, keeping its sign.

    Callers run user-supplied scales through this before handing them to a
    ShapeTransform; the transform itself never clamps.
    """
    if abs(value) >= minimum:
        return float(value)
    return -minimum if value < 0 else minimum
