"""
Axis-aligned bounding boxes.

Provides:
- BoundingBox dataclass (min/max corners, extents, corners)
- Bounding box of a point set
"""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


@dataclass
class BoundingBox:
    """Axis-Aligned Bounding Box (AABB).

    Attributes:
        min_point: Minimum corner (x_min, y_min, z_min)
        max_point: Maximum corner (x_max, y_max, z_max)
    """
    min_point: NDArray[np.float64]
    max_point: NDArray[np.float64]

    def __post_init__(self):
        self.min_point = np.asarray(self.min_point, dtype=np.float64)
        self.max_point = np.asarray(self.max_point, dtype=np.float64)
        if self.min_point.shape != (3,) or self.max_point.shape != (3,):
            raise ValueError(
                f"Bounding box corners must be 3D points, got "
                f"{self.min_point.shape} and {self.max_point.shape}"
            )

    @classmethod
    def from_extents(cls, half_extents) -> 'BoundingBox':
        """Create a box centred on the origin from its half extents."""
        half = np.asarray(half_extents, dtype=np.float64)
        return cls(min_point=-half, max_point=half)

    @property
    def dimensions(self) -> NDArray[np.float64]:
        """Get box dimensions (width, height, depth)."""
        return self.max_point - self.min_point

    @property
    def width(self) -> float:
        """X-axis dimension."""
        return float(self.dimensions[0])

    @property
    def height(self) -> float:
        """Y-axis dimension."""
        return float(self.dimensions[1])

    @property
    def depth(self) -> float:
        """Z-axis dimension."""
        return float(self.dimensions[2])

    @property
    def center(self) -> NDArray[np.float64]:
        """Get box center point."""
        return (self.min_point + self.max_point) / 2

    @property
    def volume(self) -> float:
        """Get box volume."""
        dims = self.dimensions
        return float(dims[0] * dims[1] * dims[2])

    def corners(self) -> NDArray[np.float64]:
        """Return the 8 corners as an 8x3 array.

        Corner i takes the max coordinate on axis k when bit k of i is set.
        """
        lo, hi = self.min_point, self.max_point
        return np.array([
            [hi[0] if i & 1 else lo[0],
             hi[1] if i & 2 else lo[1],
             hi[2] if i & 4 else lo[2]]
            for i in range(8)
        ])

    def contains_point(self, point: NDArray[np.float64]) -> bool:
        """Check if point is inside the bounding box."""
        return bool(
            np.all(point >= self.min_point) and
            np.all(point <= self.max_point)
        )

    def contains_box(self, other: 'BoundingBox', margin: float = 0.0) -> bool:
        """Check if `other` fits inside this box with `margin` to spare on every side."""
        return bool(
            np.all(other.min_point - margin >= self.min_point) and
            np.all(other.max_point + margin <= self.max_point)
        )

    def expand(self, margin: float) -> 'BoundingBox':
        """Return expanded bounding box by margin on all sides."""
        return BoundingBox(
            min_point=self.min_point - margin,
            max_point=self.max_point + margin
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'min': self.min_point.tolist(),
            'max': self.max_point.tolist(),
            'dimensions': self.dimensions.tolist(),
            'center': self.center.tolist(),
        }


def calculate_bounding_box(points: NDArray[np.float64]) -> BoundingBox:
    """Calculate axis-aligned bounding box for a point set.

    Args:
        points: Nx3 array of coordinates

    Returns:
        BoundingBox instance (degenerate at the origin for an empty set)
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) == 0:
        return BoundingBox(
            min_point=np.zeros(3),
            max_point=np.zeros(3)
        )

    return BoundingBox(
        min_point=np.min(points, axis=0),
        max_point=np.max(points, axis=0)
    )
