"""
Dense scalar voxel grid sampled from a signed distance field.

Provides:
- VoxelGrid fitted to a shape's world bounds with a one-voxel margin
- Vectorized sampling of the shape's distance at every voxel centre
- Bounds-checked voxel reads that return SENTINEL outside the grid
- Corner/centre world positions for integer voxel coordinates

Values are stored row-major in a flat backing array,
index = z * width * height + y * width + x, so that ``values`` is a
(depth, height, width) view. The backing array only ever grows, to the next
power of two of the required voxel count.
"""

import logging
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from isosurface.geometry.bounds import BoundingBox
from isosurface.sdf.shapes import Shape

logger = logging.getLogger(__name__)

SENTINEL = 10000.0
DEFAULT_VOXEL_SIZE = 0.1


def _next_pow2(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()


class VoxelGrid:
    """Axis-aligned grid of cubic voxels holding signed distances.

    Args:
        voxel_size: Voxel edge length in world units (must be > 0)
    """

    def __init__(self, voxel_size: float = DEFAULT_VOXEL_SIZE):
        self._voxel_size = DEFAULT_VOXEL_SIZE
        self.voxel_size = voxel_size
        self._origin = np.zeros(3, dtype=np.float64)
        self._dims = (0, 0, 0)
        self._data = np.zeros(0, dtype=np.float64)

    @property
    def voxel_size(self) -> float:
        return self._voxel_size

    @voxel_size.setter
    def voxel_size(self, value: float) -> None:
        if not value > 0:
            raise ValueError(f"Voxel size must be positive, got {value}")
        self._voxel_size = float(value)

    @property
    def origin(self) -> NDArray[np.float64]:
        """World-space minimum corner of voxel (0, 0, 0)."""
        return self._origin.copy()

    @property
    def width(self) -> int:
        return self._dims[0]

    @property
    def height(self) -> int:
        return self._dims[1]

    @property
    def depth(self) -> int:
        return self._dims[2]

    @property
    def dimensions(self) -> Tuple[int, int, int]:
        """(width, height, depth) in voxels."""
        return self._dims

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Array shape of ``values``: (depth, height, width)."""
        return (self.depth, self.height, self.width)

    @property
    def n_voxels(self) -> int:
        return self.width * self.height * self.depth

    @property
    def capacity(self) -> int:
        """Size of the backing storage in voxels."""
        return len(self._data)

    @property
    def values(self) -> NDArray[np.float64]:
        """Voxel values as a (depth, height, width) view of the storage."""
        return self._data[:self.n_voxels].reshape(self.shape)

    def padded_values(self, pad_value: float = SENTINEL) -> NDArray[np.float64]:
        """Copy of ``values`` with a one-voxel border of `pad_value`.

        Element [z + 1, y + 1, x + 1] is voxel (x, y, z), so with the default
        pad every index in range agrees with get_voxel(x, y, z).
        """
        return np.pad(self.values, 1, mode='constant', constant_values=pad_value)

    def world_extent(self) -> BoundingBox:
        """World-space box covered by the grid."""
        size = self._voxel_size
        return BoundingBox(
            min_point=self._origin,
            max_point=self._origin + np.array(self._dims, dtype=np.float64) * size,
        )

    def fit_to_shape(self, shape: Shape) -> None:
        """Resize and reposition the grid around the shape's world bounds.

        Leaves at least one voxel of padding below the bounds on every axis.
        Old voxel values are not preserved; call voxelize() afterwards.
        """
        bounds = shape.world_bounds()
        size = self._voxel_size

        origin = (np.floor(bounds.min_point / size) - 1.0) * size
        dims = np.ceil(bounds.dimensions / size).astype(np.int64) + 2

        self._origin = origin
        self._dims = (int(dims[0]), int(dims[1]), int(dims[2]))

        required = self.n_voxels
        if required > self.capacity:
            new_capacity = _next_pow2(required)
            logger.debug(
                "Growing voxel storage",
                extra={'old_capacity': self.capacity, 'new_capacity': new_capacity}
            )
            self._data = np.zeros(new_capacity, dtype=np.float64)

        logger.debug(
            "Grid fitted to shape",
            extra={
                'shape': str(shape),
                'origin': origin.tolist(),
                'dimensions': list(self._dims),
                'voxel_size': size,
            }
        )

    def axis_corner_positions(self, axis: int, start: int, stop: int) -> NDArray[np.float64]:
        """World coordinates of voxel corners start..stop-1 along one axis.

        Same arithmetic as get_voxel_corner_pos, so entries are bit-identical
        to the per-voxel results.
        """
        coords = np.arange(start, stop, dtype=np.float64)
        return coords * self._voxel_size + self._origin[axis]

    def axis_center_positions(self, axis: int, start: int, stop: int) -> NDArray[np.float64]:
        """World coordinates of voxel centres start..stop-1 along one axis."""
        return self.axis_corner_positions(axis, start, stop) + self._voxel_size * 0.5

    def voxelize(self, shape: Shape) -> None:
        """Sample the shape's world distance at every voxel centre."""
        if self.n_voxels == 0:
            return

        xs = self.axis_center_positions(0, 0, self.width)
        ys = self.axis_center_positions(1, 0, self.height)
        zs = self.axis_center_positions(2, 0, self.depth)

        zz, yy, xx = np.meshgrid(zs, ys, xs, indexing='ij')
        centers = np.stack([xx.ravel(), yy.ravel(), zz.ravel()], axis=1)

        distances = shape.world_distance(centers)
        self._data[:self.n_voxels] = distances

        logger.debug(
            "Voxelized shape",
            extra={
                'shape': str(shape),
                'voxels': self.n_voxels,
                'inside': int(np.count_nonzero(distances < 0.0)),
            }
        )

    def in_bounds(self, x: int, y: int, z: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height and 0 <= z < self.depth

    def get_voxel(self, x: int, y: int, z: int) -> float:
        """Stored value at (x, y, z), or SENTINEL outside the grid."""
        if not self.in_bounds(x, y, z):
            return SENTINEL
        return float(self._data[z * self.width * self.height + y * self.width + x])

    def set_voxel(self, x: int, y: int, z: int, value: float) -> None:
        """Overwrite one voxel.

        Raises:
            IndexError: If (x, y, z) is outside the grid
        """
        if not self.in_bounds(x, y, z):
            raise IndexError(f"Voxel ({x}, {y}, {z}) outside grid {self._dims}")
        self._data[z * self.width * self.height + y * self.width + x] = value

    def get_voxel_corner_pos(self, x: int, y: int, z: int) -> NDArray[np.float64]:
        """World position of the minimum corner of voxel (x, y, z).

        Not bounds-checked: coordinates outside the grid are extrapolated.
        """
        return np.array([x, y, z], dtype=np.float64) * self._voxel_size + self._origin

    def get_voxel_center_pos(self, x: int, y: int, z: int) -> NDArray[np.float64]:
        """World position of the centre of voxel (x, y, z). Not bounds-checked."""
        return self.get_voxel_corner_pos(x, y, z) + self._voxel_size * 0.5

    def __repr__(self) -> str:
        return (
            f"VoxelGrid(voxel_size={self._voxel_size}, origin={self._origin.tolist()}, "
            f"dimensions={self._dims})"
        )
