"""
Triangle mesh container produced by the surface builders.

Vertices are stored once per distinct position; triangles reference them by
index and carry a smoothing group (0 = flat, 1 = smooth).
"""

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np
from numpy.typing import NDArray

Point3 = Tuple[float, float, float]
Triangle = Tuple[int, int, int]

FLAT_SMOOTHING_GROUP = 0
SMOOTH_SMOOTHING_GROUP = 1

# Renderers that insist on a texture coordinate per face vertex get this one
DEFAULT_TEXTURE_COORD = (0.0, 0.0)


@dataclass
class Mesh:
    """Triangle mesh with per-triangle smoothing groups.

    Attributes:
        vertices: Vertex positions
        faces: Triangles as triples of vertex indices
        smoothing_groups: Smoothing group of each triangle
        texture_coords: Texture coordinates (a single default entry)
    """
    vertices: List[Point3] = field(default_factory=list)
    faces: List[Triangle] = field(default_factory=list)
    smoothing_groups: List[int] = field(default_factory=list)
    texture_coords: List[Tuple[float, float]] = field(
        default_factory=lambda: [DEFAULT_TEXTURE_COORD]
    )

    @property
    def n_vertices(self) -> int:
        return len(self.vertices)

    @property
    def n_faces(self) -> int:
        return len(self.faces)

    @property
    def is_empty(self) -> bool:
        return not self.faces

    @property
    def vertex_array(self) -> NDArray[np.float64]:
        """Vertices as an Nx3 float64 array."""
        if not self.vertices:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array(self.vertices, dtype=np.float64)

    @property
    def face_array(self) -> NDArray[np.int32]:
        """Triangles as an Mx3 int32 array."""
        if not self.faces:
            return np.zeros((0, 3), dtype=np.int32)
        return np.array(self.faces, dtype=np.int32)

    @property
    def smoothing_array(self) -> NDArray[np.int32]:
        return np.array(self.smoothing_groups, dtype=np.int32)

    def clear(self) -> None:
        """Drop all geometry; texture coordinates are kept."""
        self.vertices.clear()
        self.faces.clear()
        self.smoothing_groups.clear()

    def add_vertex(self, point: Point3) -> int:
        """Append a vertex and return its index (no deduplication)."""
        self.vertices.append(point)
        return len(self.vertices) - 1

    def add_triangle(self, i0: int, i1: int, i2: int, smoothing_group: int) -> None:
        self.faces.append((i0, i1, i2))
        self.smoothing_groups.append(smoothing_group)
