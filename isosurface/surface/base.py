"""
Shared pieces of the surface builders.

Provides:
- MeshBuilderKind enumeration
- MeshAssembler: writes deduplicated vertices and triangles into a Mesh
"""

import logging
from enum import Enum
from typing import Dict, Sequence

from isosurface.geometry.mesh import (
    FLAT_SMOOTHING_GROUP,
    SMOOTH_SMOOTHING_GROUP,
    Mesh,
    Point3,
)

logger = logging.getLogger(__name__)


class MeshBuilderKind(Enum):
    """Surface extraction algorithms."""
    BLOCKY = "blocky"
    MARCHING_CUBES = "marching_cubes"
    SURFACE_NETS = "surface_nets"

    @classmethod
    def from_name(cls, name: str) -> 'MeshBuilderKind':
        """Look up a kind by value, case-insensitively; '-' counts as '_'.

        Raises:
            ValueError: If the name matches no kind
        """
        key = name.strip().lower().replace('-', '_')
        for kind in cls:
            if kind.value == key:
                return kind
        valid = ', '.join(k.value for k in cls)
        raise ValueError(f"Unknown mesh builder '{name}' (expected one of: {valid})")


class MeshAssembler:
    """Clears a mesh and fills it with triangles, sharing equal vertices.

    Two points share a vertex only when their coordinates are bit-identical,
    so callers must compute shared corners and edge crossings with the same
    arithmetic every time.

    Args:
        mesh: Output mesh (cleared immediately)
        smooth_shading: Smoothing group for every triangle written
    """

    def __init__(self, mesh: Mesh, smooth_shading: bool):
        mesh.clear()
        self.mesh = mesh
        self.smoothing_group = SMOOTH_SMOOTHING_GROUP if smooth_shading else FLAT_SMOOTHING_GROUP
        self._index: Dict[Point3, int] = {}

    def add_vertex(self, point: Sequence[float]) -> int:
        """Index of the vertex at `point`, adding it if unseen."""
        key = (float(point[0]), float(point[1]), float(point[2]))
        index = self._index.get(key)
        if index is None:
            index = self.mesh.add_vertex(key)
            self._index[key] = index
        return index

    def add_tri_face(self, p0: Sequence[float], p1: Sequence[float], p2: Sequence[float]) -> None:
        self.mesh.add_triangle(
            self.add_vertex(p0),
            self.add_vertex(p1),
            self.add_vertex(p2),
            self.smoothing_group,
        )

    def add_quad_face(
        self,
        p0: Sequence[float],
        p1: Sequence[float],
        p2: Sequence[float],
        p3: Sequence[float],
    ) -> None:
        """Add quad p0-p1-p2-p3 as triangles (p0, p1, p2) and (p0, p2, p3)."""
        self.add_tri_face(p0, p1, p2)
        self.add_tri_face(p0, p2, p3)

    def log_result(self, builder: MeshBuilderKind) -> None:
        logger.debug(
            "Mesh built",
            extra={
                'builder': builder.value,
                'vertices': self.mesh.n_vertices,
                'triangles': self.mesh.n_faces,
            }
        )
