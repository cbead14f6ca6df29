"""
Mesh statistics calculation module.

Provides:
- Face areas, normals and centroids
- Surface area and signed enclosed volume
- Edge counting and watertight check
- Degenerate triangle count relative to the voxel size
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from isosurface.geometry.bounds import BoundingBox, calculate_bounding_box
from isosurface.geometry.mesh import Mesh

logger = logging.getLogger(__name__)

DEFAULT_DEGENERATE_THRESHOLD = 0.05


@dataclass
class MeshStatistics:
    """Summary statistics of a triangle mesh.

    Attributes:
        n_vertices: Number of unique vertices
        n_faces: Number of triangular faces
        n_edges: Number of unique edges
        bbox: Axis-aligned bounding box
        surface_area: Total surface area
        volume: Signed enclosed volume (negative if faces wind inward)
        is_watertight: True if every edge is shared by exactly two faces
        euler_characteristic: V - E + F
    """
    n_vertices: int
    n_faces: int
    n_edges: int
    bbox: BoundingBox
    surface_area: float
    volume: float
    is_watertight: bool = False
    euler_characteristic: int = 0
    face_areas: Optional[NDArray[np.float64]] = field(default=None, repr=False)

    def summary(self) -> str:
        """Generate human-readable summary."""
        dims = self.bbox.dimensions
        lines = [
            "Mesh Statistics",
            "=" * 40,
            f"Vertices:     {self.n_vertices:,}",
            f"Faces:        {self.n_faces:,}",
            f"Edges:        {self.n_edges:,}",
            f"Dimensions:   {dims[0]:.3f} x {dims[1]:.3f} x {dims[2]:.3f}",
            f"Surface Area: {self.surface_area:.4f}",
            f"Volume:       {self.volume:.4f}",
            f"Watertight:   {'Yes' if self.is_watertight else 'No'}",
            f"Euler char:   {self.euler_characteristic}",
        ]
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'n_vertices': self.n_vertices,
            'n_faces': self.n_faces,
            'n_edges': self.n_edges,
            'bbox': self.bbox.to_dict(),
            'surface_area': self.surface_area,
            'volume': self.volume,
            'is_watertight': self.is_watertight,
            'euler_characteristic': self.euler_characteristic,
        }


def _triangle_corners(vertices: NDArray[np.float64], faces: NDArray[np.int32]):
    return vertices[faces[:, 0]], vertices[faces[:, 1]], vertices[faces[:, 2]]


def calculate_face_normals(
    vertices: NDArray[np.float64],
    faces: NDArray[np.int32],
    normalize: bool = True,
) -> NDArray[np.float64]:
    """Calculate the right-handed normal (v1 - v0) x (v2 - v0) of each face.

    Args:
        vertices: Nx3 array of vertices
        faces: Mx3 array of face indices
        normalize: Scale normals to unit length (zero-area faces stay zero)

    Returns:
        Mx3 array of face normals
    """
    if len(faces) == 0:
        return np.zeros((0, 3), dtype=np.float64)

    v0, v1, v2 = _triangle_corners(vertices, faces)
    cross = np.cross(v1 - v0, v2 - v0)
    if not normalize:
        return cross

    norms = np.linalg.norm(cross, axis=1, keepdims=True)
    norms = np.where(norms < 1e-12, 1.0, norms)
    return cross / norms


def calculate_face_centroids(
    vertices: NDArray[np.float64],
    faces: NDArray[np.int32]
) -> NDArray[np.float64]:
    """Calculate the centroid of each face."""
    if len(faces) == 0:
        return np.zeros((0, 3), dtype=np.float64)
    v0, v1, v2 = _triangle_corners(vertices, faces)
    return (v0 + v1 + v2) / 3.0


def calculate_face_areas(
    vertices: NDArray[np.float64],
    faces: NDArray[np.int32]
) -> NDArray[np.float64]:
    """Calculate area of each triangular face.

    Uses cross product: area = 0.5 * |e1 x e2|
    """
    if len(faces) == 0:
        return np.array([], dtype=np.float64)

    cross = calculate_face_normals(vertices, faces, normalize=False)
    return 0.5 * np.linalg.norm(cross, axis=1)


def calculate_surface_area(
    vertices: NDArray[np.float64],
    faces: NDArray[np.int32]
) -> float:
    """Calculate total mesh surface area."""
    return float(np.sum(calculate_face_areas(vertices, faces)))


def calculate_volume(
    vertices: NDArray[np.float64],
    faces: NDArray[np.int32]
) -> float:
    """Calculate signed mesh volume using divergence theorem.

    For a closed mesh with outward-facing triangles this is the enclosed
    volume. Negative volume indicates inverted faces.

    Formula: V = (1/6) * sum(v0 . (v1 x v2))
    """
    if len(faces) == 0:
        return 0.0

    v0, v1, v2 = _triangle_corners(vertices, faces)
    signed_volumes = np.sum(v0 * np.cross(v1, v2), axis=1) / 6.0
    return float(np.sum(signed_volumes))


def _edge_counts(faces: NDArray[np.int32]) -> Counter:
    edge_count: Counter = Counter()
    for face in faces:
        for i in range(3):
            j = (i + 1) % 3
            a, b = int(face[i]), int(face[j])
            edge_count[(min(a, b), max(a, b))] += 1
    return edge_count


def count_edges(faces: NDArray[np.int32]) -> int:
    """Count unique edges in mesh."""
    if len(faces) == 0:
        return 0

    edges = []
    for i in range(3):
        j = (i + 1) % 3
        e = np.stack([faces[:, i], faces[:, j]], axis=1)
        edges.append(np.sort(e, axis=1))

    return len(np.unique(np.vstack(edges), axis=0))


def is_watertight(faces: NDArray[np.int32]) -> bool:
    """True when every edge is shared by exactly two faces."""
    if len(faces) == 0:
        return False
    return all(count == 2 for count in _edge_counts(faces).values())


def count_degenerate_triangles(
    mesh: Mesh,
    voxel_size: float,
    threshold: float = DEFAULT_DEGENERATE_THRESHOLD,
) -> int:
    """Count triangles whose shortest edge is at most voxel_size * threshold.

    Args:
        mesh: Mesh to inspect
        voxel_size: Edge length of the voxels the mesh was built from
        threshold: Fraction of the voxel size below which an edge is degenerate

    Returns:
        Number of degenerate triangles
    """
    if mesh.is_empty:
        return 0

    vertices = mesh.vertex_array
    faces = mesh.face_array
    v0, v1, v2 = _triangle_corners(vertices, faces)
    lengths = np.stack([
        np.linalg.norm(v1 - v0, axis=1),
        np.linalg.norm(v2 - v1, axis=1),
        np.linalg.norm(v0 - v2, axis=1),
    ], axis=1)
    shortest = lengths.min(axis=1)
    return int(np.count_nonzero(shortest <= voxel_size * threshold))


def calculate_mesh_statistics(
    mesh: Mesh,
    check_watertight: bool = True,
) -> MeshStatistics:
    """Calculate summary statistics of a mesh.

    Args:
        mesh: Mesh to inspect
        check_watertight: Whether to check if mesh is closed

    Returns:
        MeshStatistics instance with all computed values
    """
    vertices = mesh.vertex_array
    faces = mesh.face_array

    n_vertices = len(vertices)
    n_faces = len(faces)
    n_edges = count_edges(faces)
    face_areas = calculate_face_areas(vertices, faces)
    surface_area = float(np.sum(face_areas))
    volume = calculate_volume(vertices, faces)
    watertight = is_watertight(faces) if check_watertight else False

    stats = MeshStatistics(
        n_vertices=n_vertices,
        n_faces=n_faces,
        n_edges=n_edges,
        bbox=calculate_bounding_box(vertices),
        surface_area=surface_area,
        volume=volume,
        is_watertight=watertight,
        euler_characteristic=n_vertices - n_edges + n_faces,
        face_areas=face_areas,
    )

    logger.debug(
        "Mesh statistics calculated",
        extra={
            'vertices': n_vertices,
            'faces': n_faces,
            'surface_area': surface_area,
            'volume': volume,
        }
    )

    return stats
