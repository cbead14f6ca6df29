"""Geometry primitives: bounding boxes, transforms, meshes and mesh statistics."""

from isosurface.geometry.bounds import BoundingBox, calculate_bounding_box
from isosurface.geometry.mesh import Mesh
from isosurface.geometry.mesh_stats import (
    MeshStatistics,
    calculate_mesh_statistics,
    calculate_surface_area,
    calculate_volume,
    count_degenerate_triangles,
)
from isosurface.geometry.transform import AffineTransform, ShapeTransform, clamp_scale

__all__ = [
    "BoundingBox",
    "calculate_bounding_box",
    "Mesh",
    "MeshStatistics",
    "calculate_mesh_statistics",
    "calculate_surface_area",
    "calculate_volume",
    "count_degenerate_triangles",
    "AffineTransform",
    "ShapeTransform",
    "clamp_scale",
]
