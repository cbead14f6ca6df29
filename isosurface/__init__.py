"""
isosurface: voxelize signed distance field shapes and extract triangle meshes.

Surfaces are extracted with Blocky, Marching Cubes or Surface Nets. The CLI
lives in main.py.
"""

from isosurface.exceptions import ConfigError, InvalidShapeConfiguration, IsosurfaceError
from isosurface.geometry import Mesh, ShapeTransform, count_degenerate_triangles
from isosurface.logging_config import (
    setup_logging,
    get_logger,
    configure_default_logging,
    log_timing,
    timed,
    LogContext,
)
from isosurface.pipeline import IsosurfacePipeline, PipelineStatistics
from isosurface.sdf import Shape, ShapeKind
from isosurface.surface import MeshBuilderKind, build_mesh
from isosurface.voxel_grid import SENTINEL, VoxelGrid

__all__ = [
    "IsosurfaceError",
    "InvalidShapeConfiguration",
    "ConfigError",
    "Mesh",
    "ShapeTransform",
    "count_degenerate_triangles",
    "setup_logging",
    "get_logger",
    "configure_default_logging",
    "log_timing",
    "timed",
    "LogContext",
    "IsosurfacePipeline",
    "PipelineStatistics",
    "Shape",
    "ShapeKind",
    "MeshBuilderKind",
    "build_mesh",
    "SENTINEL",
    "VoxelGrid",
]
