"""
Shape -> voxel grid -> mesh pipeline.

Provides:
- IsosurfacePipeline: owns one VoxelGrid and one Mesh and rebuilds them
  whenever a parameter changes
- PipelineStatistics: sizes and timings of the last rebuild

Every change triggers a full, blocking recomputation: a new shape or voxel
size refits and resamples the grid and then rebuilds the mesh; a new iso
level, builder or shading flag rebuilds only the mesh.

Usage:
    from isosurface.pipeline import IsosurfacePipeline
    from isosurface.sdf import Shape
    from isosurface.surface import MeshBuilderKind

    pipeline = IsosurfacePipeline(Shape.torus(), voxel_size=0.05)
    pipeline.set_builder(MeshBuilderKind.MARCHING_CUBES)
    print(pipeline.statistics.summary())
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from isosurface.geometry.mesh import Mesh
from isosurface.geometry.mesh_stats import DEFAULT_DEGENERATE_THRESHOLD, count_degenerate_triangles
from isosurface.logging_config import log_timing
from isosurface.project_config import (
    ProjectConfig,
    build_shape,
    builder_kind,
    config_bool,
    config_float,
)
from isosurface.sdf.shapes import Shape
from isosurface.surface.base import MeshBuilderKind
from isosurface.surface.builders import build_mesh
from isosurface.voxel_grid import DEFAULT_VOXEL_SIZE, VoxelGrid

logger = logging.getLogger(__name__)


@dataclass
class PipelineStatistics:
    """What an external statistics panel shows after a rebuild."""
    voxel_size: float
    grid_dimensions: Tuple[int, int, int]
    n_vertices: int
    n_triangles: int
    n_degenerate_triangles: int
    voxelization_seconds: float = 0.0
    meshing_seconds: float = 0.0

    def summary(self) -> str:
        """Generate human-readable summary."""
        w, h, d = self.grid_dimensions
        lines = [
            "Isosurface Statistics",
            "=" * 40,
            f"Voxel size:     {self.voxel_size:g}",
            f"Grid:           {w} x {h} x {d}",
            f"Vertices:       {self.n_vertices:,}",
            f"Triangles:      {self.n_triangles:,}",
            f"Degenerate:     {self.n_degenerate_triangles:,}",
            f"Voxelization:   {self.voxelization_seconds * 1000.0:.1f} ms",
            f"Meshing:        {self.meshing_seconds * 1000.0:.1f} ms",
        ]
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'voxel_size': self.voxel_size,
            'grid_dimensions': list(self.grid_dimensions),
            'n_vertices': self.n_vertices,
            'n_triangles': self.n_triangles,
            'n_degenerate_triangles': self.n_degenerate_triangles,
            'voxelization_seconds': self.voxelization_seconds,
            'meshing_seconds': self.meshing_seconds,
        }


class IsosurfacePipeline:
    """Voxelizes a shape and extracts its surface, rebuilding on every change.

    The grid and mesh are built once on construction.

    Args:
        shape: Shape to voxelize (unit sphere if None)
        voxel_size: Voxel edge length in world units
        iso_level: Field value of the extracted surface
        builder: Surface extraction algorithm
        smooth_shading: Smoothing flag for the produced triangles
        degenerate_threshold: Fraction of the voxel size at or below which a
            triangle's shortest edge counts as degenerate
    """

    def __init__(
        self,
        shape: Optional[Shape] = None,
        voxel_size: float = DEFAULT_VOXEL_SIZE,
        iso_level: float = 0.0,
        builder: MeshBuilderKind = MeshBuilderKind.SURFACE_NETS,
        smooth_shading: bool = True,
        degenerate_threshold: float = DEFAULT_DEGENERATE_THRESHOLD,
    ):
        self.shape = shape if shape is not None else Shape.sphere()
        self.grid = VoxelGrid(voxel_size)
        self.mesh = Mesh()
        self.iso_level = float(iso_level)
        self.builder = builder
        self.smooth_shading = bool(smooth_shading)
        self.degenerate_threshold = degenerate_threshold

        self._voxelization_seconds = 0.0
        self._meshing_seconds = 0.0
        self._statistics: Optional[PipelineStatistics] = None

        self.update_voxel_grid()

    @classmethod
    def from_config(cls, config: ProjectConfig) -> 'IsosurfacePipeline':
        """Build a pipeline from a ProjectConfig.

        Raises:
            ConfigError: If the config names an unknown shape or algorithm,
                or holds a value of the wrong type
            ValueError: If the voxel size is not positive
        """
        return cls(
            shape=build_shape(config),
            voxel_size=config_float('grid.voxel_size', config.grid.voxel_size),
            iso_level=config_float('surface.iso_level', config.surface.iso_level),
            builder=builder_kind(config.surface),
            smooth_shading=config_bool('surface.smooth_shading', config.surface.smooth_shading),
            degenerate_threshold=config_float(
                'diagnostics.degenerate_threshold', config.diagnostics.degenerate_threshold
            ),
        )

    @property
    def statistics(self) -> PipelineStatistics:
        if self._statistics is None:
            self._refresh_statistics()
        return self._statistics

    def update_voxel_grid(self) -> None:
        """Refit the grid to the shape, resample it and rebuild the mesh."""
        with log_timing(
            logger, "Voxelize shape",
            shape=str(self.shape), voxel_size=self.grid.voxel_size,
        ) as timing:
            self.grid.fit_to_shape(self.shape)
            self.grid.voxelize(self.shape)
            timing['voxels'] = self.grid.n_voxels
        self._voxelization_seconds = timing['elapsed_seconds']

        self.update_mesh()

    def update_mesh(self) -> None:
        """Rebuild the mesh from the current grid."""
        with log_timing(
            logger, "Build mesh",
            builder=self.builder.value, iso_level=self.iso_level,
        ) as timing:
            build_mesh(self.builder, self.grid, self.iso_level, self.smooth_shading, self.mesh)
            timing['vertices'] = self.mesh.n_vertices
            timing['triangles'] = self.mesh.n_faces
        self._meshing_seconds = timing['elapsed_seconds']

        self._refresh_statistics()

    def set_shape(self, shape: Shape) -> None:
        self.shape = shape
        self.update_voxel_grid()

    def set_voxel_size(self, voxel_size: float) -> None:
        """Raises ValueError if voxel_size <= 0."""
        self.grid.voxel_size = voxel_size
        self.update_voxel_grid()

    def set_iso_level(self, iso_level: float) -> None:
        self.iso_level = float(iso_level)
        self.update_mesh()

    def set_builder(self, builder: MeshBuilderKind) -> None:
        self.builder = builder
        self.update_mesh()

    def set_smooth_shading(self, smooth_shading: bool) -> None:
        self.smooth_shading = bool(smooth_shading)
        self.update_mesh()

    def _refresh_statistics(self) -> None:
        self._statistics = PipelineStatistics(
            voxel_size=self.grid.voxel_size,
            grid_dimensions=self.grid.dimensions,
            n_vertices=self.mesh.n_vertices,
            n_triangles=self.mesh.n_faces,
            n_degenerate_triangles=count_degenerate_triangles(
                self.mesh, self.grid.voxel_size, self.degenerate_threshold
            ),
            voxelization_seconds=self._voxelization_seconds,
            meshing_seconds=self._meshing_seconds,
        )
        logger.info(
            "Surface ready",
            extra={
                'builder': self.builder.value,
                'vertices': self._statistics.n_vertices,
                'triangles': self._statistics.n_triangles,
                'degenerate': self._statistics.n_degenerate_triangles,
            }
        )
