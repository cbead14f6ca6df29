"""Dispatch from MeshBuilderKind to the surface builder functions."""

from typing import Callable, Dict

from isosurface.geometry.mesh import Mesh
from isosurface.surface.base import MeshBuilderKind
from isosurface.surface.blocky import build_blocky
from isosurface.surface.marching_cubes import build_marching_cubes
from isosurface.surface.surface_nets import build_surface_nets
from isosurface.voxel_grid import VoxelGrid

BuilderFunction = Callable[[VoxelGrid, float, bool, Mesh], None]

MESH_BUILDERS: Dict[MeshBuilderKind, BuilderFunction] = {
    MeshBuilderKind.BLOCKY: build_blocky,
    MeshBuilderKind.MARCHING_CUBES: build_marching_cubes,
    MeshBuilderKind.SURFACE_NETS: build_surface_nets,
}


def build_mesh(
    kind: MeshBuilderKind,
    grid: VoxelGrid,
    iso_level: float,
    smooth_shading: bool,
    out_mesh: Mesh,
) -> Mesh:
    """Clear `out_mesh` and rebuild it from `grid` with the chosen algorithm.

    Returns:
        out_mesh, for chaining
    """
    MESH_BUILDERS[kind](grid, iso_level, smooth_shading, out_mesh)
    return out_mesh
