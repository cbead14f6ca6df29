"""Surface extraction: Blocky, Marching Cubes and Surface Nets builders."""

from isosurface.surface.base import MeshAssembler, MeshBuilderKind
from isosurface.surface.blocky import build_blocky
from isosurface.surface.builders import MESH_BUILDERS, build_mesh
from isosurface.surface.marching_cubes import build_marching_cubes
from isosurface.surface.surface_nets import build_surface_nets

__all__ = [
    "MeshBuilderKind",
    "MeshAssembler",
    "MESH_BUILDERS",
    "build_mesh",
    "build_blocky",
    "build_marching_cubes",
    "build_surface_nets",
]
