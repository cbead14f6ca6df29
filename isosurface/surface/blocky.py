"""
Blocky (Minecraft-style) surface builder.

Every inside voxel (value <= iso) gets a square face towards each of its six
neighbours whose value is >= iso. Voxels outside the grid read as SENTINEL,
so shells are closed at the grid boundary too.
"""

import logging

import numpy as np

from isosurface.geometry.mesh import Mesh
from isosurface.surface.base import MeshAssembler, MeshBuilderKind
from isosurface.voxel_grid import VoxelGrid

logger = logging.getLogger(__name__)

# Cube corner i sits at (x + (i & 1), y + (i >> 1 & 1), z + (i >> 2 & 1)).
# Each face lists its corners counter-clockwise seen from outside, in the
# order +X, -X, +Y, -Y, +Z, -Z; NEIGHBOUR_OFFSETS gives the voxel across it.
FACE_CORNERS = (
    (5, 1, 3, 7),
    (4, 6, 2, 0),
    (2, 6, 7, 3),
    (0, 1, 5, 4),
    (5, 7, 6, 4),
    (0, 2, 3, 1),
)

NEIGHBOUR_OFFSETS = (
    (1, 0, 0),
    (-1, 0, 0),
    (0, 1, 0),
    (0, -1, 0),
    (0, 0, 1),
    (0, 0, -1),
)


def build_blocky(grid: VoxelGrid, iso_level: float, smooth_shading: bool, out_mesh: Mesh) -> None:
    """Rebuild `out_mesh` as the voxel-face shell of the inside region.

    Args:
        grid: Sampled voxel grid
        iso_level: Field value of the surface
        smooth_shading: Smoothing flag stored on every triangle
        out_mesh: Mesh to clear and fill
    """
    assembler = MeshAssembler(out_mesh, smooth_shading)
    if grid.n_voxels == 0:
        assembler.log_result(MeshBuilderKind.BLOCKY)
        return

    padded = grid.padded_values()
    depth, height, width = grid.shape

    # open[f][z, y, x]: the neighbour across face f of voxel (x, y, z) is >= iso
    open_faces = []
    for dx, dy, dz in NEIGHBOUR_OFFSETS:
        neighbour = padded[1 + dz:1 + dz + depth, 1 + dy:1 + dy + height, 1 + dx:1 + dx + width]
        open_faces.append(neighbour >= iso_level)

    inside = grid.values <= iso_level

    # Corner coordinates along each axis, indices 0..dim inclusive
    xs = grid.axis_corner_positions(0, 0, width + 1).tolist()
    ys = grid.axis_corner_positions(1, 0, height + 1).tolist()
    zs = grid.axis_corner_positions(2, 0, depth + 1).tolist()

    for z, y, x in np.argwhere(inside):
        faces = [f for f in range(6) if open_faces[f][z, y, x]]
        if not faces:
            continue

        corners = [
            (xs[x + (i & 1)], ys[y + (i >> 1 & 1)], zs[z + (i >> 2 & 1)])
            for i in range(8)
        ]
        for f in faces:
            a, b, c, d = FACE_CORNERS[f]
            assembler.add_quad_face(corners[a], corners[b], corners[c], corners[d])

    assembler.log_result(MeshBuilderKind.BLOCKY)
