"""
Marching Cubes surface builder.

Cells are the cubes spanned by eight neighbouring voxel centres. A cell's
8-bit configuration has bit i set when corner i is inside (value < iso);
EDGE_TABLE and TRI_TABLE then give the crossed edges and the triangles
joining their crossing points. Cells run from -1 to dim - 1 on every axis
so that shapes touching the grid edge still close against the SENTINEL.

Ambiguous face configurations are triangulated exactly as the table says.
"""

import logging
from typing import Dict, Tuple

import numpy as np

from isosurface.geometry.mesh import Mesh
from isosurface.surface.base import MeshAssembler, MeshBuilderKind
from isosurface.surface.mc_tables import CORNER_OFFSETS, EDGE_CORNERS, EDGE_TABLE, TRI_TABLE
from isosurface.voxel_grid import VoxelGrid

logger = logging.getLogger(__name__)


def _oriented_edges() -> Tuple[Tuple[int, int], ...]:
    """EDGE_CORNERS with each edge running from its lower corner offset to the higher.

    Neighbouring cells see a shared edge with opposite corner numbers; fixing
    the direction makes both compute the crossing with identical arithmetic.
    """
    edges = []
    for a, b in EDGE_CORNERS:
        if sum(CORNER_OFFSETS[a]) > sum(CORNER_OFFSETS[b]):
            a, b = b, a
        edges.append((a, b))
    return tuple(edges)


ORIENTED_EDGES = _oriented_edges()


def interpolate_crossing(p_start, p_end, d_start: float, d_end: float, iso_level: float):
    """Point where the field crosses iso_level on the segment p_start -> p_end.

    t = (iso - d_start) / (d_end - d_start), point = p_start * (1 - t) + p_end * t
    """
    t = (iso_level - d_start) / (d_end - d_start)
    s = 1.0 - t
    return (
        p_start[0] * s + p_end[0] * t,
        p_start[1] * s + p_end[1] * t,
        p_start[2] * s + p_end[2] * t,
    )


def cube_configurations(padded_inside: np.ndarray) -> np.ndarray:
    """Configuration index of every cell.

    Args:
        padded_inside: (D+2, H+2, W+2) boolean inside mask with a one-voxel border

    Returns:
        (D+1, H+1, W+1) int array; element [k, j, i] is the cell whose
        lowest corner is voxel (i - 1, j - 1, k - 1)
    """
    d, h, w = (n - 1 for n in padded_inside.shape)
    config = np.zeros((d, h, w), dtype=np.int32)
    for bit, (ox, oy, oz) in enumerate(CORNER_OFFSETS):
        corner = padded_inside[oz:oz + d, oy:oy + h, ox:ox + w]
        config |= corner.astype(np.int32) << bit
    return config


def build_marching_cubes(
    grid: VoxelGrid,
    iso_level: float,
    smooth_shading: bool,
    out_mesh: Mesh,
) -> None:
    """Rebuild `out_mesh` as the Marching Cubes surface at iso_level.

    Args:
        grid: Sampled voxel grid
        iso_level: Field value of the surface
        smooth_shading: Smoothing flag stored on every triangle
        out_mesh: Mesh to clear and fill
    """
    assembler = MeshAssembler(out_mesh, smooth_shading)
    if grid.n_voxels == 0:
        assembler.log_result(MeshBuilderKind.MARCHING_CUBES)
        return

    padded = grid.padded_values()
    depth, height, width = grid.shape
    config = cube_configurations(padded < iso_level)

    # Centre coordinates of voxels -1..dim, indexed like `padded`
    xs = grid.axis_center_positions(0, -1, width + 1).tolist()
    ys = grid.axis_center_positions(1, -1, height + 1).tolist()
    zs = grid.axis_center_positions(2, -1, depth + 1).tolist()

    active = np.argwhere((config != 0) & (config != 255))
    logger.debug("Marching cubes active cells", extra={'cells': len(active)})

    for k, j, i in active:
        case = int(config[k, j, i])
        crossed = EDGE_TABLE[case]

        points: Dict[int, tuple] = {}
        for edge, (a, b) in enumerate(ORIENTED_EDGES):
            if not crossed & (1 << edge):
                continue
            ax, ay, az = CORNER_OFFSETS[a]
            bx, by, bz = CORNER_OFFSETS[b]
            points[edge] = interpolate_crossing(
                (xs[i + ax], ys[j + ay], zs[k + az]),
                (xs[i + bx], ys[j + by], zs[k + bz]),
                float(padded[k + az, j + ay, i + ax]),
                float(padded[k + bz, j + by, i + bx]),
                iso_level,
            )

        triangles = TRI_TABLE[case]
        for n in range(0, len(triangles), 3):
            assembler.add_tri_face(
                points[triangles[n]],
                points[triangles[n + 1]],
                points[triangles[n + 2]],
            )

    assembler.log_result(MeshBuilderKind.MARCHING_CUBES)
