"""
Surface Nets surface builder.

Each voxel-to-neighbour edge whose endpoints disagree on inside-ness
(value < iso) crosses the surface. The crossing point is added to the four
cells around the edge; every cell that received crossings gets one dual
vertex at their average. Each crossing edge then becomes a quad joining the
dual vertices of its four cells.

Cell (x, y, z) is the cube between voxel centres (x, y, z) and
(x + 1, y + 1, z + 1). Voxels run from -1 to dim - 1 on every axis so that
crossings against the SENTINEL border are found too.
"""

import logging
from typing import Dict, List, Tuple

import numpy as np

from isosurface.geometry.mesh import Mesh
from isosurface.surface.base import MeshAssembler, MeshBuilderKind
from isosurface.surface.marching_cubes import interpolate_crossing
from isosurface.voxel_grid import VoxelGrid

logger = logging.getLogger(__name__)

Coord = Tuple[int, int, int]

AXIS_STEPS: Tuple[Coord, ...] = ((1, 0, 0), (0, 1, 0), (0, 0, 1))

# Cells sharing an edge, relative to the edge's start voxel, per axis.
# Listed as a ring so that, for an edge whose start is inside, the quad
# through their dual vertices faces along +axis.
EDGE_CELL_OFFSETS: Tuple[Tuple[Coord, ...], ...] = (
    ((0, -1, -1), (0, 0, -1), (0, 0, 0), (0, -1, 0)),
    ((-1, 0, -1), (-1, 0, 0), (0, 0, 0), (0, 0, -1)),
    ((-1, -1, 0), (0, -1, 0), (0, 0, 0), (-1, 0, 0)),
)


def find_crossing_edges(padded_inside: np.ndarray) -> np.ndarray:
    """Locate edges whose endpoints differ in inside-ness.

    Args:
        padded_inside: (D+2, H+2, W+2) boolean inside mask with a one-voxel border

    Returns:
        Kx4 int array of (k, j, i, axis) rows in z, y, x, axis order, where
        (i - 1, j - 1, k - 1) is the edge's start voxel
    """
    d, h, w = (n - 1 for n in padded_inside.shape)
    start = padded_inside[:d, :h, :w]
    crossings = np.stack([
        start != padded_inside[:d, :h, 1:w + 1],
        start != padded_inside[:d, 1:h + 1, :w],
        start != padded_inside[1:d + 1, :h, :w],
    ], axis=-1)
    return np.argwhere(crossings)


def build_surface_nets(
    grid: VoxelGrid,
    iso_level: float,
    smooth_shading: bool,
    out_mesh: Mesh,
) -> None:
    """Rebuild `out_mesh` as the Surface Nets surface at iso_level.

    Args:
        grid: Sampled voxel grid
        iso_level: Field value of the surface
        smooth_shading: Smoothing flag stored on every triangle
        out_mesh: Mesh to clear and fill
    """
    assembler = MeshAssembler(out_mesh, smooth_shading)
    if grid.n_voxels == 0:
        assembler.log_result(MeshBuilderKind.SURFACE_NETS)
        return

    padded = grid.padded_values()
    depth, height, width = grid.shape
    inside = padded < iso_level

    xs = grid.axis_center_positions(0, -1, width + 1).tolist()
    ys = grid.axis_center_positions(1, -1, height + 1).tolist()
    zs = grid.axis_center_positions(2, -1, depth + 1).tolist()

    # cell -> [sum_x, sum_y, sum_z, count]
    accumulators: Dict[Coord, List[float]] = {}
    edges: List[Tuple[Coord, int, bool]] = []

    for k, j, i, axis in find_crossing_edges(inside):
        di, dj, dk = AXIS_STEPS[axis]
        crossing = interpolate_crossing(
            (xs[i], ys[j], zs[k]),
            (xs[i + di], ys[j + dj], zs[k + dk]),
            float(padded[k, j, i]),
            float(padded[k + dk, j + dj, i + di]),
            iso_level,
        )

        start = (int(i) - 1, int(j) - 1, int(k) - 1)
        for ox, oy, oz in EDGE_CELL_OFFSETS[axis]:
            cell = (start[0] + ox, start[1] + oy, start[2] + oz)
            acc = accumulators.get(cell)
            if acc is None:
                accumulators[cell] = [crossing[0], crossing[1], crossing[2], 1]
            else:
                acc[0] += crossing[0]
                acc[1] += crossing[1]
                acc[2] += crossing[2]
                acc[3] += 1

        edges.append((start, int(axis), bool(inside[k, j, i])))

    dual_vertices = {
        cell: (acc[0] / acc[3], acc[1] / acc[3], acc[2] / acc[3])
        for cell, acc in accumulators.items()
    }

    for start, axis, start_inside in edges:
        v0, v1, v2, v3 = (
            dual_vertices[(start[0] + ox, start[1] + oy, start[2] + oz)]
            for ox, oy, oz in EDGE_CELL_OFFSETS[axis]
        )
        if start_inside:
            assembler.add_quad_face(v0, v1, v2, v3)
        else:
            assembler.add_quad_face(v0, v3, v2, v1)

    logger.debug(
        "Surface nets dual cells",
        extra={'cells': len(dual_vertices), 'crossing_edges': len(edges)}
    )
    assembler.log_result(MeshBuilderKind.SURFACE_NETS)
