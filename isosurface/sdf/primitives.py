"""
Signed distance functions of the primitive shapes, in local space.

Each primitive has a parameter record, a distance function and a bounds
function. Distance functions accept one point (shape (3,)) or a batch
(shape (N, 3)) and return a float or an (N,) array. Negative values are
inside the shape.

Formulas follow https://iquilezles.org/articles/distfunctions/
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from isosurface.geometry.bounds import BoundingBox


@dataclass
class SphereParams:
    """Sphere centred on the origin."""
    radius: float = 1.0


@dataclass
class BoxParams:
    """Box centred on the origin; sizes are full edge lengths."""
    width: float = 2.0
    height: float = 2.0
    depth: float = 2.0


@dataclass
class TorusParams:
    """Torus lying in the XZ plane around the Y axis."""
    major_radius: float = 0.7
    minor_radius: float = 0.3


@dataclass
class ConeParams:
    """Capped cone on the Y axis, apex at +height/2, base at -height/2."""
    radius: float = 1.0
    height: float = 2.0


def _as_points(points) -> NDArray[np.float64]:
    return np.asarray(points, dtype=np.float64)


def _result(values: NDArray[np.float64], points: NDArray[np.float64]):
    if points.ndim == 1:
        return float(values)
    return values


def sphere_distance(params: SphereParams, points):
    p = _as_points(points)
    return _result(np.linalg.norm(p, axis=-1) - params.radius, p)


def sphere_bounds(params: SphereParams) -> BoundingBox:
    r = params.radius
    return BoundingBox.from_extents((r, r, r))


def box_distance(params: BoxParams, points):
    p = _as_points(points)
    half = np.array([params.width, params.height, params.depth]) * 0.5
    q = np.abs(p) - half
    outside = np.linalg.norm(np.maximum(q, 0.0), axis=-1)
    inside = np.minimum(np.max(q, axis=-1), 0.0)
    return _result(outside + inside, p)


def box_bounds(params: BoxParams) -> BoundingBox:
    return BoundingBox.from_extents(
        (params.width * 0.5, params.height * 0.5, params.depth * 0.5)
    )


def torus_distance(params: TorusParams, points):
    p = _as_points(points)
    px, py, pz = p[..., 0], p[..., 1], p[..., 2]
    q = np.sqrt(px * px + pz * pz) - params.major_radius
    return _result(np.sqrt(q * q + py * py) - params.minor_radius, p)


def torus_bounds(params: TorusParams) -> BoundingBox:
    half_width = params.major_radius + params.minor_radius
    return BoundingBox.from_extents((half_width, params.minor_radius, half_width))


def cone_distance(params: ConeParams, points):
    """Capped cone distance.

    Works on the 2D profile w = (radial distance, height above the apex);
    q = (radius, -height) is the slanted side from the apex to the base rim.
    """
    p = _as_points(points)
    height = params.height
    qx = params.radius
    qy = -height

    px, pz = p[..., 0], p[..., 2]
    wx = np.sqrt(px * px + pz * pz)
    wy = p[..., 1] - height * 0.5

    dot_wq = wx * qx + wy * qy
    dot_qq = qx * qx + qy * qy
    along_side = np.clip(dot_wq / dot_qq, 0.0, 1.0)
    along_base = np.clip(wx / qx, 0.0, 1.0)

    # closest points on the slanted side (a) and on the base disc (b)
    ax = wx - qx * along_side
    ay = wy - qy * along_side
    bx = wx - qx * along_base
    by = wy - qy

    k = np.sign(qy)
    d = np.minimum(ax * ax + ay * ay, bx * bx + by * by)
    s = np.maximum(k * (wx * qy - wy * qx), k * (wy - qy))
    return _result(np.sqrt(d) * np.sign(s), p)


def cone_bounds(params: ConeParams) -> BoundingBox:
    r = params.radius
    return BoundingBox.from_extents((r, params.height * 0.5, r))
