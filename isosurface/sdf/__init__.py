"""Signed distance field shapes: primitives, parameters and placement."""

from isosurface.sdf.primitives import (
    BoxParams,
    ConeParams,
    SphereParams,
    TorusParams,
)
from isosurface.sdf.shapes import (
    BOUNDS_FUNCTIONS,
    DISTANCE_FUNCTIONS,
    PARAM_TYPES,
    Shape,
    ShapeKind,
)

__all__ = [
    "Shape",
    "ShapeKind",
    "SphereParams",
    "BoxParams",
    "TorusParams",
    "ConeParams",
    "PARAM_TYPES",
    "DISTANCE_FUNCTIONS",
    "BOUNDS_FUNCTIONS",
]
