"""
Signed distance field shapes placed in world space.

A Shape is a tagged variant: a ShapeKind, the parameter record for that
kind, and a ShapeTransform. Distance and bounds queries are dispatched
through per-kind function tables.

Usage:
    from isosurface.sdf import Shape

    torus = Shape.torus(major_radius=1.0, minor_radius=0.25)
    torus.transform.rotation_deg = (90.0, 0.0, 0.0)
    d = torus.world_distance([0.0, 0.0, 1.0])
"""

import logging
from dataclasses import fields, replace
from enum import Enum
from typing import Any, Callable, Dict, Optional

import numpy as np
from numpy.typing import NDArray

from isosurface.geometry.bounds import BoundingBox, calculate_bounding_box
from isosurface.geometry.transform import ShapeTransform
from isosurface.sdf.primitives import (
    BoxParams,
    ConeParams,
    SphereParams,
    TorusParams,
    box_bounds,
    box_distance,
    cone_bounds,
    cone_distance,
    sphere_bounds,
    sphere_distance,
    torus_bounds,
    torus_distance,
)

logger = logging.getLogger(__name__)


class ShapeKind(Enum):
    """Supported primitive shapes."""
    SPHERE = "sphere"
    BOX = "box"
    TORUS = "torus"
    CONE = "cone"


PARAM_TYPES: Dict[ShapeKind, type] = {
    ShapeKind.SPHERE: SphereParams,
    ShapeKind.BOX: BoxParams,
    ShapeKind.TORUS: TorusParams,
    ShapeKind.CONE: ConeParams,
}

DISTANCE_FUNCTIONS: Dict[ShapeKind, Callable[[Any, NDArray[np.float64]], Any]] = {
    ShapeKind.SPHERE: sphere_distance,
    ShapeKind.BOX: box_distance,
    ShapeKind.TORUS: torus_distance,
    ShapeKind.CONE: cone_distance,
}

BOUNDS_FUNCTIONS: Dict[ShapeKind, Callable[[Any], BoundingBox]] = {
    ShapeKind.SPHERE: sphere_bounds,
    ShapeKind.BOX: box_bounds,
    ShapeKind.TORUS: torus_bounds,
    ShapeKind.CONE: cone_bounds,
}


class Shape:
    """A primitive signed distance field with an affine placement.

    Args:
        kind: Which primitive this is
        params: Parameter record matching `kind` (defaults if None)
        transform: Placement in world space (identity if None)
    """

    def __init__(
        self,
        kind: ShapeKind,
        params: Optional[Any] = None,
        transform: Optional[ShapeTransform] = None,
    ):
        param_type = PARAM_TYPES[kind]
        if params is None:
            params = param_type()
        elif not isinstance(params, param_type):
            raise ValueError(
                f"{kind.value} shape needs {param_type.__name__}, got {type(params).__name__}"
            )

        self.kind = kind
        self.params = params
        self.transform = transform if transform is not None else ShapeTransform()

    @classmethod
    def sphere(cls, radius: float = 1.0, transform: Optional[ShapeTransform] = None) -> 'Shape':
        return cls(ShapeKind.SPHERE, SphereParams(radius), transform)

    @classmethod
    def box(
        cls,
        width: float = 2.0,
        height: float = 2.0,
        depth: float = 2.0,
        transform: Optional[ShapeTransform] = None,
    ) -> 'Shape':
        return cls(ShapeKind.BOX, BoxParams(width, height, depth), transform)

    @classmethod
    def torus(
        cls,
        major_radius: float = 0.7,
        minor_radius: float = 0.3,
        transform: Optional[ShapeTransform] = None,
    ) -> 'Shape':
        return cls(ShapeKind.TORUS, TorusParams(major_radius, minor_radius), transform)

    @classmethod
    def cone(
        cls,
        radius: float = 1.0,
        height: float = 2.0,
        transform: Optional[ShapeTransform] = None,
    ) -> 'Shape':
        return cls(ShapeKind.CONE, ConeParams(radius, height), transform)

    def set_params(self, **values: float) -> None:
        """Replace some of the shape's parameters.

        Raises:
            ValueError: If a name is not a parameter of this kind
        """
        known = {f.name for f in fields(self.params)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(
                f"Unknown {self.kind.value} parameters: {', '.join(sorted(unknown))}"
            )
        self.params = replace(self.params, **values)

    def local_distance(self, points):
        """Signed distance in local (untransformed) space."""
        return DISTANCE_FUNCTIONS[self.kind](self.params, points)

    def local_bounds(self) -> BoundingBox:
        """Tight axis-aligned bounds in local space."""
        return BOUNDS_FUNCTIONS[self.kind](self.params)

    def local_to_world(self, points) -> NDArray[np.float64]:
        return self.transform.transform_to_world(points)

    def world_to_local(self, points) -> NDArray[np.float64]:
        return self.transform.transform_to_local(points)

    def world_bounds(self) -> BoundingBox:
        """Axis-aligned box enclosing the 8 transformed local-bounds corners."""
        corners = self.local_to_world(self.local_bounds().corners())
        return calculate_bounding_box(corners)

    def world_distance(self, points):
        """Signed distance of world-space point(s) to the shape.

        Under non-uniform scale this is the local-space distance and only
        approximates the true world distance.
        """
        return self.local_distance(self.world_to_local(points))

    def __repr__(self) -> str:
        return f"Shape({self.kind.value}, {self.params}, {self.transform})"

    def __str__(self) -> str:
        return self.kind.value.capitalize()
