"""
Pytest configuration and fixtures for isosurface.

Provides:
- Shape fixtures (unit sphere, 2x2x2 box, default torus and cone)
- Voxel grids fitted to and sampled from those shapes
- Winding helpers for checking that face normals point outward
"""

import logging
from pathlib import Path
from typing import Callable

import numpy as np
import pytest

from isosurface.geometry.mesh import Mesh
from isosurface.geometry.mesh_stats import calculate_face_centroids, calculate_face_normals
from isosurface.sdf.shapes import Shape
from isosurface.voxel_grid import VoxelGrid

PROJECT_ROOT = Path(__file__).parent.parent


# ============================================================================
# Logging
# ============================================================================

@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Leave the isosurface logger as each test found it."""
    package_logger = logging.getLogger("isosurface")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    propagate = package_logger.propagate
    yield
    for handler in list(package_logger.handlers):
        if handler not in handlers:
            package_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in package_logger.handlers:
            package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = propagate


# ============================================================================
# Shape Fixtures
# ============================================================================

@pytest.fixture
def unit_sphere() -> Shape:
    """Sphere of radius 1 at the origin."""
    return Shape.sphere(1.0)


@pytest.fixture
def box_2x2x2() -> Shape:
    """Box with edges of length 2 centred on the origin."""
    return Shape.box(2.0, 2.0, 2.0)


@pytest.fixture
def default_torus() -> Shape:
    """Torus R=0.7, r=0.3 around the Y axis."""
    return Shape.torus()


@pytest.fixture
def default_cone() -> Shape:
    """Cone r=1, h=2 with its apex at y=+1."""
    return Shape.cone()


# ============================================================================
# Grid Fixtures
# ============================================================================

def make_grid(shape: Shape, voxel_size: float) -> VoxelGrid:
    """Grid fitted to `shape` and sampled from it."""
    grid = VoxelGrid(voxel_size)
    grid.fit_to_shape(shape)
    grid.voxelize(shape)
    return grid


@pytest.fixture
def sphere_grid(unit_sphere: Shape) -> VoxelGrid:
    """Unit sphere sampled at voxel size 0.1."""
    return make_grid(unit_sphere, 0.1)


@pytest.fixture
def coarse_sphere_grid(unit_sphere: Shape) -> VoxelGrid:
    """Unit sphere sampled at voxel size 0.25."""
    return make_grid(unit_sphere, 0.25)


@pytest.fixture
def box_grid(box_2x2x2: Shape) -> VoxelGrid:
    """2x2x2 box sampled at voxel size 0.5 (6x6x6 grid)."""
    return make_grid(box_2x2x2, 0.5)


@pytest.fixture
def grid_factory() -> Callable[[Shape, float], VoxelGrid]:
    """Build a fitted, sampled grid for any shape and voxel size."""
    return make_grid


# ============================================================================
# Winding Helpers
# ============================================================================

def outward_alignment(mesh: Mesh, center) -> np.ndarray:
    """Per-face dot of the unit normal with the unit vector centre -> centroid."""
    vertices = mesh.vertex_array
    faces = mesh.face_array
    normals = calculate_face_normals(vertices, faces)
    radial = calculate_face_centroids(vertices, faces) - np.asarray(center, dtype=np.float64)
    lengths = np.linalg.norm(radial, axis=1, keepdims=True)
    radial = radial / np.where(lengths < 1e-12, 1.0, lengths)
    return np.sum(normals * radial, axis=1)


@pytest.fixture
def assert_outward() -> Callable[[Mesh, object], None]:
    """Assert that no face of a mesh points towards `center`."""
    def check(mesh: Mesh, center=(0.0, 0.0, 0.0)) -> None:
        assert not mesh.is_empty
        alignment = outward_alignment(mesh, center)
        inward = np.flatnonzero(alignment < -1e-9)
        assert len(inward) == 0, f"{len(inward)} of {mesh.n_faces} faces point inward"
    return check
