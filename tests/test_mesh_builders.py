"""
Unit tests for the shared surface builder contract.

Tests:
- MeshBuilderKind lookup and dispatch through build_mesh
- MeshAssembler vertex deduplication and quad splitting
- Determinism, clearing and smoothing groups for every builder
- Outward winding and enclosed volume for every builder
"""

import math

import numpy as np
import pytest

from isosurface.geometry.mesh import FLAT_SMOOTHING_GROUP, SMOOTH_SMOOTHING_GROUP, Mesh
from isosurface.geometry.mesh_stats import calculate_volume
from isosurface.sdf.shapes import Shape
from isosurface.surface import (
    MESH_BUILDERS,
    MeshAssembler,
    MeshBuilderKind,
    build_blocky,
    build_marching_cubes,
    build_mesh,
    build_surface_nets,
)
from isosurface.voxel_grid import VoxelGrid

ALL_KINDS = list(MeshBuilderKind)


class TestMeshBuilderKind:
    """Tests for MeshBuilderKind."""

    def test_values(self):
        """Test the three algorithms and their names."""
        assert [k.value for k in MeshBuilderKind] == ["blocky", "marching_cubes", "surface_nets"]

    @pytest.mark.parametrize("name,kind", [
        ("blocky", MeshBuilderKind.BLOCKY),
        ("Marching-Cubes", MeshBuilderKind.MARCHING_CUBES),
        (" SURFACE_NETS ", MeshBuilderKind.SURFACE_NETS),
    ])
    def test_from_name(self, name, kind):
        """Test case- and dash-insensitive lookup."""
        assert MeshBuilderKind.from_name(name) is kind

    def test_from_unknown_name(self):
        """Test unknown names are rejected."""
        with pytest.raises(ValueError):
            MeshBuilderKind.from_name("dual_contouring")

    def test_dispatch_table(self):
        """Test every kind has its builder function."""
        assert MESH_BUILDERS == {
            MeshBuilderKind.BLOCKY: build_blocky,
            MeshBuilderKind.MARCHING_CUBES: build_marching_cubes,
            MeshBuilderKind.SURFACE_NETS: build_surface_nets,
        }


class TestMeshAssembler:
    """Tests for MeshAssembler."""

    def test_clears_mesh(self):
        """Test creating an assembler empties the mesh."""
        mesh = Mesh()
        mesh.add_vertex((1.0, 2.0, 3.0))
        mesh.add_triangle(0, 0, 0, 1)
        MeshAssembler(mesh, True)
        assert mesh.n_vertices == 0
        assert mesh.n_faces == 0
        assert mesh.texture_coords == [(0.0, 0.0)]

    def test_exact_dedup(self):
        """Test only bit-identical positions share a vertex."""
        assembler = MeshAssembler(Mesh(), True)
        a = assembler.add_vertex((0.1, 0.2, 0.3))
        b = assembler.add_vertex(np.array([0.1, 0.2, 0.3]))
        c = assembler.add_vertex((0.1, 0.2, 0.3 + 1e-15))
        assert a == b
        assert c != a

    def test_quad_split(self):
        """Test a quad becomes (p0, p1, p2) and (p0, p2, p3)."""
        mesh = Mesh()
        assembler = MeshAssembler(mesh, False)
        p = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
        assembler.add_quad_face(*p)
        assert mesh.faces == [(0, 1, 2), (0, 2, 3)]
        assert mesh.smoothing_groups == [FLAT_SMOOTHING_GROUP] * 2

    def test_shared_edge(self):
        """Test two quads sharing an edge reuse its vertices."""
        mesh = Mesh()
        assembler = MeshAssembler(mesh, True)
        assembler.add_quad_face((0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0))
        assembler.add_quad_face((1, 0, 0), (2, 0, 0), (2, 1, 0), (1, 1, 0))
        assert mesh.n_vertices == 6


@pytest.mark.parametrize("kind", ALL_KINDS, ids=lambda k: k.value)
class TestBuilderContract:
    """Contract shared by all builders."""

    def test_deterministic(self, kind, coarse_sphere_grid):
        """Test identical inputs give bit-identical meshes."""
        first = build_mesh(kind, coarse_sphere_grid, 0.0, True, Mesh())
        second = build_mesh(kind, coarse_sphere_grid, 0.0, True, Mesh())
        assert first.n_faces > 0
        assert np.array_equal(first.vertex_array, second.vertex_array)
        assert np.array_equal(first.face_array, second.face_array)

    def test_rebuild_replaces_contents(self, kind, coarse_sphere_grid, box_grid):
        """Test building into a used mesh replaces everything."""
        mesh = build_mesh(kind, coarse_sphere_grid, 0.0, True, Mesh())
        build_mesh(kind, box_grid, 0.0, True, mesh)
        fresh = build_mesh(kind, box_grid, 0.0, True, Mesh())
        assert mesh.vertices == fresh.vertices
        assert mesh.faces == fresh.faces

    @pytest.mark.parametrize("smooth,group", [(True, SMOOTH_SMOOTHING_GROUP),
                                              (False, FLAT_SMOOTHING_GROUP)])
    def test_smoothing_groups(self, kind, coarse_sphere_grid, smooth, group):
        """Test every triangle carries the requested smoothing group."""
        mesh = build_mesh(kind, coarse_sphere_grid, 0.0, smooth, Mesh())
        assert len(mesh.smoothing_groups) == mesh.n_faces
        assert set(mesh.smoothing_groups) == {group}

    def test_valid_indices(self, kind, sphere_grid):
        """Test triangles reference existing, distinct vertices."""
        mesh = build_mesh(kind, sphere_grid, 0.0, True, Mesh())
        faces = mesh.face_array
        assert faces.min() >= 0
        assert faces.max() < mesh.n_vertices
        assert np.all(faces[:, 0] != faces[:, 1])
        assert np.all(faces[:, 1] != faces[:, 2])
        assert np.all(faces[:, 0] != faces[:, 2])

    def test_unique_vertices(self, kind, sphere_grid):
        """Test no two vertices share a position."""
        mesh = build_mesh(kind, sphere_grid, 0.0, True, Mesh())
        assert len(set(mesh.vertices)) == mesh.n_vertices

    def test_outside_field_is_empty(self, kind):
        """Test a grid with nothing inside produces no geometry."""
        grid = VoxelGrid(1.0)
        grid.fit_to_shape(Shape.box())
        grid.values[:] = 5.0
        mesh = build_mesh(kind, grid, 0.0, True, Mesh())
        assert mesh.is_empty
        assert mesh.n_vertices == 0

    def test_empty_grid(self, kind):
        """Test a never-fitted grid produces no geometry."""
        mesh = build_mesh(kind, VoxelGrid(), 0.0, True, Mesh())
        assert mesh.is_empty

    def test_sphere_outward(self, kind, sphere_grid, assert_outward):
        """Test normals point away from the sphere centre."""
        assert_outward(build_mesh(kind, sphere_grid, 0.0, True, Mesh()))

    def test_box_outward(self, kind, box_grid, assert_outward):
        """Test normals point away from the box centre."""
        assert_outward(build_mesh(kind, box_grid, 0.0, True, Mesh()))

    def test_translated_sphere_outward(self, kind, grid_factory, assert_outward):
        """Test winding holds away from the origin too."""
        from isosurface.geometry.transform import ShapeTransform

        shape = Shape.sphere(0.6, transform=ShapeTransform(translation=(2.0, -1.0, 0.5)))
        grid = grid_factory(shape, 0.1)
        assert_outward(build_mesh(kind, grid, 0.0, True, Mesh()), (2.0, -1.0, 0.5))

    def test_cone_encloses_volume(self, kind, default_cone, grid_factory):
        """Test the cone comes out wound outward with about its true volume."""
        mesh = build_mesh(kind, grid_factory(default_cone, 0.1), 0.0, True, Mesh())
        volume = calculate_volume(mesh.vertex_array, mesh.face_array)
        assert volume > 0
        assert volume == pytest.approx(math.pi * 1.0 ** 2 * 2.0 / 3.0, rel=0.2)

    def test_rotated_scaled_box_encloses_volume(self, kind, grid_factory):
        """Test winding survives rotation combined with non-uniform scale."""
        from isosurface.geometry.transform import ShapeTransform

        shape = Shape.box(2.0, 2.0, 2.0, transform=ShapeTransform(
            scale=(1.5, 0.75, 1.0), rotation_deg=(30.0, 45.0, 10.0),
        ))
        mesh = build_mesh(kind, grid_factory(shape, 0.1), 0.0, True, Mesh())
        volume = calculate_volume(mesh.vertex_array, mesh.face_array)
        assert volume > 0
        assert volume == pytest.approx(3.0 * 1.5 * 2.0, rel=0.15)
