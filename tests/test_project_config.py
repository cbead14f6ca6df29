"""
Unit tests for isosurface.project_config module.

Tests:
- Configuration dataclasses
- JSON serialization/deserialization
- Config file discovery and loading
- Config merging
- Shape construction from a config
"""

import json

import pytest

from isosurface.exceptions import ConfigError
from isosurface.project_config import (
    CONFIG_FILENAME,
    MIN_SCALE,
    DiagnosticsConfig,
    GridConfig,
    ProjectConfig,
    ShapeConfig,
    SurfaceConfig,
    TransformConfig,
    build_shape,
    builder_kind,
    config_bool,
    config_float,
    create_sample_config,
    find_config_file,
    load_config,
    merge_configs,
    shape_kind,
)
from isosurface.sdf.shapes import ShapeKind
from isosurface.surface.base import MeshBuilderKind


@pytest.fixture
def isolated_dirs(tmp_path, monkeypatch):
    """Run in an empty working directory with an empty home directory."""
    work = tmp_path / "work"
    home = tmp_path / "home"
    work.mkdir()
    home.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setenv("HOME", str(home))
    return work, home


class TestSectionDefaults:
    """Tests for the section dataclasses."""

    def test_shape_defaults(self):
        """Test default shape is the unit sphere."""
        config = ShapeConfig()
        assert config.kind == "sphere"
        assert config.radius == 1.0
        assert (config.major_radius, config.minor_radius) == (0.7, 0.3)
        assert (config.cone_radius, config.cone_height) == (1.0, 2.0)

    def test_transform_defaults(self):
        """Test default transform is the identity."""
        config = TransformConfig()
        assert config.translation == [0.0, 0.0, 0.0]
        assert config.rotation_deg == [0.0, 0.0, 0.0]
        assert config.scale == [1.0, 1.0, 1.0]

    def test_transform_lists_not_shared(self):
        """Test each instance gets its own lists."""
        a, b = TransformConfig(), TransformConfig()
        a.scale[0] = 3.0
        assert b.scale[0] == 1.0

    def test_surface_and_grid_defaults(self):
        """Test default surface settings."""
        surface = SurfaceConfig()
        assert surface.algorithm == "surface_nets"
        assert surface.iso_level == 0.0
        assert surface.smooth_shading is True
        assert GridConfig().voxel_size == 0.1
        assert DiagnosticsConfig().degenerate_threshold == 0.05


class TestProjectConfig:
    """Tests for ProjectConfig serialization."""

    def test_to_dict(self):
        """Test conversion to dictionary."""
        data = ProjectConfig().to_dict()
        assert set(data) == {'shape', 'transform', 'grid', 'surface', 'diagnostics'}
        assert data['grid']['voxel_size'] == 0.1

    def test_json_roundtrip(self):
        """Test a modified config survives JSON."""
        config = ProjectConfig()
        config.shape.kind = "torus"
        config.transform.rotation_deg = [90.0, 0.0, 0.0]
        config.surface.smooth_shading = False

        loaded = ProjectConfig.from_json(config.to_json())

        assert loaded.shape.kind == "torus"
        assert loaded.transform.rotation_deg == [90.0, 0.0, 0.0]
        assert loaded.surface.smooth_shading is False

    def test_from_dict_partial(self):
        """Test missing sections and keys keep their defaults."""
        config = ProjectConfig.from_dict({'grid': {'voxel_size': 0.05}})
        assert config.grid.voxel_size == 0.05
        assert config.shape.kind == "sphere"

    def test_from_dict_ignores_comments_and_unknown_keys(self, caplog):
        """Test "_" keys are skipped silently and unknown keys with a warning."""
        config = ProjectConfig.from_dict({
            '_comment': "top level",
            'surface': {'_comment': "ignored", 'algorithm': "blocky", 'colour': "red"},
            'unknown_section': {'a': 1},
        })
        assert config.surface.algorithm == "blocky"
        assert not hasattr(config.surface, 'colour')
        warnings = [r.getMessage() for r in caplog.records if r.levelname == "WARNING"]
        assert warnings == ["Ignoring unknown config key surface.colour"]

    @pytest.mark.parametrize("data", [[1, 2], "sphere", None])
    def test_from_dict_requires_object(self, data):
        """Test a top level that is not an object raises ConfigError."""
        with pytest.raises(ConfigError, match="JSON object"):
            ProjectConfig.from_dict(data)

    def test_save_and_load(self, tmp_path):
        """Test saving to and loading from a file."""
        path = tmp_path / "config.json"
        config = ProjectConfig()
        config.grid.voxel_size = 0.25
        config.save(path)

        assert ProjectConfig.load(path).grid.voxel_size == 0.25

    def test_load_missing_file(self, tmp_path):
        """Test loading a missing file raises."""
        with pytest.raises(FileNotFoundError):
            ProjectConfig.load(tmp_path / "missing.json")


class TestFindConfigFile:
    """Tests for find_config_file."""

    def test_none_found(self, isolated_dirs):
        """Test no config anywhere."""
        assert find_config_file() is None

    def test_explicit_path(self, isolated_dirs, tmp_path):
        """Test an existing explicit path wins."""
        work, _ = isolated_dirs
        (work / CONFIG_FILENAME).write_text("{}")
        explicit = tmp_path / "explicit.json"
        explicit.write_text("{}")
        assert find_config_file(explicit) == explicit

    def test_missing_explicit_falls_back(self, isolated_dirs):
        """Test a missing explicit path falls back to the search."""
        work, _ = isolated_dirs
        (work / CONFIG_FILENAME).write_text("{}")
        found = find_config_file("does-not-exist.json")
        assert found.resolve() == (work / CONFIG_FILENAME).resolve()

    def test_cwd_before_home(self, isolated_dirs):
        """Test the project config shadows the user config."""
        work, home = isolated_dirs
        (home / CONFIG_FILENAME).write_text("{}")
        assert find_config_file().resolve() == (home / CONFIG_FILENAME).resolve()

        (work / CONFIG_FILENAME).write_text("{}")
        assert find_config_file().resolve() == (work / CONFIG_FILENAME).resolve()


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_when_missing(self, isolated_dirs):
        """Test defaults when no file exists."""
        assert load_config() == ProjectConfig()

    def test_loads_project_file(self, isolated_dirs):
        """Test the working directory config is read."""
        work, _ = isolated_dirs
        (work / CONFIG_FILENAME).write_text(json.dumps({'shape': {'kind': 'cone'}}))
        assert load_config().shape.kind == "cone"

    def test_invalid_json_falls_back(self, isolated_dirs):
        """Test an unreadable file gives the defaults."""
        work, _ = isolated_dirs
        (work / CONFIG_FILENAME).write_text("{not json")
        assert load_config() == ProjectConfig()

    def test_non_object_falls_back(self, isolated_dirs, caplog):
        """Test a file holding a JSON list gives the defaults and logs an error."""
        work, _ = isolated_dirs
        (work / CONFIG_FILENAME).write_text("[1, 2]")
        assert load_config() == ProjectConfig()
        assert any(r.levelname == "ERROR" for r in caplog.records)


class TestMergeConfigs:
    """Tests for merge_configs."""

    def test_override_wins_where_set(self):
        """Test non-default override values replace the base."""
        base = ProjectConfig()
        base.grid.voxel_size = 0.05
        base.shape.kind = "box"
        override = ProjectConfig()
        override.shape.kind = "torus"

        merged = merge_configs(base, override)

        assert merged.shape.kind == "torus"
        assert merged.grid.voxel_size == 0.05

    def test_inputs_unchanged(self):
        """Test merging does not modify either input."""
        base = ProjectConfig()
        override = ProjectConfig()
        override.surface.iso_level = 0.2
        merge_configs(base, override)
        assert base.surface.iso_level == 0.0


class TestKinds:
    """Tests for shape_kind and builder_kind."""

    def test_shape_kind(self):
        """Test names map to shape kinds case-insensitively."""
        assert shape_kind(ShapeConfig(kind="Torus")) is ShapeKind.TORUS

    def test_unknown_shape_kind(self):
        """Test unknown shapes raise ConfigError."""
        with pytest.raises(ConfigError, match="cylinder"):
            shape_kind(ShapeConfig(kind="cylinder"))

    def test_builder_kind(self):
        """Test algorithm names map to builders."""
        assert builder_kind(SurfaceConfig(algorithm="marching-cubes")) is MeshBuilderKind.MARCHING_CUBES

    def test_unknown_builder_kind(self):
        """Test unknown algorithms raise ConfigError."""
        with pytest.raises(ConfigError):
            builder_kind(SurfaceConfig(algorithm="dual_contouring"))

    @pytest.mark.parametrize("kind", [3, None, ["box"]])
    def test_shape_kind_not_a_name(self, kind):
        """Test a shape kind that is not a string raises ConfigError."""
        with pytest.raises(ConfigError, match="shape.kind"):
            shape_kind(ShapeConfig(kind=kind))

    def test_builder_kind_not_a_name(self):
        """Test an algorithm that is not a string raises ConfigError."""
        with pytest.raises(ConfigError, match="surface.algorithm"):
            builder_kind(SurfaceConfig(algorithm=5))


class TestConfigValues:
    """Tests for config_float and config_bool."""

    @pytest.mark.parametrize("value, expected", [(0.5, 0.5), (2, 2.0), ("0.2", 0.2)])
    def test_float_coerced(self, value, expected):
        """Test numbers and numeric strings are accepted."""
        assert config_float("grid.voxel_size", value) == expected

    @pytest.mark.parametrize("value", ["abc", None, [0.1], True])
    def test_float_rejected(self, value):
        """Test non-numeric values raise ConfigError naming the key."""
        with pytest.raises(ConfigError, match="grid.voxel_size"):
            config_float("grid.voxel_size", value)

    def test_bool(self):
        """Test only JSON booleans are accepted as flags."""
        assert config_bool("surface.smooth_shading", False) is False
        with pytest.raises(ConfigError, match="surface.smooth_shading"):
            config_bool("surface.smooth_shading", "false")


class TestBuildShape:
    """Tests for build_shape."""

    def test_default_sphere(self):
        """Test the default config builds the unit sphere."""
        shape = build_shape(ProjectConfig())
        assert shape.kind is ShapeKind.SPHERE
        assert shape.params.radius == 1.0
        assert shape.world_distance([0.0, 0.0, 0.0]) == pytest.approx(-1.0)

    def test_parameters_by_kind(self):
        """Test only the selected kind's parameters are used."""
        config = ProjectConfig()
        config.shape.kind = "cone"
        config.shape.cone_radius = 0.5
        config.shape.cone_height = 3.0
        config.shape.radius = 9.0

        shape = build_shape(config)

        assert shape.kind is ShapeKind.CONE
        assert (shape.params.radius, shape.params.height) == (0.5, 3.0)

    def test_transform_applied(self):
        """Test translation, rotation and scale reach the shape."""
        config = ProjectConfig()
        config.shape.kind = "box"
        config.transform.translation = [1.0, 2.0, 3.0]
        config.transform.rotation_deg = [0.0, 90.0, 0.0]
        config.transform.scale = [2.0, 1.0, 1.0]

        transform = build_shape(config).transform

        assert transform.translation == (1.0, 2.0, 3.0)
        assert transform.rotation_deg == (0.0, 90.0, 0.0)
        assert transform.scale == (2.0, 1.0, 1.0)

    def test_scale_clamped(self):
        """Test zero and tiny scales are clamped to MIN_SCALE, keeping sign."""
        config = ProjectConfig()
        config.transform.scale = [0.0, -0.0001, 0.5]

        shape = build_shape(config)

        assert shape.transform.scale == (MIN_SCALE, -MIN_SCALE, 0.5)
        shape.world_distance([0.0, 0.0, 0.0])

    def test_numeric_string_parameter(self):
        """Test a numeric string parameter is coerced to a float."""
        config = ProjectConfig()
        config.shape.radius = "0.5"
        assert build_shape(config).params.radius == 0.5

    def test_non_numeric_parameter(self):
        """Test a non-numeric parameter of the selected kind raises ConfigError."""
        config = ProjectConfig()
        config.shape.kind = "torus"
        config.shape.minor_radius = "thin"
        with pytest.raises(ConfigError, match="shape.minor_radius"):
            build_shape(config)

    @pytest.mark.parametrize("scale", [[1.0, 1.0], ["a", 1.0, 1.0]])
    def test_malformed_transform(self, scale):
        """Test malformed vectors raise ConfigError."""
        config = ProjectConfig()
        config.transform.scale = scale
        with pytest.raises(ConfigError):
            build_shape(config)


class TestCreateSampleConfig:
    """Tests for create_sample_config."""

    def test_sample_loads_as_defaults(self, tmp_path):
        """Test the sample file carries comments and loads to the defaults."""
        path = tmp_path / CONFIG_FILENAME
        create_sample_config(path)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert "_comment" in data
        assert "_comment" in data['surface']
        assert ProjectConfig.load(path) == ProjectConfig()
