"""
JSON-based project configuration for isosurface.

Configuration hierarchy (later overrides earlier):
1. Built-in defaults (the dataclasses below)
2. User config (~/.isosurface.json)
3. Project config (./.isosurface.json)
4. Explicit --config file, then CLI arguments

Example .isosurface.json:
{
    "shape": {"kind": "torus", "major_radius": 0.8, "minor_radius": 0.2},
    "transform": {"rotation_deg": [90.0, 0.0, 0.0]},
    "grid": {"voxel_size": 0.05},
    "surface": {"algorithm": "marching_cubes", "smooth_shading": false}
}
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from isosurface.exceptions import ConfigError
from isosurface.geometry.transform import ShapeTransform, clamp_scale
from isosurface.sdf.shapes import Shape, ShapeKind
from isosurface.surface.base import MeshBuilderKind

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".isosurface.json"

MIN_SCALE = 0.001


@dataclass
class ShapeConfig:
    """Which primitive to voxelize and its parameters.

    Only the parameters belonging to `kind` are used.
    """
    kind: str = "sphere"  # sphere, box, torus, cone
    radius: float = 1.0
    width: float = 2.0
    height: float = 2.0
    depth: float = 2.0
    major_radius: float = 0.7
    minor_radius: float = 0.3
    cone_radius: float = 1.0
    cone_height: float = 2.0


@dataclass
class TransformConfig:
    """Shape placement; rotations in degrees about X, then Y, then Z."""
    translation: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    rotation_deg: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    scale: List[float] = field(default_factory=lambda: [1.0, 1.0, 1.0])


@dataclass
class GridConfig:
    voxel_size: float = 0.1


@dataclass
class SurfaceConfig:
    """Surface extraction settings."""
    algorithm: str = "surface_nets"  # blocky, marching_cubes, surface_nets
    iso_level: float = 0.0
    smooth_shading: bool = True


@dataclass
class DiagnosticsConfig:
    # Shortest edge <= voxel_size * threshold counts as degenerate
    degenerate_threshold: float = 0.05


SECTION_TYPES: Dict[str, type] = {
    'shape': ShapeConfig,
    'transform': TransformConfig,
    'grid': GridConfig,
    'surface': SurfaceConfig,
    'diagnostics': DiagnosticsConfig,
}


@dataclass
class ProjectConfig:
    """Complete project configuration."""
    shape: ShapeConfig = field(default_factory=ShapeConfig)
    transform: TransformConfig = field(default_factory=TransformConfig)
    grid: GridConfig = field(default_factory=GridConfig)
    surface: SurfaceConfig = field(default_factory=SurfaceConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to JSON file."""
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
        logger.info("Configuration saved to %s", path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Create configuration from dictionary.

        Unknown sections and keys (including "_comment" entries) are ignored.

        Raises:
            ConfigError: If data is not a JSON object
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Config must be a JSON object, got {type(data).__name__}")
        config = cls()
        for section_name in SECTION_TYPES:
            values = data.get(section_name)
            if not isinstance(values, dict):
                continue
            section = getattr(config, section_name)
            for key, value in values.items():
                if key.startswith('_'):
                    continue
                if hasattr(section, key):
                    setattr(section, key, value)
                else:
                    logger.warning("Ignoring unknown config key %s.%s", section_name, key)
        return config

    @classmethod
    def from_json(cls, json_str: str) -> 'ProjectConfig':
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ProjectConfig':
        """Load configuration from JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
            ConfigError: If the top level is not an object
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.info("Configuration loaded from %s", path)
        return cls.from_dict(data)


def find_config_file(explicit_config: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Find configuration file.

    Search order:
    1. Explicit config path (if provided and it exists)
    2. .isosurface.json in the current working directory
    3. ~/.isosurface.json

    Returns:
        Path to config file if found, None otherwise
    """
    if explicit_config:
        explicit = Path(explicit_config)
        if explicit.exists():
            return explicit
        logger.warning("Explicit config not found: %s", explicit)

    for candidate in (Path.cwd() / CONFIG_FILENAME, Path.home() / CONFIG_FILENAME):
        if candidate.exists():
            return candidate

    return None


def load_config(explicit_config: Optional[Union[str, Path]] = None) -> ProjectConfig:
    """Load configuration, falling back to defaults if none is found or readable."""
    config_path = find_config_file(explicit_config)

    if config_path:
        try:
            return ProjectConfig.load(config_path)
        except (json.JSONDecodeError, OSError, ConfigError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)

    return ProjectConfig()


def merge_configs(base: ProjectConfig, override: ProjectConfig) -> ProjectConfig:
    """Merge two configurations; override values that differ from the defaults win."""
    merged = ProjectConfig.from_dict(base.to_dict())

    for section_name, section_type in SECTION_TYPES.items():
        defaults = section_type()
        source = getattr(override, section_name)
        target = getattr(merged, section_name)
        for f in fields(section_type):
            value = getattr(source, f.name)
            if value != getattr(defaults, f.name):
                setattr(target, f.name, value)

    return merged


def config_float(name: str, value: Any) -> float:
    """Coerce a numeric config value; raises ConfigError if it is not a number."""
    if isinstance(value, bool):
        raise ConfigError(f"Invalid {name}: expected a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid {name}: expected a number, got {value!r}") from None


def config_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"Invalid {name}: expected true or false, got {value!r}")
    return value


def shape_kind(config: ShapeConfig) -> ShapeKind:
    """Raises ConfigError for an unknown shape name."""
    if not isinstance(config.kind, str):
        raise ConfigError(f"Invalid shape.kind: expected a name, got {config.kind!r}")
    try:
        return ShapeKind(config.kind.strip().lower())
    except ValueError:
        valid = ', '.join(k.value for k in ShapeKind)
        raise ConfigError(f"Unknown shape '{config.kind}' (expected one of: {valid})") from None


def builder_kind(config: SurfaceConfig) -> MeshBuilderKind:
    """Raises ConfigError for an unknown algorithm name."""
    if not isinstance(config.algorithm, str):
        raise ConfigError(f"Invalid surface.algorithm: expected a name, got {config.algorithm!r}")
    try:
        return MeshBuilderKind.from_name(config.algorithm)
    except ValueError as e:
        raise ConfigError(str(e)) from None


def build_shape(config: ProjectConfig) -> Shape:
    """Create the configured Shape, with scale components clamped away from zero.

    Raises:
        ConfigError: If the shape kind, a parameter or a vector is malformed
    """
    kind = shape_kind(config.shape)

    def param(name: str) -> float:
        return config_float(f"shape.{name}", getattr(config.shape, name))

    try:
        transform = ShapeTransform(
            scale=[clamp_scale(float(v), MIN_SCALE) for v in config.transform.scale],
            rotation_deg=config.transform.rotation_deg,
            translation=config.transform.translation,
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid transform: {e}") from e

    if kind is ShapeKind.SPHERE:
        return Shape.sphere(param('radius'), transform=transform)
    if kind is ShapeKind.BOX:
        return Shape.box(param('width'), param('height'), param('depth'), transform=transform)
    if kind is ShapeKind.TORUS:
        return Shape.torus(param('major_radius'), param('minor_radius'), transform=transform)
    return Shape.cone(param('cone_radius'), param('cone_height'), transform=transform)


def create_sample_config(path: Union[str, Path] = CONFIG_FILENAME) -> None:
    """Write a sample configuration file with comments on each section."""
    defaults = ProjectConfig().to_dict()
    sample: Dict[str, Any] = {
        "_comment": "isosurface configuration",
        "_version": "1.0",
    }
    comments = {
        'shape': "kind: sphere | box | torus | cone; only that kind's parameters are used",
        'transform': "scale, then rotate about X, Y, Z (degrees), then translate",
        'grid': "voxel edge length in world units",
        'surface': "algorithm: blocky | marching_cubes | surface_nets",
        'diagnostics': "degenerate triangle: shortest edge <= voxel_size * threshold",
    }
    for section_name, values in defaults.items():
        sample[section_name] = {"_comment": comments[section_name], **values}

    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample, f, indent=2, ensure_ascii=False)

    logger.info("Sample configuration created: %s", path)
