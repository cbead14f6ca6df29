"""
Entry point: voxelize an SDF shape and extract its surface.

Usage:
    python main.py [--shape {sphere,box,torus,cone}] [--algorithm NAME]
                   [--voxel-size S] [--iso-level L] [--flat]
                   [--config PATH] [--json-log PATH] [--verbose]

Examples:
    python main.py --shape torus --algorithm marching_cubes --voxel-size 0.05
    python main.py --config scene.isosurface.json --verbose
"""

import argparse
import logging
import sys
from typing import List, Optional

from isosurface.exceptions import IsosurfaceError
from isosurface.logging_config import setup_logging
from isosurface.pipeline import IsosurfacePipeline
from isosurface.project_config import ProjectConfig, load_config
from isosurface.sdf.shapes import ShapeKind
from isosurface.surface.base import MeshBuilderKind

logger = logging.getLogger("isosurface.cli")


def apply_overrides(config: ProjectConfig, args: argparse.Namespace) -> ProjectConfig:
    """Copy the command-line options that were given onto the config."""
    if args.shape is not None:
        config.shape.kind = args.shape
    if args.algorithm is not None:
        config.surface.algorithm = args.algorithm
    if args.voxel_size is not None:
        config.grid.voxel_size = args.voxel_size
    if args.iso_level is not None:
        config.surface.iso_level = args.iso_level
    if args.flat:
        config.surface.smooth_shading = False
    return config


def run(config: ProjectConfig) -> IsosurfacePipeline:
    """Build the configured surface once.

    Raises:
        IsosurfaceError: On an unknown shape/algorithm, a malformed config value
            or a degenerate transform
        ValueError: If the voxel size is not positive
    """
    logger.info(
        "Extracting surface",
        extra={
            'shape': config.shape.kind,
            'algorithm': config.surface.algorithm,
            'voxel_size': config.grid.voxel_size,
        }
    )
    return IsosurfacePipeline.from_config(config)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Voxelize a signed distance field shape and extract a triangle mesh.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--shape",
        choices=[k.value for k in ShapeKind],
        default=None,
        help="Primitive to voxelize (default: from config, else sphere).",
    )
    parser.add_argument(
        "--algorithm", "-a",
        choices=[k.value for k in MeshBuilderKind],
        default=None,
        help="Surface extraction algorithm (default: from config, else surface_nets).",
    )
    parser.add_argument(
        "--voxel-size", "-s",
        type=float,
        default=None,
        dest="voxel_size",
        help="Voxel edge length in world units (default: 0.1).",
    )
    parser.add_argument(
        "--iso-level", "-i",
        type=float,
        default=None,
        dest="iso_level",
        help="Field value of the surface (default: 0.0).",
    )
    parser.add_argument(
        "--flat",
        action="store_true",
        help="Mark triangles as flat shaded instead of smooth.",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to a .isosurface.json configuration file.",
    )
    parser.add_argument(
        "--json-log",
        default=None,
        dest="json_log",
        help="Also write JSON log lines to this file.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log at DEBUG level.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_file=args.json_log,
    )

    config = apply_overrides(load_config(args.config), args)

    try:
        pipeline = run(config)
    except IsosurfaceError as exc:
        logger.critical("Cannot build surface: %s", exc)
        return 1
    except ValueError as exc:
        logger.critical("Invalid parameter: %s", exc)
        return 1

    print(pipeline.statistics.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
