"""Exceptions raised by the isosurface package."""


class IsosurfaceError(Exception):
    """Base exception for the isosurface package."""


class InvalidShapeConfiguration(IsosurfaceError):
    """Shape transform cannot be inverted (a scale component is zero)."""


class ConfigError(IsosurfaceError):
    """Settings name an unknown shape kind or meshing algorithm, or hold a malformed value."""
