"""Exceptions raised by the map generator."""


class MapGenerationError(Exception):
    """Base class for map generation failures."""


class ConfigurationError(MapGenerationError, ValueError):
    """A required definition or setting is missing or inconsistent."""
