"""
Configuration: static definitions and generation settings.
"""

from .definitions import DEFAULT_LIBRARY, DefinitionLibrary
from .generator_settings import GenerationOptions, GeneratorSettings, TemperatureLevel
from .config import Settings, settings

__all__ = [
    "DEFAULT_LIBRARY",
    "DefinitionLibrary",
    "GenerationOptions",
    "GeneratorSettings",
    "TemperatureLevel",
    "Settings",
    "settings",
]
