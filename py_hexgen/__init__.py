"""
Procedural hex world map generator.
"""

from .core import HexGrid, MapGenerator, Resource, Tile, generate
from .config import GenerationOptions, TemperatureLevel
from .errors import ConfigurationError, MapGenerationError

__version__ = "0.1.0"

__all__ = ['HexGrid', 'MapGenerator', 'Resource', 'Tile', 'generate',
           'GenerationOptions', 'TemperatureLevel',
           'ConfigurationError', 'MapGenerationError']
