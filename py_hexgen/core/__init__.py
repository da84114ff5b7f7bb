"""
Core map generation functionality.
"""

from .map_generator import MapGenerator, generate
from .grid import HexGrid, MapFields, Resource, Tile
from .heightmap_generator import HeightmapGenerator
from .tectonics import MountainRange, Tectonics
from .climate import Climate
from .biomes import BiomeClassifier
from .hydrology import Hydrology, River
from .post_processing import PostProcessor
from .detail_features import DetailFeatures
from .resources import ResourcePlacer

__all__ = ['MapGenerator', 'generate', 'HexGrid', 'MapFields', 'Resource', 'Tile',
           'HeightmapGenerator', 'MountainRange', 'Tectonics', 'Climate',
           'BiomeClassifier', 'Hydrology', 'River', 'PostProcessor',
           'DetailFeatures', 'ResourcePlacer']
