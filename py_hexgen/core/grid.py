"""Hex grid data structures populated by the map generator."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Set

import numpy as np

from ..config.definitions import BiomeDefinition, FeatureDefinition
from . import hex_grid
from .hex_grid import Coord, EdgeId, VertexId


@dataclass
class Resource:
    """A resource deposit placed in a tile's content slot.

    Claim state is owned by gameplay; generation only creates unclaimed
    deposits.
    """

    type: str
    is_claimed: bool = False
    claimed_by: Optional[Any] = None


@dataclass
class Tile:
    """A single hex tile."""

    x: int
    y: int
    biome: Optional[BiomeDefinition]
    feature: Optional[FeatureDefinition] = None
    content: Optional[Any] = None

    @property
    def coord(self) -> Coord:
        return self.x, self.y

    @property
    def elevation(self) -> float:
        """Discrete elevation: biome constant plus feature modifier."""
        value = self.biome.elevation if self.biome else 0
        if self.feature is not None:
            value += self.feature.elevation_modifier
        return value

    def has_biome(self, biome_id: str) -> bool:
        return self.biome is not None and self.biome.id == biome_id

    def has_feature(self, feature_id: str) -> bool:
        return self.feature is not None and self.feature.id == feature_id


@dataclass
class HexGrid:
    """Rectangular odd-r hex grid, ``tiles[y][x]``, plus the river edge set.

    Created empty; ``reset`` allocates tiles for one generation run.
    """

    width: int
    height: int
    tiles: List[List[Tile]] = field(default_factory=list)
    rivers: Set[EdgeId] = field(default_factory=set)

    def reset(
        self, width: int, height: int, biome: Optional[BiomeDefinition] = None
    ) -> None:
        """Replace all tiles with fresh ones of the given biome and clear rivers."""
        self.width = width
        self.height = height
        self.tiles = [[Tile(x, y, biome) for x in range(width)] for y in range(height)]
        self.rivers = set()

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_tile(self, x: int, y: int) -> Optional[Tile]:
        """Tile at the given coordinates, or None outside the map."""
        if self.in_bounds(x, y) and y < len(self.tiles) and x < len(self.tiles[y]):
            return self.tiles[y][x]
        return None

    def iter_tiles(self) -> Iterator[Tile]:
        """All tiles in row-major order."""
        for row in self.tiles:
            yield from row

    def neighbors(self, tile: Tile) -> List[Tile]:
        """In-bounds neighbours in E, SE, SW, W, NW, NE order."""
        result = []
        for nx, ny in hex_grid.get_neighbors(tile.x, tile.y):
            if self.in_bounds(nx, ny):
                result.append(self.tiles[ny][nx])
        return result

    def is_edge_tile(self, tile: Tile) -> bool:
        """True for tiles on the outer ring of the map."""
        return (
            tile.x == 0
            or tile.y == 0
            or tile.x == self.width - 1
            or tile.y == self.height - 1
        )

    def vertices_for_tile(self, tile: Tile) -> List[VertexId]:
        return hex_grid.vertices_for_tile(tile.x, tile.y, self.in_bounds)

    def border_edges_for_tile(self, tile: Tile) -> List[EdgeId]:
        return hex_grid.border_edges_for_tile(tile.x, tile.y, self.in_bounds)

    def vertex_neighbors(self, vertex: VertexId) -> List[VertexId]:
        return hex_grid.vertex_neighbors(vertex, self.in_bounds)

    def tiles_for_vertex(self, vertex: VertexId) -> List[Tile]:
        return [self.tiles[y][x] for x, y in vertex if self.in_bounds(x, y)]

    def has_river_border(self, tile: Tile) -> bool:
        """True when any border of the tile carries a river."""
        return any(edge in self.rivers for edge in self.border_edges_for_tile(tile))

    def biome_counts(self) -> Dict[str, int]:
        return dict(Counter(t.biome.id for t in self.iter_tiles() if t.biome))

    def feature_counts(self) -> Dict[str, int]:
        return dict(Counter(t.feature.id for t in self.iter_tiles() if t.feature))

    def resource_counts(self) -> Dict[str, int]:
        return dict(
            Counter(
                t.content.type
                for t in self.iter_tiles()
                if isinstance(t.content, Resource)
            )
        )


@dataclass
class MapFields:
    """Transient per-tile fields for one generation run, shape (height, width).

    Values are in [0, 1]. They are never stored on tiles and are discarded when
    generation returns.
    """

    elevation: np.ndarray
    temperature: Optional[np.ndarray] = None
    moisture: Optional[np.ndarray] = None

    @classmethod
    def empty(cls, width: int, height: int) -> "MapFields":
        return cls(elevation=np.zeros((height, width), dtype=np.float64))
