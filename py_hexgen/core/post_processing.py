"""
Cleanup passes run after biomes and rivers settle.

Order matters:
1. Single-tile biome islands take the majority biome around them
2. Tiny landlocked seas become lakes
3. Features are removed from tiles that can no longer hold them
4. Lakes with a river on their border are turned back into land
"""

from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional

import structlog

from ..config.definitions import BiomeDefinition, DefinitionLibrary
from .grid import HexGrid
from .hex_grid import Coord

logger = structlog.get_logger()

# Largest landlocked sea converted into a lake
MAX_LANDLOCKED_SEA = 2


@dataclass
class WaterBody:
    """A connected group of ocean tiles."""

    id: int
    tiles: List[Coord]
    border: bool

    @property
    def size(self) -> int:
        return len(self.tiles)


class PostProcessor:
    """Repairs biome, lake and feature inconsistencies left by earlier phases."""

    def __init__(
        self,
        grid: HexGrid,
        library: DefinitionLibrary,
        log: Optional[List[str]] = None,
    ):
        self.grid = grid
        self.library = library
        self.log = log if log is not None else []

    def smooth_biome_islands(self) -> int:
        """
        Convert buildable tiles with no same-biome neighbour to the strict
        majority biome among their buildable neighbours.

        Decisions are made against a snapshot so the order of conversion does
        not matter.
        """
        snapshot: Dict[Coord, BiomeDefinition] = {
            t.coord: t.biome for t in self.grid.iter_tiles()
        }
        changed = 0
        for tile in self.grid.iter_tiles():
            biome = snapshot[tile.coord]
            if not biome.is_buildable:
                continue
            neighbors = [snapshot[n.coord] for n in self.grid.neighbors(tile)]
            if any(n.id == biome.id for n in neighbors):
                continue
            buildable = [n for n in neighbors if n.is_buildable]
            if not buildable:
                continue
            counts = Counter(n.id for n in buildable)
            majority_id, count = counts.most_common(1)[0]
            if count * 2 > len(buildable):
                tile.biome = self.library.biome(majority_id)
                changed += 1
        return changed

    def find_water_bodies(self) -> List[WaterBody]:
        """Flood-fill ocean tiles into connected bodies."""
        body_of: Dict[Coord, int] = {}
        bodies: List[WaterBody] = []

        for first in self.grid.iter_tiles():
            if not first.has_biome("ocean") or first.coord in body_of:
                continue

            body = WaterBody(id=len(bodies), tiles=[], border=False)
            body_of[first.coord] = body.id
            queue = [first]
            while queue:
                tile = queue.pop()
                body.tiles.append(tile.coord)
                if not body.border and self.grid.is_edge_tile(tile):
                    body.border = True
                for n in self.grid.neighbors(tile):
                    if n.has_biome("ocean") and n.coord not in body_of:
                        body_of[n.coord] = body.id
                        queue.append(n)
            bodies.append(body)

        return bodies

    def convert_landlocked_seas(self) -> int:
        lake = self.library.biome("lake")
        converted = 0
        for body in self.find_water_bodies():
            if body.border or body.size > MAX_LANDLOCKED_SEA:
                continue
            for x, y in body.tiles:
                self.grid.tiles[y][x].biome = lake
                converted += 1
        return converted

    def strip_unsupported_features(self) -> int:
        stripped = 0
        for tile in self.grid.iter_tiles():
            if tile.feature is not None and not tile.biome.can_support_features:
                tile.feature = None
                stripped += 1
        return stripped

    def repair_river_lakes(self) -> int:
        """
        Lakes with a river on any border become the most common buildable
        neighbour biome (first seen wins ties), or the placeholder.
        """
        placeholder = self.library.placeholder_biome()
        repaired = 0
        for tile in self.grid.iter_tiles():
            if not tile.has_biome("lake") or not self.grid.has_river_border(tile):
                continue
            counts = Counter(
                n.biome.id for n in self.grid.neighbors(tile) if n.biome.is_buildable
            )
            if counts:
                tile.biome = self.library.biome(counts.most_common(1)[0][0])
            else:
                tile.biome = placeholder
            tile.feature = None
            repaired += 1
        return repaired

    def run(self) -> Dict[str, int]:
        logger.info("Post-processing map")

        results = {
            "islands_smoothed": self.smooth_biome_islands(),
            "seas_to_lakes": self.convert_landlocked_seas(),
            "features_stripped": self.strip_unsupported_features(),
            "lakes_repaired": self.repair_river_lakes(),
        }
        self.log.append(
            "Post-processing: {islands_smoothed} biome islands smoothed, "
            "{seas_to_lakes} sea tiles turned to lake, "
            "{features_stripped} features stripped, "
            "{lakes_repaired} river lakes repaired".format(**results)
        )
        logger.info("Post-processing complete", **results)
        return results
