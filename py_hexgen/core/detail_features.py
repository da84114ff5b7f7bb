"""
Detail features: hills, forests and oases.

Hills are placed before rivers, since rivers use them as sources. Forests
and oases are placed after post-processing because their rules look at rivers
and lakes.
"""

from collections import deque
from typing import Dict, List, Optional

import structlog

from ..config.definitions import DefinitionLibrary
from ..config.generator_settings import FeatureRule, ForestSettings, HillSettings
from .alea_prng import AleaPRNG
from .conditions import all_conditions_hold
from .grid import HexGrid, MapFields, Tile
from .hex_grid import Coord

logger = structlog.get_logger()


class DetailFeatures:
    """Places hills, forests and oases on feature-capable tiles."""

    def __init__(
        self,
        grid: HexGrid,
        fields: MapFields,
        prng: AleaPRNG,
        library: DefinitionLibrary,
        hill_settings: Optional[HillSettings] = None,
        forest_settings: Optional[ForestSettings] = None,
        log: Optional[List[str]] = None,
    ):
        self.grid = grid
        self.fields = fields
        self.prng = prng
        self.library = library
        self.hill_settings = hill_settings or HillSettings()
        self.forest_settings = forest_settings or ForestSettings()
        self.log = log if log is not None else []

    @staticmethod
    def _is_open(tile: Tile) -> bool:
        return tile.biome.can_support_features and tile.feature is None

    def place_hills(self) -> int:
        """
        Spread hills outward from mountains, then sprinkle isolated hills.

        The spread is a multi-source breadth-first search through non-ocean
        tiles. At distance d the chance is
        ``adjacent_to_mountain_chance - (d - 1) * distance_falloff`` and the
        search stops expanding where that reaches zero.

        Returns:
            Number of hills placed
        """
        settings = self.hill_settings
        hills = self.library.feature("hills")

        distance: Dict[Coord, int] = {}
        queue = deque()
        for tile in self.grid.iter_tiles():
            if tile.has_biome("mountain"):
                distance[tile.coord] = 0
                queue.append(tile)

        spread = 0
        while queue:
            tile = queue.popleft()
            d = distance[tile.coord] + 1
            chance = settings.adjacent_to_mountain_chance - (d - 1) * settings.distance_falloff
            if chance <= 0:
                continue
            for n in self.grid.neighbors(tile):
                if n.coord in distance or n.has_biome("ocean"):
                    continue
                distance[n.coord] = d
                queue.append(n)
                if self._is_open(n) and self.prng.chance(chance):
                    n.feature = hills
                    spread += 1

        isolated = 0
        for tile in self.grid.iter_tiles():
            if not self._is_open(tile):
                continue
            if self.fields.elevation[tile.y, tile.x] < settings.isolated_hill_elevation_threshold:
                continue
            if any(n.has_biome("mountain") for n in self.grid.neighbors(tile)):
                continue
            if self.prng.chance(settings.isolated_hill_chance):
                tile.feature = hills
                isolated += 1

        self.log.append(f"Hills: {spread + isolated} ({isolated} isolated)")
        logger.info("Hills placed", near_mountains=spread, isolated=isolated)
        return spread + isolated

    def matching_rule(self, tile: Tile) -> Optional[FeatureRule]:
        """First rule for the tile's biome whose conditions all hold."""
        elevation = self.fields.elevation[tile.y, tile.x]
        for rule in self.forest_settings.rules_for(tile.biome.id):
            if (
                rule.feature == "oasis"
                and elevation >= self.forest_settings.oasis_low_elevation_threshold
            ):
                continue
            conditions = [c.to_condition() for c in rule.conditions]
            if all_conditions_hold(self.grid, tile, conditions):
                return rule
        return None

    def feature_chance(self, tile: Tile, rule: FeatureRule) -> float:
        """Moisture scaled by the rule's multiplier, plus its boost."""
        moisture = float(self.fields.moisture[tile.y, tile.x])
        return moisture * rule.multiplier + rule.boost

    def place_forests(self) -> Dict[str, int]:
        """Apply per-biome forest/oasis rules to every open tile, row by row."""
        placed: Dict[str, int] = {}
        for tile in self.grid.iter_tiles():
            if not self._is_open(tile):
                continue
            rule = self.matching_rule(tile)
            if rule is None:
                continue
            if self.prng.chance(self.feature_chance(tile, rule)):
                tile.feature = self.library.feature(rule.feature)
                placed[rule.feature] = placed.get(rule.feature, 0) + 1

        forests = placed.get("forest", 0)
        oases = placed.get("oasis", 0)
        self.log.append(f"Forests: {forests}, oases: {oases}")
        logger.info("Forests placed", counts=placed)
        return placed
