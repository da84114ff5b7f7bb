"""
Resource placement.

Every tile gets a score per resource type from the best matching spawn rule.
Scores are bucketed into three tiers and a shuffled list of resource
instances is placed with a tiered lottery. No two resources may touch.
"""

from typing import Dict, List, Optional

import structlog

from ..config.definitions import DefinitionLibrary
from ..config.generator_settings import ResourceSettings
from .alea_prng import AleaPRNG
from .conditions import all_conditions_hold
from .grid import HexGrid, Resource, Tile
from .hex_grid import Coord

logger = structlog.get_logger()


class ResourcePlacer:
    """Scores tiles per resource type and places resource deposits."""

    def __init__(
        self,
        grid: HexGrid,
        prng: AleaPRNG,
        library: DefinitionLibrary,
        settings: Optional[ResourceSettings] = None,
        log: Optional[List[str]] = None,
    ):
        self.grid = grid
        self.prng = prng
        self.library = library
        self.settings = settings or ResourceSettings()
        self.log = log if log is not None else []

    def score(self, tile: Tile, resource_id: str) -> float:
        """
        Chance of the most specific rule spawning ``resource_id`` on ``tile``.

        Feature rules win over biome rules. Biome rules only count when the
        feature does not block that resource.
        """
        feature = tile.feature
        if feature is not None:
            feature_chances = [
                spawn.chance
                for spawn in feature.resources_for_biome(tile.biome.id)
                if spawn.resource_id == resource_id
                and all_conditions_hold(self.grid, tile, spawn.conditions)
            ]
            if feature_chances:
                return max(feature_chances)
            interaction = feature.biome_resource_interaction
            if interaction is not None and interaction.blocks(resource_id):
                return 0.0

        biome_chances = [
            spawn.chance
            for spawn in tile.biome.possible_resources
            if spawn.resource_id == resource_id
            and all_conditions_hold(self.grid, tile, spawn.conditions)
        ]
        return max(biome_chances, default=0.0)

    def tier_of(self, score: float) -> Optional[int]:
        high, medium = self.settings.tier_thresholds
        if score >= high:
            return 0
        if score >= medium:
            return 1
        if score > 0:
            return 2
        return None

    def build_tiers(self) -> Dict[str, List[List[Coord]]]:
        """Candidate tiles per resource type, split into three tiers."""
        tiers: Dict[str, List[List[Coord]]] = {}
        for resource_id in self.library.resources:
            buckets: List[List[Coord]] = [[], [], []]
            for tile in self.grid.iter_tiles():
                tier = self.tier_of(self.score(tile, resource_id))
                if tier is not None:
                    buckets[tier].append(tile.coord)
            tiers[resource_id] = buckets
        return tiers

    def roll_tier(self) -> int:
        roll = self.prng.random()
        cumulative = 0.0
        for index, probability in enumerate(self.settings.tier_probabilities):
            cumulative += probability
            if roll < cumulative:
                return index
        return len(self.settings.tier_probabilities) - 1

    def _is_free(self, tile: Tile) -> bool:
        if tile.content is not None:
            return False
        return not any(isinstance(n.content, Resource) for n in self.grid.neighbors(tile))

    def place_instance(self, resource_id: str, buckets: List[List[Coord]]) -> Optional[Coord]:
        """
        Place one instance using the tiered lottery.

        The rolled tier is tried first, then the other non-empty tiers in
        priority order.
        """
        rolled = self.roll_tier()
        order = [rolled] + [i for i in range(len(buckets)) if i != rolled]
        for index in order:
            if not buckets[index]:
                continue
            candidates = self.prng.shuffle(list(buckets[index]))
            for x, y in candidates:
                tile = self.grid.tiles[y][x]
                if self._is_free(tile):
                    tile.content = Resource(type=resource_id)
                    return tile.coord
        return None

    def place(self) -> Dict[str, int]:
        logger.info("Placing resources")

        tiers = self.build_tiers()
        to_place: List[str] = []
        for resource_id in self.library.resources:
            count = self.prng.randint(
                self.settings.count_per_type.min, self.settings.count_per_type.max
            )
            to_place.extend([resource_id] * count)
        self.prng.shuffle(to_place)

        unplaced: Dict[str, int] = {}
        for resource_id in to_place:
            if self.place_instance(resource_id, tiers[resource_id]) is None:
                unplaced[resource_id] = unplaced.get(resource_id, 0) + 1

        for resource_id, count in unplaced.items():
            self.log.append(f"Could not place {count} x {resource_id}: no free candidate tile")
            logger.warning("Resource not placed", resource=resource_id, count=count)

        counts = self.grid.resource_counts()
        if counts:
            summary = ", ".join(f"{k}={v}" for k, v in sorted(counts.items()))
        else:
            summary = "none"
        self.log.append(f"Resources placed: {summary}")
        logger.info("Resources placed", counts=counts, requested=len(to_place))
        return counts
