"""
Mountain ranges and lone peaks.

Each range is a weighted random walk over land tiles. The walker prefers to
keep its heading, avoids the coast and the map edge, and stops when it runs
into another range.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import structlog

from ..config.definitions import BiomeDefinition
from ..config.generator_settings import MountainSettings
from .alea_prng import AleaPRNG
from .grid import HexGrid, MapFields, Tile
from .hex_grid import Coord, offset_to_pixel

logger = structlog.get_logger()


@dataclass
class MountainRange:
    """Outcome of one range walk."""

    index: int
    target_length: int
    tiles: List[Coord] = field(default_factory=list)
    bulges: List[Coord] = field(default_factory=list)
    stop_reason: str = "complete"

    @property
    def length(self) -> int:
        return len(self.tiles)


class Tectonics:
    """Carves mountain ranges and lone peaks into placeholder land."""

    def __init__(
        self,
        grid: HexGrid,
        fields: MapFields,
        prng: AleaPRNG,
        mountain: BiomeDefinition,
        land: BiomeDefinition,
        settings: Optional[MountainSettings] = None,
        log: Optional[List[str]] = None,
    ):
        self.grid = grid
        self.fields = fields
        self.prng = prng
        self.mountain = mountain
        self.land = land
        self.settings = settings or MountainSettings()
        self.log = log if log is not None else []

        # Tile -> index of the range that owns it
        self.range_of: Dict[Coord, int] = {}
        self.ranges: List[MountainRange] = []
        self.lone_peaks: List[Coord] = []

    def _is_land(self, tile: Tile) -> bool:
        return tile.biome is self.land

    def _is_coastal(self, tile: Tile) -> bool:
        return any(n.has_biome("ocean") for n in self.grid.neighbors(tile))

    def _touches_other_range(self, tile: Tile, index: int) -> bool:
        for n in self.grid.neighbors(tile):
            owner = self.range_of.get(n.coord)
            if owner is not None and owner != index:
                return True
        return False

    def _raise(self, tile: Tile, index: int) -> None:
        tile.biome = self.mountain
        self.range_of[tile.coord] = index

    def generate(self) -> List[MountainRange]:
        land_tiles = [t for t in self.grid.iter_tiles() if self._is_land(t)]
        n_land = len(land_tiles)
        if n_land < self.settings.min_land_tiles:
            message = (
                f"Skipping mountains: {n_land} land tiles "
                f"(need {self.settings.min_land_tiles})"
            )
            self.log.append(message)
            logger.info("Skipping mountains", land_tiles=n_land)
            return []

        n_ranges = self.prng.randint(
            self.settings.num_ranges.min, self.settings.num_ranges.max
        )
        logger.info("Generating mountain ranges", ranges=n_ranges, land_tiles=n_land)

        for index in range(n_ranges):
            target = self.prng.choice(self.settings.range_lengths)
            mountain_range = self.walk_range(index, target)
            self.ranges.append(mountain_range)
            self.log.append(
                f"Mountain range {index + 1}: {mountain_range.length}/{target} tiles, "
                f"{len(mountain_range.bulges)} bulges ({mountain_range.stop_reason})"
            )
            logger.debug(
                "Mountain range placed",
                index=index,
                length=mountain_range.length,
                target=target,
                stop_reason=mountain_range.stop_reason,
            )

        self.place_lone_peaks(n_land)
        return self.ranges

    def pick_start(self) -> Optional[Tile]:
        """Random non-edge land tile, inland with ``inland_start_chance``."""
        inland, coastal = [], []
        for tile in self.grid.iter_tiles():
            if not self._is_land(tile) or self.grid.is_edge_tile(tile):
                continue
            (coastal if self._is_coastal(tile) else inland).append(tile)

        want_inland = self.prng.chance(self.settings.inland_start_chance)
        pools = (inland, coastal) if want_inland else (coastal, inland)
        for pool in pools:
            if pool:
                return self.prng.choice(pool)
        return None

    def walk_range(self, index: int, target_length: int) -> MountainRange:
        """Walk one range of up to ``target_length`` spine tiles."""
        result = MountainRange(index=index, target_length=target_length)
        start = self.pick_start()
        if start is None:
            result.stop_reason = "no start tile"
            return result

        self._raise(start, index)
        result.tiles.append(start.coord)
        origin = offset_to_pixel(*start.coord)
        current = start

        while len(result.tiles) < target_length:
            cx, cy = offset_to_pixel(*current.coord)
            dx, dy = cx - origin[0], cy - origin[1]
            heading_norm = math.hypot(dx, dy)

            candidates: List[Tile] = []
            weights: List[float] = []
            for n in self.grid.neighbors(current):
                if n.has_biome("ocean") or self.range_of.get(n.coord) == index:
                    continue
                nx, ny = offset_to_pixel(*n.coord)
                sx, sy = nx - cx, ny - cy
                cos = 0.0
                if heading_norm > 0:
                    cos = (dx * sx + dy * sy) / (heading_norm * math.hypot(sx, sy))

                weight = max(0.05, 1 + self.settings.straightness * cos)
                if self.grid.is_edge_tile(n):
                    weight *= self.settings.edge_penalty
                if self._is_coastal(n):
                    weight *= self.settings.coast_penalty
                if len(result.tiles) > self.settings.reversal_after_steps and cos < -0.5:
                    weight *= self.settings.reversal_penalty
                candidates.append(n)
                weights.append(weight)

            chosen = self.prng.weighted_choice(candidates, weights)
            if chosen is None:
                result.stop_reason = "no direction left"
                break
            if chosen.coord in self.range_of:
                result.stop_reason = "met another range"
                break

            self._raise(chosen, index)
            result.tiles.append(chosen.coord)
            current = chosen

            if self.prng.chance(self.settings.bulge_chance):
                self._bulge(current, index, result)

        return result

    def _bulge(self, tile: Tile, index: int, result: MountainRange) -> None:
        options = [
            n
            for n in self.grid.neighbors(tile)
            if self._is_land(n) and not self._touches_other_range(n, index)
        ]
        if options:
            extra = self.prng.choice(options)
            self._raise(extra, index)
            result.bulges.append(extra.coord)

    def place_lone_peaks(self, n_land: int) -> List[Coord]:
        """Raise the highest remaining interior land tiles that touch no mountain."""
        target = int(round(n_land * self.settings.lone_peak_percentage))
        if target <= 0:
            return self.lone_peaks

        elevation = self.fields.elevation
        candidates = [
            t
            for t in self.grid.iter_tiles()
            if self._is_land(t) and not self.grid.is_edge_tile(t)
        ]
        candidates.sort(key=lambda t: -elevation[t.y, t.x])

        for tile in candidates:
            if len(self.lone_peaks) >= target:
                break
            if any(n.has_biome("mountain") for n in self.grid.neighbors(tile)):
                continue
            tile.biome = self.mountain
            self.lone_peaks.append(tile.coord)

        self.log.append(f"Lone peaks: {len(self.lone_peaks)}")
        logger.info("Lone peaks placed", count=len(self.lone_peaks), target=target)
        return self.lone_peaks
