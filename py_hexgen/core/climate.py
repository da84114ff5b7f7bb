"""
Climate calculation for temperature and moisture.

This module implements:
- Latitude temperature gradient (cold at the top row, hot at the bottom)
- Coastal moderation diffused inland by neighbour blurring
- Moisture noise
- Prevailing wind and rain shadows behind mountains
"""

from typing import List, Optional, Tuple

import numpy as np
import structlog

from ..config.generator_settings import ClimateSettings
from .alea_prng import AleaPRNG
from .grid import HexGrid, MapFields
from .hex_grid import offset_to_pixel, pixel_to_offset
from .noise import sample_noise_field

logger = structlog.get_logger()

# Edge the wind comes from -> downwind unit vector in pixel space
WIND_DIRECTIONS = {
    "north": (0.0, 1.0),
    "south": (0.0, -1.0),
    "east": (-1.0, 0.0),
    "west": (1.0, 0.0),
}


class Climate:
    """Handles temperature and moisture calculations."""

    def __init__(
        self,
        grid: HexGrid,
        fields: MapFields,
        prng: AleaPRNG,
        settings: Optional[ClimateSettings] = None,
        log: Optional[List[str]] = None,
    ):
        """
        Initialize climate calculator.

        Args:
            grid: Grid with ocean, land and mountains in place
            fields: Transient fields; ``temperature`` and ``moisture`` are written
            prng: Generation number stream
            settings: Climate settings
            log: Generation log to append to
        """
        self.grid = grid
        self.fields = fields
        self.prng = prng
        self.settings = settings or ClimateSettings()
        self.log = log if log is not None else []

        self.wind_from: Optional[str] = None

    def calculate_temperatures(self) -> np.ndarray:
        """Linear gradient from 0 on the top row to 1 on the bottom row."""
        height, width = self.grid.height, self.grid.width
        if height > 1:
            rows = np.arange(height, dtype=np.float64) / (height - 1)
        else:
            rows = np.full(height, 0.5)
        self.fields.temperature = np.repeat(rows[:, None], width, axis=1)
        return self.fields.temperature

    def coast_mask(self) -> np.ndarray:
        """1.0 for tiles where land meets ocean, on both sides of the shore."""
        mask = np.zeros((self.grid.height, self.grid.width), dtype=np.float64)
        for tile in self.grid.iter_tiles():
            is_ocean = tile.has_biome("ocean")
            for n in self.grid.neighbors(tile):
                if n.has_biome("ocean") != is_ocean:
                    mask[tile.y, tile.x] = 1.0
                    break
        return mask

    def blur(self, values: np.ndarray, passes: int) -> np.ndarray:
        """Average each tile with its in-bounds neighbours, ``passes`` times."""
        result = values.copy()
        for _ in range(passes):
            blurred = np.empty_like(result)
            for tile in self.grid.iter_tiles():
                neighbors = self.grid.neighbors(tile)
                total = result[tile.y, tile.x] + sum(result[n.y, n.x] for n in neighbors)
                blurred[tile.y, tile.x] = total / (len(neighbors) + 1)
            result = blurred
        return result

    def apply_coastal_moderation(self) -> None:
        """Pull temperatures near the coast towards 0.5."""
        mask = self.blur(self.coast_mask(), self.settings.moderation_blur_passes)
        temperature = self.fields.temperature
        temperature += (0.5 - temperature) * self.settings.coastal_moderation * mask
        self.fields.temperature = np.clip(temperature, 0.0, 1.0)

    def generate_moisture(self) -> np.ndarray:
        self.fields.moisture = sample_noise_field(
            self.grid.width,
            self.grid.height,
            self.prng.noise_seed(),
            self.settings.moisture_noise_scale,
        )
        return self.fields.moisture

    def determine_wind(self) -> Tuple[str, int]:
        """
        The wind blows away from the edge with the most ocean tiles.

        Ties go to north, then south, east, west.

        Returns:
            Tuple of (edge name, ocean tiles on that edge)
        """
        width, height = self.grid.width, self.grid.height

        def ocean_count(coords) -> int:
            return sum(1 for x, y in coords if self.grid.tiles[y][x].has_biome("ocean"))

        counts = {
            "north": ocean_count((x, 0) for x in range(width)),
            "south": ocean_count((x, height - 1) for x in range(width)),
            "east": ocean_count((width - 1, y) for y in range(height)),
            "west": ocean_count((0, y) for y in range(height)),
        }
        best = "north"
        for edge in ("south", "east", "west"):
            if counts[edge] > counts[best]:
                best = edge
        self.wind_from = best
        return best, counts[best]

    def apply_rain_shadow(self, wind_from: str) -> int:
        """
        Dry out land downwind of mountains.

        From every non-mountain land tile a ray is traced upwind. At the first
        mountain hit on step k, moisture is scaled by
        ``1 - strength * (1 - (k - 1) / distance)``.

        Returns:
            Number of shadowed tiles
        """
        down_x, down_y = WIND_DIRECTIONS[wind_from]
        up_x, up_y = -down_x, -down_y
        distance = self.settings.rain_shadow_distance
        strength = self.settings.rain_shadow_strength
        shadowed = 0

        for tile in self.grid.iter_tiles():
            if tile.has_biome("ocean") or tile.has_biome("mountain"):
                continue
            px, py = offset_to_pixel(tile.x, tile.y)
            for k in range(1, distance + 1):
                sx, sy = pixel_to_offset(px + up_x * k, py + up_y * k)
                if not self.grid.in_bounds(sx, sy):
                    break
                if self.grid.tiles[sy][sx].has_biome("mountain"):
                    reduction = strength * (1 - (k - 1) / distance)
                    self.fields.moisture[tile.y, tile.x] *= 1 - reduction
                    shadowed += 1
                    break

        return shadowed

    def generate(self) -> None:
        logger.info("Calculating climate")

        self.calculate_temperatures()
        self.apply_coastal_moderation()
        self.generate_moisture()

        wind_from, ocean_tiles = self.determine_wind()
        self.log.append(f"Wind blows from the {wind_from} ({ocean_tiles} ocean edge tiles)")
        shadowed = self.apply_rain_shadow(wind_from)

        logger.info("Climate calculated", wind_from=wind_from, rain_shadow_tiles=shadowed)
