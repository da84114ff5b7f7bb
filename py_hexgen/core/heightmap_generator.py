"""
Elevation field and continent shaping.

Elevation is fractal noise pulled down towards one or two randomly chosen
"low" map edges, then cut at a sea level chosen so that the requested share
of tiles becomes ocean.
"""

from typing import List, Optional

import numpy as np
import structlog

from ..config.definitions import BiomeDefinition
from ..config.generator_settings import ElevationSettings
from .alea_prng import AleaPRNG
from .grid import HexGrid, MapFields
from .noise import sample_noise_field

logger = structlog.get_logger()

EDGE_NAMES = ("north", "south", "east", "west")


def smoothstep(t: np.ndarray) -> np.ndarray:
    return t * t * (3 - 2 * t)


class HeightmapGenerator:
    """Builds the elevation field and splits the map into ocean and land."""

    def __init__(
        self,
        grid: HexGrid,
        fields: MapFields,
        prng: AleaPRNG,
        settings: Optional[ElevationSettings] = None,
        log: Optional[List[str]] = None,
    ):
        """
        Initialize the heightmap generator.

        Args:
            grid: Grid already reset to the target dimensions
            fields: Transient fields for this run; ``elevation`` is written
            prng: Generation number stream
            settings: Elevation settings
            log: Generation log to append to
        """
        self.grid = grid
        self.fields = fields
        self.prng = prng
        self.settings = settings or ElevationSettings()
        self.log = log if log is not None else []

    def generate_noise(self) -> np.ndarray:
        """Fill the elevation field with normalised fractal noise."""
        self.fields.elevation = sample_noise_field(
            self.grid.width,
            self.grid.height,
            self.prng.noise_seed(),
            self.settings.noise_scale,
            self.settings.octaves,
            self.settings.persistence,
        )
        return self.fields.elevation

    def choose_low_edges(self) -> List[str]:
        """Shuffle the four edges and keep one or two of them."""
        edges = self.prng.shuffle(list(EDGE_NAMES))
        count = 1 if self.prng.random() < 0.5 else 2
        return edges[:count]

    def edge_falloff(self, low_edges: List[str]) -> np.ndarray:
        """
        Per-tile multiplier in [0, 1] that is 0 on low edges.

        Each low edge ramps up with a smoothstep over ``edge_falloff`` of the
        map extent on its axis. The horizontal and vertical factors are the
        minimum over their low edges, and the tile factor is the minimum of
        the two.
        """
        width, height = self.grid.width, self.grid.height
        ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
        horizontal = np.ones((height, width), dtype=np.float64)
        vertical = np.ones((height, width), dtype=np.float64)

        for edge in low_edges:
            if edge == "north":
                distance, extent = ys, height
            elif edge == "south":
                distance, extent = (height - 1) - ys, height
            elif edge == "west":
                distance, extent = xs, width
            else:
                distance, extent = (width - 1) - xs, width

            ramp = max(self.settings.edge_falloff * extent, 1e-9)
            factor = smoothstep(np.minimum(1.0, distance / ramp))
            if edge in ("north", "south"):
                vertical = np.minimum(vertical, factor)
            else:
                horizontal = np.minimum(horizontal, factor)

        return np.minimum(horizontal, vertical)

    def apply_sea_level(
        self,
        water_level: int,
        ocean: BiomeDefinition,
        land: BiomeDefinition,
    ) -> float:
        """
        Turn the lowest ``water_level`` percent of tiles into ocean.

        Ties in elevation are broken by row-major tile order, so the ocean
        count is exact.

        Returns:
            Sea level threshold (elevation of the lowest land tile, or 1.0)
        """
        flat = self.fields.elevation.ravel()
        n_tiles = flat.size
        n_ocean = n_tiles * water_level // 100
        order = np.argsort(flat, kind="stable")

        for rank, index in enumerate(order):
            y, x = divmod(int(index), self.grid.width)
            self.grid.tiles[y][x].biome = ocean if rank < n_ocean else land

        if n_ocean < n_tiles:
            return float(flat[order[n_ocean]])
        return 1.0

    def generate(
        self, water_level: int, ocean: BiomeDefinition, land: BiomeDefinition
    ) -> float:
        """Run noise, edge shaping and the sea level cut."""
        logger.info("Generating elevation", width=self.grid.width, height=self.grid.height)

        self.generate_noise()
        low_edges = self.choose_low_edges()
        self.fields.elevation = self.fields.elevation * self.edge_falloff(low_edges)
        self.log.append(f"Lowered edges: {', '.join(low_edges)}")

        sea_level = self.apply_sea_level(water_level, ocean, land)
        n_ocean = sum(1 for t in self.grid.iter_tiles() if t.biome is ocean)
        n_tiles = self.grid.width * self.grid.height
        self.log.append(
            f"Sea level {sea_level:.3f}: {n_ocean}/{n_tiles} tiles ocean ({water_level}% water)"
        )
        logger.info(
            "Sea level applied",
            sea_level=round(sea_level, 4),
            ocean_tiles=n_ocean,
            land_tiles=n_tiles - n_ocean,
            low_edges=low_edges,
        )
        return sea_level
