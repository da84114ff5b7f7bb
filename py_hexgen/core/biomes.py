"""
Biome classification from temperature and moisture bands.

Placeholder land tiles are bucketed into a (temperature, moisture) band pair
using the cutoffs of the selected temperature preset. Every climate biome
accepting that pair is a candidate; a separate noise field picks one.
"""

from typing import Dict, List, Optional

import structlog

from ..config.definitions import BiomeDefinition, DefinitionLibrary
from ..config.generator_settings import ClimateSettings, TemperatureLevel, TemperaturePreset
from .alea_prng import AleaPRNG
from .grid import HexGrid, MapFields
from .noise import sample_noise_field

logger = structlog.get_logger()


def temperature_band(value: float, preset: TemperaturePreset) -> str:
    if value < preset.cold_below:
        return "cold"
    if value >= preset.hot_from:
        return "hot"
    return "temperate"


def moisture_band(value: float, preset: TemperaturePreset) -> str:
    if value < preset.dry_below:
        return "dry"
    if value >= preset.wet_from:
        return "wet"
    return "normal"


class BiomeClassifier:
    """Assigns climate biomes to placeholder land and freezes polar ocean."""

    def __init__(
        self,
        grid: HexGrid,
        fields: MapFields,
        prng: AleaPRNG,
        library: DefinitionLibrary,
        settings: Optional[ClimateSettings] = None,
        log: Optional[List[str]] = None,
    ):
        self.grid = grid
        self.fields = fields
        self.prng = prng
        self.library = library
        self.settings = settings or ClimateSettings()
        self.log = log if log is not None else []

    def candidates(
        self, temperature: float, moisture: float, preset: TemperaturePreset
    ) -> List[BiomeDefinition]:
        """Climate biomes accepting the tile's band pair, in library order."""
        t_band = temperature_band(temperature, preset)
        m_band = moisture_band(moisture, preset)
        return [
            biome
            for biome in self.library.climate_biomes()
            if biome.climate.accepts(t_band, m_band)
        ]

    def classify(self, level: TemperatureLevel) -> int:
        """
        Replace the placeholder biome on land tiles.

        Tiles with no candidate keep the placeholder, which is a valid biome.

        Returns:
            Number of reclassified tiles
        """
        preset = self.settings.presets[TemperatureLevel(level)]
        placeholder = self.library.placeholder_biome()
        selector = sample_noise_field(
            self.grid.width,
            self.grid.height,
            self.prng.noise_seed(),
            self.settings.biome_noise_scale,
        )

        changed = 0
        for tile in self.grid.iter_tiles():
            if tile.biome is not placeholder:
                continue
            options = self.candidates(
                self.fields.temperature[tile.y, tile.x],
                self.fields.moisture[tile.y, tile.x],
                preset,
            )
            if not options:
                continue
            index = min(int(selector[tile.y, tile.x] * len(options)), len(options) - 1)
            tile.biome = options[index]
            changed += 1
        return changed

    def place_ice(self) -> int:
        """Freeze cold ocean in the top rows."""
        ice = self.library.biome("ice")
        frozen = 0
        for y in range(min(self.settings.ice_max_row, self.grid.height)):
            for tile in self.grid.tiles[y]:
                if (
                    tile.has_biome("ocean")
                    and self.fields.temperature[tile.y, tile.x] < self.settings.ice_temp_threshold
                ):
                    tile.biome = ice
                    frozen += 1
        return frozen

    def generate(self, level: TemperatureLevel) -> Dict[str, int]:
        logger.info("Assigning biomes", temperature=TemperatureLevel(level).value)

        classified = self.classify(level)
        frozen = self.place_ice()

        counts = self.grid.biome_counts()
        summary = ", ".join(f"{k}={v}" for k, v in sorted(counts.items()))
        self.log.append(f"Biomes: {summary}")
        logger.info("Biomes assigned", classified=classified, ice=frozen, counts=counts)
        return counts
