"""
Map generation pipeline.

Runs every phase in order on a caller-owned grid and returns the
human-readable generation log.
"""

from typing import Any, List, Mapping, Optional, Tuple, Union

import structlog

from ..config.config import settings as app_settings
from ..config.definitions import DEFAULT_LIBRARY, DefinitionLibrary
from ..config.generator_settings import GenerationOptions, GeneratorSettings
from ..errors import ConfigurationError
from ..utils.random import create_prng, generate_random_seed, normalize_seed
from .biomes import BiomeClassifier
from .climate import Climate
from .detail_features import DetailFeatures
from .grid import HexGrid, MapFields
from .heightmap_generator import HeightmapGenerator
from .hydrology import Hydrology, River
from .post_processing import PostProcessor
from .resources import ResourcePlacer
from .tectonics import Tectonics

logger = structlog.get_logger()

OptionsLike = Union[GenerationOptions, Mapping[str, Any], None]

# Ids the pipeline refers to directly
REQUIRED_BIOMES = ("ocean", "lake", "ice", "mountain")
REQUIRED_FEATURES = ("hills",)


class MapGenerator:
    """Generates a complete hex world map from a seed and options."""

    def __init__(
        self,
        settings: Optional[GeneratorSettings] = None,
        library: Optional[DefinitionLibrary] = None,
    ):
        self.settings = settings or app_settings.generator
        self.library = library or DEFAULT_LIBRARY
        # Rivers accepted by the last run
        self.rivers: List[River] = []

    def validate_library(self) -> None:
        """Resolve every definition the pipeline needs; raises ConfigurationError."""
        self.library.placeholder_biome()
        for biome_id in REQUIRED_BIOMES:
            self.library.biome(biome_id)
        for feature_id in REQUIRED_FEATURES:
            self.library.feature(feature_id)
        for rules in self.settings.forests.biome_rules.values():
            for rule in rules:
                self.library.feature(rule.feature)

    @staticmethod
    def resolve_dimensions(grid: HexGrid, options: GenerationOptions) -> Tuple[int, int]:
        """Explicit width/height win over map size, which wins over the grid's size."""
        width = options.width or options.map_size or grid.width
        height = options.height or options.map_size or grid.height
        return width, height

    def generate(self, grid: HexGrid, options: OptionsLike = None) -> List[str]:
        """
        Fill ``grid`` with a new map.

        Args:
            grid: Grid to populate; its tiles and rivers are replaced
            options: GenerationOptions or a dict with snake_case or camelCase keys

        Returns:
            Generation log. On a configuration error the grid is untouched and
            the log holds a single "Error: ..." entry.
        """
        if not isinstance(options, GenerationOptions):
            options = GenerationOptions.model_validate(options or {})

        try:
            self.validate_library()
        except ConfigurationError as e:
            logger.error("Map generation aborted", error=str(e))
            return [f"Error: {e}"]

        log: List[str] = []
        self.rivers = []
        width, height = self.resolve_dimensions(grid, options)

        seed = normalize_seed(options.seed)
        if seed is None:
            seed = generate_random_seed()
            log.append(f"No seed given, using random seed: {seed}")
        else:
            log.append(f"Seed: {seed}")

        logger.info(
            "Generating map",
            seed=seed,
            width=width,
            height=height,
            water_level=options.water_level,
            temperature=options.temperature.value,
        )

        prng = create_prng(seed)
        placeholder = self.library.placeholder_biome()
        grid.reset(width, height, placeholder)
        fields = MapFields.empty(width, height)
        generator = self.settings

        HeightmapGenerator(grid, fields, prng, generator.elevation, log).generate(
            options.water_level, self.library.biome("ocean"), placeholder
        )
        Tectonics(
            grid,
            fields,
            prng,
            self.library.biome("mountain"),
            placeholder,
            generator.mountains,
            log,
        ).generate()
        Climate(grid, fields, prng, generator.climate, log).generate()
        BiomeClassifier(grid, fields, prng, self.library, generator.climate, log).generate(
            options.temperature
        )

        details = DetailFeatures(
            grid, fields, prng, self.library, generator.hills, generator.forests, log
        )
        details.place_hills()
        self.rivers = Hydrology(grid, prng, self.library, generator.rivers, log).generate()
        PostProcessor(grid, self.library, log).run()
        details.place_forests()
        ResourcePlacer(grid, prng, self.library, generator.resources, log).place()

        land = sum(1 for t in grid.iter_tiles() if t.biome.id not in ("ocean", "ice"))
        log.append(
            f"Map complete: {width}x{height}, {land} land tiles, "
            f"{len(grid.rivers)} river segments"
        )
        logger.info(
            "Map generated",
            seed=seed,
            land_tiles=land,
            river_edges=len(grid.rivers),
            biomes=grid.biome_counts(),
            features=grid.feature_counts(),
            resources=grid.resource_counts(),
        )
        return log


def generate(grid: HexGrid, options: OptionsLike = None) -> List[str]:
    """Generate a map with the default settings and definition library."""
    return MapGenerator().generate(grid, options)
