"""End-to-end tests for the map generation pipeline."""

import pytest
from pydantic import ValidationError

from py_hexgen import generate
from py_hexgen.config.definitions import (
    DEFAULT_LIBRARY,
    DESERT,
    ICE,
    LAKE,
    MOUNTAIN,
    OCEAN,
    PLAINS,
    RESOURCES,
    TUNDRA,
    DefinitionLibrary,
)
from py_hexgen.config.generator_settings import (
    GenerationOptions,
    GeneratorSettings,
    IntRange,
    RiverSettings,
    TemperatureLevel,
)
from py_hexgen.core.grid import HexGrid, Resource
from py_hexgen.core.hex_grid import get_edge_tiles
from py_hexgen.core.map_generator import MapGenerator
from py_hexgen.core.post_processing import PostProcessor


def snapshot(grid):
    tiles = [
        (
            t.biome.id,
            t.feature.id if t.feature else None,
            t.content.type if t.content else None,
        )
        for t in grid.iter_tiles()
    ]
    return tiles, sorted(grid.rivers)


def run(options, width=20, height=20):
    grid = HexGrid(width, height)
    log = generate(grid, options)
    return grid, log


class TestMapGenerator:
    """Test the complete pipeline."""

    @pytest.fixture(scope="class")
    def generated(self):
        return run({"seed": "pipeline", "waterLevel": 40, "temperature": "temperate"})

    def test_every_tile_has_a_biome(self, generated):
        grid, _ = generated
        assert len(grid.tiles) == 20
        assert all(len(row) == 20 for row in grid.tiles)
        assert all(t.biome is not None for t in grid.iter_tiles())

    def test_seed_is_logged(self, generated):
        _, log = generated
        assert log[0] == "Seed: pipeline"
        assert log[-1].startswith("Map complete: 20x20")

    def test_log_reports_phases(self, generated):
        _, log = generated
        assert any(line.startswith("Lowered edges: ") for line in log)
        assert any(line.startswith("Wind blows from the ") for line in log)
        assert any(line.startswith("Biomes: ") for line in log)
        assert any(line.startswith("Resources placed: ") for line in log)

    def test_water_level_conformance(self, generated):
        _, log = generated
        assert any("160/400 tiles ocean" in line for line in log)

    def test_river_edges_are_on_the_map(self, generated):
        grid, _ = generated
        for edge in grid.rivers:
            tiles = get_edge_tiles(edge)
            assert len(tiles) == 2
            for x, y in tiles:
                assert grid.in_bounds(x, y)

    def test_no_river_borders_a_lake(self, generated):
        grid, _ = generated
        for edge in grid.rivers:
            for x, y in get_edge_tiles(edge):
                assert grid.tiles[y][x].biome is not LAKE

    def test_no_adjacent_resources(self, generated):
        grid, _ = generated
        for tile in grid.iter_tiles():
            if isinstance(tile.content, Resource):
                assert not any(isinstance(n.content, Resource) for n in grid.neighbors(tile))

    def test_features_only_where_supported(self, generated):
        grid, _ = generated
        for tile in grid.iter_tiles():
            if tile.feature is not None:
                assert tile.biome.can_support_features

    def test_no_small_landlocked_seas(self, generated):
        grid, _ = generated
        for body in PostProcessor(grid, DEFAULT_LIBRARY).find_water_bodies():
            assert body.border or body.size > 2

    def test_deterministic(self):
        options = {"seed": "repeat", "waterLevel": 45, "temperature": "hot"}
        first, _ = run(options)
        second, _ = run(options)
        assert snapshot(first) == snapshot(second)

    def test_different_seeds_differ(self):
        first, _ = run({"seed": "one"})
        second, _ = run({"seed": "two"})
        assert snapshot(first) != snapshot(second)

    def test_regeneration_replaces_previous_map(self):
        grid = HexGrid(12, 12)
        generate(grid, {"seed": "first"})
        generate(grid, {"seed": "second"})
        fresh = HexGrid(12, 12)
        generate(fresh, {"seed": "second"})
        assert snapshot(grid) == snapshot(fresh)


class TestScenarios:
    """Concrete scenarios."""

    def test_small_seeded_map_repeats(self):
        options = {"seed": "test-1", "waterLevel": 40, "temperature": "temperate"}
        results = []
        for _ in range(2):
            grid, _ = run(options, 10, 10)
            ocean = sum(1 for t in grid.iter_tiles() if t.biome is OCEAN)
            results.append((ocean, set(grid.rivers), grid.resource_counts()))
        assert results[0] == results[1]

    def test_tiny_map_skips_mountains(self):
        grid, log = run({"seed": "tiny"}, 3, 3)
        assert any("Skipping mountains" in line for line in log)
        assert all(t.biome is not None for t in grid.iter_tiles())
        assert not any(t.biome is MOUNTAIN for t in grid.iter_tiles())

    def test_all_water(self):
        grid, log = run({"seed": "flood", "waterLevel": 100})
        assert all(t.biome in (OCEAN, ICE) for t in grid.iter_tiles())
        assert grid.rivers == set()
        assert grid.feature_counts() == {}
        assert grid.resource_counts() == {}
        assert any("Skipping mountains" in line for line in log)
        assert "No river sources; skipping rivers" in log
        assert "Resources placed: none" in log

    def test_no_water(self):
        grid, _ = run({"seed": "dry", "waterLevel": 0}, 12, 12)
        assert grid.biome_counts().get("ocean", 0) == 0

    def test_cold_preset_has_more_cold_biomes(self):
        cold, _ = run({"seed": "preset", "temperature": "cold"})
        hot, _ = run({"seed": "preset", "temperature": "hot"})
        assert cold.biome_counts().get("tundra", 0) >= hot.biome_counts().get("tundra", 0)


class TestOptions:
    """Test option handling."""

    def test_random_seed_is_reported(self):
        _, log = run({"seed": "  "}, 6, 6)
        assert log[0].startswith("No seed given, using random seed: ")
        assert len(log[0].rsplit(" ", 1)[1]) == 11

    def test_missing_seed_is_random(self):
        _, log = run(None, 6, 6)
        assert log[0].startswith("No seed given")

    def test_map_size(self):
        grid, _ = run({"seed": "size", "mapSize": 12}, 8, 6)
        assert (grid.width, grid.height) == (12, 12)

    def test_width_and_height_override_map_size(self):
        grid, _ = run({"seed": "size", "map_size": 12, "width": 15}, 8, 6)
        assert (grid.width, grid.height) == (15, 12)

    def test_grid_dimensions_are_default(self):
        grid, _ = run({"seed": "size"}, 8, 6)
        assert (grid.width, grid.height) == (8, 6)
        assert len(grid.tiles) == 6 and len(grid.tiles[0]) == 8

    def test_options_model(self):
        options = GenerationOptions(waterLevel=55, temperature="cold", seed="x")
        assert options.water_level == 55
        assert options.temperature is TemperatureLevel.COLD
        grid = HexGrid(6, 6)
        log = MapGenerator().generate(grid, options)
        assert log[0] == "Seed: x"

    def test_invalid_water_level_rejected(self):
        with pytest.raises(ValidationError):
            GenerationOptions(water_level=150)
        with pytest.raises(ValidationError):
            generate(HexGrid(6, 6), {"waterLevel": -1})

    def test_invalid_temperature_rejected(self):
        with pytest.raises(ValidationError):
            GenerationOptions(temperature="scorching")


class TestConfiguration:
    """Test configuration errors and custom settings."""

    def test_missing_placeholder_is_fatal(self):
        library = DefinitionLibrary(
            biomes=[OCEAN, LAKE, ICE, MOUNTAIN, DESERT, PLAINS, TUNDRA],
            features=DEFAULT_LIBRARY.features.values(),
            resources=RESOURCES,
        )
        grid = HexGrid(10, 10)
        log = MapGenerator(library=library).generate(grid, {"seed": "broken"})
        assert len(log) == 1
        assert log[0].startswith("Error: ")
        assert "placeholder" in log[0]
        assert grid.tiles == []
        assert grid.rivers == set()

    def test_missing_feature_is_fatal(self):
        library = DefinitionLibrary(
            biomes=DEFAULT_LIBRARY.biomes.values(),
            features=[DEFAULT_LIBRARY.feature("hills"), DEFAULT_LIBRARY.feature("forest")],
            resources=RESOURCES,
        )
        log = MapGenerator(library=library).generate(HexGrid(6, 6), {"seed": "x"})
        assert log == ["Error: Unknown feature 'oasis'"]

    def test_custom_settings(self):
        settings = GeneratorSettings(rivers=RiverSettings(num_rivers=IntRange(min=0, max=0)))
        grid = HexGrid(16, 16)
        MapGenerator(settings=settings).generate(grid, {"seed": "no-rivers"})
        assert grid.rivers == set()


class TestRiverLakes:
    """Test that river-made lakes survive cleanup."""

    @pytest.mark.parametrize("seed", ["r4", "r5", "lakes-1", "lakes-2", "lakes-3", "lakes-4"])
    def test_river_lakes_survive_post_processing(self, seed):
        generator = MapGenerator()
        grid = HexGrid(20, 20)
        generator.generate(grid, {"seed": seed})
        for river in generator.rivers:
            for x, y in river.lakes:
                assert grid.tiles[y][x].biome is LAKE
                assert not grid.has_river_border(grid.tiles[y][x])

    def test_rivers_match_grid(self):
        generator = MapGenerator()
        grid = HexGrid(16, 16)
        generator.generate(grid, {"seed": "records"})
        edges = set()
        for river in generator.rivers:
            edges.update(river.edges)
        assert edges == grid.rivers
