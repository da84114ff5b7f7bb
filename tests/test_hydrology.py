"""Tests for river generation."""

import pytest

from py_hexgen.config.definitions import (
    DEFAULT_LIBRARY,
    DESERT,
    HILLS,
    ICE,
    LAKE,
    MOUNTAIN,
    OCEAN,
    PLAINS,
)
from py_hexgen.config.generator_settings import IntRange, RiverSettings
from py_hexgen.core.alea_prng import AleaPRNG
from py_hexgen.core.grid import HexGrid
from py_hexgen.core.hex_grid import get_edge_id, get_edge_tiles, get_neighbors
from py_hexgen.core.hydrology import Hydrology, _SearchFrame


def make_hydrology(width, height, biome=PLAINS, seed="rivers", settings=None):
    grid = HexGrid(width, height)
    grid.reset(width, height, biome)
    return Hydrology(grid, AleaPRNG(seed), DEFAULT_LIBRARY, settings or RiverSettings(), [])


def check_river_shape(hydrology, river):
    grid = hydrology.grid
    assert river.length >= hydrology.settings.min_length
    assert set(river.edges) <= grid.rivers
    for edge in river.edges:
        a, b = edge
        assert b in grid.vertex_neighbors(a)
        for x, y in get_edge_tiles(edge):
            assert grid.in_bounds(x, y)


class TestSources:
    """Test source weighting."""

    def test_source_weights(self):
        hydrology = make_hydrology(4, 4)
        tile = hydrology.grid.tiles[1][1]
        assert hydrology.source_weight(tile) == 0
        tile.feature = HILLS
        assert hydrology.source_weight(tile) == 1
        tile.feature = None
        tile.biome = MOUNTAIN
        assert hydrology.source_weight(tile) == 2
        tile.biome = ICE
        assert hydrology.source_weight(tile) == 0

    def test_no_sources_skips_rivers(self):
        hydrology = make_hydrology(6, 6, biome=OCEAN)
        assert hydrology.generate() == []
        assert hydrology.log == ["No river sources; skipping rivers"]


class TestElevation:
    """Test corner elevation."""

    def test_vertex_elevation_uses_features(self):
        hydrology = make_hydrology(6, 6)
        grid = hydrology.grid
        vertex = grid.vertices_for_tile(grid.tiles[2][2])[0]
        assert hydrology.vertex_elevation(vertex) == pytest.approx(2.0)
        x, y = vertex[0]
        grid.tiles[y][x].feature = HILLS
        assert hydrology.vertex_elevation(vertex) == pytest.approx(8 / 3)

    def test_pending_lake_counts_as_lake(self):
        hydrology = make_hydrology(6, 6)
        grid = hydrology.grid
        vertex = grid.vertices_for_tile(grid.tiles[2][2])[0]
        hydrology._pending_lakes.add(vertex[0])
        assert hydrology.vertex_elevation(vertex) == pytest.approx(5 / 3)
        assert hydrology._lake_tiles(vertex) == [vertex[0]]


class TestSearchRules:
    """Test neighbour ranking and lake rules."""

    def test_uphill_neighbors_excluded(self):
        hydrology = make_hydrology(8, 8)
        grid = hydrology.grid
        grid.tiles[3][4].biome = MOUNTAIN
        # Corner shared by (3, 3), (4, 4) and (3, 4): all plains
        vertex = grid.vertices_for_tile(grid.tiles[3][3])[1]
        assert (4, 3) not in vertex
        ranked = hydrology._rank_neighbors(_SearchFrame(vertex))
        assert ranked
        for neighbor in ranked:
            assert (4, 3) not in neighbor

    def test_visited_and_used_corners_excluded(self):
        hydrology = make_hydrology(8, 8)
        grid = hydrology.grid
        vertex = grid.vertices_for_tile(grid.tiles[3][3])[0]
        first, second, third = grid.vertex_neighbors(vertex)
        hydrology._visited.add(first)
        hydrology.river_vertices.add(second)
        assert hydrology._rank_neighbors(_SearchFrame(vertex)) == [third]

    def test_shoreline_steps_forbidden(self):
        hydrology = make_hydrology(8, 8)
        grid = hydrology.grid
        grid.tiles[3][3].biome = LAKE
        vertex = grid.vertices_for_tile(grid.tiles[3][3])[0]
        for neighbor in hydrology._rank_neighbors(_SearchFrame(vertex)):
            assert (3, 3) not in neighbor

    def test_terminal_lake_needs_desert_shore(self):
        hydrology = make_hydrology(8, 8)
        grid = hydrology.grid
        grid.tiles[3][3].biome = LAKE
        neighbors = get_neighbors(3, 3)
        for x, y in neighbors[:3]:
            grid.tiles[y][x].biome = DESERT
        assert not hydrology._is_terminal_lake([(3, 3)])
        x, y = neighbors[3]
        grid.tiles[y][x].biome = DESERT
        assert hydrology._is_terminal_lake([(3, 3)])

    def test_lake_exit_is_far_shore(self):
        hydrology = make_hydrology(9, 9)
        grid = hydrology.grid
        grid.tiles[4][3].biome = LAKE
        grid.tiles[4][4].biome = LAKE
        entry = grid.vertices_for_tile(grid.tiles[4][3])[3]
        exit_corner = hydrology._lake_exit((3, 4), entry)
        assert exit_corner is not None
        assert exit_corner != entry
        assert any(c in exit_corner for c in ((3, 4), (4, 4)))
        assert not all(hydrology._is_lake(c) for c in exit_corner)


class TestRivers:
    """Test complete river searches."""

    @pytest.fixture
    def coast(self):
        """Plains with ocean on the eastern columns and a small ridge in the west."""
        hydrology = make_hydrology(12, 12, seed="coast")
        for tile in hydrology.grid.iter_tiles():
            if tile.x >= 10:
                tile.biome = OCEAN
        hydrology.grid.tiles[5][2].biome = MOUNTAIN
        hydrology.grid.tiles[6][2].biome = MOUNTAIN
        return hydrology

    def test_rivers_reach_the_ocean(self, coast):
        rivers = coast.generate()
        assert rivers
        for river in rivers:
            check_river_shape(coast, river)
            assert river.outcome == "the ocean"
            assert any(coast.grid.get_tile(x, y).biome is OCEAN for x, y in river.vertices[-1])
            assert river.source in ((2, 5), (2, 6))

    def test_rivers_do_not_share_corners(self, coast):
        rivers = coast.generate()
        seen = set()
        for river in rivers:
            assert not seen & set(river.vertices)
            seen |= set(river.vertices)

    def test_river_log(self, coast):
        rivers = coast.generate()
        river_lines = [line for line in coast.log if line.startswith("River ")]
        assert len(river_lines) >= len(rivers)
        assert any("into the ocean" in line for line in river_lines)

    def test_deterministic(self):
        results = []
        for _ in range(2):
            hydrology = make_hydrology(12, 12, seed="same")
            for tile in hydrology.grid.iter_tiles():
                if tile.x >= 10:
                    tile.biome = OCEAN
            hydrology.grid.tiles[5][2].biome = MOUNTAIN
            hydrology.generate()
            results.append(set(hydrology.grid.rivers))
        assert results[0] == results[1]

    def test_desert_lake_swallows_river(self):
        settings = RiverSettings(num_rivers=IntRange(min=1, max=1))
        hydrology = make_hydrology(12, 3, biome=DESERT, seed="basin", settings=settings)
        grid = hydrology.grid
        grid.tiles[1][1].biome = MOUNTAIN
        grid.tiles[1][9].biome = LAKE
        rivers = hydrology.generate()
        assert len(rivers) == 1
        assert rivers[0].outcome == "a lake"
        check_river_shape(hydrology, rivers[0])
        for x, y in rivers[0].lakes:
            assert grid.tiles[y][x].biome is LAKE

    def test_failed_search_leaves_grid_untouched(self):
        settings = RiverSettings(
            num_rivers=IntRange(min=1, max=1), max_attempts_per_river=2, max_search_steps=200
        )
        hydrology = make_hydrology(10, 10, seed="landlocked", settings=settings)
        grid = hydrology.grid
        grid.tiles[4][4].biome = MOUNTAIN
        grid.tiles[5][4].biome = MOUNTAIN
        assert hydrology.generate() == []
        assert grid.rivers == set()
        assert not any(t.biome is LAKE for t in grid.iter_tiles())
        assert any("abandoned" in line for line in hydrology.log)

    def test_edge_ids_are_canonical(self, coast):
        for river in coast.generate():
            for edge in river.edges:
                assert get_edge_id(edge[1], edge[0]) == edge


class TestSearchLimits:
    """Test flooding, wrap penalty, depth limit and acceptance."""

    def make_stuck_path(self):
        hydrology = make_hydrology(8, 8, seed="flood")
        grid = hydrology.grid
        hydrology._source = (7, 7)
        vertex = grid.vertices_for_tile(grid.tiles[3][3])[0]
        previous = grid.vertex_neighbors(vertex)[0]
        hydrology._push(previous)
        hydrology._push(vertex, edge=get_edge_id(previous, vertex))
        ahead = next(c for c in vertex if c not in previous)
        return hydrology, vertex, ahead

    def test_flood_ahead_jumps_across_new_lake(self):
        hydrology, vertex, ahead = self.make_stuck_path()
        assert hydrology._flood_ahead(hydrology._stack[-1])
        assert hydrology._pending_lakes == {ahead}
        top = hydrology._stack[-1]
        assert top.via_jump
        assert top.flooded == ahead
        assert top.edge is None
        assert ahead in top.vertex
        assert top.vertex != vertex
        assert hydrology._edge_count == 1

    def test_backtracking_undoes_flood(self):
        hydrology, vertex, _ = self.make_stuck_path()
        hydrology._flood_ahead(hydrology._stack[-1])
        hydrology._pop()
        assert hydrology._pending_lakes == set()
        assert hydrology._stack[-1].vertex == vertex
        assert not any(frame.via_jump for frame in hydrology._stack)

    def test_no_flood_beside_own_path(self):
        hydrology, _, ahead = self.make_stuck_path()
        hydrology._border_counts[ahead] = 1
        assert not hydrology._flood_ahead(hydrology._stack[-1])
        assert hydrology._pending_lakes == set()
        assert len(hydrology._stack) == 2

    def test_no_flood_beside_existing_river(self):
        hydrology, _, ahead = self.make_stuck_path()
        grid = hydrology.grid
        grid.rivers.add(grid.border_edges_for_tile(grid.get_tile(*ahead))[0])
        assert not hydrology._flood_ahead(hydrology._stack[-1])
        assert hydrology._pending_lakes == set()

    def test_no_flood_into_mountain(self):
        hydrology, _, ahead = self.make_stuck_path()
        hydrology.grid.get_tile(*ahead).biome = MOUNTAIN
        assert not hydrology._flood_ahead(hydrology._stack[-1])

    def test_wrap_penalty_on_fifth_border(self):
        settings = RiverSettings(jitter=0.0)
        hydrology = make_hydrology(8, 8, settings=settings)
        grid = hydrology.grid
        vertex = grid.vertices_for_tile(grid.tiles[3][3])[0]
        wrapped = vertex[0]

        hydrology._border_counts[wrapped] = 3
        ranked = hydrology._rank_neighbors(_SearchFrame(vertex))
        assert ranked == grid.vertex_neighbors(vertex)

        hydrology._border_counts[wrapped] = 4
        ranked = hydrology._rank_neighbors(_SearchFrame(vertex))
        assert len(ranked) == 3
        assert wrapped not in get_edge_tiles(get_edge_id(vertex, ranked[0]))
        for neighbor in ranked[1:]:
            assert wrapped in get_edge_tiles(get_edge_id(vertex, neighbor))

    def test_path_ending_near_source_rejected(self):
        hydrology = make_hydrology(10, 10)
        grid = hydrology.grid
        hydrology._source = (3, 3)
        hydrology._edge_count = 10
        assert not hydrology._is_acceptable(grid.vertices_for_tile(grid.tiles[3][3])[0])
        assert not hydrology._is_acceptable(grid.vertices_for_tile(grid.tiles[3][4])[0])
        far = grid.vertices_for_tile(grid.tiles[7][7])[0]
        assert hydrology._is_acceptable(far)
        hydrology._edge_count = hydrology.settings.min_length - 1
        assert not hydrology._is_acceptable(far)

    @staticmethod
    def make_flat_range(settings):
        """Flat mountains, which cannot flood, with ocean on the east."""
        hydrology = make_hydrology(8, 8, biome=MOUNTAIN, seed="depth", settings=settings)
        for tile in hydrology.grid.iter_tiles():
            if tile.x >= 3:
                tile.biome = OCEAN
        return hydrology

    def test_max_depth_is_a_dead_end(self):
        settings = RiverSettings(
            num_rivers=IntRange(min=1, max=1), min_length=1, max_depth=1
        )
        hydrology = self.make_flat_range(settings)
        source = hydrology.grid.tiles[4][1]
        assert hydrology.try_source(source) is None
        assert hydrology.grid.rivers == set()
        assert hydrology._stack == []

    def test_deep_enough_search_reaches_ocean(self):
        settings = RiverSettings(num_rivers=IntRange(min=1, max=1), min_length=1)
        hydrology = self.make_flat_range(settings)
        river = hydrology.try_source(hydrology.grid.tiles[4][1])
        assert river is not None
        assert river.outcome == "the ocean"
        assert river.length > 1
