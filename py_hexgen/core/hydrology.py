"""
River generation over the hex corner graph.

Rivers run along tile borders. A river is a path of corners (vertices) joined
by borders (edges), grown downhill from a mountain or hill source until it
reaches the ocean. The search backtracks out of dead ends. A river that gets
stuck may flood the tile ahead into a lake and continue from its far side,
and a river that reaches an existing lake flows through it. Lakes made by a
river are only written to the grid once that river is accepted.
"""

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

import structlog

from ..config.definitions import DefinitionLibrary
from ..config.generator_settings import RiverSettings
from .alea_prng import AleaPRNG
from .grid import HexGrid, Tile
from .hex_grid import (
    Coord,
    EdgeId,
    VertexId,
    get_edge_id,
    get_edge_tiles,
    get_vertex_center,
    hex_distance,
)

logger = structlog.get_logger()

# Steps whose direction is this close to perpendicular (or worse) to the
# recent heading count as turning back
_REVERSAL_COS = 0.1


@dataclass
class River:
    """An accepted river."""

    source: Coord
    edges: List[EdgeId]
    vertices: List[VertexId]
    outcome: str
    lakes: List[Coord] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.edges)


@dataclass
class _SearchFrame:
    vertex: VertexId
    # Border crossed to reach this corner (None for the start and for jumps)
    edge: Optional[EdgeId] = None
    via_jump: bool = False
    # Tile flooded to make the jump into this frame
    flooded: Optional[Coord] = None
    candidates: Optional[List[VertexId]] = None
    flood_tried: bool = False


class Hydrology:
    """Generates rivers and river-formed lakes."""

    def __init__(
        self,
        grid: HexGrid,
        prng: AleaPRNG,
        library: DefinitionLibrary,
        settings: Optional[RiverSettings] = None,
        log: Optional[List[str]] = None,
    ):
        self.grid = grid
        self.prng = prng
        self.library = library
        self.settings = settings or RiverSettings()
        self.log = log if log is not None else []

        self.lake = library.biome("lake")
        self.rivers: List[River] = []
        # Corners used by accepted rivers
        self.river_vertices: Set[VertexId] = set()

        # Per-attempt search state
        self._source: Optional[Coord] = None
        self._stack: List[_SearchFrame] = []
        self._visited: Set[VertexId] = set()
        self._border_counts: Dict[Coord, int] = {}
        self._pending_lakes: Set[Coord] = set()
        self._edge_count = 0

    # Tile and corner properties

    def _tile(self, coord: Coord) -> Tile:
        return self.grid.tiles[coord[1]][coord[0]]

    def _is_lake(self, coord: Coord) -> bool:
        return coord in self._pending_lakes or self._tile(coord).has_biome("lake")

    def tile_elevation(self, coord: Coord) -> float:
        if coord in self._pending_lakes:
            return self.lake.elevation
        return self._tile(coord).elevation

    def vertex_elevation(self, vertex: VertexId) -> float:
        return sum(self.tile_elevation(c) for c in vertex) / 3

    def _outflow_elevation(self, vertex: VertexId) -> float:
        """Elevation of a corner ignoring its lake tiles, used when leaving a lake."""
        dry = [self.tile_elevation(c) for c in vertex if not self._is_lake(c)]
        if not dry:
            return self.vertex_elevation(vertex)
        return sum(dry) / len(dry)

    def _touches_ocean(self, vertex: VertexId) -> bool:
        return any(self._tile(c).has_biome("ocean") for c in vertex)

    def _lake_tiles(self, vertex: VertexId) -> List[Coord]:
        return [c for c in vertex if self._is_lake(c)]

    # Sources

    def source_weight(self, tile: Tile) -> float:
        weights = self.settings.source_weights
        weight = weights.get(tile.biome.id, 0.0)
        if tile.feature is not None:
            weight = max(weight, weights.get(tile.feature.id, 0.0))
        return weight

    def generate(self) -> List[River]:
        pool: List[Tile] = []
        weights: List[float] = []
        for tile in self.grid.iter_tiles():
            weight = self.source_weight(tile)
            if weight > 0:
                pool.append(tile)
                weights.append(weight)

        if not pool:
            self.log.append("No river sources; skipping rivers")
            logger.info("Skipping rivers", reason="no sources")
            return self.rivers

        n_rivers = self.prng.randint(
            self.settings.num_rivers.min, self.settings.num_rivers.max
        )
        logger.info("Generating rivers", target=n_rivers, sources=len(pool))

        for number in range(1, n_rivers + 1):
            river = None
            attempts = 0
            while river is None and attempts < self.settings.max_attempts_per_river:
                if not pool:
                    break
                attempts += 1
                source = self.prng.weighted_choice(pool, weights)
                river = self.try_source(source)
                if river is None:
                    index = pool.index(source)
                    del pool[index]
                    del weights[index]

            if river is None:
                self.log.append(f"River {number}: abandoned after {attempts} attempts")
                logger.warning("River abandoned", river=number, attempts=attempts)
                continue

            self.rivers.append(river)
            lakes = f", {len(river.lakes)} new lakes" if river.lakes else ""
            self.log.append(
                f"River {number}: {river.length} segments from {river.source} "
                f"into {river.outcome}{lakes}"
            )
            logger.debug(
                "River accepted",
                river=number,
                length=river.length,
                source=river.source,
                outcome=river.outcome,
                lakes=len(river.lakes),
            )

        logger.info("Rivers generated", count=len(self.rivers), edges=len(self.grid.rivers))
        return self.rivers

    def try_source(self, source: Tile) -> Optional[River]:
        """Run one search from a random free corner of ``source``."""
        corners = [
            v for v in self.grid.vertices_for_tile(source) if v not in self.river_vertices
        ]
        if not corners:
            return None
        start = self.prng.choice(corners)

        self._source = source.coord
        self._stack = []
        self._visited = set()
        self._border_counts = {}
        self._pending_lakes = set()
        self._edge_count = 0

        outcome = self._search(start)
        if outcome is None:
            return None
        return self._commit(outcome)

    # Search

    def _push(
        self,
        vertex: VertexId,
        edge: Optional[EdgeId] = None,
        via_jump: bool = False,
        flooded: Optional[Coord] = None,
    ) -> None:
        self._stack.append(_SearchFrame(vertex, edge, via_jump, flooded))
        self._visited.add(vertex)
        if edge is not None:
            self._edge_count += 1
            for coord in get_edge_tiles(edge):
                self._border_counts[coord] = self._border_counts.get(coord, 0) + 1

    def _pop(self) -> None:
        frame = self._stack.pop()
        self._visited.discard(frame.vertex)
        if frame.edge is not None:
            self._edge_count -= 1
            for coord in get_edge_tiles(frame.edge):
                self._border_counts[coord] -= 1
        if frame.flooded is not None:
            self._pending_lakes.discard(frame.flooded)

    def _is_acceptable(self, vertex: VertexId) -> bool:
        if self._edge_count < self.settings.min_length:
            return False
        return all(hex_distance(c, self._source) > 1 for c in vertex)

    def _search(self, start: VertexId) -> Optional[str]:
        """
        Depth-first search with an explicit stack.

        Returns:
            "the ocean" or "a lake" on success, None when the attempt fails
        """
        self._push(start)
        expansions = 0

        while self._stack:
            frame = self._stack[-1]

            if frame.candidates is None:
                expansions += 1
                if expansions > self.settings.max_search_steps:
                    return None

                vertex = frame.vertex
                if self._touches_ocean(vertex):
                    if self._is_acceptable(vertex):
                        return "the ocean"
                    self._pop()
                    continue

                lake_tiles = [] if frame.via_jump else self._lake_tiles(vertex)
                if lake_tiles:
                    frame.candidates = []
                    frame.flood_tried = True
                    if self._is_terminal_lake(lake_tiles):
                        if self._is_acceptable(vertex):
                            return "a lake"
                        self._pop()
                        continue
                    target = self._lake_exit(lake_tiles[0], vertex)
                    if target is None:
                        self._pop()
                    else:
                        self._push(target, via_jump=True)
                    continue

                if self._edge_count >= self.settings.max_depth:
                    self._pop()
                    continue

                frame.candidates = self._rank_neighbors(frame)

            if frame.candidates:
                neighbor = frame.candidates.pop(0)
                self._push(neighbor, edge=get_edge_id(frame.vertex, neighbor))
                continue

            if not frame.flood_tried:
                frame.flood_tried = True
                if self._flood_ahead(frame):
                    continue

            self._pop()

        return None

    def _rank_neighbors(self, frame: _SearchFrame) -> List[VertexId]:
        """Downhill neighbours of the frame's corner, best first."""
        settings = self.settings
        vertex = frame.vertex
        if frame.via_jump:
            current = self._outflow_elevation(vertex)
        else:
            current = self.vertex_elevation(vertex)
        current_lakes = set(self._lake_tiles(vertex))

        heading = None
        if len(self._stack) >= 3:
            cx, cy = get_vertex_center(vertex)
            px, py = get_vertex_center(self._stack[-3].vertex)
            norm = math.hypot(cx - px, cy - py)
            if norm > 0:
                heading = ((cx - px) / norm, (cy - py) / norm)

        ranked = []
        for neighbor in self.grid.vertex_neighbors(vertex):
            if neighbor in self._visited or neighbor in self.river_vertices:
                continue
            elevation = self.vertex_elevation(neighbor)
            if elevation > current + 1e-9:
                continue
            neighbor_lakes = set(self._lake_tiles(neighbor))
            # Running along a shore already touched
            if current_lakes & neighbor_lakes:
                continue

            weight = 1 + settings.drop_weight * (current - elevation)

            edge = get_edge_id(vertex, neighbor)
            if any(self._border_counts.get(c, 0) + 1 >= 5 for c in get_edge_tiles(edge)):
                weight *= settings.wrap_penalty

            if heading is not None:
                cx, cy = get_vertex_center(vertex)
                nx, ny = get_vertex_center(neighbor)
                norm = math.hypot(nx - cx, ny - cy)
                cos = (heading[0] * (nx - cx) + heading[1] * (ny - cy)) / norm
                if cos < _REVERSAL_COS:
                    weight *= settings.reversal_penalty

            if neighbor_lakes - current_lakes:
                weight *= settings.lake_entry_bonus

            weight *= 1 - settings.jitter / 2 + settings.jitter * self.prng.random()
            ranked.append((weight, neighbor))

        ranked.sort(key=lambda item: -item[0])
        return [neighbor for _, neighbor in ranked]

    def _is_terminal_lake(self, lake_tiles: List[Coord]) -> bool:
        """A lake surrounded by desert swallows rivers instead of passing them on."""
        for coord in lake_tiles:
            deserts = sum(
                1 for n in self.grid.neighbors(self._tile(coord)) if n.has_biome("desert")
            )
            if deserts >= self.settings.desert_lake_neighbors:
                return True
        return False

    def _free_corner(self, vertex: VertexId) -> bool:
        return vertex not in self._visited and vertex not in self.river_vertices

    def _farthest(self, corners: List[VertexId], origin: VertexId) -> Optional[VertexId]:
        ox, oy = get_vertex_center(origin)
        best, best_distance = None, -1.0
        for corner in corners:
            cx, cy = get_vertex_center(corner)
            distance = math.hypot(cx - ox, cy - oy)
            if distance > best_distance:
                best, best_distance = corner, distance
        return best

    def _lake_exit(self, lake_tile: Coord, entry: VertexId) -> Optional[VertexId]:
        """Farthest free shoreline corner of the lake containing ``lake_tile``."""
        component = {lake_tile}
        queue = deque([lake_tile])
        while queue:
            coord = queue.popleft()
            for n in self.grid.neighbors(self._tile(coord)):
                if n.coord not in component and self._is_lake(n.coord):
                    component.add(n.coord)
                    queue.append(n.coord)

        shoreline = []
        seen = set()
        for coord in sorted(component, key=lambda c: (c[1], c[0])):
            for corner in self.grid.vertices_for_tile(self._tile(coord)):
                if corner in seen or corner == entry:
                    continue
                seen.add(corner)
                if self._free_corner(corner) and not all(self._is_lake(c) for c in corner):
                    shoreline.append(corner)
        return self._farthest(shoreline, entry)

    def _flood_ahead(self, frame: _SearchFrame) -> bool:
        """
        Turn the tile ahead of a stuck corner into a pending lake and jump
        to that tile's far side.

        The tile ahead is the corner's tile not shared with the previous
        corner on the path.
        """
        vertex = frame.vertex
        previous = self._stack[-2].vertex if len(self._stack) >= 2 else ()
        for coord in vertex:
            if coord in previous or coord == self._source:
                continue
            tile = self._tile(coord)
            if self._is_lake(coord) or tile.biome.id in ("mountain", "ice", "ocean"):
                continue
            # A lake may not border any river, this one included
            if self._border_counts.get(coord, 0) > 0 or self.grid.has_river_border(tile):
                continue

            corners = [
                c
                for c in self.grid.vertices_for_tile(tile)
                if c != vertex and self._free_corner(c)
            ]
            target = self._farthest(corners, vertex)
            if target is None:
                continue
            self._pending_lakes.add(coord)
            self._push(target, via_jump=True, flooded=coord)
            return True
        return False

    def _commit(self, outcome: str) -> River:
        edges = [f.edge for f in self._stack if f.edge is not None]
        vertices = [f.vertex for f in self._stack]
        lakes = sorted(self._pending_lakes, key=lambda c: (c[1], c[0]))

        self.grid.rivers.update(edges)
        self.river_vertices.update(vertices)
        for coord in lakes:
            tile = self._tile(coord)
            tile.biome = self.lake
            tile.feature = None

        return River(
            source=self._source,
            edges=edges,
            vertices=vertices,
            outcome=outcome,
            lakes=lakes,
        )
