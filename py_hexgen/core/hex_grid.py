"""
Hex grid geometry for the "odd-r" offset layout.

This module provides:
- Neighbour offsets and offset/cube/pixel conversions
- Canonical identifiers for hex corners (vertices) and borders (edges)
- The vertex/edge dual graph used by river pathfinding

Vertex ids are tuples of the three ``(x, y)`` tiles meeting at a corner and
edge ids are tuples of their two vertex ids. Both are sorted by the textual
``"x,y"`` form, so the canonical order matches the ``"x,y;x,y;x,y"`` and
``"v1--v2"`` strings produced by ``format_vertex_id``/``format_edge_id``.
"""

import math
from typing import Callable, Iterable, List, Optional, Tuple

Coord = Tuple[int, int]
Cube = Tuple[int, int, int]
VertexId = Tuple[Coord, Coord, Coord]
EdgeId = Tuple[VertexId, VertexId]
BoundsCheck = Callable[[int, int], bool]

SQRT3_2 = math.sqrt(3) / 2

# Order matches get_neighbors: E, SE, SW, W, NW, NE
DIRECTION_NAMES = ("E", "SE", "SW", "W", "NW", "NE")
DIRECTION_VECTORS: Tuple[Tuple[float, float], ...] = (
    (1.0, 0.0),
    (0.5, SQRT3_2),
    (-0.5, SQRT3_2),
    (-1.0, 0.0),
    (-0.5, -SQRT3_2),
    (0.5, -SQRT3_2),
)

_EVEN_ROW_OFFSETS = ((1, 0), (0, 1), (-1, 1), (-1, 0), (-1, -1), (0, -1))
_ODD_ROW_OFFSETS = ((1, 0), (1, 1), (0, 1), (-1, 0), (0, -1), (1, -1))


def get_neighbors(x: int, y: int) -> List[Coord]:
    """
    Get the coordinates of the 6 neighbours of a hex.

    Coordinates are returned whether or not they lie on the map; callers
    filter with their own bounds check.

    Args:
        x: Column
        y: Row

    Returns:
        Neighbour coordinates in E, SE, SW, W, NW, NE order
    """
    offsets = _ODD_ROW_OFFSETS if y & 1 else _EVEN_ROW_OFFSETS
    return [(x + dx, y + dy) for dx, dy in offsets]


def offset_to_cube(x: int, y: int) -> Cube:
    """Convert odd-r offset coordinates to cube coordinates."""
    q = x - (y - (y & 1)) // 2
    r = y
    return q, r, -q - r


def cube_distance(a: Cube, b: Cube) -> int:
    """Distance in hexes between two cube coordinates."""
    return (abs(a[0] - b[0]) + abs(a[1] - b[1]) + abs(a[2] - b[2])) // 2


def hex_distance(a: Coord, b: Coord) -> int:
    """Distance in hexes between two offset coordinates."""
    return cube_distance(offset_to_cube(*a), offset_to_cube(*b))


def offset_to_pixel(x: int, y: int) -> Tuple[float, float]:
    """Centre of a tile in unit-width pixel space (odd rows shifted right)."""
    return x + 0.5 * (y & 1), y * SQRT3_2


def pixel_to_offset(px: float, py: float) -> Coord:
    """Nearest tile to a pixel-space point."""
    y = int(math.floor(py / SQRT3_2 + 0.5))
    x = int(math.floor(px - 0.5 * (y & 1) + 0.5))
    return x, y


def _coord_key(coord: Coord) -> str:
    return f"{coord[0]},{coord[1]}"


def get_vertex_id(
    tile1: Optional[Coord], tile2: Optional[Coord], tile3: Optional[Coord]
) -> Optional[VertexId]:
    """
    Build the canonical id of the corner shared by three tiles.

    Returns:
        Sorted coordinate triple, or None if any tile is missing
    """
    if tile1 is None or tile2 is None or tile3 is None:
        return None
    coords = sorted(
        ((tile1[0], tile1[1]), (tile2[0], tile2[1]), (tile3[0], tile3[1])),
        key=_coord_key,
    )
    return coords[0], coords[1], coords[2]


def format_vertex_id(vertex: VertexId) -> str:
    """Render a vertex id in the ``x,y;x,y;x,y`` text form."""
    return ";".join(_coord_key(c) for c in vertex)


def get_edge_id(vertex1: VertexId, vertex2: VertexId) -> EdgeId:
    """Build the canonical id of the border between two corners."""
    if format_vertex_id(vertex1) <= format_vertex_id(vertex2):
        return vertex1, vertex2
    return vertex2, vertex1


def format_edge_id(edge: EdgeId) -> str:
    """Render an edge id in the ``v1--v2`` text form."""
    return f"{format_vertex_id(edge[0])}--{format_vertex_id(edge[1])}"


def parse_vertex_id(text: str) -> VertexId:
    """Parse the ``x,y;x,y;x,y`` text form back into a vertex id."""
    coords = []
    for part in text.split(";"):
        x, y = part.split(",")
        coords.append((int(x), int(y)))
    if len(coords) != 3:
        raise ValueError(f"Vertex id needs three tiles: {text!r}")
    return get_vertex_id(coords[0], coords[1], coords[2])


def parse_edge_id(text: str) -> EdgeId:
    """Parse the ``v1--v2`` text form back into an edge id."""
    first, second = text.split("--")
    return get_edge_id(parse_vertex_id(first), parse_vertex_id(second))


def get_tiles_for_vertex(vertex: VertexId) -> List[Coord]:
    """The three tiles meeting at a corner."""
    return list(vertex)


def get_vertices_for_edge(edge: EdgeId) -> List[VertexId]:
    """The two corners bounding a border."""
    return list(edge)


def get_edge_tiles(edge: EdgeId) -> List[Coord]:
    """The two tiles separated by a border (shared by both its corners)."""
    second = set(edge[1])
    return [c for c in edge[0] if c in second]


def get_vertex_center_cube(vertex: VertexId) -> Tuple[float, float, float]:
    """Average cube coordinates of a corner's tiles (its geometric centre)."""
    cubes = [offset_to_cube(x, y) for x, y in vertex]
    return (
        sum(c[0] for c in cubes) / 3,
        sum(c[1] for c in cubes) / 3,
        sum(c[2] for c in cubes) / 3,
    )


def get_vertex_center(vertex: VertexId) -> Tuple[float, float]:
    """Pixel-space position of a corner."""
    points = [offset_to_pixel(x, y) for x, y in vertex]
    return sum(p[0] for p in points) / 3, sum(p[1] for p in points) / 3


def _all_in_bounds(coords: Iterable[Coord], in_bounds: BoundsCheck) -> bool:
    return all(in_bounds(x, y) for x, y in coords)


def vertices_for_tile(x: int, y: int, in_bounds: BoundsCheck) -> List[VertexId]:
    """
    Corners of a tile that exist on the map, in ring order.

    A corner exists only when all three of its tiles are in bounds, so border
    tiles have fewer than six.
    """
    ring = get_neighbors(x, y)
    vertices = []
    for i in range(6):
        a, b = ring[i], ring[(i + 1) % 6]
        if in_bounds(*a) and in_bounds(*b):
            vertices.append(get_vertex_id((x, y), a, b))
    return vertices


def border_edges_for_tile(x: int, y: int, in_bounds: BoundsCheck) -> List[EdgeId]:
    """
    Borders of a tile whose two corners both exist.

    The border towards neighbour i runs from corner (i-1, i) to corner (i, i+1).
    """
    ring = get_neighbors(x, y)
    corners: List[Optional[VertexId]] = []
    for i in range(6):
        a, b = ring[i], ring[(i + 1) % 6]
        if in_bounds(*a) and in_bounds(*b):
            corners.append(get_vertex_id((x, y), a, b))
        else:
            corners.append(None)

    edges = []
    for i in range(6):
        before, after = corners[i - 1], corners[i]
        if before is not None and after is not None:
            edges.append(get_edge_id(before, after))
    return edges


def vertex_neighbors(vertex: VertexId, in_bounds: BoundsCheck) -> List[VertexId]:
    """
    Corners one border away from the given corner (at most three).

    Each neighbour shares two of this corner's tiles; its third tile is the
    other common neighbour of that pair.
    """
    result = []
    for i in range(3):
        p, q = vertex[i], vertex[(i + 1) % 3]
        r = vertex[(i + 2) % 3]
        common = set(get_neighbors(*p)) & set(get_neighbors(*q))
        for d in sorted(common, key=_coord_key):
            if d != r and in_bounds(*d):
                result.append(get_vertex_id(p, q, d))
    return result


def vertex_is_valid(vertex: VertexId, in_bounds: BoundsCheck) -> bool:
    """True when every tile of the corner is on the map."""
    return _all_in_bounds(vertex, in_bounds)
