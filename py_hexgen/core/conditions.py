"""Tile conditions shared by feature and resource rules."""

from typing import Iterable

from ..config.definitions import ConditionKind, NeighborProperty, TileCondition
from .grid import HexGrid, Tile


def _property_id(tile: Tile, prop: NeighborProperty):
    if prop == NeighborProperty.BIOME:
        return tile.biome.id if tile.biome else None
    return tile.feature.id if tile.feature else None


def count_neighbors(grid: HexGrid, tile: Tile, prop: NeighborProperty, value: str) -> int:
    """Number of neighbours whose biome or feature id equals ``value``."""
    return sum(1 for n in grid.neighbors(tile) if _property_id(n, prop) == value)


def condition_holds(grid: HexGrid, tile: Tile, condition: TileCondition) -> bool:
    if condition.kind == ConditionKind.ADJACENT_TO_RIVER:
        return grid.has_river_border(tile)
    if condition.kind == ConditionKind.NEIGHBOR:
        matches = count_neighbors(grid, tile, condition.property, condition.value)
        return matches >= condition.count
    raise ValueError(f"Unknown condition kind: {condition.kind}")


def all_conditions_hold(grid: HexGrid, tile: Tile, conditions: Iterable[TileCondition]) -> bool:
    return all(condition_holds(grid, tile, c) for c in conditions)
