"""
Static biome, feature and resource definitions.

This is read-only data shared by every generation run. Generation reads the
tables through a DefinitionLibrary and never writes back into them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from ..errors import ConfigurationError


class ConditionKind(str, Enum):
    """Kinds of tile conditions used by feature and resource rules."""

    ADJACENT_TO_RIVER = "adjacent_to_river"
    NEIGHBOR = "neighbor"


class NeighborProperty(str, Enum):
    """Tile property a neighbour condition compares against."""

    BIOME = "biome"
    FEATURE = "feature"


@dataclass(frozen=True)
class TileCondition:
    """At least ``count`` neighbours whose biome/feature id equals ``value``,
    or (for ADJACENT_TO_RIVER) a river on one of the tile's borders."""

    kind: ConditionKind
    property: Optional[NeighborProperty] = None
    value: Optional[str] = None
    count: int = 1


@dataclass(frozen=True)
class ClimateBands:
    """Acceptable temperature and moisture bands for a biome."""

    temperature: FrozenSet[str]
    moisture: FrozenSet[str]

    def accepts(self, temperature_band: str, moisture_band: str) -> bool:
        return temperature_band in self.temperature and moisture_band in self.moisture


@dataclass(frozen=True)
class ResourceSpawn:
    """A resource a biome or feature can host, with its spawn chance."""

    resource_id: str
    chance: float
    conditions: Tuple[TileCondition, ...] = ()


@dataclass(frozen=True)
class ResourceInteraction:
    """How a feature treats the resources of the biome underneath it."""

    mode: str
    resource_ids: FrozenSet[str]

    def blocks(self, resource_id: str) -> bool:
        if self.mode != "block":
            return False
        return "*" in self.resource_ids or resource_id in self.resource_ids


@dataclass(frozen=True)
class BiomeDefinition:
    id: str
    name: str
    is_buildable: bool
    can_support_features: bool
    elevation: int
    climate: Optional[ClimateBands] = None
    is_default_placeholder: bool = False
    possible_resources: Tuple[ResourceSpawn, ...] = ()


@dataclass(frozen=True)
class FeatureDefinition:
    id: str
    name: str
    elevation_modifier: int = 0
    possible_resources: Tuple[ResourceSpawn, ...] = ()
    biome_resource_interaction: Optional[ResourceInteraction] = None
    # Per-biome replacement of possible_resources (empty tuple = none)
    resource_overrides: Mapping[str, Tuple[ResourceSpawn, ...]] = field(
        default_factory=dict, hash=False
    )

    def resources_for_biome(self, biome_id: str) -> Tuple[ResourceSpawn, ...]:
        if biome_id in self.resource_overrides:
            return self.resource_overrides[biome_id]
        return self.possible_resources


@dataclass(frozen=True)
class ResourceDefinition:
    id: str
    name: str
    description: str = ""


class DefinitionLibrary:
    """Lookup tables for biome, feature and resource definitions."""

    def __init__(
        self,
        biomes: Iterable[BiomeDefinition],
        features: Iterable[FeatureDefinition],
        resources: Iterable[ResourceDefinition],
    ):
        self.biomes: Dict[str, BiomeDefinition] = {b.id: b for b in biomes}
        self.features: Dict[str, FeatureDefinition] = {f.id: f for f in features}
        self.resources: Dict[str, ResourceDefinition] = {r.id: r for r in resources}

    def biome(self, biome_id: str) -> BiomeDefinition:
        try:
            return self.biomes[biome_id]
        except KeyError:
            raise ConfigurationError(f"Unknown biome '{biome_id}'") from None

    def feature(self, feature_id: str) -> FeatureDefinition:
        try:
            return self.features[feature_id]
        except KeyError:
            raise ConfigurationError(f"Unknown feature '{feature_id}'") from None

    def placeholder_biome(self) -> BiomeDefinition:
        """The scratch biome given to all land before climate classification."""
        for biome in self.biomes.values():
            if biome.is_default_placeholder:
                return biome
        raise ConfigurationError("No default placeholder land biome is defined")

    def climate_biomes(self) -> List[BiomeDefinition]:
        """Biomes with climate bands, in definition order."""
        return [b for b in self.biomes.values() if b.climate is not None]


def _bands(temperature: Iterable[str], moisture: Iterable[str]) -> ClimateBands:
    return ClimateBands(frozenset(temperature), frozenset(moisture))


OCEAN = BiomeDefinition(
    id="ocean",
    name="Ocean",
    is_buildable=False,
    can_support_features=False,
    elevation=0,
)
LAKE = BiomeDefinition(
    id="lake",
    name="Lake",
    is_buildable=False,
    can_support_features=False,
    elevation=1,
    possible_resources=(ResourceSpawn("Fish", 0.5),),
)
ICE = BiomeDefinition(
    id="ice",
    name="Ice",
    is_buildable=False,
    can_support_features=False,
    elevation=10,
)
MOUNTAIN = BiomeDefinition(
    id="mountain",
    name="Mountain",
    is_buildable=False,
    can_support_features=False,
    elevation=10,
    possible_resources=(
        ResourceSpawn("Iron", 0.4),
        ResourceSpawn("Stone", 0.3),
        ResourceSpawn("Gold", 0.15),
    ),
)
DESERT = BiomeDefinition(
    id="desert",
    name="Desert",
    is_buildable=True,
    can_support_features=True,
    elevation=2,
    climate=_bands(["hot", "temperate"], ["dry"]),
    possible_resources=(ResourceSpawn("Gold", 0.1), ResourceSpawn("Stone", 0.05)),
)
PLAINS = BiomeDefinition(
    id="plains",
    name="Plains",
    is_buildable=True,
    can_support_features=True,
    elevation=2,
    climate=_bands(["cold", "temperate", "hot"], ["normal", "wet"]),
    possible_resources=(ResourceSpawn("Grain", 0.45),),
)
STEPPE = BiomeDefinition(
    id="steppe",
    name="Steppe",
    is_buildable=True,
    can_support_features=True,
    elevation=2,
    climate=_bands(["temperate", "hot"], ["dry", "normal"]),
    is_default_placeholder=True,
    possible_resources=(ResourceSpawn("Grain", 0.2),),
)
TUNDRA = BiomeDefinition(
    id="tundra",
    name="Tundra",
    is_buildable=True,
    can_support_features=True,
    elevation=2,
    climate=_bands(["cold"], ["dry", "normal", "wet"]),
    possible_resources=(ResourceSpawn("Stone", 0.1),),
)

HILLS = FeatureDefinition(
    id="hills",
    name="Hills",
    elevation_modifier=2,
    possible_resources=(ResourceSpawn("Stone", 0.15), ResourceSpawn("Iron", 0.08)),
    # No Grain from the biome underneath
    biome_resource_interaction=ResourceInteraction("block", frozenset({"Grain"})),
)
FOREST = FeatureDefinition(
    id="forest",
    name="Forest",
    elevation_modifier=0,
    possible_resources=(
        ResourceSpawn(
            "Wood",
            0.2,
            conditions=(
                TileCondition(
                    ConditionKind.NEIGHBOR, NeighborProperty.FEATURE, "forest", 1
                ),
            ),
        ),
    ),
    biome_resource_interaction=ResourceInteraction("block", frozenset({"*"})),
    resource_overrides={"steppe": (), "desert": ()},
)
OASIS = FeatureDefinition(
    id="oasis",
    name="Oasis",
    elevation_modifier=0,
    biome_resource_interaction=ResourceInteraction("block", frozenset({"*"})),
)

RESOURCES = (
    ResourceDefinition("Wood", "Wood", "A common building material."),
    ResourceDefinition("Stone", "Stone", "A sturdy material for advanced structures."),
    ResourceDefinition("Iron", "Iron", "Ore for tools and weapons."),
    ResourceDefinition("Gold", "Gold", "A rare and valuable deposit."),
    ResourceDefinition("Grain", "Grain", "Fertile fields for farming."),
    ResourceDefinition("Fish", "Fish", "Plentiful fishing waters."),
)

DEFAULT_LIBRARY = DefinitionLibrary(
    biomes=(OCEAN, LAKE, ICE, MOUNTAIN, DESERT, PLAINS, STEPPE, TUNDRA),
    features=(HILLS, FOREST, OASIS),
    resources=RESOURCES,
)
