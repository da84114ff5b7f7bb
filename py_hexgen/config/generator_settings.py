"""
Tunable parameters for procedural map generation.

Each generation phase reads one settings group.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .definitions import ConditionKind, NeighborProperty, TileCondition


class TemperatureLevel(str, Enum):
    """Global temperature preset chosen by the player."""

    COLD = "cold"
    TEMPERATE = "temperate"
    HOT = "hot"


class IntRange(BaseModel):
    """Inclusive integer range."""

    min: int = Field(..., ge=0, description="Lower bound (inclusive)")
    max: int = Field(..., ge=0, description="Upper bound (inclusive)")

    @model_validator(mode="after")
    def _check_order(self) -> "IntRange":
        if self.max < self.min:
            raise ValueError(f"max ({self.max}) must be >= min ({self.min})")
        return self


class ElevationSettings(BaseModel):
    """Settings for base elevation noise and continent shaping."""

    noise_scale: float = Field(
        default=0.1, gt=0, description="Zoom of the continent noise; smaller = larger continents"
    )
    octaves: int = Field(default=2, ge=1, description="Noise octaves summed")
    persistence: float = Field(default=0.5, gt=0, description="Amplitude falloff per octave")
    edge_falloff: float = Field(
        default=0.5,
        gt=0,
        le=1,
        description="Fraction of the map extent over which a low edge pulls land down",
    )


class MountainSettings(BaseModel):
    """Settings for mountain ranges and lone peaks."""

    num_ranges: IntRange = Field(
        default_factory=lambda: IntRange(min=1, max=3),
        description="Number of mountain ranges to generate",
    )
    range_lengths: List[int] = Field(
        default=[5, 6, 6, 6, 7, 7, 7, 7, 8, 8, 8, 9, 9, 10, 11, 12],
        min_length=1,
        description="Weighted pool of range lengths; repeated entries are more likely",
    )
    inland_start_chance: float = Field(
        default=0.9, ge=0, le=1, description="Chance a range starts inland rather than on the coast"
    )
    bulge_chance: float = Field(
        default=0.1, ge=0, le=1, description="Chance per step to thicken the range sideways"
    )
    lone_peak_percentage: float = Field(
        default=0.01, ge=0, le=1, description="Share of high land turned into lone peaks"
    )
    min_land_tiles: int = Field(
        default=20, ge=0, description="Minimum land tiles required to attempt mountains"
    )
    straightness: float = Field(
        default=1.5, ge=0, description="Strength of the pull along the range's heading"
    )
    edge_penalty: float = Field(default=0.2, ge=0, description="Weight factor for map-edge tiles")
    coast_penalty: float = Field(default=0.4, ge=0, description="Weight factor for coastal tiles")
    reversal_penalty: float = Field(
        default=0.05, ge=0, description="Weight factor for doubling back on an established range"
    )
    reversal_after_steps: int = Field(
        default=3, ge=0, description="Steps after which the reversal penalty applies"
    )


class TemperaturePreset(BaseModel):
    """Band cutoffs for one temperature preset."""

    cold_below: float = Field(..., ge=0, le=1, description="Temperature below this is cold")
    hot_from: float = Field(..., ge=0, le=1, description="Temperature from this is hot")
    dry_below: float = Field(..., ge=0, le=1, description="Moisture below this is dry")
    wet_from: float = Field(..., ge=0, le=1, description="Moisture from this is wet")


def _default_presets() -> Dict[TemperatureLevel, TemperaturePreset]:
    return {
        TemperatureLevel.COLD: TemperaturePreset(
            cold_below=0.5, hot_from=0.85, dry_below=0.3, wet_from=0.6
        ),
        TemperatureLevel.TEMPERATE: TemperaturePreset(
            cold_below=0.3, hot_from=0.7, dry_below=0.35, wet_from=0.65
        ),
        TemperatureLevel.HOT: TemperaturePreset(
            cold_below=0.15, hot_from=0.5, dry_below=0.45, wet_from=0.75
        ),
    }


class ClimateSettings(BaseModel):
    """Settings for temperature, moisture and biome noise."""

    coastal_moderation: float = Field(
        default=0.2, ge=0, le=1, description="How strongly coasts pull temperature toward 0.5"
    )
    moderation_blur_passes: int = Field(
        default=3, ge=0, description="How many tiles inland the coastal effect bleeds"
    )
    moisture_noise_scale: float = Field(default=0.08, gt=0, description="Zoom of moisture noise")
    rain_shadow_strength: float = Field(
        default=0.5, ge=0, le=1, description="Moisture reduction right behind a mountain"
    )
    rain_shadow_distance: int = Field(
        default=10, ge=1, description="How far downwind the rain shadow reaches"
    )
    biome_noise_scale: float = Field(
        default=0.15, gt=0, description="Zoom of the biome tie-breaker noise"
    )
    ice_max_row: int = Field(default=3, ge=0, description="Rows from the top where ice can form")
    ice_temp_threshold: float = Field(
        default=0.05, ge=0, le=1, description="Maximum temperature for ice"
    )
    presets: Dict[TemperatureLevel, TemperaturePreset] = Field(
        default_factory=_default_presets,
        description="Band cutoffs per temperature preset",
    )


class HillSettings(BaseModel):
    """Settings for hill placement."""

    adjacent_to_mountain_chance: float = Field(
        default=0.6, ge=0, le=1, description="Hill chance directly next to a mountain"
    )
    distance_falloff: float = Field(
        default=0.2, ge=0, description="Chance lost per extra tile away from a mountain"
    )
    isolated_hill_elevation_threshold: float = Field(
        default=0.6, ge=0, le=1, description="Minimum elevation for isolated hills"
    )
    isolated_hill_chance: float = Field(
        default=0.05, ge=0, le=1, description="Chance for an eligible high tile to become a hill"
    )


class RuleCondition(BaseModel):
    """A single condition of a feature placement rule."""

    kind: ConditionKind
    property: Optional[NeighborProperty] = None
    value: Optional[str] = None
    count: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def _check_neighbor_fields(self) -> "RuleCondition":
        if self.kind == ConditionKind.NEIGHBOR and (
            self.property is None or self.value is None
        ):
            raise ValueError("neighbor conditions need 'property' and 'value'")
        return self

    def to_condition(self) -> TileCondition:
        return TileCondition(self.kind, self.property, self.value, self.count)


class FeatureRule(BaseModel):
    """Forest/oasis rule: when all conditions hold, chance = base * multiplier + boost."""

    conditions: List[RuleCondition] = Field(default_factory=list)
    multiplier: float = Field(default=1.0, ge=0)
    boost: float = Field(default=0.0, ge=0)
    feature: str = Field(default="forest", description="Feature placed when the roll succeeds")


def _river(**kwargs) -> RuleCondition:
    return RuleCondition(kind=ConditionKind.ADJACENT_TO_RIVER, **kwargs)


def _near(prop: NeighborProperty, value: str, count: int = 1) -> RuleCondition:
    return RuleCondition(kind=ConditionKind.NEIGHBOR, property=prop, value=value, count=count)


def _default_biome_rules() -> Dict[str, List[FeatureRule]]:
    lake = _near(NeighborProperty.BIOME, "lake")
    return {
        "default": [FeatureRule(multiplier=1.0)],
        # Plains forests cluster along rivers
        "plains": [
            FeatureRule(conditions=[_river()], multiplier=0.5),
            FeatureRule(multiplier=0.3),
        ],
        # Steppe only has forests near freshwater
        "steppe": [
            FeatureRule(conditions=[_river()], multiplier=0.6),
            FeatureRule(conditions=[lake], multiplier=0.7),
            FeatureRule(multiplier=0.05),
        ],
        "tundra": [FeatureRule(multiplier=1.0)],
        "desert": [
            FeatureRule(conditions=[_river()], boost=0.5, feature="oasis"),
            FeatureRule(conditions=[lake], boost=0.5, feature="oasis"),
            FeatureRule(
                conditions=[_near(NeighborProperty.FEATURE, "oasis")],
                boost=0.5,
                feature="oasis",
            ),
            FeatureRule(
                conditions=[_near(NeighborProperty.BIOME, "plains", 2)], multiplier=0.2
            ),
            FeatureRule(multiplier=0.0),
        ],
    }


class ForestSettings(BaseModel):
    """Settings for forest and oasis placement."""

    biome_rules: Dict[str, List[FeatureRule]] = Field(
        default_factory=_default_biome_rules,
        description="Ordered rules per biome id; the first matching rule wins",
    )
    oasis_low_elevation_threshold: float = Field(
        default=0.5, ge=0, le=1, description="Desert tiles below this elevation can host oases"
    )

    def rules_for(self, biome_id: str) -> List[FeatureRule]:
        return self.biome_rules.get(biome_id, self.biome_rules.get("default", []))


class RiverSettings(BaseModel):
    """Settings for river pathfinding."""

    num_rivers: IntRange = Field(
        default_factory=lambda: IntRange(min=2, max=4), description="Number of rivers to attempt"
    )
    source_weights: Dict[str, float] = Field(
        default_factory=lambda: {"mountain": 2.0, "ice": 0.0, "hills": 1.0},
        description="Source weight per biome or feature id; 0 disables a source type",
    )
    min_length: int = Field(default=7, ge=1, description="Minimum river segments")
    max_attempts_per_river: int = Field(
        default=10, ge=1, description="Sources tried before a river is abandoned"
    )
    max_depth: int = Field(default=150, ge=1, description="Maximum segments in one river path")
    max_search_steps: int = Field(
        default=4000, ge=1, description="Search expansions allowed per attempt"
    )
    drop_weight: float = Field(default=1.0, ge=0, description="Preference for steeper descents")
    wrap_penalty: float = Field(
        default=0.05, ge=0, description="Weight factor when a tile would get 5 river borders"
    )
    reversal_penalty: float = Field(
        default=0.3, ge=0, description="Weight factor for turning back against the heading"
    )
    lake_entry_bonus: float = Field(
        default=2.0, ge=0, description="Weight factor for reaching a new lake shore"
    )
    jitter: float = Field(default=0.5, ge=0, le=1, description="Random spread of candidate weights")
    desert_lake_neighbors: int = Field(
        default=4, ge=0, description="Desert neighbours that make a lake a terminal basin"
    )


class ResourceSettings(BaseModel):
    """Settings for resource placement."""

    count_per_type: IntRange = Field(
        default_factory=lambda: IntRange(min=1, max=3),
        description="Instances placed per resource type",
    )
    tier_thresholds: List[float] = Field(
        default=[0.4, 0.1],
        min_length=2,
        max_length=2,
        description="Score needed for tier 1 and tier 2; other positive scores are tier 3",
    )
    tier_probabilities: List[float] = Field(
        default=[0.7, 0.25, 0.05],
        min_length=3,
        max_length=3,
        description="Chance to draw from tier 1, 2, 3",
    )


class GeneratorSettings(BaseModel):
    """All generation settings groups."""

    elevation: ElevationSettings = Field(default_factory=ElevationSettings)
    mountains: MountainSettings = Field(default_factory=MountainSettings)
    climate: ClimateSettings = Field(default_factory=ClimateSettings)
    hills: HillSettings = Field(default_factory=HillSettings)
    forests: ForestSettings = Field(default_factory=ForestSettings)
    rivers: RiverSettings = Field(default_factory=RiverSettings)
    resources: ResourceSettings = Field(default_factory=ResourceSettings)


class GenerationOptions(BaseModel):
    """Options for one generation call.

    Accepts both snake_case and camelCase keys.
    """

    model_config = ConfigDict(populate_by_name=True)

    water_level: int = Field(default=40, ge=0, le=100, alias="waterLevel")
    temperature: TemperatureLevel = Field(default=TemperatureLevel.TEMPERATE)
    map_size: Optional[int] = Field(default=None, ge=1, alias="mapSize")
    width: Optional[int] = Field(default=None, ge=1)
    height: Optional[int] = Field(default=None, ge=1)
    seed: Optional[str] = Field(default=None, description="Blank or missing = random")
