from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .generator_settings import GeneratorSettings, IntRange


class Settings(BaseSettings):
    """Application settings pulled from environment variables.

    Nested generator values use ``__``, e.g.
    ``HEXGEN_GENERATOR__RIVERS__MIN_LENGTH=5``.
    """

    model_config = SettingsConfigDict(
        env_prefix="HEXGEN_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Map Configuration
    default_map_width: int = Field(default=20, ge=1, description="Default map width in tiles")
    default_map_height: int = Field(default=20, ge=1, description="Default map height in tiles")
    water_level_range: IntRange = Field(
        default_factory=lambda: IntRange(min=20, max=70),
        description="Water level range offered to players",
    )
    map_size_range: IntRange = Field(
        default_factory=lambda: IntRange(min=10, max=30),
        description="Map size range offered to players",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Logging format (console or json)")

    # Generation Configuration
    generator: GeneratorSettings = Field(default_factory=GeneratorSettings)


# Instantiate singleton settings object
settings = Settings()
