"""Runtime configuration for the expedition engine."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven engine settings."""

    model_config = SettingsConfigDict(env_prefix="EXPEDITION_", env_file=".env", extra="ignore")

    app_name: str = "expedition-engine"
    log_level: str = "INFO"
    default_seed: str = Field(default="expedition", description="Seed used when a command does not supply one.")
    session_ticks: int = Field(default=200, ge=0, description="Ticks available to a fresh session.")
    base_travel_time: int = Field(
        default=10,
        ge=1,
        description="Ticks per unit of connection multiplier; travel cost is base x multiplier.",
    )
    initial_distance_bands: int = Field(
        default=3,
        ge=1,
        description="Distance bands created as placeholders when a world is initialised.",
    )
    min_gathering_nodes_per_band: int = Field(
        default=1,
        ge=0,
        description="Guaranteed count of each gathering node type per distance band.",
    )
    full_exploration_bonus_xp: int = Field(
        default=10,
        ge=0,
        description="Bonus Exploration XP per distance step for fully exploring an area.",
    )
    telemetry_enabled: bool = True


settings = Settings()
