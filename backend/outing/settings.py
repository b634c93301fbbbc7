"""Outing configuration via environment variables."""

from typing import Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings

from outing.logic.enums import SkinsFormat


class OutingSettings(BaseSettings):
    model_config = {"env_prefix": "OUTING_"}

    database_path: str = Field(default="backend/data/outing.db", min_length=1)
    log_dir: str = Field(default="backend/logs/outing", min_length=1)
    legacy_games_path: str | None = None  # JSON export imported once into an empty database
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["console", "json"] = "console"

    default_entry_fee: float = Field(default=10, ge=0)
    default_ctp_hole: int = Field(default=2, ge=1, le=18)
    default_skins_format: SkinsFormat = SkinsFormat.MONARCH_HALF_STROKE

    ctp_percentage: float = 0.25
    low_net_percentage: float = 0
    second_place_percentage: float = 0
    admin_fee_percentage: float = 0
    # Per-skin value used for winnings until the pot is split.
    skin_value: float = Field(default=10, ge=0)
    enforce_pot_split_limit: bool = False

    @field_validator("log_level", "log_format", mode="before")
    @classmethod
    def normalize_log_option(cls, v: object, info: ValidationInfo) -> object:
        if not isinstance(v, str):
            return v
        return v.upper() if info.field_name == "log_level" else v.lower()

    @field_validator(
        "ctp_percentage",
        "low_net_percentage",
        "second_place_percentage",
        "admin_fee_percentage",
    )
    @classmethod
    def validate_percentage(cls, v: float) -> float:
        if not 0 <= v <= 1:
            msg = f"percentage must be between 0 and 1, got {v}"
            raise ValueError(msg)
        return v
