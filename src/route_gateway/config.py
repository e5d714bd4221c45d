"""Application configuration and settings management."""

import json
from typing import Annotated, Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Comma-separated values are parsed by the validator below, not as JSON.
StrTuple = Annotated[tuple[str, ...], NoDecode]


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults.

    The settings object is frozen: it is built once at process start and only
    read afterwards.
    """

    model_config = SettingsConfigDict(
        env_prefix="RG_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        frozen=True,
    )

    app_name: str = "Route Gateway"
    api_prefix: str = ""
    version: str = "1.0.0"
    log_level: str = "INFO"

    engine_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the OSRM routing engine (e.g., http://localhost:5000).",
    )
    engine_timeout_seconds: float = Field(default=30.0, gt=0.0)
    engine_thread_safe: bool = Field(
        default=True,
        description="Whether the engine may receive concurrent route calls.",
    )

    profiles: StrTuple = Field(
        default=("car",),
        description="Profile names the engine serves. The first one is the default.",
    )
    snap_preventions_default: StrTuple = Field(
        default=(),
        description="Road classes to avoid when snapping if the caller does not say otherwise.",
    )
    has_elevation: bool = Field(default=False, description="Whether elevation data is loaded.")

    copyrights: StrTuple = Field(default=("GraphHopper", "OpenStreetMap contributors"))
    bulk_copyrights: StrTuple = Field(default=("Swift Routes", "powered by GraphHopper"))
    bulk_max_parallel: int = Field(
        default=1,
        ge=1,
        description="Maximum concurrent engine calls per bulk request. 1 routes destinations one by one.",
    )
    gpx_creator: str = "GraphHopper"

    frontend_allowed_origins: StrTuple = Field(
        default=(),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator(
        "profiles",
        "snap_preventions_default",
        "copyrights",
        "bulk_copyrights",
        "frontend_allowed_origins",
        mode="before",
    )
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return tuple(str(item).strip() for item in value if str(item).strip())
        if isinstance(value, list):
            return tuple(str(item).strip() for item in value if str(item).strip())
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item).strip() for item in parsed if str(item).strip())
            except (json.JSONDecodeError, TypeError):
                pass
            # Comma-separated, blanks dropped
            return tuple(item.strip() for item in value.split(",") if item.strip())
        return tuple()


settings = Settings()
