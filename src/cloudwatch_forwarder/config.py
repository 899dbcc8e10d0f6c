"""
Configuration management.

Uses Pydantic Settings for environment variable handling and validation,
with an optional YAML file supplying defaults.
"""

import json
import os
import yaml
from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        # Relative to the working directory unless CWFORWARD_CONFIG_FILE is set
        config_path = os.environ.get("CWFORWARD_CONFIG_FILE", "config.yaml")

    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
            return config_data
    return {}


class DestinationSettings(BaseSettings):
    """Log-ingestion endpoint configuration."""

    source_token: str = Field(default="", description="Bearer token sent with every batch")
    ingestion_url: str = Field(
        default="https://in.logs.betterstack.com",
        description="Ingestion endpoint receiving the JSON array of records"
    )
    timeout_seconds: int = Field(default=30, description="Request timeout")
    user_agent: str = Field(default="cloudwatch-forwarder/0.1.0", description="User-Agent header")

    class Config:
        env_prefix = "CWFORWARD_DESTINATION_"


class TransformSettings(BaseSettings):
    """Record classification and enrichment configuration."""

    source_name: str = Field(default="cloudwatch", description="Identifier written into every record")
    source_field: str = Field(default="api_name", description="Record key that receives source_name")
    skip_markers: List[str] = Field(
        default=["RequestId:"],
        description="Messages containing any of these substrings are dropped"
    )
    skip_control_messages: bool = Field(default=True, description="Drop CONTROL_MESSAGE envelopes")
    include_cloudwatch_metadata: bool = Field(
        default=False,
        description="Attach log group, stream, id and timestamp under a 'cloudwatch' key"
    )

    @field_validator("skip_markers", mode="before")
    def parse_skip_markers(cls, v: Any) -> List[str]:
        """Accept a JSON list or a comma-separated string."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
            except json.JSONDecodeError:
                return [marker.strip() for marker in v.split(",") if marker.strip()]
            if isinstance(parsed, list):
                return [str(marker) for marker in parsed]
            return [str(parsed)]
        return v

    class Config:
        env_prefix = "CWFORWARD_TRANSFORM_"


class Settings(BaseSettings):
    """Main application settings."""

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Log level")

    # Component settings
    destination: DestinationSettings = Field(default_factory=DestinationSettings)
    transform: TransformSettings = Field(default_factory=TransformSettings)

    class Config:
        env_prefix = "CWFORWARD_"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with config file and env support."""

    config_data = load_config_file()

    # Config file provides defaults, env vars override
    if config_data:
        _set_env_from_config(config_data)

    return Settings()


def _set_env_from_config(config_data: Dict[str, Any]) -> None:
    """Set environment variables from config file if not already set."""
    mappings = {
        ("server", "host"): "CWFORWARD_HOST",
        ("server", "port"): "CWFORWARD_PORT",
        ("server", "debug"): "CWFORWARD_DEBUG",
        ("server", "log_level"): "CWFORWARD_LOG_LEVEL",
        ("destination", "source_token"): "CWFORWARD_DESTINATION_SOURCE_TOKEN",
        ("destination", "ingestion_url"): "CWFORWARD_DESTINATION_INGESTION_URL",
        ("destination", "timeout_seconds"): "CWFORWARD_DESTINATION_TIMEOUT_SECONDS",
        ("destination", "user_agent"): "CWFORWARD_DESTINATION_USER_AGENT",
        ("transform", "source_name"): "CWFORWARD_TRANSFORM_SOURCE_NAME",
        ("transform", "source_field"): "CWFORWARD_TRANSFORM_SOURCE_FIELD",
        ("transform", "skip_control_messages"): "CWFORWARD_TRANSFORM_SKIP_CONTROL_MESSAGES",
        ("transform", "include_cloudwatch_metadata"): "CWFORWARD_TRANSFORM_INCLUDE_CLOUDWATCH_METADATA",
    }

    for (section, key), env_var in mappings.items():
        if env_var not in os.environ:
            value = (config_data.get(section) or {}).get(key)
            if value is not None:
                os.environ[env_var] = str(value)

    # Lists travel as JSON strings
    if "CWFORWARD_TRANSFORM_SKIP_MARKERS" not in os.environ:
        skip_markers = (config_data.get("transform") or {}).get("skip_markers")
        if skip_markers is not None:
            os.environ["CWFORWARD_TRANSFORM_SKIP_MARKERS"] = json.dumps(skip_markers)


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
