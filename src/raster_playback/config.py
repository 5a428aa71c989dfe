"""
Raster Playback Configuration
=============================

This module handles configuration loading for the playback engine.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    RASTER_PLAYBACK_SOURCE_ROOT      -> addressing.root
    RASTER_PLAYBACK_INTERVAL_MINUTES -> addressing.interval_minutes
    RASTER_PLAYBACK_PROBE_BACKEND    -> probe.backend
    RASTER_PLAYBACK_BATCH_SIZE       -> probe.batch_size
    RASTER_PLAYBACK_PROBE_TIMEOUT    -> probe.timeout_seconds
    RASTER_PLAYBACK_SPEED_MS         -> playback.speed_ms
    RASTER_PLAYBACK_FRAME_COUNT      -> session.default_frame_count
    RASTER_PLAYBACK_MAX_FRAME_COUNT  -> session.max_frame_count
    RASTER_PLAYBACK_PORT             -> server.port
    RASTER_PLAYBACK_LOG_LEVEL        -> logging.level
    PORT                             -> server.port (Cloud Run)

Example:
    from raster_playback.config import settings

    print(settings.addressing.root)
    print(settings.probe.batch_size)
    print(settings.playback.speed_ms)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from raster_playback.models.layer import LayerStyle


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="raster-playback", description="Service name")
    version: str = Field(default="v0.1.0", description="API version")


class AddressingConfig(BaseModel):
    """Frame locator construction."""

    root: str = Field(
        default="https://tmrwwxappspuma.blob.core.windows.net/prod-chimp-inference-viz/GOES_EAST_FD/",
        description="Resource namespace prepended to every rendered path",
    )
    path_template: str = Field(
        default="{year}/{month}/{day}/{hour}/{year}{month}{day}_{hour}{minute}Z.zarrpyramid",
        description="Positional path template with zero-padded date fields",
    )
    interval_minutes: int = Field(
        default=10,
        ge=1,
        le=60,
        description="Spacing between consecutive frames in minutes",
    )


class ProbeConfig(BaseModel):
    """Availability probe configuration."""

    backend: str = Field(
        default="http",
        description="Existence check backend: 'http' or 'mock'",
    )
    batch_size: int = Field(
        default=3,
        ge=1,
        description="Number of existence checks in flight at once",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-check timeout",
    )
    probe_suffix: str = Field(
        default="/.zmetadata",
        description="Suffix appended to a locator to form the checked URL",
    )
    mock_missing: List[str] = Field(
        default_factory=list,
        description="Locators the mock backend reports as missing",
    )


class PlaybackConfig(BaseModel):
    """Playback timing configuration."""

    speed_ms: int = Field(
        default=1500,
        gt=0,
        description="Milliseconds between frames",
    )
    min_speed_ms: int = Field(default=100, gt=0, description="Shortest accepted interval")
    max_speed_ms: int = Field(default=3000, gt=0, description="Longest accepted interval")

    @model_validator(mode="after")
    def _check_bounds(self) -> "PlaybackConfig":
        if self.min_speed_ms > self.max_speed_ms:
            raise ValueError("min_speed_ms must not exceed max_speed_ms")
        return self


class SessionConfig(BaseModel):
    """Session trigger configuration."""

    default_frame_count: int = Field(
        default=72,
        ge=1,
        description="Frames probed when no explicit end is supplied (12h at 10 min)",
    )
    max_frame_count: int = Field(
        default=1008,
        ge=1,
        description="Largest range accepted from outside input (7 days at 10 min)",
    )
    default_lag_hours: float = Field(
        default=14.0,
        ge=0,
        description="Hours subtracted from now to pick the default base time",
    )
    default_wait_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Wait for an explicit range before using the default",
    )
    autostart: bool = Field(
        default=True,
        description="Arm the default trigger when the service starts",
    )

    @model_validator(mode="after")
    def _check_counts(self) -> "SessionConfig":
        if self.default_frame_count > self.max_frame_count:
            raise ValueError("default_frame_count must not exceed max_frame_count")
        return self


def _default_layers() -> List[LayerStyle]:
    return [
        LayerStyle(
            name="difference",
            variable="precip_rate",
            colormap="redteal",
            opacity=0.75,
            clim=(-1.0, 1.0),
            selector={"tms_denial_flag": [0, 1]},
        ),
        LayerStyle(
            name="swath",
            variable="tms_swath",
            colormap="wind",
            opacity=0.4,
            clim=(0.0, 0.5),
            selector={"tms_denial_flag": [0]},
        ),
    ]


class DisplayConfig(BaseModel):
    """Layers handed to the rendering surface for every frame."""

    layers: List[LayerStyle] = Field(default_factory=_default_layers)


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")
    push_interval_seconds: float = Field(
        default=0.25,
        gt=0,
        description="Poll interval for the active-frame WebSocket feed",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the playback engine.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    addressing: AddressingConfig = Field(default_factory=AddressingConfig)
    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        if env_path := os.environ.get("RASTER_PLAYBACK_CONFIG"):
            config_path = env_path
        else:
            search_paths = [
                Path("config.yaml"),
                Path("config.yml"),
                Path(__file__).parent.parent.parent / "config.yaml",
            ]
            for path in search_paths:
                if path.exists():
                    config_path = str(path)
                    break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Addressing
    if env_root := os.environ.get("RASTER_PLAYBACK_SOURCE_ROOT"):
        config_data.setdefault("addressing", {})["root"] = env_root
    if env_interval := os.environ.get("RASTER_PLAYBACK_INTERVAL_MINUTES"):
        config_data.setdefault("addressing", {})["interval_minutes"] = int(env_interval)

    # Probe
    if env_backend := os.environ.get("RASTER_PLAYBACK_PROBE_BACKEND"):
        config_data.setdefault("probe", {})["backend"] = env_backend
    if env_batch := os.environ.get("RASTER_PLAYBACK_BATCH_SIZE"):
        config_data.setdefault("probe", {})["batch_size"] = int(env_batch)
    if env_timeout := os.environ.get("RASTER_PLAYBACK_PROBE_TIMEOUT"):
        config_data.setdefault("probe", {})["timeout_seconds"] = float(env_timeout)

    # Playback and session
    if env_speed := os.environ.get("RASTER_PLAYBACK_SPEED_MS"):
        config_data.setdefault("playback", {})["speed_ms"] = int(env_speed)
    if env_count := os.environ.get("RASTER_PLAYBACK_FRAME_COUNT"):
        config_data.setdefault("session", {})["default_frame_count"] = int(env_count)
    if env_max := os.environ.get("RASTER_PLAYBACK_MAX_FRAME_COUNT"):
        config_data.setdefault("session", {})["max_frame_count"] = int(env_max)

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("RASTER_PLAYBACK_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    if env_log := os.environ.get("RASTER_PLAYBACK_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

settings = load_config()
setup_logging(settings)
