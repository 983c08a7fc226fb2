"""
Keyframe Extractor Configuration
================================

This module handles configuration loading for the keyframe extractor.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Preset selected by the `preset` key (default, high_motion, low_motion)
    4. Default values (lowest priority)

Environment Variable Mapping:
    KEYFRAME_CONFIG          -> path of the YAML file
    KEYFRAME_PRESET          -> preset
    KEYFRAME_SAME_MAX        -> diff.same_max
    KEYFRAME_CUT_MIN         -> diff.cut_min
    KEYFRAME_SETTLE_FRAMES   -> state.settle_frames
    KEYFRAME_COOLDOWN_FRAMES -> state.cooldown_frames
    KEYFRAME_MIN_CONFIDENCE  -> text.min_confidence
    KEYFRAME_DEDUP_CAPACITY  -> dedup.capacity
    KEYFRAME_ENCODE_FORMAT   -> encoder.format
    KEYFRAME_ENCODE_QUALITY  -> encoder.quality
    KEYFRAME_BATCH_SIZE      -> stream.batch_size
    KEYFRAME_LOG_LEVEL       -> logging.level

Example:
    from keyframe_extractor.config import load_config, setup_logging

    settings = load_config()
    setup_logging(settings)

    print(settings.diff.same_max)
    print(settings.state.cooldown_frames)
"""

import copy
import logging
import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, model_validator


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class DiffConfig(BaseModel):
    """Frame difference configuration."""

    grid_size: int = Field(
        default=16,
        ge=2,
        le=64,
        description="Side length of the block-averaged signature grid",
    )
    same_max: float = Field(
        default=0.02,
        ge=0,
        lt=1.0,
        description="Diff below this means content is unchanged",
    )
    cut_min: float = Field(
        default=0.2,
        gt=0,
        le=1.0,
        description="Diff above this declares a scene cut",
    )


class TextConfig(BaseModel):
    """Text detection configuration."""

    grid_size: int = Field(
        default=16,
        ge=1,
        le=64,
        description="Cells per side of the text classification grid",
    )
    edge_threshold: int = Field(
        default=40,
        ge=0,
        lt=510,
        description="Minimum |gx| + |gy| for an edge pixel",
    )
    cell_density_min: float = Field(
        default=0.08,
        gt=0,
        le=1.0,
        description="Edge density a cell must exceed to be text-like",
    )
    min_confidence: float = Field(
        default=0.05,
        ge=0,
        le=1.0,
        description="Frames below this confidence are never promoted",
    )


class StateConfig(BaseModel):
    """State machine configuration."""

    settle_frames: int = Field(
        default=2,
        ge=1,
        description="Run length of matching frames (reference included) to settle",
    )
    cooldown_frames: int = Field(
        default=3,
        ge=0,
        description="Frames absorbed after each emission",
    )


class DedupConfig(BaseModel):
    """Deduplication configuration."""

    capacity: int = Field(
        default=8,
        ge=1,
        description="Number of recent keyframes remembered (K)",
    )


class EncoderConfig(BaseModel):
    """Keyframe encoding configuration."""

    format: Literal["jpeg", "webp"] = Field(
        default="jpeg",
        description="Output image format",
    )
    quality: int = Field(
        default=70,
        ge=1,
        le=100,
        description="Lossy encoder quality",
    )
    crop_top_ratio: float = Field(
        default=0.0,
        ge=0,
        lt=1.0,
        description="Fraction of rows removed from the top before encoding",
    )
    crop_bottom_ratio: float = Field(
        default=0.0,
        ge=0,
        lt=1.0,
        description="Fraction of rows removed from the bottom before encoding",
    )


class StreamConfig(BaseModel):
    """Stream processor configuration."""

    batch_size: int = Field(
        default=30,
        ge=1,
        description="Frames per process_batch call",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the keyframe extractor.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    diff: DiffConfig = Field(default_factory=DiffConfig)
    text: TextConfig = Field(default_factory=TextConfig)
    state: StateConfig = Field(default_factory=StateConfig)
    dedup: DedupConfig = Field(default_factory=DedupConfig)
    encoder: EncoderConfig = Field(default_factory=EncoderConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def _check_consistency(self) -> "Settings":
        if self.diff.same_max >= self.diff.cut_min:
            raise ValueError(
                f"diff.same_max ({self.diff.same_max}) must be below "
                f"diff.cut_min ({self.diff.cut_min})"
            )
        if self.encoder.crop_top_ratio + self.encoder.crop_bottom_ratio >= 1.0:
            raise ValueError("encoder crop ratios must sum to less than 1")
        return self

    @classmethod
    def for_preset(cls, name: str) -> "Settings":
        """
        Build settings from a named preset.

        Args:
            name: "default", "high_motion" or "low_motion"

        Raises:
            ValueError: If the preset is unknown
        """
        return cls.model_validate(_preset_data(name))


# =============================================================================
# Presets
# =============================================================================

PRESETS = {
    "default": {},
    # Fast-moving footage: tolerate more noise, re-arm sooner
    "high_motion": {
        "diff": {"same_max": 0.03},
        "state": {"settle_frames": 2, "cooldown_frames": 2},
        "dedup": {"capacity": 10},
    },
    # Slides and static shots: demand longer stability, fewer repeats
    "low_motion": {
        "diff": {"same_max": 0.015},
        "state": {"settle_frames": 3, "cooldown_frames": 5},
        "dedup": {"capacity": 6},
    },
}


def _preset_data(name: str) -> dict:
    if name not in PRESETS:
        raise ValueError(f"Unknown preset {name!r}, expected one of {sorted(PRESETS)}")
    return copy.deepcopy(PRESETS[name])


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base recursively (override wins)."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Preset
        4. Default values

    Args:
        config_path: Path to config.yaml. If None, uses KEYFRAME_CONFIG
            or searches the working directory.

    Returns:
        Settings: Loaded configuration
    """
    # Find config file
    if config_path is None:
        config_path = os.environ.get("KEYFRAME_CONFIG")
    if config_path is None:
        for path in (Path("config.yaml"), Path("config.yml")):
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    # Layer file values over the selected preset
    preset = config_data.pop("preset", None) or "default"
    config_data = _deep_merge(_preset_data(preset), config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    if env_preset := os.environ.get("KEYFRAME_PRESET"):
        config_data["preset"] = env_preset

    # Diff settings
    if env_same := os.environ.get("KEYFRAME_SAME_MAX"):
        config_data.setdefault("diff", {})["same_max"] = float(env_same)
    if env_cut := os.environ.get("KEYFRAME_CUT_MIN"):
        config_data.setdefault("diff", {})["cut_min"] = float(env_cut)

    # State settings
    if env_settle := os.environ.get("KEYFRAME_SETTLE_FRAMES"):
        config_data.setdefault("state", {})["settle_frames"] = int(env_settle)
    if env_cooldown := os.environ.get("KEYFRAME_COOLDOWN_FRAMES"):
        config_data.setdefault("state", {})["cooldown_frames"] = int(env_cooldown)

    # Text settings
    if env_conf := os.environ.get("KEYFRAME_MIN_CONFIDENCE"):
        config_data.setdefault("text", {})["min_confidence"] = float(env_conf)

    # Dedup settings
    if env_capacity := os.environ.get("KEYFRAME_DEDUP_CAPACITY"):
        config_data.setdefault("dedup", {})["capacity"] = int(env_capacity)

    # Encoder settings
    if env_format := os.environ.get("KEYFRAME_ENCODE_FORMAT"):
        config_data.setdefault("encoder", {})["format"] = env_format
    if env_quality := os.environ.get("KEYFRAME_ENCODE_QUALITY"):
        config_data.setdefault("encoder", {})["quality"] = int(env_quality)

    # Stream settings
    if env_batch := os.environ.get("KEYFRAME_BATCH_SIZE"):
        config_data.setdefault("stream", {})["batch_size"] = int(env_batch)

    # Logging settings
    if env_log := os.environ.get("KEYFRAME_LOG_LEVEL"):
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
