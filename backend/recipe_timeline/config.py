"""
Configuration Management Module
===============================
Centralized configuration for the recipe timeline engine.

This module provides:
- Type-safe configuration via dataclasses
- Environment variable overrides (optionally loaded from a .env file)
- JSON save/load for experiment reproducibility
- Preset configurations

Core components take their configuration section explicitly and fall back to
a fresh default section, never to the global instance. The global instance
(``get_config``) only serves logging and the command-line scripts.

Usage:
    from recipe_timeline.config import AppConfig, SegmentationConfig

    config = AppConfig()
    config.segmentation.min_segment_duration = 2.0

    # Or from the environment
    config = load_environment_config()
"""

from dataclasses import dataclass, field
from typing import Optional
import os
import json
import logging

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "RECIPE_TIMELINE_"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================

@dataclass
class ClassifierConfig:
    """
    Confidence gating for the label classifier.

    A label below its category's threshold is never placed in that
    category, even when its name matches the vocabulary.
    """

    ingredient_threshold: float = 60.0
    tool_threshold: float = 65.0
    action_threshold: float = 70.0

    # High-density (short-form) mode lowers every threshold by this offset
    # and enables the secondary keyword lists
    high_density_mode: bool = False
    high_density_offset: float = 15.0

    # Shortest side allowed in a substring match ("pan" in "saucepan")
    min_match_length: int = 3

    # Inferred actions sit this far below the action threshold
    inferred_action_margin: float = 5.0
    max_related_ingredients: int = 3

    def thresholds(self, high_density: bool = False) -> dict:
        """Effective per-category thresholds."""
        offset = self.high_density_offset if high_density else 0.0
        return {
            "ingredient": self.ingredient_threshold - offset,
            "tool": self.tool_threshold - offset,
            "action": self.action_threshold - offset,
        }


@dataclass
class SegmentationConfig:
    """Parameters for action-continuity segmentation."""

    # Maximum gap (seconds) between frames of one continuous action
    action_continuity_threshold: float = 5.0

    # Segments shorter than this are dropped, never split
    min_segment_duration: float = 3.0

    # Ingredients/tools must reach this confidence to enter a segment
    content_confidence_threshold: float = 70.0

    # Synthetic main action for frames without any detected action
    idle_action: str = "Preparing"

    description_max_ingredients: int = 3
    description_max_tools: int = 1


@dataclass
class FusionConfig:
    """
    Cross-modal fusion parameters.

    match_strategy: 'first_match' (default) or 'best_confidence'
    step_order: 'by_confidence' (default) or 'by_time'
    """

    audio_ingredient_confidence: float = 80.0
    audio_step_confidence: float = 60.0

    # Overall confidence = base + bonuses, capped
    base_confidence: float = 50.0
    min_transcript_length: int = 100
    transcript_bonus: float = 20.0
    visual_ingredient_bonus: float = 15.0
    visual_action_bonus: float = 15.0
    max_confidence: float = 100.0

    match_strategy: str = "first_match"
    step_order: str = "by_confidence"


@dataclass
class AggregationConfig:
    """Whole-video ingredient and tool aggregation."""

    confidence_threshold: float = 70.0

    # A tool unseen for longer than this starts a new usage span
    tool_usage_gap_seconds: float = 5.0


@dataclass
class LoggingConfig:
    """Configuration for research logging."""

    experiment_name: str = "default"
    log_level: str = "INFO"
    log_decisions: bool = True

    # File output is opt-in so library use never touches the filesystem
    log_to_file: bool = False
    logs_dir: str = "logs"


@dataclass
class AppConfig:
    """
    Master configuration class that aggregates all configuration sections.
    """

    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    fusion: FusionConfig = field(default_factory=FusionConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary for serialization."""
        def convert(obj):
            if hasattr(obj, '__dataclass_fields__'):
                return {k: convert(v) for k, v in obj.__dict__.items()}
            return obj
        return convert(self)

    def save(self, filepath: str) -> None:
        """Save configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Configuration saved to {filepath}")

    @classmethod
    def from_dict(cls, data: dict) -> "AppConfig":
        """Create configuration from dictionary."""
        return cls(
            classifier=ClassifierConfig(**data.get('classifier', {})),
            segmentation=SegmentationConfig(**data.get('segmentation', {})),
            fusion=FusionConfig(**data.get('fusion', {})),
            aggregation=AggregationConfig(**data.get('aggregation', {})),
            logging=LoggingConfig(**data.get('logging', {})),
        )

    @classmethod
    def load(cls, filepath: str) -> "AppConfig":
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        logger.info(f"Configuration loaded from {filepath}")
        return cls.from_dict(data)


# =============================================================================
# GLOBAL CONFIGURATION SINGLETON
# =============================================================================

_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the global application configuration.

    Creates a default configuration on first access.

    Returns:
        The global AppConfig instance
    """
    global _config
    if _config is None:
        _config = AppConfig()
        logger.info("Initialized default application configuration")
    return _config


def set_config(config: AppConfig) -> None:
    """
    Set the global application configuration.

    Args:
        config: The AppConfig instance to use globally
    """
    global _config
    _config = config
    logger.info(f"Set global configuration (experiment: {config.logging.experiment_name})")


def reset_config() -> None:
    """Reset the global configuration to None (forces reload on next get_config)."""
    global _config
    _config = None
    logger.info("Reset global configuration")


# =============================================================================
# ENVIRONMENT VARIABLE OVERRIDES
# =============================================================================

SECTION_NAMES = ('classifier', 'segmentation', 'fusion', 'aggregation', 'logging')


def apply_environment_overrides(config: AppConfig, environ: Optional[dict] = None) -> AppConfig:
    """
    Apply environment variable overrides to configuration.

    Environment variables follow the pattern:
    RECIPE_TIMELINE_{SECTION}_{KEY}

    Examples:
        RECIPE_TIMELINE_SEGMENTATION_MIN_SEGMENT_DURATION=2.5
        RECIPE_TIMELINE_FUSION_STEP_ORDER=by_time
        RECIPE_TIMELINE_CLASSIFIER_HIGH_DENSITY_MODE=true

    Args:
        config: Base configuration to override
        environ: Mapping to read instead of os.environ

    Returns:
        Configuration with environment overrides applied
    """
    environ = os.environ if environ is None else environ

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        parts = key[len(ENV_PREFIX):].lower().split('_', 1)
        if len(parts) != 2:
            continue

        section, attr = parts
        if section not in SECTION_NAMES:
            continue

        section_config = getattr(config, section)
        if not hasattr(section_config, attr):
            continue

        # Convert value to appropriate type
        current_value = getattr(section_config, attr)
        try:
            if isinstance(current_value, bool):
                typed_value = value.lower() in ('true', '1', 'yes')
            elif isinstance(current_value, int):
                typed_value = int(value)
            elif isinstance(current_value, float):
                typed_value = float(value)
            else:
                typed_value = value

            setattr(section_config, attr, typed_value)
            logger.info(f"Environment override: {section}.{attr} = {typed_value}")

        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to apply environment override {key}: {e}")

    return config


def load_environment_config(
    dotenv_path: Optional[str] = None,
    base: Optional[AppConfig] = None
) -> AppConfig:
    """
    Build a configuration from a .env file plus the process environment.

    Args:
        dotenv_path: Explicit .env path (default: search from the working directory)
        base: Configuration to override (default: a fresh AppConfig)
    """
    loaded = load_dotenv(dotenv_path=dotenv_path)
    if loaded:
        logger.info(f"Loaded environment file: {dotenv_path or '.env'}")
    return apply_environment_overrides(base or AppConfig())


# =============================================================================
# PRESET CONFIGURATIONS FOR COMMON SCENARIOS
# =============================================================================

def get_development_config() -> AppConfig:
    """Get configuration optimized for development."""
    config = AppConfig()
    config.logging.log_level = "DEBUG"
    return config


def get_research_config(experiment_name: str) -> AppConfig:
    """Get configuration optimized for research experiments."""
    config = AppConfig()
    config.logging.experiment_name = experiment_name
    config.logging.log_decisions = True
    config.logging.log_level = "DEBUG"
    return config


def get_short_form_config() -> AppConfig:
    """Get configuration for short, information-dense videos."""
    config = AppConfig()
    config.classifier.high_density_mode = True
    return config
