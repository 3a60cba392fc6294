"""
Configuration loader for the Matching module.

Loads and validates configuration from config.yaml file.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from src.matching.types import (
    DistanceMetric,
    FeatureConfig,
    LocatorConfig,
    MatchingConfig,
    MatchingOptions,
)
from src.utils.io import load_yaml

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> MatchingConfig:
    """
    Load matching configuration from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated MatchingConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid or missing required fields.

    Example:
        >>> config = load_config()
        >>> print(config.features.divide_dimensions_by)
        12.0
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading matching config from {config_path}")

    raw_config = load_yaml(config_path)

    try:
        config = _parse_config(raw_config)
        _validate_config(config)
        logger.info("Successfully loaded matching configuration")
        return config
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e


def _parse_config(raw: Dict[str, Any]) -> MatchingConfig:
    """Parse raw dictionary into structured config objects."""
    return MatchingConfig(
        locator=LocatorConfig(
            resize_if_largest_side_greater_than=int(
                raw["locator"]["resize_if_largest_side_greater_than"]
            ),
            resize_to=int(raw["locator"]["resize_to"]),
            threshold_of_range=float(raw["locator"]["threshold_of_range"]),
            sample_frames=int(raw["locator"]["sample_frames"]),
        ),
        features=FeatureConfig(
            divide_dimensions_by=float(raw["features"]["divide_dimensions_by"]),
            block_size_fraction_to_move=float(
                raw["features"]["block_size_fraction_to_move"]
            ),
        ),
        matching=MatchingOptions(
            distance_metric=DistanceMetric(str(raw["matching"]["distance_metric"])),
            max_workers=int(raw["matching"]["max_workers"]),
        ),
    )


def _validate_config(config: MatchingConfig) -> None:
    """
    Validate configuration values for logical consistency.

    Raises:
        ValueError: If any configuration value is invalid.
    """
    locator = config.locator
    if locator.resize_to < 1:
        raise ValueError("resize_to must be at least 1")

    if locator.resize_if_largest_side_greater_than < 1:
        raise ValueError("resize_if_largest_side_greater_than must be at least 1")

    if locator.resize_to > locator.resize_if_largest_side_greater_than:
        raise ValueError(
            f"resize_to ({locator.resize_to}) must not exceed "
            f"resize_if_largest_side_greater_than "
            f"({locator.resize_if_largest_side_greater_than})"
        )

    if not 0 < locator.threshold_of_range < 1:
        raise ValueError(
            f"threshold_of_range must be between 0 and 1, got {locator.threshold_of_range}"
        )

    if locator.sample_frames < 1:
        raise ValueError("sample_frames must be at least 1")

    if config.features.divide_dimensions_by <= 0:
        raise ValueError("divide_dimensions_by must be positive")

    fraction = config.features.block_size_fraction_to_move
    if not 0 < fraction <= 1:
        raise ValueError(
            f"block_size_fraction_to_move must be in (0, 1], got {fraction}"
        )

    if config.matching.max_workers < 1:
        raise ValueError("max_workers must be at least 1")

    logger.debug("Configuration validation passed")
