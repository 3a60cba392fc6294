"""
Unit tests for config_loader module.
"""

from pathlib import Path

import pytest
import yaml

from src.matching import DistanceMetric, MatchingConfig, load_config


def _valid_config():
    return {
        "locator": {
            "resize_if_largest_side_greater_than": 400,
            "resize_to": 300,
            "threshold_of_range": 0.5,
            "sample_frames": 5,
        },
        "features": {"divide_dimensions_by": 10, "block_size_fraction_to_move": 0.5},
        "matching": {"distance_metric": "euclidean", "max_workers": 2},
    }


def _write(tmp_path, raw) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(raw), encoding="utf-8")
    return path


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_default_config(self):
        """Test loading the default configuration file."""
        config = load_config()

        assert isinstance(config, MatchingConfig)
        assert config.locator.resize_if_largest_side_greater_than == 200
        assert config.locator.resize_to == 200
        assert config.locator.threshold_of_range == pytest.approx(2 / 3)
        assert config.features.divide_dimensions_by == 12.0
        assert config.features.block_size_fraction_to_move == 0.25
        assert config.matching.distance_metric is DistanceMetric.COSINE

    def test_default_file_matches_dataclass_defaults(self):
        """Test that config.yaml agrees with the dataclass defaults."""
        assert load_config() == MatchingConfig(), "config.yaml and dataclass defaults differ"

    def test_load_custom_config(self, tmp_path):
        """Test loading a custom configuration file."""
        config = load_config(_write(tmp_path, _valid_config()))

        assert config.locator.resize_to == 300
        assert config.locator.sample_frames == 5
        assert config.features.divide_dimensions_by == 10.0
        assert config.matching.distance_metric is DistanceMetric.EUCLIDEAN
        assert config.matching.max_workers == 2

    def test_missing_file_raises_error(self):
        """Test that missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(Path("nonexistent_config.yaml"))

    def test_missing_section(self, tmp_path):
        """Test that a missing section raises ValueError."""
        raw = _valid_config()
        del raw["features"]

        with pytest.raises(ValueError, match="Invalid configuration file"):
            load_config(_write(tmp_path, raw))

    def test_empty_file(self, tmp_path):
        """Test that an empty file raises ValueError."""
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid configuration file"):
            load_config(path)

    def test_unknown_metric(self, tmp_path):
        """Test that an unknown distance metric raises ValueError."""
        raw = _valid_config()
        raw["matching"]["distance_metric"] = "manhattan"

        with pytest.raises(ValueError, match="Invalid configuration file"):
            load_config(_write(tmp_path, raw))

    @pytest.mark.parametrize(
        "section, key, value, message",
        [
            ("locator", "resize_to", 0, "resize_to must be at least 1"),
            ("locator", "resize_to", 500, "must not exceed"),
            (
                "locator",
                "resize_if_largest_side_greater_than",
                0,
                "resize_if_largest_side_greater_than must be at least 1",
            ),
            ("locator", "threshold_of_range", 0.0, "threshold_of_range"),
            ("locator", "threshold_of_range", 1.0, "threshold_of_range"),
            ("locator", "sample_frames", 0, "sample_frames"),
            ("features", "divide_dimensions_by", 0, "divide_dimensions_by"),
            ("features", "block_size_fraction_to_move", 0, "block_size_fraction_to_move"),
            ("features", "block_size_fraction_to_move", 1.5, "block_size_fraction_to_move"),
            ("matching", "max_workers", 0, "max_workers"),
        ],
    )
    def test_invalid_values(self, tmp_path, section, key, value, message):
        """Test that out-of-range values raise ValueError."""
        raw = _valid_config()
        raw[section][key] = value

        with pytest.raises(ValueError, match=message):
            load_config(_write(tmp_path, raw))
