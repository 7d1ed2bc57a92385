"""
Configuration Tests
===================
Tests for configuration defaults, persistence and environment overrides.
"""

import os
import sys
import tempfile

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from recipe_timeline.config import (
    AppConfig,
    ClassifierConfig,
    get_config,
    set_config,
    reset_config,
    apply_environment_overrides,
    load_environment_config,
    get_development_config,
    get_research_config,
    get_short_form_config,
)


def test_defaults():
    """Test the default thresholds and windows."""
    config = AppConfig()

    assert config.classifier.thresholds() == {
        "ingredient": 60.0, "tool": 65.0, "action": 70.0
    }
    assert config.classifier.thresholds(high_density=True) == {
        "ingredient": 45.0, "tool": 50.0, "action": 55.0
    }
    assert config.segmentation.action_continuity_threshold == 5.0
    assert config.segmentation.min_segment_duration == 3.0
    assert config.fusion.match_strategy == "first_match"
    assert config.fusion.step_order == "by_confidence"
    assert config.aggregation.confidence_threshold == 70.0
    assert config.logging.log_to_file is False

    print("[PASS] Defaults test passed")


def test_global_config():
    """Test the global configuration accessors."""
    reset_config()
    first = get_config()
    assert get_config() is first

    custom = get_research_config("ablation")
    set_config(custom)
    assert get_config().logging.experiment_name == "ablation"

    reset_config()
    assert get_config() is not custom
    reset_config()

    print("[PASS] Global config test passed")


def test_save_and_load():
    """Test JSON persistence of a configuration."""
    config = AppConfig()
    config.segmentation.min_segment_duration = 2.0
    config.fusion.step_order = "by_time"

    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "config.json")
        config.save(path)
        loaded = AppConfig.load(path)

    assert loaded.segmentation.min_segment_duration == 2.0
    assert loaded.fusion.step_order == "by_time"
    assert loaded.to_dict() == config.to_dict()

    print("[PASS] Save/load test passed")


def test_environment_overrides():
    """Test typed overrides from an environment mapping."""
    environ = {
        "RECIPE_TIMELINE_SEGMENTATION_MIN_SEGMENT_DURATION": "2.5",
        "RECIPE_TIMELINE_FUSION_STEP_ORDER": "by_time",
        "RECIPE_TIMELINE_CLASSIFIER_HIGH_DENSITY_MODE": "true",
        "RECIPE_TIMELINE_CLASSIFIER_MIN_MATCH_LENGTH": "4",
        "RECIPE_TIMELINE_UNKNOWN_SETTING": "1",
        "UNRELATED_VARIABLE": "x",
    }
    config = apply_environment_overrides(AppConfig(), environ)

    assert config.segmentation.min_segment_duration == 2.5
    assert config.fusion.step_order == "by_time"
    assert config.classifier.high_density_mode is True
    assert config.classifier.min_match_length == 4

    print("[PASS] Environment override test passed")


def test_invalid_override_skipped():
    """Test that an unparseable value leaves the default in place."""
    environ = {"RECIPE_TIMELINE_AGGREGATION_CONFIDENCE_THRESHOLD": "high"}
    config = apply_environment_overrides(AppConfig(), environ)

    assert config.aggregation.confidence_threshold == 70.0

    print("[PASS] Invalid override test passed")


def test_load_environment_config():
    """Test loading overrides from a .env file."""
    key = "RECIPE_TIMELINE_SEGMENTATION_ACTION_CONTINUITY_THRESHOLD"
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, ".env")
        with open(path, "w") as f:
            f.write(f"{key}=7.5\n")

        try:
            config = load_environment_config(dotenv_path=path)
        finally:
            os.environ.pop(key, None)

    assert config.segmentation.action_continuity_threshold == 7.5

    print("[PASS] .env loading test passed")


def test_presets():
    """Test preset configurations."""
    assert get_development_config().logging.log_level == "DEBUG"
    assert get_short_form_config().classifier.high_density_mode is True

    research = get_research_config("exp1")
    assert research.logging.experiment_name == "exp1"
    assert research.logging.log_decisions is True

    assert ClassifierConfig(high_density_offset=10.0).thresholds(True)["tool"] == 55.0

    print("[PASS] Presets test passed")


def run_all_tests():
    """Run all configuration tests."""
    print("\n" + "="*60)
    print("CONFIGURATION TESTS")
    print("="*60 + "\n")

    test_defaults()
    test_global_config()
    test_save_and_load()
    test_environment_overrides()
    test_invalid_override_skipped()
    test_load_environment_config()
    test_presets()

    print("\n" + "="*60)
    print("ALL CONFIGURATION TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
