"""
Research Logging Tests
======================
Tests for formatters, logger factories and the decision/stage helpers.
"""

import json
import logging
import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import Mock

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from recipe_timeline.config import AppConfig, reset_config, set_config
from recipe_timeline.logging_config import (
    ConsoleFormatter,
    StructuredFormatter,
    get_pipeline_logger,
    get_research_logger,
    log_pipeline_decision,
    log_stage_complete,
    log_stage_error,
    log_stage_start,
    read_log_file,
)


def create_record(message="Segmented frames", **extra) -> logging.LogRecord:
    record = logging.makeLogRecord({
        "name": "research.segmentation",
        "levelname": "INFO",
        "levelno": logging.INFO,
        "msg": message,
    })
    record.__dict__.update(extra)
    return record


def test_structured_formatter():
    """Test JSON output with extra fields."""
    output = StructuredFormatter().format(create_record(segment_count=4))
    data = json.loads(output)

    assert data["level"] == "INFO"
    assert data["logger"] == "research.segmentation"
    assert data["message"] == "Segmented frames"
    assert data["segment_count"] == 4
    assert "timestamp" in data

    print("[PASS] Structured formatter test passed")


def test_console_formatter():
    """Test the human-readable format."""
    output = ConsoleFormatter(use_colors=False).format(create_record(segment_count=4))

    assert output.startswith("[INFO] research.segmentation: Segmented frames")
    assert "segment_count=4" in output

    print("[PASS] Console formatter test passed")


def test_logger_cache():
    """Test that research loggers are created once per name."""
    first = get_research_logger("test_cache")
    second = get_research_logger("test_cache")

    assert first is second
    assert first.name == "research.test_cache"
    assert first.propagate is False

    adapter = get_pipeline_logger("run123")
    assert isinstance(adapter, logging.LoggerAdapter)
    assert adapter.extra == {"run_id": "run123"}

    print("[PASS] Logger cache test passed")


def test_log_pipeline_decision():
    """Test decision logging and the decision switch."""
    logger = Mock()
    log_pipeline_decision("step_order", {"order": "by_time"}, run_id="abc", logger=logger)

    logger.info.assert_called_once()
    args, kwargs = logger.info.call_args
    assert args[0] == "Decision: step_order"
    assert kwargs["extra"] == {
        "decision_type": "step_order",
        "details": {"order": "by_time"},
        "run_id": "abc",
    }

    config = AppConfig()
    config.logging.log_decisions = False
    set_config(config)
    try:
        silent = Mock()
        log_pipeline_decision("step_order", {}, logger=silent)
        silent.info.assert_not_called()
    finally:
        reset_config()

    print("[PASS] Decision logging test passed")


def test_stage_helpers():
    """Test stage start/complete/error events."""
    logger = Mock()

    log_stage_start("fusion", "run1", {"segments": 2}, logger=logger)
    assert logger.info.call_args[1]["extra"]["event"] == "stage_start"

    log_stage_complete("fusion", "run1", 0.25, "2 steps", logger=logger)
    extra = logger.info.call_args[1]["extra"]
    assert extra["event"] == "stage_complete"
    assert extra["output_summary"] == "2 steps"

    log_stage_error("fusion", "run1", "boom", 0.1, logger=logger)
    extra = logger.error.call_args[1]["extra"]
    assert extra["event"] == "stage_error"
    assert extra["error"] == "boom"

    print("[PASS] Stage helper test passed")


def test_file_logging():
    """Test opt-in JSONL file output and reading it back."""
    with tempfile.TemporaryDirectory() as tmp:
        config = AppConfig()
        config.logging.logs_dir = tmp
        set_config(config)
        try:
            logger = get_research_logger("test_file", log_to_file=True, experiment_name="exp")
            logger.info("Fused steps", extra={"step_count": 3})
            for handler in logger.handlers:
                handler.flush()

            files = list((Path(tmp) / "test_file").glob("exp_*.jsonl"))
            assert len(files) == 1
            entries = read_log_file(files[0])
        finally:
            for handler in list(logger.handlers):
                if isinstance(handler, logging.FileHandler):
                    handler.close()
                    logger.removeHandler(handler)
            reset_config()

    assert entries[-1]["message"] == "Fused steps"
    assert entries[-1]["step_count"] == 3

    print("[PASS] File logging test passed")


def run_all_tests():
    """Run all logging tests."""
    print("\n" + "="*60)
    print("RESEARCH LOGGING TESTS")
    print("="*60 + "\n")

    test_structured_formatter()
    test_console_formatter()
    test_logger_cache()
    test_log_pipeline_decision()
    test_stage_helpers()
    test_file_logging()

    print("\n" + "="*60)
    print("ALL LOGGING TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
