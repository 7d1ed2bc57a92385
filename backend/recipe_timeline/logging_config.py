"""
Research Logging System
=======================
Structured logging for timeline builds.

This module provides:
- Structured JSON logging for machine-parseable outputs
- Named research loggers for classification, segmentation, fusion and pipeline
- Opt-in JSONL files organized by logger name and experiment

Logging never changes results. By default only console handlers are
attached, so library use does not touch the filesystem.

Usage:
    from recipe_timeline.logging_config import get_research_logger, log_pipeline_decision

    logger = get_research_logger("segmentation")
    logger.info("Segmented frames", extra={"segment_count": 4})

    log_pipeline_decision("step_order", {"order": "by_confidence"})
"""

import sys
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any, Union

from .config import get_config


# Attributes every LogRecord carries; anything else came in via extra={}
_RESERVED_ATTRS = frozenset((
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
    'levelno', 'lineno', 'module', 'msecs', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info', 'exc_info', 'exc_text',
    'thread', 'threadName', 'message', 'context', 'taskName',
))


# =============================================================================
# CUSTOM FORMATTERS
# =============================================================================

class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON objects with consistent structure:
    {
        "timestamp": "2024-01-15T10:30:00.123456",
        "level": "INFO",
        "logger": "research.fusion",
        "message": "Fused 6 steps",
        "context": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, 'context') and record.context:
            log_data['context'] = record.context

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable formatter for console output.

    Format: [LEVEL] logger: message (key=value, ...)
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level = f"{self.COLORS[level]}{level}{self.RESET}"

        msg = f"[{level}] {record.name}: {record.getMessage()}"

        extras = []
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if isinstance(value, (str, int, float, bool)):
                extras.append(f"{key}={value}")
            elif isinstance(value, dict) and len(value) < 3:
                extras.append(f"{key}={value}")

        if extras:
            msg += f" ({', '.join(extras)})"

        return msg


# =============================================================================
# LOGGER FACTORY
# =============================================================================

_loggers: Dict[str, logging.Logger] = {}


def get_research_logger(
    name: str,
    log_to_file: Optional[bool] = None,
    experiment_name: Optional[str] = None
) -> logging.Logger:
    """
    Get or create a research logger.

    Args:
        name: Logger name (e.g., "classification", "segmentation", "fusion")
        log_to_file: Whether to write JSONL logs (default: LoggingConfig.log_to_file)
        experiment_name: Optional experiment name for file organization

    Returns:
        Configured logger instance
    """
    full_name = f"research.{name}"

    if full_name in _loggers:
        return _loggers[full_name]

    config = get_config().logging
    logger = logging.getLogger(full_name)
    logger.setLevel(getattr(logging, config.log_level, logging.INFO))
    logger.propagate = False

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ConsoleFormatter())
    logger.addHandler(console_handler)

    if log_to_file is None:
        log_to_file = config.log_to_file

    if log_to_file:
        exp_name = experiment_name or config.experiment_name
        log_dir = Path(config.logs_dir) / name
        log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d")
        log_file = log_dir / f"{exp_name}_{timestamp}.jsonl"

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    _loggers[full_name] = logger
    return logger


def get_pipeline_logger(run_id: Optional[str] = None) -> logging.Logger:
    """Get a logger for pipeline execution."""
    logger = get_research_logger("pipeline")
    if run_id:
        logger = logging.LoggerAdapter(logger, {'run_id': run_id})
    return logger


def get_decision_logger() -> logging.Logger:
    """Get a logger for high-level decisions."""
    return get_research_logger("decisions")


# =============================================================================
# CONVENIENCE LOGGING FUNCTIONS
# =============================================================================

def log_pipeline_decision(
    decision_type: str,
    details: Dict[str, Any],
    run_id: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log a high-level pipeline decision.

    Args:
        decision_type: Type of decision (e.g., "segment_dropped", "step_order")
        details: Decision details
        run_id: Pipeline run ID
        logger: Optional logger override
    """
    if not get_config().logging.log_decisions:
        return

    log = logger or get_decision_logger()
    extra = {
        'decision_type': decision_type,
        'details': details
    }
    if run_id:
        extra['run_id'] = run_id

    log.info(f"Decision: {decision_type}", extra=extra)


def log_stage_start(
    stage_name: str,
    run_id: str,
    input_summary: Dict[str, Any] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log the start of a pipeline stage."""
    log = logger or get_pipeline_logger(run_id)
    log.info(
        f"Starting stage: {stage_name}",
        extra={
            'stage_name': stage_name,
            'event': 'stage_start',
            'input_summary': input_summary or {}
        }
    )


def log_stage_complete(
    stage_name: str,
    run_id: str,
    duration_seconds: float,
    output_summary: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log the completion of a pipeline stage."""
    log = logger or get_pipeline_logger(run_id)
    log.info(
        f"Completed stage: {stage_name} ({duration_seconds:.3f}s)",
        extra={
            'stage_name': stage_name,
            'event': 'stage_complete',
            'duration_seconds': duration_seconds,
            'output_summary': output_summary or "completed"
        }
    )


def log_stage_error(
    stage_name: str,
    run_id: str,
    error: str,
    duration_seconds: float,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log a pipeline stage error."""
    log = logger or get_pipeline_logger(run_id)
    log.error(
        f"Stage failed: {stage_name}",
        extra={
            'stage_name': stage_name,
            'event': 'stage_error',
            'error': error,
            'duration_seconds': duration_seconds
        }
    )


# =============================================================================
# LOG FILE UTILITIES
# =============================================================================

def read_log_file(log_path: Union[str, Path]) -> list:
    """
    Read a JSONL log file and return list of log entries.

    Args:
        log_path: Path to the log file

    Returns:
        List of parsed log entry dictionaries
    """
    entries = []
    with open(log_path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
    return entries
