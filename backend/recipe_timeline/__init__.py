"""
Recipe Timeline Engine
======================
Fuses transcript and frame-label signals from a cooking video into one
timeline: ingredients, tools, action segments, fused steps and phases.

Usage:
    from recipe_timeline import build_integrated_timeline

    timeline = build_integrated_timeline(transcript, frame_signals)
    print(timeline.to_json())
"""

from .config import AppConfig, get_config, set_config, reset_config
from .models import IntegratedTimeline
from .pipeline import (
    TimelinePipeline,
    build_integrated_timeline,
    build_timeline_from_detections,
)
from .vocabulary import DEFAULT_VOCABULARY, Vocabulary

__version__ = "0.1.0"

__all__ = [
    'AppConfig',
    'get_config',
    'set_config',
    'reset_config',
    'IntegratedTimeline',
    'TimelinePipeline',
    'build_integrated_timeline',
    'build_timeline_from_detections',
    'DEFAULT_VOCABULARY',
    'Vocabulary',
]
