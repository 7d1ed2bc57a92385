"""
Timeline Package
================
Whole-video views built on top of frame signals and segments.

Usage:
    from recipe_timeline.timeline import IngredientAggregator, PhaseIdentifier

    records = IngredientAggregator().aggregate(frame_signals)
    phases = PhaseIdentifier().identify(segments)
"""

from .aggregator import IngredientAggregator, total_duration
from .phases import PhaseIdentifier
from .progression import ProgressionTracker
from .recipe_steps import build_recipe_steps

__all__ = [
    'IngredientAggregator',
    'total_duration',
    'PhaseIdentifier',
    'ProgressionTracker',
    'build_recipe_steps',
]
