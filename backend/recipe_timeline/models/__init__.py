"""
Data Models Package
===================
Exports all data model classes for the recipe timeline engine.

Usage:
    from recipe_timeline.models import DetectedLabel, FrameSignal, TimelineSegment
    from recipe_timeline.models import FusedStep, IntegratedTimeline
"""

from .schemas import (
    # Enums
    LabelCategory,
    SignalSource,
    PhaseName,
    IngredientState,

    # Base
    BaseModel,

    # Detections
    DetectedLabel,
    FrameDetections,

    # Frame signals
    ClassifiedItem,
    ClassifiedAction,
    FrameSignal,

    # Audio
    CandidateStep,
    AudioSignal,

    # Segments and fusion
    TimelineSegment,
    FusedIngredient,
    FusedStep,
    FusionResult,

    # Summaries
    IngredientRecord,
    CookingPhase,
    ToolUsageSpan,
    ToolUsage,
    IngredientAppearance,
    IngredientProgression,
    RecipeStep,

    # Output
    IntegratedTimeline,
)

__all__ = [
    # Enums
    'LabelCategory',
    'SignalSource',
    'PhaseName',
    'IngredientState',

    # Base
    'BaseModel',

    # Detections
    'DetectedLabel',
    'FrameDetections',

    # Frame signals
    'ClassifiedItem',
    'ClassifiedAction',
    'FrameSignal',

    # Audio
    'CandidateStep',
    'AudioSignal',

    # Segments and fusion
    'TimelineSegment',
    'FusedIngredient',
    'FusedStep',
    'FusionResult',

    # Summaries
    'IngredientRecord',
    'CookingPhase',
    'ToolUsageSpan',
    'ToolUsage',
    'IngredientAppearance',
    'IngredientProgression',
    'RecipeStep',

    # Output
    'IntegratedTimeline',
]
