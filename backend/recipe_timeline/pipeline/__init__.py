"""
Pipeline Package
================
Stage-based orchestration of a timeline build.

This package provides:
- Individual pipeline stages that can run independently
- A composed pipeline that runs all stages in sequence
- Library entry points for one-call timeline builds

Usage:
    from recipe_timeline.pipeline import build_integrated_timeline

    timeline = build_integrated_timeline(transcript, frame_signals)

    # Run individual stages
    from recipe_timeline.pipeline.stages import SegmentationStage
    stage = SegmentationStage()
    stage.run(context)
"""

from .context import PipelineContext, StageResult
from .base import PipelineStage, ConditionalStage
from .pipeline import (
    TimelinePipeline,
    build_integrated_timeline,
    build_timeline_from_detections,
)

__all__ = [
    'PipelineContext',
    'StageResult',
    'PipelineStage',
    'ConditionalStage',
    'TimelinePipeline',
    'build_integrated_timeline',
    'build_timeline_from_detections',
]
