"""
Pipeline Stages Module
======================
Implements the individual stages of a timeline build.

Stages:
1. FrameSignalStage - Classify raw detections into frame signals (if given)
2. AudioSignalStage - Scan the transcript for mentions and candidate steps
3. IngredientAggregationStage - Whole-video ingredient records and tools
4. SegmentationStage - Action-continuity segments
5. FusionStage - Merge audio and visual signals into fused steps
6. PhaseIdentificationStage - Preparation / Cooking / Finishing phases
7. ProgressionStage - Tool usage spans, ingredient states, recipe steps
8. OutputStage - Assemble the IntegratedTimeline
"""

import logging

from .base import PipelineStage, ConditionalStage
from .context import PipelineContext
from ..fusion import CrossModalFuser
from ..segmentation import TimelineSegmenter
from ..signals import AudioSignalExtractor, FrameSignalExtractor
from ..timeline import (
    IngredientAggregator,
    PhaseIdentifier,
    ProgressionTracker,
    build_recipe_steps,
)

logger = logging.getLogger(__name__)


# =============================================================================
# STAGE 1: FRAME SIGNALS
# =============================================================================

class FrameSignalStage(ConditionalStage):
    """
    Classify raw labeler detections into frame signals.

    Reads:
        - context.frame_detections
        - context.config.classifier

    Writes:
        - context.frame_signals
    """

    @property
    def name(self) -> str:
        return "frame_signals"

    @property
    def description(self) -> str:
        return "Classify per-frame detections into ingredients, tools and actions"

    def should_run(self, context: PipelineContext) -> bool:
        """Run only when raw detections were supplied."""
        return context.frame_detections is not None

    def _execute(self, context: PipelineContext) -> None:
        extractor = FrameSignalExtractor(context.config.classifier, context.vocabulary)
        context.frame_signals = extractor.extract_all(
            context.frame_detections,
            high_density=context.effective_high_density
        )

    def _get_output_summary(self, context: PipelineContext) -> str:
        mode = "high-density" if context.effective_high_density else "normal"
        return f"{len(context.frame_signals)} frames ({mode})"


# =============================================================================
# STAGE 2: AUDIO SIGNALS
# =============================================================================

class AudioSignalStage(PipelineStage):
    """
    Reads:
        - context.transcript

    Writes:
        - context.audio_signal
    """

    @property
    def name(self) -> str:
        return "audio_signals"

    @property
    def description(self) -> str:
        return "Extract ingredient/action mentions and candidate steps from the transcript"

    def _execute(self, context: PipelineContext) -> None:
        context.audio_signal = AudioSignalExtractor(context.vocabulary).extract(context.transcript)

    def _get_output_summary(self, context: PipelineContext) -> str:
        signal = context.audio_signal
        return (
            f"{len(signal.ingredient_mentions)} ingredients, "
            f"{len(signal.candidate_steps)} candidate steps"
        )


# =============================================================================
# STAGE 3: INGREDIENT AGGREGATION
# =============================================================================

class IngredientAggregationStage(PipelineStage):
    """
    Reads:
        - context.frame_signals

    Writes:
        - context.ingredient_records
        - context.tools
    """

    @property
    def name(self) -> str:
        return "ingredient_aggregation"

    @property
    def description(self) -> str:
        return "Aggregate ingredients and tools across the whole video"

    def _execute(self, context: PipelineContext) -> None:
        aggregator = IngredientAggregator(context.config.aggregation, context.vocabulary)
        context.ingredient_records = aggregator.aggregate(context.frame_signals)
        context.tools = aggregator.aggregate_tools(context.frame_signals)

    def _get_output_summary(self, context: PipelineContext) -> str:
        return f"{len(context.ingredient_records)} ingredients, {len(context.tools)} tools"


# =============================================================================
# STAGE 4: SEGMENTATION
# =============================================================================

class SegmentationStage(PipelineStage):
    """
    Reads:
        - context.frame_signals
        - context.config.segmentation

    Writes:
        - context.segments
    """

    @property
    def name(self) -> str:
        return "segmentation"

    @property
    def description(self) -> str:
        return "Group frames into continuous-action segments"

    def _execute(self, context: PipelineContext) -> None:
        segmenter = TimelineSegmenter(context.config.segmentation, context.vocabulary)
        context.segments = segmenter.segment(context.frame_signals)

    def _get_output_summary(self, context: PipelineContext) -> str:
        return f"{len(context.segments)} segments"


# =============================================================================
# STAGE 5: FUSION
# =============================================================================

class FusionStage(PipelineStage):
    """
    Reads:
        - context.audio_signal
        - context.segments
        - context.ingredient_records
        - context.frame_signals

    Writes:
        - context.fusion_result
    """

    @property
    def name(self) -> str:
        return "fusion"

    @property
    def description(self) -> str:
        return "Merge audio and visual signals into deduplicated steps"

    def _execute(self, context: PipelineContext) -> None:
        if context.audio_signal is None:
            raise ValueError("audio signal is missing; run the audio_signals stage first")

        fuser = CrossModalFuser(
            context.config.fusion,
            context.vocabulary,
            idle_action=context.config.segmentation.idle_action
        )
        context.fusion_result = fuser.fuse(
            context.audio_signal,
            context.segments,
            context.ingredient_records,
            frame_actions=any(f.actions for f in context.frame_signals)
        )

    def _get_output_summary(self, context: PipelineContext) -> str:
        result = context.fusion_result
        return f"{len(result.steps)} steps, confidence {result.confidence:.0f}"


# =============================================================================
# STAGE 6: PHASES
# =============================================================================

class PhaseIdentificationStage(PipelineStage):
    """
    Reads:
        - context.segments

    Writes:
        - context.phases
    """

    @property
    def name(self) -> str:
        return "phases"

    @property
    def description(self) -> str:
        return "Identify preparation, cooking and finishing phases"

    def _execute(self, context: PipelineContext) -> None:
        context.phases = PhaseIdentifier(context.vocabulary).identify(context.segments)

    def _get_output_summary(self, context: PipelineContext) -> str:
        return ", ".join(p.phase.value for p in context.phases) or "no phases"


# =============================================================================
# STAGE 7: PROGRESSION
# =============================================================================

class ProgressionStage(PipelineStage):
    """
    Reads:
        - context.frame_signals
        - context.segments

    Writes:
        - context.tool_usage
        - context.ingredient_progression
        - context.recipe_steps
    """

    @property
    def name(self) -> str:
        return "progression"

    @property
    def description(self) -> str:
        return "Track tool usage and ingredient states, render recipe steps"

    def _execute(self, context: PipelineContext) -> None:
        tracker = ProgressionTracker(context.config.aggregation, context.vocabulary)
        context.tool_usage = tracker.track_tool_usage(context.frame_signals)
        context.ingredient_progression = tracker.track_ingredient_progression(
            context.frame_signals
        )
        context.recipe_steps = build_recipe_steps(context.segments, context.config.segmentation)

    def _get_output_summary(self, context: PipelineContext) -> str:
        return (
            f"{len(context.tool_usage)} tools tracked, "
            f"{len(context.recipe_steps)} recipe steps"
        )


# =============================================================================
# STAGE 8: OUTPUT
# =============================================================================

class OutputStage(PipelineStage):
    """
    Reads:
        - All context fields

    Writes:
        - context.timeline
    """

    @property
    def name(self) -> str:
        return "output"

    @property
    def description(self) -> str:
        return "Assemble the integrated timeline"

    def _execute(self, context: PipelineContext) -> None:
        context.finalize()

    def _get_output_summary(self, context: PipelineContext) -> str:
        t = context.timeline
        return (
            f"{t.total_duration:.1f}s, {len(t.ingredients)} ingredients, "
            f"{len(t.segments)} segments, {t.step_count} steps"
        )


# =============================================================================
# STAGE REGISTRY
# =============================================================================

# All available stages in execution order
ALL_STAGES = [
    FrameSignalStage,
    AudioSignalStage,
    IngredientAggregationStage,
    SegmentationStage,
    FusionStage,
    PhaseIdentificationStage,
    ProgressionStage,
    OutputStage,
]


def get_stage_by_name(name: str) -> type:
    """Get a stage class by its name."""
    for stage_class in ALL_STAGES:
        if stage_class().name == name:
            return stage_class
    raise ValueError(f"Unknown stage: {name}")
