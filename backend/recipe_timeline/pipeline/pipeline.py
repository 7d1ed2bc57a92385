"""
Timeline Pipeline Module
========================
Main pipeline class that composes and runs all stages.

Usage:
    from recipe_timeline.pipeline import TimelinePipeline, build_integrated_timeline

    # One call
    timeline = build_integrated_timeline(transcript, frame_signals)

    # With custom config
    from recipe_timeline.config import get_short_form_config
    timeline = TimelinePipeline().run(transcript, frame_signals,
                                      config=get_short_form_config())

    # Starting from raw labeler output
    timeline = build_timeline_from_detections(transcript, frame_detections)

    # Run specific stages only
    timeline = TimelinePipeline().run(
        transcript, frame_signals,
        stage_names=["audio_signals", "ingredient_aggregation", "output"]
    )
"""

import time
from typing import Any, Callable, List, Optional, Sequence

from .context import PipelineContext
from .base import PipelineStage
from .stages import (
    FrameSignalStage,
    AudioSignalStage,
    IngredientAggregationStage,
    SegmentationStage,
    FusionStage,
    PhaseIdentificationStage,
    ProgressionStage,
    OutputStage,
)
from ..config import AppConfig
from ..logging_config import get_pipeline_logger, get_research_logger
from ..models import FrameDetections, FrameSignal, IntegratedTimeline
from ..vocabulary import DEFAULT_VOCABULARY, Vocabulary

logger = get_research_logger("pipeline")


def _as_frame_list(frames: Any, argument: str, model) -> List:
    """Validate a frame sequence and convert dict fixtures to models."""
    if not isinstance(frames, (list, tuple)):
        raise TypeError(
            f"{argument} must be a list, got {type(frames).__name__}"
        )
    converted = []
    for index, frame in enumerate(frames):
        if isinstance(frame, dict):
            frame = model.from_dict(frame)
        elif not isinstance(frame, model):
            raise TypeError(
                f"{argument}[{index}] must be a {model.__name__} or dict, "
                f"got {type(frame).__name__}"
            )
        converted.append(frame)
    return converted


class TimelinePipeline:
    """
    Main pipeline for building an IntegratedTimeline.

    Composes multiple stages and runs them in sequence.
    Supports:
    - Running the full pipeline
    - Running specific stages only
    - Custom configurations and vocabularies
    - Progress callbacks
    """

    def __init__(self, stages: Optional[List[PipelineStage]] = None):
        """
        Initialize the pipeline.

        Args:
            stages: List of stage instances to use. If None, uses default stages.
        """
        if stages is None:
            self.stages = [
                FrameSignalStage(),
                AudioSignalStage(),
                IngredientAggregationStage(),
                SegmentationStage(),
                FusionStage(),
                PhaseIdentificationStage(),
                ProgressionStage(),
                OutputStage(),
            ]
        else:
            self.stages = stages

    def run(
        self,
        transcript: str,
        frame_signals: Optional[Sequence[FrameSignal]] = None,
        frame_detections: Optional[Sequence[FrameDetections]] = None,
        config: Optional[AppConfig] = None,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY,
        high_density: Optional[bool] = None,
        stage_names: Optional[List[str]] = None,
        stop_on_failure: bool = True,
        progress_callback: Optional[Callable[[str, int, int], None]] = None
    ) -> IntegratedTimeline:
        """
        Build a timeline.

        Args:
            transcript: Transcript text ("" for none)
            frame_signals: Classified frame signals (FrameSignal or dicts)
            frame_detections: Raw detections (FrameDetections or dicts);
                classified into frame signals when given
            config: Configuration to use. If None, uses a default AppConfig.
            vocabulary: Keyword tables
            high_density: Overrides ClassifierConfig.high_density_mode
            stage_names: List of stage names to run. If None, runs all stages.
            stop_on_failure: Whether to stop if a stage fails.
            progress_callback: Optional callback(stage_name, stage_index, total_stages)

        Returns:
            The IntegratedTimeline

        Raises:
            TypeError: If transcript is not a string or frames are not a list
            RuntimeError: If a stage fails and stop_on_failure is True
        """
        if not isinstance(transcript, str):
            raise TypeError(f"transcript must be a string, got {type(transcript).__name__}")
        if frame_detections is not None:
            frame_detections = _as_frame_list(frame_detections, "frame_detections", FrameDetections)
            frame_signals = []
        else:
            frame_signals = _as_frame_list(frame_signals, "frame_signals", FrameSignal)

        context = PipelineContext(
            transcript=transcript,
            frame_signals=frame_signals,
            frame_detections=frame_detections,
            config=config or AppConfig(),
            vocabulary=vocabulary,
            high_density=high_density,
        )
        run_logger = get_pipeline_logger(context.run_id)

        frame_count = len(frame_detections) if frame_detections is not None else len(frame_signals)
        run_logger.info(
            f"Starting timeline build: {frame_count} frames, "
            f"{len(transcript)} transcript chars"
        )
        if not frame_count and not transcript:
            run_logger.debug("Empty input; building an empty timeline")

        start_time = time.time()

        stages_to_run = self._get_stages_to_run(stage_names)
        total_stages = len(stages_to_run)

        for i, stage in enumerate(stages_to_run):
            if progress_callback:
                progress_callback(stage.name, i + 1, total_stages)

            success = stage.run(context)

            if not success and stop_on_failure:
                error_msg = f"Pipeline failed at stage: {stage.name}"
                run_logger.error(error_msg)
                raise RuntimeError(error_msg)

        total_time = time.time() - start_time
        run_logger.info(f"Pipeline completed in {total_time:.3f}s")

        if context.timeline is None:
            context.finalize()

        return context.timeline

    def _get_stages_to_run(
        self,
        stage_names: Optional[List[str]] = None
    ) -> List[PipelineStage]:
        """Get the list of stages to run."""
        if stage_names is None:
            return self.stages

        # Filter to requested stages, maintaining order
        name_set = set(stage_names)
        return [stage for stage in self.stages if stage.name in name_set]

    def get_stage(self, name: str) -> Optional[PipelineStage]:
        """Get a stage by name."""
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    @property
    def stage_names(self) -> List[str]:
        """Get list of all stage names in order."""
        return [stage.name for stage in self.stages]


def build_integrated_timeline(
    transcript: str,
    frame_signals: Sequence[FrameSignal],
    config: Optional[AppConfig] = None,
    high_density: Optional[bool] = None,
    vocabulary: Vocabulary = DEFAULT_VOCABULARY
) -> IntegratedTimeline:
    """
    Build the IntegratedTimeline for one video.

    Pure with respect to its inputs: equal arguments give equal timelines.

    Args:
        transcript: Transcript text ("" for none)
        frame_signals: Classified frame signals (FrameSignal or dicts), any order
        config: Configuration to use. If None, uses a default AppConfig.
        high_density: Overrides ClassifierConfig.high_density_mode
        vocabulary: Keyword tables

    Returns:
        IntegratedTimeline
    """
    if frame_signals is None:
        raise TypeError("frame_signals must be a list, got NoneType")
    return TimelinePipeline().run(
        transcript,
        frame_signals=frame_signals,
        config=config,
        vocabulary=vocabulary,
        high_density=high_density,
    )


def build_timeline_from_detections(
    transcript: str,
    frame_detections: Sequence[FrameDetections],
    config: Optional[AppConfig] = None,
    high_density: Optional[bool] = None,
    vocabulary: Vocabulary = DEFAULT_VOCABULARY
) -> IntegratedTimeline:
    """Like build_integrated_timeline, starting from raw labeler detections."""
    if frame_detections is None:
        raise TypeError("frame_detections must be a list, got NoneType")
    return TimelinePipeline().run(
        transcript,
        frame_detections=frame_detections,
        config=config,
        vocabulary=vocabulary,
        high_density=high_density,
    )
