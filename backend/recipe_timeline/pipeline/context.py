"""
Pipeline Context Module
=======================
Defines the shared context that flows through all pipeline stages.

The PipelineContext holds:
- Inputs (transcript, frame signals or raw detections, configuration)
- Intermediate results (audio signal, ingredient records, segments, fusion)
- The final IntegratedTimeline
- Execution metadata (run id, per-stage timing and status)

A context belongs to exactly one timeline build, so concurrent builds for
different videos never share state.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, List

from ..config import AppConfig
from ..models import (
    AudioSignal,
    CookingPhase,
    FrameDetections,
    FrameSignal,
    FusionResult,
    IngredientProgression,
    IngredientRecord,
    IntegratedTimeline,
    RecipeStep,
    TimelineSegment,
    ToolUsage,
)
from ..timeline import total_duration
from ..vocabulary import DEFAULT_VOCABULARY, Vocabulary

logger = logging.getLogger(__name__)


def generate_run_id(prefix: str = "timeline") -> str:
    """Generate a unique run ID for log correlation."""
    content = f"{prefix}_{datetime.now().isoformat()}"
    return hashlib.md5(content.encode()).hexdigest()[:16]


@dataclass
class StageResult:
    """Result of a single pipeline stage execution."""
    stage_name: str
    success: bool
    duration_seconds: float
    error_message: Optional[str] = None
    output_summary: Optional[str] = None


@dataclass
class PipelineContext:
    """
    Shared context that flows through all pipeline stages.

    Each stage reads what it needs and writes its outputs.

    Attributes:
        # Inputs
        transcript: Transcript text ("" when the video has no speech)
        frame_signals: Classified frame signals
        frame_detections: Raw labeler output; when set, the frame signal
            stage classifies it into frame_signals
        config: Configuration for this run
        vocabulary: Keyword tables for this run
        high_density: Overrides ClassifierConfig.high_density_mode

        # Intermediate results
        audio_signal, ingredient_records, tools, segments, fusion_result,
        phases, tool_usage, ingredient_progression, recipe_steps

        # Final output
        timeline: The assembled IntegratedTimeline

        # Execution tracking
        run_id, stage_results, started_at, completed_at
    """

    # Inputs
    transcript: str = ""
    frame_signals: List[FrameSignal] = field(default_factory=list)
    frame_detections: Optional[List[FrameDetections]] = None
    config: AppConfig = field(default_factory=AppConfig)
    vocabulary: Vocabulary = DEFAULT_VOCABULARY
    high_density: Optional[bool] = None

    # Intermediate results
    audio_signal: Optional[AudioSignal] = None
    ingredient_records: Dict[str, IngredientRecord] = field(default_factory=dict)
    tools: List[str] = field(default_factory=list)
    segments: List[TimelineSegment] = field(default_factory=list)
    fusion_result: Optional[FusionResult] = None
    phases: List[CookingPhase] = field(default_factory=list)
    tool_usage: List[ToolUsage] = field(default_factory=list)
    ingredient_progression: List[IngredientProgression] = field(default_factory=list)
    recipe_steps: List[RecipeStep] = field(default_factory=list)

    # Final output
    timeline: Optional[IntegratedTimeline] = None

    # Execution tracking
    run_id: str = field(default_factory=generate_run_id)
    stage_results: List[StageResult] = field(default_factory=list)
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    def __post_init__(self):
        self.started_at = datetime.now().isoformat()

    @property
    def effective_high_density(self) -> bool:
        if self.high_density is None:
            return self.config.classifier.high_density_mode
        return self.high_density

    @property
    def total_duration_seconds(self) -> float:
        """Get total pipeline execution time."""
        return sum(r.duration_seconds for r in self.stage_results)

    @property
    def successful_stages(self) -> List[str]:
        return [r.stage_name for r in self.stage_results if r.success]

    @property
    def failed_stages(self) -> List[str]:
        return [r.stage_name for r in self.stage_results if not r.success]

    @property
    def is_complete(self) -> bool:
        """Check if pipeline completed without failures."""
        return len(self.failed_stages) == 0 and self.timeline is not None

    def record_stage(
        self,
        stage_name: str,
        success: bool,
        duration: float,
        error: Optional[str] = None,
        summary: Optional[str] = None
    ) -> None:
        """Record the result of a stage execution."""
        self.stage_results.append(StageResult(
            stage_name=stage_name,
            success=success,
            duration_seconds=duration,
            error_message=error,
            output_summary=summary
        ))

        if success:
            logger.info(f"Stage '{stage_name}' completed in {duration:.3f}s: {summary or 'OK'}")
        else:
            logger.error(f"Stage '{stage_name}' failed after {duration:.3f}s: {error}")

    def finalize(self) -> IntegratedTimeline:
        """
        Assemble the IntegratedTimeline from whatever the stages produced.

        Missing intermediates become empty collections, so a partial run
        still yields a valid (sparse) timeline.
        """
        self.completed_at = datetime.now().isoformat()
        fusion = self.fusion_result or FusionResult()

        self.timeline = IntegratedTimeline(
            total_duration=total_duration(self.frame_signals),
            ingredients=dict(self.ingredient_records),
            tools=tuple(self.tools),
            segments=tuple(self.segments),
            fused_ingredients=fusion.ingredients,
            fused_steps=fusion.steps,
            fusion_confidence=fusion.confidence,
            phases=tuple(self.phases),
            tool_usage=tuple(self.tool_usage),
            ingredient_progression=tuple(self.ingredient_progression),
            recipe_steps=tuple(self.recipe_steps),
        )
        return self.timeline
