"""
Cross-Modal Fuser Module
========================
Reconciles transcript-derived signals with visual timeline segments.

INGREDIENTS:
    Visual ingredients (segment contents, plus whole-video records when
    given) keep their own best confidence and are tagged 'visual'. Each
    audio mention not already seen is added once, tagged 'audio', at a
    fixed confidence. Names are compared after canonicalization, so
    "Onions" heard and "onion" seen are one ingredient.

STEPS:
    Each audio candidate step looks for an unclaimed segment whose main
    action shares a semantic bucket (cutting, heating, mixing,
    preparation) with an action named in the sentence. The idle action
    belongs to no bucket, so a segment where nothing was detected never
    matches. The match strategy picks among several candidates. A match
    yields one 'both' step; a claimed segment cannot match again. Leftover
    audio steps are 'audio' and leftover segments are 'visual'.

CONFIDENCE:
    base + transcript bonus + visual-ingredient bonus + visual-action bonus,
    capped at the configured maximum. Frame-level evidence counts for both
    visual bonuses, so actions seen only in spans too short to survive
    segmentation still earn the action bonus.
"""

from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence

from .strategies import MatchStrategy, create_match_strategy, get_step_ordering
from ..config import FusionConfig
from ..logging_config import get_research_logger, log_pipeline_decision
from ..models import (
    AudioSignal,
    CandidateStep,
    FusedIngredient,
    FusedStep,
    FusionResult,
    IngredientRecord,
    SignalSource,
    TimelineSegment,
)
from ..vocabulary import DEFAULT_VOCABULARY, Vocabulary, normalize_text

logger = get_research_logger("fusion")


class CrossModalFuser:
    """
    Merges audio and visual signals into one deduplicated step list.

    Usage:
        fuser = CrossModalFuser()
        result = fuser.fuse(audio_signal, segments)

        # Alternative policies
        fuser = CrossModalFuser(FusionConfig(match_strategy="best_confidence",
                                             step_order="by_time"))
    """

    def __init__(
        self,
        config: Optional[FusionConfig] = None,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY,
        match_strategy: Optional[MatchStrategy] = None,
        idle_action: str = "Preparing"
    ):
        self.config = config or FusionConfig()
        self.vocabulary = vocabulary
        self.match_strategy = match_strategy or create_match_strategy(self.config.match_strategy)
        self.order_steps = get_step_ordering(self.config.step_order)
        self.idle_action = idle_action

    def fuse(
        self,
        audio_signal: AudioSignal,
        segments: Sequence[TimelineSegment],
        ingredient_records: Optional[Mapping[str, IngredientRecord]] = None,
        frame_actions: bool = False
    ) -> FusionResult:
        """
        Fuse one video's signals.

        Args:
            audio_signal: Output of the AudioSignalExtractor
            segments: Output of the TimelineSegmenter (may be empty)
            ingredient_records: Optional whole-video ingredient records; their
                names count as visual even when no segment survived
            frame_actions: Whether any frame showed an action; counts as
                visual action evidence even when no segment survived

        Returns:
            FusionResult with ingredients, ordered steps and overall confidence
        """
        if not isinstance(audio_signal, AudioSignal):
            raise TypeError("audio_signal must be an AudioSignal")
        if segments is None or isinstance(segments, (str, bytes, dict)):
            raise TypeError("segments must be a list of TimelineSegment")
        segments = list(segments)

        visual = self._visual_ingredients(segments, ingredient_records or {})
        ingredients = self.merge_ingredients(audio_signal, visual)
        steps = self.merge_steps(audio_signal, segments)
        confidence = self.overall_confidence(audio_signal, segments, visual, frame_actions)

        logger.info(
            f"Fused {len(ingredients)} ingredients and {len(steps)} steps "
            f"(confidence {confidence:.0f})",
            extra={
                'match_strategy': self.match_strategy.name,
                'step_order': self.config.step_order,
            }
        )
        return FusionResult(
            ingredients=tuple(ingredients),
            steps=tuple(steps),
            confidence=confidence,
        )

    # =========================================================================
    # Ingredients
    # =========================================================================

    def _visual_ingredients(
        self,
        segments: Sequence[TimelineSegment],
        records: Mapping[str, IngredientRecord]
    ) -> Dict[str, float]:
        """Best visual confidence per canonical name, in first-seen order."""
        visual: Dict[str, float] = {}
        for segment in segments:
            for name in segment.ingredients:
                key = self.vocabulary.canonical_ingredient(name)
                confidence = segment.ingredient_confidences.get(name, 0.0)
                visual[key] = max(visual.get(key, confidence), confidence)
        for name, record in records.items():
            key = self.vocabulary.canonical_ingredient(name)
            visual[key] = max(visual.get(key, record.best_confidence), record.best_confidence)
        return visual

    def merge_ingredients(
        self,
        audio_signal: AudioSignal,
        visual: Mapping[str, float]
    ) -> List[FusedIngredient]:
        fused = [
            FusedIngredient(name=name, confidence=confidence, source=SignalSource.VISUAL)
            for name, confidence in visual.items()
        ]
        seen = set(visual)
        for mention in audio_signal.ingredient_mentions:
            key = self.vocabulary.canonical_ingredient(mention)
            if key in seen:
                continue
            seen.add(key)
            fused.append(FusedIngredient(
                name=key,
                confidence=self.config.audio_ingredient_confidence,
                source=SignalSource.AUDIO,
            ))
        return fused

    # =========================================================================
    # Steps
    # =========================================================================

    def _segment_bucket(self, segment: TimelineSegment) -> Optional[str]:
        if normalize_text(segment.main_action) == normalize_text(self.idle_action):
            return None
        return self.vocabulary.action_bucket(segment.main_action)

    def _step_buckets(self, step: CandidateStep) -> set:
        buckets = set()
        for action in step.actions:
            bucket = self.vocabulary.action_bucket(action)
            if bucket is not None:
                buckets.add(bucket)
        return buckets

    def merge_steps(
        self,
        audio_signal: AudioSignal,
        segments: Sequence[TimelineSegment]
    ) -> List[FusedStep]:
        """Match audio steps to segments, then order and number the result."""
        segment_buckets = [self._segment_bucket(s) for s in segments]
        claimed = set()
        steps: List[FusedStep] = []

        for candidate in audio_signal.candidate_steps:
            buckets = self._step_buckets(candidate)
            options = [
                (i, segment) for i, segment in enumerate(segments)
                if i not in claimed and segment_buckets[i] is not None
                and segment_buckets[i] in buckets
            ]
            index = self.match_strategy.select(options)

            if len(options) > 1:
                log_pipeline_decision(
                    "ambiguous_step_match",
                    {
                        'step': candidate.approx_order,
                        'candidates': [i for i, _ in options],
                        'chosen': index,
                        'strategy': self.match_strategy.name,
                    },
                    logger=logger
                )

            if index is None:
                steps.append(self._audio_step(candidate))
            else:
                claimed.add(index)
                steps.append(self._merged_step(candidate, segments[index]))

        for i, segment in enumerate(segments):
            if i not in claimed:
                steps.append(self._visual_step(segment))

        ordered = self.order_steps(steps)
        return [replace(step, step_number=n) for n, step in enumerate(ordered, start=1)]

    def _canonical(self, names: Sequence[str]) -> List[str]:
        result = []
        for name in names:
            key = self.vocabulary.canonical_ingredient(name)
            if key not in result:
                result.append(key)
        return result

    def _audio_step(self, candidate: CandidateStep) -> FusedStep:
        return FusedStep(
            step_number=0,
            description=candidate.text,
            start_time=None,
            end_time=None,
            ingredients=tuple(self._canonical(candidate.ingredients)),
            confidence=self.config.audio_step_confidence,
            source=SignalSource.AUDIO,
            action=candidate.actions[0] if candidate.actions else None,
        )

    def _visual_step(self, segment: TimelineSegment) -> FusedStep:
        return FusedStep(
            step_number=0,
            description=segment.description,
            start_time=segment.start_time,
            end_time=segment.end_time,
            ingredients=segment.ingredients,
            tools=segment.tools,
            confidence=segment.confidence,
            source=SignalSource.VISUAL,
            action=segment.main_action,
        )

    def _merged_step(self, candidate: CandidateStep, segment: TimelineSegment) -> FusedStep:
        description = candidate.text
        if len(segment.description) >= len(candidate.text):
            description = segment.description

        ingredients = list(segment.ingredients)
        for name in self._canonical(candidate.ingredients):
            if name not in ingredients:
                ingredients.append(name)

        return FusedStep(
            step_number=0,
            description=description,
            start_time=segment.start_time,
            end_time=segment.end_time,
            ingredients=tuple(ingredients),
            tools=segment.tools,
            confidence=max(self.config.audio_step_confidence, segment.confidence),
            source=SignalSource.BOTH,
            action=segment.main_action,
        )

    # =========================================================================
    # Confidence
    # =========================================================================

    def overall_confidence(
        self,
        audio_signal: AudioSignal,
        segments: Sequence[TimelineSegment],
        visual_ingredients: Mapping[str, float],
        frame_actions: bool = False
    ) -> float:
        cfg = self.config
        score = cfg.base_confidence
        if audio_signal.transcript_length > cfg.min_transcript_length:
            score += cfg.transcript_bonus
        if visual_ingredients:
            score += cfg.visual_ingredient_bonus
        if frame_actions or any(s.main_action != self.idle_action for s in segments):
            score += cfg.visual_action_bonus
        return float(min(score, cfg.max_confidence))
