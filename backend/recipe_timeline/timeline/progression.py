"""
Progression Tracking Module
===========================
Follows tools and ingredients through the video.

TOOL USAGE:
    Each tool seen at or above the aggregation threshold gets contiguous
    usage spans. A sighting more than ``tool_usage_gap_seconds`` after the
    current span's end starts a new span. Spans keep their best confidence
    and the actions seen while the tool was in view.

INGREDIENT PROGRESSION:
    Every qualifying sighting of an ingredient is recorded with the state
    implied by the frame's actions: cooked (heating), processed (cutting or
    mixing), final (plating, serving, garnishing), otherwise raw.
"""

from typing import Dict, List, Optional, Sequence

from ..config import AggregationConfig
from ..models import (
    FrameSignal,
    IngredientAppearance,
    IngredientProgression,
    IngredientState,
    ToolUsage,
    ToolUsageSpan,
)
from ..segmentation import sort_frames
from ..vocabulary import DEFAULT_VOCABULARY, Vocabulary, normalize_text, stem_phrase


class ProgressionTracker:
    """
    Usage:
        tracker = ProgressionTracker()
        usage = tracker.track_tool_usage(frame_signals)
        progression = tracker.track_ingredient_progression(frame_signals)
    """

    def __init__(
        self,
        config: Optional[AggregationConfig] = None,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY
    ):
        self.config = config or AggregationConfig()
        self.vocabulary = vocabulary

    def frame_state(self, frame: FrameSignal) -> IngredientState:
        """State implied by the strongest action in the frame that implies one."""
        for action in frame.actions:
            stems = stem_phrase(action.action)
            for state, state_stems in self.vocabulary.state_stems:
                if any(s in stems for s in state_stems):
                    return IngredientState(state)
        return IngredientState.RAW

    def track_tool_usage(self, frame_signals: Sequence[FrameSignal]) -> List[ToolUsage]:
        if frame_signals is None:
            raise TypeError("frame_signals must be a list of FrameSignal")

        gap = self.config.tool_usage_gap_seconds
        # tool -> list of [start, end, confidence, actions]
        spans: Dict[str, List[list]] = {}

        for frame in sort_frames(frame_signals):
            t = frame.timestamp_seconds
            actions = [a.action for a in frame.actions]
            for item in frame.tools:
                if item.confidence < self.config.confidence_threshold:
                    continue
                tool = normalize_text(item.name)
                tool_spans = spans.setdefault(tool, [])

                if not tool_spans or t - tool_spans[-1][1] > gap:
                    tool_spans.append([t, t, item.confidence, []])
                current = tool_spans[-1]
                current[1] = max(current[1], t)
                current[2] = max(current[2], item.confidence)
                for action in actions:
                    if action not in current[3]:
                        current[3].append(action)

        return [
            ToolUsage(
                tool=tool,
                spans=tuple(
                    ToolUsageSpan(
                        start_time=start,
                        end_time=end,
                        confidence=confidence,
                        related_actions=tuple(actions),
                    )
                    for start, end, confidence, actions in tool_spans
                ),
            )
            for tool, tool_spans in spans.items()
        ]

    def track_ingredient_progression(
        self,
        frame_signals: Sequence[FrameSignal]
    ) -> List[IngredientProgression]:
        if frame_signals is None:
            raise TypeError("frame_signals must be a list of FrameSignal")

        appearances: Dict[str, List[IngredientAppearance]] = {}
        for frame in sort_frames(frame_signals):
            state = self.frame_state(frame)
            for item in frame.ingredients:
                if item.confidence < self.config.confidence_threshold:
                    continue
                name = self.vocabulary.canonical_ingredient(item.name)
                appearances.setdefault(name, []).append(IngredientAppearance(
                    timestamp=frame.timestamp_seconds,
                    confidence=item.confidence,
                    state=state,
                ))

        return [
            IngredientProgression(ingredient=name, appearances=tuple(items))
            for name, items in appearances.items()
        ]
