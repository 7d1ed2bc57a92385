"""
Segment State Machine
=====================
Explicit states and transitions for action-continuity segmentation.

States:
    NoActiveSegment   nothing accumulated yet
    ActiveSegment     one span being accumulated

Transitions (all pure, each returns a new state):
    open_segment      NoActiveSegment -> ActiveSegment, at the current frame
    extend_segment    ActiveSegment   -> ActiveSegment, frame is continuous
    close_segment     ActiveSegment   -> TimelineSegment, or None when too short
    advance           one frame: extend, or close + reopen on a break
    flush             end of input: close whatever is in flight

Frames are consumed one at a time, so the same machine can drive a
streaming segmenter.
"""

import math
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple, Union

import numpy as np

from ..config import SegmentationConfig
from ..models import FrameSignal, TimelineSegment
from ..vocabulary import DEFAULT_VOCABULARY, Vocabulary, normalize_text


@dataclass(frozen=True)
class NoActiveSegment:
    pass


@dataclass(frozen=True)
class ActiveSegment:
    main_action: str
    start_time: float
    end_time: float
    ingredients: Tuple[str, ...] = ()
    tools: Tuple[str, ...] = ()
    key_frame_numbers: Tuple[int, ...] = ()
    action_confidences: Tuple[float, ...] = ()
    ingredient_confidences: Tuple[Tuple[str, float], ...] = ()

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


SegmentState = Union[NoActiveSegment, ActiveSegment]

NO_ACTIVE_SEGMENT = NoActiveSegment()


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class SegmentTransitions:
    """
    Transition functions bound to one configuration and vocabulary.

    Usage:
        t = SegmentTransitions()
        state, closed = t.advance(NO_ACTIVE_SEGMENT, frame)
    """

    def __init__(
        self,
        config: Optional[SegmentationConfig] = None,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY
    ):
        self.config = config or SegmentationConfig()
        self.vocabulary = vocabulary

    # =========================================================================
    # Frame observations
    # =========================================================================

    def main_action(self, frame: FrameSignal) -> str:
        """Most confident action, or the idle action when none was detected."""
        if frame.actions:
            return frame.actions[0].action
        return self.config.idle_action

    def _frame_contents(self, frame: FrameSignal):
        threshold = self.config.content_confidence_threshold
        ingredients = [
            (self.vocabulary.canonical_ingredient(i.name), i.confidence)
            for i in frame.ingredients if i.confidence >= threshold
        ]
        tools = [normalize_text(t.name) for t in frame.tools if t.confidence >= threshold]
        return ingredients, tools

    def is_continuous(self, state: ActiveSegment, frame: FrameSignal) -> bool:
        """
        Same action category (or identical action) within the continuity gap.

        The gap is measured from the segment's last frame.
        """
        gap = frame.timestamp_seconds - state.end_time
        if gap > self.config.action_continuity_threshold:
            return False
        return self.same_action(state.main_action, self.main_action(frame))

    def same_action(self, a: str, b: str) -> bool:
        a_norm, b_norm = normalize_text(a), normalize_text(b)
        if a_norm == b_norm:
            return True
        # Idle frames only continue idle segments
        idle = normalize_text(self.config.idle_action)
        if idle in (a_norm, b_norm):
            return False
        bucket = self.vocabulary.action_bucket(a)
        return bucket is not None and bucket == self.vocabulary.action_bucket(b)

    # =========================================================================
    # Transitions
    # =========================================================================

    def open_segment(self, frame: FrameSignal) -> ActiveSegment:
        state = ActiveSegment(
            main_action=self.main_action(frame),
            start_time=frame.timestamp_seconds,
            end_time=frame.timestamp_seconds,
        )
        return self._absorb(state, frame)

    def extend_segment(self, state: ActiveSegment, frame: FrameSignal) -> ActiveSegment:
        state = replace(state, end_time=max(state.end_time, frame.timestamp_seconds))
        return self._absorb(state, frame)

    def _absorb(self, state: ActiveSegment, frame: FrameSignal) -> ActiveSegment:
        """Merge a frame's contents into the segment (deduplicated, first-seen order)."""
        ingredients, tools = self._frame_contents(frame)

        names = list(state.ingredients)
        best = dict(state.ingredient_confidences)
        for name, confidence in ingredients:
            if name not in best:
                names.append(name)
                best[name] = confidence
            else:
                best[name] = max(best[name], confidence)

        merged_tools = list(state.tools)
        for tool in tools:
            if tool not in merged_tools:
                merged_tools.append(tool)

        action_confidences = state.action_confidences
        if frame.actions and self.same_action(state.main_action, frame.actions[0].action):
            action_confidences = action_confidences + (frame.actions[0].confidence,)

        return replace(
            state,
            ingredients=tuple(names),
            tools=tuple(merged_tools),
            key_frame_numbers=state.key_frame_numbers + (frame.frame_number,),
            action_confidences=action_confidences,
            ingredient_confidences=tuple((n, best[n]) for n in names),
        )

    def close_segment(self, state: SegmentState) -> Optional[TimelineSegment]:
        """Render the in-flight segment, or None if absent or below minimum duration."""
        if not isinstance(state, ActiveSegment):
            return None
        if state.duration < self.config.min_segment_duration:
            return None

        confidence = float(np.mean(state.action_confidences)) if state.action_confidences else 0.0
        return TimelineSegment(
            start_time=state.start_time,
            end_time=state.end_time,
            main_action=state.main_action,
            ingredients=state.ingredients,
            tools=state.tools,
            key_frame_numbers=state.key_frame_numbers,
            description=self.describe(state),
            confidence=confidence,
            ingredient_confidences=dict(state.ingredient_confidences),
        )

    def advance(
        self,
        state: SegmentState,
        frame: FrameSignal
    ) -> Tuple[ActiveSegment, Optional[TimelineSegment]]:
        """
        Consume one frame.

        Returns:
            (new state, segment closed by this frame or None)
        """
        if isinstance(state, ActiveSegment):
            if self.is_continuous(state, frame):
                return self.extend_segment(state, frame), None
            # A new segment starts here whether or not the old one survives
            return self.open_segment(frame), self.close_segment(state)
        return self.open_segment(frame), None

    def flush(self, state: SegmentState) -> Optional[TimelineSegment]:
        return self.close_segment(state)

    # =========================================================================
    # Rendering
    # =========================================================================

    def describe(self, state: Union[ActiveSegment, TimelineSegment]) -> str:
        """Display text: action, first ingredients, first tool, rounded duration."""
        ingredients = ", ".join(state.ingredients[:self.config.description_max_ingredients])
        tools = " and ".join(state.tools[:self.config.description_max_tools])

        description = state.main_action
        if ingredients:
            description += f" {ingredients}"
        if tools:
            description += f" using {tools}"
        description += f" ({round_half_up(state.end_time - state.start_time)} seconds)"
        return description

    def dropped_reason(self, state: SegmentState) -> Optional[Dict[str, float]]:
        """Details for a segment that close_segment would discard."""
        if isinstance(state, ActiveSegment) and state.duration < self.config.min_segment_duration:
            return {
                'start_time': state.start_time,
                'duration': state.duration,
                'min_duration': self.config.min_segment_duration,
            }
        return None
