"""
Timeline Segmenter Module
=========================
Groups time-ordered frame signals into continuous-action segments.

The segmenter drives the state machine in ``state.py`` over a sorted local
copy of its input; the caller's list is never reordered. Segments shorter
than the minimum duration are dropped (never split), and an empty result is
a valid outcome.
"""

from typing import List, Optional, Sequence

from .state import ActiveSegment, NO_ACTIVE_SEGMENT, SegmentState, SegmentTransitions
from ..config import SegmentationConfig
from ..logging_config import get_research_logger, log_pipeline_decision
from ..models import FrameSignal, TimelineSegment
from ..vocabulary import DEFAULT_VOCABULARY, Vocabulary

logger = get_research_logger("segmentation")


def sort_frames(frame_signals: Sequence[FrameSignal]) -> List[FrameSignal]:
    """Stable sort by timestamp, then frame number, on a copy."""
    return sorted(frame_signals, key=lambda f: (f.timestamp_seconds, f.frame_number))


class TimelineSegmenter:
    """
    Main class for action-continuity segmentation.

    Usage:
        segmenter = TimelineSegmenter()
        segments = segmenter.segment(frame_signals)

        # Tighter continuity window
        segmenter = TimelineSegmenter(SegmentationConfig(action_continuity_threshold=2.0))
    """

    def __init__(
        self,
        config: Optional[SegmentationConfig] = None,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY
    ):
        self.config = config or SegmentationConfig()
        self.vocabulary = vocabulary
        self.transitions = SegmentTransitions(self.config, vocabulary)

    def segment(self, frame_signals: Sequence[FrameSignal]) -> List[TimelineSegment]:
        """
        Segment frame signals.

        Args:
            frame_signals: Frame signals in any order

        Returns:
            Segments in chronological order, each at least min_segment_duration long

        Raises:
            TypeError: If frame_signals is None or not a list
        """
        if frame_signals is None or isinstance(frame_signals, (str, bytes, dict)):
            raise TypeError("frame_signals must be a list of FrameSignal")

        frames = sort_frames(frame_signals)
        if frames != list(frame_signals):
            logger.debug("Frame signals were not time-ordered; segmenting a sorted copy")

        segments: List[TimelineSegment] = []
        dropped = 0
        state: SegmentState = NO_ACTIVE_SEGMENT

        for frame in frames:
            if isinstance(state, ActiveSegment) and not self.transitions.is_continuous(state, frame):
                dropped += self._note_if_dropped(state)
            state, closed = self.transitions.advance(state, frame)
            if closed is not None:
                segments.append(closed)

        dropped += self._note_if_dropped(state)
        final = self.transitions.flush(state)
        if final is not None:
            segments.append(final)

        segments = self._validate_segments(segments)

        logger.info(
            f"Segmented {len(frames)} frames into {len(segments)} segments "
            f"({dropped} dropped below {self.config.min_segment_duration}s)",
            extra={
                'continuity_threshold': self.config.action_continuity_threshold,
                'segment_count': len(segments),
            }
        )
        return segments

    def _note_if_dropped(self, state: SegmentState) -> int:
        reason = self.transitions.dropped_reason(state)
        if reason is None:
            return 0
        log_pipeline_decision("segment_dropped", reason, logger=logger)
        return 1

    def _validate_segments(self, segments: List[TimelineSegment]) -> List[TimelineSegment]:
        """Keep only segments that satisfy the duration invariants."""
        valid = []
        for seg in segments:
            if seg.end_time < seg.start_time or seg.duration < self.config.min_segment_duration:
                logger.warning(
                    f"Discarding invalid segment {seg.start_time:.1f}-{seg.end_time:.1f}s"
                )
                continue
            valid.append(seg)
        return valid
