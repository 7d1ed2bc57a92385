"""
Timeline Segmentation Module
============================
Action-continuity segmentation of per-frame signals.

Usage:
    from recipe_timeline.segmentation import TimelineSegmenter

    segmenter = TimelineSegmenter()
    segments = segmenter.segment(frame_signals)
"""

from .state import (
    NoActiveSegment,
    ActiveSegment,
    SegmentState,
    SegmentTransitions,
    NO_ACTIVE_SEGMENT,
    round_half_up,
)
from .segmenter import TimelineSegmenter, sort_frames

__all__ = [
    'TimelineSegmenter',
    'sort_frames',
    'NoActiveSegment',
    'ActiveSegment',
    'SegmentState',
    'SegmentTransitions',
    'NO_ACTIVE_SEGMENT',
    'round_half_up',
]
