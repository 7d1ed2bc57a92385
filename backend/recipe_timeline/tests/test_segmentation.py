"""
Timeline Segmentation Tests
===========================
Tests for action-continuity segmentation and its state machine.
"""

import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from recipe_timeline.segmentation import (
    TimelineSegmenter,
    SegmentTransitions,
    ActiveSegment,
    NoActiveSegment,
    NO_ACTIVE_SEGMENT,
    round_half_up,
)
from recipe_timeline.config import SegmentationConfig
from recipe_timeline.models import FrameSignal


# =============================================================================
# TEST FIXTURES
# =============================================================================

def create_frame(
    frame_number: int,
    timestamp: float,
    action: str = None,
    action_confidence: float = 80.0,
    ingredients=(),
    tools=()
) -> FrameSignal:
    """Create a frame signal from simple (name, confidence) tuples."""
    return FrameSignal.from_dict({
        "frameNumber": frame_number,
        "timestampSeconds": timestamp,
        "ingredients": [{"name": n, "confidence": c} for n, c in ingredients],
        "tools": [{"name": n, "confidence": c} for n, c in tools],
        "actions": [{"action": action, "confidence": action_confidence}] if action else [],
    })


# =============================================================================
# SEGMENTER
# =============================================================================

def test_continuous_action_single_segment():
    """Test two same-action frames inside the continuity window."""
    frames = [
        create_frame(1, 0.0, "cutting", 80),
        create_frame(2, 3.0, "cutting", 85),
    ]
    segments = TimelineSegmenter().segment(frames)

    assert len(segments) == 1
    seg = segments[0]
    assert seg.start_time == 0.0
    assert seg.end_time == 3.0
    assert seg.main_action == "cutting"
    assert seg.key_frame_numbers == (1, 2)
    assert seg.confidence == 82.5

    print("[PASS] Continuous action test passed")


def test_short_span_dropped():
    """Test that a span below the minimum duration yields no segment."""
    frames = [
        create_frame(1, 0.0, "cutting", 80),
        create_frame(2, 3.0, "cutting", 85),
    ]
    config = SegmentationConfig(min_segment_duration=4.0)
    segments = TimelineSegmenter(config).segment(frames)

    assert segments == []

    print("[PASS] Short span test passed")


def test_gap_breaks_segment():
    """Test that a gap above the continuity threshold starts a new segment."""
    frames = [
        create_frame(1, 0.0, "cutting"),
        create_frame(2, 3.0, "cutting"),
        create_frame(3, 10.0, "cutting"),
        create_frame(4, 14.0, "cutting"),
    ]
    segments = TimelineSegmenter().segment(frames)

    assert [(s.start_time, s.end_time) for s in segments] == [(0.0, 3.0), (10.0, 14.0)]

    print("[PASS] Gap break test passed")


def test_action_change_breaks_segment():
    """Test that a different action bucket starts a new segment."""
    frames = [
        create_frame(1, 0.0, "cutting"),
        create_frame(2, 3.0, "cutting"),
        create_frame(3, 4.0, "frying"),
        create_frame(4, 8.0, "frying"),
    ]
    segments = TimelineSegmenter().segment(frames)

    assert [s.main_action for s in segments] == ["cutting", "frying"]
    assert segments[1].start_time == 4.0

    print("[PASS] Action change test passed")


def test_same_bucket_is_continuous():
    """Test that chopping and slicing continue one cutting segment."""
    frames = [
        create_frame(1, 0.0, "chopping"),
        create_frame(2, 3.0, "slicing"),
    ]
    segments = TimelineSegmenter().segment(frames)

    assert len(segments) == 1
    assert segments[0].main_action == "chopping"

    print("[PASS] Same bucket test passed")


def test_idle_frames():
    """Test that frames without actions form an idle segment."""
    frames = [create_frame(1, 0.0), create_frame(2, 4.0)]
    segments = TimelineSegmenter().segment(frames)

    assert len(segments) == 1
    assert segments[0].main_action == "Preparing"
    assert segments[0].confidence == 0.0

    print("[PASS] Idle frames test passed")


def test_idle_frames_break_action_segment():
    """Test that frames without actions do not extend an action segment."""
    frames = [
        create_frame(1, 0.0, "Washing"),
        create_frame(2, 3.0, "Washing"),
        create_frame(3, 5.0),
        create_frame(4, 9.0),
    ]
    segments = TimelineSegmenter().segment(frames)

    assert [(s.main_action, s.start_time, s.end_time) for s in segments] == [
        ("Washing", 0.0, 3.0),
        ("Preparing", 5.0, 9.0),
    ]

    t = SegmentTransitions()
    assert not t.same_action("Washing", "Preparing")
    assert not t.same_action("preparing", "peeling")
    assert t.same_action("Preparing", "preparing")
    assert t.same_action("Washing", "peeling")

    print("[PASS] Idle break test passed")


def test_unsorted_frames():
    """Test that unsorted input is sorted locally and left untouched."""
    frames = [
        create_frame(2, 3.0, "cutting"),
        create_frame(1, 0.0, "cutting"),
    ]
    original = list(frames)
    segments = TimelineSegmenter().segment(frames)

    assert frames == original
    assert len(segments) == 1
    assert segments[0].start_time == 0.0
    assert segments[0].key_frame_numbers == (1, 2)

    print("[PASS] Unsorted frames test passed")


def test_segment_contents_and_description():
    """Test content threshold, canonical names and the description text."""
    frames = [
        create_frame(1, 0.0, "cutting", ingredients=[("Onions", 90), ("Garlic", 65)],
                     tools=[("Knife", 90)]),
        create_frame(2, 3.0, "cutting", ingredients=[("onion", 95)]),
    ]
    seg = TimelineSegmenter().segment(frames)[0]

    assert seg.ingredients == ("onion",)
    assert seg.tools == ("knife",)
    assert seg.ingredient_confidences == {"onion": 95}
    assert seg.description == "cutting onion using knife (3 seconds)"

    print("[PASS] Segment contents test passed")


def test_monotonic_segment_time():
    """Test that every segment satisfies the duration invariants."""
    actions = ["cutting", "cutting", None, "frying", "frying", "frying",
               "mixing", None, None, "plating", "plating", "cutting"]
    frames = [create_frame(i, i * 2.5, a) for i, a in enumerate(actions)]
    config = SegmentationConfig()
    segments = TimelineSegmenter(config).segment(frames)

    assert segments
    for seg in segments:
        assert seg.end_time >= seg.start_time
        assert seg.end_time - seg.start_time >= config.min_segment_duration

    print("[PASS] Monotonic segment time test passed")


def test_empty_and_invalid_input():
    """Test empty input and contract violations."""
    segmenter = TimelineSegmenter()
    assert segmenter.segment([]) == []

    for bad in (None, "frames", {"frames": []}):
        raised = False
        try:
            segmenter.segment(bad)
        except TypeError:
            raised = True
        assert raised, bad

    print("[PASS] Empty/invalid input test passed")


# =============================================================================
# STATE MACHINE
# =============================================================================

def test_state_transitions():
    """Test open, extend and close transitions individually."""
    t = SegmentTransitions()

    state = t.open_segment(create_frame(1, 0.0, "cutting"))
    assert isinstance(state, ActiveSegment)
    assert state.start_time == state.end_time == 0.0

    state = t.extend_segment(state, create_frame(2, 2.0, "cutting"))
    assert state.end_time == 2.0
    assert state.key_frame_numbers == (1, 2)

    # Too short to survive
    assert t.close_segment(state) is None

    state = t.extend_segment(state, create_frame(3, 4.0, "cutting"))
    closed = t.close_segment(state)
    assert closed is not None
    assert closed.duration == 4.0

    assert t.close_segment(NO_ACTIVE_SEGMENT) is None
    assert isinstance(NO_ACTIVE_SEGMENT, NoActiveSegment)

    print("[PASS] State transition test passed")


def test_advance_and_flush():
    """Test the one-frame-at-a-time driver."""
    t = SegmentTransitions()

    state, closed = t.advance(NO_ACTIVE_SEGMENT, create_frame(1, 0.0, "frying"))
    assert closed is None
    state, closed = t.advance(state, create_frame(2, 4.0, "frying"))
    assert closed is None

    # Break: new segment opens, the old one closes
    state, closed = t.advance(state, create_frame(3, 20.0, "cutting"))
    assert closed is not None and closed.main_action == "frying"
    assert state.main_action == "cutting"

    assert t.flush(state) is None

    print("[PASS] Advance/flush test passed")


def test_round_half_up():
    """Test display rounding of durations."""
    assert round_half_up(2.5) == 3
    assert round_half_up(3.4) == 3
    assert round_half_up(4.5) == 5

    print("[PASS] round_half_up test passed")


def run_all_tests():
    """Run all segmentation tests."""
    print("\n" + "="*60)
    print("TIMELINE SEGMENTATION TESTS")
    print("="*60 + "\n")

    test_continuous_action_single_segment()
    test_short_span_dropped()
    test_gap_breaks_segment()
    test_action_change_breaks_segment()
    test_same_bucket_is_continuous()
    test_idle_frames()
    test_idle_frames_break_action_segment()
    test_unsorted_frames()
    test_segment_contents_and_description()
    test_monotonic_segment_time()
    test_empty_and_invalid_input()
    test_state_transitions()
    test_advance_and_flush()
    test_round_half_up()

    print("\n" + "="*60)
    print("ALL SEGMENTATION TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
