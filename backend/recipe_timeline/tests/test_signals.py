"""
Signal Extraction Tests
=======================
Tests for frame signal extraction and transcript scanning.
"""

import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from recipe_timeline.signals import (
    FrameSignalExtractor,
    AudioSignalExtractor,
    verb_forms,
)
from recipe_timeline.models import DetectedLabel, FrameDetections, FrameSignal


# =============================================================================
# TEST FIXTURES
# =============================================================================

def create_labels(*pairs):
    """Create provider-style label dicts from (name, confidence) pairs."""
    return [{"Name": name, "Confidence": confidence} for name, confidence in pairs]


def detected_counts(signal: FrameSignal):
    return len(signal.ingredients), len(signal.tools), len(signal.actions)


# =============================================================================
# FRAME SIGNALS
# =============================================================================

def test_frame_buckets():
    """Test that labels land in their category buckets."""
    extractor = FrameSignalExtractor()
    signal = extractor.extract(1, 0.0, create_labels(
        ("Tomato", 90), ("Knife", 93), ("Person", 99)
    ))

    assert [i.name for i in signal.ingredients] == ["Tomato"]
    assert signal.ingredients[0].category == "vegetable"
    assert [t.name for t in signal.tools] == ["Knife"]
    assert signal.frame_number == 1

    print("[PASS] Frame bucket test passed")


def test_action_inference():
    """Test that an action is inferred from knife + vegetable."""
    extractor = FrameSignalExtractor()
    signal = extractor.extract(1, 0.0, create_labels(("Tomato", 90), ("Knife", 93)))

    assert len(signal.actions) == 1
    action = signal.actions[0]
    assert action.action == "Cutting vegetables"
    assert action.inferred is True
    # Ceiling: action threshold 70 - margin 5
    assert action.confidence == 65.0
    assert action.related_tools == ("Knife",)
    assert action.related_ingredients == ("Tomato",)

    print("[PASS] Action inference test passed")


def test_direct_action_with_related_items():
    """Test related ingredients and verb-implied tools on direct actions."""
    extractor = FrameSignalExtractor()
    signal = extractor.extract(2, 1.0, create_labels(
        ("Cutting", 85), ("Knife", 90), ("Onion", 88)
    ))

    assert len(signal.actions) == 1
    action = signal.actions[0]
    assert action.action == "Cutting"
    assert action.inferred is False
    assert action.related_ingredients == ("Onion",)
    assert action.related_tools == ("Knife",)

    print("[PASS] Direct action test passed")


def test_inferred_never_outranks_observed():
    """Test that inferred actions score below the action threshold."""
    extractor = FrameSignalExtractor()
    signal = extractor.extract(1, 0.0, create_labels(
        ("Stirring", 71), ("Egg", 90), ("Frying Pan", 90)
    ), high_density=True)

    observed = [a for a in signal.actions if not a.inferred]
    inferred = [a for a in signal.actions if a.inferred]
    assert observed and inferred
    assert signal.actions[0].action == "Stirring"
    assert all(a.confidence < 55.0 for a in inferred)
    assert "Making scrambled eggs" in [a.action for a in inferred]

    print("[PASS] Inferred ranking test passed")


def test_frame_deduplication():
    """Test that plural variants of one ingredient collapse to the best detection."""
    extractor = FrameSignalExtractor()
    signal = extractor.extract(1, 0.0, create_labels(("Tomatoes", 80), ("tomato", 90)))

    assert len(signal.ingredients) == 1
    assert signal.ingredients[0].confidence == 90

    print("[PASS] Frame deduplication test passed")


def test_frame_sorted_by_confidence():
    """Test that buckets are sorted by descending confidence."""
    extractor = FrameSignalExtractor()
    signal = extractor.extract(1, 0.0, create_labels(
        ("Onion", 75), ("Garlic", 95), ("Carrot", 85)
    ))

    confidences = [i.confidence for i in signal.ingredients]
    assert confidences == sorted(confidences, reverse=True)

    print("[PASS] Confidence sort test passed")


def test_unreadable_detections_dropped():
    """Test that unreadable payloads are skipped instead of raising."""
    extractor = FrameSignalExtractor()
    signal = extractor.extract(1, 0.0, [
        {"Name": "Tomato", "Confidence": 90},
        {"Name": "Broken"},
        "not a label",
        DetectedLabel("", 80.0),
        DetectedLabel("Garlic", 500.0),
    ])

    assert [i.name for i in signal.ingredients] == ["Tomato"]

    print("[PASS] Unreadable detection test passed")


def test_detections_none_raises():
    """Test that None detections are a contract violation."""
    extractor = FrameSignalExtractor()

    raised = False
    try:
        extractor.extract(1, 0.0, None)
    except TypeError:
        raised = True
    assert raised

    print("[PASS] None detections test passed")


def test_high_density_recall_is_monotone():
    """Test that high-density mode never detects fewer items."""
    extractor = FrameSignalExtractor()
    frames = [
        create_labels(("Tomato", 50), ("Knife", 52), ("Hand", 58)),
        create_labels(("Egg", 80), ("Pan", 75), ("Onion", 62)),
        create_labels(("Chopping", 88), ("Carrot", 71), ("Lettuce", 66), ("Bowl", 90)),
        create_labels(("Dish", 60), ("Towel", 57)),
    ]

    for i, labels in enumerate(frames):
        normal = detected_counts(extractor.extract(i, float(i), labels, high_density=False))
        dense = detected_counts(extractor.extract(i, float(i), labels, high_density=True))
        assert all(d >= n for d, n in zip(dense, normal)), (normal, dense)

    print("[PASS] High-density monotonicity test passed")


def test_extract_all_accepts_dicts():
    """Test batch extraction from dict fixtures."""
    extractor = FrameSignalExtractor()
    signals = extractor.extract_all([
        {"frameNumber": 1, "timestampSeconds": 0.0, "labels": create_labels(("Tomato", 90))},
        FrameDetections(2, 2.0, (DetectedLabel("Knife", 91.0),)),
    ])

    assert len(signals) == 2
    assert signals[0].ingredients[0].name == "Tomato"
    assert signals[1].tools[0].name == "Knife"
    assert signals[1].timestamp_seconds == 2.0

    print("[PASS] extract_all test passed")


def test_confidence_scores():
    """Test the per-frame confidence summary."""
    signal = FrameSignal.from_dict({
        "frameNumber": 1,
        "timestampSeconds": 0.0,
        "ingredients": [{"name": "Tomato", "confidence": 90}, {"name": "Onion", "confidence": 80}],
        "tools": [{"name": "Knife", "confidence": 60}],
        "actions": [],
    })
    scores = signal.confidence_scores

    assert scores["ingredients"] == 85.0
    assert scores["tools"] == 60.0
    assert scores["actions"] == 0.0
    assert abs(scores["overall"] - (85.0 + 60.0) / 3) < 1e-9
    assert "confidence_scores" in signal.to_dict()

    print("[PASS] Confidence scores test passed")


# =============================================================================
# AUDIO SIGNALS
# =============================================================================

def test_verb_forms():
    """Test inflections generated from gerund keywords."""
    assert {"chop", "chopped", "chops", "chopping"} <= set(verb_forms("chopping"))
    assert {"slice", "sliced", "slices"} <= set(verb_forms("slicing"))
    assert {"fry", "fries", "fried"} <= set(verb_forms("frying"))

    print("[PASS] Verb forms test passed")


def test_transcript_scan():
    """Test mentions and candidate steps from a short transcript."""
    extractor = AudioSignalExtractor()
    signal = extractor.extract("First, chop the onions. Then fry them in oil. Enjoy your meal!")

    assert signal.ingredient_mentions == ("onion", "oil")
    assert signal.action_mentions == ("chopping", "frying")
    assert len(signal.candidate_steps) == 2

    first, second = signal.candidate_steps
    assert first.text == "First, chop the onions"
    assert first.approx_order == 1
    assert first.markers == ("first",)
    assert first.actions == ("chopping",)
    assert first.ingredients == ("onion",)
    assert second.approx_order == 2
    assert second.markers == ("then",)

    print("[PASS] Transcript scan test passed")


def test_word_boundaries():
    """Test that keywords inside other words are not matched."""
    extractor = AudioSignalExtractor()

    assert extractor.find_ingredients("bring water to a boil") == []
    assert extractor.find_actions("the cutlery drawer") == []

    print("[PASS] Word boundary test passed")


def test_decimal_amounts_stay_in_sentence():
    """Test that decimal points do not end a sentence."""
    extractor = AudioSignalExtractor()

    assert extractor.split_sentences("Add 1.5 cups of flour. Then stir!") == [
        "Add 1.5 cups of flour", "Then stir"
    ]

    signal = extractor.extract("Add 1.5 cups of flour, then whisk it.")
    assert len(signal.candidate_steps) == 1
    assert signal.candidate_steps[0].text == "Add 1.5 cups of flour, then whisk it"

    print("[PASS] Decimal amount test passed")


def test_empty_transcript():
    """Test that an empty transcript gives an empty signal."""
    signal = AudioSignalExtractor().extract("")

    assert signal.ingredient_mentions == ()
    assert signal.candidate_steps == ()
    assert signal.transcript_length == 0

    print("[PASS] Empty transcript test passed")


def test_transcript_type_checked():
    """Test that a non-string transcript raises TypeError."""
    extractor = AudioSignalExtractor()

    for bad in (None, 42, ["chop"]):
        raised = False
        try:
            extractor.extract(bad)
        except TypeError:
            raised = True
        assert raised, bad

    print("[PASS] Transcript type test passed")


def run_all_tests():
    """Run all signal extraction tests."""
    print("\n" + "="*60)
    print("SIGNAL EXTRACTION TESTS")
    print("="*60 + "\n")

    print("--- Frame Signals ---")
    test_frame_buckets()
    test_action_inference()
    test_direct_action_with_related_items()
    test_inferred_never_outranks_observed()
    test_frame_deduplication()
    test_frame_sorted_by_confidence()
    test_unreadable_detections_dropped()
    test_detections_none_raises()
    test_high_density_recall_is_monotone()
    test_extract_all_accepts_dicts()
    test_confidence_scores()

    print("\n--- Audio Signals ---")
    test_verb_forms()
    test_transcript_scan()
    test_word_boundaries()
    test_decimal_amounts_stay_in_sentence()
    test_empty_transcript()
    test_transcript_type_checked()

    print("\n" + "="*60)
    print("ALL SIGNAL TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
