"""
Label Classifier Tests
======================
Tests for keyword/confidence label classification.
"""

import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from recipe_timeline.classification import (
    LabelClassifier,
    TIER_EXACT,
    TIER_STEM,
    TIER_LOOSE,
)
from recipe_timeline.config import ClassifierConfig
from recipe_timeline.models import DetectedLabel, LabelCategory
from recipe_timeline.vocabulary import (
    DEFAULT_VOCABULARY,
    normalize_text,
    stem_word,
    stem_phrase,
)


# =============================================================================
# VOCABULARY
# =============================================================================

def test_normalize_text():
    """Test case, diacritic and whitespace folding."""
    assert normalize_text("  Sauté   Pan ") == "saute pan"
    assert normalize_text("TOMATO") == "tomato"

    print("[PASS] normalize_text test passed")


def test_stemming():
    """Test that gerunds and base verbs share a stem."""
    assert stem_word("cutting") == "cut"
    assert stem_word("chopping") == "chop"
    assert stem_word("slicing") == stem_word("slice") == "slic"
    assert stem_word("grilling") == "grill"
    assert stem_phrase("Cutting Board") == "cut board"

    print("[PASS] Stemming test passed")


def test_canonical_ingredient():
    """Test plural folding of ingredient names."""
    vocab = DEFAULT_VOCABULARY
    assert vocab.canonical_ingredient("Tomatoes") == "tomato"
    assert vocab.canonical_ingredient("green onions") == "green onion"
    assert vocab.canonical_ingredient("rice") == "rice"

    print("[PASS] canonical_ingredient test passed")


def test_action_buckets():
    """Test semantic action buckets."""
    vocab = DEFAULT_VOCABULARY
    assert vocab.action_bucket("chopping") == "cutting"
    assert vocab.action_bucket("Cutting vegetables") == "cutting"
    assert vocab.action_bucket("fried") == "heating"
    assert vocab.action_bucket("whisking") == "mixing"
    assert vocab.action_bucket("peeling") == "preparation"
    assert vocab.action_bucket("Preparing") == "preparation"
    assert vocab.action_bucket("dancing") is None

    print("[PASS] Action bucket test passed")


def test_vocabulary_extend():
    """Test that extending a vocabulary leaves the default untouched."""
    extended = DEFAULT_VOCABULARY.extend(tool_terms=("mandoline",))
    assert "mandoline" in extended.tool_terms
    assert "mandoline" not in DEFAULT_VOCABULARY.tool_terms

    raised = False
    try:
        DEFAULT_VOCABULARY.extend(not_a_table=("x",))
    except ValueError:
        raised = True
    assert raised

    print("[PASS] Vocabulary extend test passed")


# =============================================================================
# CLASSIFICATION
# =============================================================================

def test_classify_ingredient():
    """Test an exact ingredient match."""
    classifier = LabelClassifier()
    result = classifier.classify(DetectedLabel("Tomato", 90.0))

    assert result.primary is LabelCategory.INGREDIENT
    assert result.sub_tag == "vegetable"
    assert result.match_tier == TIER_EXACT
    assert result.name == "Tomato"

    print("[PASS] Ingredient classification test passed")


def test_classify_descriptive_ingredient():
    """Test a substring ingredient match with a descriptive word."""
    classifier = LabelClassifier()
    result = classifier.classify(DetectedLabel("Chopped onion", 82.0))

    assert result.primary is LabelCategory.INGREDIENT
    assert result.sub_tag == "vegetable"

    print("[PASS] Descriptive ingredient test passed")


def test_short_tool_terms_inside_food_names():
    """Test that tool words hidden inside food names do not capture them."""
    classifier = LabelClassifier()

    for name in ("Sweet Potato", "Mashed Potatoes"):
        result = classifier.classify(DetectedLabel(name, 95.0))
        assert result.primary is LabelCategory.INGREDIENT, name
        assert result.sub_tag == "vegetable"
        assert not result.qualifies(LabelCategory.TOOL)

    pancake = classifier.classify(DetectedLabel("Pancake", 95.0))
    assert not pancake.qualifies(LabelCategory.TOOL)
    dense = classifier.classify(DetectedLabel("Pancake", 95.0), high_density=True)
    assert dense.primary is LabelCategory.INGREDIENT

    # Whole words still match
    assert classifier.classify(DetectedLabel("Cast Iron Skillet", 90.0)).primary is LabelCategory.TOOL

    print("[PASS] Hidden tool term test passed")


def test_classify_tools():
    """Test tool matches, including names that share a verb stem."""
    classifier = LabelClassifier()

    knife = classifier.classify(DetectedLabel("Knife", 93.0))
    assert knife.primary is LabelCategory.TOOL
    assert knife.sub_tag == "cutting"

    board = classifier.classify(DetectedLabel("Cutting Board", 80.0))
    assert board.primary is LabelCategory.TOOL

    plate = classifier.classify(DetectedLabel("Plate", 80.0))
    assert plate.primary is LabelCategory.TOOL
    assert plate.sub_tag == "serving"

    whisk = classifier.classify(DetectedLabel("Whisk", 80.0))
    assert whisk.primary is LabelCategory.TOOL
    assert whisk.sub_tag == "mixing"
    # The verb reading still qualifies
    assert whisk.qualifies(LabelCategory.ACTION)

    # Exact tool match outranks the whole-word verb "fry"
    pan = classifier.classify(DetectedLabel("Frying Pan", 80.0))
    assert pan.primary is LabelCategory.TOOL
    assert pan.qualifies(LabelCategory.ACTION)

    print("[PASS] Tool classification test passed")


def test_classify_action():
    """Test exact and stem action matches."""
    classifier = LabelClassifier()

    chopping = classifier.classify(DetectedLabel("Chopping", 85.0))
    assert chopping.primary is LabelCategory.ACTION
    assert chopping.match_tier == TIER_EXACT
    assert chopping.sub_tag == "cutting"

    slice_ = classifier.classify(DetectedLabel("Slice", 85.0))
    assert slice_.primary is LabelCategory.ACTION
    assert slice_.match_tier == TIER_STEM

    print("[PASS] Action classification test passed")


def test_confidence_thresholds():
    """Test that a label below its category threshold is never placed there."""
    classifier = LabelClassifier()

    assert classifier.classify(DetectedLabel("Tomato", 55.0)).is_none
    assert classifier.classify(DetectedLabel("Knife", 64.0)).is_none
    assert classifier.classify(DetectedLabel("Chopping", 69.0)).is_none
    assert classifier.classify(DetectedLabel("Tomato", 60.0)).primary is LabelCategory.INGREDIENT

    print("[PASS] Confidence threshold test passed")


def test_high_density_thresholds():
    """Test that high-density mode lowers thresholds by the offset."""
    classifier = LabelClassifier()
    label = DetectedLabel("Tomato", 50.0)

    assert classifier.classify(label).is_none
    assert classifier.classify(label, high_density=True).primary is LabelCategory.INGREDIENT

    config = ClassifierConfig(high_density_mode=True)
    assert LabelClassifier(config).classify(label).primary is LabelCategory.INGREDIENT

    print("[PASS] High-density threshold test passed")


def test_loose_terms_only_in_high_density():
    """Test secondary keyword lists and loose action interpretation."""
    classifier = LabelClassifier()

    assert classifier.classify(DetectedLabel("Hand", 60.0)).is_none

    hand = classifier.classify(DetectedLabel("Hand", 60.0), high_density=True)
    assert hand.primary is LabelCategory.ACTION
    assert hand.match_tier == TIER_LOOSE
    assert hand.interpreted_action == "mixing"
    assert hand.sub_tag == "mixing"

    dish = classifier.classify(DetectedLabel("Dish", 60.0), high_density=True)
    assert dish.primary is LabelCategory.INGREDIENT
    assert dish.sub_tag == "general"

    towel = classifier.classify(DetectedLabel("Towel", 60.0), high_density=True)
    assert towel.primary is LabelCategory.TOOL
    assert towel.sub_tag == "accessory"

    print("[PASS] Loose term test passed")


def test_malformed_labels():
    """Test that malformed labels classify as none instead of raising."""
    classifier = LabelClassifier()

    assert classifier.classify(DetectedLabel("", 90.0)).is_none
    assert classifier.classify(DetectedLabel("   ", 90.0)).is_none
    assert classifier.classify(DetectedLabel("Tomato", 150.0)).is_none
    assert classifier.classify(DetectedLabel("Tomato", -1.0)).is_none
    assert classifier.classify(DetectedLabel("Tomato", float("nan"))).is_none
    assert classifier.classify({"name": "Tomato"}).is_none
    assert classifier.classify("Tomato").is_none
    assert classifier.classify(None).is_none

    print("[PASS] Malformed label test passed")


def test_provider_payload():
    """Test provider-style dict payloads."""
    classifier = LabelClassifier()
    payload = {
        "Name": "Garlic",
        "Confidence": 88.5,
        "Categories": [{"Name": "Food and Beverage"}],
    }
    result = classifier.classify(payload)

    assert result.primary is LabelCategory.INGREDIENT
    assert result.confidence == 88.5

    label = DetectedLabel.from_raw(payload)
    assert label.category_hint == "Food and Beverage"
    assert DetectedLabel.from_raw(["Garlic", 88.5]) is None

    print("[PASS] Provider payload test passed")


def test_unknown_label():
    """Test that unrelated labels are ignored."""
    classifier = LabelClassifier()
    result = classifier.classify(DetectedLabel("Person", 99.0))

    assert result.is_none
    assert result.categories == frozenset()

    print("[PASS] Unknown label test passed")


def run_all_tests():
    """Run all classifier tests."""
    print("\n" + "="*60)
    print("LABEL CLASSIFIER TESTS")
    print("="*60 + "\n")

    test_normalize_text()
    test_stemming()
    test_canonical_ingredient()
    test_action_buckets()
    test_vocabulary_extend()
    test_classify_ingredient()
    test_classify_descriptive_ingredient()
    test_short_tool_terms_inside_food_names()
    test_classify_tools()
    test_classify_action()
    test_confidence_thresholds()
    test_high_density_thresholds()
    test_loose_terms_only_in_high_density()
    test_malformed_labels()
    test_provider_payload()
    test_unknown_label()

    print("\n" + "="*60)
    print("ALL CLASSIFIER TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
