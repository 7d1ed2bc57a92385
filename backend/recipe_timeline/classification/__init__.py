"""
Label Classification Package
============================
Keyword- and confidence-based categorization of detected labels.

Usage:
    from recipe_timeline.classification import LabelClassifier

    classifier = LabelClassifier()
    result = classifier.classify(label)
"""

from .label_classifier import (
    LabelClassifier,
    LabelClassification,
    TIER_EXACT,
    TIER_STEM,
    TIER_SUBSTRING,
    TIER_LOOSE,
    TIER_NONE,
)

__all__ = [
    'LabelClassifier',
    'LabelClassification',
    'TIER_EXACT',
    'TIER_STEM',
    'TIER_SUBSTRING',
    'TIER_LOOSE',
    'TIER_NONE',
]
