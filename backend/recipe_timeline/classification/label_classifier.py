"""
Label Classifier Module
=======================
Categorizes a raw detected label as ingredient, tool, action or none.

MATCHING RULES:
---------------
Each category is matched against its keyword table, strongest rule first:
  1. Exact match of the normalized name
  2. Stem match, actions only: "chop" and "Chopping" share the stem "chop"
  3. Whole-word containment in either direction, where the contained side
     is at least ``min_match_length`` characters ("Sweet Potato" holds the
     word "potato" but not "pot"); indicator words ("chopped", "cookware")
     and labeler category hints count here too

In high-density mode a label that received no category under the normal
thresholds is classified again with lowered thresholds plus the secondary
("loose") keyword lists. Labels that already had a category keep it, so
recall never drops when the mode is switched on.

PRECEDENCE:
-----------
A label can qualify for several categories. The primary category is the one
with the strongest match tier (exact > stem > substring > loose); within a
tier, action beats tool, and tool beats ingredient. "Cutting Board" is
therefore a tool (exact tool match) and not an action (substring only),
while "grill", which only the action table knows, is an action.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Tuple
import logging

from ..config import ClassifierConfig
from ..models import DetectedLabel, LabelCategory
from ..models.schemas import BaseModel
from ..vocabulary import DEFAULT_VOCABULARY, Vocabulary, normalize_text, stem_phrase

logger = logging.getLogger(__name__)


# Match tiers, strongest first
TIER_EXACT = 4
TIER_STEM = 3
TIER_SUBSTRING = 2
TIER_LOOSE = 1
TIER_NONE = 0

# Tie-break inside a tier
CATEGORY_PRECEDENCE = {
    LabelCategory.ACTION: 3,
    LabelCategory.TOOL: 2,
    LabelCategory.INGREDIENT: 1,
}


@dataclass(frozen=True)
class LabelClassification(BaseModel):
    """
    Result of classifying one label.

    Attributes:
        name: The label name as reported (trimmed)
        normalized_name: Case/diacritic folded name
        confidence: Label confidence
        categories: Every category the label qualifies for
        primary: The category callers should bucket the label into
        sub_tag: Sub-category of the primary category ("vegetable", "cutting")
        match_tier: Tier of the primary match
        interpreted_action: Action name to use for loose action matches
    """
    name: str
    normalized_name: str
    confidence: float
    categories: FrozenSet[LabelCategory] = frozenset()
    primary: LabelCategory = LabelCategory.NONE
    sub_tag: Optional[str] = None
    match_tier: int = TIER_NONE
    interpreted_action: Optional[str] = None

    @property
    def is_none(self) -> bool:
        return self.primary is LabelCategory.NONE

    @property
    def is_loose(self) -> bool:
        return self.match_tier == TIER_LOOSE

    def qualifies(self, category: LabelCategory) -> bool:
        return category in self.categories


class LabelClassifier:
    """
    Pure, table-driven label classifier.

    Usage:
        classifier = LabelClassifier()
        result = classifier.classify(DetectedLabel("Chopped onion", 82.0))
        result.primary   # LabelCategory.INGREDIENT
        result.sub_tag   # "vegetable"
    """

    def __init__(
        self,
        config: Optional[ClassifierConfig] = None,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY
    ):
        self.config = config or ClassifierConfig()
        self.vocabulary = vocabulary

    # =========================================================================
    # Public API
    # =========================================================================

    def classify(self, label: Any, high_density: Optional[bool] = None) -> LabelClassification:
        """
        Classify a label.

        Args:
            label: A DetectedLabel, or any payload DetectedLabel.from_raw accepts
            high_density: Override ClassifierConfig.high_density_mode

        Returns:
            LabelClassification (primary NONE for malformed labels)
        """
        if high_density is None:
            high_density = self.config.high_density_mode

        if not isinstance(label, DetectedLabel):
            label = DetectedLabel.from_raw(label)
        if label is None or not label.is_well_formed:
            logger.debug(f"Malformed label treated as none: {label!r}")
            return self._unclassified(label)

        result = self._classify(label, self.config.thresholds(False), loose=False)
        if result.is_none and high_density:
            result = self._classify(label, self.config.thresholds(True), loose=True)
        return result

    def interpret_loose_action(self, normalized_name: str) -> str:
        """Map a loose action term ("hand", "motion") to a concrete action."""
        for term, action in self.vocabulary.loose_action_map:
            if term in normalized_name:
                return action
        for action in self.vocabulary.action_terms:
            if action in normalized_name:
                return action
        return self.vocabulary.loose_action_default

    def ingredient_category(self, name: str) -> str:
        canonical = self.vocabulary.canonical_ingredient(name)
        for category, keywords in self.vocabulary.ingredient_categories:
            if any(k in canonical for k in keywords):
                return category
        return "other"

    def tool_type(self, name: str) -> str:
        normalized = normalize_text(name)
        for tool_type, keywords in self.vocabulary.tool_types:
            if any(k in normalized for k in keywords):
                return tool_type
        return "other"

    # =========================================================================
    # Matching
    # =========================================================================

    def _classify(
        self,
        label: DetectedLabel,
        thresholds: Dict[str, float],
        loose: bool
    ) -> LabelClassification:
        normalized = normalize_text(label.name)
        hint = normalize_text(label.category_hint) if label.category_hint else ""

        tiers = {
            LabelCategory.INGREDIENT: self._ingredient_tier(normalized, hint, loose),
            LabelCategory.TOOL: self._tool_tier(normalized, hint, loose),
            LabelCategory.ACTION: self._action_tier(normalized, hint, loose),
        }

        qualified = {
            category: tier for category, tier in tiers.items()
            if tier > TIER_NONE and label.confidence >= thresholds[category.value]
        }
        if not qualified:
            return self._unclassified(label)

        primary = max(
            qualified,
            key=lambda c: (qualified[c], CATEGORY_PRECEDENCE[c])
        )
        tier = qualified[primary]

        interpreted = None
        if primary is LabelCategory.ACTION and tier == TIER_LOOSE:
            interpreted = self.interpret_loose_action(normalized)

        return LabelClassification(
            name=label.name.strip(),
            normalized_name=normalized,
            confidence=label.confidence,
            categories=frozenset(qualified),
            primary=primary,
            sub_tag=self._sub_tag(primary, tier, normalized, interpreted),
            match_tier=tier,
            interpreted_action=interpreted,
        )

    def _contains(self, a: str, b: str) -> bool:
        """
        Whole-word containment in either direction, respecting min length.

        Words are singularized first, so "mashed potatoes" contains "potato"
        while "sweet potato" does not contain "pot".
        """
        minimum = self.config.min_match_length
        words_a = f" {self.vocabulary.canonical_ingredient(a)} "
        words_b = f" {self.vocabulary.canonical_ingredient(b)} "
        if len(b) >= minimum and words_b in words_a:
            return True
        return len(a) >= minimum and words_a in words_b

    def _table_tier(
        self,
        normalized: str,
        terms: Tuple[str, ...],
        indicators: Tuple[str, ...],
        hints: Tuple[str, ...],
        hint: str,
        exact_names: Tuple[str, ...] = ()
    ) -> int:
        if normalized in terms or any(n in terms for n in exact_names):
            return TIER_EXACT
        if any(self._contains(normalized, term) for term in terms):
            return TIER_SUBSTRING
        if any(ind in normalized for ind in indicators):
            return TIER_SUBSTRING
        if hint and any(h in hint for h in hints):
            return TIER_SUBSTRING
        return TIER_NONE

    def _ingredient_tier(self, normalized: str, hint: str, loose: bool) -> int:
        vocab = self.vocabulary
        tier = self._table_tier(
            normalized, vocab.ingredient_terms, vocab.food_indicators,
            vocab.ingredient_hints, hint,
            exact_names=(vocab.canonical_ingredient(normalized),)
        )
        if tier == TIER_NONE and loose and any(t in normalized for t in vocab.loose_ingredient_terms):
            return TIER_LOOSE
        return tier

    def _tool_tier(self, normalized: str, hint: str, loose: bool) -> int:
        vocab = self.vocabulary
        tier = self._table_tier(
            normalized, vocab.tool_terms, vocab.tool_indicators,
            vocab.tool_hints, hint
        )
        if tier == TIER_NONE and loose and any(t in normalized for t in vocab.loose_tool_terms):
            return TIER_LOOSE
        return tier

    def _action_tier(self, normalized: str, hint: str, loose: bool) -> int:
        vocab = self.vocabulary
        stemmed = stem_phrase(normalized)
        term_stems = [stem_phrase(term) for term in vocab.action_terms]
        if normalized in vocab.action_terms:
            return TIER_EXACT
        if stemmed in term_stems:
            return TIER_STEM
        # "Chopping vegetables" contains the verb as a whole word
        padded = f" {stemmed} "
        if any(f" {s} " in padded for s in term_stems):
            return TIER_SUBSTRING
        tier = self._table_tier(normalized, vocab.action_terms, (), vocab.action_hints, hint)
        if tier == TIER_NONE and loose and any(t in normalized for t in vocab.loose_action_terms):
            return TIER_LOOSE
        return tier

    def _sub_tag(
        self,
        category: LabelCategory,
        tier: int,
        normalized: str,
        interpreted: Optional[str]
    ) -> str:
        if category is LabelCategory.INGREDIENT:
            return "general" if tier == TIER_LOOSE else self.ingredient_category(normalized)
        if category is LabelCategory.TOOL:
            return "accessory" if tier == TIER_LOOSE else self.tool_type(normalized)
        return self.vocabulary.action_bucket(interpreted or normalized) or "other"

    def _unclassified(self, label: Optional[DetectedLabel]) -> LabelClassification:
        name = label.name.strip() if label is not None and isinstance(label.name, str) else ""
        confidence = label.confidence if label is not None and isinstance(
            label.confidence, (int, float)) else 0.0
        return LabelClassification(
            name=name,
            normalized_name=normalize_text(name),
            confidence=confidence,
        )
