"""
Audio Signal Extractor
======================
Keyword scan and step segmentation over a plain transcript.

The transcript carries no per-sentence timing, so candidate steps are
numbered in textual order only.

Matching is case- and diacritic-insensitive and respects word boundaries:
ingredients match their plural forms ("onions" -> "onion"), actions match
their common inflections ("chop", "chopped", "chopping" -> "chopping").
"""

import re
from typing import Dict, List, Optional, Pattern, Tuple

from ..logging_config import get_research_logger
from ..models import AudioSignal, CandidateStep
from ..vocabulary import DEFAULT_VOCABULARY, Vocabulary, normalize_text

logger = get_research_logger("signals")

# Western punctuation ends a sentence only before whitespace, so "1.5" stays whole
SENTENCE_SPLIT = re.compile(r"[.!?]+(?=\s|$)|[。！？]+|\n+")

# Category words are useful for frame labels but say nothing in speech
GENERIC_INGREDIENT_TERMS = frozenset((
    "vegetable", "fruit", "meat", "fish", "seafood", "dairy", "grain",
    "herb", "spice",
))


def verb_forms(gerund: str) -> Tuple[str, ...]:
    """
    Inflections of an action keyword given in gerund form.

    "chopping" -> chopping, chop, chops, chopped
    "slicing"  -> slicing, slic(e), slices, sliced
    "frying"   -> frying, fry, fries, fried
    """
    if not gerund.endswith("ing"):
        return (gerund, gerund + "s", gerund + "ed")
    pre = gerund[:-3]
    forms = {gerund, pre + "ed"}
    if len(pre) >= 3 and pre[-1] == pre[-2] and pre[-1] not in "lsz":
        # chopp -> chop; no silent-e form
        base = pre[:-1]
        forms.update((base, base + "s"))
    else:
        base = pre
        forms.update((base, base + "s", base + "es", base + "ed",
                      base + "e", base + "es", base + "ed", base + "d"))
        if base.endswith("y"):
            forms.update((base[:-1] + "ies", base[:-1] + "ied"))
    return tuple(sorted(forms))


def _alternation(forms) -> str:
    # Longest first so "chopped" wins over "chop"
    ordered = sorted(set(forms), key=lambda f: (-len(f), f))
    return "|".join(re.escape(f) for f in ordered)


class AudioSignalExtractor:
    """
    Extracts ingredient/action mentions and candidate steps from a transcript.

    Usage:
        extractor = AudioSignalExtractor()
        signal = extractor.extract("First, chop the onions. Then fry them in oil.")
        signal.ingredient_mentions   # ("onion", "oil")
        signal.candidate_steps[0].approx_order   # 1
    """

    def __init__(self, vocabulary: Vocabulary = DEFAULT_VOCABULARY):
        self.vocabulary = vocabulary
        self._ingredient_patterns = self._build_ingredient_patterns()
        self._action_patterns = self._build_action_patterns()
        self._marker_patterns = [
            (marker, re.compile(rf"\b{_alternation([marker])}\b"))
            for marker in vocabulary.discourse_markers
        ]

    # =========================================================================
    # Pattern construction
    # =========================================================================

    def _build_ingredient_patterns(self) -> List[Tuple[str, Pattern]]:
        plural_of: Dict[str, List[str]] = {}
        for plural, singular in self.vocabulary.plural_forms:
            plural_of.setdefault(singular, []).append(plural)

        patterns = []
        for term in self.vocabulary.ingredient_terms:
            if term in GENERIC_INGREDIENT_TERMS:
                continue
            forms = [term, term + "s", term + "es"] + plural_of.get(term, [])
            patterns.append((term, re.compile(rf"\b(?:{_alternation(forms)})\b")))
        return patterns

    def _build_action_patterns(self) -> List[Tuple[str, Pattern]]:
        return [
            (term, re.compile(rf"\b(?:{_alternation(verb_forms(term))})\b"))
            for term in self.vocabulary.action_terms
        ]

    # =========================================================================
    # Scanning
    # =========================================================================

    @staticmethod
    def _scan(text: str, patterns: List[Tuple[str, Pattern]]) -> List[str]:
        """Distinct matched terms ordered by first occurrence in the text."""
        positions = []
        for term, pattern in patterns:
            match = pattern.search(text)
            if match:
                positions.append((match.start(), term))
        positions.sort(key=lambda p: p[0])

        seen = []
        for _, term in positions:
            if term not in seen:
                seen.append(term)
        return seen

    def find_ingredients(self, text: str) -> List[str]:
        return self._scan(normalize_text(text), self._ingredient_patterns)

    def find_actions(self, text: str) -> List[str]:
        return self._scan(normalize_text(text), self._action_patterns)

    def find_markers(self, text: str) -> List[str]:
        return self._scan(normalize_text(text), self._marker_patterns)

    @staticmethod
    def split_sentences(transcript: str) -> List[str]:
        """Split on sentence-final punctuation or newlines, skipping blanks."""
        return [s.strip() for s in SENTENCE_SPLIT.split(transcript) if s.strip()]

    def extract(self, transcript: Optional[str]) -> AudioSignal:
        """
        Scan a transcript.

        Args:
            transcript: Transcript text; an empty string yields an empty signal

        Returns:
            AudioSignal with mentions and textual-order candidate steps

        Raises:
            TypeError: If transcript is not a string
        """
        if not isinstance(transcript, str):
            raise TypeError(f"transcript must be a string, got {type(transcript).__name__}")

        steps = []
        for sentence in self.split_sentences(transcript):
            markers = self.find_markers(sentence)
            actions = self.find_actions(sentence)
            if not markers and not actions:
                continue
            steps.append(CandidateStep(
                text=sentence,
                approx_order=len(steps) + 1,
                markers=tuple(markers),
                actions=tuple(actions),
                ingredients=tuple(self.find_ingredients(sentence)),
            ))

        signal = AudioSignal(
            ingredient_mentions=tuple(self.find_ingredients(transcript)),
            action_mentions=tuple(self.find_actions(transcript)),
            candidate_steps=tuple(steps),
            transcript_length=len(transcript),
        )
        logger.info(
            f"Transcript scan: {len(signal.ingredient_mentions)} ingredients, "
            f"{len(signal.action_mentions)} actions, {len(steps)} candidate steps",
            extra={'transcript_length': signal.transcript_length}
        )
        return signal
