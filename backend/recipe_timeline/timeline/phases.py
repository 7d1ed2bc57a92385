"""
Phase Identifier Module
=======================
Groups timeline segments into coarse cooking phases.

Phases are checked in a fixed order (Preparation, Cooking, Finishing). A
phase is emitted only when at least one segment's main action matches its
keyword list, and spans from its earliest matching segment to its latest.
Phases are computed independently: a Preparation phase may well end after
the Cooking phase starts when the cook goes back to chopping.

When a keyword edit makes one action match several phases, the phase that
comes first in identification order claims the segment.
"""

from typing import List, Optional, Sequence, Tuple

from ..logging_config import get_research_logger
from ..models import CookingPhase, PhaseName, TimelineSegment
from ..vocabulary import DEFAULT_VOCABULARY, Vocabulary, stem_phrase, stem_word

logger = get_research_logger("phases")


class PhaseIdentifier:
    """
    Usage:
        phases = PhaseIdentifier().identify(segments)
    """

    def __init__(self, vocabulary: Vocabulary = DEFAULT_VOCABULARY):
        self.vocabulary = vocabulary
        self._phase_stems: List[Tuple[str, Tuple[str, ...]]] = [
            (phase, tuple(stem_word(k) for k in keywords))
            for phase, keywords in vocabulary.phase_keywords
        ]

    def phase_of(self, action: str) -> Optional[str]:
        """First phase whose keywords match the action, or None."""
        stems = stem_phrase(action)
        for phase, keyword_stems in self._phase_stems:
            if any(k in stems for k in keyword_stems):
                return phase
        return None

    def identify(self, segments: Sequence[TimelineSegment]) -> List[CookingPhase]:
        if segments is None:
            raise TypeError("segments must be a list of TimelineSegment")

        phases = []
        for phase, _ in self._phase_stems:
            matching = [s for s in segments if self.phase_of(s.main_action) == phase]
            if not matching:
                continue
            phases.append(CookingPhase(
                phase=PhaseName(phase),
                start_time=min(s.start_time for s in matching),
                end_time=max(s.end_time for s in matching),
                description=self.vocabulary.phase_description(phase),
                segment_count=len(matching),
            ))

        logger.debug(
            f"Identified {len(phases)} phases from {len(segments)} segments",
            extra={'phases': [p.phase.value for p in phases]}
        )
        return phases
