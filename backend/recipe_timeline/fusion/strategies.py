"""
Fusion Strategies Module
========================
Pluggable policies for the cross-modal fuser.

MATCH STRATEGIES decide which visual segment an audio step merges with when
several segments share the step's action bucket:

FIRST MATCH (default):
  - The earliest unclaimed candidate wins, in segment order
  - Greedy and order-dependent

BEST CONFIDENCE:
  - The most confident unclaimed candidate wins, ties go to the earliest

STEP ORDERINGS decide the final order of fused steps:

BY CONFIDENCE (default):
  - Descending confidence, stable for ties. Can present a later step before
    an earlier one; callers needing chronology should use BY TIME

BY TIME:
  - Ascending start time; steps without timing (audio only) go last in
    their emission order
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging

from ..models import FusedStep, TimelineSegment

logger = logging.getLogger(__name__)

# (segment index, segment) pairs, in segment order
Candidates = Sequence[Tuple[int, TimelineSegment]]


class MatchStrategy(ABC):
    """Selects one visual segment among bucket-compatible candidates."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy name for logging."""
        pass

    @abstractmethod
    def select(self, candidates: Candidates) -> Optional[int]:
        """
        Pick a candidate.

        Args:
            candidates: Unclaimed, bucket-compatible segments

        Returns:
            The chosen segment index, or None when there are no candidates
        """
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.name}>"


class FirstMatchStrategy(MatchStrategy):

    @property
    def name(self) -> str:
        return "first_match"

    def select(self, candidates: Candidates) -> Optional[int]:
        if not candidates:
            return None
        return candidates[0][0]


class BestConfidenceStrategy(MatchStrategy):

    @property
    def name(self) -> str:
        return "best_confidence"

    def select(self, candidates: Candidates) -> Optional[int]:
        if not candidates:
            return None
        best_index, best_segment = candidates[0]
        for index, segment in candidates[1:]:
            if segment.confidence > best_segment.confidence:
                best_index, best_segment = index, segment
        return best_index


MATCH_STRATEGY_REGISTRY = {
    'first_match': FirstMatchStrategy,
    'best_confidence': BestConfidenceStrategy,
}


def create_match_strategy(name: str) -> MatchStrategy:
    """Create a match strategy by name."""
    if name not in MATCH_STRATEGY_REGISTRY:
        raise ValueError(
            f"Unknown match strategy: {name}. Available: {list(MATCH_STRATEGY_REGISTRY.keys())}"
        )
    return MATCH_STRATEGY_REGISTRY[name]()


# =============================================================================
# STEP ORDERINGS
# =============================================================================

def order_by_confidence(steps: Sequence[FusedStep]) -> List[FusedStep]:
    return sorted(steps, key=lambda s: -s.confidence)


def order_by_time(steps: Sequence[FusedStep]) -> List[FusedStep]:
    indexed = list(enumerate(steps))
    indexed.sort(key=lambda p: (p[1].start_time is None, p[1].start_time or 0.0, p[0]))
    return [step for _, step in indexed]


STEP_ORDERINGS: Dict[str, Callable[[Sequence[FusedStep]], List[FusedStep]]] = {
    'by_confidence': order_by_confidence,
    'by_time': order_by_time,
}


def get_step_ordering(name: str) -> Callable[[Sequence[FusedStep]], List[FusedStep]]:
    if name not in STEP_ORDERINGS:
        raise ValueError(f"Unknown step order: {name}. Available: {list(STEP_ORDERINGS.keys())}")
    return STEP_ORDERINGS[name]
