"""
Ingredient Aggregator Module
============================
Whole-video ingredient and tool inventory built from frame signals.

For every frame, each ingredient at or above the aggregation threshold is
canonicalized ("Tomatoes" -> "tomato") and folded into one record per name:
first/last appearance, occurrence count (once per frame) and the best
confidence seen. Amounts come from a default table for common staples, or
from how often the ingredient was seen.

Usage:
    from recipe_timeline.timeline import IngredientAggregator

    aggregator = IngredientAggregator()
    records = aggregator.aggregate(frame_signals)
    tools = aggregator.aggregate_tools(frame_signals)
"""

from typing import Dict, List, Optional, Sequence

from ..config import AggregationConfig
from ..logging_config import get_research_logger
from ..models import FrameSignal, IngredientRecord
from ..segmentation import sort_frames
from ..vocabulary import DEFAULT_VOCABULARY, Vocabulary, normalize_text

logger = get_research_logger("aggregation")

# Occurrence bands for ingredients without a default amount
MAIN_INGREDIENT_OCCURRENCES = 10
MODERATE_AMOUNT_OCCURRENCES = 5


def total_duration(frame_signals: Sequence[FrameSignal]) -> float:
    """Timestamp of the last frame, 0 for an empty video."""
    if not frame_signals:
        return 0.0
    return float(max(f.timestamp_seconds for f in frame_signals))


class IngredientAggregator:
    """
    Folds per-frame ingredient detections into IngredientRecords.

    Re-running over the same frames yields equal records in equal order.
    """

    def __init__(
        self,
        config: Optional[AggregationConfig] = None,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY
    ):
        self.config = config or AggregationConfig()
        self.vocabulary = vocabulary

    def aggregate(self, frame_signals: Sequence[FrameSignal]) -> Dict[str, IngredientRecord]:
        """
        Build the ingredient map.

        Args:
            frame_signals: Frame signals in any order

        Returns:
            Canonical name -> IngredientRecord, in order of first appearance
        """
        if frame_signals is None:
            raise TypeError("frame_signals must be a list of FrameSignal")

        threshold = self.config.confidence_threshold
        # name -> [first, last, count, best]
        working: Dict[str, list] = {}

        for frame in sort_frames(frame_signals):
            seen_in_frame = set()
            for item in frame.ingredients:
                if item.confidence < threshold:
                    continue
                name = self.vocabulary.canonical_ingredient(item.name)
                if not name:
                    continue

                t = frame.timestamp_seconds
                entry = working.get(name)
                if entry is None:
                    working[name] = [t, t, 1, item.confidence]
                    seen_in_frame.add(name)
                    continue

                entry[0] = min(entry[0], t)
                entry[1] = max(entry[1], t)
                entry[3] = max(entry[3], item.confidence)
                if name not in seen_in_frame:
                    entry[2] += 1
                    seen_in_frame.add(name)

        records = {
            name: IngredientRecord(
                name=name,
                first_appearance=first,
                last_appearance=last,
                occurrence_count=count,
                estimated_amount=self.estimate_amount(name, count),
                best_confidence=best,
            )
            for name, (first, last, count, best) in working.items()
        }

        logger.debug(
            f"Aggregated {len(records)} ingredients from {len(frame_signals)} frames",
            extra={'threshold': threshold}
        )
        return records

    def estimate_amount(self, name: str, occurrence_count: int) -> str:
        default = self.vocabulary.amount_map().get(name)
        if default is not None:
            return default
        if occurrence_count > MAIN_INGREDIENT_OCCURRENCES:
            return "main ingredient"
        if occurrence_count > MODERATE_AMOUNT_OCCURRENCES:
            return "moderate amount"
        return "small amount"

    def aggregate_tools(self, frame_signals: Sequence[FrameSignal]) -> List[str]:
        """Normalized tool names at or above the threshold, in first-seen order."""
        if frame_signals is None:
            raise TypeError("frame_signals must be a list of FrameSignal")

        tools: List[str] = []
        for frame in sort_frames(frame_signals):
            for item in frame.tools:
                if item.confidence < self.config.confidence_threshold:
                    continue
                name = normalize_text(item.name)
                if name and name not in tools:
                    tools.append(name)
        return tools
