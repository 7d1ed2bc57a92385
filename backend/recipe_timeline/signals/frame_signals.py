"""
Frame Signal Extractor
======================
Turns one frame's raw labeler detections into a classified FrameSignal.

For each frame:
1. Every detection is funneled through ``DetectedLabel.from_raw`` (unreadable
   payloads are dropped) and classified by the LabelClassifier
2. Labels are bucketed by their primary category, deduplicated by
   normalized name (keeping the most confident) and sorted by confidence
3. When no action is directly observed, candidate actions are inferred from
   ingredient + tool co-occurrence. In high-density mode inference always
   runs and a few extra rules apply.

Inferred actions are scored below the effective action threshold, so an
inferred action never outranks a directly observed one.

Usage:
    from recipe_timeline.signals import FrameSignalExtractor

    extractor = FrameSignalExtractor()
    signal = extractor.extract(1, 0.0, [{"Name": "Knife", "Confidence": 93}])
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..classification import LabelClassifier
from ..config import ClassifierConfig
from ..logging_config import get_research_logger
from ..models import (
    ClassifiedAction,
    ClassifiedItem,
    DetectedLabel,
    FrameDetections,
    FrameSignal,
    LabelCategory,
)
from ..vocabulary import DEFAULT_VOCABULARY, Vocabulary, normalize_text

logger = get_research_logger("signals")


# =============================================================================
# INFERENCE RULES
# =============================================================================

@dataclass(frozen=True)
class InferenceRule:
    """
    Ingredient + tool co-occurrence rule.

    ``penalty`` is subtracted from the inferred-action ceiling; the more
    speculative the rule, the larger the penalty.
    """
    action: str
    penalty: float
    applies: Callable[[Sequence[ClassifiedItem], Sequence[ClassifiedItem]], bool]
    related_ingredients: Callable[[Sequence[ClassifiedItem]], List[ClassifiedItem]]
    related_tools: Callable[[Sequence[ClassifiedItem]], List[ClassifiedItem]]
    high_density_only: bool = False


def _named(items: Sequence[ClassifiedItem], fragment: str) -> List[ClassifiedItem]:
    return [i for i in items if fragment in normalize_text(i.name)]


def _of_category(items: Sequence[ClassifiedItem], *categories: str) -> List[ClassifiedItem]:
    return [i for i in items if i.category in categories]


INFERENCE_RULES: Tuple[InferenceRule, ...] = (
    InferenceRule(
        action="Cutting vegetables",
        penalty=0.0,
        applies=lambda ings, tools: bool(_named(tools, "knife") and _of_category(ings, "vegetable")),
        related_ingredients=lambda ings: _of_category(ings, "vegetable"),
        related_tools=lambda tools: _named(tools, "knife"),
    ),
    InferenceRule(
        action="Frying",
        penalty=5.0,
        applies=lambda ings, tools: bool(_named(tools, "pan") and _of_category(ings, "meat", "vegetable")),
        related_ingredients=lambda ings: _of_category(ings, "meat", "vegetable"),
        related_tools=lambda tools: _named(tools, "pan"),
    ),
    InferenceRule(
        action="Mixing ingredients",
        penalty=10.0,
        applies=lambda ings, tools: bool(_named(tools, "bowl")) and len(ings) >= 2,
        related_ingredients=lambda ings: list(ings[:3]),
        related_tools=lambda tools: _named(tools, "bowl"),
    ),
    InferenceRule(
        action="Making scrambled eggs",
        penalty=5.0,
        applies=lambda ings, tools: bool(_named(ings, "egg") and _named(tools, "pan")),
        related_ingredients=lambda ings: _named(ings, "egg"),
        related_tools=lambda tools: _named(tools, "pan"),
        high_density_only=True,
    ),
    InferenceRule(
        action="Making salad",
        penalty=15.0,
        applies=lambda ings, tools: len(_of_category(ings, "vegetable")) >= 2,
        related_ingredients=lambda ings: _of_category(ings, "vegetable"),
        related_tools=lambda tools: [],
        high_density_only=True,
    ),
    InferenceRule(
        action="Cooking with heat",
        penalty=20.0,
        applies=lambda ings, tools: bool(ings and tools),
        related_ingredients=lambda ings: list(ings[:2]),
        related_tools=lambda tools: list(tools[:1]),
        high_density_only=True,
    ),
)

# Loose action matches are interpretations, not observations
LOOSE_ACTION_FACTOR = 0.8


# =============================================================================
# EXTRACTOR
# =============================================================================

class FrameSignalExtractor:
    """
    Classifies per-frame detections into ingredients, tools and actions.

    Deterministic for equal inputs and free of I/O.
    """

    def __init__(
        self,
        config: Optional[ClassifierConfig] = None,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY,
        classifier: Optional[LabelClassifier] = None,
        rules: Tuple[InferenceRule, ...] = INFERENCE_RULES
    ):
        self.config = config or ClassifierConfig()
        self.vocabulary = vocabulary
        self.classifier = classifier or LabelClassifier(self.config, vocabulary)
        self.rules = rules

    def extract(
        self,
        frame_number: int,
        timestamp_seconds: float,
        detections: Iterable[Any],
        high_density: Optional[bool] = None
    ) -> FrameSignal:
        """
        Build the FrameSignal for one frame.

        Args:
            frame_number: Frame index in the source video
            timestamp_seconds: Frame timestamp
            detections: DetectedLabel values or raw labeler dicts
            high_density: Override ClassifierConfig.high_density_mode

        Returns:
            FrameSignal with sorted, deduplicated buckets
        """
        if detections is None:
            raise TypeError("detections must be a list of labels, not None")
        if high_density is None:
            high_density = self.config.high_density_mode

        ingredients: List[ClassifiedItem] = []
        tools: List[ClassifiedItem] = []
        direct_actions: List[Tuple[str, float]] = []
        dropped = 0

        for raw in detections:
            label = raw if isinstance(raw, DetectedLabel) else DetectedLabel.from_raw(raw)
            if label is None:
                dropped += 1
                continue

            result = self.classifier.classify(label, high_density=high_density)
            if result.primary is LabelCategory.INGREDIENT:
                ingredients.append(ClassifiedItem(result.name, result.confidence, result.sub_tag))
            elif result.primary is LabelCategory.TOOL:
                tools.append(ClassifiedItem(result.name, result.confidence, result.sub_tag))
            elif result.primary is LabelCategory.ACTION:
                if result.is_loose:
                    direct_actions.append(
                        (result.interpreted_action, result.confidence * LOOSE_ACTION_FACTOR))
                else:
                    direct_actions.append((result.name, result.confidence))

        ingredients = self._dedupe(ingredients, self.vocabulary.canonical_ingredient)
        tools = self._dedupe(tools, normalize_text)

        actions = [self._observed_action(name, conf, ingredients, tools)
                   for name, conf in direct_actions]
        if not actions or high_density:
            actions.extend(self._infer_actions(ingredients, tools, high_density))
        actions = self._dedupe_actions(actions)

        if dropped:
            logger.debug(f"Frame {frame_number}: dropped {dropped} unreadable detections")
        logger.debug(
            f"Frame {frame_number} @ {timestamp_seconds:.2f}s: "
            f"{len(ingredients)} ingredients, {len(tools)} tools, {len(actions)} actions",
            extra={'high_density': high_density}
        )

        return FrameSignal(
            frame_number=frame_number,
            timestamp_seconds=float(timestamp_seconds),
            ingredients=tuple(ingredients),
            tools=tuple(tools),
            actions=tuple(actions),
        )

    def extract_frame(self, frame: FrameDetections, high_density: Optional[bool] = None) -> FrameSignal:
        return self.extract(frame.frame_number, frame.timestamp_seconds, frame.labels, high_density)

    def extract_all(
        self,
        frames: Iterable[FrameDetections],
        high_density: Optional[bool] = None
    ) -> List[FrameSignal]:
        """Extract signals for every frame, preserving input order."""
        if frames is None:
            raise TypeError("frames must be a list of FrameDetections, not None")
        signals = []
        for frame in frames:
            if isinstance(frame, dict):
                frame = FrameDetections.from_dict(frame)
            signals.append(self.extract_frame(frame, high_density))
        logger.info(f"Extracted signals for {len(signals)} frames")
        return signals

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _dedupe(items: List[ClassifiedItem], key: Callable[[str], str]) -> List[ClassifiedItem]:
        """Keep the most confident item per normalized name, sorted by confidence."""
        best: Dict[str, ClassifiedItem] = {}
        for item in items:
            k = key(item.name)
            if k not in best or item.confidence > best[k].confidence:
                best[k] = item
        return sorted(best.values(), key=lambda i: -i.confidence)

    @staticmethod
    def _dedupe_actions(actions: List[ClassifiedAction]) -> List[ClassifiedAction]:
        best: Dict[str, ClassifiedAction] = {}
        for action in actions:
            k = normalize_text(action.action)
            if k not in best or action.confidence > best[k].confidence:
                best[k] = action
        return sorted(best.values(), key=lambda a: -a.confidence)

    def _related_tools(self, action: str, tools: Sequence[ClassifiedItem]) -> Tuple[str, ...]:
        """Tools in the frame that the action's verb implies (cut -> knife)."""
        normalized = normalize_text(action)
        for verb, implied in self.vocabulary.related_tools:
            if verb in normalized:
                return tuple(t.name for t in tools
                             if any(i in normalize_text(t.name) for i in implied))
        return ()

    def _observed_action(
        self,
        name: str,
        confidence: float,
        ingredients: Sequence[ClassifiedItem],
        tools: Sequence[ClassifiedItem]
    ) -> ClassifiedAction:
        limit = self.config.max_related_ingredients
        return ClassifiedAction(
            action=name,
            confidence=confidence,
            related_ingredients=tuple(i.name for i in ingredients[:limit]),
            related_tools=self._related_tools(name, tools),
        )

    def _infer_actions(
        self,
        ingredients: Sequence[ClassifiedItem],
        tools: Sequence[ClassifiedItem],
        high_density: bool
    ) -> List[ClassifiedAction]:
        if not ingredients or not tools:
            return []

        ceiling = (self.config.thresholds(high_density)["action"]
                   - self.config.inferred_action_margin)
        inferred = []
        for rule in self.rules:
            if rule.high_density_only and not high_density:
                continue
            if not rule.applies(ingredients, tools):
                continue
            inferred.append(ClassifiedAction(
                action=rule.action,
                confidence=max(0.0, ceiling - rule.penalty),
                related_ingredients=tuple(i.name for i in rule.related_ingredients(ingredients)),
                related_tools=tuple(t.name for t in rule.related_tools(tools)),
                inferred=True,
            ))
        return inferred
