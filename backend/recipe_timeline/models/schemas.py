"""
Data Models and Schemas Module
==============================
Defines structured data representations for all timeline stages.

This module provides:
- Immutable dataclasses for detections, frame signals, segments and steps
- Serialization methods shared through ``BaseModel``
- The strict ``DetectedLabel`` boundary type for loosely typed labeler output

These models form the contract between stages. Every value here is built once
by the stage that owns it and only read afterwards.

Usage:
    from recipe_timeline.models.schemas import DetectedLabel, FrameSignal

    label = DetectedLabel.from_raw({"Name": "Tomato", "Confidence": 91.2})
    frame = FrameSignal.from_dict({"frameNumber": 1, "timestampSeconds": 0.0,
                                   "ingredients": [{"name": "Tomato", "confidence": 90}]})
"""

import json
import logging
import math
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple

import numpy as np

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMS
# =============================================================================

class LabelCategory(str, Enum):
    """Semantic categories a detected label can fall into."""
    INGREDIENT = "ingredient"
    TOOL = "tool"
    ACTION = "action"
    NONE = "none"


class SignalSource(str, Enum):
    """Which modality produced a fused item."""
    AUDIO = "audio"
    VISUAL = "visual"
    BOTH = "both"


class PhaseName(str, Enum):
    PREPARATION = "Preparation"
    COOKING = "Cooking"
    FINISHING = "Finishing"


class IngredientState(str, Enum):
    RAW = "raw"
    PROCESSED = "processed"
    COOKED = "cooked"
    FINAL = "final"


# =============================================================================
# BASE CLASSES
# =============================================================================

class BaseModel:
    """Base class for all data models with common serialization methods."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary, handling nested objects."""
        def convert(obj):
            if isinstance(obj, BaseModel):
                return obj.to_dict()
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, (set, frozenset)):
                return sorted(convert(item) for item in obj)
            elif isinstance(obj, (list, tuple)):
                return [convert(item) for item in obj]
            elif isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            return obj

        return {k: convert(v) for k, v in asdict(self).items()}

    def to_json(self, indent: int = 2) -> str:
        """Convert model to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseModel":
        """Create model from dictionary. Override in subclasses for nested objects."""
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> "BaseModel":
        """Create model from JSON string."""
        return cls.from_dict(json.loads(json_str))


def _pick(data: Dict[str, Any], *keys: str, default=None):
    """Return the first present key among snake_case / camelCase spellings."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# =============================================================================
# DETECTIONS
# =============================================================================

@dataclass(frozen=True)
class DetectedLabel(BaseModel):
    """
    One label reported by the external frame labeler.

    Attributes:
        name: Free-text label, possibly non-English
        confidence: Labeler confidence, expected in 0-100
        category_hint: Optional category tag from the labeler ("Food", ...)
    """
    name: str
    confidence: float
    category_hint: Optional[str] = None

    @property
    def is_well_formed(self) -> bool:
        """True when the name is non-empty and the confidence is a number in 0-100."""
        if not isinstance(self.name, str) or not self.name.strip():
            return False
        if not _is_number(self.confidence) or math.isnan(self.confidence):
            return False
        return 0 <= self.confidence <= 100

    @classmethod
    def from_raw(cls, payload: Any) -> Optional["DetectedLabel"]:
        """
        Normalize a loosely typed labeler record into a DetectedLabel.

        Accepts an existing DetectedLabel, or a dict using snake_case,
        camelCase or provider-style keys (``Name``/``Confidence``/``Categories``).
        Returns None for shapes that cannot be read; range checks are left to
        the classifier.
        """
        if isinstance(payload, DetectedLabel):
            return payload
        if not isinstance(payload, dict):
            logger.debug(f"Ignoring label payload of type {type(payload).__name__}")
            return None

        name = _pick(payload, "name", "Name", "label")
        confidence = _pick(payload, "confidence", "Confidence", "score")
        if not isinstance(name, str) or not _is_number(confidence):
            logger.debug(f"Ignoring unreadable label payload: {payload!r}")
            return None

        hint = _pick(payload, "category_hint", "categoryHint", "category")
        if hint is None:
            categories = payload.get("Categories") or payload.get("categories")
            if isinstance(categories, (list, tuple)) and categories:
                first = categories[0]
                hint = first.get("Name") if isinstance(first, dict) else first
        if hint is not None and not isinstance(hint, str):
            hint = None

        return cls(name=name, confidence=float(confidence), category_hint=hint)


@dataclass(frozen=True)
class FrameDetections(BaseModel):
    """Raw labeler output for one analyzed frame."""
    frame_number: int
    timestamp_seconds: float
    labels: Tuple[DetectedLabel, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FrameDetections":
        raw_labels = _pick(data, "labels", "detections", "Labels", default=[]) or []
        labels = []
        for raw in raw_labels:
            label = DetectedLabel.from_raw(raw)
            if label is not None:
                labels.append(label)
        return cls(
            frame_number=int(_pick(data, "frame_number", "frameNumber", default=0)),
            timestamp_seconds=float(_pick(data, "timestamp_seconds", "timestampSeconds",
                                          "timestamp", default=0.0)),
            labels=tuple(labels),
        )


# =============================================================================
# FRAME SIGNALS
# =============================================================================

@dataclass(frozen=True)
class ClassifiedItem(BaseModel):
    """An ingredient or tool detected in a frame, with its sub-category tag."""
    name: str
    confidence: float
    category: str = "other"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassifiedItem":
        return cls(
            name=data["name"],
            confidence=float(data["confidence"]),
            category=_pick(data, "category", "type", default="other"),
        )


@dataclass(frozen=True)
class ClassifiedAction(BaseModel):
    """A cooking action observed in (or inferred for) a frame."""
    action: str
    confidence: float
    related_ingredients: Tuple[str, ...] = ()
    related_tools: Tuple[str, ...] = ()
    inferred: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassifiedAction":
        return cls(
            action=_pick(data, "action", "name"),
            confidence=float(data["confidence"]),
            related_ingredients=tuple(_pick(data, "related_ingredients",
                                            "relatedIngredients", default=())),
            related_tools=tuple(_pick(data, "related_tools", "relatedTools", default=())),
            inferred=bool(data.get("inferred", False)),
        )


def _mean_confidence(items) -> float:
    if not items:
        return 0.0
    return float(np.mean([item.confidence for item in items]))


@dataclass(frozen=True)
class FrameSignal(BaseModel):
    """
    Classified ingredients, tools and actions for one analyzed frame.

    Lists are sorted by descending confidence and deduplicated by
    normalized name.
    """
    frame_number: int
    timestamp_seconds: float
    ingredients: Tuple[ClassifiedItem, ...] = ()
    tools: Tuple[ClassifiedItem, ...] = ()
    actions: Tuple[ClassifiedAction, ...] = ()

    @property
    def confidence_scores(self) -> Dict[str, float]:
        """Mean confidence per bucket; overall is the mean of the three bucket means."""
        ingredients = _mean_confidence(self.ingredients)
        tools = _mean_confidence(self.tools)
        actions = _mean_confidence(self.actions)
        return {
            "overall": float(np.mean([ingredients, tools, actions])),
            "ingredients": ingredients,
            "tools": tools,
            "actions": actions,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["confidence_scores"] = self.confidence_scores
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FrameSignal":
        return cls(
            frame_number=int(_pick(data, "frame_number", "frameNumber", default=0)),
            timestamp_seconds=float(_pick(data, "timestamp_seconds", "timestampSeconds",
                                          "timestamp", default=0.0)),
            ingredients=tuple(ClassifiedItem.from_dict(i) for i in data.get("ingredients", [])),
            tools=tuple(ClassifiedItem.from_dict(t) for t in data.get("tools", [])),
            actions=tuple(ClassifiedAction.from_dict(a) for a in data.get("actions", [])),
        )


# =============================================================================
# AUDIO SIGNAL
# =============================================================================

@dataclass(frozen=True)
class CandidateStep(BaseModel):
    """A transcript sentence that looks like a recipe step."""
    text: str
    approx_order: int
    markers: Tuple[str, ...] = ()
    actions: Tuple[str, ...] = ()
    ingredients: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AudioSignal(BaseModel):
    ingredient_mentions: Tuple[str, ...] = ()
    action_mentions: Tuple[str, ...] = ()
    candidate_steps: Tuple[CandidateStep, ...] = ()
    transcript_length: int = 0


# =============================================================================
# TIMELINE SEGMENTS
# =============================================================================

@dataclass(frozen=True)
class TimelineSegment(BaseModel):
    """
    A contiguous span judged to represent one continuous cooking action.

    Attributes:
        start_time / end_time: Span in seconds, end_time >= start_time
        main_action: Action shared by the span ("Preparing" when idle)
        ingredients / tools: Deduplicated names in first-seen order
        key_frame_numbers: Frames that contributed to the span
        description: Display text rendered from the fields above
        confidence: Mean confidence of the main action across the span
        ingredient_confidences: Best confidence per ingredient name
    """
    start_time: float
    end_time: float
    main_action: str
    ingredients: Tuple[str, ...] = ()
    tools: Tuple[str, ...] = ()
    key_frame_numbers: Tuple[int, ...] = ()
    description: str = ""
    confidence: float = 0.0
    ingredient_confidences: Dict[str, float] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


# =============================================================================
# FUSION
# =============================================================================

@dataclass(frozen=True)
class FusedIngredient(BaseModel):
    name: str
    confidence: float
    source: SignalSource


@dataclass(frozen=True)
class FusedStep(BaseModel):
    """
    One recipe step after audio/visual reconciliation.

    ``start_time`` is None for steps only heard in the transcript, since
    plain transcript text carries no timing.
    """
    step_number: int
    description: str
    start_time: Optional[float]
    end_time: Optional[float] = None
    ingredients: Tuple[str, ...] = ()
    tools: Tuple[str, ...] = ()
    confidence: float = 0.0
    source: SignalSource = SignalSource.VISUAL
    action: Optional[str] = None


@dataclass(frozen=True)
class FusionResult(BaseModel):
    ingredients: Tuple[FusedIngredient, ...] = ()
    steps: Tuple[FusedStep, ...] = ()
    confidence: float = 0.0


# =============================================================================
# TIMELINE SUMMARIES
# =============================================================================

@dataclass(frozen=True)
class IngredientRecord(BaseModel):
    """Whole-video summary for one normalized ingredient name."""
    name: str
    first_appearance: float
    last_appearance: float
    occurrence_count: int
    estimated_amount: str
    best_confidence: float = 0.0


@dataclass(frozen=True)
class CookingPhase(BaseModel):
    phase: PhaseName
    start_time: float
    end_time: float
    description: str
    segment_count: int = 0


@dataclass(frozen=True)
class ToolUsageSpan(BaseModel):
    start_time: float
    end_time: float
    confidence: float
    related_actions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ToolUsage(BaseModel):
    tool: str
    spans: Tuple[ToolUsageSpan, ...] = ()


@dataclass(frozen=True)
class IngredientAppearance(BaseModel):
    timestamp: float
    confidence: float
    state: IngredientState


@dataclass(frozen=True)
class IngredientProgression(BaseModel):
    ingredient: str
    appearances: Tuple[IngredientAppearance, ...] = ()


@dataclass(frozen=True)
class RecipeStep(BaseModel):
    step_number: int
    action: str
    description: str
    ingredients: Tuple[str, ...] = ()
    tools: Tuple[str, ...] = ()
    duration: int = 0
    video_timestamp: float = 0.0


# =============================================================================
# CORE OUTPUT
# =============================================================================

@dataclass(frozen=True)
class IntegratedTimeline(BaseModel):
    """
    The complete, immutable result of one timeline build.

    This is the structure handed to the recipe-generation collaborator.
    """
    total_duration: float = 0.0
    ingredients: Dict[str, IngredientRecord] = field(default_factory=dict)
    tools: Tuple[str, ...] = ()
    segments: Tuple[TimelineSegment, ...] = ()
    fused_ingredients: Tuple[FusedIngredient, ...] = ()
    fused_steps: Tuple[FusedStep, ...] = ()
    fusion_confidence: float = 0.0
    phases: Tuple[CookingPhase, ...] = ()
    tool_usage: Tuple[ToolUsage, ...] = ()
    ingredient_progression: Tuple[IngredientProgression, ...] = ()
    recipe_steps: Tuple[RecipeStep, ...] = ()

    @property
    def ingredient_names(self) -> List[str]:
        return list(self.ingredients.keys())

    @property
    def step_count(self) -> int:
        return len(self.fused_steps)
