"""
Collaborator Interfaces
=======================
Abstract capabilities the timeline engine consumes but does not implement.

- FrameLabeler: image bytes -> labels for one frame
- Transcriber: audio -> transcript text
- TextGenerator: prompt -> generated text (recipe writing)

Concrete adapters (cloud vision, speech-to-text, LLM clients) live with the
service layer that owns network access and credentials. The engine only
needs their results, already fetched.

Usage:
    from recipe_timeline.collaborators import collect_frame_detections

    detections = collect_frame_detections(labeler, [(1, 0.0, jpeg_bytes), ...])
    timeline = build_timeline_from_detections(transcript, detections)
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Sequence, Tuple

from .logging_config import get_research_logger
from .models import DetectedLabel, FrameDetections

logger = get_research_logger("collaborators")

# (frame_number, timestamp_seconds, image_bytes)
SampledFrame = Tuple[int, float, bytes]


class FrameLabeler(ABC):
    """Detects labels in a single frame image."""

    @abstractmethod
    def detect_labels(self, image_bytes: bytes) -> Sequence[Any]:
        """
        Label one frame.

        Returns:
            DetectedLabel values, or loosely typed dicts that
            DetectedLabel.from_raw understands. A provider-style
            {"Labels": [...]} response is accepted as well.
        """
        pass


class Transcriber(ABC):
    """Turns a video's audio into transcript text."""

    @abstractmethod
    def transcribe(self, audio: Any) -> str:
        pass


class TextGenerator(ABC):
    """Generates text (e.g. a written recipe) from a prompt."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        pass


def _label_payload(response: Any) -> Sequence[Any]:
    if isinstance(response, dict):
        return response.get("Labels") or response.get("labels") or []
    return response or []


def collect_frame_detections(
    labeler: FrameLabeler,
    frames: Iterable[SampledFrame]
) -> List[FrameDetections]:
    """
    Call the labeler once per frame and normalize its output.

    Unreadable labels are dropped; errors raised by the labeler propagate
    to the caller, which owns retries and timeouts.
    """
    if frames is None:
        raise TypeError("frames must be an iterable of (frame_number, timestamp, image_bytes)")

    results = []
    for frame_number, timestamp_seconds, image_bytes in frames:
        raw_labels = _label_payload(labeler.detect_labels(image_bytes))
        labels = []
        for raw in raw_labels:
            label = DetectedLabel.from_raw(raw)
            if label is not None:
                labels.append(label)

        dropped = len(raw_labels) - len(labels)
        if dropped:
            logger.debug(f"Frame {frame_number}: ignored {dropped} unreadable labels")

        results.append(FrameDetections(
            frame_number=int(frame_number),
            timestamp_seconds=float(timestamp_seconds),
            labels=tuple(labels),
        ))

    logger.info(f"Collected detections for {len(results)} frames")
    return results
