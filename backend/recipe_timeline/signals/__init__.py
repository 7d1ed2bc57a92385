"""
Signal Extraction Package
=========================
Per-modality extraction of cooking signals.

- FrameSignalExtractor: classified ingredients/tools/actions per frame
- AudioSignalExtractor: transcript keyword mentions and candidate steps

Usage:
    from recipe_timeline.signals import FrameSignalExtractor, AudioSignalExtractor
"""

from .frame_signals import FrameSignalExtractor, InferenceRule, INFERENCE_RULES
from .audio_signals import AudioSignalExtractor, verb_forms

__all__ = [
    'FrameSignalExtractor',
    'InferenceRule',
    'INFERENCE_RULES',
    'AudioSignalExtractor',
    'verb_forms',
]
