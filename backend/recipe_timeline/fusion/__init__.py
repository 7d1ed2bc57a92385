"""
Cross-Modal Fusion Package
==========================
Merges transcript-derived and frame-derived signals.

Usage:
    from recipe_timeline.fusion import CrossModalFuser

    result = CrossModalFuser().fuse(audio_signal, segments)
"""

from .strategies import (
    MatchStrategy,
    FirstMatchStrategy,
    BestConfidenceStrategy,
    MATCH_STRATEGY_REGISTRY,
    create_match_strategy,
    order_by_confidence,
    order_by_time,
    STEP_ORDERINGS,
    get_step_ordering,
)
from .fuser import CrossModalFuser

__all__ = [
    'CrossModalFuser',
    'MatchStrategy',
    'FirstMatchStrategy',
    'BestConfidenceStrategy',
    'MATCH_STRATEGY_REGISTRY',
    'create_match_strategy',
    'order_by_confidence',
    'order_by_time',
    'STEP_ORDERINGS',
    'get_step_ordering',
]
