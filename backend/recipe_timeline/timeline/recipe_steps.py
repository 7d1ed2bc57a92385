"""
Recipe Steps Module
===================
Renders timeline segments as numbered recipe steps for display and for
the recipe-generation prompt.
"""

from typing import List, Optional, Sequence, Union

from ..config import SegmentationConfig
from ..models import IntegratedTimeline, RecipeStep, TimelineSegment
from ..segmentation import round_half_up


def build_recipe_steps(
    source: Union[IntegratedTimeline, Sequence[TimelineSegment]],
    config: Optional[SegmentationConfig] = None
) -> List[RecipeStep]:
    """
    Build numbered steps from a timeline or a list of segments.

    Segments shorter than the minimum duration are skipped; numbering
    counts only the steps that are kept.
    """
    config = config or SegmentationConfig()
    if isinstance(source, IntegratedTimeline):
        segments = source.segments
    elif source is None:
        raise TypeError("source must be an IntegratedTimeline or a list of segments")
    else:
        segments = source

    steps = []
    for segment in segments:
        if segment.duration < config.min_segment_duration:
            continue
        steps.append(RecipeStep(
            step_number=len(steps) + 1,
            action=segment.main_action,
            description=segment.description,
            ingredients=segment.ingredients,
            tools=segment.tools,
            duration=round_half_up(segment.duration),
            video_timestamp=segment.start_time,
        ))
    return steps
