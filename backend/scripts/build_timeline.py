#!/usr/bin/env python3
"""
Build Timeline Script
=====================
Command-line interface for building an integrated timeline from a fixture.

A fixture is a JSON file holding a transcript and per-frame data:

    {
        "transcript": "First, chop the onions. Then fry them in oil.",
        "frames": [
            {"frameNumber": 1, "timestampSeconds": 0.0,
             "labels": [{"Name": "Onion", "Confidence": 91}]},
            ...
        ]
    }

Frames carrying a "labels" list are raw labeler detections and are classified
first; frames carrying "ingredients"/"tools"/"actions" are used as-is.

Usage:
    python scripts/build_timeline.py fixture.json
    python scripts/build_timeline.py fixture.json --high-density --output timeline.json
    python scripts/build_timeline.py fixture.json --config config.json --summary
"""

import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from recipe_timeline.config import AppConfig, apply_environment_overrides, load_environment_config
from recipe_timeline.logging_config import get_research_logger
from recipe_timeline.pipeline import TimelinePipeline

logger = get_research_logger("cli", log_to_file=False)

RAW_LABEL_KEYS = ("labels", "Labels", "detections")


def main():
    parser = argparse.ArgumentParser(
        description="Build an integrated cooking timeline from a transcript and frame data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Print the timeline JSON
    python scripts/build_timeline.py fixtures/omelette.json

    # Short-form video, write the result to a file
    python scripts/build_timeline.py short.json --high-density --output timeline.json

    # Chronological steps and a .env file for overrides
    python scripts/build_timeline.py video.json --step-order by_time --env .env

    # Human-readable summary instead of JSON
    python scripts/build_timeline.py video.json --summary
        """
    )

    parser.add_argument(
        'fixture',
        type=str,
        help='Path to a JSON fixture with "transcript" and "frames"'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default=None,
        help='Configuration JSON saved with AppConfig.save()'
    )

    parser.add_argument(
        '--env',
        type=str,
        default=None,
        metavar='DOTENV',
        help='Load RECIPE_TIMELINE_* overrides from this .env file'
    )

    parser.add_argument(
        '--high-density',
        action='store_true',
        help='Use lowered thresholds for short, information-dense videos'
    )

    parser.add_argument(
        '--match-strategy',
        choices=['first_match', 'best_confidence'],
        default=None,
        help='How audio steps pick among matching segments'
    )

    parser.add_argument(
        '--step-order',
        choices=['by_confidence', 'by_time'],
        default=None,
        help='Ordering of fused steps'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        default=None,
        help='Write the timeline JSON here instead of stdout'
    )

    parser.add_argument(
        '--summary',
        action='store_true',
        help='Print a human-readable summary instead of JSON'
    )

    args = parser.parse_args()

    fixture_path = Path(args.fixture)
    if not fixture_path.exists():
        print(f"Error: Fixture not found: {fixture_path}")
        return 1

    config = AppConfig.load(args.config) if args.config else AppConfig()
    if args.env:
        config = load_environment_config(dotenv_path=args.env, base=config)
    else:
        config = apply_environment_overrides(config)

    if args.match_strategy:
        config.fusion.match_strategy = args.match_strategy
    if args.step_order:
        config.fusion.step_order = args.step_order

    return build_timeline_cli(
        fixture_path=fixture_path,
        config=config,
        high_density=True if args.high_density else None,
        output_path=args.output,
        summary=args.summary
    )


def load_fixture(fixture_path: Path) -> dict:
    """Read a fixture and check its top-level shape."""
    with open(fixture_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError("fixture must be a JSON object")
    if not isinstance(data.get('transcript', ''), str):
        raise ValueError("'transcript' must be a string")
    if not isinstance(data.get('frames', []), list):
        raise ValueError("'frames' must be a list")
    return data


def is_raw_detections(frames: list) -> bool:
    return any(isinstance(f, dict) and any(k in f for k in RAW_LABEL_KEYS) for f in frames)


def build_timeline_cli(
    fixture_path: Path,
    config: AppConfig,
    high_density: bool = None,
    output_path: str = None,
    summary: bool = False
) -> int:
    """Run the pipeline over one fixture and emit the result."""
    try:
        data = load_fixture(fixture_path)
    except (ValueError, json.JSONDecodeError) as e:
        print(f"Error: Invalid fixture {fixture_path}: {e}")
        return 1

    transcript = data.get('transcript', '')
    frames = data.get('frames', [])
    raw = is_raw_detections(frames)

    logger.info(
        f"Building timeline from {fixture_path.name}: {len(frames)} frames "
        f"({'raw detections' if raw else 'frame signals'})"
    )

    pipeline = TimelinePipeline()
    try:
        if raw:
            timeline = pipeline.run(transcript, frame_detections=frames,
                                    config=config, high_density=high_density)
        else:
            timeline = pipeline.run(transcript, frame_signals=frames,
                                    config=config, high_density=high_density)
    except RuntimeError as e:
        print(f"Error: {e}")
        return 1

    if summary:
        print_summary(timeline)
        return 0

    output = timeline.to_json()
    if output_path:
        Path(output_path).write_text(output, encoding='utf-8')
        print(f"Timeline written to: {output_path}")
    else:
        print(output)
    return 0


def print_summary(timeline) -> None:
    print("="*60)
    print("INTEGRATED TIMELINE")
    print("="*60)
    print(f"Duration: {timeline.total_duration:.1f}s")
    print(f"Fusion confidence: {timeline.fusion_confidence:.0f}")
    print(f"Tools: {', '.join(timeline.tools) or '-'}")
    print()

    print("Ingredients:")
    for record in timeline.ingredients.values():
        print(f"  {record.name:<20} x{record.occurrence_count:<3} "
              f"{record.first_appearance:>6.1f}s  {record.estimated_amount}")
    print()

    print("Phases:")
    for phase in timeline.phases:
        print(f"  {phase.phase.value:<12} {phase.start_time:>6.1f}s - {phase.end_time:>6.1f}s")
    print()

    print("Steps:")
    for step in timeline.fused_steps:
        start = f"{step.start_time:>6.1f}s" if step.start_time is not None else "     -"
        print(f"  {step.step_number:>2}. [{step.source.value:<6}] {start}  {step.description}")
    print("="*60)


if __name__ == "__main__":
    sys.exit(main())
