#!/usr/bin/env python3
"""
CLI script for replaying recorded drone observations through the tracking engine.

Reads observations from CSV or JSON Lines (columns: lng, lat and optionally
registration, altitude, yaw, timestamp), feeds them in file order and reports
the resulting tracks.
"""

import json
import sys
from pathlib import Path

import click
import pandas as pd

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from skytrack.tracking import Observation, TrackingEngine
from skytrack.utils.config_loader import Config, EngineConfig
from skytrack.utils.logging_config import LogConfig, get_logger

logger = get_logger("tracking.replay")

REQUIRED_COLUMNS = ("lng", "lat")


def _optional(row, column):
    """Row value, or None when the column is absent or empty."""
    if column not in row or pd.isna(row[column]):
        return None
    return row[column]


def load_observations(path: Path) -> pd.DataFrame:
    """Load an observation table from CSV or JSON Lines."""
    if path.suffix in (".jsonl", ".ndjson"):
        df = pd.read_json(path, lines=True)
    else:
        df = pd.read_csv(path)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise click.UsageError(f"{path} is missing required columns: {', '.join(missing)}")
    return df


@click.command()
@click.option(
    '--input',
    '-i',
    'input_path',
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help='Observations file (.csv or .jsonl)'
)
@click.option(
    '--output',
    '-o',
    type=click.Path(dir_okay=False),
    help='Write final tracks to this JSON file'
)
@click.option(
    '--config-dir',
    type=click.Path(file_okay=False),
    help='Load tracking.yaml from this directory instead of CLI defaults'
)
@click.option(
    '--id-mode',
    type=click.Choice(['pool', 'unbounded']),
    default='pool',
    help='Track id allocation policy'
)
@click.option('--pool-size', type=int, default=8, help='Number of ids in pool mode')
@click.option('--threshold', type=float, default=0.05, help='Proximity threshold (metric units)')
@click.option(
    '--metric',
    type=click.Choice(['degrees', 'haversine']),
    default='degrees',
    help='Distance metric'
)
@click.option(
    '--log-dir',
    type=click.Path(file_okay=False),
    help='Also write JSON component logs to this directory'
)
@click.option('--verbose', '-v', is_flag=True, help='Print every resolution')
def main(input_path, output, config_dir, id_mode, pool_size, threshold, metric, log_dir, verbose):
    """
    Replay drone observations and summarize the resulting tracks.

    Examples:
        # Replay with default pool of 8 ids
        python scripts/replay_observations.py -i data/flight.csv

        # Unbounded ids, great-circle distance with a 500 m gate
        python scripts/replay_observations.py -i data/flight.jsonl --id-mode unbounded \\
            --metric haversine --threshold 500
    """
    if log_dir or verbose:
        LogConfig.setup(
            log_level="DEBUG" if verbose else "INFO",
            enable_json=log_dir is not None,
            log_dir=Path(log_dir) if log_dir else None,
        )

    if config_dir:
        config = Config(Path(config_dir))
        config.load_all()
        engine_config = config.tracking
    else:
        engine_config = EngineConfig(
            id_mode=id_mode,
            pool_size=pool_size,
            proximity_threshold=threshold,
            distance_metric=metric,
        )

    df = load_observations(Path(input_path))
    click.echo(f"📂 Loaded {len(df)} observations from {input_path}")

    engine = TrackingEngine(engine_config)

    with click.progressbar(df.iterrows(), length=len(df), label='Replaying') as bar:
        for idx, row in bar:
            if pd.isna(row["lng"]) or pd.isna(row["lat"]):
                logger.warning(f"Row {idx}: missing coordinates, skipped")
                continue
            registration = _optional(row, "registration")
            observation = Observation(
                position=(float(row["lng"]), float(row["lat"])),
                identifier_hint=str(registration) if registration is not None else None,
                altitude=_optional(row, "altitude"),
                heading=_optional(row, "yaw"),
                timestamp=_optional(row, "timestamp"),
            )
            track = engine.ingest(observation)
            if verbose and track is not None:
                logger.info(f"Row {idx} -> {track.track_id}")

    stats = engine.get_statistics()
    click.echo()
    click.echo(f"✅ {stats['total_tracks']} tracks from "
               f"{stats['accepted_observations']} observations "
               f"({stats['ignored_observations']} ignored)")
    click.echo(f"   Resolutions: {stats['resolutions']}")
    click.echo()

    tracks = engine.get_all_tracks()
    for track in tracks:
        lng, lat = track.position
        click.echo(f"   {track.track_id:>6}  {track.identifier_hint or '-':<12} "
                   f"({lng:.5f}, {lat:.5f})  trail={len(track.trail)}  updates={track.update_count}")

    if output:
        payload = [
            {
                "id": t.track_id,
                "registration": t.identifier_hint,
                "position": list(t.position),
                "altitude": t.altitude,
                "heading": t.heading,
                "first_seen_at": t.first_seen_at,
                "trail": [list(p) for p in t.trail],
            }
            for t in tracks
        ]
        Path(output).write_text(json.dumps(payload, indent=2))
        click.echo(f"\n💾 Tracks written to {output}")


if __name__ == "__main__":
    main()
