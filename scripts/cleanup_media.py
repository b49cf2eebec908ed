"""Cron entry point for purging temp run directories left by crashed uploads."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import datetime

from src.tubely.config import load_config
from src.tubely.media.temp_media_store import TempMediaStore


@dataclass(slots=True)
class CleanupSummary:
    temp_removed: int
    dry_run: bool


def perform_cleanup(
    *,
    dry_run: bool,
    reference_time: datetime | None = None,
) -> CleanupSummary:
    """Execute cleanup logic and return summary counters."""
    config = load_config()
    temp_store = TempMediaStore(
        paths=config.media_paths,
        temp_ttl_seconds=config.temp_ttl_seconds,
    )

    if dry_run:
        expired = temp_store.list_expired(reference_time)
        return CleanupSummary(temp_removed=len(expired), dry_run=True)

    removed = temp_store.cleanup_expired(reference_time)
    return CleanupSummary(temp_removed=removed, dry_run=False)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cleanup expired temp media.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    try:
        summary = perform_cleanup(dry_run=args.dry_run)
    except Exception as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"cleanup dry-run, temp_expired={summary.temp_removed}", file=sys.stdout)
    else:
        print(f"cleanup done, temp_removed={summary.temp_removed}", file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
