#!/usr/bin/env python3
"""
Probe Range Script
==================

Standalone script to probe a time range against the frame store.

This script:
    1. Resolves a range from --start/--end (or the default range)
    2. Runs the availability prober in batches
    3. Logs progress after every batch
    4. Reports the resulting catalog

Usage:
    python scripts/probe_range.py
    python scripts/probe_range.py --start 2025-05-12T14:00Z --end 2025-05-12T16:00Z
    python scripts/probe_range.py --start 2025-05-12T14:00Z --count 12 --backend mock
"""

import argparse
import asyncio
import logging
import os
import sys
import time

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from raster_playback.addressing import (
    DEFAULT_INTERVAL_MINUTES,
    DEFAULT_LAG_HOURS,
    LocatorTemplate,
    default_base_time,
)
from raster_playback.models import PreloadStatus, TimeRange
from raster_playback.probe import (
    AvailabilityProber,
    HttpExistenceCheck,
    StaticExistenceCheck,
)
from raster_playback.session import resolve_range, utc_now


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def build_range(start, end, count: int, interval: int) -> TimeRange:
    """Resolve CLI arguments into a TimeRange."""
    time_range = resolve_range(
        start,
        end,
        now=utc_now(),
        interval_minutes=interval,
        default_frame_count=count,
    )
    if time_range is None:
        base = default_base_time(utc_now(), DEFAULT_LAG_HOURS, interval)
        time_range = TimeRange.from_count(base, count, interval)
    return time_range


async def run_probe(
    time_range: TimeRange,
    backend: str,
    root: str,
    batch_size: int,
    timeout: float,
) -> dict:
    """
    Probe the range and report the catalog.

    Args:
        time_range: Range to probe
        backend: 'http' or 'mock'
        root: Resource namespace prefix
        batch_size: Checks in flight at once
        timeout: Per-check timeout in seconds

    Returns:
        Final summary dict
    """
    logger.info("=" * 60)
    logger.info("Availability Probe")
    logger.info("=" * 60)
    logger.info(f"Base time: {time_range.base:%Y-%m-%d %H:%M} UTC")
    logger.info(f"Frames: {time_range.total_frames} @ {time_range.interval_minutes} min")
    logger.info(f"Backend: {backend}")
    logger.info(f"Batch size: {batch_size}")
    logger.info("=" * 60)

    if backend == "http":
        check = HttpExistenceCheck(timeout=timeout)
    else:
        check = StaticExistenceCheck()

    template = LocatorTemplate(root=root) if root else LocatorTemplate()
    prober = AvailabilityProber(check, template=template, batch_size=batch_size)

    def _report(status: PreloadStatus) -> None:
        if not status.complete:
            logger.info(f"  Progress: {status.progress_percent}%")

    prober.add_observer(_report)

    start_time = time.time()
    try:
        result = await prober.run(time_range)
    finally:
        if isinstance(check, HttpExistenceCheck):
            await check.aclose()
    total_time = time.time() - start_time

    catalog = result.catalog

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total runtime: {total_time:.1f} seconds")
    logger.info(f"Frames available: {catalog.size()}/{catalog.total_frames}")
    logger.info(f"Missing indices: {list(result.failed_indices)}")
    logger.info(f"Recommended start: {result.recommended_index}")
    for frame in catalog:
        logger.info(f"  [{frame.index:3d}] {frame.fields.label()}  {frame.locator}")
    logger.info("=" * 60)

    if result.is_empty:
        logger.error("No frames available in range")
    else:
        logger.info("Frames available")

    return {
        "duration": total_time,
        "available": catalog.size(),
        "total": catalog.total_frames,
        "missing": list(result.failed_indices),
    }


def main():
    parser = argparse.ArgumentParser(
        description="Probe frame availability for a time range"
    )
    parser.add_argument(
        "--start",
        type=str,
        default=None,
        help="Range start (ISO 8601, UTC if no offset)",
    )
    parser.add_argument(
        "--end",
        type=str,
        default=None,
        help="Range end (ISO 8601, UTC if no offset)",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=72,
        help="Frames to probe when no end is given (default: 72)",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=DEFAULT_INTERVAL_MINUTES,
        help=f"Minutes between frames (default: {DEFAULT_INTERVAL_MINUTES})",
    )
    parser.add_argument(
        "--backend",
        choices=["http", "mock"],
        default=os.environ.get("RASTER_PLAYBACK_PROBE_BACKEND", "http"),
        help="Existence check backend (default: http)",
    )
    parser.add_argument(
        "--root",
        type=str,
        default=os.environ.get("RASTER_PLAYBACK_SOURCE_ROOT", ""),
        help="Resource namespace prefix",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=3,
        help="Checks in flight at once (default: 3)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Per-check timeout in seconds (default: 10)",
    )

    args = parser.parse_args()

    time_range = build_range(args.start, args.end, args.count, args.interval)

    result = asyncio.run(run_probe(
        time_range=time_range,
        backend=args.backend,
        root=args.root,
        batch_size=args.batch_size,
        timeout=args.timeout,
    ))

    sys.exit(0 if result["available"] > 0 else 1)


if __name__ == "__main__":
    main()
