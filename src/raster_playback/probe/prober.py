"""
Availability Prober
===================

Determines which candidate frames of a time range are servable without
overwhelming the remote endpoint.

This module provides the AvailabilityProber class which:
    - Derives every candidate FrameAddress of a TimeRange
    - Issues one existence check per address, in fixed-size batches
    - Runs the checks of a batch concurrently and waits for the whole batch
      to settle before starting the next
    - Publishes progress to observers after every batch
    - Returns an immutable ProbeResult holding the new FrameCatalog

Design Rules:
    - Peak outstanding checks never exceed the batch size
    - A failed check (error, non-success, timeout) marks the index missing
    - Failed checks are NOT retried within the same run
    - Results are collected per run and only exposed once the run completes
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from raster_playback.addressing.locator import DEFAULT_TEMPLATE, LocatorTemplate, addresses_for
from raster_playback.models.frame import FrameAddress
from raster_playback.models.status import PreloadStatus
from raster_playback.models.time_range import TimeRange, round_half_up
from raster_playback.probe.catalog import FrameCatalog
from raster_playback.probe.transport import ExistenceCheck


logger = logging.getLogger(__name__)


ProgressObserver = Callable[[PreloadStatus], None]


def progress_percent(attempted: int, total: int) -> int:
    """``round(min(100, 100 * attempted / total))`` with halves rounded up."""
    if total < 1:
        raise ValueError("total must be >= 1")
    return round_half_up(min(100.0, 100.0 * attempted / total))


def batched(frames: Sequence[FrameAddress], size: int) -> List[Sequence[FrameAddress]]:
    """Split ``frames`` into consecutive batches of at most ``size``."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    return [frames[i:i + size] for i in range(0, len(frames), size)]


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """
    Outcome of one probe run.

    Attributes:
        time_range: Range that was probed
        catalog: Frames confirmed to exist
        status: Final preload status (complete, not in flight)
        failed_indices: Indices whose check failed, ascending
        recommended_index: Initial frame to show, None if catalog is empty
        duration_seconds: Wall time of the run
    """

    time_range: TimeRange
    catalog: FrameCatalog
    status: PreloadStatus
    failed_indices: Tuple[int, ...]
    recommended_index: Optional[int]
    duration_seconds: float

    @property
    def is_empty(self) -> bool:
        return self.catalog.size() == 0

    def __repr__(self) -> str:
        return (
            f"ProbeResult(found={self.catalog.size()}/{self.catalog.total_frames}, "
            f"start={self.recommended_index}, {self.duration_seconds:.2f}s)"
        )


class ProbeMetrics:
    """Metrics for AvailabilityProber observability."""

    __slots__ = (
        "runs_started",
        "runs_completed",
        "checks_issued",
        "checks_failed",
        "last_duration_seconds",
    )

    def __init__(self) -> None:
        self.runs_started: int = 0
        self.runs_completed: int = 0
        self.checks_issued: int = 0
        self.checks_failed: int = 0
        self.last_duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "runs_started": self.runs_started,
            "runs_completed": self.runs_completed,
            "checks_issued": self.checks_issued,
            "checks_failed": self.checks_failed,
            "last_duration_seconds": self.last_duration_seconds,
        }


class AvailabilityProber:
    """
    Bounded-concurrency availability prober.

    Attributes:
        check: Existence-check transport
        template: Locator template used to derive addresses
        batch_size: Checks in flight at once
        check_timeout: Optional per-check timeout in seconds
        metrics: Operational metrics

    Example:
        prober = AvailabilityProber(HttpExistenceCheck(), batch_size=3)
        prober.add_observer(lambda status: print(status.progress_percent))

        result = await prober.run(time_range)
        print(result.catalog.indices_in_order())
    """

    def __init__(
        self,
        check: ExistenceCheck,
        template: LocatorTemplate = DEFAULT_TEMPLATE,
        batch_size: int = 3,
        check_timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize prober.

        Args:
            check: Existence-check transport
            template: Locator template
            batch_size: Checks per batch. Must be >= 1.
            check_timeout: Per-check timeout (None = rely on the transport)
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        self.check = check
        self.template = template
        self.batch_size = batch_size
        self.check_timeout = check_timeout
        self.metrics = ProbeMetrics()

        self._observers: List[ProgressObserver] = []

    def add_observer(self, observer: ProgressObserver) -> Callable[[], None]:
        """
        Subscribe to progress updates.

        Returns:
            Function that removes the observer
        """
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _publish(self, status: PreloadStatus) -> None:
        for observer in list(self._observers):
            try:
                observer(status)
            except Exception as e:
                logger.error(f"Progress observer failed: {e}")

    async def run(self, time_range: TimeRange) -> ProbeResult:
        """
        Probe every candidate frame of ``time_range``.

        Args:
            time_range: Range to probe (total_frames >= 1)

        Returns:
            ProbeResult with the catalog of surviving frames
        """
        self.metrics.runs_started += 1
        started = time.monotonic()
        total = time_range.total_frames

        candidates = addresses_for(time_range, self.template)
        found: List[FrameAddress] = []
        failed: List[int] = []
        attempted = 0

        logger.info(
            f"Probe started: base={time_range.base:%Y-%m-%dT%H:%MZ}, "
            f"frames={total}, batch_size={self.batch_size}"
        )
        self._publish(PreloadStatus(progress_percent=0, complete=False, in_flight=True))

        for batch in batched(candidates, self.batch_size):
            outcomes = await asyncio.gather(*(self._check_frame(frame) for frame in batch))
            for frame, ok in zip(batch, outcomes):
                if ok:
                    found.append(frame)
                else:
                    failed.append(frame.index)

            attempted += len(batch)
            self._publish(
                PreloadStatus(
                    progress_percent=progress_percent(attempted, total),
                    complete=False,
                    in_flight=True,
                )
            )

        catalog = FrameCatalog(found, total_frames=total)
        status = PreloadStatus(progress_percent=100, complete=True, in_flight=False)
        duration = time.monotonic() - started

        self.metrics.runs_completed += 1
        self.metrics.last_duration_seconds = round(duration, 3)

        result = ProbeResult(
            time_range=time_range,
            catalog=catalog,
            status=status,
            failed_indices=tuple(sorted(failed)),
            recommended_index=catalog.recommended_start(),
            duration_seconds=duration,
        )
        logger.info(
            f"Probe complete: {catalog.size()}/{total} frames available, "
            f"{len(failed)} missing ({duration:.2f}s)"
        )
        self._publish(status)
        return result

    async def _check_frame(self, frame: FrameAddress) -> bool:
        """Run one existence check. Any failure counts as missing."""
        self.metrics.checks_issued += 1
        try:
            if self.check_timeout is not None:
                ok = await asyncio.wait_for(
                    self.check.exists(frame.locator),
                    timeout=self.check_timeout,
                )
            else:
                ok = await self.check.exists(frame.locator)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            logger.warning(f"Frame {frame.index} check timed out")
            ok = False
        except Exception as e:
            logger.warning(f"Frame {frame.index} check failed: {e}")
            ok = False

        if not ok:
            self.metrics.checks_failed += 1
            logger.debug(f"Frame {frame.index} missing: {frame.locator}")
        return bool(ok)
