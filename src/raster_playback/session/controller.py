"""
Session Controller
==================

Orchestrates addressing, probing, the catalog and playback for one viewing
session.

Triggers:
    Range:     start_range() / start_from_params() with an explicit range
    Default:   start() arms a timer; if no range arrives within the wait,
               probe the default range ending "now minus lag"
    Completion: a finished probe installs its catalog and auto-starts
               playback at the recommended frame, or reports NO_DATA

Ownership:
    The controller is the only writer of the catalog, the preload status and
    the playback state. The scheduler and the sinks only receive read-only
    values. A superseded probe run is cancelled and its result discarded by
    run-id comparison, so a stale catalog can never be installed.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence, Tuple

from raster_playback.addressing.params import (
    DEFAULT_LAG_HOURS,
    default_base_time,
    parse_time_param,
)
from raster_playback.models.conditions import SessionCondition
from raster_playback.models.frame import FrameAddress
from raster_playback.models.layer import LayerStyle
from raster_playback.models.status import PlaybackState, PreloadStatus, SchedulerState
from raster_playback.models.time_range import TimeRange
from raster_playback.playback.scheduler import PlaybackScheduler
from raster_playback.probe.catalog import FrameCatalog
from raster_playback.probe.prober import AvailabilityProber, ProbeResult
from raster_playback.render.surface import DisplayTimeSink, RenderingSurface, bind_frames


logger = logging.getLogger(__name__)


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_range(
    start: Optional[object],
    end: Optional[object],
    now: datetime,
    interval_minutes: int = 10,
    default_frame_count: int = 72,
    lag_hours: float = DEFAULT_LAG_HOURS,
    max_frame_count: Optional[int] = None,
) -> Optional[TimeRange]:
    """
    Turn external start/end parameters into a TimeRange.

    Malformed values count as absent. A range with more than
    ``max_frame_count`` frames is rejected the same way.

    Returns:
        - start and end: range covering both bounds
        - start only: ``default_frame_count`` frames from start
        - end only: range from the default base time to end
        - neither: None (caller uses the default trigger)
    """
    start_dt = parse_time_param(start)
    end_dt = parse_time_param(end)

    if start_dt is None and end_dt is None:
        return None
    if start_dt is not None and end_dt is not None:
        time_range = TimeRange.from_bounds(start_dt, end_dt, interval_minutes)
    elif start_dt is not None:
        time_range = TimeRange.from_count(start_dt, default_frame_count, interval_minutes)
    else:
        base = default_base_time(now, lag_hours, interval_minutes)
        time_range = TimeRange.from_bounds(base, end_dt, interval_minutes)

    if max_frame_count is not None and time_range.total_frames > max_frame_count:
        logger.warning(
            f"Ignoring range of {time_range.total_frames} frames "
            f"(max {max_frame_count})"
        )
        return None
    return time_range


class SessionController:
    """
    One viewing session: exactly one probe run and one playback loop.

    Attributes:
        prober: Availability prober used for every run
        scheduler: Playback scheduler driven by the installed catalog
        layers: Layers published to the rendering surface

    Example:
        controller = SessionController(prober, surface=surface, display_sink=sink)

        controller.start_range(TimeRange.from_count(base, 72))
        await controller.wait_for_probe()

        controller.pause()
        controller.set_speed(500)
        controller.play()
    """

    def __init__(
        self,
        prober: AvailabilityProber,
        *,
        interval_minutes: int = 10,
        default_frame_count: int = 72,
        max_frame_count: Optional[int] = None,
        default_lag_hours: float = DEFAULT_LAG_HOURS,
        default_wait_seconds: float = 1.0,
        speed_ms: int = 1500,
        min_speed_ms: int = 1,
        max_speed_ms: Optional[int] = None,
        layers: Sequence[LayerStyle] = (),
        surface: Optional[RenderingSurface] = None,
        display_sink: Optional[DisplayTimeSink] = None,
        clock: Clock = utc_now,
    ) -> None:
        """
        Initialize session controller.

        Args:
            prober: Availability prober
            interval_minutes: Spacing between frames
            default_frame_count: Frames probed for an open-ended range
            max_frame_count: Largest range accepted (None = unbounded)
            default_lag_hours: Lag subtracted from now for the default range
            default_wait_seconds: Wait for an explicit range before defaulting
            speed_ms: Initial milliseconds between frames
            min_speed_ms: Smallest accepted speed
            max_speed_ms: Largest accepted speed (None = unbounded)
            layers: Layers rendered for each frame
            surface: Rendering surface receiving frame bindings
            display_sink: Consumer of the active frame's calendar fields
            clock: Source of the current instant
        """
        self.prober = prober
        self.interval_minutes = interval_minutes
        self.default_frame_count = default_frame_count
        self.max_frame_count = max_frame_count
        self.default_lag_hours = default_lag_hours
        self.default_wait_seconds = default_wait_seconds
        self.min_speed_ms = min_speed_ms
        self.max_speed_ms = max_speed_ms
        self.layers: Tuple[LayerStyle, ...] = tuple(layers)
        self.surface = surface
        self.display_sink = display_sink
        self._clock = clock

        self.scheduler = PlaybackScheduler(
            speed_ms=self._validate_speed(speed_ms),
            on_frame=self._on_frame,
            on_exhausted=self._on_exhausted,
        )

        self._time_range: Optional[TimeRange] = None
        self._catalog: Optional[FrameCatalog] = None
        self._last_result: Optional[ProbeResult] = None
        self._preload_status = PreloadStatus()
        self._condition = SessionCondition.IDLE

        self._run_id: int = 0
        self._probe_task: Optional[asyncio.Task] = None
        self._default_timer: Optional[asyncio.TimerHandle] = None

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def preload_status(self) -> PreloadStatus:
        return self._preload_status

    @property
    def playback_state(self) -> PlaybackState:
        return self.scheduler.snapshot()

    @property
    def condition(self) -> SessionCondition:
        return self._condition

    @property
    def catalog(self) -> Optional[FrameCatalog]:
        return self._catalog

    @property
    def time_range(self) -> Optional[TimeRange]:
        return self._time_range

    @property
    def last_result(self) -> Optional[ProbeResult]:
        return self._last_result

    @property
    def probe_in_flight(self) -> bool:
        return self._probe_task is not None and not self._probe_task.done()

    @property
    def current_frame(self) -> Optional[FrameAddress]:
        """Active frame, None before playback starts."""
        index = self.scheduler.current_index
        if self._catalog is None or index is None:
            return None
        return self._catalog.get(index)

    def frame_label(self) -> Optional[str]:
        """Frame indicator text, e.g. ``Frame 3/12 • 2025-05-12 17:00 UTC``."""
        if self._catalog is None or self.scheduler.current_index is None:
            return None
        index = self.scheduler.current_index
        label = f"Frame {index + 1}/{self._catalog.total_frames}"
        frame = self._catalog.get(index)
        if frame is not None:
            label += f" • {frame.fields.label()}"
        return label

    def snapshot(self) -> dict:
        """JSON-ready view of the session state."""
        frame = self.current_frame
        return {
            "condition": self._condition.value,
            "preload": self._preload_status.model_dump(mode="json"),
            "playback": self.playback_state.model_dump(mode="json"),
            "range": self._time_range.model_dump(mode="json") if self._time_range else None,
            "frames_available": self._catalog.size() if self._catalog is not None else 0,
            "current_frame": frame.to_dict() if frame is not None else None,
            "label": self.frame_label(),
        }

    # =========================================================================
    # Triggers
    # =========================================================================

    def start(self) -> None:
        """
        Arm the default trigger.

        If no explicit range arrives within ``default_wait_seconds`` the
        default range is probed.
        """
        if self._time_range is not None or self._default_timer is not None:
            return
        loop = asyncio.get_running_loop()
        self._default_timer = loop.call_later(
            self.default_wait_seconds,
            self._fire_default,
        )
        logger.info(f"Default range armed ({self.default_wait_seconds:.1f}s)")

    def default_range(self) -> TimeRange:
        """Default range: ``default_frame_count`` frames from now minus lag."""
        base = default_base_time(self._clock(), self.default_lag_hours, self.interval_minutes)
        return TimeRange.from_count(base, self.default_frame_count, self.interval_minutes)

    def start_from_params(
        self,
        start: Optional[object] = None,
        end: Optional[object] = None,
    ) -> asyncio.Task:
        """
        Range trigger from external (possibly malformed) parameters.

        Falls back to the default range when neither bound is usable.
        """
        time_range = resolve_range(
            start,
            end,
            now=self._clock(),
            interval_minutes=self.interval_minutes,
            default_frame_count=self.default_frame_count,
            lag_hours=self.default_lag_hours,
            max_frame_count=self.max_frame_count,
        )
        if time_range is None:
            logger.info("No usable range parameters, using default range")
            time_range = self.default_range()
        return self.start_range(time_range)

    def start_range(self, time_range: TimeRange) -> asyncio.Task:
        """
        Invalidate the current catalog and start a new probe run.

        Any pending playback tick, default trigger and in-flight probe run
        are cancelled first.

        Returns:
            Task running the probe
        """
        if self.max_frame_count is not None and time_range.total_frames > self.max_frame_count:
            raise ValueError(
                f"Range of {time_range.total_frames} frames exceeds max_frame_count "
                f"({self.max_frame_count})"
            )

        self._cancel_default_timer()
        self.scheduler.reset()

        self._run_id += 1
        run_id = self._run_id
        if self._probe_task is not None and not self._probe_task.done():
            logger.info("Superseding in-flight probe run")
            self._probe_task.cancel()

        self._time_range = time_range
        self._catalog = None
        self._preload_status = PreloadStatus(progress_percent=0, complete=False, in_flight=True)
        self._condition = SessionCondition.PRELOADING
        self._publish_frames(None)

        logger.info(
            f"Range set: {time_range.base:%Y-%m-%dT%H:%MZ} + "
            f"{time_range.total_frames} frames @ {time_range.interval_minutes}min"
        )
        self._probe_task = asyncio.get_running_loop().create_task(
            self._run_probe(run_id, time_range),
            name=f"probe_run_{run_id}",
        )
        return self._probe_task

    def refresh(self) -> Optional[asyncio.Task]:
        """
        Re-probe the current range so late-arriving frames are picked up.

        No-op while a probe run is in flight or before any range is set.
        """
        if self.probe_in_flight:
            logger.info("Probe already in flight, refresh ignored")
            return None
        if self._time_range is None:
            return None
        return self.start_range(self._time_range)

    async def wait_for_probe(self) -> Optional[ProbeResult]:
        """
        Wait for the current probe run to finish.

        Follows superseding runs until the latest one settles.

        Returns:
            Result of the latest completed run, None if none completed
        """
        while (task := self._probe_task) is not None:
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
            if task is self._probe_task:
                break
        return self._last_result

    # =========================================================================
    # Playback Controls
    # =========================================================================

    def play(self) -> bool:
        """
        Start or resume playback.

        Returns:
            True if playback is running afterwards
        """
        if self._catalog is None or self._catalog.size() == 0:
            logger.warning("Play requested without frames")
            return False

        state = self.scheduler.state
        if state is SchedulerState.PAUSED:
            self.scheduler.resume()
        elif state is SchedulerState.IDLE:
            self.scheduler.start(self._catalog, self._catalog.recommended_start())
        elif state is SchedulerState.STOPPED:
            self.scheduler.reset()
            self.scheduler.start(self._catalog, self._catalog.recommended_start())

        self._condition = SessionCondition.PLAYING
        return True

    def pause(self) -> None:
        """Pause playback, keeping the current frame."""
        self.scheduler.pause()
        if self._condition is SessionCondition.PLAYING:
            self._condition = SessionCondition.READY

    def reset(self) -> None:
        """Stop playback and return the cursor to IDLE."""
        self.scheduler.reset()
        if self._condition in (SessionCondition.PLAYING, SessionCondition.NO_VALID_FRAMES):
            self._condition = SessionCondition.READY

    def set_speed(self, speed_ms: int) -> None:
        """Change milliseconds between frames (applies from the next tick)."""
        self.scheduler.set_speed(self._validate_speed(speed_ms))

    def set_layers(self, layers: Sequence[LayerStyle]) -> None:
        """
        Replace the rendered layers.

        Playback restarts from the recommended frame, as it does when a
        display layer is toggled.
        """
        self.layers = tuple(layers)
        self.reset()
        if self._catalog is not None and self._catalog.size() > 0:
            self.play()
        else:
            self._publish_frames(None)

    def close(self) -> None:
        """Cancel every pending timer and probe run."""
        self._cancel_default_timer()
        self.scheduler.reset()
        self._run_id += 1
        if self._probe_task is not None and not self._probe_task.done():
            self._probe_task.cancel()

    async def aclose(self) -> None:
        """Cancel everything like close() and wait for the probe task to finish."""
        task = self._probe_task
        self.close()
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
        logger.info("Session closed")

    # =========================================================================
    # Internals
    # =========================================================================

    def _validate_speed(self, speed_ms: int) -> int:
        if speed_ms < self.min_speed_ms or (
            self.max_speed_ms is not None and speed_ms > self.max_speed_ms
        ):
            raise ValueError(
                f"speed_ms must be within [{self.min_speed_ms}, {self.max_speed_ms}]"
            )
        return speed_ms

    def _fire_default(self) -> None:
        self._default_timer = None
        if self._time_range is not None:
            return
        logger.info("No range supplied, probing default range")
        self.start_range(self.default_range())

    def _cancel_default_timer(self) -> None:
        if self._default_timer is not None:
            self._default_timer.cancel()
            self._default_timer = None

    async def _run_probe(self, run_id: int, time_range: TimeRange) -> None:
        def _on_progress(status: PreloadStatus) -> None:
            if run_id == self._run_id:
                self._preload_status = status

        unsubscribe = self.prober.add_observer(_on_progress)
        try:
            result = await self.prober.run(time_range)
        except asyncio.CancelledError:
            logger.info(f"Probe run {run_id} cancelled")
            raise
        except Exception as e:
            logger.error(f"Probe run {run_id} failed: {e}")
            result = ProbeResult(
                time_range=time_range,
                catalog=FrameCatalog.empty(time_range.total_frames),
                status=PreloadStatus(progress_percent=100, complete=True, in_flight=False),
                failed_indices=tuple(range(time_range.total_frames)),
                recommended_index=None,
                duration_seconds=0.0,
            )
        finally:
            unsubscribe()

        if run_id != self._run_id:
            logger.info(f"Discarding result of superseded probe run {run_id}")
            return
        self._install(result)

    def _install(self, result: ProbeResult) -> None:
        """Install a finished run's catalog and start playback."""
        self._last_result = result
        self._catalog = result.catalog
        self._preload_status = result.status

        if result.recommended_index is None:
            self._condition = SessionCondition.NO_DATA
            logger.warning(
                f"No data in range: 0/{result.catalog.total_frames} frames available"
            )
            self._publish_frames(None)
            return

        self._condition = SessionCondition.READY
        self.scheduler.start(result.catalog, result.recommended_index)
        self._condition = SessionCondition.PLAYING

    def _on_frame(self, index: int) -> None:
        self._publish_frames(index)
        frame = self._catalog.get(index) if self._catalog is not None else None
        if frame is not None and self.display_sink is not None:
            self.display_sink.show_time(frame.fields)

    def _on_exhausted(self) -> None:
        self._condition = SessionCondition.NO_VALID_FRAMES

    def _publish_frames(self, active_index: Optional[int]) -> None:
        if self.surface is None:
            return
        if self._catalog is None:
            self.surface.show([])
            return
        self.surface.show(bind_frames(self._catalog, self.layers, active_index))
