"""
Playback Scheduler
==================

Timed, cancellable loop advancing the "current frame" cursor through a
FrameCatalog.

State machine:
    IDLE → PLAYING:    start(catalog, index) with a non-empty catalog
    PLAYING → PLAYING: tick; after speed_ms move to the next occupied index
    PLAYING → PAUSED:  pause(); pending tick cancelled, cursor kept
    PAUSED → PLAYING:  resume(); next tick after speed_ms
    PLAYING → STOPPED: no occupied index found within total_frames steps
    any → IDLE:        reset(); pending tick cancelled, cursor zeroed

Timer Model:
    At most one asyncio timer handle is pending at any time. Every scheduled
    tick carries a token; a tick whose token no longer matches the current
    one is ignored, so a cancelled or superseded tick can never advance the
    cursor.

Design Rules:
    - The scheduler reads the catalog, it never mutates it
    - No exception escapes a tick; failures degrade to STOPPED
    - A speed change applies from the next scheduled tick
"""

import asyncio
import logging
from typing import Callable, Optional

from raster_playback.models.status import PlaybackState, SchedulerState
from raster_playback.probe.catalog import FrameCatalog


logger = logging.getLogger(__name__)


FrameObserver = Callable[[int], None]
ExhaustedObserver = Callable[[], None]


def next_index(catalog: FrameCatalog, current: int) -> Optional[int]:
    """
    Next occupied index after ``current``, wrapping modulo total_frames.

    Scans at most ``total_frames`` successors, so a singleton catalog
    returns its own index and an empty catalog returns None.
    """
    total = catalog.total_frames
    for step in range(1, total + 1):
        candidate = (current + step) % total
        if candidate in catalog:
            return candidate
    return None


class PlaybackScheduler:
    """
    Cyclic, gap-skipping playback loop.

    Attributes:
        state: Current SchedulerState
        current_index: Active frame index (None before the first start)
        speed_ms: Milliseconds between ticks

    Example:
        scheduler = PlaybackScheduler(speed_ms=1500, on_frame=render)
        scheduler.start(catalog, catalog.recommended_start())

        scheduler.pause()
        scheduler.set_speed(500)
        scheduler.resume()
    """

    def __init__(
        self,
        speed_ms: int = 1500,
        on_frame: Optional[FrameObserver] = None,
        on_exhausted: Optional[ExhaustedObserver] = None,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            speed_ms: Milliseconds between ticks. Must be > 0.
            on_frame: Called with the new index whenever the cursor moves
            on_exhausted: Called when playback stops for lack of frames
        """
        if speed_ms <= 0:
            raise ValueError("speed_ms must be > 0")

        self._speed_ms = speed_ms
        self._on_frame = on_frame
        self._on_exhausted = on_exhausted

        self._state = SchedulerState.IDLE
        self._catalog: Optional[FrameCatalog] = None
        self._current_index: Optional[int] = None

        self._timer: Optional[asyncio.TimerHandle] = None
        self._token: int = 0
        self._tick_count: int = 0

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def current_index(self) -> Optional[int]:
        return self._current_index

    @property
    def speed_ms(self) -> int:
        return self._speed_ms

    @property
    def catalog(self) -> Optional[FrameCatalog]:
        return self._catalog

    @property
    def is_playing(self) -> bool:
        return self._state is SchedulerState.PLAYING

    @property
    def has_pending_tick(self) -> bool:
        """Whether a tick timer is currently armed."""
        return self._timer is not None

    @property
    def tick_count(self) -> int:
        """Ticks that advanced the cursor since the last start."""
        return self._tick_count

    def snapshot(self) -> PlaybackState:
        """Read-only snapshot of the playback state."""
        return PlaybackState(
            current_frame_index=self._current_index,
            is_playing=self.is_playing,
            speed_ms=self._speed_ms,
            state=self._state,
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def start(self, catalog: FrameCatalog, index: int) -> None:
        """
        Start playback at ``index`` (IDLE → PLAYING).

        Must be called from within a running event loop.

        Args:
            catalog: Non-empty catalog to play
            index: Start index; must be occupied in ``catalog``
        """
        if self._state is not SchedulerState.IDLE:
            raise RuntimeError(f"Cannot start from {self._state.value}; reset first")
        if catalog.size() == 0:
            raise ValueError("Cannot start playback with an empty catalog")
        if index not in catalog:
            raise ValueError(f"Start index {index} is not in the catalog")

        self._catalog = catalog
        self._current_index = index
        self._tick_count = 0
        self._state = SchedulerState.PLAYING

        logger.info(
            f"Playback started at frame {index} "
            f"({catalog.size()}/{catalog.total_frames} frames, {self._speed_ms}ms)"
        )
        self._notify_frame(index)
        self._schedule()

    def pause(self) -> None:
        """Pause playback (PLAYING → PAUSED). Cursor is preserved."""
        if self._state is not SchedulerState.PLAYING:
            return
        self._cancel_timer()
        self._state = SchedulerState.PAUSED
        logger.info(f"Playback paused at frame {self._current_index}")

    def resume(self) -> None:
        """Resume playback (PAUSED → PLAYING)."""
        if self._state is not SchedulerState.PAUSED:
            return
        self._state = SchedulerState.PLAYING
        logger.info(f"Playback resumed at frame {self._current_index}")
        self._schedule()

    def reset(self) -> None:
        """Return to IDLE from any state. Cancels the pending tick."""
        self._cancel_timer()
        self._state = SchedulerState.IDLE
        self._catalog = None
        if self._current_index is not None:
            self._current_index = 0
        logger.debug("Playback reset")

    def set_speed(self, speed_ms: int) -> None:
        """
        Change the tick interval.

        An already pending tick keeps its original delay.

        Args:
            speed_ms: Milliseconds between ticks. Must be > 0.
        """
        if speed_ms <= 0:
            raise ValueError("speed_ms must be > 0")
        self._speed_ms = speed_ms
        logger.debug(f"Playback speed set to {speed_ms}ms")

    def advance(self) -> Optional[int]:
        """
        Perform one tick step without waiting.

        Returns:
            The new current index, or None if playback stopped
        """
        if self._state is not SchedulerState.PLAYING or self._catalog is None:
            return None

        current = self._current_index if self._current_index is not None else 0
        target = next_index(self._catalog, current)

        if target is None:
            self._cancel_timer()
            self._state = SchedulerState.STOPPED
            logger.warning("No valid frames found. Stopping playback.")
            self._notify_exhausted()
            return None

        self._current_index = target
        self._tick_count += 1
        logger.debug(f"Tick {self._tick_count}: frame {current} -> {target}")
        self._notify_frame(target)
        return target

    # =========================================================================
    # Timer Handling
    # =========================================================================

    def _schedule(self) -> None:
        """Arm the single tick timer, replacing any pending one."""
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._token += 1
        self._timer = loop.call_later(
            self._speed_ms / 1000.0,
            self._on_timer,
            self._token,
        )

    def _cancel_timer(self) -> None:
        self._token += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, token: int) -> None:
        if token != self._token:
            return
        self._timer = None
        if self._state is not SchedulerState.PLAYING:
            return

        try:
            self.advance()
        except Exception as e:
            logger.error(f"Playback tick failed: {e}")
            self._state = SchedulerState.STOPPED
            self._notify_exhausted()
            return

        if self._state is SchedulerState.PLAYING:
            self._schedule()

    # =========================================================================
    # Notifications
    # =========================================================================

    def _notify_frame(self, index: int) -> None:
        if self._on_frame is None:
            return
        try:
            self._on_frame(index)
        except Exception as e:
            logger.error(f"Frame observer failed (frame={index}): {e}")

    def _notify_exhausted(self) -> None:
        if self._on_exhausted is None:
            return
        try:
            self._on_exhausted()
        except Exception as e:
            logger.error(f"Exhausted observer failed: {e}")
