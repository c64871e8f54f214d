"""Background polling loop that turns reader input reports into swipe events.

The SwipeMonitor owns a single worker thread. On every tick it asks the
manager for one timed read from the connected reader and forwards any
report carrying track data to the manager's card-swipe slot.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .manager import ReaderManager

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.05  # seconds


class SwipeMonitor:
    """Polls the connected reader on a fixed cadence.

    Two states: stopped and running. start() spawns exactly one worker;
    stop() signals it and waits for it to exit so that no read or swipe
    callback happens after stop() returns.

    Read errors are transient: they are logged by the manager and the loop
    keeps going. Only an explicit disconnect changes connection state.
    """

    def __init__(self, manager: ReaderManager, interval: float = DEFAULT_POLL_INTERVAL):
        """Initialize monitor.

        Args:
            manager: ReaderManager that owns the device handle
            interval: Seconds between read attempts
        """
        self._manager = manager
        self._interval = interval

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._state_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        with self._state_lock:
            return self._thread is not None

    def start(self) -> None:
        """Start the worker. No-op if already running."""
        with self._state_lock:
            if self._thread is not None:
                return

            # One stop event per worker.
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._monitor_loop,
                args=(self._stop_event,),
                daemon=True,
                name="SwipeMonitor"
            )
            self._thread.start()
        logger.info(f"Swipe monitor started (interval={self._interval}s)")

    def stop(self) -> None:
        """Stop the worker and wait for it to exit. No-op if stopped."""
        with self._state_lock:
            thread = self._thread
            if thread is None:
                return
            self._thread = None
            self._stop_event.set()

        if thread is threading.current_thread():
            # Called from a swipe callback; the loop exits after this tick.
            logger.debug("Swipe monitor stop requested from worker thread")
            return

        # The in-flight tick is bounded by the read timeout plus callback time.
        thread.join()
        logger.info("Swipe monitor stopped")

    def poll_once(self) -> bool:
        """Run a single tick.

        Returns:
            True if a swipe was dispatched
        """
        if not self._manager.is_connected():
            return False

        card = self._manager.read_report()
        if card is None or not card.has_track_data:
            return False

        logger.info(f"Card swipe detected on {card.device_id}")
        self._manager.dispatch_card_swipe(card)
        return True

    def _monitor_loop(self, stop_event: threading.Event) -> None:
        logger.debug("Monitor thread started")

        while not stop_event.is_set():
            started = time.monotonic()
            try:
                self.poll_once()
            except Exception as e:
                logger.error(f"Error in swipe monitor loop: {e}")

            # Sleep until the next tick boundary.
            elapsed = time.monotonic() - started
            stop_event.wait(max(0.0, self._interval - elapsed))

        logger.debug("Monitor thread exiting")
