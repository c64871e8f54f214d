"""Connection state manager for USB HID magnetic stripe readers.

The manager owns at most one open reader handle and serializes every
operation on it (connect, disconnect, read) behind a single lock. Reads
hold the lock for their whole duration, so a handle is never closed
while the monitor thread is reading from it. Reads are bounded by a short
timeout, which bounds how long connect/disconnect can wait.

This module handles:
- Enumeration and filtering of readers
- Opening/closing the single connected reader
- Timed report reads on behalf of the SwipeMonitor
- The card-swipe and device-connection callback slots

Note: All public operations are total. Failures are logged and reported
      through return values, never raised.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional

from ..models import CardData, DeviceInfo
from ..transport.base import HidTransport, TransportError
from .errors import DeviceNotFoundError, DeviceOpenError
from .identity import find_readers
from .monitor import DEFAULT_POLL_INTERVAL, SwipeMonitor
from .report import parse_input_report

logger = logging.getLogger(__name__)

READ_TIMEOUT_MS = 10
REPORT_SIZE = 256  # bytes

CardSwipeCallback = Callable[[CardData], None]
DeviceConnectionCallback = Callable[[DeviceInfo], None]


class ReaderManager:
    """Discovers, connects to and polls magnetic stripe card readers.

    Responsibilities:
    - Prepare and release the HID transport
    - List supported readers with their connection flag
    - Connect to one reader by device id, disconnect from it
    - Run the background SwipeMonitor
    - Deliver swipe and connection events to the registered callbacks

    Example:
        >>> manager = ReaderManager()
        >>> manager.initialize()
        True
        >>> manager.set_card_swipe_callback(lambda card: print(card.track2))
        >>> devices = manager.list_devices()
        >>> manager.connect(devices[0].device_id)
        True
        >>> manager.start_monitoring()
        >>> # ... swipe a card ...
        >>> manager.teardown()
    """

    def __init__(self,
                 transport: Optional[HidTransport] = None,
                 *,
                 read_timeout_ms: int = READ_TIMEOUT_MS,
                 report_size: int = REPORT_SIZE,
                 poll_interval: float = DEFAULT_POLL_INTERVAL):
        """Initialize reader manager.

        Args:
            transport: HID transport, or None for HidApiTransport
            read_timeout_ms: Timeout of each report read
            report_size: Maximum report size to read
            poll_interval: Seconds between monitor ticks
        """
        if transport is None:
            from ..transport.hidapi import HidApiTransport
            transport = HidApiTransport()

        self._transport = transport
        self._read_timeout_ms = read_timeout_ms
        self._report_size = report_size

        self._initialized = False

        # Shared state, guarded by _lock
        self._handle: Any = None
        self._connected_id: Optional[str] = None
        self._lock = threading.RLock()

        # Callback slots
        self._card_swipe_callback: Optional[CardSwipeCallback] = None
        self._device_connection_callback: Optional[DeviceConnectionCallback] = None
        self._callback_lock = threading.Lock()

        self._monitor = SwipeMonitor(self, interval=poll_interval)

    # --- Lifecycle ---

    def initialize(self) -> bool:
        """Prepare the transport. Must be called before any other operation.

        Returns:
            True if the transport is ready, False otherwise
        """
        if self._initialized:
            return True

        try:
            ready = self._transport.initialize()
        except Exception as e:
            logger.error(f"Transport initialization raised: {e}")
            ready = False

        if not ready:
            logger.error("Failed to initialize HID transport")
            return False

        self._initialized = True
        logger.info("Reader manager initialized")
        return True

    def teardown(self) -> None:
        """Stop monitoring, disconnect and release the transport.

        Idempotent; safe to call multiple times.
        """
        self.stop_monitoring()
        self.disconnect()

        if self._initialized:
            self._initialized = False
            try:
                self._transport.shutdown()
            except Exception as e:
                logger.warning(f"Error shutting down transport: {e}")
            logger.info("Reader manager torn down")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def __enter__(self) -> ReaderManager:
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.teardown()

    # --- Devices ---

    def list_devices(self) -> List[DeviceInfo]:
        """Enumerate supported readers.

        Returns:
            Fresh DeviceInfo snapshots; empty on enumeration failure
        """
        if not self._initialized:
            logger.warning("list_devices called before initialize")
            return []

        with self._lock:
            connected_id = self._connected_id

        try:
            raw = self._transport.enumerate()
        except TransportError as e:
            logger.error(f"Error enumerating devices: {e}")
            return []

        return find_readers(raw, connected_id=connected_id)

    @property
    def connected_device_id(self) -> Optional[str]:
        with self._lock:
            return self._connected_id

    def connect(self, device_id: str) -> bool:
        """Open the reader with the given device id.

        Any currently open reader is closed first. On success the
        device-connection callback receives a fresh DeviceInfo.

        Args:
            device_id: Identifier from list_devices()

        Returns:
            True if the reader is now connected, False otherwise
        """
        if not self._initialized:
            logger.warning("connect called before initialize")
            return False

        with self._lock:
            self._close_handle()
            try:
                self._handle = self._open_device(device_id)
            except (DeviceNotFoundError, DeviceOpenError) as e:
                logger.error(e.message)
                return False
            self._connected_id = device_id

        logger.info(f"Connected to device: {device_id}")
        self._notify_device_connected(device_id)
        return True

    def disconnect(self) -> None:
        """Close the connected reader. No-op if already disconnected."""
        with self._lock:
            if self._handle is None:
                return
            self._close_handle()
        logger.info("Disconnected from device")

    def is_connected(self) -> bool:
        """Check whether a reader handle is open."""
        with self._lock:
            return self._handle is not None

    # --- Monitoring ---

    def start_monitoring(self) -> None:
        """Start the background swipe monitor. Idempotent."""
        self._monitor.start()

    def stop_monitoring(self) -> None:
        """Stop the swipe monitor and wait for its thread to exit."""
        self._monitor.stop()

    @property
    def is_monitoring(self) -> bool:
        return self._monitor.is_running

    def read_report(self) -> Optional[CardData]:
        """Perform one timed read from the connected reader.

        The lock is held for the duration of the read so the handle
        cannot be closed underneath it.

        Returns:
            Parsed CardData, or None if disconnected, no data, or read error
        """
        with self._lock:
            if self._handle is None:
                return None
            device_id = self._connected_id
            try:
                data = self._transport.read(
                    self._handle, self._report_size, self._read_timeout_ms
                )
            except TransportError as e:
                logger.warning(f"Error reading from device: {e}")
                return None

        if not data:
            return None
        return parse_input_report(data, device_id)

    # --- Callbacks ---

    def set_card_swipe_callback(self, callback: Optional[CardSwipeCallback]) -> None:
        """Register the card-swipe sink, replacing any previous one."""
        with self._callback_lock:
            self._card_swipe_callback = callback

    def set_device_connection_callback(
        self, callback: Optional[DeviceConnectionCallback]
    ) -> None:
        """Register the device-connection sink, replacing any previous one."""
        with self._callback_lock:
            self._device_connection_callback = callback

    def dispatch_card_swipe(self, card: CardData) -> None:
        """Deliver a swipe to the card-swipe sink, if one is registered."""
        with self._callback_lock:
            callback = self._card_swipe_callback
        if callback is None:
            return

        try:
            callback(card)
        except Exception as e:
            logger.error(f"Error in card swipe callback: {e}")

    # Internal methods

    def _open_device(self, device_id: str) -> Any:
        """Find the reader by id and open it. Caller holds the lock."""
        try:
            raw = self._transport.enumerate()
        except TransportError as e:
            raise DeviceNotFoundError(f"Enumeration failed: {e}", device_id) from e

        target = next(
            (info for info in find_readers(raw) if info.device_id == device_id),
            None,
        )
        if target is None:
            raise DeviceNotFoundError(f"Device not found: {device_id}", device_id)

        try:
            return self._transport.open(target.device_path)
        except TransportError as e:
            raise DeviceOpenError(
                f"Failed to open device {target.device_path}: {e}",
                device_id,
                target.device_path,
            ) from e

    def _close_handle(self) -> None:
        """Close the current handle, best effort. Caller holds the lock."""
        if self._handle is None:
            return

        handle = self._handle
        self._handle = None
        self._connected_id = None
        try:
            self._transport.close(handle)
        except TransportError as e:
            logger.warning(f"Error closing device: {e}")

    def _notify_device_connected(self, device_id: str) -> None:
        """Send a fresh snapshot of the connected reader to the sink.

        If the reader vanished between open and re-enumeration, the event
        is skipped.
        """
        with self._callback_lock:
            callback = self._device_connection_callback
        if callback is None:
            return

        device = next(
            (info for info in self.list_devices() if info.device_id == device_id),
            None,
        )
        if device is None:
            logger.warning(f"Connected device {device_id} missing from enumeration")
            return

        try:
            callback(device)
        except Exception as e:
            logger.error(f"Error in device connection callback: {e}")
