"""Control surface for calling applications.

Wraps the ReaderManager with the method set the host application talks
to (initialize, dispose, getConnectedDevices, connectToDevice,
disconnect, isConnected) and turns reader events into wire maps for any
number of subscribers.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional

from .models import CardData, DeviceInfo
from .reader.errors import InitializationError, InvalidArgumentsError, NotInitializedError
from .reader.manager import ReaderManager
from .transport.base import HidTransport

logger = logging.getLogger(__name__)

DEVICE_CONNECTED_EVENT = "device_connected"

EventCallback = Callable[[Dict[str, Any]], None]


class CardReaderService:
    """High-level interface to the card reader core.

    This class acts as a facade, managing:
    1. The ReaderManager lifecycle (created on initialize, released on dispose)
    2. Argument validation and named errors for control operations
    3. Fan-out of swipe and connection events to subscribers

    Control operations raise CardReaderError subclasses carrying a ``code``
    (NOT_INITIALIZED, INITIALIZATION_FAILED, INVALID_ARGUMENTS). Device
    lookup and open failures are not errors: connect_to_device returns False.
    """

    def __init__(self, transport_factory: Optional[Callable[[], HidTransport]] = None):
        """Initialize service.

        Args:
            transport_factory: Builds the HID transport for each new manager,
                or None for the default hidapi transport.
        """
        self._transport_factory = transport_factory
        self._manager: Optional[ReaderManager] = None
        self._lifecycle_lock = threading.Lock()

        self._card_swipe_subscribers: List[EventCallback] = []
        self._device_event_subscribers: List[EventCallback] = []
        self._subscriber_lock = threading.Lock()

    # --- Control operations ---

    def initialize(self) -> None:
        """Create the manager, wire events and start monitoring.

        Raises:
            InitializationError: If the HID transport cannot be prepared
        """
        with self._lifecycle_lock:
            if self._manager is not None:
                return

            transport = self._transport_factory() if self._transport_factory else None
            manager = ReaderManager(transport)
            if not manager.initialize():
                raise InitializationError("Failed to initialize USB device manager")

            manager.set_card_swipe_callback(self._on_card_swipe)
            manager.set_device_connection_callback(self._on_device_connected)
            manager.start_monitoring()
            self._manager = manager

    def dispose(self) -> None:
        """Tear down the manager. Never fails.

        The lifecycle lock is held until teardown completes, so a concurrent
        initialize() waits instead of starting a second manager alongside
        the one being torn down.
        """
        with self._lifecycle_lock:
            manager = self._manager
            self._manager = None

            if manager is not None:
                manager.teardown()

    def get_connected_devices(self) -> List[Dict[str, Any]]:
        """List attached readers as wire maps.

        Raises:
            NotInitializedError: If initialize() has not succeeded
        """
        return [device.to_dict() for device in self._require_manager().list_devices()]

    def connect_to_device(self, arguments: Any) -> bool:
        """Connect to the reader named by ``arguments["deviceId"]``.

        Returns:
            True if connected; False if not found or could not be opened

        Raises:
            NotInitializedError: If initialize() has not succeeded
            InvalidArgumentsError: If arguments are not a map with a string deviceId
        """
        manager = self._require_manager()

        if not isinstance(arguments, Mapping):
            raise InvalidArgumentsError("Arguments must be a map")

        device_id = arguments.get("deviceId")
        if not isinstance(device_id, str):
            raise InvalidArgumentsError("deviceId must be a string")

        return manager.connect(device_id)

    def disconnect(self) -> None:
        """Disconnect the current reader.

        Raises:
            NotInitializedError: If initialize() has not succeeded
        """
        self._require_manager().disconnect()

    def is_connected(self) -> bool:
        """Whether a reader is connected; False when uninitialized."""
        manager = self._manager
        if manager is None:
            return False
        return manager.is_connected()

    @property
    def is_initialized(self) -> bool:
        return self._manager is not None

    # --- Event streams ---

    def subscribe_card_swipes(self, callback: EventCallback) -> Callable[[], None]:
        """Subscribe to card swipe events.

        The callback receives CardData wire maps (track1, track2, track3,
        deviceId, rawResponse, timestamp).

        Returns:
            Unsubscribe function
        """
        return self._subscribe(self._card_swipe_subscribers, callback)

    def subscribe_device_events(self, callback: EventCallback) -> Callable[[], None]:
        """Subscribe to device events.

        The callback receives ``{"type": "device_connected", "device": {...}}``.

        Returns:
            Unsubscribe function
        """
        return self._subscribe(self._device_event_subscribers, callback)

    # Internal methods

    def _require_manager(self) -> ReaderManager:
        manager = self._manager
        if manager is None:
            raise NotInitializedError("Device manager not initialized")
        return manager

    def _subscribe(
        self, subscribers: List[EventCallback], callback: EventCallback
    ) -> Callable[[], None]:
        with self._subscriber_lock:
            subscribers.append(callback)

        def unsubscribe():
            with self._subscriber_lock:
                if callback in subscribers:
                    subscribers.remove(callback)

        return unsubscribe

    def _on_card_swipe(self, card: CardData) -> None:
        self._publish(self._card_swipe_subscribers, card.to_dict())

    def _on_device_connected(self, device: DeviceInfo) -> None:
        self._publish(
            self._device_event_subscribers,
            {"type": DEVICE_CONNECTED_EVENT, "device": device.to_dict()},
        )

    def _publish(self, subscribers: List[EventCallback], event: Dict[str, Any]) -> None:
        """Notify all subscribers; a failing subscriber does not stop the others."""
        with self._subscriber_lock:
            callbacks = list(subscribers)

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in event subscriber: {e}")
