"""Abstract base class for the HID transport layer.

The HidTransport interface is the only platform-specific piece of the
reader stack. Implementations enumerate HID devices, open and close
handles and perform timed reads. Everything above it (device filtering,
connection state, polling, report parsing) is platform-agnostic.

Key principles:
- Handles are opaque to callers
- Reads are always bounded by a timeout
- Failures are raised as TransportError, never swallowed
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List


class TransportError(RuntimeError):
    """Raised when the HID layer fails to open, read or close a device."""
    pass


@dataclass(frozen=True)
class RawDeviceInfo:
    """One HID device as reported by the platform enumeration.

    Attributes:
        path: Path to open the device with
        vendor_id: USB Vendor ID
        product_id: USB Product ID
        serial_number: USB serial string, empty if the device reports none
        manufacturer: USB manufacturer string, if available
        product: USB product string, if available
        interface_number: USB interface number, -1 if unknown
    """
    path: str
    vendor_id: int
    product_id: int
    serial_number: str = ""
    manufacturer: str = ""
    product: str = ""
    interface_number: int = -1


class HidTransport(ABC):
    """Abstract HID transport.

    Transports are responsible for:
    1. Preparing and releasing the platform HID library
    2. Enumerating attached HID devices
    3. Opening, reading from and closing device handles

    Transports should NOT filter devices or interpret reports.
    """

    def initialize(self) -> bool:
        """Prepare the HID library for use.

        Returns:
            True if the transport is usable, False otherwise
        """
        return True

    def shutdown(self) -> None:
        """Release library-level resources. Safe to call multiple times."""
        pass

    @abstractmethod
    def enumerate(self) -> List[RawDeviceInfo]:
        """List all attached HID devices.

        Raises:
            TransportError: If enumeration fails
        """
        pass

    @abstractmethod
    def open(self, path: str) -> Any:
        """Open the device at ``path`` for timed reads.

        Returns:
            Opaque handle to pass to read() and close()

        Raises:
            TransportError: If the device cannot be opened
        """
        pass

    @abstractmethod
    def read(self, handle: Any, size: int, timeout_ms: int) -> bytes:
        """Read one input report.

        Args:
            handle: Handle returned by open()
            size: Maximum number of bytes to read
            timeout_ms: Maximum time to wait for a report

        Returns:
            Report bytes, or empty bytes if nothing arrived in time

        Raises:
            TransportError: If the read fails
        """
        pass

    @abstractmethod
    def close(self, handle: Any) -> None:
        """Close a handle returned by open().

        Raises:
            TransportError: If closing fails
        """
        pass
