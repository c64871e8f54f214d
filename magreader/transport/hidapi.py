"""HID transport implementation backed by hidapi.

Implements the HidTransport interface with the ``hid`` module from the
hidapi distribution (cython-hidapi), which wraps libhidapi on Linux,
Windows and macOS alike.
"""
from __future__ import annotations

import logging
from typing import Any, List

import hid

from .base import HidTransport, RawDeviceInfo, TransportError

logger = logging.getLogger(__name__)


def _decode_path(path) -> str:
    """hidapi reports paths as bytes; keep them as str above this layer."""
    if isinstance(path, bytes):
        return path.decode("utf-8", errors="replace")
    return path or ""


def _info_from_dict(info: dict) -> RawDeviceInfo:
    """Convert one hid.enumerate() entry to RawDeviceInfo."""
    return RawDeviceInfo(
        path=_decode_path(info.get("path")),
        vendor_id=int(info.get("vendor_id") or 0),
        product_id=int(info.get("product_id") or 0),
        serial_number=info.get("serial_number") or "",
        manufacturer=info.get("manufacturer_string") or "",
        product=info.get("product_string") or "",
        interface_number=int(info.get("interface_number", -1)),
    )


class HidApiTransport(HidTransport):
    """Transport layer using hidapi device handles.

    Responsibilities:
    - Enumerate HID devices
    - Open devices by path in non-blocking mode
    - Timed reads of input reports
    """

    def initialize(self) -> bool:
        """Probe hidapi with a single enumeration."""
        try:
            hid.enumerate()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to initialize hidapi: {e}")
            return False
        return True

    def enumerate(self) -> List[RawDeviceInfo]:
        try:
            return [_info_from_dict(info) for info in hid.enumerate()]
        except (OSError, ValueError) as e:
            raise TransportError(f"HID enumeration failed: {e}") from e

    def open(self, path: str) -> Any:
        handle = hid.device()
        try:
            handle.open_path(path.encode("utf-8"))
        except (OSError, ValueError) as e:
            raise TransportError(f"Failed to open {path}: {e}") from e

        try:
            handle.set_nonblocking(True)
        except (OSError, ValueError) as e:
            # The caller never sees this handle, so release it here.
            try:
                handle.close()
            except (OSError, ValueError) as close_error:
                logger.warning(f"Error closing {path} after failed setup: {close_error}")
            raise TransportError(f"Failed to configure {path}: {e}") from e
        return handle

    def read(self, handle: Any, size: int, timeout_ms: int) -> bytes:
        try:
            data = handle.read(size, timeout_ms)
        except (OSError, ValueError) as e:
            raise TransportError(f"HID read failed: {e}") from e
        return bytes(data) if data else b""

    def close(self, handle: Any) -> None:
        try:
            handle.close()
        except (OSError, ValueError) as e:
            raise TransportError(f"Failed to close HID device: {e}") from e
