"""HID transport layer for card reader communication.

The hidapi-backed transport lives in ``magreader.transport.hidapi`` and is
imported only when needed, so injecting a custom HidTransport never loads
the native HID library.
"""

from .base import HidTransport, RawDeviceInfo, TransportError

__all__ = ["HidTransport", "RawDeviceInfo", "TransportError"]
