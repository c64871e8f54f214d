"""Magtek card reader SDK - USB HID magnetic stripe reader discovery and polling."""

from .models import (
    CardData,
    DeviceInfo,
    TrackData,
)
from .reader import ReaderManager
from .service import CardReaderService
from .transport import HidTransport

__all__ = [
    "CardData",
    "DeviceInfo",
    "TrackData",
    "ReaderManager",
    "CardReaderService",
    "HidTransport",
]
