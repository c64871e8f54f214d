"""Reader layer for Magtek USB HID magnetic stripe readers.

This module provides:
- Device discovery and identity derivation (find_readers, derive_device_id)
- Connection state management (ReaderManager)
- Background report polling (SwipeMonitor)
- Input report parsing (parse_input_report)
"""

from .errors import (
    CardReaderError,
    DeviceNotFoundError,
    DeviceOpenError,
    InitializationError,
    InvalidArgumentsError,
    NotInitializedError,
)
from .identity import (
    MAGTEK_PRODUCT_NAMES,
    MAGTEK_VENDOR_ID,
    derive_device_id,
    find_readers,
    is_target_device,
    resolve_name,
)
from .manager import ReaderManager
from .monitor import SwipeMonitor
from .report import format_raw_response, parse_input_report

__all__ = [
    # Manager
    'ReaderManager',
    'SwipeMonitor',

    # Identity
    'MAGTEK_VENDOR_ID',
    'MAGTEK_PRODUCT_NAMES',
    'derive_device_id',
    'find_readers',
    'is_target_device',
    'resolve_name',

    # Parsing
    'format_raw_response',
    'parse_input_report',

    # Errors
    'CardReaderError',
    'DeviceNotFoundError',
    'DeviceOpenError',
    'InitializationError',
    'InvalidArgumentsError',
    'NotInitializedError',
]
