"""Identity resolution for Magtek magnetic stripe readers.

Pure functions over enumerated HID devices:
- Vendor/product allow-list check (is_target_device)
- Human-readable model names (resolve_name)
- Stable, OS-agnostic device ids (derive_device_id)
- Filtering an enumeration down to DeviceInfo snapshots (find_readers)
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional

from ..models import DeviceInfo
from ..transport.base import RawDeviceInfo

logger = logging.getLogger(__name__)

MAGTEK_VENDOR_ID = 0x0801

# Closed allow-list: other products from the same vendor are not readers we drive.
MAGTEK_PRODUCT_NAMES: Dict[int, str] = {
    0x0001: "Magtek Mini Swipe Reader",
    0x0002: "Magtek USB Swipe Reader",
    0x0003: "Magtek eDynamo",
    0x0004: "Magtek uDynamo",
    0x0010: "Magtek SureSwipe Reader",
}

UNKNOWN_DEVICE_NAME = "Unknown Device"
DEVICE_ID_SEPARATOR = ":"


def is_target_device(vendor_id: int, product_id: int) -> bool:
    """
    Decide whether a vendor/product pair describes one of our readers.

    Both must match: the vendor id is fixed and the product id must be
    in the allow-list.
    """
    return vendor_id == MAGTEK_VENDOR_ID and product_id in MAGTEK_PRODUCT_NAMES


def resolve_name(vendor_id: int, product_id: int) -> str:
    """
    Human-readable model name for a vendor/product pair.

    Unlisted products of the target vendor get a templated name with the
    product id in hex; any other vendor is an unknown device.
    """
    if vendor_id != MAGTEK_VENDOR_ID:
        return UNKNOWN_DEVICE_NAME

    name = MAGTEK_PRODUCT_NAMES.get(product_id)
    if name is not None:
        return name
    return f"Magtek Card Reader (PID: 0x{product_id:04x})"


def derive_device_id(vendor_id: int, product_id: int, serial_or_path: str) -> str:
    """
    OS-agnostic identifier for a reader.

    Format: lowercase unpadded hex vendor and product ids, then the serial
    number, or the device path when no serial is reported, e.g.
    ``801:2:B123456``. The same function is used at enumeration and at
    connect time so both sides agree exactly.
    """
    return DEVICE_ID_SEPARATOR.join(
        (f"{vendor_id:x}", f"{product_id:x}", serial_or_path)
    )


def device_id_for(raw: RawDeviceInfo) -> str:
    """Derive the device id of an enumerated HID device."""
    return derive_device_id(raw.vendor_id, raw.product_id, raw.serial_number or raw.path)


def to_device_info(raw: RawDeviceInfo, connected_id: Optional[str] = None) -> DeviceInfo:
    """Convert an enumerated HID device to DeviceInfo."""
    device_id = device_id_for(raw)
    return DeviceInfo(
        device_id=device_id,
        device_name=resolve_name(raw.vendor_id, raw.product_id),
        vendor_id=raw.vendor_id,
        product_id=raw.product_id,
        device_path=raw.path,
        serial_number=raw.serial_number,
        is_connected=connected_id is not None and device_id == connected_id,
    )


def find_readers(
    devices: Iterable[RawDeviceInfo],
    *,
    connected_id: Optional[str] = None,
    matcher: Optional[Callable[[RawDeviceInfo], bool]] = None,
) -> List[DeviceInfo]:
    """
    Filter enumerated HID devices down to supported readers.

    Args:
        devices: Raw enumeration from the transport.
        connected_id: Device id the manager currently holds open, if any.
        matcher: Optional custom predicate replacing is_target_device.

    Returns:
        DeviceInfo for every matching device, in enumeration order.
    """
    results: List[DeviceInfo] = []

    for raw in devices:
        if matcher is not None:
            matched = matcher(raw)
        else:
            matched = is_target_device(raw.vendor_id, raw.product_id)
        if matched:
            results.append(to_device_info(raw, connected_id))

    logger.debug(f"Found {len(results)} reader(s)")
    return results
