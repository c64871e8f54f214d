"""Input report parser for magnetic stripe readers.

Turns a raw HID input report into CardData by scanning the printable
ASCII part of the report for track sentinels.
Pure functions with no side effects.

This is a best-effort heuristic, not a validated ISO 7811 decode: field
separators and the LRC are not checked and any bytes matching the
sentinel pattern are accepted as a track.
"""
from __future__ import annotations

import time
from typing import Optional

from ..models import CardData, TRACK1_START, TRACK2_START, TRACK_END

PRINTABLE_MIN = 0x20
PRINTABLE_MAX = 0x7E


def format_raw_response(data: bytes) -> str:
    """Render bytes as lowercase two-digit hex separated by spaces.

    Example:
        >>> format_raw_response(b'\\x01%B')
        '01 25 42'
    """
    return " ".join(f"{byte:02x}" for byte in data)


def printable_payload(data: bytes) -> str:
    """Printable ASCII of the report, skipping the report id byte.

    Non-printable bytes are dropped, not replaced.
    """
    return "".join(chr(b) for b in data[1:] if PRINTABLE_MIN <= b <= PRINTABLE_MAX)


def extract_track(payload: str, start: str, end: str = TRACK_END) -> str:
    """Inclusive substring from the first ``start`` to the next ``end``.

    Returns:
        The track including both sentinels, or empty string if either is missing
    """
    start_idx = payload.find(start)
    if start_idx == -1:
        return ""

    end_idx = payload.find(end, start_idx)
    if end_idx == -1:
        return ""

    return payload[start_idx:end_idx + 1]


def parse_input_report(
    data: bytes,
    device_id: str,
    timestamp: Optional[int] = None,
) -> CardData:
    """Parse one HID input report.

    Args:
        data: Raw report bytes, byte 0 is the report id/status byte
        device_id: Identifier of the device the report came from
        timestamp: Milliseconds since epoch, or None for now

    Returns:
        CardData; track fields are empty when nothing trackable was found

    Examples:
        >>> card = parse_input_report(b'\\x01%B123?;456?', "801:2:X")
        >>> card.track1, card.track2
        ('%B123?', ';456?')
    """
    if timestamp is None:
        timestamp = int(time.time() * 1000)

    data = bytes(data)
    raw_response = format_raw_response(data)

    if len(data) < 2:
        return CardData(device_id=device_id, raw_response=raw_response, timestamp=timestamp)

    payload = printable_payload(data)
    if not payload:
        return CardData(device_id=device_id, raw_response=raw_response, timestamp=timestamp)

    # Tracks are searched independently; a single '?' may terminate both.
    # Track 3 has no generic sentinel pair for these readers and stays empty.
    return CardData(
        device_id=device_id,
        raw_response=raw_response,
        timestamp=timestamp,
        track1=extract_track(payload, TRACK1_START),
        track2=extract_track(payload, TRACK2_START),
    )
