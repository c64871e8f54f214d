"""Immutable data models for card reader devices and swipe events.

All models are frozen dataclasses to ensure immutability and thread-safety.
These models serve as the contract between the reader core, the control
service and the application layer. ``to_dict()`` produces the wire maps
that are forwarded verbatim to the calling application.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

# Track sentinels
TRACK1_START = "%"
TRACK2_START = ";"
TRACK_END = "?"

TRACK1_FIELD_SEPARATOR = "^"
TRACK2_FIELD_SEPARATOR = "="


@dataclass(frozen=True)
class DeviceInfo:
    """Snapshot of one discovered card reader.

    Constructed fresh on every enumeration and never mutated afterwards.

    Attributes:
        device_id: Stable identifier derived from vendor, product and serial/path
        device_name: Human-readable model name
        vendor_id: USB Vendor ID
        product_id: USB Product ID
        device_path: OS-specific path used to open the device
        serial_number: USB serial string, empty if the device reports none
        is_connected: Whether this is the device the manager currently holds open
    """
    device_id: str
    device_name: str
    vendor_id: int
    product_id: int
    device_path: str
    serial_number: str = ""
    is_connected: bool = False

    @property
    def display_name(self) -> str:
        """Model name with serial number appended when known."""
        if self.serial_number:
            return f"{self.device_name} (S/N: {self.serial_number})"
        return self.device_name

    def to_dict(self) -> Dict:
        """Convert to wire map."""
        return {
            "deviceId": self.device_id,
            "deviceName": self.device_name,
            "vendorId": self.vendor_id,
            "productId": self.product_id,
            "serialNumber": self.serial_number,
            "devicePath": self.device_path,
            "isConnected": self.is_connected,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> DeviceInfo:
        """Load from wire map."""
        return cls(
            device_id=data["deviceId"],
            device_name=data["deviceName"],
            vendor_id=data["vendorId"],
            product_id=data["productId"],
            device_path=data.get("devicePath") or "",
            serial_number=data.get("serialNumber") or "",
            is_connected=bool(data.get("isConnected", False)),
        )


@dataclass(frozen=True)
class TrackData:
    """Decoded fields of a single magnetic stripe track.

    Decoding is best effort. A track that does not follow the usual
    ISO 7813 layout is kept with ``is_decoded=False`` and an error message;
    construction never raises.

    Attributes:
        track_number: 1, 2 or 3
        raw_data: Track string including its sentinels
        is_decoded: Whether the fields below were extracted
        error_message: Reason decoding failed, if it did
        account_number: Track 1 primary account number
        cardholder_name: Track 1 cardholder name
        expiration_date: YYMM
        service_code: Three digit service code
        discretionary_data: Remaining issuer data
        primary_account_number: Track 2 primary account number
        additional_data: Track 3 payload
    """
    track_number: int
    raw_data: str
    is_decoded: bool
    error_message: Optional[str] = None
    account_number: Optional[str] = None
    cardholder_name: Optional[str] = None
    expiration_date: Optional[str] = None
    service_code: Optional[str] = None
    discretionary_data: Optional[str] = None
    primary_account_number: Optional[str] = None
    additional_data: Optional[str] = None

    @classmethod
    def from_raw(cls, track_number: int, raw_data: str) -> TrackData:
        """Decode a raw track string.

        Args:
            track_number: Which track the string came from (1, 2 or 3)
            raw_data: Track string, e.g. ``%B4111...^DOE/JOHN^2512101?``

        Returns:
            TrackData, decoded or carrying an error message
        """
        if not raw_data:
            return cls(track_number, raw_data, False, error_message="Empty track data")

        if track_number == 1:
            return cls._decode_track1(raw_data)
        if track_number == 2:
            return cls._decode_track2(raw_data)
        if track_number == 3:
            return cls(3, raw_data, True, additional_data=raw_data)

        return cls(track_number, raw_data, False, error_message="Invalid track number")

    @classmethod
    def _decode_track1(cls, data: str) -> TrackData:
        # %B<PAN>^<NAME>^<YYMM><SVC><DISC>?
        if not data.startswith(TRACK1_START + "B") or not data.endswith(TRACK_END):
            return cls(1, data, False, error_message="Invalid Track 1 format")

        parts = data[2:-1].split(TRACK1_FIELD_SEPARATOR)
        if len(parts) < 3:
            return cls(1, data, False, error_message="Incomplete Track 1 data")

        expiration, service, discretionary = _split_additional(parts[2])
        return cls(
            track_number=1,
            raw_data=data,
            is_decoded=True,
            account_number=parts[0],
            cardholder_name=parts[1],
            expiration_date=expiration,
            service_code=service,
            discretionary_data=discretionary,
        )

    @classmethod
    def _decode_track2(cls, data: str) -> TrackData:
        # ;<PAN>=<YYMM><SVC><DISC>?
        if not data.startswith(TRACK2_START) or not data.endswith(TRACK_END):
            return cls(2, data, False, error_message="Invalid Track 2 format")

        parts = data[1:-1].split(TRACK2_FIELD_SEPARATOR)
        if len(parts) < 2:
            return cls(2, data, False, error_message="Incomplete Track 2 data")

        expiration, service, discretionary = _split_additional(parts[1])
        return cls(
            track_number=2,
            raw_data=data,
            is_decoded=True,
            primary_account_number=parts[0],
            expiration_date=expiration,
            service_code=service,
            discretionary_data=discretionary,
        )


def _split_additional(info: str) -> tuple[Optional[str], Optional[str], Optional[str]]:
    """Split the YYMM + service code + discretionary tail of tracks 1 and 2."""
    expiration = info[0:4] if len(info) >= 4 else None
    service = info[4:7] if len(info) >= 7 else None
    discretionary = info[7:] if len(info) > 7 else None
    return expiration, service, discretionary


@dataclass(frozen=True)
class CardData:
    """One decoded swipe event.

    Attributes:
        track1: Track 1 from ``%`` to ``?`` inclusive, or empty
        track2: Track 2 from ``;`` to ``?`` inclusive, or empty
        track3: Reserved, always empty for the current readers
        device_id: Identifier of the device that produced the report
        raw_response: Full report as space separated lowercase hex
        timestamp: Milliseconds since epoch at parse time
    """
    device_id: str
    raw_response: str
    timestamp: int
    track1: str = ""
    track2: str = ""
    track3: str = ""

    @property
    def has_track_data(self) -> bool:
        """True if at least one track field is non-empty."""
        return bool(self.track1 or self.track2 or self.track3)

    @property
    def tracks(self) -> List[TrackData]:
        """TrackData for every non-empty track, in track order."""
        raw = (self.track1, self.track2, self.track3)
        return [TrackData.from_raw(n, data) for n, data in enumerate(raw, 1) if data]

    @property
    def has_valid_data(self) -> bool:
        """True if any track decoded successfully."""
        return any(track.is_decoded for track in self.tracks)

    def _track(self, number: int) -> Optional[TrackData]:
        for track in self.tracks:
            if track.track_number == number:
                return track
        return None

    @property
    def primary_account_number(self) -> Optional[str]:
        """PAN from track 1, falling back to track 2."""
        track1 = self._track(1)
        if track1 and track1.account_number:
            return track1.account_number
        track2 = self._track(2)
        return track2.primary_account_number if track2 else None

    @property
    def cardholder_name(self) -> Optional[str]:
        track1 = self._track(1)
        return track1.cardholder_name if track1 else None

    @property
    def expiration_date(self) -> Optional[str]:
        for track in self.tracks:
            if track.expiration_date:
                return track.expiration_date
        return None

    @property
    def service_code(self) -> Optional[str]:
        for track in self.tracks:
            if track.service_code:
                return track.service_code
        return None

    @property
    def card_brand(self) -> Optional[str]:
        """Card brand guessed from the PAN prefix."""
        pan = self.primary_account_number
        if not pan or len(pan) < 4 or not pan[:2].isdigit():
            return None

        first_two = int(pan[:2])
        if pan[0] == "4":
            return "Visa"
        if 51 <= first_two <= 55:
            return "Mastercard"
        if first_two in (34, 37):
            return "American Express"
        if first_two in (60, 62, 64, 65):
            return "Discover"
        if 35 <= first_two <= 39:
            return "JCB"
        return "Unknown"

    @property
    def masked_account_number(self) -> Optional[str]:
        """PAN with everything but the last four digits replaced by ``*``."""
        pan = self.primary_account_number
        if not pan or len(pan) < 4:
            return None
        return "*" * (len(pan) - 4) + pan[-4:]

    @property
    def is_valid_payment_card(self) -> bool:
        """PAN length is plausible and passes the Luhn check."""
        pan = self.primary_account_number
        if not pan or not 13 <= len(pan) <= 19 or not pan.isdigit():
            return False
        return luhn_valid(pan)

    def to_dict(self) -> Dict:
        """Convert to wire map."""
        return {
            "track1": self.track1,
            "track2": self.track2,
            "track3": self.track3,
            "deviceId": self.device_id,
            "rawResponse": self.raw_response,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> CardData:
        """Load from wire map."""
        return cls(
            device_id=data["deviceId"],
            raw_response=data.get("rawResponse", ""),
            timestamp=int(data["timestamp"]),
            track1=data.get("track1") or "",
            track2=data.get("track2") or "",
            track3=data.get("track3") or "",
        )

    def __repr__(self) -> str:
        # Track contents are cardholder data; keep them out of logs.
        return (
            f"CardData(device_id={self.device_id!r}, timestamp={self.timestamp}, "
            f"tracks={[t.track_number for t in self.tracks]})"
        )


def luhn_valid(number: str) -> bool:
    """Luhn (mod 10) check over a string of digits."""
    total = 0
    for index, char in enumerate(reversed(number)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0
