"""Unit tests for immutable data models.

Tests verify:
- Immutability (frozen dataclasses)
- Wire map field names
- Track field decoding
- Derived card properties
"""
import unittest
from dataclasses import FrozenInstanceError

from magreader.models import CardData, DeviceInfo, TrackData, luhn_valid

TRACK1 = "%B4111111111111111^DOE/JOHN^2512101123?"
TRACK2 = ";4111111111111111=2512101123?"


class TestDeviceInfo(unittest.TestCase):
    """Tests for DeviceInfo model."""

    def setUp(self):
        self.device = DeviceInfo(
            device_id="801:2:SN1",
            device_name="Magtek USB Swipe Reader",
            vendor_id=0x0801,
            product_id=0x0002,
            device_path="/dev/hidraw0",
            serial_number="SN1",
            is_connected=True,
        )

    def test_to_dict_wire_names(self):
        self.assertEqual(self.device.to_dict(), {
            "deviceId": "801:2:SN1",
            "deviceName": "Magtek USB Swipe Reader",
            "vendorId": 0x0801,
            "productId": 0x0002,
            "serialNumber": "SN1",
            "devicePath": "/dev/hidraw0",
            "isConnected": True,
        })

    def test_from_dict(self):
        self.assertEqual(DeviceInfo.from_dict(self.device.to_dict()), self.device)

    def test_display_name(self):
        self.assertEqual(self.device.display_name, "Magtek USB Swipe Reader (S/N: SN1)")

        no_serial = DeviceInfo("801:2:/p", "Magtek USB Swipe Reader", 0x0801, 2, "/p")
        self.assertEqual(no_serial.display_name, "Magtek USB Swipe Reader")
        self.assertEqual(no_serial.serial_number, "")
        self.assertFalse(no_serial.is_connected)

    def test_immutability(self):
        with self.assertRaises(FrozenInstanceError):
            self.device.is_connected = False


class TestTrackData(unittest.TestCase):
    """Tests for track field decoding."""

    def test_track1(self):
        track = TrackData.from_raw(1, TRACK1)

        self.assertTrue(track.is_decoded)
        self.assertEqual(track.account_number, "4111111111111111")
        self.assertEqual(track.cardholder_name, "DOE/JOHN")
        self.assertEqual(track.expiration_date, "2512")
        self.assertEqual(track.service_code, "101")
        self.assertEqual(track.discretionary_data, "123")

    def test_track1_invalid_format(self):
        track = TrackData.from_raw(1, "%A123?")

        self.assertFalse(track.is_decoded)
        self.assertEqual(track.error_message, "Invalid Track 1 format")

    def test_track1_incomplete(self):
        track = TrackData.from_raw(1, "%B4111^DOE?")

        self.assertFalse(track.is_decoded)
        self.assertEqual(track.error_message, "Incomplete Track 1 data")

    def test_track2(self):
        track = TrackData.from_raw(2, TRACK2)

        self.assertTrue(track.is_decoded)
        self.assertEqual(track.primary_account_number, "4111111111111111")
        self.assertEqual(track.expiration_date, "2512")
        self.assertEqual(track.service_code, "101")
        self.assertEqual(track.discretionary_data, "123")

    def test_track2_short_additional_data(self):
        track = TrackData.from_raw(2, ";1234=25?")

        self.assertTrue(track.is_decoded)
        self.assertIsNone(track.expiration_date)
        self.assertIsNone(track.service_code)
        self.assertIsNone(track.discretionary_data)

    def test_track2_incomplete(self):
        track = TrackData.from_raw(2, ";4111?")

        self.assertFalse(track.is_decoded)
        self.assertEqual(track.error_message, "Incomplete Track 2 data")

    def test_track3(self):
        track = TrackData.from_raw(3, ";0123?")

        self.assertTrue(track.is_decoded)
        self.assertEqual(track.additional_data, ";0123?")

    def test_empty_and_invalid_number(self):
        self.assertFalse(TrackData.from_raw(1, "").is_decoded)
        self.assertEqual(TrackData.from_raw(4, "x").error_message, "Invalid track number")


class TestCardData(unittest.TestCase):
    """Tests for CardData model."""

    def make_card(self, track1="", track2="", track3=""):
        return CardData(
            device_id="801:2:SN1",
            raw_response="01 25",
            timestamp=1700000000000,
            track1=track1,
            track2=track2,
            track3=track3,
        )

    def test_to_dict_wire_names(self):
        card = self.make_card(track1="%B1?")

        self.assertEqual(card.to_dict(), {
            "track1": "%B1?",
            "track2": "",
            "track3": "",
            "deviceId": "801:2:SN1",
            "rawResponse": "01 25",
            "timestamp": 1700000000000,
        })

    def test_from_dict(self):
        card = self.make_card(track2=";1=2?")
        self.assertEqual(CardData.from_dict(card.to_dict()), card)

    def test_has_track_data(self):
        self.assertFalse(self.make_card().has_track_data)
        self.assertTrue(self.make_card(track2=";1?").has_track_data)

    def test_derived_fields(self):
        card = self.make_card(track1=TRACK1, track2=TRACK2)

        self.assertTrue(card.has_valid_data)
        self.assertEqual(card.primary_account_number, "4111111111111111")
        self.assertEqual(card.cardholder_name, "DOE/JOHN")
        self.assertEqual(card.expiration_date, "2512")
        self.assertEqual(card.service_code, "101")
        self.assertEqual(card.card_brand, "Visa")
        self.assertEqual(card.masked_account_number, "************1111")
        self.assertTrue(card.is_valid_payment_card)
        self.assertEqual([t.track_number for t in card.tracks], [1, 2])

    def test_track2_fallback(self):
        card = self.make_card(track2=";5555555555554444=2601?")

        self.assertIsNone(card.cardholder_name)
        self.assertEqual(card.primary_account_number, "5555555555554444")
        self.assertEqual(card.card_brand, "Mastercard")
        self.assertTrue(card.is_valid_payment_card)

    def test_card_brands(self):
        cases = {
            "378282246310005": "American Express",
            "6011111111111117": "Discover",
            "3530111333300000": "JCB",
            "9999999999999995": "Unknown",
        }
        for pan, brand in cases.items():
            card = self.make_card(track2=f";{pan}=2601?")
            self.assertEqual(card.card_brand, brand, pan)

    def test_invalid_payment_card(self):
        self.assertFalse(self.make_card(track2=";4111111111111112=2601?").is_valid_payment_card)
        self.assertFalse(self.make_card(track2=";4111=2601?").is_valid_payment_card)
        self.assertFalse(self.make_card().is_valid_payment_card)
        self.assertIsNone(self.make_card().masked_account_number)
        self.assertIsNone(self.make_card().card_brand)

    def test_repr_hides_tracks(self):
        card = self.make_card(track1=TRACK1)
        self.assertNotIn("4111", repr(card))

    def test_immutability(self):
        card = self.make_card()
        with self.assertRaises(FrozenInstanceError):
            card.track1 = "%B?"


class TestLuhn(unittest.TestCase):

    def test_known_numbers(self):
        self.assertTrue(luhn_valid("4111111111111111"))
        self.assertTrue(luhn_valid("79927398713"))
        self.assertFalse(luhn_valid("79927398710"))


if __name__ == '__main__':
    unittest.main()
