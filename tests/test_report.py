"""Unit tests for the input report parser."""

import time
import unittest

from magreader.reader.report import (
    extract_track,
    format_raw_response,
    parse_input_report,
    printable_payload,
)


class TestFormatRawResponse(unittest.TestCase):
    """Tests for hex rendering of reports."""

    def test_lowercase_two_digit_hex(self):
        self.assertEqual(format_raw_response(b"\x01\x0a\xff%"), "01 0a ff 25")

    def test_empty(self):
        self.assertEqual(format_raw_response(b""), "")


class TestPrintablePayload(unittest.TestCase):
    """Tests for printable ASCII filtering."""

    def test_skips_report_id_byte(self):
        """Byte 0 is dropped even when printable."""
        self.assertEqual(printable_payload(b"%;12"), ";12")

    def test_drops_non_printable(self):
        """Non-printable bytes are removed, not replaced."""
        data = b"\x00%B\x00\x1f1\x7f2~ ?"
        self.assertEqual(printable_payload(data), "%B12~ ?")


class TestExtractTrack(unittest.TestCase):
    """Tests for sentinel scanning."""

    def test_inclusive_span(self):
        self.assertEqual(extract_track("xx%ABC?yy", "%"), "%ABC?")

    def test_missing_start(self):
        self.assertEqual(extract_track("ABC?", "%"), "")

    def test_missing_end(self):
        self.assertEqual(extract_track("%ABC", "%"), "")

    def test_end_before_start_is_ignored(self):
        """Only a terminator after the start sentinel counts."""
        self.assertEqual(extract_track("?%AB", "%"), "")


class TestParseInputReport(unittest.TestCase):
    """Tests for parse_input_report()."""

    def test_two_tracks(self):
        """Report id followed by track 1 and track 2."""
        data = bytes([0x01]) + b"%B123?;456?"

        card = parse_input_report(data, "801:2:ABC")

        self.assertEqual(card.track1, "%B123?")
        self.assertEqual(card.track2, ";456?")
        self.assertEqual(card.track3, "")
        self.assertEqual(card.device_id, "801:2:ABC")
        self.assertTrue(card.has_track_data)

    def test_short_report(self):
        """Reports shorter than two bytes carry no track data."""
        for data in (b"", b"\x01"):
            card = parse_input_report(data, "id")
            self.assertEqual(card.track1, "")
            self.assertEqual(card.track2, "")
            self.assertEqual(card.track3, "")
            self.assertFalse(card.has_track_data)

        self.assertEqual(parse_input_report(b"\x01", "id").raw_response, "01")

    def test_no_sentinels(self):
        """Printable data without start sentinels still keeps the hex dump."""
        data = b"\x02HELLO WORLD?"

        card = parse_input_report(data, "id")

        self.assertFalse(card.has_track_data)
        self.assertEqual(card.raw_response, format_raw_response(data))

    def test_all_non_printable(self):
        card = parse_input_report(b"\x01\x00\x01\x02\x80", "id")

        self.assertFalse(card.has_track_data)
        self.assertEqual(card.raw_response, "01 00 01 02 80")

    def test_shared_terminator(self):
        """A single '?' after both start sentinels terminates both tracks."""
        card = parse_input_report(b"\x00%AB;12?", "id")

        self.assertEqual(card.track1, "%AB;12?")
        self.assertEqual(card.track2, ";12?")

    def test_track2_only(self):
        card = parse_input_report(b"\x00;4111=2512?", "id")

        self.assertEqual(card.track1, "")
        self.assertEqual(card.track2, ";4111=2512?")

    def test_noise_between_bytes(self):
        """Non-printable noise inside a track is stripped before scanning."""
        data = b"\x01\x00%B1\x002\x003?\x00"

        card = parse_input_report(data, "id")

        self.assertEqual(card.track1, "%B123?")

    def test_malformed_track_accepted(self):
        """No validation beyond sentinels."""
        card = parse_input_report(b"\x01%??", "id")

        self.assertEqual(card.track1, "%?")

    def test_timestamp(self):
        """Timestamp is milliseconds since epoch unless given."""
        before = int(time.time() * 1000)
        card = parse_input_report(b"\x01%A?", "id")
        after = int(time.time() * 1000)

        self.assertTrue(before <= card.timestamp <= after)
        self.assertEqual(parse_input_report(b"\x01", "id", timestamp=42).timestamp, 42)

    def test_accepts_list_of_ints(self):
        """hidapi returns reports as lists of ints."""
        card = parse_input_report([0x01, 0x3B, 0x31, 0x3F], "id")

        self.assertEqual(card.track2, ";1?")


if __name__ == '__main__':
    unittest.main()
