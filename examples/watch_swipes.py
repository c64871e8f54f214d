#!/usr/bin/env python3
"""
Interactive Card Reader Test Script.

This script demonstrates the CardReaderService API.
Run it with a Magtek reader plugged in, then swipe a card.
"""

import sys
import time
import logging
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from magreader import CardData, CardReaderService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)


def on_swipe(event):
    card = CardData.from_dict(event)
    print(f"\nSwipe from {card.device_id}")
    print(f"  Brand:   {card.card_brand or '?'}")
    print(f"  Account: {card.masked_account_number or '?'}")
    print(f"  Expires: {card.expiration_date or '?'}")
    print(f"  Luhn OK: {card.is_valid_payment_card}")


def on_device_event(event):
    device = event["device"]
    print(f"[{event['type']}] {device['deviceName']} ({device['deviceId']})")


def main():
    print("Initializing card reader service...")
    service = CardReaderService()
    service.initialize()

    service.subscribe_card_swipes(on_swipe)
    service.subscribe_device_events(on_device_event)

    try:
        devices = service.get_connected_devices()
        if not devices:
            print("No Magtek readers found! Is the reader plugged in?")
            return

        for device in devices:
            print(f"Found: {device['deviceName']} [{device['deviceId']}]")

        target = devices[0]["deviceId"]
        print(f"\nConnecting to {target}...")
        if not service.connect_to_device({"deviceId": target}):
            print("Failed to connect! Check device permissions.")
            return

        print("\nWaiting for swipes for 60 seconds (Ctrl+C to stop)...")
        deadline = time.time() + 60
        while time.time() < deadline and service.is_connected():
            time.sleep(0.5)

    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        print("\nShutting down...")
        service.dispose()
        print("Done.")


if __name__ == "__main__":
    main()
