# scripts/test/simulate_scan.py
"""Send checkpoint scans to a running backend (QR payload, plate, or plate photo)."""

import argparse
import time
import requests

BACKEND_URL = "http://localhost:3000/api/v1"


def scan(identifier):
    resp = requests.post(f"{BACKEND_URL}/scan", json={"identifier": identifier}, timeout=10)
    print(f"{'✅' if resp.ok else '⚠️ '} scan {identifier!r} → HTTP {resp.status_code}: {resp.json()}")
    return resp


def scan_photo(path):
    with open(path, "rb") as f:
        resp = requests.post(f"{BACKEND_URL}/recognize-plate",
                             files={"image": (path, f, "image/jpeg")}, timeout=30)
    print(f"{'✅' if resp.ok else '⚠️ '} photo {path} → HTTP {resp.status_code}: {resp.json()}")
    return resp


def visit(identifier, stay_seconds):
    """Entry, wait, exit. The stay must exceed the server's debounce window."""
    scan(identifier)
    print(f"⏳ parked for {stay_seconds}s...")
    time.sleep(stay_seconds)
    scan(identifier)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Simulate checkpoint scans for testing")
    parser.add_argument("--id", default="QR-MH12AB1234", help="QR payload or plate number")
    parser.add_argument("--photo", help="Send this image to /recognize-plate instead")
    parser.add_argument("--visit", type=int, metavar="SECONDS",
                        help="Scan in, wait SECONDS, scan out")
    parser.add_argument("--double", action="store_true", help="Send the same scan twice back to back")
    parser.add_argument("--url", default=BACKEND_URL)
    args = parser.parse_args()
    BACKEND_URL = args.url.rstrip("/")

    if args.photo:
        scan_photo(args.photo)
    elif args.visit:
        visit(args.id, args.visit)
    elif args.double:
        scan(args.id)
        scan(args.id)
    else:
        scan(args.id)
