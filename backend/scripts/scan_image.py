#!/usr/bin/env python3
"""
Run one scan from an image file, outside the HTTP server.

Useful for checking a vision provider against real photos and for seeding
a development ledger.

Usage:
    python scripts/scan_image.py photo.jpg --location "12 Main St"
    python scripts/scan_image.py photo.jpg --location "12 Main St" --provider mock
    python scripts/scan_image.py photo.jpg --location "12 Main St" --raw
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rescan.config import Config
from rescan.models import ScanSuccess
from rescan.services.ledger import LedgerStore
from rescan.services.normalizer import ResponseNormalizer
from rescan.services.orchestrator import build_orchestrator
from rescan.services.vision import get_vision_client


async def run(image_path: Path, location: str, provider: str, db_path: str, raw: bool) -> int:
    image_bytes = image_path.read_bytes()
    vision_client = get_vision_client(provider)

    if raw:
        # Show what the model returned and how it normalizes, without touching the ledger
        text = await vision_client.analyze(image_bytes)
        print("Raw response:")
        print(text)
        print("\nNormalized:")
        print(ResponseNormalizer().normalize(text))
        return 0

    orchestrator = build_orchestrator(vision_client=vision_client, ledger=LedgerStore(db_path))
    try:
        outcome = await orchestrator.process_scan(location, image_bytes)
    finally:
        orchestrator.ledger.close()

    print(json.dumps(outcome.model_dump(mode="json"), indent=2))
    return 0 if isinstance(outcome, ScanSuccess) else 2


def main():
    load_dotenv()
    parser = argparse.ArgumentParser(
        description="Classify an image and credit a location"
    )
    parser.add_argument(
        "image",
        type=Path,
        help="Path to image file"
    )
    parser.add_argument(
        "--location",
        default="dev location",
        help="Address to credit points to"
    )
    parser.add_argument(
        "--provider",
        choices=["claude", "gemini", "mock"],
        default=None,
        help="Vision provider (default: VISION_PROVIDER env var)"
    )
    parser.add_argument(
        "--db",
        default=Config.database_path(),
        help="SQLite database path"
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print the raw vision response and its normalization only"
    )
    parser.add_argument("-v", "--verbose", action="store_true")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if not args.image.exists():
        print(f"Error: Image not found: {args.image}", file=sys.stderr)
        sys.exit(1)

    try:
        exit_code = asyncio.run(run(args.image, args.location, args.provider, args.db, args.raw))
    except Exception as e:
        print(f"Error running scan: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
