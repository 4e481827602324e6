"""
Publishes listings from a JSON file on behalf of a single owner.

Useful for loading demo data into a local or staging database:

    python scripts/seed_listings.py listings.json --owner-uid demo --owner-email demo@example.com
"""

import argparse
import json
import logging
import sys

from foodshare.config import get_settings
from foodshare.dependencies import build_listing_store
from foodshare.errors import ListingError
from foodshare.listings import ListingService
from foodshare.types import Identity

logger = logging.getLogger(__name__)


def load_listings(path):
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list):
        raise ValueError("Expected a JSON object or a list of objects")
    return [item for item in payload if isinstance(item, dict)]


def seed_listings(args, service=None):
    """
    Creates every listing in args.path. Returns the ids that were created.
    """
    if service is None:
        settings = get_settings()
        service = ListingService(
            build_listing_store(settings), featured_limit=settings.featured_limit
        )
    owner = Identity(uid=args.owner_uid, email=args.owner_email)

    created = []
    for index, data in enumerate(load_listings(args.path)):
        if args.dry_run:
            logger.info("Would create listing #%d: %s", index, data.get("title"))
            continue
        try:
            record = service.create(data, owner)
        except ListingError as e:
            logger.error("Failed to create listing #%d: %s", index, e.message)
            continue
        created.append(record.id)
    logger.info("Created %d listing(s)", len(created))
    return created


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(
        description="Load food listings from a JSON file."
    )
    parser.add_argument("path", help="JSON file with one listing or a list of them.")
    parser.add_argument("--owner-uid", required=True, help="Owner's Firebase uid.")
    parser.add_argument("--owner-email", default=None, help="Owner's email.")
    parser.add_argument(
        "--dry_run",
        action="store_true",
        help="Only log what would be created.",
    )

    args = parser.parse_args()
    try:
        seed_listings(args)
    except (OSError, ValueError) as e:
        logger.error("Could not read %s: %s", args.path, e)
        sys.exit(1)
