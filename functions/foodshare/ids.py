"""
Listing identifier format.
"""

from __future__ import annotations

import re
import uuid

LISTING_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def is_valid_listing_id(value: object) -> bool:
    return isinstance(value, str) and bool(LISTING_ID_PATTERN.match(value))


def new_listing_id() -> str:
    return uuid.uuid4().hex
