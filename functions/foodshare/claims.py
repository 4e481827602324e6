"""
Claim arbitration: the available -> requested transition.

The read performed here only shapes error messages. Whether a claim wins is
decided by the store's conditional update, which re-checks the status at
write time, so concurrent requesters cannot both succeed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from foodshare.db import ListingRecord, ListingStore
from foodshare.errors import Conflict, Forbidden, InvalidInput, NotFound
from foodshare.ids import is_valid_listing_id
from foodshare.types import Identity, ListingStatus, RequestInfo

logger = logging.getLogger(__name__)


def request_listing(
    store: ListingStore,
    listing_id: str,
    identity: Identity,
    *,
    request_date: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> ListingRecord:
    """Claim `listing_id` for `identity`, raising if the claim cannot be made."""
    if not is_valid_listing_id(listing_id):
        raise InvalidInput("Invalid listing id")
    if not identity.email:
        raise InvalidInput("Verified identity has no email")

    current = store.get_listing(listing_id)
    if current is None:
        raise NotFound()
    if current.owner_id == identity.uid:
        raise Forbidden("You cannot request your own listing")
    if current.status != ListingStatus.AVAILABLE:
        raise Conflict()

    if request_date is None:
        request_date = datetime.now(timezone.utc)
    elif request_date.tzinfo is None:
        request_date = request_date.replace(tzinfo=timezone.utc)

    info = RequestInfo(
        requester_email=identity.email,
        request_date=request_date,
        notes=notes or "",
    )
    claimed = store.request_listing(
        listing_id, info, expected_status=ListingStatus.AVAILABLE
    )
    if claimed is None:
        logger.info(
            "[%s] Claim by %s lost to a concurrent change", listing_id, identity.uid
        )
        raise Conflict()

    logger.info("[%s] Requested by %s", listing_id, identity.uid)
    return claimed
