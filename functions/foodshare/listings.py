"""
Listing lifecycle: create, read, update and delete with ownership rules.

Identity is always passed in explicitly. Owner fields come from the verified
identity, never from client-supplied data, and engine-owned fields are
stripped from every client payload before it reaches the store.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from foodshare import claims
from foodshare.db import ListingRecord, ListingStore
from foodshare.errors import Forbidden, InvalidInput, NotFound
from foodshare.ids import is_valid_listing_id
from foodshare.types import Identity, ListingStatus

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 6

# Keys the engine manages; clients may send them but they are dropped.
RESERVED_FIELDS = frozenset(
    {
        "id",
        "_id",
        "owner_id",
        "ownerId",
        "owner_email",
        "ownerEmail",
        "user_email",
        "userEmail",
        "status",
        "availability",
        "request_info",
        "requestInfo",
        "created_at",
        "updated_at",
    }
)


def strip_reserved_fields(data: dict) -> dict:
    return {key: value for key, value in data.items() if key not in RESERVED_FIELDS}


def quantity_sort_key(value: Any) -> float:
    """Numeric value of a listing quantity; anything non-numeric counts as 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    else:
        try:
            number = float(Decimal(str(value).strip()))
        except (InvalidOperation, ValueError):
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _require_listing_id(listing_id: str) -> None:
    if not is_valid_listing_id(listing_id):
        raise InvalidInput("Invalid listing id")


class ListingService:
    """Listing operations over an injected store."""

    def __init__(self, store: ListingStore, *, featured_limit: int = FEATURED_LIMIT):
        self.store = store
        self.featured_limit = featured_limit

    def create(self, data: dict, identity: Identity) -> ListingRecord:
        record = self.store.insert_listing(
            strip_reserved_fields(data),
            owner_id=identity.uid,
            owner_email=identity.email,
        )
        logger.info("[%s] Created by %s", record.id, identity.uid)
        return record

    def list_all(self) -> list[ListingRecord]:
        return self.store.list_listings()

    def list_featured(self) -> list[ListingRecord]:
        listings = self.store.list_listings()
        # sorted() is stable, so equal quantities keep store order.
        ranked = sorted(
            listings,
            key=lambda record: quantity_sort_key(record.fields.get("quantity")),
            reverse=True,
        )
        return ranked[: self.featured_limit]

    def list_available(self) -> list[ListingRecord]:
        return self.store.list_listings(status=ListingStatus.AVAILABLE)

    def list_by_owner(self, identity: Identity) -> list[ListingRecord]:
        return self.store.list_listings(owner_id=identity.uid)

    def list_requested_by(self, identity: Identity) -> list[ListingRecord]:
        if not identity.email:
            raise InvalidInput("Verified identity has no email")
        return self.store.list_listings(
            status=ListingStatus.REQUESTED, requester_email=identity.email
        )

    def get(self, listing_id: str) -> ListingRecord:
        _require_listing_id(listing_id)
        record = self.store.get_listing(listing_id)
        if record is None:
            raise NotFound()
        return record

    def _check_owner(self, listing_id: str, identity: Identity) -> None:
        current = self.store.get_listing(listing_id)
        if current is None:
            raise NotFound()
        if current.owner_id != identity.uid:
            raise Forbidden("Only the owner can modify this listing")

    def update(self, listing_id: str, patch: dict, identity: Identity) -> ListingRecord:
        """
        Apply descriptive changes from the owner.

        Allowed in any status: status and request_info are engine-owned and
        stripped from the patch, so an update can never undo or alter a claim.
        """
        _require_listing_id(listing_id)
        self._check_owner(listing_id, identity)
        changes = strip_reserved_fields(patch)
        updated = self.store.update_listing_fields(listing_id, identity.uid, changes)
        if updated is None:
            raise NotFound()
        logger.info(
            "[%s] Updated by %s (%s)", listing_id, identity.uid, ", ".join(sorted(changes))
        )
        return updated

    def delete(self, listing_id: str, identity: Identity) -> None:
        _require_listing_id(listing_id)
        self._check_owner(listing_id, identity)
        if not self.store.delete_listing(listing_id, identity.uid):
            raise NotFound()
        logger.info("[%s] Deleted by %s", listing_id, identity.uid)

    def request(
        self,
        listing_id: str,
        identity: Identity,
        *,
        request_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> ListingRecord:
        return claims.request_listing(
            self.store,
            listing_id,
            identity,
            request_date=request_date,
            notes=notes,
        )
