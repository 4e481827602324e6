"""
Listing store abstraction for SQL databases and an in-memory test implementation.

Both implementations provide the single-document conditional update the claim
flow relies on: `request_listing` only applies while the stored status still
matches the expected one.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Protocol

from sqlalchemy import JSON, Column, Float, String, create_engine, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from foodshare.errors import StoreUnavailable
from foodshare.ids import new_listing_id
from foodshare.types import ListingStatus, RequestInfo

logger = logging.getLogger(__name__)


class ListingStore(Protocol):
    """Interface for listing persistence."""

    def insert_listing(
        self, fields: dict, *, owner_id: str, owner_email: Optional[str]
    ) -> "ListingRecord":
        ...

    def get_listing(self, listing_id: str) -> Optional["ListingRecord"]:
        ...

    def list_listings(
        self,
        *,
        status: Optional[ListingStatus] = None,
        owner_id: Optional[str] = None,
        requester_email: Optional[str] = None,
    ) -> list["ListingRecord"]:
        ...

    def update_listing_fields(
        self, listing_id: str, owner_id: str, changes: dict
    ) -> Optional["ListingRecord"]:
        ...

    def delete_listing(self, listing_id: str, owner_id: str) -> bool:
        ...

    def request_listing(
        self,
        listing_id: str,
        request_info: RequestInfo,
        *,
        expected_status: ListingStatus = ListingStatus.AVAILABLE,
    ) -> Optional["ListingRecord"]:
        ...


@dataclass
class ListingRecord:
    id: str
    owner_id: str
    owner_email: Optional[str]
    status: ListingStatus = ListingStatus.AVAILABLE
    fields: dict = field(default_factory=dict)
    request_info: Optional[RequestInfo] = None
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        payload = dict(self.fields)
        payload.update(
            {
                "id": self.id,
                "owner_id": self.owner_id,
                "owner_email": self.owner_email,
                "status": self.status.value,
                "request_info": (
                    self.request_info.as_dict() if self.request_info else None
                ),
                "created_at": self.created_at,
                "updated_at": self.updated_at,
            }
        )
        return payload


class InMemoryListingStore:
    """Simple in-memory listing store for development and tests."""

    def __init__(self):
        self.listings: Dict[str, ListingRecord] = {}
        # Stands in for the per-document atomicity a real database provides.
        self._lock = threading.Lock()

    def insert_listing(
        self, fields: dict, *, owner_id: str, owner_email: Optional[str]
    ) -> ListingRecord:
        record = ListingRecord(
            id=new_listing_id(),
            owner_id=owner_id,
            owner_email=owner_email,
            fields=copy.deepcopy(fields),
        )
        with self._lock:
            self.listings[record.id] = record
            return copy.deepcopy(record)

    def get_listing(self, listing_id: str) -> Optional[ListingRecord]:
        with self._lock:
            record = self.listings.get(listing_id)
            return copy.deepcopy(record) if record else None

    def list_listings(
        self,
        *,
        status: Optional[ListingStatus] = None,
        owner_id: Optional[str] = None,
        requester_email: Optional[str] = None,
    ) -> list[ListingRecord]:
        with self._lock:
            items = []
            for record in self.listings.values():
                if status is not None and record.status != status:
                    continue
                if owner_id is not None and record.owner_id != owner_id:
                    continue
                if requester_email is not None and (
                    record.request_info is None
                    or record.request_info.requester_email != requester_email
                ):
                    continue
                items.append(copy.deepcopy(record))
            return items

    def update_listing_fields(
        self, listing_id: str, owner_id: str, changes: dict
    ) -> Optional[ListingRecord]:
        with self._lock:
            record = self.listings.get(listing_id)
            if not record or record.owner_id != owner_id:
                return None
            record.fields.update(copy.deepcopy(changes))
            record.updated_at = time.time()
            return copy.deepcopy(record)

    def delete_listing(self, listing_id: str, owner_id: str) -> bool:
        with self._lock:
            record = self.listings.get(listing_id)
            if not record or record.owner_id != owner_id:
                return False
            del self.listings[listing_id]
            return True

    def request_listing(
        self,
        listing_id: str,
        request_info: RequestInfo,
        *,
        expected_status: ListingStatus = ListingStatus.AVAILABLE,
    ) -> Optional[ListingRecord]:
        with self._lock:
            record = self.listings.get(listing_id)
            if not record or record.status != expected_status:
                return None
            record.status = ListingStatus.REQUESTED
            record.request_info = copy.deepcopy(request_info)
            record.updated_at = time.time()
            return copy.deepcopy(record)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.listings.clear()


class SqlListingStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlListingStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("Listing store operation failed")
            raise StoreUnavailable() from exc

    def _to_record(self, row: "ListingRow") -> ListingRecord:
        return ListingRecord(
            id=row.id,
            owner_id=row.owner_id,
            owner_email=row.owner_email,
            status=ListingStatus(row.status),
            fields=dict(row.fields or {}),
            request_info=(
                RequestInfo.from_dict(row.request_info) if row.request_info else None
            ),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def insert_listing(
        self, fields: dict, *, owner_id: str, owner_email: Optional[str]
    ) -> ListingRecord:
        now = time.time()
        with self._session() as session:
            row = ListingRow(
                id=new_listing_id(),
                owner_id=owner_id,
                owner_email=owner_email,
                status=ListingStatus.AVAILABLE.value,
                fields=dict(fields),
                request_info=None,
                requester_email=None,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_record(row)

    def get_listing(self, listing_id: str) -> Optional[ListingRecord]:
        with self._session() as session:
            row = session.get(ListingRow, listing_id)
            if not row:
                return None
            return self._to_record(row)

    def list_listings(
        self,
        *,
        status: Optional[ListingStatus] = None,
        owner_id: Optional[str] = None,
        requester_email: Optional[str] = None,
    ) -> list[ListingRecord]:
        stmt = select(ListingRow)
        if status is not None:
            stmt = stmt.where(ListingRow.status == status.value)
        if owner_id is not None:
            stmt = stmt.where(ListingRow.owner_id == owner_id)
        if requester_email is not None:
            stmt = stmt.where(ListingRow.requester_email == requester_email)
        stmt = stmt.order_by(ListingRow.created_at.asc(), ListingRow.id.asc())
        with self._session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_record(row) for row in rows]

    def update_listing_fields(
        self, listing_id: str, owner_id: str, changes: dict
    ) -> Optional[ListingRecord]:
        with self._session() as session:
            stmt = (
                select(ListingRow)
                .where(ListingRow.id == listing_id, ListingRow.owner_id == owner_id)
                .with_for_update()
            )
            row = session.execute(stmt).scalar_one_or_none()
            if not row:
                return None
            # Reassign so the JSON column is flagged dirty.
            row.fields = {**(row.fields or {}), **changes}
            row.updated_at = time.time()
            session.commit()
            session.refresh(row)
            return self._to_record(row)

    def delete_listing(self, listing_id: str, owner_id: str) -> bool:
        with self._session() as session:
            result = session.execute(
                delete(ListingRow).where(
                    ListingRow.id == listing_id, ListingRow.owner_id == owner_id
                )
            )
            session.commit()
            return (result.rowcount or 0) == 1

    def request_listing(
        self,
        listing_id: str,
        request_info: RequestInfo,
        *,
        expected_status: ListingStatus = ListingStatus.AVAILABLE,
    ) -> Optional[ListingRecord]:
        with self._session() as session:
            result = session.execute(
                update(ListingRow)
                .where(
                    ListingRow.id == listing_id,
                    ListingRow.status == expected_status.value,
                )
                .values(
                    status=ListingStatus.REQUESTED.value,
                    request_info=request_info.as_dict(),
                    requester_email=request_info.requester_email,
                    updated_at=time.time(),
                )
            )
            if (result.rowcount or 0) != 1:
                session.rollback()
                return None
            session.commit()
            row = session.get(ListingRow, listing_id)
            return self._to_record(row) if row else None


Base = declarative_base()


class ListingRow(Base):
    __tablename__ = "listings"

    id = Column(String, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    owner_email = Column(String, nullable=True)
    status = Column(String, nullable=False, index=True)
    fields = Column(JSON, nullable=False, default=dict)
    request_info = Column(JSON, nullable=True)
    # Copied out of request_info so requester lookups stay dialect-neutral.
    requester_email = Column(String, nullable=True, index=True)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)
