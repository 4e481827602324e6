import os
import shutil
import tempfile
import threading
import unittest
from datetime import datetime, timezone

from foodshare.claims import request_listing
from foodshare.db import SqlListingStore
from foodshare.errors import Conflict
from foodshare.types import Identity, ListingStatus, RequestInfo


class SqlListingStoreTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL store logic.
    """

    def setUp(self):
        self.db = SqlListingStore("sqlite+pysqlite:///:memory:")
        self.listing = self.db.insert_listing(
            {"title": "Lentils", "quantity": "5"},
            owner_id="owner-1",
            owner_email="owner@example.com",
        )

    def tearDown(self):
        self.db.engine.dispose()

    def test_insert_and_get(self):
        self.assertEqual(len(self.listing.id), 32)
        fetched = self.db.get_listing(self.listing.id)
        self.assertIsNotNone(fetched)
        self.assertEqual(fetched.fields, {"title": "Lentils", "quantity": "5"})
        self.assertEqual(fetched.owner_id, "owner-1")
        self.assertEqual(fetched.status, ListingStatus.AVAILABLE)
        self.assertIsNone(fetched.request_info)

    def test_get_missing(self):
        self.assertIsNone(self.db.get_listing("0" * 32))

    def test_list_filters(self):
        other = self.db.insert_listing(
            {"title": "Pasta"}, owner_id="owner-2", owner_email=None
        )
        self.assertEqual(
            [r.id for r in self.db.list_listings()], [self.listing.id, other.id]
        )
        self.assertEqual(
            [r.id for r in self.db.list_listings(owner_id="owner-2")], [other.id]
        )

        self.db.request_listing(other.id, RequestInfo(requester_email="r@example.com"))
        self.assertEqual(
            [r.id for r in self.db.list_listings(status=ListingStatus.AVAILABLE)],
            [self.listing.id],
        )
        requested = self.db.list_listings(
            status=ListingStatus.REQUESTED, requester_email="r@example.com"
        )
        self.assertEqual([r.id for r in requested], [other.id])
        self.assertEqual(
            self.db.list_listings(requester_email="nobody@example.com"), []
        )

    def test_update_fields_scoped_by_owner(self):
        self.assertIsNone(
            self.db.update_listing_fields(self.listing.id, "intruder", {"title": "x"})
        )
        updated = self.db.update_listing_fields(
            self.listing.id, "owner-1", {"title": "Red lentils", "location": "Park"}
        )
        self.assertEqual(
            updated.fields,
            {"title": "Red lentils", "quantity": "5", "location": "Park"},
        )
        self.assertEqual(
            self.db.get_listing(self.listing.id).fields["title"], "Red lentils"
        )

    def test_delete_scoped_by_owner(self):
        self.assertFalse(self.db.delete_listing(self.listing.id, "intruder"))
        self.assertTrue(self.db.delete_listing(self.listing.id, "owner-1"))
        self.assertIsNone(self.db.get_listing(self.listing.id))
        self.assertFalse(self.db.delete_listing(self.listing.id, "owner-1"))

    def test_conditional_request_applies_once(self):
        when = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)
        first = self.db.request_listing(
            self.listing.id,
            RequestInfo(requester_email="a@example.com", request_date=when, notes="hi"),
        )
        self.assertIsNotNone(first)
        self.assertEqual(first.status, ListingStatus.REQUESTED)
        self.assertEqual(first.request_info.requester_email, "a@example.com")
        self.assertEqual(first.request_info.request_date, when)
        self.assertEqual(first.request_info.notes, "hi")

        second = self.db.request_listing(
            self.listing.id, RequestInfo(requester_email="b@example.com")
        )
        self.assertIsNone(second)
        stored = self.db.get_listing(self.listing.id)
        self.assertEqual(stored.request_info.requester_email, "a@example.com")

    def test_conditional_request_on_missing_listing(self):
        self.assertIsNone(
            self.db.request_listing("9" * 32, RequestInfo(requester_email="a@x.org"))
        )



class SqlConcurrentClaimTests(unittest.TestCase):
    """
    Claims race through separate connections to a file-backed SQLite database.
    """

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmpdir, ignore_errors=True)
        path = os.path.join(self.tmpdir, "listings.db")
        self.db = SqlListingStore(f"sqlite+pysqlite:///{path}")
        self.addCleanup(self.db.engine.dispose)
        self.listing = self.db.insert_listing(
            {"title": "Bananas"}, owner_id="owner-1", owner_email="owner@example.com"
        )

    def test_concurrent_claims_have_single_winner(self):
        requesters = [
            Identity(uid=f"user-{i}", email=f"user-{i}@example.com") for i in range(8)
        ]
        barrier = threading.Barrier(len(requesters))
        winners = []
        conflicts = []
        errors = []
        lock = threading.Lock()

        def attempt(identity):
            barrier.wait()
            try:
                request_listing(self.db, self.listing.id, identity)
            except Conflict:
                with lock:
                    conflicts.append(identity)
            except Exception as exc:
                with lock:
                    errors.append(exc)
            else:
                with lock:
                    winners.append(identity)

        threads = [threading.Thread(target=attempt, args=(u,)) for u in requesters]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        self.assertEqual(errors, [])
        self.assertEqual(len(winners), 1)
        self.assertEqual(len(conflicts), len(requesters) - 1)
        stored = self.db.get_listing(self.listing.id)
        self.assertEqual(stored.status, ListingStatus.REQUESTED)
        self.assertEqual(stored.request_info.requester_email, winners[0].email)


if __name__ == "__main__":
    unittest.main()
