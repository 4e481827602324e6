import argparse
import importlib.util
import json
import os
import tempfile
import unittest

from foodshare.db import InMemoryListingStore
from foodshare.listings import ListingService
from foodshare.types import Identity

SCRIPT_PATH = os.path.join(
    os.path.dirname(__file__), "..", "..", "scripts", "seed_listings.py"
)
OWNER = Identity(uid="seed-owner", email="seed@example.com")


def _load_script():
    spec = importlib.util.spec_from_file_location("seed_listings", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class SeedListingsTests(unittest.TestCase):
    def setUp(self):
        self.script = _load_script()
        self.service = ListingService(InMemoryListingStore())
        handle, self.path = tempfile.mkstemp(suffix=".json")
        os.close(handle)
        self.addCleanup(os.remove, self.path)

    def _write(self, payload):
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(payload, f)

    def _args(self, dry_run=False):
        return argparse.Namespace(
            path=self.path,
            owner_uid="seed-owner",
            owner_email="seed@example.com",
            dry_run=dry_run,
        )

    def test_seeds_each_listing_for_owner(self):
        self._write(
            [
                {"title": "Pears", "quantity": 4, "ownerId": "someone-else"},
                {"title": "Yoghurt", "quantity": "2"},
                "skipped",
            ]
        )
        created = self.script.seed_listings(self._args(), service=self.service)

        self.assertEqual(len(created), 2)
        listings = self.service.list_by_owner(OWNER)
        self.assertEqual([r.fields["title"] for r in listings], ["Pears", "Yoghurt"])
        self.assertNotIn("ownerId", listings[0].fields)

    def test_dry_run_creates_nothing(self):
        self._write({"title": "Single"})
        created = self.script.seed_listings(self._args(dry_run=True), service=self.service)
        self.assertEqual(created, [])
        self.assertEqual(self.service.list_all(), [])


if __name__ == "__main__":
    unittest.main()
