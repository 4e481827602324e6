"""
Identity verification for bearer tokens.

Firebase Authentication is the production verifier; a static token table is
available for tests and local runs.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Optional, Protocol

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from firebase_admin import exceptions as firebase_exceptions

from foodshare.errors import IdentityUnavailable, Unauthenticated
from foodshare.types import Identity

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "foodshare"


class IdentityVerifier(Protocol):
    """Turns an opaque bearer token into a verified identity."""

    def verify(self, token: str) -> Identity:
        ...


def parse_service_account_key(raw: Optional[str]) -> Optional[dict]:
    """
    Parse a service account JSON blob taken from the environment.

    Private keys stored in env vars usually carry literal "\\n" sequences;
    those are turned back into newlines.
    """
    if not raw:
        return None
    try:
        info = json.loads(raw)
    except json.JSONDecodeError:
        logger.error("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON")
        return None
    if not isinstance(info, dict):
        logger.error("FIREBASE_SERVICE_ACCOUNT_KEY must be a JSON object")
        return None
    if isinstance(info.get("private_key"), str):
        info["private_key"] = info["private_key"].replace("\\n", "\n")
    return info


class FirebaseIdentityVerifier:
    """Verifies Firebase ID tokens with firebase-admin."""

    def __init__(
        self,
        service_account_info: Optional[dict] = None,
        project_id: Optional[str] = None,
    ):
        self.service_account_info = service_account_info
        self.project_id = project_id
        self._app: Optional[firebase_admin.App] = None
        self._lock = threading.Lock()

    def _get_app(self) -> firebase_admin.App:
        with self._lock:
            if self._app is not None:
                return self._app
            try:
                self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
                return self._app
            except ValueError:
                pass
            credential = (
                credentials.Certificate(self.service_account_info)
                if self.service_account_info
                else None
            )
            options = {"projectId": self.project_id} if self.project_id else None
            self._app = firebase_admin.initialize_app(
                credential, options=options, name=FIREBASE_APP_NAME
            )
            return self._app

    def verify(self, token: str) -> Identity:
        app = self._get_app()
        try:
            decoded = firebase_auth.verify_id_token(token, app=app)
        except firebase_auth.CertificateFetchError as exc:
            logger.error("Could not fetch Firebase certificates: %s", exc)
            raise IdentityUnavailable() from exc
        except (
            ValueError,
            firebase_auth.InvalidIdTokenError,
            firebase_auth.UserDisabledError,
        ) as exc:
            logger.warning("Token verification failed: %s", exc)
            raise Unauthenticated("Unauthorized: Invalid token") from exc
        except firebase_exceptions.FirebaseError as exc:
            logger.exception("Firebase token verification errored")
            raise IdentityUnavailable() from exc

        uid = decoded.get("uid") or decoded.get("sub")
        if not uid:
            raise Unauthenticated("Unauthorized: Invalid token")
        return Identity(uid=uid, email=decoded.get("email"))


@dataclass
class StaticIdentityVerifier:
    """Test double mapping fixed tokens to identities."""

    tokens: dict[str, Identity] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, mapping: dict[str, dict]) -> "StaticIdentityVerifier":
        return cls(
            tokens={
                token: Identity(uid=entry["uid"], email=entry.get("email"))
                for token, entry in mapping.items()
            }
        )

    def verify(self, token: str) -> Identity:
        identity = self.tokens.get(token)
        if identity is None:
            raise Unauthenticated("Unauthorized: Invalid token")
        return identity
