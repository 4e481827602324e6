"""
Error taxonomy for listing operations.

Each error carries the HTTP status it maps to and a message that is safe to
show to the caller.
"""

from __future__ import annotations


class ListingError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(ListingError):
    status_code = 400
    default_message = "Invalid input"


class Unauthenticated(ListingError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(ListingError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ListingError):
    status_code = 404
    default_message = "Listing not found"


class Conflict(ListingError):
    status_code = 409
    default_message = "Listing is no longer available"


class StoreUnavailable(ListingError):
    status_code = 500
    default_message = "Listing store unavailable"


class IdentityUnavailable(ListingError):
    status_code = 500
    default_message = "Identity service unavailable"
