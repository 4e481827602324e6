"""
Pydantic schemas for the listing API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ListingPayload(BaseModel):
    """
    Client-supplied listing fields (title, quantity, description, location,
    expiry, image_url, ...). Every field is free-form and kept as sent.
    """

    model_config = ConfigDict(extra="allow")

    def listing_fields(self) -> dict:
        return dict(self.model_extra or {})


class ClaimPayload(BaseModel):
    request_date: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=1024)


class RequestInfoResponse(BaseModel):
    requester_email: str
    request_date: str
    notes: str = ""


class ListingResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    owner_id: str
    owner_email: Optional[str] = None
    status: str
    request_info: Optional[RequestInfoResponse] = None
    created_at: float
    updated_at: float


class CreateListingResponse(BaseModel):
    id: str


class DeleteListingResponse(BaseModel):
    id: str
    deleted: Literal[True] = True


class IdentityResponse(BaseModel):
    uid: str
    email: Optional[str] = None


class VerifyTokenResponse(BaseModel):
    message: str
    user: IdentityResponse


class HealthResponse(BaseModel):
    status: Literal["ok"]
    service: str


class ErrorResponse(BaseModel):
    message: str
