"""Pydantic v2 request/response schemas for account verification."""

import uuid

from pydantic import BaseModel, ConfigDict, Field


class VerifyAccountRequest(BaseModel):
    """Single-use verification token, optionally with the user's own password."""

    token: str = Field(..., min_length=1)
    password: str | None = Field(default=None, min_length=8, max_length=72)


class VerifyAccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    username: str
    verified: bool
