"""Auth API router: email verification for provisioned accounts."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from digitalsite.api.deps import get_db, get_settings
from digitalsite.config import Settings
from digitalsite.schemas.auth import VerifyAccountRequest, VerifyAccountResponse
from digitalsite.services.account_service import verify_account

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/verify", response_model=VerifyAccountResponse)
async def verify(
    body: VerifyAccountRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> VerifyAccountResponse:
    """Consume the emailed verification token, optionally setting a new password."""
    user = await verify_account(db, body.token, body.password, settings=settings)
    return VerifyAccountResponse.model_validate(user)
