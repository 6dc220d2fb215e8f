"""Authentication API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from filite.api.dependencies import get_current_user
from filite.schemas.auth import UserRecord, UserResponse

router = APIRouter(tags=["auth"])


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
):
    """Get current user information."""
    return current_user
