"""FastAPI dependencies for authentication and the entry store."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from filite.config import Settings
from filite.database import get_db
from filite.exceptions import AuthenticationError, MalformedCredentialsError
from filite.schemas.auth import UserRecord
from filite.services.auth import CHALLENGE, AuthenticationGate
from filite.services.entries import EntryStore
from filite.services.hasher import CredentialHasher
from filite.services.ids import IdAllocator


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was built with."""
    return request.app.state.settings


def get_hasher(request: Request) -> CredentialHasher:
    """Get the shared password hasher."""
    return request.app.state.hasher


def get_gate(request: Request) -> AuthenticationGate:
    """Get the shared authentication gate."""
    return request.app.state.gate


async def get_current_user(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    gate: Annotated[AuthenticationGate, Depends(get_gate)],
) -> UserRecord:
    """Get the current authenticated user from HTTP Basic credentials."""
    try:
        return await gate.authenticate(db, request.headers.get("Authorization"))
    except MalformedCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Malformed authentication credentials",
        ) from None
    except AuthenticationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": CHALLENGE},
        ) from None


def get_entry_store(
    db: Annotated[Session, Depends(get_db)],
) -> EntryStore:
    """Get entry store bound to the request's session."""
    return EntryStore(db)


def get_id_allocator(
    store: Annotated[EntryStore, Depends(get_entry_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> IdAllocator:
    """Get identifier allocator with dependencies."""
    return IdAllocator(store, max_attempts=settings.max_allocation_attempts)
