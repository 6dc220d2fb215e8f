"""Entry API endpoints: upload, fetch and delete files, links and texts."""

import logging
from datetime import UTC, datetime
from email.utils import format_datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, RedirectResponse

from filite.api.dependencies import (
    get_app_settings,
    get_current_user,
    get_entry_store,
    get_id_allocator,
)
from filite.config import Settings
from filite.models.enums import EntryKind
from filite.schemas.auth import UserRecord
from filite.schemas.entry import (
    DEFAULT_MIME_TYPE,
    EntryContent,
    EntryInfo,
    EntryRecord,
    FileContent,
    LinkContent,
    TextContent,
)
from filite.services.entries import EntryStore
from filite.services.ids import IdAllocator, is_valid_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["entries"])


def validate_entry_id(entry_id: str) -> str:
    """Reject identifiers that could never have been stored."""
    if not is_valid_id(entry_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid entry id")
    return entry_id


def too_large(limit: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_413_CONTENT_TOO_LARGE,
        detail=f"Body exceeds {limit} bytes",
    )


async def read_body(request: Request, limit: int) -> bytes:
    """Read the request body, stopping as soon as it exceeds ``limit`` bytes."""
    content_length = request.headers.get("Content-Length")
    if content_length is not None and content_length.isdigit() and int(content_length) > limit:
        raise too_large(limit)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise too_large(limit)
    return bytes(body)


async def read_content(request: Request, kind: EntryKind, settings: Settings) -> EntryContent:
    """Build entry content from the raw request body."""
    body = await read_body(request, settings.max_upload_bytes)

    if kind is EntryKind.FILE:
        mime_type = request.headers.get("Content-Type") or DEFAULT_MIME_TYPE
        return FileContent(data=body, mime_type=mime_type)

    try:
        value = body.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Body is not valid UTF-8"
        ) from None

    if kind is EntryKind.LINK:
        url = value.strip()
        if not url:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty link")
        return LinkContent(url=url)
    return TextContent(text=value)


def last_modified(created: datetime) -> str:
    """Format a creation time for the Last-Modified header."""
    if created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    return format_datetime(created.astimezone(UTC), usegmt=True)


def entry_response(entry: EntryRecord) -> Response:
    """Serve an entry according to its content variant."""
    headers = {"Last-Modified": last_modified(entry.created)}
    content = entry.content
    if isinstance(content, FileContent):
        return Response(content=content.data, media_type=content.mime_type, headers=headers)
    if isinstance(content, LinkContent):
        return RedirectResponse(
            content.url, status_code=status.HTTP_307_TEMPORARY_REDIRECT, headers=headers
        )
    if isinstance(content, TextContent):
        return PlainTextResponse(content.text, headers=headers)
    raise TypeError(f"Unknown entry content: {type(content).__name__}")


async def create_entry(
    kind: EntryKind,
    request: Request,
    current_user: UserRecord,
    store: EntryStore,
    allocator: IdAllocator,
    settings: Settings,
) -> PlainTextResponse:
    content = await read_content(request, kind, settings)
    entry = await run_in_threadpool(
        store.insert_with_fresh_id,
        current_user.id,
        content,
        allocator,
        settings.id_length,
        settings.allocation_timeout,
    )
    return PlainTextResponse(entry.id, status_code=status.HTTP_201_CREATED)


async def put_entry(
    kind: EntryKind,
    entry_id: str,
    request: Request,
    current_user: UserRecord,
    store: EntryStore,
    settings: Settings,
) -> PlainTextResponse:
    validate_entry_id(entry_id)
    content = await read_content(request, kind, settings)
    entry = EntryRecord(
        id=entry_id,
        owner=current_user.id,
        created=datetime.now(UTC),
        views=0,
        content=content,
    )
    if not await run_in_threadpool(store.insert, entry):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Entry already exists")
    logger.info(f"Created {kind.value} entry {entry_id} for {current_user.id}")
    return PlainTextResponse(entry_id, status_code=status.HTTP_201_CREATED)


@router.post("/f", status_code=status.HTTP_201_CREATED)
async def create_file(
    request: Request,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[EntryStore, Depends(get_entry_store)],
    allocator: Annotated[IdAllocator, Depends(get_id_allocator)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    """Upload a file under a fresh id. The request Content-Type is kept."""
    return await create_entry(EntryKind.FILE, request, current_user, store, allocator, settings)


@router.post("/l", status_code=status.HTTP_201_CREATED)
async def create_link(
    request: Request,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[EntryStore, Depends(get_entry_store)],
    allocator: Annotated[IdAllocator, Depends(get_id_allocator)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    """Shorten a URL under a fresh id."""
    return await create_entry(EntryKind.LINK, request, current_user, store, allocator, settings)


@router.post("/t", status_code=status.HTTP_201_CREATED)
async def create_text(
    request: Request,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[EntryStore, Depends(get_entry_store)],
    allocator: Annotated[IdAllocator, Depends(get_id_allocator)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    """Store a text snippet under a fresh id."""
    return await create_entry(EntryKind.TEXT, request, current_user, store, allocator, settings)


@router.put("/f/{entry_id}", status_code=status.HTTP_201_CREATED)
async def put_file(
    entry_id: str,
    request: Request,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[EntryStore, Depends(get_entry_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    """Upload a file under a chosen id."""
    return await put_entry(EntryKind.FILE, entry_id, request, current_user, store, settings)


@router.put("/l/{entry_id}", status_code=status.HTTP_201_CREATED)
async def put_link(
    entry_id: str,
    request: Request,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[EntryStore, Depends(get_entry_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    """Shorten a URL under a chosen id."""
    return await put_entry(EntryKind.LINK, entry_id, request, current_user, store, settings)


@router.put("/t/{entry_id}", status_code=status.HTTP_201_CREATED)
async def put_text(
    entry_id: str,
    request: Request,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[EntryStore, Depends(get_entry_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    """Store a text snippet under a chosen id."""
    return await put_entry(EntryKind.TEXT, entry_id, request, current_user, store, settings)


async def list_kind(
    kind: EntryKind, store: EntryStore, limit: int, offset: int, owner: str | None
) -> list[EntryInfo]:
    entries = await run_in_threadpool(store.list_entries, limit, offset, kind, owner)
    return [EntryInfo.from_record(entry) for entry in entries]


@router.get("/f", response_model=list[EntryInfo])
async def list_files(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[EntryStore, Depends(get_entry_store)],
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
    owner: str | None = None,
):
    """List file entries."""
    return await list_kind(EntryKind.FILE, store, limit, offset, owner)


@router.get("/l", response_model=list[EntryInfo])
async def list_links(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[EntryStore, Depends(get_entry_store)],
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
    owner: str | None = None,
):
    """List link entries."""
    return await list_kind(EntryKind.LINK, store, limit, offset, owner)


@router.get("/t", response_model=list[EntryInfo])
async def list_texts(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[EntryStore, Depends(get_entry_store)],
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
    owner: str | None = None,
):
    """List text entries."""
    return await list_kind(EntryKind.TEXT, store, limit, offset, owner)


@router.get("/{entry_id}/info", response_model=EntryInfo)
async def get_entry_info(
    entry_id: str,
    store: Annotated[EntryStore, Depends(get_entry_store)],
):
    """Get entry metadata without counting a view."""
    validate_entry_id(entry_id)
    entry = await run_in_threadpool(store.get, entry_id, False)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return EntryInfo.from_record(entry)


@router.get("/{entry_id}")
async def get_entry(
    entry_id: str,
    store: Annotated[EntryStore, Depends(get_entry_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    """Serve an entry: file bytes, a redirect, or plain text."""
    validate_entry_id(entry_id)
    entry = await run_in_threadpool(store.get, entry_id, settings.count_views)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return entry_response(entry)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: str,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[EntryStore, Depends(get_entry_store)],
):
    """Delete an entry owned by the current user, or any entry for admins.

    Missing and foreign entries both answer 404.
    """
    validate_entry_id(entry_id)
    entry = await run_in_threadpool(store.delete, entry_id, current_user)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
