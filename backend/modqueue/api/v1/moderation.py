"""Moderation API - queue listing and moderator actions."""
from collections.abc import Awaitable
from typing import TypeVar

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.dependencies import get_db, require_role
from modqueue.exceptions import EntryNotFound, ModerationError
from modqueue.middleware.metrics import record_moderation
from modqueue.models.user import User
from modqueue.repositories import moderation_repository
from modqueue.schemas.common import APIResponse, PaginationMeta
from modqueue.schemas.moderation import ModerationEntryDetail, ModerationEntryResponse
from modqueue.services import approve_service, block_service, reject_service
from modqueue.services.identity_service import Author

router = APIRouter()

T = TypeVar("T")

MODERATORS = ("admin", "moderator")


async def _tracked(action: str, call: Awaitable[T]) -> T:
    """Await a moderation action, counting its outcome."""
    try:
        result = await call
    except ModerationError as exc:
        record_moderation(exc.error_type)
        raise
    record_moderation(action)
    return result


async def _author_of(db: AsyncSession, entry_id: int) -> str:
    row = await moderation_repository.get_by_id(db, entry_id)
    if row is None:
        raise EntryNotFound()
    return row.user_text


# GET /moderation
@router.get("", response_model=APIResponse)
async def list_pending(
    folder: str = Query("pending", pattern="^(pending|rejected|conflicts)$"),
    user: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    caller: User = require_role(*MODERATORS),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await moderation_repository.list_entries(
        db,
        rejected=folder == "rejected",
        conflict=True if folder == "conflicts" else None,
        user_text=user,
        skip=(page - 1) * per_page,
        limit=per_page,
    )
    return APIResponse(
        status="success",
        data=[ModerationEntryResponse.model_validate(r).model_dump(mode="json") for r in rows],
        pagination=PaginationMeta(total=total, page=page, per_page=per_page, has_next=page * per_page < total),
    )


# GET /moderation/{id}
@router.get("/{entry_id}", response_model=APIResponse)
async def show_entry(
    entry_id: int,
    caller: User = require_role(*MODERATORS),
    db: AsyncSession = Depends(get_db),
):
    row = await moderation_repository.get_by_id(db, entry_id)
    if row is None:
        raise EntryNotFound()
    return APIResponse(status="success", data=ModerationEntryDetail.model_validate(row).model_dump(mode="json"))


# POST /moderation/{id}/approve
@router.post("/{entry_id}/approve", response_model=APIResponse)
async def approve(
    entry_id: int,
    caller: User = require_role(*MODERATORS),
    db: AsyncSession = Depends(get_db),
):
    result = await _tracked("approved", approve_service.approve_one(db, entry_id, Author.from_user(caller)))
    return APIResponse(status="success", data=result.model_dump(), message="moderation-approved-ok")


# POST /moderation/{id}/approveall
@router.post("/{entry_id}/approveall", response_model=APIResponse)
async def approve_all(
    entry_id: int,
    caller: User = require_role(*MODERATORS),
    db: AsyncSession = Depends(get_db),
):
    author_name = await _author_of(db, entry_id)
    result = await _tracked("approveall", approve_service.approve_all(db, author_name, Author.from_user(caller)))
    record_moderation("approved", result.approved)
    return APIResponse(status="success", data=result.model_dump(), message="moderation-approved-ok")


# POST /moderation/{id}/reject
@router.post("/{entry_id}/reject", response_model=APIResponse)
async def reject(
    entry_id: int,
    caller: User = require_role(*MODERATORS),
    db: AsyncSession = Depends(get_db),
):
    result = await _tracked("rejected", reject_service.reject_one(db, entry_id, Author.from_user(caller)))
    return APIResponse(status="success", data=result.model_dump(), message="moderation-rejected-ok")


# POST /moderation/{id}/rejectall
@router.post("/{entry_id}/rejectall", response_model=APIResponse)
async def reject_all(
    entry_id: int,
    caller: User = require_role(*MODERATORS),
    db: AsyncSession = Depends(get_db),
):
    author_name = await _author_of(db, entry_id)
    result = await _tracked("rejectall", reject_service.reject_all(db, author_name, Author.from_user(caller)))
    return APIResponse(status="success", data=result.model_dump(), message="moderation-rejected-ok")


# POST /moderation/{id}/block
@router.post("/{entry_id}/block", response_model=APIResponse)
async def block(
    entry_id: int,
    caller: User = require_role(*MODERATORS),
    db: AsyncSession = Depends(get_db),
):
    result = await _tracked("blocked", block_service.block_author(db, entry_id, Author.from_user(caller)))
    return APIResponse(status="success", data=result.model_dump())


# POST /moderation/{id}/unblock
@router.post("/{entry_id}/unblock", response_model=APIResponse)
async def unblock(
    entry_id: int,
    caller: User = require_role(*MODERATORS),
    db: AsyncSession = Depends(get_db),
):
    result = await _tracked("unblocked", block_service.unblock_author(db, entry_id, Author.from_user(caller)))
    return APIResponse(status="success", data=result.model_dump())
