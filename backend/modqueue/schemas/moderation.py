"""Moderation request/response schemas."""
from datetime import datetime

from pydantic import BaseModel

from modqueue.models.moderation import ChangeKind


class ApproveResult(BaseModel):
    entry_id: int
    revision_id: int
    title: str


class BatchApproveResult(BaseModel):
    approved: int
    failed: int


class RejectResult(BaseModel):
    entry_id: int
    rejected: int


class BatchRejectResult(BaseModel):
    rejected: int


class BlockResult(BaseModel):
    address: str
    blocked: bool


class ModerationEntryResponse(BaseModel):
    id: int
    timestamp: datetime
    user_id: int
    user_text: str
    namespace: int
    title: str
    page2_namespace: int | None = None
    page2_title: str | None = None
    type: ChangeKind
    comment: str
    minor: bool
    last_oldid: int | None = None
    stash_key: str | None = None
    rejected: bool
    rejected_by_user_text: str | None = None
    rejected_batch: bool
    rejected_auto: bool
    conflict: bool
    tags: list[str] | None = None

    model_config = {"from_attributes": True}


class ModerationEntryDetail(ModerationEntryResponse):
    text: str
    ip: str | None = None
    header_xff: str | None = None
    header_ua: str | None = None
