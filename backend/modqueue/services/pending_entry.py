"""Queue rows as domain objects: what kind of change each one carries."""
from dataclasses import dataclass
from datetime import datetime, timedelta

from modqueue.models.moderation import ChangeKind, ModerationEntry
from modqueue.utils.helpers import as_utc
from modqueue.utils.titles import Title


@dataclass(frozen=True)
class EditPayload:
    text: str
    baseline: int | None


@dataclass(frozen=True)
class UploadPayload:
    stash_key: str
    description: str


@dataclass(frozen=True)
class MovePayload:
    new_title: Title


Payload = EditPayload | UploadPayload | MovePayload


@dataclass(frozen=True)
class Attribution:
    """Request of the original submitter, kept verbatim."""

    ip: str | None
    xff: str | None
    user_agent: str | None


@dataclass(frozen=True)
class PendingEntry:
    id: int
    title: Title
    payload: Payload
    timestamp: datetime
    user_id: int
    user_text: str
    comment: str
    minor: bool
    bot: bool
    attribution: Attribution
    rejected: bool
    merged_revid: int | None
    conflict: bool

    @classmethod
    def from_row(cls, row: ModerationEntry) -> "PendingEntry":
        title = Title(row.namespace, row.title)
        payload: Payload
        if row.type == ChangeKind.MOVE:
            payload = MovePayload(Title(row.page2_namespace, row.page2_title))
        elif row.stash_key:
            payload = UploadPayload(row.stash_key, row.text)
        else:
            payload = EditPayload(row.text, row.last_oldid)

        return cls(
            id=row.id,
            title=title,
            payload=payload,
            timestamp=as_utc(row.timestamp),
            user_id=row.user_id,
            user_text=row.user_text,
            comment=row.comment,
            minor=row.minor,
            bot=row.bot,
            attribution=Attribution(row.ip, row.header_xff, row.header_ua),
            rejected=row.rejected,
            merged_revid=row.merged_revid,
            conflict=row.conflict,
        )


def earliest_reapprovable_timestamp(now: datetime, window_seconds: int) -> datetime:
    return as_utc(now) - timedelta(seconds=window_seconds)


def can_reapprove_rejected(entry_timestamp: datetime, now: datetime, window_seconds: int) -> bool:
    """Rejected entries stay approvable until they are older than the override window."""
    return as_utc(entry_timestamp) >= earliest_reapprovable_timestamp(now, window_seconds)
