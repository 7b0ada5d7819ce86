"""Expected moderation failures.

Each error carries a message key; the global exception handler renders it as
problem JSON with ``type`` set to that key.
"""
from modqueue.middleware.error_handler import AppException


class ModerationError(AppException):
    message_key = "moderation-error"
    http_status = 400

    def __init__(self, detail: str | None = None):
        super().__init__(self.http_status, detail or self.message_key, error_type=self.message_key)


class EntryNotFound(ModerationError):
    message_key = "moderation-edit-not-found"
    http_status = 404


class AlreadyMerged(ModerationError):
    message_key = "moderation-already-merged"
    http_status = 409


class RejectedTooLongAgo(ModerationError):
    message_key = "moderation-rejected-long-ago"
    http_status = 409


class EditConflict(ModerationError):
    message_key = "moderation-edit-conflict"
    http_status = 409


class MissingStashedUpload(ModerationError):
    message_key = "moderation-missing-stashed-image"
    http_status = 410


class NothingToApprove(ModerationError):
    message_key = "moderation-nothing-to-approveall"
    http_status = 404


class NothingToReject(ModerationError):
    message_key = "moderation-nothing-to-rejectall"
    http_status = 404


class AlreadyBlocked(ModerationError):
    message_key = "moderation-already-blocked"
    http_status = 409


class NotBlocked(ModerationError):
    message_key = "moderation-not-blocked"
    http_status = 409


class CommitFailed(ModerationError):
    """The content store refused the change; `detail` is its reason, verbatim."""

    message_key = "moderation-commit-failed"
    http_status = 422


class ModerationRequired(Exception):
    """Raised by the content store when a change must go to the queue instead."""
