"""Editor request/response schemas."""
from pydantic import BaseModel


class EditRequest(BaseModel):
    """Edit of one page, with the edit API's partial-text parameters."""

    text: str | None = None
    section: str | None = None
    appendtext: str | None = None
    prependtext: str | None = None
    baseline: int | None = None
    comment: str = ""
    minor: bool = False
    bot: bool = False

    def api_params(self) -> dict[str, str]:
        params = {"action": "edit"}
        for name in ("text", "section", "appendtext", "prependtext"):
            value = getattr(self, name)
            if value is not None:
                params[name] = value
        return params


class EditorPreload(BaseModel):
    title: str
    text: str
    comment: str = ""
    # True when the text is the visitor's own draft awaiting moderation
    pending: bool = False
    baseline: int | None = None


class EditResult(BaseModel):
    title: str
    queued: bool
    entry_id: int | None = None
    revision_id: int | None = None
