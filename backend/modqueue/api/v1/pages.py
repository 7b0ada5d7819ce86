"""Pages API - the editor: preload of pending drafts and edit intake."""
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.config import settings
from modqueue.dependencies import get_actor_context, get_db
from modqueue.schemas.common import APIResponse
from modqueue.schemas.edit import EditorPreload, EditRequest, EditResult
from modqueue.services import content_store, intake_service, preload_service
from modqueue.services.preload_service import ActorContext
from modqueue.utils import wikitext
from modqueue.utils.helpers import parse_int
from modqueue.utils.titles import Title

router = APIRouter()


def _parse_title(raw: str) -> Title:
    try:
        return Title.parse(raw)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _persist_session(response: Response, actor: ActorContext) -> None:
    if actor.session.modified:
        response.set_cookie(
            settings.SESSION_COOKIE_NAME,
            actor.session.session_id,
            max_age=settings.SESSION_TTL_SECONDS,
        )


async def _resolve_text(db: AsyncSession, actor: ActorContext, title: Title, body: EditRequest) -> str:
    """Full page text for the edit, with partial-text parameters applied."""
    params = body.api_params()
    if not params.keys() & {"section", "appendtext", "prependtext"}:
        if "text" not in params:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="missingtext")
        return params["text"]

    pending = await preload_service.find_pending_edit(db, await preload_service.identity_for(actor), title)
    params = preload_service.apply_api_edit_params(params, pending.text if pending else None)
    if not params.keys() & {"section", "appendtext", "prependtext"}:
        return params["text"]

    # Whatever is left applies to the draft, or to the live text without one
    if pending is not None:
        current = pending.text
    else:
        latest = await content_store.current_revision_id(db, title)
        current = (await content_store.content_at(db, latest) or "") if latest else ""

    if "appendtext" in params or "prependtext" in params:
        return params.get("prependtext", "") + current + params.get("appendtext", "")
    if "text" not in params:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="missingtext")
    if params["section"] == "new":
        return current.rstrip("\n") + "\n\n" + params["text"] if current else params["text"]
    merged = wikitext.replace_section(current, parse_int(params["section"], -1), params["text"])
    if merged is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="nosuchsection")
    return merged


# GET /pages/{title}/edit
@router.get("/{title:path}/edit", response_model=APIResponse)
async def edit_form(
    title: str,
    response: Response,
    section: str | None = Query(None),
    actor: ActorContext = Depends(get_actor_context),
    db: AsyncSession = Depends(get_db),
):
    page_title = _parse_title(title)
    latest = await content_store.current_revision_id(db, page_title)

    pending = await preload_service.preload_for_editor(db, actor, page_title, section)
    if pending is not None:
        preload = EditorPreload(
            title=str(page_title), text=pending.text, comment=pending.comment, pending=True, baseline=latest,
        )
    else:
        text = (await content_store.content_at(db, latest) or "") if latest else ""
        if section and section != "new":
            text = wikitext.get_section(text, parse_int(section, -1)) or text
        elif section == "new":
            text = ""
        preload = EditorPreload(title=str(page_title), text=text, baseline=latest)

    _persist_session(response, actor)
    return APIResponse(status="success", data=preload.model_dump())


# POST /pages/{title}/edit
@router.post("/{title:path}/edit", response_model=APIResponse)
async def save_edit(
    title: str,
    body: EditRequest,
    response: Response,
    actor: ActorContext = Depends(get_actor_context),
    db: AsyncSession = Depends(get_db),
):
    page_title = _parse_title(title)
    text = await _resolve_text(db, actor, page_title, body)

    result = await intake_service.submit_edit(
        db, actor, page_title, text,
        baseline=body.baseline, comment=body.comment, minor=body.minor, bot=body.bot,
    )
    _persist_session(response, actor)

    if result.queued:
        response.status_code = status.HTTP_202_ACCEPTED
    return APIResponse(
        status="success",
        data=EditResult(
            title=str(page_title),
            queued=result.queued,
            entry_id=result.entry_id,
            revision_id=result.revision_id,
        ).model_dump(),
        message="moderation-edit-queued" if result.queued else None,
    )
