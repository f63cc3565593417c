"""Reply editing endpoints for the ReelTalk API."""

from fastapi import APIRouter

from reeltalk.api.v1.dependencies import CurrentUserIdDep, SessionDep
from reeltalk.schemas.reply import ReplyResponse, ReplyUpdate
from reeltalk.services import post_service

router = APIRouter(prefix="/replies", tags=["replies"])


@router.patch("/{reply_id}", response_model=ReplyResponse)
def update_reply(
    reply_id: int,
    reply_data: ReplyUpdate,
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
) -> ReplyResponse:
    """Replace the content of a reply written by the caller."""
    reply = post_service.update_reply(
        db,
        reply_id,
        editor_id=current_user_id,
        content=reply_data.content,
    )
    return ReplyResponse.model_validate(reply)
