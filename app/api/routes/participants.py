from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import Identity, get_db, get_identity_optional
from app.core.errors import ValidationError
from app.schemas.participant import JoinRequest, LeaveRequest, ParticipantPublic
from app.services import matches, membership
from app.services.utils import parse_match_id
from app.realtime.sse import notify  # ✅ SSE

router = APIRouter(prefix="/matches", tags=["participants"])


@router.post("/{match_id}/join", response_model=ParticipantPublic, status_code=201)
def join_match(
    match_id: str,
    payload: JoinRequest,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity_optional),
):
    if identity is not None:
        user_id = identity.user_id
        user_name = identity.name or payload.user_name
    else:
        user_id, user_name = payload.user_id, payload.user_name

    participant = membership.join_match(db, match_id, user_id, user_name)

    notify(
        "MATCH_JOINED",
        {
            "match_id": participant.match_id,
            "user_id": participant.user_id,
            "position": participant.position,
        },
    )

    match = matches.get_match(db, participant.match_id)
    if match is not None and membership.count_participants(db, match.id) >= match.max_players:
        notify("MATCH_FULL", {"match_id": match.id, "title": match.title})

    return participant


@router.post("/{match_id}/leave")
def leave_match(
    match_id: str,
    payload: LeaveRequest,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity_optional),
):
    user_id = identity.user_id if identity is not None else payload.user_id

    if membership.leave_match(db, match_id, user_id):
        notify("MATCH_LEFT", {"match_id": match_id, "user_id": user_id})

    return {"success": True}


@router.get("/{match_id}/joined")
def has_joined(
    match_id: str,
    userId: str | None = None,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity_optional),
):
    user_id = identity.user_id if identity is not None else (userId or "").strip()
    if not user_id:
        raise ValidationError("Missing userId query parameter")

    match_id = parse_match_id(match_id)
    return {"joined": membership.has_joined(db, match_id, user_id)}
