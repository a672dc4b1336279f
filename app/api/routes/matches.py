from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import Identity, get_db, get_identity_optional
from app.core.errors import NotFoundError, ValidationError
from app.schemas.match import (
    MatchCreate,
    MatchOwnerRequest,
    MatchPublic,
    MatchPublicWithParticipants,
    MatchUpdate,
)
from app.services import aggregation, geo, invites, matches
from app.realtime.sse import notify  # ✅ SSE

router = APIRouter(prefix="/matches", tags=["matches"])


def _caller_id(identity: Identity | None, body_user_id: str | None) -> str | None:
    # token válido > identidad anónima enviada por el cliente
    if identity is not None:
        return identity.user_id
    return body_user_id


@router.post("", response_model=MatchPublic, status_code=201)
def create_match(
    payload: MatchCreate,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity_optional),
):
    creator_id = _caller_id(identity, payload.creator_id)
    creator_name = identity.name if identity and identity.name else payload.creator_name

    match = matches.create_match(db, payload, creator_id, creator_name)
    out = aggregation.match_with_participant_count(db, match)

    notify(
        "MATCH_CREATED",
        {
            "id": out.id,
            "title": out.title,
            "sport": out.sport,
            "date": out.date.isoformat(),
            "time": out.time,
            "participant_count": out.participant_count,
            "max_players": out.max_players,
        },
    )
    return out


@router.get("", response_model=list[MatchPublic])
def list_matches(
    sport: str | None = None,
    city: str | None = None,
    distance: float | None = None,
    db: Session = Depends(get_db),
):
    items = aggregation.list_active_matches_with_counts(db, sport=sport)

    if city:
        selected = geo.get_city_by_name(city)
        if selected is None:
            raise ValidationError(f"Unknown city: {city}")
        if distance is not None:
            items = [m for m in items if geo.within_distance(m.location, selected, distance)]

    return items


# ✅ IMPORTANTE: /invite/{code} ANTES que /{match_id}
@router.get("/invite/{code}", response_model=MatchPublicWithParticipants)
def get_match_by_invite(code: str, db: Session = Depends(get_db)):
    view = invites.resolve_invite(db, code)
    if view is None:
        raise NotFoundError("Match not found")
    return view


@router.get("/{match_id}", response_model=MatchPublicWithParticipants)
def get_match(match_id: str, db: Session = Depends(get_db)):
    match = matches.get_match(db, match_id)
    if match is None:
        raise NotFoundError("Match not found")
    return aggregation.match_view(db, match)


@router.put("/{match_id}", response_model=MatchPublic)
def update_match(
    match_id: str,
    payload: MatchUpdate,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity_optional),
):
    caller_id = _caller_id(identity, payload.creator_id)
    updates = payload.model_dump(exclude_unset=True, exclude={"creator_id"})

    match = matches.update_match(db, match_id, updates, caller_id)
    out = aggregation.match_with_participant_count(db, match)

    notify("MATCH_UPDATED", {"id": out.id, "title": out.title, "fields": sorted(updates)})
    return out


@router.delete("/{match_id}")
def delete_match(
    match_id: str,
    payload: MatchOwnerRequest | None = None,
    creatorId: str | None = None,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity_optional),
):
    body_id = payload.creator_id if payload is not None else None
    caller_id = _caller_id(identity, body_id or creatorId)

    matches.delete_match(db, match_id, caller_id)

    notify("MATCH_DELETED", {"id": match_id})
    return {"success": True}
