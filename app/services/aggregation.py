"""
Vistas de lectura: recuentos y listados con número de jugadores.

Los contadores globales no se guardan; se recalculan en cada lectura a
partir de las tablas de partidos y participantes.
"""
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.match import Match
from app.models.participant import Participant
from app.schemas.match import MatchPublic, MatchPublicWithParticipants
from app.schemas.participant import ParticipantPublic
from app.services import membership
from app.services.utils import today


def count_active_matches(db: Session) -> int:
    return db.execute(
        select(func.count()).select_from(Match).where(Match.date >= today())
    ).scalar_one()


def count_participants_in_active_matches(db: Session) -> int:
    return db.execute(
        select(func.count(Participant.id))
        .join(Match, Match.id == Participant.match_id)
        .where(Match.date >= today())
    ).scalar_one()


def _participant_counts(db: Session, match_ids: list[str]) -> dict[str, int]:
    if not match_ids:
        return {}
    rows = db.execute(
        select(Participant.match_id, func.count(Participant.id))
        .where(Participant.match_id.in_(match_ids))
        .group_by(Participant.match_id)
    ).all()
    return {match_id: count for match_id, count in rows}


def match_with_participant_count(db: Session, match: Match) -> MatchPublic:
    return with_participant_counts(db, [match])[0]


def with_participant_counts(db: Session, matches: list[Match]) -> list[MatchPublic]:
    # un solo GROUP BY para todo el conjunto, no una consulta por partido
    counts = _participant_counts(db, [m.id for m in matches])
    out = []
    for m in matches:
        item = MatchPublic.model_validate(m)
        item.participant_count = counts.get(m.id, 0)
        out.append(item)
    return out


def list_active_matches_with_counts(db: Session, sport: str | None = None) -> list[MatchPublic]:
    stmt = (
        select(Match, func.count(Participant.id))
        .outerjoin(Participant, Participant.match_id == Match.id)
        .where(Match.date >= today())
        .group_by(Match.id)
        .order_by(Match.date.asc(), Match.time.asc())
    )
    if sport:
        stmt = stmt.where(Match.sport == sport.strip().lower())

    out = []
    for match, count in db.execute(stmt).all():
        item = MatchPublic.model_validate(match)
        item.participant_count = count
        out.append(item)
    return out


def list_joined_active_matches(db: Session, user_id: str, limit: int = 10) -> list[MatchPublic]:
    """Próximos partidos a los que el usuario se ha apuntado."""
    stmt = (
        select(Match)
        .join(Participant, Participant.match_id == Match.id)
        .where(Participant.user_id == user_id)
        .where(Match.date >= today())
        .order_by(Match.date.asc(), Match.time.asc())
        .limit(limit)
    )
    matches = list(db.execute(stmt).scalars().all())
    return with_participant_counts(db, matches)


def match_view(db: Session, match: Match) -> MatchPublicWithParticipants:
    participants = membership.list_participants(db, match.id)
    view = MatchPublicWithParticipants.model_validate(match)
    view.participants = [ParticipantPublic.model_validate(p) for p in participants]
    view.participant_count = len(participants)
    return view
