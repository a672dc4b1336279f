"""
Altas y bajas de jugadores en un partido.

Las comprobaciones de aforo y de duplicado son lecturas previas (camino
rápido para dar un error claro). La garantía real la dan la base de datos
y el orden de las escrituras:

- ``uq_match_user`` impide dos filas para el mismo ``(match_id, user_id)``;
  su violación se traduce a ``AlreadyJoinedError``.
- ``next_position`` se incrementa con un UPDATE atómico antes de insertar,
  lo que bloquea la fila del partido hasta el commit. Con la fila bloqueada
  se vuelve a contar y, si ya no cabe nadie, se aborta con ``MatchFullError``.

Las posiciones salen de ese contador: son únicas y crecientes por partido
y no se reutilizan tras una baja.
"""
import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AlreadyJoinedError, MatchFullError, NotFoundError, ValidationError
from app.models.match import Match
from app.models.participant import Participant
from app.services.utils import clean_text, parse_match_id, utc_now_naive

logger = logging.getLogger(__name__)


def count_participants(db: Session, match_id: str) -> int:
    return db.execute(
        select(func.count())
        .select_from(Participant)
        .where(Participant.match_id == match_id)
    ).scalar_one()


def has_joined(db: Session, match_id: str, user_id: str) -> bool:
    found = db.execute(
        select(Participant.id).where(
            Participant.match_id == match_id,
            Participant.user_id == user_id,
        )
    ).scalar_one_or_none()
    return found is not None


def list_participants(db: Session, match_id: str) -> list[Participant]:
    stmt = (
        select(Participant)
        .where(Participant.match_id == match_id)
        .order_by(Participant.position.asc())
    )
    return list(db.execute(stmt).scalars().all())


def _match_exists(db: Session, match_id: str) -> bool:
    found = db.execute(select(Match.id).where(Match.id == match_id)).scalar_one_or_none()
    return found is not None


def _claim_position(db: Session, match_id: str) -> int:
    result = db.execute(
        update(Match)
        .where(Match.id == match_id)
        .values(next_position=Match.next_position + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # el partido se borró entre la lectura y la escritura
        raise NotFoundError("Match not found")

    claimed = db.execute(select(Match.next_position).where(Match.id == match_id)).scalar_one()
    return claimed - 1


def enroll(db: Session, match_id: str, user_id: str, user_name: str | None) -> Participant:
    """Añade la fila sin hacer commit; el llamante cierra la transacción."""
    participant = Participant(
        match_id=match_id,
        user_id=user_id,
        user_name=clean_text(user_name),
        position=_claim_position(db, match_id),
        is_starter=True,
        joined_at=utc_now_naive(),
    )
    db.add(participant)
    db.flush()
    return participant


def join_match(db: Session, match_id: str, user_id: str | None, user_name: str | None) -> Participant:
    match_id = parse_match_id(match_id)
    user_id = (user_id or "").strip()
    if not user_id:
        raise ValidationError("Missing user_id")

    match = db.get(Match, match_id)
    if match is None:
        raise NotFoundError("Match not found")
    max_players = match.max_players

    if count_participants(db, match_id) >= max_players:
        raise MatchFullError()

    if has_joined(db, match_id, user_id):
        raise AlreadyJoinedError()

    try:
        position = _claim_position(db, match_id)
        # fila del partido bloqueada desde el UPDATE: este recuento ya es fiable
        if count_participants(db, match_id) >= max_players:
            db.rollback()
            raise MatchFullError()

        participant = Participant(
            match_id=match_id,
            user_id=user_id,
            user_name=clean_text(user_name),
            position=position,
            is_starter=True,
            joined_at=utc_now_naive(),
        )
        db.add(participant)
        db.commit()
    except NotFoundError:
        db.rollback()
        raise
    except IntegrityError:
        db.rollback()
        if has_joined(db, match_id, user_id):
            logger.info("Concurrent duplicate join for %s on match %s", user_id, match_id)
            raise AlreadyJoinedError() from None
        if not _match_exists(db, match_id):
            # FK rota: el partido desapareció antes del INSERT
            logger.info("Match %s deleted while %s was joining", match_id, user_id)
            raise NotFoundError("Match not found") from None
        raise

    db.refresh(participant)
    logger.info("User %s joined match %s at position %d", user_id, match_id, participant.position)
    return participant


def leave_match(db: Session, match_id: str, user_id: str | None) -> bool:
    """Borra la inscripción si existe. Devuelve si había algo que borrar."""
    match_id = parse_match_id(match_id)
    user_id = (user_id or "").strip()
    if not user_id:
        raise ValidationError("Missing user_id")

    result = db.execute(
        delete(Participant)
        .where(
            Participant.match_id == match_id,
            Participant.user_id == user_id,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()

    removed = result.rowcount > 0
    if removed:
        logger.info("User %s left match %s", user_id, match_id)
    return removed
