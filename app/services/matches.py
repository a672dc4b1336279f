"""
Registro de partidos: alta, lectura, edición y borrado.

Solo el creador puede editar o borrar. La comprobación de propiedad va
dentro del propio UPDATE/DELETE (``WHERE id = ? AND creator_id = ?``);
la lectura previa solo sirve para dar el error correcto.
"""
import logging
import re
import secrets
import string
from datetime import date

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFoundError, PastDateError, UnauthorizedError, ValidationError
from app.models.match import Match
from app.models.participant import Participant
from app.schemas.match import MatchCreate
from app.services import membership
from app.services.utils import clean_text, parse_match_id, today, utc_now_naive

logger = logging.getLogger(__name__)

SPORTS = ("football", "basketball", "tennis", "baseball", "volleyball", "other")

REQUIRED_FIELDS = ("title", "sport", "location", "date", "time")
MUTABLE_FIELDS = (
    "title",
    "sport",
    "location",
    "date",
    "time",
    "max_players",
    "captain_name",
    "price_per_person",
)

INVITE_CODE_ALPHABET = string.ascii_lowercase + string.digits
INVITE_CODE_LENGTH = 8

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_text(value, field: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"Invalid {field}, expected text")
    return value.strip()


def _as_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}, expected a whole number")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}, expected a whole number") from None


def _clean_fields(values: dict) -> dict:
    """Valida y normaliza los campos editables presentes en ``values``."""
    out = {}

    for field in ("title", "location"):
        if field in values:
            text = clean_text(_as_text(values[field], field))
            if not text:
                raise ValidationError(f"Missing required field: {field}")
            out[field] = text

    if "sport" in values:
        sport = _as_text(values["sport"], "sport").lower()
        if not sport:
            raise ValidationError("Missing required field: sport")
        if sport not in SPORTS:
            raise ValidationError(f"Unknown sport: {sport}")
        out["sport"] = sport

    if "date" in values:
        value = values["date"]
        if _is_blank(value):
            raise ValidationError("Missing required field: date")
        if isinstance(value, str):
            try:
                value = date.fromisoformat(value.strip())
            except ValueError:
                raise ValidationError("Invalid date, expected YYYY-MM-DD") from None
        if not isinstance(value, date):
            raise ValidationError("Invalid date, expected YYYY-MM-DD")
        if value < today():
            raise PastDateError("Cannot set match date in the past")
        out["date"] = value

    if "time" in values:
        value = _as_text(values["time"], "time")
        if not value:
            raise ValidationError("Missing required field: time")
        if not _TIME_RE.match(value):
            raise ValidationError("Invalid time, expected HH:MM")
        out["time"] = value

    if "max_players" in values:
        value = values["max_players"]
        if value is None or _as_int(value, "max_players") < 2:
            raise ValidationError("max_players must be at least 2")
        out["max_players"] = int(value)

    if "price_per_person" in values:
        value = values["price_per_person"]
        if value is None or _as_int(value, "price_per_person") < 0:
            raise ValidationError("price_per_person cannot be negative")
        out["price_per_person"] = int(value)

    if "captain_name" in values:
        out["captain_name"] = clean_text(_as_text(values["captain_name"], "captain_name"))

    return out


def create_match(db: Session, data: MatchCreate, creator_id: str | None, creator_name: str | None) -> Match:
    raw = data.model_dump(include=set(MUTABLE_FIELDS))
    for field in REQUIRED_FIELDS:
        if _is_blank(raw.get(field)):
            raise ValidationError(f"Missing required field: {field}")

    creator_id = (creator_id or "").strip()
    creator_name = clean_text(creator_name)
    if not creator_id:
        raise ValidationError("Missing required field: creator_id")
    if not creator_name:
        raise ValidationError("Missing required field: creator_name")

    if raw.get("max_players") is None:
        raw["max_players"] = settings.DEFAULT_MAX_PLAYERS
    if raw.get("price_per_person") is None:
        raw["price_per_person"] = 0
    if raw.get("captain_name") is None:
        raw["captain_name"] = ""

    values = _clean_fields(raw)
    captain_name = values["captain_name"] or creator_name

    attempts = settings.INVITE_CODE_ATTEMPTS
    for attempt in range(1, attempts + 1):
        now = utc_now_naive()
        match = Match(
            **values,
            creator_id=creator_id,
            creator_name=creator_name,
            invite_code=generate_invite_code(),
            next_position=0,
            created_at=now,
            updated_at=now,
        )
        db.add(match)
        try:
            db.flush()
        except IntegrityError:
            # único constraint posible aquí: invite_code repetido
            db.rollback()
            if attempt == attempts:
                raise
            logger.warning("Invite code collision (attempt %d/%d), retrying", attempt, attempts)
            continue
        break

    # partido + capitán en la misma transacción: nunca queda un partido sin su creador
    try:
        membership.enroll(db, match.id, creator_id, captain_name)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(match)
    logger.info("Match %s created by %s (invite %s)", match.id, creator_id, match.invite_code)
    return match


def get_match(db: Session, match_id: str) -> Match | None:
    return db.get(Match, parse_match_id(match_id))


def get_match_by_invite_code(db: Session, code: str | None) -> Match | None:
    code = (code or "").strip().lower()
    if not code:
        return None
    return db.execute(select(Match).where(Match.invite_code == code)).scalar_one_or_none()


def list_active_matches(db: Session) -> list[Match]:
    stmt = (
        select(Match)
        .where(Match.date >= today())
        .order_by(Match.date.asc(), Match.time.asc())
    )
    return list(db.execute(stmt).scalars().all())


def _load_owned(db: Session, match_id: str, caller_id: str | None, action: str) -> Match:
    match = db.get(Match, match_id)
    if match is None:
        raise NotFoundError("Match not found")
    if not caller_id or match.creator_id != caller_id:
        raise UnauthorizedError(f"Only the creator can {action} this match")
    return match


def _raise_for_rejected_write(db: Session, match_id: str, caller_id: str, action: str, max_players: int | None = None):
    # el UPDATE/DELETE condicional no tocó filas: averiguamos por qué
    match = _load_owned(db, match_id, caller_id, action)
    if max_players is not None:
        count = membership.count_participants(db, match.id)
        if max_players < count:
            raise ValidationError(f"Cannot set max players below current participant count ({count})")
    raise NotFoundError("Match not found")


def update_match(db: Session, match_id: str, updates: dict, caller_id: str | None) -> Match:
    match_id = parse_match_id(match_id)
    match = _load_owned(db, match_id, caller_id, "update")

    # solo campos permitidos; el resto se ignora
    values = _clean_fields({k: updates[k] for k in MUTABLE_FIELDS if k in updates})
    if not values:
        return match

    stmt = update(Match).where(Match.id == match_id, Match.creator_id == caller_id)

    new_max = values.get("max_players")
    if new_max is not None:
        count = membership.count_participants(db, match_id)
        if new_max < count:
            raise ValidationError(f"Cannot set max players below current participant count ({count})")
        live_count = (
            select(func.count(Participant.id))
            .where(Participant.match_id == match_id)
            .scalar_subquery()
        )
        stmt = stmt.where(live_count <= new_max)

    values["updated_at"] = utc_now_naive()
    result = db.execute(stmt.values(**values).execution_options(synchronize_session=False))
    if result.rowcount == 0:
        db.rollback()
        _raise_for_rejected_write(db, match_id, caller_id, "update", new_max)

    db.commit()
    db.refresh(match)
    logger.info("Match %s updated by %s: %s", match_id, caller_id, sorted(values))
    return match


def delete_match(db: Session, match_id: str, caller_id: str | None) -> None:
    match_id = parse_match_id(match_id)
    _load_owned(db, match_id, caller_id, "delete")

    try:
        db.execute(delete(Participant).where(Participant.match_id == match_id))
        result = db.execute(
            delete(Match).where(Match.id == match_id, Match.creator_id == caller_id)
        )
        if result.rowcount == 0:
            db.rollback()
            _raise_for_rejected_write(db, match_id, caller_id, "delete")
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("Match %s deleted by %s", match_id, caller_id)
