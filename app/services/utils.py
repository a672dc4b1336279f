import uuid
from datetime import date, datetime, timezone

from app.core.errors import InvalidIdError

MAX_TEXT_LENGTH = 500


def today() -> date:
    return date.today()


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def clean_text(value: str | None) -> str:
    """
    Limpia texto libre que viene del cliente:
    recorta espacios, quita < y > y corta a 500 caracteres.
    """
    if not value:
        return ""
    return value.strip().replace("<", "").replace(">", "")[:MAX_TEXT_LENGTH]


def parse_match_id(match_id: str) -> str:
    try:
        return str(uuid.UUID(str(match_id)))
    except ValueError:
        raise InvalidIdError("Invalid match ID") from None
