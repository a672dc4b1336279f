import re

from sqlalchemy.orm import Session

from app.schemas.match import MatchPublicWithParticipants
from app.services import aggregation, matches

INVITE_CODE_RE = re.compile(r"^[a-z0-9]{8}$")


def resolve_invite(db: Session, code: str | None) -> MatchPublicWithParticipants | None:
    code = (code or "").strip().lower()
    if not INVITE_CODE_RE.match(code):
        return None

    match = matches.get_match_by_invite_code(db, code)
    if match is None:
        return None
    return aggregation.match_view(db, match)
