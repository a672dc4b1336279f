from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import Identity, get_db, get_identity_optional
from app.core.errors import ValidationError
from app.schemas.match import MatchPublic
from app.services import aggregation

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get("/mine", response_model=list[MatchPublic])
def get_my_matches(
    userId: str | None = None,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity_optional),
):
    """
    ✅ Próximos partidos a los que el usuario SE HA APUNTADO (creados o no).
    """
    user_id = identity.user_id if identity is not None else userId
    if not user_id:
        raise ValidationError("Missing userId query parameter")

    return aggregation.list_joined_active_matches(db, user_id, limit=limit)
