from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.config import settings
from app.core.security import create_access_token
from app.schemas.match import MatchCreate, MatchPublic
from app.services import aggregation, matches
from app.services.utils import today

router = APIRouter(prefix="/dev", tags=["dev"])

DEV_USER_ID = "dev-user"
DEV_USER_NAME = "Dev"


def _only_dev():
    # Activa DEV=true en backend/.env
    if getattr(settings, "DEV", False) is not True:
        raise HTTPException(status_code=404, detail="Not found")


@router.get("/token")
def dev_token(user_id: str = DEV_USER_ID, name: str = DEV_USER_NAME, _=Depends(_only_dev)):
    # token firmado para cualquier identidad, sin pasar por /auth
    return {"access_token": create_access_token(user_id, name=name), "token_type": "bearer"}


@router.post("/seed", response_model=list[MatchPublic])
def dev_seed(db: Session = Depends(get_db), _=Depends(_only_dev)):
    # Unos cuantos partidos de ejemplo a nombre del usuario DEV
    samples = [
        ("Fútbol 7 del jueves", "football", "Barcelona https://maps.google.com/?q=41.3874,2.1686", 1, "19:30", 14, 300),
        ("Basket 3x3", "basketball", "Madrid 40.4168,-3.7038", 2, "18:00", 6, 0),
        ("Dobles de tenis", "tennis", "London", 3, "10:00", 4, 1200),
    ]

    created = []
    for title, sport, location, days, time, max_players, price in samples:
        data = MatchCreate(
            title=title,
            sport=sport,
            location=location,
            date=today() + timedelta(days=days),
            time=time,
            max_players=max_players,
            price_per_person=price,
        )
        created.append(matches.create_match(db, data, DEV_USER_ID, DEV_USER_NAME))

    return aggregation.with_participant_counts(db, created)
