from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.stats import CityPublic, StatsPublic
from app.services import aggregation, geo

router = APIRouter(tags=["stats"])


@router.get("/stats", response_model=StatsPublic)
def get_stats(db: Session = Depends(get_db)):
    return StatsPublic(
        activeMatches=aggregation.count_active_matches(db),
        onlinePlayers=aggregation.count_participants_in_active_matches(db),
    )


@router.get("/cities", response_model=list[CityPublic])
def list_cities(q: str | None = None):
    return [CityPublic(name=c.name, lat=c.lat, lng=c.lng, country=c.country) for c in geo.search_cities(q)]
