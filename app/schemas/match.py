import datetime as dt
from typing import Optional, List

from pydantic import BaseModel, ConfigDict

from .participant import ParticipantPublic


class MatchCreate(BaseModel):
    # opcionales a nivel de tipo: los obligatorios se validan en el servicio (400, no 422)
    title: Optional[str] = None
    sport: Optional[str] = None
    location: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[str] = None

    max_players: Optional[int] = None
    captain_name: Optional[str] = None
    price_per_person: Optional[int] = None

    creator_id: Optional[str] = None
    creator_name: Optional[str] = None


class MatchUpdate(BaseModel):
    title: Optional[str] = None
    sport: Optional[str] = None
    location: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[str] = None
    max_players: Optional[int] = None
    captain_name: Optional[str] = None
    price_per_person: Optional[int] = None

    creator_id: Optional[str] = None


class MatchOwnerRequest(BaseModel):
    creator_id: Optional[str] = None


class MatchPublic(BaseModel):
    id: str
    title: str
    sport: str
    location: str
    date: dt.date
    time: str
    max_players: int

    creator_id: str
    creator_name: str
    captain_name: str = ""
    price_per_person: int = 0
    invite_code: str

    created_at: dt.datetime
    updated_at: dt.datetime

    participant_count: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class MatchPublicWithParticipants(MatchPublic):
    participants: List[ParticipantPublic] = []
