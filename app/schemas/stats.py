from pydantic import BaseModel


class StatsPublic(BaseModel):
    activeMatches: int
    onlinePlayers: int


class CityPublic(BaseModel):
    name: str
    lat: float
    lng: float
    country: str | None = None
