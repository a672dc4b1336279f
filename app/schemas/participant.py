import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict


class JoinRequest(BaseModel):
    user_id: Optional[str] = None
    user_name: Optional[str] = None


class LeaveRequest(BaseModel):
    user_id: Optional[str] = None


class ParticipantPublic(BaseModel):
    id: str
    match_id: str
    user_id: str
    user_name: str = ""
    position: int
    is_starter: bool = True
    joined_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)
