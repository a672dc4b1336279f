from pydantic import BaseModel


class AnonymousIdentityRequest(BaseModel):
    name: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    user_name: str = ""


class IdentityPublic(BaseModel):
    user_id: str
    user_name: str = ""
