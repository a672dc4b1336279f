import uuid

from fastapi import APIRouter, Depends

from app.api.deps import Identity, get_identity
from app.core.security import create_access_token
from app.schemas.auth import AnonymousIdentityRequest, IdentityPublic, TokenResponse
from app.services.utils import clean_text


router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/anonymous", response_model=TokenResponse)
def anonymous(payload: AnonymousIdentityRequest):
    user_id = str(uuid.uuid4())
    name = clean_text(payload.name)

    token = create_access_token(user_id, name=name or None)
    return TokenResponse(access_token=token, user_id=user_id, user_name=name)

@router.get("/me", response_model=IdentityPublic)
def me(identity: Identity = Depends(get_identity)):
    return IdentityPublic(user_id=identity.user_id, user_name=identity.name)
