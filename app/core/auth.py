from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from app.core.security import decode_access_token

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    user_id: str
    name: str = ""


def get_identity_optional(
    creds: HTTPAuthorizationCredentials | None = Depends(security),
) -> Optional[Identity]:
    # ✅ Sin token (o token inválido) → None: el cliente anónimo manda su user_id en el body
    if creds is None:
        return None

    try:
        payload = decode_access_token(creds.credentials)
    except JWTError:
        return None

    sub = payload.get("sub")
    if not sub:
        return None

    return Identity(user_id=str(sub), name=payload.get("name") or "")


def get_identity(identity: Optional[Identity] = Depends(get_identity_optional)) -> Identity:
    if identity is None:
        raise HTTPException(status_code=401, detail="Falta token Bearer válido")
    return identity
