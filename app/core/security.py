from datetime import datetime, timedelta, timezone
from jose import jwt

from app.core.config import settings

def create_access_token(subject: str, name: str | None = None) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": subject, "exp": expire}
    if name:
        to_encode["name"] = name
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_access_token(token: str) -> dict:
    # lanza JWTError si la firma o la expiracion no son validas
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
