from app.core.database import get_db  # noqa: F401
from app.core.auth import Identity, get_identity, get_identity_optional  # noqa: F401
