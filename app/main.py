import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.database import Base, engine
from app.core.errors import DomainError
from app.models.match import Match  # noqa: F401
from app.models.participant import Participant  # noqa: F401

from app.api.routes.auth import router as auth_router
from app.api.routes.matches import router as matches_router
from app.api.routes.matches_mine import router as matches_mine_router
from app.api.routes.participants import router as participants_router
from app.api.routes.stats import router as stats_router

from app.web.dev import router as dev_router

# ✅ SSE
from app.realtime.sse import router as sse_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield


app = FastAPI(title="Pickup Matches API", version="0.1.0", lifespan=lifespan)

# ✅ CORS primero
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=False,
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # cuerpo mal formado = 400, igual que un campo obligatorio vacío
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors()), "code": "validation_error"},
    )


# ✅ Routers después
app.include_router(auth_router)

# ✅ IMPORTANTE: /matches/mine ANTES que /matches/{match_id}
app.include_router(matches_mine_router)
app.include_router(matches_router)
app.include_router(participants_router)
app.include_router(stats_router)

# ✅ SSE
app.include_router(sse_router)

app.include_router(dev_router)


@app.get("/")
def root():
    return {"status": "ok", "message": "Pickup Matches API funcionando 🚀"}


@app.get("/health")
def health():
    return {"ok": True}
