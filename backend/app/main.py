from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.logging_setup import configure_logging
from app.routes.system import router as system_router
from app.routes.profiles import router as profiles_router
from app.routes.recommendations import router as recommendations_router
from app.routes.bounties import router as bounties_router
from app.routes.submissions import router as submissions_router
from app.routes.validation import router as validation_router
from app.routes.wallet import router as wallet_router
from app.routes.payouts import router as payouts_router
from app.routes.stripe_webhooks import router as stripe_router
from app.routes.analytics import router as analytics_router
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha)
    yield
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API for view-based creator bounties",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(profiles_router)
# /bounties/recommendations must be matched before /bounties/{bounty_id}
app.include_router(recommendations_router)
app.include_router(bounties_router)
app.include_router(submissions_router)
app.include_router(validation_router)
app.include_router(wallet_router)
app.include_router(payouts_router)
app.include_router(stripe_router)
app.include_router(analytics_router)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    response: Response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    structlog.contextvars.clear_contextvars()
    return response
