import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from codepocket.api.router import api_router
from codepocket.config import settings
from codepocket.core.database import init_db
from codepocket.core.exceptions import get_error_message

# Writes on these paths are logged even when they succeed
AUDITED_PATH_PARTS = ("extension", "invitations", "admin")
QUIET_LOGGERS = ("httpx", "httpcore", "apscheduler", "uvicorn.access")


def setup_logging() -> None:
    """Line-per-record logging to stdout; DEBUG level when settings.debug is on."""
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    from codepocket.services.scheduler import scheduler

    setup_logging()
    logger.info(f"CodePocket API {settings.app_version} starting")
    if settings.debug:
        await init_db()
    scheduler.start()
    try:
        yield
    finally:
        scheduler.stop()
        logger.info("CodePocket API stopped")


app = FastAPI(
    title="CodePocket API",
    description="Code snippet manager with groups and an editor extension API",
    version=settings.app_version,
    lifespan=lifespan,
)

# X-Forwarded-For rewrites the peer address only when sent by a trusted proxy
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.trusted_proxies)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log error responses, and successful writes on audited paths."""
    response = await call_next(request)

    method, path = request.method, request.url.path
    if method == "OPTIONS" or path == "/health":
        return response

    audited = method != "GET" and any(part in path for part in AUDITED_PATH_PARTS)
    if response.status_code >= 400 or audited:
        logger.info(f"{method} {path} → {response.status_code}")
    return response


@app.exception_handler(IntegrityError)
async def integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    """Constraint violations that slipped past validation answer 409."""
    logger.warning(f"Integrity error: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": get_error_message(exc)},
    )


app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
