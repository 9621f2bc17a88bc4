"""FastAPI application wiring for the identity service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.routes import install_error_handlers, router
from .config import get_settings
from .domain.service import AuthService
from .domain.usernames import UsernameAllocator
from .logging_config import configure_logging
from .repository import AccountRepository
from .security.federation import IdentityProviderVerifier
from .security.passwords import CredentialHasher
from .security.tokens import SessionIssuer

settings = get_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, auth collaborators) for the app lifecycle."""
    pool = ConnectionPool(settings.database_url, open=False)
    pool.open()
    repository = AccountRepository(pool)
    if settings.auto_migrate:
        repository.ensure_schema()
    app.state.pool = pool
    app.state.auth_service = AuthService(
        repository,
        hasher=CredentialHasher(rounds=settings.bcrypt_rounds),
        verifier=IdentityProviderVerifier(settings.firebase_project_id),
        issuer=SessionIssuer(settings.jwt_secret, settings.jwt_issuer),
        allocator=UsernameAllocator(repository, suffix_length=settings.username_suffix_length),
    )
    logger.info("%s %s ready", settings.app_name, settings.version)
    try:
        yield
    finally:
        pool.close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


@app.get("/metrics")
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(router)
install_error_handlers(app)


def run() -> None:
    """Serve the application with uvicorn using the configured host and port."""
    import uvicorn

    uvicorn.run(app, host=settings.http_host, port=settings.http_port)
