"""
Identity provider (development) for the session client.
Account and session API under /api/auth: login, register, rotating refresh, logout, password reset.
Port 5000.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from identity_provider import audit, login, password_reset
from identity_provider.config import API_PREFIX
from identity_provider.database import init_db, session_scope
from identity_provider.keys import get_signing_secret
from identity_provider.seed import seed_from_env

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Tables, signing secret and optional seed user must exist before the first request."""
    init_db()
    get_signing_secret()
    with session_scope() as db:
        seed_from_env(db)
    logger.info("Identity provider ready at %s", API_PREFIX)
    yield


app = FastAPI(title="Identity Provider", version="0.1.0", lifespan=lifespan)
app.include_router(login.router, prefix=API_PREFIX, tags=["session"])
app.include_router(password_reset.router, prefix=API_PREFIX, tags=["password-reset"])
app.include_router(audit.router)


@app.get("/health")
def health():
    return {"status": "ok", "service": "identity_provider"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("identity_provider.main:app", host="127.0.0.1", port=5000, reload=True)
