import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.api.chat.routes import router as chat_router
from app.config import settings
from app.core.exceptions import (
    ConfigurationError,
    InvalidProviderResponse,
    PersistenceError,
    ValidationError,
)
from app.core.logging_utils import configure_logging
from app.db.session import init_db

from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    if settings.AUTO_CREATE_TABLES:
        init_db()
    logger.info("Chat backend started (env=%s, test_mode=%s)", settings.ENV, settings.CHAT_TEST_MODE)
    yield

app = FastAPI(title="Chat Backend", lifespan=lifespan)

# Browser UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(chat_router, prefix="/chat", tags=["Chat"])


# ---------- Exception handlers ----------

ERROR_STATUS = {
    ValidationError: 400,
    PersistenceError: 500,
    InvalidProviderResponse: 502,
    ConfigurationError: 503,
}


def _register_error_handler(exc_class, status_code: int) -> None:
    @app.exception_handler(exc_class)
    async def handler(request: Request, exc):
        logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=status_code, content={"detail": exc.detail})


for _exc_class, _status_code in ERROR_STATUS.items():
    _register_error_handler(_exc_class, _status_code)


@app.get("/ping")
def ping():
    return {"message": "pong"}
