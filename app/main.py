# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.limiter import limiter
from app.core.logging import configure_logging
from app.middleware.error_handler import register_exception_handlers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(f"Multilingual portal service starting (env={settings.ENV})")
    yield
    logger.info("Multilingual portal service shutting down")


app = FastAPI(
    title="Multilingual Portal Service",
    version="1.0.0",
    description="""
        Multilingual content portal with event registration.

        ## Features

        * **Content**: Posts, events and the about page in en, es, de and fr,
          falling back to English when a translation is missing
        * **Registrations**: Free and paid event registrations
        * **Payments**: Stripe payment intents and webhook reconciliation
        * **Admin**: Content editing with machine translation

        ## Authentication

        Authenticated endpoints require a JWT issued by the identity provider
        via the `Authorization: Bearer <token>` header.
        """,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"status": "Multilingual portal service is running"}
