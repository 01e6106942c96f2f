import os

from fastapi import FastAPI

from farmbot import models  # noqa: F401  registers the tables on Base
from farmbot.config import settings
from farmbot.database import Base, engine
from farmbot.logging_config import get_logger, setup_logging
from farmbot.routers import webhook

setup_logging(settings.log_level)

logger = get_logger("main")

app = FastAPI(
    title="Farmbot API",
    description="WhatsApp reporting assistant for a poultry farm",
    version="0.1.0",
    debug=settings.debug,
)

app.include_router(webhook.router)


def _should_create_tables() -> bool:
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return False
    return settings.auto_create_tables


@app.on_event("startup")
def create_tables() -> None:
    if not _should_create_tables():
        return
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")


@app.get("/health")
def health():
    return {"status": "ok"}
