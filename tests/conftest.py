import os

# Must be set before farmbot.config is imported anywhere.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from farmbot import models  # noqa: E402,F401
from farmbot.database import Base  # noqa: E402
from farmbot.schemas.conversation import ConversationState  # noqa: E402
from farmbot.services.extraction_parser import ExtractionResult  # noqa: E402
from farmbot.services.record_service import RecordRepository  # noqa: E402


@pytest.fixture
def session_factory():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def repository(session_factory):
    return RecordRepository(session_factory)


@pytest.fixture
def mock_repository():
    """Repository whose saves all succeed without a database."""
    return Mock(spec=RecordRepository)


@pytest.fixture
def make_extraction():
    def _make(reply="OK", **fields):
        return ExtractionResult(state=ConversationState(**fields), reply=reply)

    return _make


@pytest.fixture
def mock_env(monkeypatch):
    """Set test environment variables."""
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
    monkeypatch.setenv("WHATSAPP_TOKEN", "test-token")
    monkeypatch.setenv("WHATSAPP_PHONE_NUMBER_ID", "123456")
    monkeypatch.setenv("META_VERIFY_TOKEN", "verify-me")
