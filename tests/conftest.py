"""Shared fixtures: in-memory database, fake identity, blob store and agent."""

import os

os.environ.setdefault("GROQ_API_KEY", "test-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from collections.abc import Iterator  # noqa: E402

import pytest  # noqa: E402

from fincontrol.agents.base import BaseAgent  # noqa: E402
from fincontrol.api.dependencies import get_agent, get_file_service, get_identity_provider  # noqa: E402
from fincontrol.core.db import Base, LedgerRepository, get_engine, get_session_factory  # noqa: E402
from fincontrol.core.errors import AIGatewayError, AuthenticationError  # noqa: E402
from fincontrol.services.file_service import FileService  # noqa: E402
from main import app  # noqa: E402

TOKENS = {"token-alice": "user-alice", "token-bob": "user-bob"}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class FakeIdentityProvider:
    def resolve_user_id(self, token: str) -> str:
        if token not in TOKENS:
            raise AuthenticationError
        return TOKENS[token]


class MemoryBlobStore:
    """Dict-backed stand-in for the S3 bucket."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}

    def upload_fileobj(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        _ = content_type
        self.objects[key] = data

    def download_fileobj(self, key: str) -> bytes:
        return self.objects[key]

    def delete_fileobj(self, key: str) -> None:
        self.objects.pop(key, None)


class FakeAgent(BaseAgent):
    """Returns a canned answer, or raises the configured gateway error."""

    def __init__(self, response: str = '{"transactions": []}', error_status: int | None = None) -> None:
        self.response = response
        self.error_status = error_status
        self.calls: list[tuple[str, str, str]] = []
        self.raise_error = error_status is not None

    def extract(self, content_b64: str, mime_type: str, kind: str) -> str:
        self.calls.append((content_b64, mime_type, kind))
        if self.raise_error:
            raise AIGatewayError(self.error_status, "upstream said no")
        return self.response


@pytest.fixture(autouse=True)
def database() -> Iterator[None]:
    """Fresh schema for every test."""
    engine = get_engine()
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def repository() -> Iterator[LedgerRepository]:
    session = get_session_factory()()
    yield LedgerRepository(session)
    session.close()


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def file_service(blob_store: MemoryBlobStore) -> FileService:
    return FileService(blob_store, MAX_UPLOAD_BYTES)


@pytest.fixture
def fake_agent() -> FakeAgent:
    return FakeAgent()


@pytest.fixture
def overrides(file_service: FileService, fake_agent: FakeAgent) -> Iterator[None]:
    """Route the app's identity, storage and AI dependencies to the fakes."""
    app.dependency_overrides[get_identity_provider] = FakeIdentityProvider
    app.dependency_overrides[get_file_service] = lambda: file_service
    app.dependency_overrides[get_agent] = lambda: fake_agent
    yield
    app.dependency_overrides.clear()
