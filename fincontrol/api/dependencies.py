"""FastAPI dependencies for DI (settings, DB, identity, storage, agent).

This module provides dependency injection helpers so endpoints can be tested
with fakes through ``app.dependency_overrides``.
"""

from collections.abc import Iterator
from functools import lru_cache

from fastapi import Depends, Header

from fincontrol.agents.base import BaseAgent
from fincontrol.agents.extraction_agent import ExtractionAgent, build_llm_client
from fincontrol.core.db import LedgerRepository, get_db
from fincontrol.core.settings import Settings, get_settings
from fincontrol.services.file_service import FileService
from fincontrol.services.identity import IdentityProvider, bearer_token
from fincontrol.services.s3_file_service import S3FileService
from fincontrol.workers.extraction_runner import ExtractionRunner
from fincontrol.workers.import_runner import ImportRunner


def get_repository() -> Iterator[LedgerRepository]:
    """Provide a request-scoped LedgerRepository."""
    yield from get_db()


def get_identity_provider() -> IdentityProvider:
    """Provide the identity provider used to resolve bearer tokens."""
    return IdentityProvider(get_settings())


def get_current_user_id(
    authorization: str | None = Header(default=None),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> str:
    """Resolve the caller's user id from the Authorization header; never from the body."""
    return identity.resolve_user_id(bearer_token(authorization))


@lru_cache
def get_blob_store() -> S3FileService:
    """Build the S3 client and check the bucket once per process."""
    return S3FileService(get_settings())


def get_file_service(store: S3FileService = Depends(get_blob_store)) -> FileService:
    """Provide an S3-backed FileService."""
    return FileService(store, get_settings().upload_max_bytes)


def get_agent() -> BaseAgent:
    """Provide an ExtractionAgent instance for dependency injection."""
    settings = get_settings()
    return ExtractionAgent(build_llm_client(settings), settings)


def get_import_runner(
    repository: LedgerRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> ImportRunner:
    """Provide an ImportRunner bound to the request's repository."""
    return ImportRunner(repository, settings)


def get_extraction_runner(
    repository: LedgerRepository = Depends(get_repository),
    file_service: FileService = Depends(get_file_service),
    agent: BaseAgent = Depends(get_agent),
) -> ExtractionRunner:
    """Provide an ExtractionRunner bound to the request's collaborators."""
    return ExtractionRunner(repository, file_service, agent)
