"""Tests for identity resolution and document staging."""

import pytest
import requests

from fincontrol.core.errors import AuthenticationError, InvalidRequestError, PayloadTooLargeError
from fincontrol.core.settings import get_settings
from fincontrol.services.file_service import FileService, build_storage_key, classify_document
from fincontrol.services.identity import IdentityProvider, bearer_token


class FakeResponse:
    def __init__(self, status_code: int, body: object) -> None:
        self.status_code = status_code
        self.body = body

    def json(self) -> object:
        return self.body


class FakeSession:
    """Records the last GET and answers with a canned response or error."""

    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests: list[tuple[str, dict]] = []

    def get(self, url: str, headers: dict, timeout: float) -> FakeResponse:
        _ = timeout
        self.requests.append((url, headers))
        if self.error:
            raise self.error
        return self.response


def test_bearer_token() -> None:
    if bearer_token("Bearer abc.def") != "abc.def":
        msg = "Expected the token after the Bearer scheme"
        raise AssertionError(msg)
    for header in (None, "", "Bearer ", "Token abc"):
        with pytest.raises(AuthenticationError):
            bearer_token(header)


def test_identity_provider_resolves_user() -> None:
    """The user id comes from the auth server's user endpoint."""
    session = FakeSession(FakeResponse(200, {"id": "user-1", "email": "a@b.c"}))
    provider = IdentityProvider(get_settings(), session=session)
    if provider.resolve_user_id("tok") != "user-1":
        msg = "Expected user-1"
        raise AssertionError(msg)
    url, headers = session.requests[0]
    if not url.endswith("/auth/v1/user") or headers["Authorization"] != "Bearer tok":
        msg = f"Unexpected request: {url} {headers}"
        raise AssertionError(msg)


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(FakeResponse(401, {"msg": "invalid JWT"})),
        FakeSession(FakeResponse(200, {})),
        FakeSession(error=requests.ConnectionError("refused")),
    ],
)
def test_identity_provider_rejects(session: FakeSession) -> None:
    """Rejected tokens, missing ids and unreachable servers are all 401."""
    provider = IdentityProvider(get_settings(), session=session)
    with pytest.raises(AuthenticationError):
        provider.resolve_user_id("tok")


def test_classify_document() -> None:
    cases = {"image/png": "image", "image/webp": "image", "application/pdf": "document", "text/csv": None}
    for mime_type, expected in cases.items():
        if classify_document(mime_type) != expected:
            msg = f"classify_document({mime_type!r}) = {classify_document(mime_type)!r}, expected {expected!r}"
            raise AssertionError(msg)


def test_storage_key_starts_with_user_folder() -> None:
    key = build_storage_key("user-1", "profile-9", "Extrato Maio.PDF")
    parts = key.split("/")
    if parts[:2] != ["user-1", "profile-9"] or not parts[2].endswith(".pdf"):
        msg = f"Unexpected key: {key}"
        raise AssertionError(msg)


def test_check_upload_limits(file_service: FileService) -> None:
    """Only PDF/PNG/JPEG/WEBP with a matching extension, up to the size limit."""
    file_service.check_upload("extrato.pdf", "application/pdf", 1024)
    file_service.check_upload("foto.JPG", "image/jpeg", 1024)
    with pytest.raises(InvalidRequestError):
        file_service.check_upload("planilha.csv", "text/csv", 10)
    with pytest.raises(InvalidRequestError):
        file_service.check_upload("foto.png", "application/pdf", 10)
    with pytest.raises(PayloadTooLargeError):
        file_service.check_upload("grande.pdf", "application/pdf", 10 * 1024 * 1024 + 1)
