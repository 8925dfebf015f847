"""Resolution of bearer credentials to a caller identity."""

import requests

from fincontrol.core.errors import AuthenticationError
from fincontrol.core.settings import Settings
from fincontrol.core.utils import get_logger

logger = get_logger("fincontrol.auth")


def bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise AuthenticationError
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError
    return token.strip()


class IdentityProvider:
    """Looks up the user behind an access token on the auth server's ``/auth/v1/user`` endpoint."""

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        """Initialize the provider with the auth server location and API key."""
        self.user_url = settings.auth_url.rstrip("/") + "/auth/v1/user"
        self.api_key = settings.auth_api_key
        self.timeout = settings.identity_timeout_seconds
        self.http = session or requests.Session()

    def resolve_user_id(self, token: str) -> str:
        """Return the user id for ``token`` or raise ``AuthenticationError``."""
        try:
            response = self.http.get(
                self.user_url,
                headers={"Authorization": f"Bearer {token}", "apikey": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.exception("Identity provider unreachable")
            raise AuthenticationError from exc
        if response.status_code != requests.codes.ok:
            logger.warning(f"Identity provider rejected token: HTTP {response.status_code}")
            raise AuthenticationError
        try:
            user_id = response.json().get("id")
        except ValueError as exc:
            raise AuthenticationError from exc
        if not user_id:
            raise AuthenticationError
        return str(user_id)
