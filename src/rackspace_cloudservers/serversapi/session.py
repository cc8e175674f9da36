"""Session state and the authentication handshake.

The Cloud Servers API hands out an account specific management URL and a
session token in exchange for a username and API key. Both are kept in a
:class:`SessionState` owned by the client and are only ever written by the
:class:`Authenticator`.
"""

import httpx
import structlog

from .status import ResponseStatusTracker
from .types import Credentials

logger = structlog.get_logger(__name__)

DEFAULT_AUTH_URL = "https://auth.api.rackspacecloud.com/v1.0"

AUTH_SUCCESS_STATUS = 204

ENDPOINT_HEADER = "X-Server-Management-Url"
TOKEN_HEADER = "X-Auth-Token"


class AuthenticationFailed(Exception):
    """Raised when the authentication handshake does not succeed.

    Attributes:
        status: HTTP status of the handshake response, or None if the
            request never completed.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class SessionState:
    """Endpoint and token produced by a successful handshake.

    Either both values are set or neither is.
    """

    def __init__(self):
        self._endpoint: str | None = None
        self._token: str | None = None

    @property
    def endpoint(self) -> str | None:
        return self._endpoint

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._endpoint and self._token)

    def set(self, endpoint: str, token: str) -> None:
        """Store a new endpoint and token together.

        Raises:
            ValueError: If either value is empty.
        """
        if not endpoint or not token:
            msg = "endpoint and token must both be non-empty"
            raise ValueError(msg)
        self._endpoint, self._token = endpoint, token

    def clear(self) -> None:
        """Drop the session so the next call authenticates again."""
        self._endpoint, self._token = None, None


class Authenticator:
    """Performs the one-time handshake against the authentication service."""

    def __init__(
        self,
        credentials: Credentials,
        session: SessionState,
        tracker: ResponseStatusTracker,
        auth_url: str = DEFAULT_AUTH_URL,
    ):
        self._credentials = credentials
        self._session = session
        self._tracker = tracker
        self.auth_url = auth_url

    def authenticate(self, http: httpx.Client) -> None:
        """Run the handshake and populate the session on success.

        Sends a bodyless GET carrying the credentials in ``X-Auth-User`` and
        ``X-Auth-Key``. Only a 204 response with both the management URL and
        token headers counts as success. On failure the session is left
        empty, so calling this again retries the whole handshake.

        Args:
            http: Client whose response hook feeds the status tracker.

        Raises:
            AuthenticationFailed: If the handshake did not succeed.
        """
        self._tracker.reset()
        headers = {
            "X-Auth-User": self._credentials.username,
            "X-Auth-Key": self._credentials.api_key,
        }

        logger.debug("Authenticating", auth_url=self.auth_url)
        try:
            response = http.get(self.auth_url, headers=headers)
        except httpx.HTTPError as exc:
            # Headers may have arrived before the transfer broke off.
            self._tracker.reset()
            logger.error("Authentication request failed", error=str(exc))
            msg = f"Could not reach authentication service: {exc}"
            raise AuthenticationFailed(msg) from exc

        status = self._tracker.last_status
        if status != AUTH_SUCCESS_STATUS:
            logger.error("Authentication failed", status=status)
            msg = f"Authentication failed with status {status}"
            raise AuthenticationFailed(msg, status=status)

        endpoint = response.headers.get(ENDPOINT_HEADER, "").strip()
        token = response.headers.get(TOKEN_HEADER, "").strip()
        if not endpoint or not token:
            logger.error("Authentication response missing session headers")
            msg = (
                f"Authentication response lacks {ENDPOINT_HEADER} "
                f"or {TOKEN_HEADER} header"
            )
            raise AuthenticationFailed(msg, status=status)

        self._session.set(endpoint, token)
        logger.info("Authenticated", endpoint=endpoint)
