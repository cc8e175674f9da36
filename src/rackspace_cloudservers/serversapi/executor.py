"""Core call path of the Cloud Servers API client.

Ensures the session is authenticated, builds and sends the request,
captures the response status and decodes the JSON body. Transport and
decoding failures are logged and turned into a ``None`` result.
"""

import json
import time
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from .session import DEFAULT_AUTH_URL, Authenticator, SessionState
from .status import ResponseStatusTracker
from .types import Credentials

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class ApiRequest:
    """A single call against the management endpoint.

    Without an explicit ``method`` the verb is POST when a body is given and
    GET otherwise.
    """

    path: str
    body: Any = None
    method: str | None = None

    @property
    def http_method(self) -> str:
        if self.method:
            return self.method.upper()
        return "POST" if self.body is not None else "GET"

    def url(self, endpoint: str) -> str:
        return f"{endpoint}{self.path}.json"

    def headers(self, token: str) -> dict[str, str]:
        headers = {"X-Auth-Token": token}
        if self.body is not None:
            headers["Content-Type"] = "application/json"
        return headers

    def content(self) -> bytes | None:
        if self.body is None:
            return None
        return json.dumps(self.body).encode()


class ApiCallExecutor:
    """Authenticates lazily and issues requests against the account endpoint.

    Owns the session state, the status tracker and the underlying
    httpx.Client. Intended for use from a single thread; the
    check-authenticate-call sequence is not atomic.
    Can be used as a context manager for automatic cleanup.
    """

    def __init__(
        self,
        credentials: Credentials,
        auth_url: str = DEFAULT_AUTH_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the executor.

        Args:
            credentials: Username and API key for the handshake.
            auth_url: URL of the authentication service.
            timeout: Request timeout in seconds (default: 10.0).
            transport: Optional httpx transport, mainly for tests.

        Raises:
            ValueError: If auth_url is empty or timeout is not positive.
        """
        if not auth_url:
            msg = "auth_url cannot be empty"
            raise ValueError(msg)
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)

        self._timeout = timeout
        self._transport = transport
        self._http: httpx.Client | None = None

        self.session = SessionState()
        self.tracker = ResponseStatusTracker()
        self.authenticator = Authenticator(
            credentials=credentials,
            session=self.session,
            tracker=self.tracker,
            auth_url=auth_url,
        )

    @property
    def http(self) -> httpx.Client:
        """Get or create the httpx client.

        The client carries a response hook that passes every status and
        header line to the tracker as soon as the headers arrive.
        """
        if self._http is None or self._http.is_closed:
            self._http = httpx.Client(
                headers={"Accept-Encoding": "gzip, deflate"},
                timeout=self._timeout,
                transport=self._transport,
                event_hooks={"response": [self._record_status]},
            )
        return self._http

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self):
        """Close the HTTP client if open."""
        if self._http is not None and not self._http.is_closed:
            self._http.close()

    def _record_status(self, response: httpx.Response) -> None:
        self.tracker.record_from_header_line(
            f"{response.http_version} {response.status_code} "
            f"{response.reason_phrase}"
        )
        for name, value in response.headers.items():
            self.tracker.record_from_header_line(f"{name}: {value}")

    def call(
        self,
        path: str,
        body: Any = None,
        method: str | None = None,
    ) -> Any | None:
        """Make a request against the management endpoint.

        Authenticates first if the session is empty. The status of the
        request is available from the tracker afterwards; it is None when
        the request failed at the transport level.

        Args:
            path: Path relative to the endpoint, without the ".json" suffix
                (e.g. "/servers/detail").
            body: Optional JSON-serializable request body.
            method: Optional HTTP verb overriding the body based default.

        Returns:
            The decoded JSON body, or None on transport or decode failure.

        Raises:
            AuthenticationFailed: If the session had to be established and
                the handshake failed.
        """
        if not self.session.is_authenticated:
            self.authenticator.authenticate(self.http)

        request = ApiRequest(path=path, body=body, method=method)
        url = request.url(self.session.endpoint)
        self.tracker.reset()
        start_time = time.time()

        try:
            logger.debug("Making API request", method=request.http_method, url=url)
            response = self.http.request(
                request.http_method,
                url,
                headers=request.headers(self.session.token),
                content=request.content(),
            )
        except httpx.HTTPError as exc:
            # Headers may have arrived before the transfer broke off.
            self.tracker.reset()
            duration = time.time() - start_time
            logger.warning(
                "API request failed",
                method=request.http_method,
                url=url,
                error=str(exc),
                duration_seconds=round(duration, 3),
            )
            return None

        duration = time.time() - start_time
        logger.debug(
            "API request completed",
            status=self.tracker.last_status,
            duration_seconds=round(duration, 3),
        )

        try:
            return response.json()
        except ValueError:
            logger.warning(
                "Could not decode API response",
                url=url,
                status=self.tracker.last_status,
            )
            return None
