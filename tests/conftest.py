"""Shared fixtures simulating the authentication service and the API endpoint."""

import httpx
import pytest

from rackspace_cloudservers.serversapi import ApiCallExecutor, CloudServersClient, types


class StalledStream(httpx.SyncByteStream):
    """Response body whose transfer times out after the headers were sent."""

    def __iter__(self):
        raise httpx.ReadTimeout("timed out reading body")
        yield b""  # pragma: no cover


class FakeCloud:
    """httpx.MockTransport handler standing in for both services.

    Routes are keyed by (method, path) where path is relative to
    :attr:`endpoint` and excludes the ".json" suffix. Unknown routes
    answer 404.
    """

    auth_url = "https://auth.example.com/v1.0"
    endpoint = "https://servers.example.com/v1.0/12345"
    token = "token-abc"

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.auth_calls = 0
        self.auth_status = 204
        self.auth_headers = {
            "X-Server-Management-Url": f"  {self.endpoint} ",
            "X-Auth-Token": f" {self.token}\t",
        }
        self.auth_error: Exception | None = None
        self.auth_stalls = False
        self._routes: dict[tuple[str, str], tuple] = {}

    def url_for(self, path: str) -> str:
        return f"{self.endpoint}{path}.json"

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json=None,
        content: bytes | None = None,
        error: Exception | None = None,
        stalls: bool = False,
    ) -> None:
        """Register a response; ``stalls`` makes its body time out mid-transfer."""
        self._routes[(method, self.url_for(path))] = (status, json, content, error, stalls)

    @property
    def api_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) != self.auth_url]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == self.auth_url:
            self.auth_calls += 1
            if self.auth_error is not None:
                raise self.auth_error
            if self.auth_stalls:
                return httpx.Response(
                    self.auth_status,
                    headers=self.auth_headers,
                    stream=StalledStream(),
                )
            return httpx.Response(self.auth_status, headers=self.auth_headers)

        route = self._routes.get((request.method, str(request.url)))
        if route is None:
            return httpx.Response(404, json={"itemNotFound": {"code": 404}})
        status, json, content, error, stalls = route
        if error is not None:
            raise error
        if stalls:
            return httpx.Response(status, stream=StalledStream())
        if json is not None:
            return httpx.Response(status, json=json)
        return httpx.Response(status, content=content or b"")


@pytest.fixture
def fake_cloud() -> FakeCloud:
    return FakeCloud()


@pytest.fixture
def api_client(fake_cloud: FakeCloud) -> CloudServersClient:
    """Client wired to the fake services."""
    with CloudServersClient(
        username="someUser",
        api_key="secret-key",
        auth_url=fake_cloud.auth_url,
        transport=httpx.MockTransport(fake_cloud),
    ) as client:
        yield client


@pytest.fixture
def api_executor(fake_cloud: FakeCloud) -> ApiCallExecutor:
    """Executor wired to the fake services."""
    with ApiCallExecutor(
        credentials=types.Credentials(username="someUser", api_key="secret-key"),
        auth_url=fake_cloud.auth_url,
        transport=httpx.MockTransport(fake_cloud),
    ) as ex:
        yield ex
