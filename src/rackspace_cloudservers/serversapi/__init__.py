"""Cloud Servers API client package.

Provides a synchronous HTTP client for the Rackspace Cloud Servers v1.0
API that authenticates lazily, tracks the status of every response and
returns decoded JSON values picked out of the API's response envelopes.

Exports:
    CloudServersClient: Resource operations over a single session.
    ApiCallExecutor: Authenticate-then-call core used by the client.
    AuthenticationFailed: Raised when the handshake does not succeed.
    types: Module containing Pydantic models for request values.
    DEFAULT_AUTH_URL: Default authentication service URL.
    DEFAULT_TIMEOUT: Default HTTP request timeout.
"""

from . import types
from .client import CloudServersClient
from .executor import DEFAULT_TIMEOUT, ApiCallExecutor
from .session import DEFAULT_AUTH_URL, AuthenticationFailed
from .types import BackupSchedule, RebootType

__all__ = [
    "DEFAULT_AUTH_URL",
    "DEFAULT_TIMEOUT",
    "ApiCallExecutor",
    "AuthenticationFailed",
    "BackupSchedule",
    "CloudServersClient",
    "RebootType",
    "types",
]
