"""Tracking of the HTTP status of the most recent request."""

import re

# Status line as sent by HTTP/1.0 and HTTP/1.1 servers.
STATUS_LINE_PATTERN = re.compile(r"^HTTP/1\.[01] (\d{3}) (.*)")

STATUS_MESSAGES = {
    200: "Successful informational response",
    202: "Successful action response",
    203: "Successful informational response from the cache",
    204: "Authentication successful",
    400: "Bad request (check the validity of input values)",
    401: "Unauthorized (check username and API key)",
    403: "Resize not allowed",
    404: "Item not found",
    409: "Build, backup or resize in process",
    413: "Over API limit (check limits())",
    415: "Bad media type",
    500: "Cloud server issue",
    503: "API service in unavailable, or capacity is not available",
}

UNKNOWN_STATUS_MESSAGE = "UNKNOWN - Probably a timeout on the connection"


class ResponseStatusTracker:
    """Keeps the status code of the last response seen.

    Fed one raw header line at a time. Only status lines change the
    recorded value; every other line is ignored. There is no history, the
    last status line wins.
    """

    def __init__(self):
        self._last_status: int | None = None

    @property
    def last_status(self) -> int | None:
        """Three digit status of the last response, or None if it never completed."""
        return self._last_status

    def record_from_header_line(self, line: str) -> None:
        """Record the status code if ``line`` is an HTTP/1.x status line.

        Args:
            line: A single raw header line, e.g. "HTTP/1.1 202 Accepted".
        """
        match = STATUS_LINE_PATTERN.match(line)
        if match:
            self._last_status = int(match.group(1))

    def reset(self) -> None:
        """Forget the recorded status before a new request is issued."""
        self._last_status = None

    def status_message(self) -> str:
        """Human readable description of the last status."""
        return STATUS_MESSAGES.get(self._last_status, UNKNOWN_STATUS_MESSAGE)
