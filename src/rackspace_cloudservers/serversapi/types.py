"""Request-side types for the Cloud Servers API.

Pydantic models for the values the client sends. Responses are returned
as decoded JSON without further modelling.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Credentials(BaseModel):
    """Long-lived account credentials used for the authentication handshake."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(min_length=1)
    api_key: str = Field(min_length=1, repr=False)


class RebootType(str, Enum):
    """Reboot mode accepted by the server action endpoint."""

    SOFT = "SOFT"
    HARD = "HARD"


class BackupSchedule(BaseModel):
    """Backup schedule of a server.

    ``weekly`` is a day name (e.g. "THURSDAY") and ``daily`` a two hour
    window in GMT (e.g. "H_0400_0600"). Unset fields are left out of the
    request body.
    """

    enabled: bool = False
    weekly: str | None = None
    daily: str | None = None

    def as_body(self) -> dict:
        return {"backupSchedule": self.model_dump(exclude_none=True)}
