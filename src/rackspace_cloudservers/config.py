"""Configuration and logging setup for the Cloud Servers client."""

import logging
import os
import pathlib
import sys

import pydantic
import structlog

from . import serversapi

CONFIG_ENV_VAR = "CLOUDSERVERS_CONFIG_PATH"
DEFAULT_CONFIG_PATH = "cloudservers.json"
logger = structlog.get_logger(__name__)


class ClientConfig(pydantic.BaseModel):
    """Configuration for a Cloud Servers client."""

    username: str = pydantic.Field(description="Account username", min_length=1)
    api_key: str = pydantic.Field(
        description="Account API key",
        min_length=1,
        repr=False,
    )
    auth_url: str = pydantic.Field(
        serversapi.DEFAULT_AUTH_URL,
        description="Authentication service URL",
    )
    timeout: float = pydantic.Field(
        serversapi.DEFAULT_TIMEOUT,
        description="Request timeout in seconds",
        gt=0,
    )
    log_level: str = pydantic.Field("INFO", description="Logging level")


def configure_logging(log_level_name: str) -> None:
    """Configure structlog for logfmt output on stderr.

    stdout is left to the application embedding the client.
    """
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "msg"),
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def load_config(config_path: str) -> ClientConfig:
    """Load and validate configuration from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the file is not well-formed JSON or
            does not describe a valid ClientConfig.
    """
    path = pathlib.Path(config_path).expanduser()
    if not path.is_file():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    try:
        return ClientConfig.model_validate_json(path.read_text())
    except pydantic.ValidationError as exc:
        logger.error(
            "Invalid configuration file",
            path=str(path),
            error_count=exc.error_count(),
        )
        raise


def create_client_from_config(
    config: ClientConfig,
) -> serversapi.CloudServersClient:
    """Construct a client from validated config."""
    client = serversapi.CloudServersClient(
        username=config.username,
        api_key=config.api_key,
        auth_url=config.auth_url,
        timeout=config.timeout,
    )
    logger.info("Created Cloud Servers client", auth_url=config.auth_url)
    return client


def create_client(config_path: str | None = None) -> serversapi.CloudServersClient:
    """Create a client using a config path or environment default."""
    resolved_path = config_path or os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)
    config = load_config(resolved_path)
    configure_logging(config.log_level)
    return create_client_from_config(config)
