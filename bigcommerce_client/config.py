"""Client configuration.

Settings can be given directly or read from ``BIGCOMMERCE_*`` environment
variables with :meth:`ClientConfig.from_environ`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = ["ClientConfig", "DEFAULT_API_HOST", "ENV_PREFIX"]

DEFAULT_API_HOST = "api.bigcommerce.com"
ENV_PREFIX = "BIGCOMMERCE_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}", name)


def _parse_number(name: str, value: str, kind: type):
    try:
        return kind(value)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a {kind.__name__}, got {value!r}", name
        ) from None


@dataclass
class ClientConfig:
    """Everything needed to talk to one store."""

    store_hash: str
    access_token: str
    debug: bool = False
    api_host: str = DEFAULT_API_HOST
    timeout: float = 15
    max_retries: Optional[int] = 3
    backoff_factor: float = 0.5
    backoff_max: float = 10.0
    page_concurrency: int = 3
    delete_limit: int = 3

    def __post_init__(self) -> None:
        """Validate settings."""
        if not self.store_hash:
            raise ConfigurationError("store_hash must be non-empty", "store_hash")
        if not self.access_token:
            raise ConfigurationError(
                "access_token must be non-empty", "access_token"
            )
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive", "timeout")
        if self.max_retries is not None and self.max_retries < 0:
            raise ConfigurationError(
                "max_retries must be >= 0 or None", "max_retries"
            )
        if self.backoff_factor < 0:
            raise ConfigurationError(
                "backoff_factor must be >= 0", "backoff_factor"
            )
        if self.page_concurrency < 1:
            raise ConfigurationError(
                "page_concurrency must be >= 1", "page_concurrency"
            )
        if self.delete_limit < 1:
            raise ConfigurationError("delete_limit must be >= 1", "delete_limit")

    @property
    def base_url(self) -> str:
        return f"https://{self.api_host}/stores/{self.store_hash}/"

    @classmethod
    def from_environ(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides
    ) -> "ClientConfig":
        """Build a config from ``BIGCOMMERCE_*`` variables.

        ``BIGCOMMERCE_STORE_HASH`` and ``BIGCOMMERCE_ACCESS_TOKEN`` are
        required. Keyword ``overrides`` win over the environment.
        """
        env = os.environ if environ is None else environ

        def var(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name)

        settings: dict = {}
        for name, field_name in (
            ("STORE_HASH", "store_hash"),
            ("ACCESS_TOKEN", "access_token"),
        ):
            value = var(name)
            if not value and field_name not in overrides:
                raise ConfigurationError(
                    f"{ENV_PREFIX}{name} is not set", field_name
                )
            if value:
                settings[field_name] = value

        if (value := var("DEBUG")) is not None:
            settings["debug"] = _parse_bool(ENV_PREFIX + "DEBUG", value)
        if value := var("API_HOST"):
            settings["api_host"] = value
        if value := var("TIMEOUT"):
            settings["timeout"] = _parse_number(ENV_PREFIX + "TIMEOUT", value, float)
        if value := var("MAX_RETRIES"):
            if value.strip().lower() == "none":
                settings["max_retries"] = None
            else:
                settings["max_retries"] = _parse_number(
                    ENV_PREFIX + "MAX_RETRIES", value, int
                )

        settings.update(overrides)
        logger.debug("Loaded configuration for store %s", settings["store_hash"])
        return cls(**settings)
