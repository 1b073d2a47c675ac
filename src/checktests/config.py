"""Settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .errors import ConfigurationError

API_KEY_ENV = "TESTOMATIO"
URL_ENV = "TESTOMATIO_URL"
DEFAULT_URL = "https://app.testomat.io"
API_KEY_PREFIX = "tstmt_"


def validate_api_key(api_key: str | None) -> str:
    """
    Check an API key's shape.

    Raises:
        ConfigurationError: If the key is empty or lacks the ``tstmt_`` prefix.
    """
    if not api_key or not api_key.strip() or not api_key.startswith(API_KEY_PREFIX):
        raise ConfigurationError(
            f"API key cannot be empty and should start with '{API_KEY_PREFIX}'"
        )
    return api_key


@dataclass
class Settings:
    """Connection settings; CLI flags override environment values."""

    api_key: str | None = None
    url: str | None = None

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        api_key: str | None = None,
        url: str | None = None,
    ) -> Settings:
        """Build settings from explicit values, falling back to the environment."""
        env = os.environ if environ is None else environ
        return cls(
            api_key=api_key or env.get(API_KEY_ENV) or None,
            url=url or env.get(URL_ENV) or None,
        )

    @property
    def server_url(self) -> str:
        """Configured URL without a trailing slash, or the public default."""
        return (self.url or DEFAULT_URL).rstrip("/")

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @property
    def has_url(self) -> bool:
        return bool(self.url and self.url.strip())

    def require_api_key(self) -> str:
        """
        Raises:
            ConfigurationError: If no valid API key is configured.
        """
        return validate_api_key(self.api_key)
