"""
Hasher — peppered SHA-256 digests.

One function serves three columns: visitor IP → ``logs.uid``, canonical
payload → ``logs.data_hash`` and owner secret → ``projects.secret_key_hash``.
The inputs never overlap, so the digests are never compared across columns.
"""

import hashlib
import logging

from cyoa_stats.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Hasher:
    """Stateless digest service; build one per process and pass it around."""

    def __init__(self, pepper: str | None):
        self._pepper = pepper

    def ensure_configured(self) -> None:
        if not self._pepper:
            raise ConfigurationError("Pepper is not defined — set PEPPER in the environment")

    def digest(self, value: str) -> str:
        """Hex SHA-256 of ``value + pepper``."""
        if not isinstance(value, str):
            raise TypeError(f"Hash input must be a string, got {type(value).__name__}")
        self.ensure_configured()
        return hashlib.sha256((value + self._pepper).encode("utf-8")).hexdigest()

    async def hash(self, value: str) -> str:
        return self.digest(value)
