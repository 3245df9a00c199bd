"""Data models for smart-me credentials and API payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypeAlias


__all__ = [
    "Credentials",
    "JSONValue",
]

# Decoded response bodies are passed through untouched, whatever their shape.
JSONValue: TypeAlias = dict[str, Any] | list[Any] | str | int | float | bool | None


@dataclass(frozen=True)
class Credentials:
    """Credentials read from the config store.

    Secrets are excluded from the repr so credentials can be logged safely.

    Attributes:
        api_key: smart-me API key, used as a Bearer token.
        username: smart-me account username for HTTP Basic auth.
        password: smart-me account password for HTTP Basic auth.
    """

    api_key: str = field(default="", repr=False)
    username: str = ""
    password: str = field(default="", repr=False)

    @property
    def is_complete(self) -> bool:
        """Return True if an API key or a full username/password pair is present."""
        return bool(self.api_key or (self.username and self.password))
