"""Durable client-side storage interface."""

from collections.abc import Iterable, Mapping
from typing import Protocol


class ClientStorage(Protocol):
    """Key-value storage that survives application restarts."""

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""

    def set(self, key: str, value: str) -> None:
        """Store a single value."""

    def remove(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""

    def get_many(self, keys: Iterable[str]) -> dict[str, str]:
        """Return the present values among ``keys``, read as one unit."""

    def set_many(self, values: Mapping[str, str]) -> None:
        """Store several values as one unit."""

    def remove_many(self, keys: Iterable[str]) -> None:
        """Remove several keys as one unit."""
