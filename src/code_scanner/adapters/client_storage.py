"""Client storage backends."""

import json
import os
import tempfile
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from code_scanner.services.storage import ClientStorage


@dataclass
class InMemoryClientStorage(ClientStorage):
    """Storage that lives as long as the object."""

    values: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def get_many(self, keys: Iterable[str]) -> dict[str, str]:
        return {key: self.values[key] for key in keys if key in self.values}

    def remove(self, key: str) -> None:
        self.values.pop(key, None)

    def set_many(self, values: Mapping[str, str]) -> None:
        self.values.update(values)

    def remove_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.values.pop(key, None)


@dataclass
class JsonFileClientStorage(ClientStorage):
    """Storage persisted to a JSON file.

    Each write replaces the whole file with ``os.replace``, so readers see
    either the previous or the next set of values.
    """

    path: Path
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def get_many(self, keys: Iterable[str]) -> dict[str, str]:
        with self._lock:
            data = self._read()
        found: dict[str, str] = {}
        for key in keys:
            value = data.get(key)
            if isinstance(value, str):
                found[key] = value
        return found

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def remove(self, key: str) -> None:
        self.remove_many([key])

    def set_many(self, values: Mapping[str, str]) -> None:
        with self._lock:
            data = self._read()
            data.update(values)
            self._write(data)

    def remove_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            data = self._read()
            removed = [key for key in keys if data.pop(key, None) is not None]
            if removed:
                self._write(data)

    def _read(self) -> dict[str, object]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
