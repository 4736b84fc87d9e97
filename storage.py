"""
Best-score persistence.

The engine only needs two calls from its host: load the best score once at
startup and save it whenever it goes up.
"""

import json
from pathlib import Path
from typing import Protocol

DEFAULT_KEY = "2048-best"


class BestScoreStore(Protocol):
    def load(self) -> int: ...

    def save(self, value: int) -> None: ...


class MemoryBestScoreStore:
    """Keeps the best score in memory. Records every save for inspection."""

    def __init__(self, initial: int = 0):
        self.value = max(0, initial)
        self.saved: list[int] = []

    def load(self) -> int:
        return self.value

    def save(self, value: int) -> None:
        self.value = value
        self.saved.append(value)


class JsonBestScoreStore:
    """
    Stores the best score under `key` in a JSON object file.

    Other keys in the file are preserved. A missing or unreadable file, or a
    value that is not a non-negative integer, loads as 0.
    """

    def __init__(self, path: str | Path, key: str = DEFAULT_KEY):
        self.path = Path(path)
        self.key = key

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as fp:
                data = json.load(fp)
        except (ValueError, OSError):  # bad JSON or bad encoding
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> int:
        value = self._read().get(self.key, 0)
        if not isinstance(value, int) or isinstance(value, bool):
            return 0
        return max(0, value)

    def save(self, value: int) -> None:
        data = self._read()
        data[self.key] = int(value)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as fp:
            json.dump(data, fp)

    def reset(self) -> None:
        self.save(0)
