from typing import Any, Dict, Optional


class MemoryCache:
    """Very small in-memory cache. Entries live for the life of the process."""

    def __init__(self):
        self._store: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._store.get(key)

    def set(self, key: str, value: Any) -> None:
        self._store[key] = value
