from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ...domain.ports import TokenStorage


class MemoryTokenStorage(TokenStorage):
    """
    In-process TokenStorage.

    Nothing survives a restart; useful for tests and short-lived scripts.
    """

    def __init__(self, initial: Optional[Mapping[str, Mapping[str, Any]]] = None) -> None:
        self._records: Dict[str, Dict[str, Any]] = {
            key: dict(value) for key, value in (initial or {}).items()
        }

    async def load(self, key: str) -> Optional[Mapping[str, Any]]:
        record = self._records.get(key)
        return dict(record) if record is not None else None

    async def save(self, key: str, record: Mapping[str, Any]) -> None:
        self._records[key] = dict(record)

    async def delete(self, key: str) -> None:
        self._records.pop(key, None)
