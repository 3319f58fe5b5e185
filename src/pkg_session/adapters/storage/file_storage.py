from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ...domain.ports import TokenStorage

logger = logging.getLogger(__name__)


class FileTokenStorage(TokenStorage):
    """
    Durable TokenStorage backed by a single JSON document.

    Layout:
        {
          "<key>": {"access_token": "...", "refresh_token": "..."},
          ...
        }

    - writes are atomic (temp file + os.replace) and owner-only (0600)
    - blocking file I/O runs in a worker thread
    - a corrupt document is logged and read as empty
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path).expanduser()
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------ #
    # Port implementation
    # ------------------------------------------------------------------ #

    async def load(self, key: str) -> Optional[Mapping[str, Any]]:
        async with self._lock:
            document = await asyncio.to_thread(self._read_document)
        record = document.get(key)
        return record if isinstance(record, dict) else None

    async def save(self, key: str, record: Mapping[str, Any]) -> None:
        async with self._lock:
            document = await asyncio.to_thread(self._read_document)
            document[key] = dict(record)
            await asyncio.to_thread(self._write_document, document)

    async def delete(self, key: str) -> None:
        async with self._lock:
            document = await asyncio.to_thread(self._read_document)
            if key not in document:
                return
            del document[key]
            await asyncio.to_thread(self._write_document, document)

    # ------------------------------------------------------------------ #
    # Internal helpers (run in a worker thread)
    # ------------------------------------------------------------------ #

    def _read_document(self) -> Dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}

        try:
            document = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt token file %s", self._path)
            return {}

        if not isinstance(document, dict):
            logger.warning("Ignoring token file %s: top level is not an object", self._path)
            return {}
        return document

    def _write_document(self, document: Mapping[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            dir=str(self._path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
