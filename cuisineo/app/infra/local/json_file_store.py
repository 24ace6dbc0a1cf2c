from __future__ import annotations

import json
import logging
import os
import re
import threading
from pathlib import Path
from typing import Optional

from cuisineo.app.domain.errors import LocalStoreError
from cuisineo.app.infra.local.base import LocalStore

logger = logging.getLogger(__name__)

_SAFE_NAME_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class JsonFileLocalStore(LocalStore):
    """
    One JSON object per browser, stored at `<root>/<browser_id>.json`.
    Writes go through a temp file and an atomic rename.
    """

    def __init__(self, root: Path, browser_id: str):
        if not _SAFE_NAME_RE.match(browser_id):
            raise LocalStoreError(browser_id, "Invalid browser id")
        self._path = Path(root) / f"{browser_id}.json"
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as error:
            logger.error("Unreadable local store %s: %s", self._path, error)
            return {}
        if not isinstance(data, dict):
            logger.error("Local store %s does not hold an object, ignoring it", self._path)
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def _write(self, items: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".json.tmp")
            tmp_path.write_text(json.dumps(items, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as error:
            raise LocalStoreError(self._path.stem, str(error)) from error

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            items = self._read()
            items[key] = value
            self._write(items)

    def remove_item(self, key: str) -> None:
        with self._lock:
            items = self._read()
            if key in items:
                del items[key]
                self._write(items)
