"""One JSON file holding a list of records.

The document remembers a digest of the file as it was loaded, so a unit
of work can tell at commit time whether another process wrote the file in
the meantime. Writes go to a temporary file first and replace the target
in one step, so readers never see a half-written file.
"""

from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path

from ims.domain.exceptions import StoreUnavailableError, StoreWriteError


class JsonDocument:

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._digest: str | None = None
        self._loaded_text: str | None = None

    @property
    def file_path(self) -> Path:
        return self._file_path

    def load(self) -> list[dict]:
        self._ensure_file()
        text = self._read_text()
        try:
            records = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StoreUnavailableError(f"Corrupt data file {self._file_path}: {exc}") from exc
        if not isinstance(records, list):
            raise StoreUnavailableError(f"Data file {self._file_path} must hold a JSON list")
        self._loaded_text = text
        self._digest = _digest(text)
        return records

    def has_changed(self) -> bool:
        """True if the file differs from what ``load()`` read."""
        if not self._file_path.exists():
            return self._digest is not None
        return _digest(self._read_text()) != self._digest

    def is_modified(self, records: list[dict]) -> bool:
        """True if ``records`` differ from what ``load()`` read."""
        return _serialize(records) != self._loaded_text

    def write(self, records: list[dict]) -> None:
        text = _serialize(records)
        tmp_path = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
        try:
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, self._file_path)
        except OSError as exc:
            raise StoreWriteError(f"Could not write {self._file_path}: {exc}") from exc
        self._loaded_text = text
        self._digest = _digest(text)

    # --- File helpers ---------------------------------------------------------

    def _read_text(self) -> str:
        try:
            return self._file_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreUnavailableError(f"Could not read {self._file_path}: {exc}") from exc

    def _ensure_file(self) -> None:
        if self._file_path.exists():
            return
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(_serialize([]), encoding="utf-8")
        except OSError as exc:
            raise StoreUnavailableError(f"Could not create {self._file_path}: {exc}") from exc


def _serialize(records: list[dict]) -> str:
    return json.dumps(records, indent=2, ensure_ascii=False) + "\n"


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
