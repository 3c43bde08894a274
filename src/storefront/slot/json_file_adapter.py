"""Flat JSON file durable slot.

Each key is one ``<key>.json`` file in the storage directory. Writes go to a
temporary file first and are moved into place, so a reader never sees a
half-written bag. There is no change feed; readers in other processes rely on
polling.
"""

import os
import tempfile
from pathlib import Path

from storefront.slot.port import DurableSlot, SlotUnavailableError


class JsonFileSlot(DurableSlot):
    def __init__(self, directory: str | Path, key: str) -> None:
        self.directory = Path(directory)
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def read(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise SlotUnavailableError(f"Cannot read {self.path}: {exc}") from exc

    def write(self, raw: str) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{self.key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(raw)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise SlotUnavailableError(f"Cannot write {self.path}: {exc}") from exc

    def remove(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise SlotUnavailableError(f"Cannot remove {self.path}: {exc}") from exc
