"""State store — durable snapshot of the drop between process runs.

The document holds three sections:
- authority: phase, claims, public counts, supply, payout fields, root
- registry: item ownership (in-memory registry only)
- custody: held balance and its deposit/payout history

Writes go to a temporary file in the same directory and are moved over
the target with os.replace, so a crash mid-write leaves the previous
snapshot intact.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional


STATE_VERSION = 1


class StateStore:
    """JSON snapshot persistence for the drop service."""

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path

    @property
    def path(self) -> Path:
        return self._storage_path

    def exists(self) -> bool:
        return self._storage_path.exists()

    def save(
        self,
        authority: dict[str, Any],
        registry: dict[str, Any],
        custody: dict[str, Any],
    ) -> None:
        document = {
            "version": STATE_VERSION,
            "authority": authority,
            "registry": registry,
            "custody": custody,
        }
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._storage_path.parent, prefix=".state-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self._storage_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load(self) -> Optional[dict[str, Any]]:
        """Return the stored document, or None if nothing was saved yet."""
        if not self._storage_path.exists():
            return None
        with self._storage_path.open("r", encoding="utf-8") as handle:
            document = json.load(handle)
        version = document.get("version")
        if version != STATE_VERSION:
            raise ValueError(
                f"Unsupported state version {version!r} in {self._storage_path}"
            )
        return document
