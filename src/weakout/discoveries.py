"""Persist the best completed output found so far."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Dict, Optional


def maybe_update_best(data: Dict[str, object], record: Dict[str, object]) -> bool:
    """Replace `data` with `record` when its runtime is strictly smaller."""
    candidate = record.get("candidate")
    runtime = record.get("runtime")
    if candidate is None or runtime is None:
        raise ValueError("Record missing required fields candidate, runtime.")
    current = data.get("runtime")
    if current is not None and float(runtime) >= float(current):
        return False
    data.clear()
    data.update(record)
    return True


class DiscoveryFile:
    """Best-record JSON file shared by the workers of one run."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, object]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object with the best output in {self.path}.")
        return data

    def _write(self, data: Dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")

    def record(self, record: Dict[str, object]) -> bool:
        with self._lock:
            data = self._read()
            if not maybe_update_best(data, record):
                return False
            self._write(data)
            return True

    def best(self) -> Optional[Dict[str, object]]:
        with self._lock:
            data = self._read()
        return data or None


__all__ = ["DiscoveryFile", "maybe_update_best"]
