"""Best completed total runtime, shared by all workers."""

from __future__ import annotations

import threading
from typing import Optional


class BestBound:
    """Monotonically decreasing minimum; unset until the first offer."""

    def __init__(self, value: Optional[float] = None) -> None:
        self._lock = threading.Lock()
        self._value = value

    def get(self) -> Optional[float]:
        with self._lock:
            return self._value

    def offer(self, runtime: float) -> bool:
        """Lower the bound to `runtime` if it is strictly better."""
        with self._lock:
            if self._value is not None and runtime >= self._value:
                return False
            self._value = runtime
            return True

    def __repr__(self) -> str:
        return f"BestBound({self.get()!r})"


__all__ = ["BestBound"]
