from __future__ import annotations

import itertools
import threading

from .errors import StaleRequestError


class RequestSequencer:
    """Hands out increasing request tokens; only the latest one is current."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._current = 0

    def issue(self) -> int:
        with self._lock:
            self._current = next(self._counter)
            return self._current

    @property
    def current(self) -> int:
        with self._lock:
            return self._current

    def is_current(self, token: int) -> bool:
        return token == self.current

    def ensure_current(self, token: int) -> None:
        current = self.current
        if token != current:
            raise StaleRequestError(token, current)
