"""Observer-side read cache invalidated by change signals."""

import threading
from collections.abc import Callable, Iterable
from typing import Any

from dispatch.changefeed import get_change_bus
from dispatch.changefeed.port import ChangeBus, ChangeSignal

_MISSING = object()


class CachedQuery:
    """Memoize ``loader()`` until a signal arrives for one of ``tables``.

    Duplicate or coalesced signals only cause an extra (or a skipped
    redundant) reload.
    """

    def __init__(self, loader: Callable[[], Any], tables: Iterable[str], bus: ChangeBus | None = None) -> None:
        self._loader = loader
        self._bus = bus or get_change_bus()
        self._lock = threading.Lock()
        self._value = _MISSING
        self.loads = 0
        self._subscription = self._bus.subscribe(tables, self._invalidate)

    def _invalidate(self, signal: ChangeSignal) -> None:
        with self._lock:
            self._value = _MISSING

    @property
    def is_stale(self) -> bool:
        return self._value is _MISSING

    def get(self) -> Any:
        with self._lock:
            if self._value is _MISSING:
                self._value = self._loader()
                self.loads += 1
            return self._value

    def close(self) -> None:
        self._bus.unsubscribe(self._subscription)
