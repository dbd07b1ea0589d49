from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import List, Optional

from .models import PatchContent

logger = logging.getLogger(__name__)


class PatchContentCache:
    """
    Small insertion-ordered cache of extracted patches.

    RU: Кэш последних извлечённых патчей. Владельцем кэша является вызывающая сторона
    (бот, CLI); при переполнении вытесняется самая старая вставка, но никогда
    только что добавленная.
    """

    def __init__(self, capacity: int = 5) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._items: "OrderedDict[str, PatchContent]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def put(self, content: PatchContent) -> None:
        with self._lock:
            if content.version in self._items:
                self._items.move_to_end(content.version)
            self._items[content.version] = content
            while len(self._items) > self.capacity:
                evicted, _ = self._items.popitem(last=False)
                logger.debug("Evicted patch %s from cache", evicted)

    def get(self, version: str) -> Optional[PatchContent]:
        with self._lock:
            return self._items.get(version)

    def latest(self) -> Optional[PatchContent]:
        """Последний добавленный патч."""
        with self._lock:
            if not self._items:
                return None
            return next(reversed(self._items.values()))

    def versions(self) -> List[str]:
        with self._lock:
            return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
