"""In-process LRU of assembled boards, invalidated per date by board actions."""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date
from typing import Hashable

from zoneboard.config import get_settings
from zoneboard.schemas.board import ZoneBoard

logger = logging.getLogger(__name__)


class BoardCache:
    """LRU cache of ZoneBoard views keyed by (date, *filters)."""

    def __init__(self, max_size: int | None = None):
        self._boards: OrderedDict[tuple[date, Hashable], ZoneBoard] = OrderedDict()
        self._max_size = max_size

    @property
    def max_size(self) -> int:
        if self._max_size is None:
            return get_settings().scheduling.board_cache_size
        return self._max_size

    def get(self, day: date, filters: Hashable) -> ZoneBoard | None:
        key = (day, filters)
        board = self._boards.get(key)
        if board is not None:
            self._boards.move_to_end(key)
        return board

    def put(self, day: date, filters: Hashable, board: ZoneBoard) -> None:
        self._boards[(day, filters)] = board
        self._boards.move_to_end((day, filters))
        while len(self._boards) > self.max_size:
            self._boards.popitem(last=False)

    def invalidate(self, *days: date | None) -> None:
        targets = {d for d in days if d is not None}
        stale = [key for key in self._boards if key[0] in targets]
        for key in stale:
            del self._boards[key]
        if stale:
            logger.debug("Invalidated %d cached board view(s) for %s", len(stale), sorted(targets))

    def clear(self) -> None:
        self._boards.clear()

    def __len__(self) -> int:
        return len(self._boards)


board_cache = BoardCache()
