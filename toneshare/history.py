"""Bounded linear undo/redo log of chain snapshots."""

from __future__ import annotations

import logging

from toneshare.models import Chain

MAX_SNAPSHOTS = 50


logger = logging.getLogger(__name__)


class History:
    """Snapshot log plus a cursor.

    Invariants: ``0 <= cursor < len(log)`` and ``len(log) <= limit``.
    Undo and redo at a boundary are no-ops that return the current chain.
    """

    def __init__(self, initial: Chain, limit: int = MAX_SNAPSHOTS):
        if limit < 1:
            raise ValueError("history limit must be at least 1")
        self.limit = limit
        self._log: list[Chain] = [initial]
        self._cursor = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> Chain:
        return self._log[self._cursor]

    def __len__(self) -> int:
        return len(self._log)

    def snapshots(self) -> list[Chain]:
        return list(self._log)

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._log) - 1

    def commit(self, chain: Chain) -> Chain:
        """Append a snapshot, discarding any redoable states."""
        del self._log[self._cursor + 1:]
        self._log.append(chain)
        if len(self._log) > self.limit:
            self._log.pop(0)
        self._cursor = len(self._log) - 1
        logger.debug("[History] commit -> %d/%d", self._cursor + 1, len(self._log))
        return chain

    def undo(self) -> Chain:
        if self.can_undo():
            self._cursor -= 1
            logger.debug("[History] undo -> %d/%d", self._cursor + 1, len(self._log))
        return self.current

    def redo(self) -> Chain:
        if self.can_redo():
            self._cursor += 1
            logger.debug("[History] redo -> %d/%d", self._cursor + 1, len(self._log))
        return self.current
