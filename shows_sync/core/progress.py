# shows_sync/core/progress.py
from __future__ import annotations

import logging
from typing import Optional, Protocol

log = logging.getLogger(__name__)


class ProgressSink(Protocol):
    def on_log(self, message: str) -> None: ...
    def on_start(self, total: int) -> None: ...
    def on_tick(self, current: int, total: int, label: str) -> None: ...
    def on_finish(self) -> None: ...


class NullProgressSink:
    def on_log(self, message: str) -> None:
        pass

    def on_start(self, total: int) -> None:
        pass

    def on_tick(self, current: int, total: int, label: str) -> None:
        pass

    def on_finish(self) -> None:
        pass


class LoggingProgressSink:
    """
    Sink du CLI : écrit la progression dans les logs.
    État interne : aucun total (inactif) -> total connu (actif) -> inactif.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or log
        self.total: Optional[int] = None

    @property
    def active(self) -> bool:
        return self.total is not None

    def on_log(self, message: str) -> None:
        self.log.info("%s", message)

    def on_start(self, total: int) -> None:
        if total > 0:
            self.total = total
            self.log.info("Importing shows: 0/%s", total)

    def on_tick(self, current: int, total: int, label: str) -> None:
        if not self.active:
            return
        self.log.info("Importing shows: %s/%s %s", current, total, label)

    def on_finish(self) -> None:
        if self.active:
            self.log.info("Importing shows: terminé (%s)", self.total)
            self.total = None
