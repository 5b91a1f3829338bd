from __future__ import annotations

import asyncio
from typing import Callable, Optional

from core.logging import get_logger
from core.models import BetRecord

logger = get_logger("ledger.debounce")


class DebouncedSaver:
    """
    Salvataggio differito con coalescenza: ogni schedule() annulla il task
    pendente e ne programma uno nuovo dopo `delay` secondi sul loop asyncio
    corrente (una modifica pendente su un'altra fixture viene prima scritta).
    flush() esegue subito l'eventuale salvataggio pendente e va
    chiamato esplicitamente prima del teardown, altrimenti la modifica è persa.
    Con delay <= 0 il salvataggio è immediato.
    """

    def __init__(self, save: Callable[[BetRecord], None], delay: float) -> None:
        self._save = save
        self._delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending: Optional[BetRecord] = None

    @property
    def pending(self) -> Optional[BetRecord]:
        return self._pending

    def schedule(self, record: BetRecord) -> None:
        # Una modifica pendente su un'altra fixture non va persa
        if self._pending is not None and self._pending.fixture_id != record.fixture_id:
            self.flush()
        else:
            self.cancel()
        if self._delay <= 0:
            self._save(record)
            return
        self._pending = record
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        record, self._pending = self._pending, None
        if record is not None:
            self._save(record)

    def flush(self) -> bool:
        """Esegue il salvataggio pendente. True se c'era qualcosa da salvare."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        record, self._pending = self._pending, None
        if record is None:
            return False
        logger.info("Flush salvataggio pendente", extra={"fixture_id": record.fixture_id})
        self._save(record)
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None


__all__ = ["DebouncedSaver"]
