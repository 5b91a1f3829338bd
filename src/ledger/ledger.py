from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from core.logging import get_logger
from core.metrics import LEDGER_SAVES_TOTAL
from core.models import BetOutcome, BetRecord

logger = get_logger("ledger.ledger")

HISTORY_FILTERS = ("ALL", "WON", "LOST", "PENDING")


class BetLedger:
    """
    Registro in memoria delle scommesse di sessione, una per fixture.
    save() sostituisce interamente il record esistente con la stessa chiave.
    """

    def __init__(self) -> None:
        self._records: Dict[str, BetRecord] = {}

    def save(self, record: BetRecord) -> None:
        self._records[record.fixture_id] = record
        LEDGER_SAVES_TOTAL.inc()
        logger.debug("Scommessa salvata", extra={"fixture_id": record.fixture_id})

    def get(self, fixture_id: str) -> Optional[BetRecord]:
        return self._records.get(fixture_id)

    def clear(self) -> None:
        self._records.clear()

    def records(self) -> List[BetRecord]:
        # Ordine di primo inserimento (una sovrascrittura mantiene la posizione)
        return list(self._records.values())

    def history(self, outcome: Optional[str] = None, search: str = "") -> List[BetRecord]:
        """
        Storico filtrato per esito (ALL/WON/LOST/PENDING) e ricerca testuale
        su squadre e selezione. Più recenti prima.
        """
        status = (outcome or "ALL").upper()
        term = search.strip().lower()
        out: List[BetRecord] = []
        for rec in self._records.values():
            if status != "ALL" and rec.outcome.upper() != status:
                continue
            if term and not (
                term in rec.home_team.lower()
                or term in rec.away_team.lower()
                or term in rec.selection.lower()
            ):
                continue
            out.append(rec)
        out.reverse()
        return out

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, fixture_id: object) -> bool:
        return fixture_id in self._records

    def __iter__(self) -> Iterator[BetRecord]:
        return iter(self.records())


def needs_save(
    record: BetRecord,
    saved: Optional[BetRecord],
    suggested_selection: Optional[str] = None,
) -> bool:
    """
    True se il form contiene dati (puntata, quota o una selezione diversa da
    quella suggerita) e differisce dal record già salvato.
    """
    has_content = (
        record.stake.strip() != ""
        or record.odds.strip() != ""
        or (record.selection.strip() != "" and record.selection != suggested_selection)
    )
    if not has_content:
        return False
    if saved is None:
        return True
    return (
        saved.stake != record.stake
        or saved.odds != record.odds
        or saved.selection != record.selection
        or saved.outcome != record.outcome
    )


__all__ = ["BetLedger", "needs_save", "HISTORY_FILTERS", "BetOutcome"]
