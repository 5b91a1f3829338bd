from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from core.models import Fixture, MatchStatistics


class FixturesProviderBase(ABC):
    """
    Interfaccia astratta per un provider di fixtures e statistiche.

    Le implementazioni non sollevano mai eccezioni verso il chiamante:
    in caso di errore restituiscono lista vuota (fixtures) o None (statistiche).
    """

    @abstractmethod
    def is_configured(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_fixtures(self, live: bool = False, date: Optional[str] = None) -> List[Fixture]:
        """
        Parametri:
            live: se True interroga le partite in corso.
            date: (opzionale) data YYYY-MM-DD, default oggi (UTC).

        Ritorna:
            Lista di Fixture normalizzate, ordinate per orario di calcio d'inizio.
        """
        raise NotImplementedError

    @abstractmethod
    def get_match_statistics(self, fixture_id: str) -> Optional[MatchStatistics]:
        raise NotImplementedError
