from __future__ import annotations

from typing import Callable, List, Optional

from analysis.service import analyze_fixture
from core.config import get_settings
from core.logging import get_logger
from core.models import AnalysisResult, BetRecord, Fixture, FixtureStatus, MatchStatistics
from ledger.debounce import DebouncedSaver
from ledger.ledger import BetLedger, needs_save
from ledger.stats import LedgerStats, compute_stats
from providers.base import FixturesProviderBase
from ranking.scorer import select_top

logger = get_logger("session.state")

MODE_UPCOMING = "upcoming"
MODE_LIVE = "live"
MODES = (MODE_UPCOMING, MODE_LIVE)

TOP_FILTER = "TOP_OVER_15"
ALL_FILTER = "ALL"

Analyzer = Callable[[Fixture, bool, Optional[MatchStatistics]], AnalysisResult]


class SessionState:
    """
    Contenitore esplicito dello stato della dashboard: fixtures caricate,
    modalità, filtro lega, selezione corrente, analisi, ledger scommesse.
    Tutte le mutazioni passano dai metodi qui sotto.
    """

    def __init__(
        self,
        provider: FixturesProviderBase,
        analyzer: Optional[Analyzer] = None,
        ledger: Optional[BetLedger] = None,
        top_limit: Optional[int] = None,
        save_delay: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self.provider = provider
        self.analyzer: Analyzer = analyzer or analyze_fixture
        self.ledger = ledger if ledger is not None else BetLedger()
        self.top_limit = top_limit if top_limit is not None else settings.top_matches_limit
        delay = settings.bet_save_debounce_seconds if save_delay is None else save_delay
        self.saver = DebouncedSaver(self.ledger.save, delay)

        self.mode = MODE_UPCOMING
        self.league_filter = TOP_FILTER
        self.fixtures: List[Fixture] = []
        self.selected_id: Optional[str] = None
        self.analysis: Optional[AnalysisResult] = None

    # -------------------- Fixtures --------------------
    def switch_mode(self, mode: str) -> None:
        """Cambia modalità e filtro lega di default senza interrogare il provider."""
        if mode not in MODES:
            raise ValueError(f"Modalità non valida: {mode!r}")
        self.mode = mode
        self.league_filter = TOP_FILTER if mode == MODE_UPCOMING else ALL_FILTER

    def set_mode(self, mode: str) -> List[Fixture]:
        self.switch_mode(mode)
        return self.load_fixtures()

    def fetch_fixtures(self) -> List[Fixture]:
        # Solo I/O: nessuna mutazione dello stato
        return self.provider.get_fixtures(live=self.mode == MODE_LIVE)

    def replace_fixtures(self, fixtures: List[Fixture]) -> List[Fixture]:
        self.fixtures = list(fixtures)
        logger.info("Fixtures in sessione: %s (mode=%s)", len(self.fixtures), self.mode)
        return self.fixtures

    def load_fixtures(self) -> List[Fixture]:
        return self.replace_fixtures(self.fetch_fixtures())

    def leagues(self) -> List[str]:
        return sorted({f.league for f in self.fixtures})

    def visible_fixtures(self, league_filter: Optional[str] = None) -> List[Fixture]:
        flt = league_filter or self.league_filter
        if flt == ALL_FILTER:
            return list(self.fixtures)
        if flt == TOP_FILTER:
            return select_top(self.fixtures, self.top_limit)
        return [f for f in self.fixtures if f.league == flt]

    def get_fixture(self, fixture_id: str) -> Optional[Fixture]:
        for f in self.fixtures:
            if f.fixture_id == fixture_id:
                return f
        return None

    # -------------------- Selezione / analisi --------------------
    def select(self, fixture_id: str) -> Optional[Fixture]:
        """Cambia selezione: scrive eventuali modifiche pendenti e azzera l'analisi."""
        fixture = self.get_fixture(fixture_id)
        if fixture is None:
            return None
        self.saver.flush()
        self.selected_id = fixture_id
        self.analysis = None
        return fixture

    def is_live_context(self, fixture: Fixture) -> bool:
        return self.mode == MODE_LIVE or fixture.status == FixtureStatus.LIVE

    def fetch_analysis(self, fixture: Fixture) -> AnalysisResult:
        """
        Statistiche (se id provider numerico) + analisi AI, in sequenza.
        Solo I/O: il risultato va applicato con apply_analysis().
        """
        stats = None
        if fixture.fixture_id.isdigit() and self.provider.is_configured():
            stats = self.provider.get_match_statistics(fixture.fixture_id)
        return self.analyzer(fixture, self.is_live_context(fixture), stats)

    def request_analysis(self, fixture: Fixture) -> AnalysisResult:
        """Analisi applicata solo se la fixture è ancora selezionata."""
        result = self.fetch_analysis(fixture)
        self.apply_analysis(result)
        return result

    def apply_analysis(self, result: AnalysisResult) -> bool:
        if result.fixture_id != self.selected_id:
            logger.info("Analisi superata, scartata", extra={"fixture_id": result.fixture_id})
            return False
        self.analysis = result
        return True

    # -------------------- Scommesse --------------------
    def edit_bet(self, record: BetRecord, suggested_selection: Optional[str] = None) -> bool:
        """Programma il salvataggio differito se il form ha contenuto nuovo."""
        if not needs_save(record, self.ledger.get(record.fixture_id), suggested_selection):
            return False
        self.saver.schedule(record)
        return True

    def clear_bets(self) -> None:
        self.saver.cancel()
        self.ledger.clear()

    def ledger_stats(self) -> LedgerStats:
        return compute_stats(self.ledger.records())

    def close(self) -> None:
        self.saver.flush()


__all__ = [
    "SessionState",
    "MODES",
    "MODE_UPCOMING",
    "MODE_LIVE",
    "TOP_FILTER",
    "ALL_FILTER",
]
