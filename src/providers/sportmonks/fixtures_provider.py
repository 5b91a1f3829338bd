from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from core.config import get_settings
from core.logging import get_logger
from core.metrics import FIXTURES_LOADED_TOTAL, record_provider_failure
from core.models import Fixture, MatchStatistics
from core.normalization import is_european, normalize_fixture, normalize_statistics, sort_by_kickoff
from providers.base import FixturesProviderBase
from .exceptions import SportmonksError
from .http_client import SportmonksHttpClient, get_http_client

log = get_logger(__name__)

FIXTURE_INCLUDES = "participants;league.country;scores;state;periods;statistics.type"
STATISTICS_INCLUDES = "statistics.type;participants"
_PER_PAGE = 50
_MAX_PAGES = 10

# Errori di trasporto / status / payload: degradano a risultato vuoto
_FETCH_ERRORS = (SportmonksError, requests.RequestException, ValueError)
_SHAPE_ERRORS = (KeyError, TypeError, AttributeError, OverflowError)


def _today_utc() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


class SportmonksFixturesProvider(FixturesProviderBase):
    """
    Provider Sportmonks: lista fixtures del giorno o live e statistiche per fixture.
    Normalizza nel modello locale; nessuna forma provider esce da qui.
    """

    def __init__(self, client: Optional[SportmonksHttpClient] = None) -> None:
        self._settings = get_settings()
        self._client = client

    def is_configured(self) -> bool:
        return self._settings.sportmonks_configured

    def _http(self) -> SportmonksHttpClient:
        if self._client is None:
            self._client = get_http_client()
        return self._client

    def _fetch_pages(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        for page in range(1, _MAX_PAGES + 1):
            raw = self._http().api_get(path, params={**params, "page": page})
            data = raw.get("data")
            if data is None:
                break
            if not isinstance(data, list):
                raise ValueError("Formato inatteso: 'data' non è una lista")
            items.extend(d for d in data if isinstance(d, dict))
            pagination = raw.get("pagination") or {}
            if not pagination.get("has_more"):
                break
        return items

    def get_fixtures(self, live: bool = False, date: Optional[str] = None) -> List[Fixture]:
        if not self.is_configured():
            log.info("SPORTMONKS_API_TOKEN non impostato: nessuna fixture")
            return []

        path = "livescores" if live else f"fixtures/date/{date or _today_utc()}"
        params = {"include": FIXTURE_INCLUDES, "per_page": _PER_PAGE}
        try:
            items = self._fetch_pages(path, params)
            if not live and self._settings.sportmonks_europe_only:
                items = [i for i in items if is_european(i)]
            fixtures: List[Fixture] = []
            for item in items:
                if item.get("id") is None:
                    log.warning("Fixture senza id scartata")
                    continue
                fixtures.append(normalize_fixture(item, tz=self._settings.display_timezone))
        except _FETCH_ERRORS + _SHAPE_ERRORS as exc:
            log.error(
                "Errore fetch fixtures live=%s: %s",
                live,
                exc,
                extra={"fetch_stats": self.get_last_stats()},
            )
            record_provider_failure("sportmonks", "fixtures")
            return []

        FIXTURES_LOADED_TOTAL.inc(len(fixtures))
        log.info(
            "Caricate %s fixtures live=%s",
            len(fixtures),
            live,
            extra={"fetch_stats": self.get_last_stats()},
        )
        return sort_by_kickoff(fixtures)

    def get_match_statistics(self, fixture_id: str) -> Optional[MatchStatistics]:
        if not self.is_configured():
            return None
        try:
            raw = self._http().api_get(
                f"fixtures/{fixture_id}", params={"include": STATISTICS_INCLUDES}
            )
            stats = normalize_statistics(raw)
        except _FETCH_ERRORS + _SHAPE_ERRORS as exc:
            log.error(
                "Errore fetch statistiche: %s",
                exc,
                extra={"fixture_id": fixture_id, "fetch_stats": self.get_last_stats()},
            )
            record_provider_failure("sportmonks", "statistics")
            return None
        if stats is None:
            log.info("Statistiche non disponibili", extra={"fixture_id": fixture_id})
        return stats

    def get_last_stats(self) -> Dict[str, Any]:
        if self._client is None:
            return {}
        return self._client.get_stats()


__all__ = ["SportmonksFixturesProvider", "FIXTURE_INCLUDES", "STATISTICS_INCLUDES"]
