from __future__ import annotations

import time
from typing import Any, Dict, Optional

import requests

from core.config import get_settings
from core.logging import get_logger
from .exceptions import ApiResponseError, RateLimitError, TransientAPIError

log = get_logger(__name__)

_TRANSIENT_STATUSES = (500, 502, 503, 504)


class SportmonksHttpClient:
    """
    Client HTTP per Sportmonks Football v3 (requests).
    Token nell'header Authorization. Una sola richiesta per chiamata:
    un errore viene sollevato subito e gestito dal provider.

    Telemetria dell'ultima chiamata:
      - _last_latency_ms: durata (successo o errore)
      - _last_status: HTTP status ricevuto (None se nessuna risposta)
    """

    def __init__(self, api_token: Optional[str] = None) -> None:
        self._settings = get_settings()
        self._base_url = self._settings.sportmonks_base_url.rstrip("/")
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": api_token or self._settings.sportmonks_api_token or "",
                "Accept": "application/json",
            }
        )
        self._timeout = self._settings.sportmonks_timeout

        self._last_latency_ms: float = 0.0
        self._last_status: Optional[int] = None

    def api_get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        GET su {base_url}/{path}. Ritorna il JSON decodificato.
        Solleva RateLimitError (429), TransientAPIError (rete / 5xx),
        ApiResponseError (altri status, body non JSON).
        """
        url = f"{self._base_url}/{path.lstrip('/')}"
        log.info("sportmonks GET %s params=%s", path, params)

        started = time.perf_counter()
        self._last_status = None
        try:
            resp = self._session.get(url, params=params, timeout=self._timeout)
        except (requests.Timeout, requests.ConnectionError) as e:
            raise TransientAPIError(f"Errore di rete: {e}") from e
        finally:
            self._last_latency_ms = (time.perf_counter() - started) * 1000

        self._last_status = resp.status_code
        if resp.status_code == 429:
            raise RateLimitError("Rate limit raggiunto (429).")
        if resp.status_code in _TRANSIENT_STATUSES:
            raise TransientAPIError(f"Status {resp.status_code} dal provider.")
        if not 200 <= resp.status_code < 300:
            raise ApiResponseError(
                f"Richiesta Sportmonks fallita (status={resp.status_code}): {resp.text[:300]}",
                status=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise ApiResponseError(
                f"Risposta non valida (non JSON) status={resp.status_code}",
                status=resp.status_code,
            ) from e
        if not isinstance(data, dict):
            raise ApiResponseError("Risposta non valida (atteso oggetto JSON)", status=resp.status_code)
        return data

    def get_stats(self) -> Dict[str, Any]:
        """Telemetria ultima chiamata: latency_ms, last_status."""
        return {
            "latency_ms": round(self._last_latency_ms, 2),
            "last_status": self._last_status,
        }


def get_http_client() -> SportmonksHttpClient:
    """
    Nuova istanza ad ogni chiamata: i test che cambiano le variabili
    d'ambiente hanno effetto immediato.
    """
    return SportmonksHttpClient()


__all__ = ["SportmonksHttpClient", "get_http_client"]
