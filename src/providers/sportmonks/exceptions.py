from __future__ import annotations


class SportmonksError(Exception):
    """Errore base per le chiamate verso Sportmonks."""


class RateLimitError(SportmonksError):
    """Sollevata quando viene superato il rate limit (HTTP 429) dopo tutti i tentativi."""


class TransientAPIError(SportmonksError):
    """Sollevata quando errori transitori (5xx / timeout / connessione) persistono oltre i tentativi massimi."""


class ApiResponseError(SportmonksError):
    """Risposta non valida o status non recuperabile (4xx, body non JSON)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
