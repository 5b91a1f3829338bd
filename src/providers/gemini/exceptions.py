from __future__ import annotations


class GeminiError(Exception):
    """Errore durante la generazione del testo (rete, status, payload)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
