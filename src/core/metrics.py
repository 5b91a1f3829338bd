from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, generate_latest

from core.logging import get_logger

logger = get_logger("core.metrics")

# Registry dedicato: evita collisioni col registry globale nei test
_REGISTRY = CollectorRegistry()

PROVIDER_FAILURES_TOTAL = Counter(
    "match_insight_provider_failures_total",
    "Chiamate provider fallite e degradate a risultato vuoto",
    labelnames=("provider", "operation"),
    registry=_REGISTRY,
)
FIXTURES_LOADED_TOTAL = Counter(
    "match_insight_fixtures_loaded_total",
    "Fixtures normalizzate e caricate",
    registry=_REGISTRY,
)
ANALYSES_TOTAL = Counter(
    "match_insight_analyses_total",
    "Analisi richieste al provider narrativo",
    labelnames=("result",),
    registry=_REGISTRY,
)
LEDGER_SAVES_TOTAL = Counter(
    "match_insight_ledger_saves_total",
    "Salvataggi scommesse nel ledger di sessione",
    registry=_REGISTRY,
)


def record_provider_failure(provider: str, operation: str) -> None:
    PROVIDER_FAILURES_TOTAL.labels(provider=provider, operation=operation).inc()


def generate_prometheus_text() -> bytes:
    return generate_latest(_REGISTRY)


__all__ = [
    "PROVIDER_FAILURES_TOTAL",
    "FIXTURES_LOADED_TOTAL",
    "ANALYSES_TOTAL",
    "LEDGER_SAVES_TOTAL",
    "record_provider_failure",
    "generate_prometheus_text",
    "_REGISTRY",
]
