from __future__ import annotations

from typing import Optional

import requests

from core.logging import get_logger
from core.metrics import ANALYSES_TOTAL, record_provider_failure
from core.models import AnalysisResult, Fixture, MatchStatistics
from providers.gemini.client import GeminiClient, get_gemini_client
from providers.gemini.exceptions import GeminiError
from .parser import ParsedAnalysis, parse_analysis_response
from .prompt import build_prompt

logger = get_logger("analysis.service")

UNAVAILABLE_TEXT = "Analisi non disponibile al momento."


def _current_score(parsed_score: str, fixture: Fixture) -> str:
    if parsed_score != "-":
        return parsed_score
    return fixture.score_display or "-"


def _build_result(
    fixture: Fixture,
    summary: str,
    parsed: ParsedAnalysis,
    is_live: bool,
    stats: Optional[MatchStatistics],
    sources=None,
) -> AnalysisResult:
    return AnalysisResult(
        fixture_id=fixture.fixture_id,
        summary=summary,
        home_win_prob=parsed.home_prob,
        draw_prob=parsed.draw_prob,
        away_win_prob=parsed.away_prob,
        prediction=parsed.prediction,
        best_bet=parsed.best_bet,
        confidence=parsed.confidence,
        current_score=_current_score(parsed.score, fixture),
        sources=list(sources or []),
        is_live=is_live,
        stats=stats,
    )


def empty_analysis(
    fixture: Fixture, is_live: bool = False, stats: Optional[MatchStatistics] = None
) -> AnalysisResult:
    """Analisi di ripiego: testo placeholder e campi di default del parser."""
    return _build_result(fixture, UNAVAILABLE_TEXT, ParsedAnalysis(), is_live, stats)


def analyze_fixture(
    fixture: Fixture,
    is_live: bool = False,
    stats: Optional[MatchStatistics] = None,
    client: Optional[GeminiClient] = None,
) -> AnalysisResult:
    """
    Compone il prompt, interroga il provider narrativo ed estrae il blocco dati.
    Non solleva: qualsiasi errore del provider produce empty_analysis().
    """
    client = client or get_gemini_client()
    prompt = build_prompt(fixture, is_live, stats)
    try:
        reply = client.generate(prompt)
    except (GeminiError, requests.RequestException) as exc:
        logger.error("Analisi fallita: %s", exc, extra={"fixture_id": fixture.fixture_id})
        record_provider_failure("gemini", "analysis")
        ANALYSES_TOTAL.labels(result="fallback").inc()
        return empty_analysis(fixture, is_live, stats)

    text = reply.text if reply.text and reply.text.strip() else UNAVAILABLE_TEXT
    clean, parsed = parse_analysis_response(text)
    ANALYSES_TOTAL.labels(result="ok").inc()
    logger.info("Analisi completata", extra={"fixture_id": fixture.fixture_id})
    return _build_result(fixture, clean, parsed, is_live, stats, reply.sources)


__all__ = ["analyze_fixture", "empty_analysis", "UNAVAILABLE_TEXT"]
