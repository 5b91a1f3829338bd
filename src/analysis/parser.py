from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple

BLOCK_START = "$$DATA_BLOCK$$"
BLOCK_END = "$$END_BLOCK$$"

BLOCK_PATTERN = re.compile(re.escape(BLOCK_START) + r"(.*?)" + re.escape(BLOCK_END), re.DOTALL)

# Chiavi ancorate a inizio riga dentro il blocco; vince il primo match
SCORE_PATTERN = re.compile(r"^[ \t]*SCORE:[ \t]*(.*)$", re.MULTILINE)
PREDICTION_PATTERN = re.compile(r"^[ \t]*PREDICTION:[ \t]*(.*)$", re.MULTILINE)
BEST_BET_PATTERN = re.compile(r"^[ \t]*BEST_BET:[ \t]*(.*)$", re.MULTILINE)
CONFIDENCE_PATTERN = re.compile(r"^[ \t]*CONFIDENCE:[ \t]*(\d+)", re.MULTILINE)
PROBS_PATTERN = re.compile(r"^[ \t]*PROBS:[ \t]*(\d+)[ \t]*\|[ \t]*(\d+)[ \t]*\|[ \t]*(\d+)", re.MULTILINE)


@dataclass
class ParsedAnalysis:
    score: str = "-"
    prediction: str = "N/A"
    best_bet: str = "N/A"
    confidence: int = 5
    home_prob: int = 33
    draw_prob: int = 34
    away_prob: int = 33


def parse_analysis_response(text: str) -> Tuple[str, ParsedAnalysis]:
    """
    Estrae il blocco dati dalla risposta AI.
    Ritorna (testo senza blocco, campi). Ogni campo mancante ricade sul proprio
    default; nessuna validazione di range.
    """
    parsed = ParsedAnalysis()
    match = BLOCK_PATTERN.search(text)
    if not match:
        return text.strip(), parsed

    block = match.group(1)

    m = SCORE_PATTERN.search(block)
    if m:
        parsed.score = m.group(1).strip()

    m = PREDICTION_PATTERN.search(block)
    if m:
        parsed.prediction = m.group(1).strip()

    m = BEST_BET_PATTERN.search(block)
    if m:
        parsed.best_bet = m.group(1).strip()

    m = CONFIDENCE_PATTERN.search(block)
    if m:
        parsed.confidence = int(m.group(1))

    m = PROBS_PATTERN.search(block)
    if m:
        parsed.home_prob = int(m.group(1))
        parsed.draw_prob = int(m.group(2))
        parsed.away_prob = int(m.group(3))

    clean = (text[: match.start()] + text[match.end():]).strip()
    return clean, parsed


__all__ = ["ParsedAnalysis", "parse_analysis_response", "BLOCK_START", "BLOCK_END"]
