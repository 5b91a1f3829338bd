from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable

from core.models import BetOutcome, BetRecord

_AMOUNT_RE = re.compile(r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?)")


def parse_amount(value: Any) -> float:
    """
    Puntata/quota da stringa utente: prefisso numerico, virgola ammessa come
    separatore decimale, esponente ammesso ("1e2" -> 100).
    Valori non numerici o non finiti -> 0 (mai errore).
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        m = _AMOUNT_RE.match(str(value).replace(",", "."))
        if not m:
            return 0.0
        amount = float(m.group(1))
    return amount if math.isfinite(amount) else 0.0


@dataclass
class LedgerStats:
    total_staked: float = 0.0
    total_returned: float = 0.0
    net_profit: float = 0.0
    roi: float = 0.0
    win_rate: float = 0.0
    wins: int = 0
    losses: int = 0
    pending: int = 0
    void: int = 0
    total_bets: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RecordResult:
    stake: float
    odds: float
    potential_return: float
    pnl: float
    roi: float


def compute_stats(records: Iterable[BetRecord]) -> LedgerStats:
    """
    Aggregati sul ledger:
      - won: puntata in total_staked, puntata*quota in total_returned
      - lost: puntata in total_staked
      - pending/void: solo conteggio
    ROI = net_profit / total_staked * 100 (0 se nulla puntato),
    win_rate = wins / (wins + losses) * 100 (0 se nessuna chiusa).
    """
    stats = LedgerStats()
    for rec in records:
        stats.total_bets += 1
        stake = parse_amount(rec.stake)
        odds = parse_amount(rec.odds)
        if rec.outcome == BetOutcome.WON:
            stats.total_staked += stake
            stats.total_returned += stake * odds
            stats.wins += 1
        elif rec.outcome == BetOutcome.LOST:
            stats.total_staked += stake
            stats.losses += 1
        elif rec.outcome == BetOutcome.PENDING:
            stats.pending += 1
        else:
            stats.void += 1

    stats.net_profit = stats.total_returned - stats.total_staked
    if stats.total_staked > 0:
        stats.roi = stats.net_profit / stats.total_staked * 100
    settled = stats.wins + stats.losses
    if settled > 0:
        stats.win_rate = stats.wins / settled * 100
    return stats


def record_result(record: BetRecord) -> RecordResult:
    """Profitto/perdita e ROI di una singola scommessa (stesse regole won/lost)."""
    stake = parse_amount(record.stake)
    odds = parse_amount(record.odds)
    potential = stake * odds
    pnl = 0.0
    roi = 0.0
    if record.outcome == BetOutcome.WON:
        pnl = potential - stake
        roi = pnl / stake * 100 if stake > 0 else 0.0
    elif record.outcome == BetOutcome.LOST:
        pnl = -stake
        roi = -100.0
    return RecordResult(stake=stake, odds=odds, potential_return=potential, pnl=pnl, roi=roi)


__all__ = ["LedgerStats", "RecordResult", "compute_stats", "record_result", "parse_amount"]
