from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, HTTPException, Query, Request

from core.logging import get_logger
from core.models import BetOutcome, BetRecord
from ledger.stats import record_result
from session.state import SessionState

router = APIRouter(prefix="/bets", tags=["bets"])
logger = get_logger("api.routes.bets")


def _session(request: Request) -> SessionState:
    return request.app.state.session


@router.get("", summary="Storico scommesse di sessione")
async def list_bets(
    request: Request,
    outcome: str = Query("ALL", pattern="^(ALL|WON|LOST|PENDING)$"),
    search: str = Query("", description="Cerca squadra o selezione"),
):
    session = _session(request)
    items = []
    for rec in session.ledger.history(outcome, search):
        row = rec.to_dict()
        res = record_result(rec)
        row["potential_return"] = res.potential_return
        row["pnl"] = res.pnl
        row["roi"] = res.roi
        items.append(row)
    return {"count": len(items), "items": items}


@router.get("/stats", summary="Aggregati del ledger (profitto, ROI, win rate)")
async def bets_stats(request: Request):
    return _session(request).ledger_stats().to_dict()


@router.put("/{fixture_id}", summary="Modifica del form scommessa (salvataggio differito)")
async def edit_bet(
    fixture_id: str,
    request: Request,
    selection: str = Body("", embed=True),
    stake: str = Body("", embed=True),
    odds: str = Body("", embed=True),
    outcome: str = Body(BetOutcome.PENDING, embed=True),
    suggested_selection: Optional[str] = Body(None, embed=True),
    home_team: Optional[str] = Body(None, embed=True),
    away_team: Optional[str] = Body(None, embed=True),
):
    session = _session(request)
    if outcome not in BetOutcome.ALL:
        raise HTTPException(status_code=400, detail=f"invalid outcome: {outcome}")

    fixture = session.get_fixture(fixture_id)
    if fixture is not None:
        record = BetRecord.for_fixture(
            fixture, selection=selection, stake=stake, odds=odds, outcome=outcome
        )
    else:
        # Fixture non più in lista: servono i nomi squadra (copia al salvataggio)
        saved = session.ledger.get(fixture_id)
        home = home_team or (saved.home_team if saved else None)
        away = away_team or (saved.away_team if saved else None)
        if not home or not away:
            raise HTTPException(status_code=404, detail="fixture not found")
        record = BetRecord(
            fixture_id=fixture_id,
            home_team=home,
            away_team=away,
            home_logo=saved.home_logo if saved else None,
            away_logo=saved.away_logo if saved else None,
            selection=selection,
            stake=stake,
            odds=odds,
            outcome=outcome,
        )

    scheduled = session.edit_bet(record, suggested_selection)
    return {"fixture_id": fixture_id, "scheduled": scheduled, "pending": session.saver.pending is not None}


@router.post("/flush", summary="Scrive subito le modifiche in attesa")
async def flush_bets(request: Request):
    return {"flushed": _session(request).saver.flush()}


@router.delete("", summary="Svuota il ledger di sessione")
async def clear_bets(request: Request):
    session = _session(request)
    session.clear_bets()
    return {"count": len(session.ledger)}
