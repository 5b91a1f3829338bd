from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool

from core.logging import get_logger
from ranking.scorer import score_fixture
from session.state import SessionState

router = APIRouter(prefix="/fixtures", tags=["fixtures"])
logger = get_logger("api.routes.fixtures")

# Lo stato di sessione si modifica solo sul loop; le chiamate provider
# bloccanti girano nel threadpool e non toccano la sessione.


def _session(request: Request) -> SessionState:
    return request.app.state.session


@router.get("", summary="Fixtures del giorno o live, filtrate per lega")
async def list_fixtures(
    request: Request,
    mode: str = Query("upcoming", pattern="^(upcoming|live)$"),
    league: Optional[str] = Query(None, description="TOP_OVER_15, ALL o nome lega"),
    refresh: bool = Query(False, description="Forza il ricaricamento dal provider"),
):
    session = _session(request)
    reload = refresh or not session.fixtures
    if mode != session.mode:
        session.switch_mode(mode)
        reload = True
    if reload:
        fixtures = await run_in_threadpool(session.fetch_fixtures)
        if session.mode == mode:
            session.replace_fixtures(fixtures)
        else:
            logger.info("Modalità cambiata durante il caricamento, fixtures %s scartate", mode)
    if league:
        session.league_filter = league

    items = []
    for f in session.visible_fixtures():
        row = f.to_dict()
        row["over_score"] = score_fixture(f)
        items.append(row)
    return {
        "mode": session.mode,
        "league_filter": session.league_filter,
        "total": len(session.fixtures),
        "count": len(items),
        "items": items,
    }


@router.get("/leagues", summary="Leghe presenti nelle fixtures caricate")
async def list_leagues(request: Request):
    leagues = _session(request).leagues()
    return {"count": len(leagues), "items": leagues}


@router.post("/{fixture_id}/analysis", summary="Seleziona la fixture e richiede l'analisi AI")
async def analyze(fixture_id: str, request: Request):
    session = _session(request)
    fixture = session.select(fixture_id)
    if fixture is None:
        raise HTTPException(status_code=404, detail="fixture not found")
    result = await run_in_threadpool(session.fetch_analysis, fixture)
    session.apply_analysis(result)
    payload = result.to_dict()
    payload["saved_bet"] = None
    saved = session.ledger.get(fixture_id)
    if saved is not None:
        payload["saved_bet"] = saved.to_dict()
    return payload
