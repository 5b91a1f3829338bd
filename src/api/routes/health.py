from __future__ import annotations

from fastapi import APIRouter, Request

from core.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
async def health(request: Request):
    """
    Stato del servizio: credenziali provider presenti e dimensione della sessione.
    """
    settings = get_settings()
    session = request.app.state.session
    return {
        "status": "ok",
        "sportmonks_configured": settings.sportmonks_configured,
        "gemini_configured": settings.gemini_configured,
        "fixtures_loaded": len(session.fixtures),
        "bets_in_session": len(session.ledger),
    }
