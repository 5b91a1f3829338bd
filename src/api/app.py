from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.logging import get_logger
from providers.sportmonks.fixtures_provider import SportmonksFixturesProvider
from session.state import SessionState

from api.routes.health import router as health_router
from api.routes.fixtures import router as fixtures_router
from api.routes.bets import router as bets_router
from api.routes.metrics import router as metrics_router
from api.routes.proxy import router as proxy_router

logger = get_logger("api.app")


@asynccontextmanager
async def _lifespan(app: FastAPI):
    yield
    # Teardown: le modifiche scommessa ancora in attesa vanno scritte
    session: SessionState = app.state.session
    session.close()
    logger.info("Sessione chiusa, scommesse in memoria: %s", len(session.ledger))


def create_app(session: Optional[SessionState] = None) -> FastAPI:
    app = FastAPI(title="Match Insight API", version="0.1.0", lifespan=_lifespan)
    try:
        get_settings()
    except ValueError as exc:  # pragma: no cover
        logger.error("Impossibile caricare settings: %s", exc)

    app.state.session = session or SessionState(SportmonksFixturesProvider())

    # CORS statico per il frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["X-Requested-With", "Content-Type"],
    )

    app.include_router(health_router)
    app.include_router(fixtures_router)
    app.include_router(bets_router)
    app.include_router(metrics_router)
    app.include_router(proxy_router)
    return app


app = create_app()


# Avvio rapido: python -m api.app
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.app:app", host="0.0.0.0", port=8000, reload=False)
