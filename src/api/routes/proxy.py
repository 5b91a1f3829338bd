from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Body, Query
from fastapi.responses import JSONResponse

from core.config import get_settings
from core.logging import get_logger
from providers.gemini.client import extract_text

router = APIRouter(prefix="/proxy", tags=["proxy"])
logger = get_logger("api.routes.proxy")


def _error(status: int, /, error: str, details: Optional[str] = None, **extra: Any) -> JSONResponse:
    body: Dict[str, Any] = {"error": error, **extra}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status, content=body)


@router.get("/sportmonks", summary="Inoltra una GET a Sportmonks con il token del server")
def forward_sportmonks(
    endpoint: Optional[str] = Query(None),
    includes: Optional[str] = Query(None),
    filters: Optional[str] = Query(None),
):
    settings = get_settings()
    if not settings.sportmonks_api_token:
        logger.error("SPORTMONKS_API_TOKEN non configurato")
        return _error(500, "API token not configured")
    if not endpoint:
        return _error(400, "Missing endpoint parameter")

    params: Dict[str, str] = {"api_token": settings.sportmonks_api_token}
    if includes:
        params["include"] = includes
    if filters:
        params["filters"] = filters
    url = f"{settings.sportmonks_base_url.rstrip('/')}/{endpoint.lstrip('/')}"
    logger.info("proxy sportmonks endpoint=%s includes=%s", endpoint, includes or "none")

    try:
        resp = httpx.get(url, params=params, timeout=settings.sportmonks_timeout)
    except httpx.HTTPError as exc:
        logger.error("Errore rete proxy sportmonks: %s", exc)
        return _error(500, "Failed to fetch data from Sportmonks API", str(exc))

    if resp.status_code < 200 or resp.status_code >= 300:
        logger.error("Sportmonks ha risposto %s: %s", resp.status_code, resp.text[:300])
        return _error(resp.status_code, "Sportmonks API error", resp.text, status=resp.status_code)
    try:
        return JSONResponse(status_code=200, content=resp.json())
    except ValueError as exc:
        return _error(502, "Invalid JSON from Sportmonks API", str(exc))


@router.post("/gemini", summary="Inoltra un prompt a Gemini con la chiave del server")
def forward_gemini(prompt: Optional[str] = Body(None, embed=True)):
    settings = get_settings()
    if not settings.gemini_api_key:
        return _error(500, "API key not configured")
    if not prompt:
        return _error(400, "Missing prompt parameter")

    url = f"{settings.gemini_base_url.rstrip('/')}/models/{settings.gemini_model}:generateContent"
    try:
        resp = httpx.post(
            url,
            params={"key": settings.gemini_api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
            timeout=settings.gemini_timeout,
        )
    except httpx.HTTPError as exc:
        logger.error("Errore rete proxy gemini: %s", exc)
        return _error(500, "Failed to generate content from Gemini API", str(exc))

    if resp.status_code != 200:
        logger.error("Gemini ha risposto %s: %s", resp.status_code, resp.text[:300])
        return _error(500, "Failed to generate content from Gemini API", resp.text)
    try:
        data = resp.json()
    except ValueError as exc:
        return _error(500, "Failed to generate content from Gemini API", str(exc))
    text = extract_text(data) if isinstance(data, dict) else ""
    return {"text": text or "No response"}


@router.get("/gemini/models", summary="Elenco modelli disponibili per la chiave del server")
def list_gemini_models():
    settings = get_settings()
    if not settings.gemini_api_key:
        return _error(500, "API key not configured")
    try:
        resp = httpx.get(
            f"{settings.gemini_base_url.rstrip('/')}/models",
            params={"key": settings.gemini_api_key},
            timeout=settings.gemini_timeout,
        )
        return JSONResponse(status_code=resp.status_code, content=resp.json())
    except (httpx.HTTPError, ValueError) as exc:
        return _error(500, "Failed to list Gemini models", str(exc))
