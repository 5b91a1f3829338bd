from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from core.config import get_settings
from core.logging import get_logger
from core.models import SourceLink
from .exceptions import GeminiError

log = get_logger(__name__)


@dataclass
class GeminiReply:
    text: str
    sources: List[SourceLink] = field(default_factory=list)


def extract_text(payload: Dict[str, Any]) -> str:
    """Testo del primo candidato (parti concatenate). Stringa vuota se assente."""
    candidates = payload.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))


def extract_sources(payload: Dict[str, Any]) -> List[SourceLink]:
    """Fonti dal groundingMetadata del primo candidato (se presente)."""
    candidates = payload.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return []
    chunks = (candidates[0].get("groundingMetadata") or {}).get("groundingChunks") or []
    sources: List[SourceLink] = []
    for chunk in chunks:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if not isinstance(web, dict) or not web.get("uri"):
            continue
        sources.append(SourceLink(title=web.get("title") or web["uri"], uri=web["uri"]))
    return sources


class GeminiClient:
    """
    Client REST minimale per generateContent (Google Generative Language API).
    Nessun retry: un errore viene sollevato come GeminiError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.gemini_api_key
        self.model = model or settings.gemini_model
        self._base_url = settings.gemini_base_url.rstrip("/")
        self._timeout = settings.gemini_timeout
        self._session = session or requests.Session()

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        if not self.is_configured():
            raise GeminiError("GEMINI_API_KEY non impostata")
        start = time.perf_counter()
        try:
            resp = self._session.request(
                method,
                url,
                params={"key": self.api_key},
                timeout=self._timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            elapsed = (time.perf_counter() - start) * 1000
            log.error("Errore rete Gemini dopo %.1fms: %s", elapsed, exc)
            raise GeminiError(f"Errore di rete: {exc}") from exc
        elapsed = (time.perf_counter() - start) * 1000
        if resp.status_code != 200:
            log.error(
                "Status %s Gemini (%.1fms) body=%s",
                resp.status_code,
                elapsed,
                resp.text[:300],
            )
            raise GeminiError(
                f"Gemini ha risposto {resp.status_code}: {resp.text[:300]}",
                status=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise GeminiError("Risposta Gemini non JSON", status=resp.status_code) from exc
        if not isinstance(data, dict):
            raise GeminiError("Risposta Gemini inattesa", status=resp.status_code)
        log.debug("OK Gemini %s %.1fms", url, elapsed)
        return data

    def generate(self, prompt: str, temperature: Optional[float] = None) -> GeminiReply:
        body: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if temperature is not None:
            body["generationConfig"] = {"temperature": temperature}
        url = f"{self._base_url}/models/{self.model}:generateContent"
        data = self._request("POST", url, json=body)
        return GeminiReply(text=extract_text(data), sources=extract_sources(data))

    def list_models(self) -> List[Dict[str, Any]]:
        data = self._request("GET", f"{self._base_url}/models")
        models = data.get("models") or []
        return [m for m in models if isinstance(m, dict)]


def get_gemini_client() -> GeminiClient:
    return GeminiClient()


__all__ = ["GeminiClient", "GeminiReply", "extract_text", "extract_sources", "get_gemini_client"]
