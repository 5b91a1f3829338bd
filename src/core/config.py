import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    v = value.strip().lower()
    if v in {"0", "false", "no"}:
        return False
    return True


@dataclass
class Settings:
    sportmonks_api_token: Optional[str]
    sportmonks_base_url: str
    sportmonks_timeout: float
    sportmonks_europe_only: bool

    gemini_api_key: Optional[str]
    gemini_model: str
    gemini_base_url: str
    gemini_timeout: float

    display_timezone: str
    top_matches_limit: int
    bet_save_debounce_seconds: float

    log_level: str

    @property
    def sportmonks_configured(self) -> bool:
        return bool(self.sportmonks_api_token)

    @property
    def gemini_configured(self) -> bool:
        return bool(self.gemini_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        def _int(name: str, default: int) -> int:
            raw = os.getenv(name)
            if not raw:
                return default
            try:
                return int(raw)
            except ValueError as e:
                raise ValueError(f"Variabile {name} deve essere un intero (valore: {raw!r})") from e

        def _float(name: str, default: float) -> float:
            raw = os.getenv(name)
            if not raw:
                return default
            try:
                return float(raw)
            except ValueError as e:
                raise ValueError(f"Variabile {name} deve essere un numero (valore: {raw!r})") from e

        # Token assente = provider "non configurato" (liste vuote), non errore
        token = os.getenv("SPORTMONKS_API_TOKEN") or None
        base_url = os.getenv("SPORTMONKS_BASE_URL", "https://api.sportmonks.com/v3/football")

        timeout = _float("SPORTMONKS_TIMEOUT", 15.0)
        europe_only = _parse_bool(os.getenv("SPORTMONKS_EUROPE_ONLY"), True)

        gemini_key = os.getenv("GEMINI_API_KEY") or None
        gemini_model = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        gemini_base_url = os.getenv(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        )
        gemini_timeout = _float("GEMINI_TIMEOUT", 60.0)

        display_timezone = os.getenv("DISPLAY_TIMEZONE", "Europe/Rome")
        top_limit = _int("TOP_MATCHES_LIMIT", 15)
        if top_limit < 1:
            top_limit = 15
        debounce = _float("BET_SAVE_DEBOUNCE_SECONDS", 0.8)
        debounce = max(0.0, debounce)

        log_level = os.getenv("MATCH_INSIGHT_LOG_LEVEL", "INFO").upper()

        return cls(
            sportmonks_api_token=token,
            sportmonks_base_url=base_url,
            sportmonks_timeout=timeout,
            sportmonks_europe_only=europe_only,
            gemini_api_key=gemini_key,
            gemini_model=gemini_model,
            gemini_base_url=gemini_base_url,
            gemini_timeout=gemini_timeout,
            display_timezone=display_timezone,
            top_matches_limit=top_limit,
            bet_save_debounce_seconds=debounce,
            log_level=log_level,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def _reset_settings_cache_for_tests() -> None:
    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "_reset_settings_cache_for_tests"]
