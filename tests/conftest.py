import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from core.config import _reset_settings_cache_for_tests  # noqa: E402

# Variabili che un .env locale potrebbe esportare: i test partono sempre puliti
_ISOLATED_ENV = (
    "SPORTMONKS_API_TOKEN",
    "SPORTMONKS_BASE_URL",
    "SPORTMONKS_EUROPE_ONLY",
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "GEMINI_BASE_URL",
    "DISPLAY_TIMEZONE",
    "TOP_MATCHES_LIMIT",
    "BET_SAVE_DEBOUNCE_SECONDS",
)


@pytest.fixture(autouse=True)
def reset_settings_cache(monkeypatch):
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    _reset_settings_cache_for_tests()
    yield
    _reset_settings_cache_for_tests()
