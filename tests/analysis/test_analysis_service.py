import requests

from analysis.prompt import build_prompt
from analysis.service import UNAVAILABLE_TEXT, analyze_fixture
from core.models import Fixture, FixtureStatus, MatchStatistics, SourceLink, TeamStatistics
from providers.gemini.client import GeminiReply
from providers.gemini.exceptions import GeminiError


def _live_fixture():
    return Fixture(
        fixture_id="100",
        home_team="Inter",
        away_team="Milan",
        league="Serie A",
        kickoff="20:45",
        status=FixtureStatus.LIVE,
        home_score=1,
        away_score=1,
        minute="60",
    )


class FakeGemini:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def generate(self, prompt, temperature=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def test_prompt_contains_live_score_and_xg() -> None:
    stats = MatchStatistics(
        home=TeamStatistics(possession=60, expected_goals=1.4),
        away=TeamStatistics(possession=40, expected_goals=0.3),
    )
    prompt = build_prompt(_live_fixture(), True, stats)
    assert "Inter vs Milan (Serie A)" in prompt
    assert "Punteggio attuale: 1-1 (Minuto: 60)" in prompt
    assert "xG (Expected Goals): Inter 1.4 - Milan 0.3" in prompt
    assert prompt.rstrip().endswith("$$END_BLOCK$$")


def test_prompt_prematch_without_stats() -> None:
    f = Fixture(fixture_id="1", home_team="A", away_team="B", league="L", kickoff="12:00")
    prompt = build_prompt(f, False)
    assert "PRE-PARTITA" in prompt
    assert "Punteggio attuale" not in prompt
    assert "DATI STATISTICI" not in prompt


def test_analysis_success() -> None:
    text = "Report.\n$$DATA_BLOCK$$\nSCORE: 2-1\nPREDICTION: 3-1\nBEST_BET: Gol\nCONFIDENCE: 7\nPROBS: 50|30|20\n$$END_BLOCK$$"
    client = FakeGemini(GeminiReply(text=text, sources=[SourceLink("S", "https://s.test")]))
    result = analyze_fixture(_live_fixture(), True, None, client=client)
    assert result.summary == "Report."
    assert result.current_score == "2-1"
    assert result.best_bet == "Gol"
    assert result.confidence == 7
    assert result.home_win_prob == 50
    assert result.is_live is True
    assert result.sources[0].uri == "https://s.test"


def test_score_falls_back_to_fixture() -> None:
    client = FakeGemini(GeminiReply(text="Nessun blocco"))
    result = analyze_fixture(_live_fixture(), True, client=client)
    assert result.current_score == "1-1"
    assert result.prediction == "N/A"


def test_empty_reply_uses_placeholder() -> None:
    client = FakeGemini(GeminiReply(text="   "))
    result = analyze_fixture(_live_fixture(), True, client=client)
    assert result.summary == UNAVAILABLE_TEXT


def test_provider_error_degrades_to_empty_analysis() -> None:
    stats = MatchStatistics(home=TeamStatistics(), away=TeamStatistics())
    for error in (GeminiError("boom", status=500), requests.Timeout("slow")):
        result = analyze_fixture(_live_fixture(), False, stats, client=FakeGemini(error=error))
        assert result.summary == UNAVAILABLE_TEXT
        assert result.confidence == 5
        assert (result.home_win_prob, result.draw_prob, result.away_win_prob) == (33, 34, 33)
        assert result.stats is stats
        assert result.sources == []
