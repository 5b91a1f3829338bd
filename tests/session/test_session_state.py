import pytest

from core.models import AnalysisResult, BetRecord, Fixture, FixtureStatus, MatchStatistics, TeamStatistics
from ledger.ledger import BetLedger
from session.state import ALL_FILTER, MODE_LIVE, MODE_UPCOMING, TOP_FILTER, SessionState


def _fx(fid, league="Liga", status=FixtureStatus.SCHEDULED, **kw):
    return Fixture(fixture_id=fid, home_team=f"H{fid}", away_team=f"A{fid}", league=league, kickoff="20:00", status=status, **kw)


class FakeProvider:
    def __init__(self, upcoming=None, live=None, stats=None, configured=True):
        self.upcoming = upcoming or []
        self.live = live or []
        self.stats = stats
        self.configured = configured
        self.stats_calls = []

    def is_configured(self):
        return self.configured

    def get_fixtures(self, live=False, date=None):
        return list(self.live if live else self.upcoming)

    def get_match_statistics(self, fixture_id):
        self.stats_calls.append(fixture_id)
        return self.stats


def _result(fixture, is_live=False, stats=None):
    return AnalysisResult(
        fixture_id=fixture.fixture_id,
        summary="ok",
        home_win_prob=40,
        draw_prob=30,
        away_win_prob=30,
        prediction="1-0",
        best_bet="Over 1.5",
        confidence=6,
        current_score="-",
        is_live=is_live,
        stats=stats,
    )


class RecordingAnalyzer:
    def __init__(self):
        self.calls = []

    def __call__(self, fixture, is_live, stats):
        self.calls.append((fixture.fixture_id, is_live, stats))
        return _result(fixture, is_live, stats)


def _session(provider=None, analyzer=None, top_limit=None):
    provider = provider or FakeProvider(
        upcoming=[_fx("1", "Serie A"), _fx("2", "Bundesliga"), _fx("3", "Liga")],
        live=[_fx("9", "Eredivisie", FixtureStatus.LIVE, home_score=0, away_score=0, minute="10")],
    )
    return SessionState(provider, analyzer=analyzer or RecordingAnalyzer(), top_limit=top_limit, save_delay=0)


def test_modes_and_filters() -> None:
    s = _session()
    assert s.mode == MODE_UPCOMING
    assert s.league_filter == TOP_FILTER
    s.load_fixtures()
    assert s.leagues() == ["Bundesliga", "Liga", "Serie A"]
    assert [f.fixture_id for f in s.visible_fixtures()] == ["2", "1", "3"]
    assert [f.fixture_id for f in s.visible_fixtures("Serie A")] == ["1"]

    s.set_mode(MODE_LIVE)
    assert s.league_filter == ALL_FILTER
    assert [f.fixture_id for f in s.visible_fixtures()] == ["9"]
    with pytest.raises(ValueError):
        s.set_mode("tomorrow")


def test_top_limit() -> None:
    provider = FakeProvider(upcoming=[_fx(str(i)) for i in range(20)])
    s = _session(provider=provider, top_limit=15)
    s.load_fixtures()
    assert len(s.visible_fixtures()) == 15
    assert len(s.visible_fixtures(ALL_FILTER)) == 20


def test_select_and_analysis_with_stats() -> None:
    stats = MatchStatistics(home=TeamStatistics(corners=3), away=TeamStatistics())
    provider = FakeProvider(upcoming=[_fx("123")], stats=stats)
    analyzer = RecordingAnalyzer()
    s = _session(provider=provider, analyzer=analyzer)
    s.load_fixtures()
    assert s.select("nope") is None
    fixture = s.select("123")
    result = s.request_analysis(fixture)
    assert provider.stats_calls == ["123"]
    assert analyzer.calls == [("123", False, stats)]
    assert s.analysis is result


def test_non_numeric_id_skips_statistics() -> None:
    provider = FakeProvider(upcoming=[_fx("demo-1")])
    s = _session(provider=provider)
    s.load_fixtures()
    s.request_analysis(s.select("demo-1"))
    assert provider.stats_calls == []


def test_live_context_from_mode_or_status() -> None:
    s = _session()
    s.set_mode(MODE_LIVE)
    fixture = s.select("9")
    s.request_analysis(fixture)
    assert s.analyzer.calls[-1][1] is True
    assert s.is_live_context(_fx("x", status=FixtureStatus.LIVE, home_score=0, away_score=0)) is True


def test_stale_analysis_is_discarded() -> None:
    s = _session()
    s.load_fixtures()
    first = s.select("1")
    s.select("2")
    assert s.apply_analysis(_result(first)) is False
    assert s.analysis is None


def test_bet_flow_and_stats() -> None:
    s = _session()
    s.load_fixtures()
    fixture = s.get_fixture("1")
    rec = BetRecord.for_fixture(fixture, selection="Over 1.5", stake="10", odds="2.0", outcome="won")
    assert s.edit_bet(rec, suggested_selection="Over 1.5") is True
    assert s.ledger.get("1").home_team == "H1"
    # stesso contenuto: nessun nuovo salvataggio
    assert s.edit_bet(rec, suggested_selection="Over 1.5") is False
    stats = s.ledger_stats()
    assert stats.total_returned == pytest.approx(20)
    s.clear_bets()
    assert len(s.ledger) == 0


def test_injected_empty_ledger_is_kept() -> None:
    ledger = BetLedger()
    s = SessionState(FakeProvider(upcoming=[_fx("1")]), analyzer=RecordingAnalyzer(), ledger=ledger, save_delay=0)
    assert s.ledger is ledger
    s.load_fixtures()
    s.edit_bet(BetRecord.for_fixture(s.get_fixture("1"), stake="10"))
    assert len(ledger) == 1


def test_explicit_top_limit_is_kept() -> None:
    provider = FakeProvider(upcoming=[_fx(str(i)) for i in range(5)])
    s = _session(provider=provider, top_limit=0)
    s.load_fixtures()
    assert s.top_limit == 0
    assert s.visible_fixtures() == []


def test_switch_mode_does_not_fetch() -> None:
    s = _session()
    s.switch_mode(MODE_LIVE)
    assert s.fixtures == []
    assert s.league_filter == ALL_FILTER
    s.replace_fixtures(s.fetch_fixtures())
    assert [f.fixture_id for f in s.fixtures] == ["9"]
