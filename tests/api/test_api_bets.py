import threading

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from core.models import AnalysisResult, Fixture
from ledger.ledger import BetLedger
from session.state import SessionState


class FakeProvider:
    def is_configured(self):
        return False

    def get_fixtures(self, live=False, date=None):
        return [
            Fixture(fixture_id="1", home_team="Inter", away_team="Milan", league="Serie A", kickoff="20:45"),
            Fixture(fixture_id="2", home_team="Ajax", away_team="PSV", league="Eredivisie", kickoff="18:30"),
        ]

    def get_match_statistics(self, fixture_id):
        return None


@pytest.fixture
def session():
    s = SessionState(FakeProvider(), analyzer=lambda f, live, stats: None, save_delay=0)
    s.load_fixtures()
    return s


@pytest.fixture
def client(session):
    with TestClient(create_app(session)) as c:
        yield c


def test_edit_and_history(client):
    r = client.put("/bets/1", json={"selection": "Over 1.5", "stake": "10", "odds": "2.0", "outcome": "won"})
    assert r.status_code == 200
    assert r.json() == {"fixture_id": "1", "scheduled": True, "pending": False}
    client.put("/bets/2", json={"selection": "Gol", "stake": "5", "odds": "3,0", "outcome": "lost"})

    r = client.get("/bets")
    items = r.json()["items"]
    assert [i["fixture_id"] for i in items] == ["2", "1"]
    assert items[1]["home_team"] == "Inter"
    assert items[1]["pnl"] == pytest.approx(10)
    assert items[0]["roi"] == -100

    r = client.get("/bets", params={"outcome": "WON", "search": "milan"})
    assert [i["fixture_id"] for i in r.json()["items"]] == ["1"]


def test_stats(client):
    client.put("/bets/1", json={"stake": "10", "odds": "2.0", "outcome": "won"})
    client.put("/bets/2", json={"stake": "5", "odds": "3.0", "outcome": "lost"})
    body = client.get("/bets/stats").json()
    assert body["total_staked"] == pytest.approx(15)
    assert body["total_returned"] == pytest.approx(20)
    assert body["net_profit"] == pytest.approx(5)
    assert body["roi"] == pytest.approx(33.33, abs=0.01)
    assert body["win_rate"] == pytest.approx(50)


def test_empty_form_not_saved(client, session):
    r = client.put("/bets/1", json={"selection": "Over 1.5", "suggested_selection": "Over 1.5"})
    assert r.json()["scheduled"] is False
    assert len(session.ledger) == 0


def test_invalid_outcome(client):
    assert client.put("/bets/1", json={"stake": "1", "outcome": "maybe"}).status_code == 400


def test_unknown_fixture_requires_team_names(client, session):
    assert client.put("/bets/77", json={"stake": "1"}).status_code == 404
    r = client.put("/bets/77", json={"stake": "1", "home_team": "Roma", "away_team": "Lazio"})
    assert r.status_code == 200
    assert session.ledger.get("77").away_team == "Lazio"


def test_flush_and_clear(client, session):
    client.put("/bets/1", json={"stake": "4"})
    assert client.post("/bets/flush").json() == {"flushed": False}
    assert client.delete("/bets").json() == {"count": 0}
    assert len(session.ledger) == 0


class ThreadRecordingLedger(BetLedger):
    def __init__(self):
        super().__init__()
        self.save_threads = []

    def save(self, record):
        self.save_threads.append(threading.current_thread().name)
        super().save(record)


def _analysis(fixture, is_live, stats):
    return AnalysisResult(
        fixture_id=fixture.fixture_id,
        summary="ok",
        home_win_prob=34,
        draw_prob=33,
        away_win_prob=33,
        prediction="1-1",
        best_bet="Gol",
        confidence=5,
        current_score="-",
        is_live=is_live,
    )


def _delayed_session(ledger):
    s = SessionState(FakeProvider(), analyzer=_analysis, ledger=ledger, save_delay=30)
    s.load_fixtures()
    return s


def test_pending_edit_flushed_on_the_event_loop():
    ledger = ThreadRecordingLedger()
    session = _delayed_session(ledger)
    with TestClient(create_app(session)) as c:
        r = c.put("/bets/1", json={"stake": "10", "odds": "2.0"})
        assert r.json()["pending"] is True
        assert len(ledger) == 0
        # cambio selezione: la modifica pendente viene scritta
        r = c.post("/fixtures/2/analysis")
        assert r.status_code == 200
        assert r.json()["best_bet"] == "Gol"
        assert ledger.get("1").stake == "10"
        assert session.saver.pending is None
    assert len(ledger.save_threads) == 1
    assert not ledger.save_threads[0].startswith("AnyIO worker thread")


def test_shutdown_flushes_pending_edit():
    ledger = ThreadRecordingLedger()
    session = _delayed_session(ledger)
    with TestClient(create_app(session)) as c:
        c.put("/bets/2", json={"selection": "Over 2.5", "stake": "5"})
        assert len(ledger) == 0
    assert ledger.get("2").selection == "Over 2.5"
    assert ledger.get("2").home_team == "Ajax"


def test_flush_route_writes_pending_edit():
    ledger = ThreadRecordingLedger()
    session = _delayed_session(ledger)
    with TestClient(create_app(session)) as c:
        c.put("/bets/1", json={"stake": "3"})
        assert c.post("/bets/flush").json() == {"flushed": True}
        assert ledger.get("1").stake == "3"
        assert c.post("/bets/flush").json() == {"flushed": False}
