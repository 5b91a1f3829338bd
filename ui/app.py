from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List

import altair as alt
import pandas as pd
import streamlit as st
from dotenv import find_dotenv, load_dotenv

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from core.models import AnalysisResult, BetOutcome, BetRecord, Fixture, FixtureStatus  # noqa: E402
from ledger.ledger import HISTORY_FILTERS  # noqa: E402
from ledger.stats import record_result  # noqa: E402
from providers.sportmonks.fixtures_provider import SportmonksFixturesProvider  # noqa: E402
from ranking.scorer import score_fixture  # noqa: E402
from session.state import ALL_FILTER, MODE_LIVE, MODE_UPCOMING, TOP_FILTER, SessionState  # noqa: E402

_dotenv = find_dotenv(usecwd=True)
if _dotenv:
    load_dotenv(_dotenv, override=False)

OUTCOME_LABELS = {
    BetOutcome.PENDING: "In attesa",
    BetOutcome.WON: "Vinta",
    BetOutcome.LOST: "Persa",
    BetOutcome.VOID: "Annullata",
}


def _session() -> SessionState:
    # Nell'interfaccia il form raggruppa già le modifiche: salvataggio immediato
    if "match_session" not in st.session_state:
        st.session_state["match_session"] = SessionState(SportmonksFixturesProvider(), save_delay=0)
        st.session_state["match_session"].load_fixtures()
    return st.session_state["match_session"]


def _fixture_rows(fixtures: List[Fixture]) -> List[Dict[str, Any]]:
    rows = []
    for f in fixtures:
        rows.append(
            {
                "id": f.fixture_id,
                "ora": f.kickoff,
                "lega": f.league,
                "casa": f.home_team,
                "ospite": f.away_team,
                "stato": f.status,
                "risultato": f.score_display or "",
                "minuto": f.minute or "",
                "over score": score_fixture(f),
            }
        )
    return rows


def _probability_chart(result: AnalysisResult):
    df = pd.DataFrame(
        [
            {"esito": "1", "prob": result.home_win_prob},
            {"esito": "X", "prob": result.draw_prob},
            {"esito": "2", "prob": result.away_win_prob},
        ]
    )
    # Solo la barra è limitata a 0-100, il valore mostrato resta quello del modello
    df["barra"] = df["prob"].clip(lower=0, upper=100)
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("esito:N", title="Esito", sort=["1", "X", "2"]),
            y=alt.Y("barra:Q", title="Probabilità %", scale=alt.Scale(domain=[0, 100])),
            tooltip=["esito", "prob"],
        )
    )


def _render_analysis(session: SessionState, fixture: Fixture) -> None:
    result = session.analysis
    if result is None or result.fixture_id != fixture.fixture_id:
        if st.button("Genera analisi AI", key=f"analyze_{fixture.fixture_id}"):
            with st.spinner("Analisi in corso..."):
                session.request_analysis(fixture)
            result = session.analysis
    if result is None or result.fixture_id != fixture.fixture_id:
        return

    c1, c2, c3 = st.columns(3)
    c1.metric("Risultato", result.current_score)
    c2.metric("Pronostico", result.prediction)
    c3.metric("Fiducia", f"{result.confidence}/10")
    st.write(f"**Consiglio:** {result.best_bet}")
    st.altair_chart(_probability_chart(result), use_container_width=True)
    st.markdown(result.summary)

    if result.stats is not None:
        home, away = result.stats.home, result.stats.away
        table = pd.DataFrame(
            {
                fixture.home_team: [
                    home.possession, home.shots_on_target, home.shots_off_target,
                    home.corners, home.fouls, home.yellow_cards, home.red_cards,
                ],
                fixture.away_team: [
                    away.possession, away.shots_on_target, away.shots_off_target,
                    away.corners, away.fouls, away.yellow_cards, away.red_cards,
                ],
            },
            index=["Possesso %", "Tiri in porta", "Tiri fuori", "Corner", "Falli", "Gialli", "Rossi"],
        )
        if result.stats.has_expected_goals:
            table.loc["xG"] = [home.expected_goals, away.expected_goals]
        st.dataframe(table, use_container_width=True)

    if result.sources:
        st.caption("Fonti")
        for src in result.sources:
            st.markdown(f"- [{src.title}]({src.uri})")


def _render_bet_form(session: SessionState, fixture: Fixture) -> None:
    saved = session.ledger.get(fixture.fixture_id)
    suggested = session.analysis.best_bet if session.analysis and session.analysis.fixture_id == fixture.fixture_id else ""
    with st.form(key=f"bet_{fixture.fixture_id}"):
        selection = st.text_input("Selezione", value=saved.selection if saved else suggested)
        c1, c2 = st.columns(2)
        stake = c1.text_input("Puntata", value=saved.stake if saved else "")
        odds = c2.text_input("Quota", value=saved.odds if saved else "")
        outcomes = list(BetOutcome.ALL)
        outcome = st.selectbox(
            "Esito",
            outcomes,
            index=outcomes.index(saved.outcome) if saved else 0,
            format_func=lambda o: OUTCOME_LABELS[o],
        )
        if st.form_submit_button("Salva scommessa"):
            record = BetRecord.for_fixture(fixture, selection=selection, stake=stake, odds=odds, outcome=outcome)
            if session.edit_bet(record, suggested_selection=suggested):
                st.success("Scommessa salvata")
            else:
                st.info("Nessuna modifica da salvare")


def _render_dashboard(session: SessionState) -> None:
    c1, c2, c3 = st.columns([1, 2, 1])
    mode = c1.radio(
        "Modalità",
        [MODE_UPCOMING, MODE_LIVE],
        index=0 if session.mode == MODE_UPCOMING else 1,
        format_func=lambda m: "Prossime" if m == MODE_UPCOMING else "Live",
        horizontal=True,
    )
    if mode != session.mode:
        session.set_mode(mode)
    if c3.button("Aggiorna"):
        session.load_fixtures()

    options = [TOP_FILTER, ALL_FILTER] + session.leagues()
    current = session.league_filter if session.league_filter in options else ALL_FILTER
    league = c2.selectbox(
        "Lega",
        options,
        index=options.index(current),
        format_func=lambda x: {TOP_FILTER: "Top Over 1.5", ALL_FILTER: "Tutte"}.get(x, x),
    )
    session.league_filter = league

    visible = session.visible_fixtures()
    if not visible:
        st.info("Nessuna partita disponibile.")
        return
    st.dataframe(pd.DataFrame(_fixture_rows(visible)), use_container_width=True, hide_index=True)

    labels = {f.fixture_id: f"{f.kickoff} {f.home_team} - {f.away_team} ({f.league})" for f in visible}
    ids = list(labels)
    default = ids.index(session.selected_id) if session.selected_id in labels else 0
    chosen = st.selectbox("Partita", ids, index=default, format_func=lambda i: labels[i])
    if chosen != session.selected_id:
        session.select(chosen)
    fixture = session.get_fixture(chosen)
    if fixture is None:
        return

    st.subheader(f"{fixture.home_team} vs {fixture.away_team}")
    if fixture.status == FixtureStatus.LIVE and fixture.has_score:
        st.write(f"{fixture.score_display} ({fixture.minute or 'Live'})")
    _render_analysis(session, fixture)
    _render_bet_form(session, fixture)


def _render_history(session: SessionState) -> None:
    stats = session.ledger_stats()
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Puntato", f"{stats.total_staked:.2f}")
    c2.metric("Profitto", f"{stats.net_profit:+.2f}")
    c3.metric("ROI", f"{stats.roi:.2f}%")
    c4.metric("Win rate", f"{stats.win_rate:.1f}%")
    st.caption(f"Scommesse: {stats.total_bets} (in attesa {stats.pending}, annullate {stats.void})")

    f1, f2 = st.columns([1, 2])
    outcome = f1.selectbox("Filtro esito", list(HISTORY_FILTERS))
    search = f2.text_input("Cerca squadra o selezione")
    rows = []
    for rec in session.ledger.history(outcome=outcome, search=search):
        res = record_result(rec)
        rows.append(
            {
                "partita": f"{rec.home_team} - {rec.away_team}",
                "selezione": rec.selection,
                "puntata": res.stake,
                "quota": res.odds,
                "esito": OUTCOME_LABELS[rec.outcome],
                "ritorno potenziale": round(res.potential_return, 2),
                "P/L": round(res.pnl, 2),
                "ROI %": round(res.roi, 2),
            }
        )
    if rows:
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
    else:
        st.info("Nessuna scommessa registrata.")
    if session.ledger and st.button("Svuota storico"):
        session.clear_bets()
        st.rerun()


def main() -> None:
    st.set_page_config(page_title="Match Insight", layout="wide")
    st.title("Match Insight")
    session = _session()
    if not session.provider.is_configured():
        st.warning("SPORTMONKS_API_TOKEN non impostato: nessuna partita disponibile.")

    tabs = st.tabs(["Partite", "Storico scommesse"])
    with tabs[0]:
        _render_dashboard(session)
    with tabs[1]:
        _render_history(session)


if __name__ == "__main__":
    main()
