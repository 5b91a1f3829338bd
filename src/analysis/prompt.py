from __future__ import annotations

from typing import Optional

from core.models import Fixture, MatchStatistics
from .parser import BLOCK_END, BLOCK_START


def _fmt(value: float) -> str:
    return f"{value:g}"


def build_stats_block(fixture: Fixture, stats: MatchStatistics) -> str:
    home, away = fixture.home_team, fixture.away_team
    lines = [
        "DATI STATISTICI REALI AVANZATI (API Sportmonks):",
        f"- Possesso Palla: {home} {_fmt(stats.home.possession)}% - {away} {_fmt(stats.away.possession)}%",
        f"- Tiri in Porta: {home} {_fmt(stats.home.shots_on_target)} - {away} {_fmt(stats.away.shots_on_target)}",
        f"- Calci d'Angolo: {home} {_fmt(stats.home.corners)} - {away} {_fmt(stats.away.corners)}",
        f"- Cartellini: {_fmt(stats.home.yellow_cards)} gialli vs {_fmt(stats.away.yellow_cards)}",
    ]
    if stats.has_expected_goals:
        away_xg = stats.away.expected_goals
        lines.append(
            f"- xG (Expected Goals): {home} {_fmt(stats.home.expected_goals)} - "
            f"{away} {_fmt(away_xg) if away_xg is not None else 'N/A'}"
        )
    lines += [
        "",
        "IMPORTANTE: Analizza attentamente gli xG (Expected Goals) se presenti.",
        '- Se una squadra ha xG alti ma 0 gol, indica "sfortuna/imprecisione" e possibile gol imminente.',
        '- Se xG bassi ma ha segnato, indica "overperformance/fortuna" (possibile pareggio avversario).',
    ]
    return "\n".join(lines)


def build_prompt(fixture: Fixture, is_live: bool, stats: Optional[MatchStatistics] = None) -> str:
    """Prompt in italiano per l'analisi; chiede il blocco dati finale per il parser."""
    context = "LIVE (partita in corso)" if is_live else "PRE-PARTITA"
    lines = [
        "Agisci come un esperto analista di scommesse di calcio professionista.",
        f"Analizza la partita: {fixture.home_team} vs {fixture.away_team} ({fixture.league}).",
        f"Contesto Analisi: {context}.",
    ]
    if is_live and fixture.has_score:
        lines.append(
            f"Punteggio attuale: {fixture.score_display} (Minuto: {fixture.minute or 'N/A'})"
        )
    if stats is not None:
        lines += ["", build_stats_block(fixture, stats)]

    focus = (
        "Risultato live esatto, minuto di gioco, statistiche mancanti."
        if is_live
        else "Ultime news, formazioni ufficiali/probabili, infortuni."
    )
    lines += [
        "",
        "Usa dati aggiornati e precisi (integra i dati statistici forniti con il contesto esterno):",
        f"1. {focus}",
        "2. Storico Testa a Testa (H2H) e media gol delle ultime 5 partite (Over 1.5/2.5 frequenza).",
        "3. Quote di mercato attuali e movimenti significativi su Gol/Over.",
        "",
        "Crea un report strutturato in Italiano (Markdown) che includa:",
        f"- **Panoramica & {'Live Score' if is_live else 'News'}**: Analisi dello stato attuale basata su Statistiche e xG (se disp).",
        "- **Analisi Tattica & Gol**: Approfondimento sul potenziale offensivo (Over 1.5/2.5) e tenuta difensiva.",
        "- **Consiglio Scommessa**: La puntata con il valore atteso (EV+) più alto.",
        "",
        "IMPORTANTE: Alla fine del testo, lascia una riga vuota e stampa ESATTAMENTE questo blocco dati:",
        "",
        BLOCK_START,
        "SCORE: {punteggio_live_o_trattino_se_prematch}",
        "PREDICTION: {risultato_esatto_piu_probabile}",
        "BEST_BET: {mercato_consigliato_breve_es_Over_1.5_o_Over_2.5_o_Gol}",
        "CONFIDENCE: {numero_intero_1_10}",
        "PROBS: {home_win_percent}|{draw_percent}|{away_win_percent}",
        BLOCK_END,
    ]
    return "\n".join(lines)


__all__ = ["build_prompt", "build_stats_block"]
