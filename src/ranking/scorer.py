from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from core.models import Fixture, FixtureStatus

# Bonus per competizione (substring case-insensitive, tutti i match si sommano)
LEAGUE_WEIGHTS: Tuple[Tuple[str, int], ...] = (
    ("bundesliga", 25),
    ("eredivisie", 25),
    ("serie a", 20),
    ("premier league", 20),
    ("champions league", 22),
    ("swiss", 20),
    ("belgium", 18),
)

OFFENSIVE_TEAMS: Tuple[str, ...] = (
    "bayern", "leverkusen", "dortmund", "leipzig",
    "psv", "feyenoord", "ajax",
    "man city", "liverpool", "arsenal", "tottenham",
    "real madrid", "barcelona", "girona",
    "inter", "atalanta", "napoli", "milan",
    "psg", "monaco",
)

TEAM_BONUS = 15
LIVE_XG_THRESHOLD = 1.5
LIVE_XG_BONUS = 30
LIVE_GOALS_BONUS = 10
DEFAULT_TOP_LIMIT = 15


def _league_bonus(league: str) -> int:
    name = league.lower()
    return sum(weight for key, weight in LEAGUE_WEIGHTS if key in name)


def _is_offensive(team: str) -> bool:
    name = team.lower()
    return any(t in name for t in OFFENSIVE_TEAMS)


def score_fixture(fixture: Fixture) -> int:
    """
    Potenziale Over 1.5 di una fixture: pesi lega + pesi squadra + segnali live.
    Funzione pura, deterministica.
    """
    score = _league_bonus(fixture.league)

    if _is_offensive(fixture.home_team):
        score += TEAM_BONUS
    if _is_offensive(fixture.away_team):
        score += TEAM_BONUS

    if fixture.status == FixtureStatus.LIVE:
        if (fixture.home_xg or 0) + (fixture.away_xg or 0) > LIVE_XG_THRESHOLD:
            score += LIVE_XG_BONUS
        if (fixture.home_score or 0) + (fixture.away_score or 0) >= 1:
            score += LIVE_GOALS_BONUS

    return score


def rank_fixtures(fixtures: Iterable[Fixture]) -> List[Tuple[Fixture, int]]:
    """Coppie (fixture, score) per score decrescente; a parità resta l'ordine originale."""
    scored = [(f, score_fixture(f)) for f in fixtures]
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


def select_top(fixtures: Sequence[Fixture], limit: int = DEFAULT_TOP_LIMIT) -> List[Fixture]:
    return [f for f, _ in rank_fixtures(fixtures)[:limit]]


__all__ = [
    "LEAGUE_WEIGHTS",
    "OFFENSIVE_TEAMS",
    "score_fixture",
    "rank_fixtures",
    "select_top",
    "DEFAULT_TOP_LIMIT",
]
