from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.logging import get_logger
from core.models import Fixture, FixtureStatus, MatchStatistics, TeamStatistics

logger = get_logger("core.normalization")

Number = Union[int, float]

# Prefisso numerico (accetta "55%", "1.25", "2,5", " 7 ")
_NUMERIC_PREFIX_RE = re.compile(r"^\s*([-+]?\d+(?:[.,]\d+)?)")

# Vocabolario stati Sportmonks -> stato canonico. Non mappato => scheduled
STATE_LOOKUP: Dict[str, str] = {
    "FT": FixtureStatus.FINISHED,
    "AET": FixtureStatus.FINISHED,
    "FT_PEN": FixtureStatus.FINISHED,
    "AWARDED": FixtureStatus.FINISHED,
    "LIVE": FixtureStatus.LIVE,
    "HT": FixtureStatus.LIVE,
    "ET": FixtureStatus.LIVE,
    "BREAK": FixtureStatus.LIVE,
    "PEN_LIVE": FixtureStatus.LIVE,
    "PEN_BREAK": FixtureStatus.LIVE,
    "EXTRA_TIME_BREAK": FixtureStatus.LIVE,
    "INPLAY_1ST_HALF": FixtureStatus.LIVE,
    "INPLAY_2ND_HALF": FixtureStatus.LIVE,
    "INPLAY_ET": FixtureStatus.LIVE,
    "INPLAY_ET_2ND_HALF": FixtureStatus.LIVE,
    "INPLAY_PENALTIES": FixtureStatus.LIVE,
}
_STATE_FIELDS = ("state", "developer_name", "short_name")

# Ordine di preferenza dei tag punteggio
SCORE_TAGS = ("CURRENT", "2ND_HALF", "1ST_HALF")

STAT_TYPE_NAMES: Dict[str, Tuple[str, ...]] = {
    "possession": ("Ball Possession", "Ball Possession %"),
    "shots_on_target": ("Shots On Target", "Shots on Goal"),
    "shots_off_target": ("Shots Off Target", "Shots off Goal"),
    "corners": ("Corners", "Corner Kicks"),
    "fouls": ("Fouls",),
    "yellow_cards": ("Yellowcards", "Yellow Cards"),
    "red_cards": ("Redcards", "Red Cards"),
}
XG_TYPE_NAMES: Tuple[str, ...] = ("Expected Goals", "xG", "Expected Goals (xG)")

EUROPEAN_COUNTRIES = frozenset(
    {
        "Italy", "England", "Spain", "Germany", "France", "Netherlands", "Portugal",
        "Belgium", "Scotland", "Turkey", "Austria", "Switzerland", "Greece",
        "Denmark", "Sweden", "Norway", "Poland", "Czech Republic", "Croatia",
        "Romania", "Serbia", "Ukraine", "Hungary", "Finland", "Ireland", "Slovakia",
        "Bulgaria", "Slovenia", "Iceland", "Wales", "Northern Ireland", "Cyprus",
    }
)
INTERNATIONAL_COMPETITIONS = (
    "UEFA Champions League",
    "UEFA Europa League",
    "UEFA Conference League",
    "UEFA Super Cup",
    "Euro Championship",
    "World Cup",
    "UEFA Nations League",
)

KICKOFF_PLACEHOLDER = "--:--"


# -------------------- Helpers generici --------------------
def coerce_number(value: Any) -> Number:
    """
    Converte un valore provider in numero.
    - int/float passano invariati (NaN e infiniti -> 0)
    - stringhe: viene tenuto il prefisso numerico ("55%" -> 55)
    - tutto il resto (None, bool, testo non numerico) -> 0
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        return value
    if isinstance(value, str):
        m = _NUMERIC_PREFIX_RE.match(value)
        if not m:
            return 0
        num = float(m.group(1).replace(",", "."))
        if not math.isfinite(num):
            return 0
        return int(num) if num.is_integer() else num
    return 0


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


@lru_cache(maxsize=8)
def _zone(name: str):
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Timezone sconosciuta %r, uso UTC", name)
        return timezone.utc


# -------------------- Squadre --------------------
def resolve_participants(item: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Individua home/away dai participants tramite meta.location.
    Fallback posizionale (primo = home, secondo = away).
    """
    participants = [p for p in _as_list(item.get("participants")) if isinstance(p, dict)]
    home: Optional[Dict[str, Any]] = None
    away: Optional[Dict[str, Any]] = None
    for p in participants:
        location = _as_dict(p.get("meta")).get("location")
        if location == "home" and home is None:
            home = p
        elif location == "away" and away is None:
            away = p
    if home is None and len(participants) > 0:
        home = participants[0]
    if away is None and len(participants) > 1:
        away = participants[1]
    return home or {}, away or {}


# -------------------- Punteggio --------------------
def _score_matches_side(entry: Dict[str, Any], side: str, team_id: Any) -> bool:
    if _as_dict(entry.get("score")).get("participant") == side:
        return True
    return team_id is not None and entry.get("participant_id") == team_id


def _goals(entry: Dict[str, Any]) -> int:
    return int(coerce_number(_as_dict(entry.get("score")).get("goals")))


def resolve_score(scores: Sequence[Any], side: str, team_id: Any = None) -> int:
    """
    Gol di una squadra: prima il tag CURRENT, poi i tag di periodo,
    poi indice posizionale (0 home, 1 away), altrimenti 0.
    """
    entries = [s for s in scores if isinstance(s, dict)]
    for tag in SCORE_TAGS:
        for entry in entries:
            if entry.get("description") == tag and _score_matches_side(entry, side, team_id):
                return _goals(entry)
    idx = 0 if side == "home" else 1
    if len(entries) > idx:
        return _goals(entries[idx])
    return 0


# -------------------- Stato --------------------
def resolve_status(state: Any) -> str:
    if isinstance(state, str):
        return STATE_LOOKUP.get(state.upper(), FixtureStatus.SCHEDULED)
    st = _as_dict(state)
    for key in _STATE_FIELDS:
        code = st.get(key)
        if isinstance(code, str) and code.upper() in STATE_LOOKUP:
            return STATE_LOOKUP[code.upper()]
    return FixtureStatus.SCHEDULED


def resolve_minute(item: Dict[str, Any]) -> str:
    for period in _as_list(item.get("periods")):
        if isinstance(period, dict) and period.get("ticking"):
            minutes = period.get("minutes")
            if minutes is not None:
                return str(minutes)
    minute = item.get("minute")
    if minute is not None:
        return str(minute)
    return "Live"


# -------------------- Statistiche --------------------
def _stat_value(stat: Dict[str, Any]) -> Any:
    value = _as_dict(stat.get("data")).get("value")
    if value is None:
        value = stat.get("value")
    return value


def _stat_belongs_to(stat: Dict[str, Any], side: str, team_id: Any) -> bool:
    if team_id is not None and stat.get("participant_id") == team_id:
        return True
    return stat.get("location") == side


def find_statistic(
    statistics: Iterable[Any],
    side: str,
    team_id: Any,
    names: Sequence[str],
) -> Optional[Dict[str, Any]]:
    """
    Prima match esatto case-insensitive su type.name, poi match esatto
    su un campo type stringa. None se assente.
    """
    stats = [s for s in statistics if isinstance(s, dict) and _stat_belongs_to(s, side, team_id)]
    lowered = {n.lower() for n in names}
    for s in stats:
        type_name = _as_dict(s.get("type")).get("name")
        if isinstance(type_name, str) and type_name.lower() in lowered:
            return s
    for s in stats:
        if isinstance(s.get("type"), str) and s["type"] in names:
            return s
    return None


def _expected_goals(statistics: Sequence[Any], side: str, team_id: Any) -> Optional[float]:
    stat = find_statistic(statistics, side, team_id, XG_TYPE_NAMES)
    if stat is None:
        return None
    value = _stat_value(stat)
    if value is None:
        return None
    return float(coerce_number(value))


def _team_statistics(statistics: Sequence[Any], side: str, team_id: Any) -> TeamStatistics:
    values: Dict[str, Number] = {}
    for attr, names in STAT_TYPE_NAMES.items():
        stat = find_statistic(statistics, side, team_id, names)
        values[attr] = coerce_number(_stat_value(stat)) if stat is not None else 0
    return TeamStatistics(
        expected_goals=_expected_goals(statistics, side, team_id),
        **values,
    )


def normalize_statistics(payload: Any) -> Optional[MatchStatistics]:
    """
    Accetta la risposta di /fixtures/{id} (con o senza involucro 'data').
    None se il provider non riporta statistiche.
    """
    data = _as_dict(payload)
    if isinstance(data.get("data"), dict):
        data = data["data"]
    statistics = _as_list(data.get("statistics"))
    if not statistics:
        return None
    home, away = resolve_participants(data)
    return MatchStatistics(
        home=_team_statistics(statistics, "home", home.get("id")),
        away=_team_statistics(statistics, "away", away.get("id")),
    )


# -------------------- Orari --------------------
def parse_instant(raw: Any) -> Optional[datetime]:
    """Istante UTC da stringa Sportmonks ("YYYY-MM-DD HH:MM:SS"), ISO 8601 o epoch."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        dt = raw
    elif isinstance(raw, (int, float)):
        try:
            return datetime.fromtimestamp(raw, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(raw, str):
        text = raw.strip()
        try:
            dt = datetime.strptime(text, "%Y-%m-%d %H:%M:%S")
        except ValueError:
            try:
                dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_kickoff(raw: Any, tz: str = "Europe/Rome") -> str:
    """Orario HH:MM (24h) nel fuso indicato. Solo visualizzazione."""
    instant = parse_instant(raw)
    if instant is None:
        return KICKOFF_PLACEHOLDER
    return instant.astimezone(_zone(tz)).strftime("%H:%M")


def sort_by_kickoff(fixtures: Iterable[Fixture]) -> List[Fixture]:
    # Confronto lessicale su HH:MM: corretto solo nello stesso giorno/fuso
    return sorted(fixtures, key=lambda f: f.kickoff)


# -------------------- Fixture --------------------
def is_european(item: Dict[str, Any]) -> bool:
    league = _as_dict(item.get("league"))
    country = _as_dict(league.get("country")).get("name")
    name = league.get("name") or ""
    if country in EUROPEAN_COUNTRIES:
        return True
    return any(c in name for c in INTERNATIONAL_COMPETITIONS)


def normalize_fixture(item: Dict[str, Any], *, tz: str = "Europe/Rome") -> Fixture:
    """
    Normalizza un record fixture Sportmonks (include participants, league.country,
    scores, state, statistics) nel modello locale Fixture.
    Solleva ValueError se manca l'id.
    """
    raw_id = item.get("id")
    if raw_id is None or raw_id == "":
        raise ValueError("fixture senza id")

    home, away = resolve_participants(item)
    league = _as_dict(item.get("league"))
    status = resolve_status(item.get("state"))

    home_score: Optional[int] = None
    away_score: Optional[int] = None
    if status != FixtureStatus.SCHEDULED:
        scores = _as_list(item.get("scores"))
        home_score = resolve_score(scores, "home", home.get("id"))
        away_score = resolve_score(scores, "away", away.get("id"))

    home_xg: Optional[float] = None
    away_xg: Optional[float] = None
    statistics = _as_list(item.get("statistics"))
    if statistics and home and away:
        home_xg = _expected_goals(statistics, "home", home.get("id"))
        away_xg = _expected_goals(statistics, "away", away.get("id"))

    raw_start = item.get("starting_at")
    if raw_start is None:
        raw_start = item.get("starting_at_timestamp")
    instant = parse_instant(raw_start)

    return Fixture(
        fixture_id=str(raw_id),
        home_team=home.get("name") or "Home Team",
        away_team=away.get("name") or "Away Team",
        home_logo=home.get("image_path"),
        away_logo=away.get("image_path"),
        league=league.get("name") or "Unknown",
        country=_as_dict(league.get("country")).get("name"),
        kickoff=format_kickoff(instant, tz),
        kickoff_utc=instant.isoformat() if instant else None,
        status=status,
        home_score=home_score,
        away_score=away_score,
        minute=resolve_minute(item) if status == FixtureStatus.LIVE else None,
        home_xg=home_xg,
        away_xg=away_xg,
    )


__all__ = [
    "coerce_number",
    "resolve_participants",
    "resolve_score",
    "resolve_status",
    "find_statistic",
    "normalize_statistics",
    "parse_instant",
    "format_kickoff",
    "sort_by_kickoff",
    "is_european",
    "normalize_fixture",
    "STATE_LOOKUP",
    "KICKOFF_PLACEHOLDER",
]
