from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


class FixtureStatus:
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"

    ALL = (SCHEDULED, LIVE, FINISHED)


class BetOutcome:
    PENDING = "pending"
    WON = "won"
    LOST = "lost"
    VOID = "void"

    ALL = (PENDING, WON, LOST, VOID)


@dataclass
class Fixture:
    fixture_id: str
    home_team: str
    away_team: str
    league: str
    kickoff: str              # HH:MM nel fuso di visualizzazione
    status: str = FixtureStatus.SCHEDULED
    home_logo: Optional[str] = None
    away_logo: Optional[str] = None
    kickoff_utc: Optional[str] = None  # istante sorgente ISO 8601
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    minute: Optional[str] = None
    home_xg: Optional[float] = None
    away_xg: Optional[float] = None
    country: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.home_score is None) != (self.away_score is None):
            raise ValueError("home_score e away_score devono essere entrambi presenti o assenti")
        if self.minute is not None and self.status != FixtureStatus.LIVE:
            raise ValueError("minute ammesso solo per fixture live")

    @property
    def has_score(self) -> bool:
        return self.home_score is not None

    @property
    def score_display(self) -> Optional[str]:
        if not self.has_score:
            return None
        return f"{self.home_score}-{self.away_score}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TeamStatistics:
    possession: float = 0
    shots_on_target: float = 0
    shots_off_target: float = 0
    corners: float = 0
    fouls: float = 0
    yellow_cards: float = 0
    red_cards: float = 0
    expected_goals: Optional[float] = None


@dataclass
class MatchStatistics:
    home: TeamStatistics
    away: TeamStatistics

    @property
    def has_expected_goals(self) -> bool:
        return self.home.expected_goals is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SourceLink:
    title: str
    uri: str


@dataclass
class AnalysisResult:
    fixture_id: str
    summary: str
    home_win_prob: int
    draw_prob: int
    away_win_prob: int
    prediction: str
    best_bet: str
    confidence: int
    current_score: str
    is_live: bool
    sources: List[SourceLink] = field(default_factory=list)
    stats: Optional[MatchStatistics] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BetRecord:
    fixture_id: str
    home_team: str
    away_team: str
    selection: str = ""
    stake: str = ""
    odds: str = ""
    outcome: str = BetOutcome.PENDING
    home_logo: Optional[str] = None
    away_logo: Optional[str] = None

    def __post_init__(self) -> None:
        if self.outcome not in BetOutcome.ALL:
            raise ValueError(f"outcome non valido: {self.outcome!r}")

    @classmethod
    def for_fixture(
        cls,
        fixture: Fixture,
        *,
        selection: str = "",
        stake: str = "",
        odds: str = "",
        outcome: str = BetOutcome.PENDING,
    ) -> "BetRecord":
        # Copia denormalizzata dei dati squadra al momento del salvataggio
        return cls(
            fixture_id=fixture.fixture_id,
            home_team=fixture.home_team,
            away_team=fixture.away_team,
            home_logo=fixture.home_logo,
            away_logo=fixture.away_logo,
            selection=selection,
            stake=stake,
            odds=odds,
            outcome=outcome,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "FixtureStatus",
    "BetOutcome",
    "Fixture",
    "TeamStatistics",
    "MatchStatistics",
    "SourceLink",
    "AnalysisResult",
    "BetRecord",
]
