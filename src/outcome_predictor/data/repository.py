"""In-memory game repository consumed by the baseline predictor."""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..models import Game, Team, Winner


class InMemoryGameRepository:
    """Read-mostly collection of games indexed by id. No network access."""

    def __init__(self, games: Optional[Iterable[Game]] = None):
        self._games: Dict[str, Game] = {}
        for game in games or []:
            self.save(game)

    def save(self, game: Game) -> None:
        """Insert or replace (by id), e.g. once an outcome is attached."""
        self._games[game.id] = game

    def save_all(self, games: Iterable[Game]) -> None:
        for game in games:
            self.save(game)

    def game(self, game_id: str) -> Optional[Game]:
        return self._games.get(game_id)

    def games_involving(self, team: Team) -> List[Game]:
        return sorted(
            (g for g in self._games.values() if g.involves(team)),
            key=lambda g: g.scheduled_at,
        )

    def games(self, team: Team, season: int) -> List[Game]:
        return [g for g in self.games_involving(team) if g.season == season]

    def games_between(self, start: datetime, end: datetime) -> List[Game]:
        """Games scheduled in ``[start, end)``."""
        return sorted(
            (g for g in self._games.values() if start <= g.scheduled_at < end),
            key=lambda g: g.scheduled_at,
        )

    def completed_games(self) -> List[Game]:
        return [g for g in self._games.values() if g.is_completed]

    @property
    def tie_rate(self) -> float:
        """Share of completed games that ended level."""
        completed = self.completed_games()
        if not completed:
            return 0.0
        ties = sum(1 for g in completed if g.outcome.winner == Winner.TIE)
        return ties / len(completed)

    def __len__(self) -> int:
        return len(self._games)

    def __iter__(self):
        return iter(self._games.values())
