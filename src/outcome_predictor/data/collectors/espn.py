"""ESPN site API collector - free schedules, scoreboards and final scores."""

import logging
from typing import Any, Dict, List, Optional

from ...errors import SourceUnavailable
from ...models import Game, GameOutcome, Team, team_by_abbreviation
from .base import HTTPSourceClient, ScoresSource, parse_timestamp

logger = logging.getLogger(__name__)

REGULAR_SEASON = 2


def _parse_score(raw: Any) -> Optional[int]:
    # Scoreboard gives "27", schedule gives {"value": 27.0, "displayValue": "27"}
    if isinstance(raw, dict):
        raw = raw.get("value", raw.get("displayValue"))
    if raw is None or raw == "":
        return None
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        return None


class ESPNScoresSource(HTTPSourceClient, ScoresSource):
    """Collector for ESPN's public site API (no key required)."""

    name = "espn"

    def __init__(
        self,
        base_url: str = "https://site.api.espn.com/apis/site/v2/sports/football/nfl",
        **kwargs,
    ):
        super().__init__(base_url, **kwargs)

    async def fetch_games(self, team: Team, season: int) -> List[Game]:
        data = await self._get_json(
            f"teams/{team.id}/schedule",
            params={"season": season, "seasontype": REGULAR_SEASON},
        )
        games = self.parse_events(data, season=season)
        logger.debug(f"ESPN returned {len(games)} games for {team.abbreviation} {season}")
        return games

    async def fetch_week(self, week: int, season: int) -> List[Game]:
        data = await self._get_json(
            "scoreboard",
            params={"seasontype": REGULAR_SEASON, "week": week, "dates": season},
        )
        return self.parse_events(data, season=season, week=week)

    async def fetch_live_scores(self) -> List[Game]:
        data = await self._get_json("scoreboard")
        return self.parse_events(data)

    def parse_events(
        self,
        data: Any,
        season: Optional[int] = None,
        week: Optional[int] = None,
    ) -> List[Game]:
        """
        Convert an ESPN ``events`` payload into Games.

        Events with unknown teams or unparseable dates are skipped; a payload
        without an ``events`` list is malformed.
        """
        if not isinstance(data, dict) or not isinstance(data.get("events"), list):
            raise SourceUnavailable(self.name, "payload has no events list")

        games = []
        for event in data["events"]:
            game = self._parse_event(event, season, week)
            if game is not None:
                games.append(game)
        return games

    def _parse_event(
        self, event: Dict[str, Any], season: Optional[int], week: Optional[int]
    ) -> Optional[Game]:
        competitions = event.get("competitions") or []
        if not competitions:
            return None
        competition = competitions[0]

        sides = {}
        for competitor in competition.get("competitors", []):
            side = competitor.get("homeAway")
            abbreviation = (competitor.get("team") or {}).get("abbreviation", "")
            team = team_by_abbreviation(abbreviation) if abbreviation else None
            if side in ("home", "away") and team is not None:
                sides[side] = (team, competitor)
        if len(sides) != 2:
            logger.debug(f"Skipping ESPN event {event.get('id')}: teams not recognised")
            return None

        scheduled_at = parse_timestamp(event.get("date", ""))
        if scheduled_at is None:
            return None

        home_team, home = sides["home"]
        away_team, away = sides["away"]

        outcome = None
        status = (competition.get("status") or event.get("status") or {}).get("type", {})
        if status.get("completed"):
            home_score = _parse_score(home.get("score"))
            away_score = _parse_score(away.get("score"))
            if home_score is not None and away_score is not None:
                outcome = GameOutcome(home_score=home_score, away_score=away_score)

        event_week = (event.get("week") or {}).get("number", week)
        event_season = (event.get("season") or {}).get("year", season)

        kwargs = {}
        if event.get("id"):
            kwargs["id"] = str(event["id"])

        return Game(
            home_team=home_team,
            away_team=away_team,
            scheduled_at=scheduled_at,
            week=int(event_week or 0),
            season=int(event_season or scheduled_at.year),
            outcome=outcome,
            **kwargs,
        )
