"""The Odds API collector for NFL game lines."""

import logging
from typing import Any, Dict, List, Optional

from ...errors import MissingCredential, SourceUnavailable
from ...models import BettingOdds, team_by_name
from ...utils.clock import utc_now
from .base import HTTPSourceClient, OddsSource, parse_timestamp

logger = logging.getLogger(__name__)

SPORT_KEY = "americanfootball_nfl"


def _abbreviation(team_name: str) -> str:
    team = team_by_name(team_name)
    return team.abbreviation if team else team_name


def _find_market(bookmaker: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    for market in bookmaker.get("markets", []):
        if market.get("key") == key:
            return market.get("outcomes", [])
    return []


class OddsAPISource(HTTPSourceClient, OddsSource):
    """
    Moneyline, spread and total from the-odds-api.com.

    Free tier is 500 requests/month; every call to ``fetch_odds`` costs one
    request per market, so keep it behind the DataLoader cache.
    """

    name = "odds_api"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.the-odds-api.com/v4",
        regions: str = "us",
        preferred_bookmaker: Optional[str] = None,
        **kwargs,
    ):
        if not api_key:
            raise MissingCredential("ODDS_API_KEY", "OddsAPISource")
        super().__init__(base_url, **kwargs)
        self.api_key = api_key
        self.regions = regions
        self.preferred_bookmaker = preferred_bookmaker

    async def fetch_odds(self) -> Dict[str, BettingOdds]:
        data = await self._get_json(
            f"sports/{SPORT_KEY}/odds",
            params={
                "apiKey": self.api_key,
                "regions": self.regions,
                "markets": "h2h,spreads,totals",
                "oddsFormat": "american",
            },
        )
        return self.parse_odds(data)

    def parse_odds(self, data: Any) -> Dict[str, BettingOdds]:
        """Board keyed by ``"AWAY @ HOME"`` using one bookmaker per event."""
        if not isinstance(data, list):
            raise SourceUnavailable(self.name, "expected a list of events")

        board = {}
        for event in data:
            bookmaker = self._pick_bookmaker(event.get("bookmakers") or [])
            if bookmaker is None:
                continue

            home_name = event.get("home_team", "")
            away_name = event.get("away_team", "")

            home_ml = away_ml = None
            for outcome in _find_market(bookmaker, "h2h"):
                if outcome.get("name") == home_name:
                    home_ml = int(outcome["price"])
                elif outcome.get("name") == away_name:
                    away_ml = int(outcome["price"])

            spread = None
            for outcome in _find_market(bookmaker, "spreads"):
                if outcome.get("name") == home_name:
                    spread = outcome.get("point")

            total = None
            for outcome in _find_market(bookmaker, "totals"):
                if outcome.get("name") == "Over":
                    total = outcome.get("point")

            last_update = (
                parse_timestamp(bookmaker.get("last_update"))
                or parse_timestamp(event.get("commence_time"))
                or utc_now()
            )

            odds = BettingOdds(
                home_team=_abbreviation(home_name),
                away_team=_abbreviation(away_name),
                bookmaker=bookmaker.get("title") or bookmaker.get("key", "unknown"),
                last_update=last_update,
                home_moneyline=home_ml,
                away_moneyline=away_ml,
                spread=spread,
                total=total,
            )
            board[f"{odds.away_team} @ {odds.home_team}"] = odds

        logger.debug(f"Odds API returned lines for {len(board)} games")
        return board

    def _pick_bookmaker(self, bookmakers: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not bookmakers:
            return None
        if self.preferred_bookmaker:
            for bookmaker in bookmakers:
                if bookmaker.get("key") == self.preferred_bookmaker:
                    return bookmaker
        return bookmakers[0]
