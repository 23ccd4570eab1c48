"""NewsAPI.org collector for team news."""

import logging
from datetime import datetime, timedelta
from typing import Any, List, Optional

from ...errors import MissingCredential, SourceUnavailable
from ...models import NFL_TEAMS, Article, Team
from .base import HTTPSourceClient, NewsSource, parse_timestamp

logger = logging.getLogger(__name__)


class NewsAPISource(HTTPSourceClient, NewsSource):
    """
    Articles from the NewsAPI ``everything`` endpoint.

    Free tier allows 100 requests/day, so results are meant to sit behind the
    DataLoader cache.
    """

    name = "newsapi"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://newsapi.org/v2",
        page_size: int = 50,
        **kwargs,
    ):
        if not api_key:
            raise MissingCredential("NEWS_API_KEY", "NewsAPISource")
        super().__init__(base_url, **kwargs)
        self.api_key = api_key
        self.page_size = page_size

    async def fetch_articles(
        self, team: Team, before: datetime, lookback_days: int
    ) -> List[Article]:
        start = before - timedelta(days=lookback_days)
        data = await self._get_json(
            "everything",
            params={
                "q": f'"{team.name}" NFL',
                "from": start.strftime("%Y-%m-%dT%H:%M:%S"),
                "to": before.strftime("%Y-%m-%dT%H:%M:%S"),
                "language": "en",
                "sortBy": "publishedAt",
                "pageSize": self.page_size,
            },
            headers={"X-Api-Key": self.api_key},
        )
        return self.parse_articles(data, team)

    def parse_articles(self, data: Any, team: Team) -> List[Article]:
        if not isinstance(data, dict) or data.get("status") != "ok":
            message = data.get("message") if isinstance(data, dict) else None
            raise SourceUnavailable(self.name, message or "unexpected response")

        articles = []
        for item in data.get("articles") or []:
            published_at = parse_timestamp(item.get("publishedAt"))
            title = item.get("title")
            if published_at is None or not title:
                continue

            mentioned = {team.abbreviation}
            for other in NFL_TEAMS:
                if other.name.lower() in title.lower():
                    mentioned.add(other.abbreviation)

            url = item.get("url")
            kwargs = {"id": url} if url else {}
            articles.append(
                Article(
                    title=title,
                    content=item.get("description") or item.get("content") or "",
                    published_at=published_at,
                    source=(item.get("source") or {}).get("name") or self.name,
                    teams=frozenset(mentioned),
                    url=url,
                    **kwargs,
                )
            )

        logger.debug(f"NewsAPI returned {len(articles)} articles for {team.abbreviation}")
        return articles
