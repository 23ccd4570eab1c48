"""
LLM analyst predictor.

The predictor renders a PredictionContext into a prompt, hands it to an
injected LLMClient and turns the structured answer into a Prediction.

Clients:
- ClaudeAPIClient: Anthropic messages API over aiohttp (needs ANTHROPIC_API_KEY)
- MockLLMClient: deterministic offline stand-in, never needs credentials
"""

import asyncio
import hashlib
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..config import Settings, get_settings
from ..data.collectors.base import HTTPSourceClient
from ..errors import MissingCredential, SourceUnavailable
from ..models import (
    Article,
    Game,
    Prediction,
    PredictionContext,
    Team,
    team_record,
    winner_from_probability,
)
from .base_predictor import Features, GamePredictor

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


class LLMResponse(BaseModel):
    """Structured answer expected back from the model."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    home_win_probability: float = Field(alias="homeWinProbability", ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
    key_factors: List[str] = Field(default_factory=list, alias="keyFactors")

    @property
    def away_win_probability(self) -> float:
        return 1.0 - self.home_win_probability


def parse_llm_response(text: str, source: str = "llm") -> LLMResponse:
    """
    Extract the JSON answer from model output.

    Accepts a fenced ```json block, or the outermost ``{...}`` surrounded by
    prose.

    Raises:
        SourceUnavailable: No valid JSON object with in-range values
    """
    match = _FENCED_JSON.search(text)
    if match:
        candidate = match.group(1)
    else:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise SourceUnavailable(source, "response contains no JSON object")
        candidate = text[start:end + 1]

    try:
        return LLMResponse.model_validate(json.loads(candidate))
    except (json.JSONDecodeError, ValidationError) as e:
        raise SourceUnavailable(source, f"could not parse model response: {e}") from e


class LLMClient(ABC):
    """Capability: turn a prompt into a structured prediction."""

    name: str = "llm"

    @abstractmethod
    async def generate_prediction(self, prompt: str) -> LLMResponse:
        pass

    async def close(self) -> None:
        pass


class ClaudeAPIClient(HTTPSourceClient, LLMClient):
    """Anthropic messages API client."""

    name = "claude"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "claude-sonnet-4-5-20250929",
        base_url: str = "https://api.anthropic.com/v1/messages",
        max_tokens: int = 2048,
        timeout_seconds: float = 60.0,
        session: Optional[aiohttp.ClientSession] = None,
        max_retries: int = 2,
    ):
        if not api_key:
            raise MissingCredential("ANTHROPIC_API_KEY", "ClaudeAPIClient")
        super().__init__(
            base_url,
            session=session,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
        )
        self.endpoint = base_url
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens

    async def generate_prediction(self, prompt: str) -> LLMResponse:
        data = await self._post_json(
            self.endpoint,
            {
                "model": self.model,
                "max_tokens": self.max_tokens,
                "messages": [{"role": "user", "content": prompt}],
            },
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
        )
        return parse_llm_response(self.extract_text(data), self.name)

    def extract_text(self, data) -> str:
        blocks = data.get("content") if isinstance(data, dict) else None
        texts = [
            block.get("text", "")
            for block in blocks or []
            if isinstance(block, dict) and block.get("type", "text") == "text"
        ]
        text = "".join(texts).strip()
        if not text:
            raise SourceUnavailable(self.name, "response has no text content")
        return text


class MockLLMClient(LLMClient):
    """
    Deterministic stand-in for offline runs and tests.

    Returns ``response`` when given one; otherwise derives a reproducible
    answer from a SHA-256 digest of the prompt, so the same context always
    gets the same forecast.
    """

    name = "mock_llm"

    def __init__(
        self,
        response: Optional[LLMResponse] = None,
        fail: bool = False,
        delay: float = 0.0,
    ):
        self.response = response
        self.fail = fail
        self.delay = delay
        self.call_count = 0
        self.last_prompt: Optional[str] = None

    async def generate_prediction(self, prompt: str) -> LLMResponse:
        self.call_count += 1
        self.last_prompt = prompt
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise SourceUnavailable(self.name, "mock failure")
        if self.response is not None:
            return self.response

        digest = hashlib.sha256(prompt.encode("utf-8")).digest()
        probability = 0.35 + 0.3 * int.from_bytes(digest[:4], "big") / 2**32
        confidence = 0.5 + 0.3 * digest[4] / 255
        return LLMResponse(
            home_win_probability=round(probability, 4),
            confidence=round(confidence, 4),
            reasoning="Mock analysis derived from the prompt contents.",
            key_factors=["mock"],
        )


def create_llm_client(settings: Optional[Settings] = None, use_mock: bool = False) -> LLMClient:
    """
    Build the configured LLM client.

    Raises:
        MissingCredential: Real client requested without ANTHROPIC_API_KEY
    """
    settings = settings or get_settings()
    if use_mock:
        return MockLLMClient()
    return ClaudeAPIClient(
        api_key=settings.anthropic_api_key,
        model=settings.llm_model,
        base_url=settings.anthropic_base_url,
        max_tokens=settings.llm_max_tokens,
        timeout_seconds=settings.llm_timeout_seconds,
        max_retries=settings.http_max_retries,
    )


class PromptBuilder(ABC):
    """Renders a PredictionContext as model input."""

    @abstractmethod
    def build_prompt(self, context: PredictionContext) -> str:
        pass


class DefaultPromptBuilder(PromptBuilder):
    """Game details, records, recent results, headlines and the JSON contract."""

    RECENT_GAMES = 3
    TOP_ARTICLES = 5

    def build_prompt(self, context: PredictionContext) -> str:
        game = context.game
        lines = [
            "You are an expert NFL analyst. Analyze this upcoming game and provide a prediction.",
            "",
            "GAME DETAILS:",
            f"Home Team: {game.home_team.name} ({game.home_team.abbreviation})",
            f"Away Team: {game.away_team.name} ({game.away_team.abbreviation})",
            f"Date: {game.scheduled_at:%b %d, %Y %I:%M %p}",
            f"Week: {game.week}, Season: {game.season}",
        ]
        if game.home_team.is_division_rival(game.away_team):
            lines.append("Division rivalry game")

        for label, team, games in (
            ("HOME", game.home_team, context.home_team_games),
            ("AWAY", game.away_team, context.away_team_games),
        ):
            if games:
                lines += ["", f"{label} TEAM RECORD: {self.format_record(team, games)}", "Recent games:"]
                lines += self.format_recent_games(team, games)

        for label, articles in (
            ("HOME", context.home_team_articles),
            ("AWAY", context.away_team_articles),
        ):
            if articles:
                lines += ["", f"{label} TEAM NEWS & SOCIAL MEDIA:"]
                lines += self.format_articles(articles)

        lines += [
            "",
            "ANALYSIS REQUIRED:",
            "1. Analyze team performance trends",
            "2. Consider injury reports and roster changes from news",
            "3. Evaluate momentum and narrative factors from social media",
            "4. Account for home field advantage",
            "5. Consider division rivalry dynamics if applicable",
            "",
            "Provide your response in this JSON format:",
            "{",
            '    "homeWinProbability": <number between 0.0 and 1.0>,',
            '    "confidence": <number between 0.0 and 1.0>,',
            '    "reasoning": "<detailed explanation>",',
            '    "keyFactors": ["factor1", "factor2", "factor3"]',
            "}",
        ]
        return "\n".join(lines)

    def format_record(self, team: Team, games: List[Game]) -> str:
        wins, losses, ties = team_record(team, games)
        return f"{wins}-{losses}-{ties}" if ties else f"{wins}-{losses}"

    def format_recent_games(self, team: Team, games: List[Game]) -> List[str]:
        completed = sorted(
            (g for g in games if g.is_completed and g.involves(team)),
            key=lambda g: g.scheduled_at,
            reverse=True,
        )
        rows = []
        for g in completed[:self.RECENT_GAMES]:
            home = g.is_home(team)
            team_score = g.outcome.home_score if home else g.outcome.away_score
            opp_score = g.outcome.away_score if home else g.outcome.home_score
            location = "vs" if home else "@"
            rows.append(
                f"  {g.result_for(team)} {location} {g.opponent_of(team).abbreviation} "
                f"{team_score}-{opp_score}"
            )
        return rows

    def format_articles(self, articles: List[Article]) -> List[str]:
        newest = sorted(articles, key=lambda a: a.published_at, reverse=True)
        return [f"  [{a.source.upper()}] {a.title}" for a in newest[:self.TOP_ARTICLES]]


class LLMPredictor(GamePredictor):
    """Delegates the forecast to an LLMClient."""

    name = "llm"

    def __init__(
        self,
        client: LLMClient,
        prompt_builder: Optional[PromptBuilder] = None,
        tie_epsilon: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.client = client
        self.prompt_builder = prompt_builder or DefaultPromptBuilder()
        self.tie_epsilon = tie_epsilon if tie_epsilon is not None else settings.tie_epsilon
        self.timeout_seconds = timeout_seconds or settings.llm_timeout_seconds

    async def predict(self, game: Game, features: Optional[Features] = None) -> Prediction:
        """Forecast from the bare game (no history or news in the prompt)."""
        return await self.predict_context(PredictionContext(game=game), features)

    async def predict_context(
        self, context: PredictionContext, features: Optional[Features] = None
    ) -> Prediction:
        prompt = self.prompt_builder.build_prompt(context)
        if features and features.get("analyst_notes"):
            prompt += f"\n\nADDITIONAL NOTES:\n{features['analyst_notes']}"

        try:
            response = await asyncio.wait_for(
                self.client.generate_prediction(prompt), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise SourceUnavailable(
                self.client.name, f"no answer within {self.timeout_seconds:.0f}s"
            ) from e

        reasoning = response.reasoning
        if response.key_factors:
            reasoning = f"{reasoning} Key factors: {'; '.join(response.key_factors)}".strip()

        return Prediction(
            game=context.game,
            home_win_probability=response.home_win_probability,
            confidence=response.confidence,
            predicted_winner=winner_from_probability(response.home_win_probability, self.tie_epsilon),
            reasoning=reasoning,
            predictor_name=self.name,
            key_factors=tuple(response.key_factors),
        )
