"""Tests for the LLM analyst predictor and its clients."""

import asyncio

import pytest


class TestParseLLMResponse:
    """Test extraction of the JSON answer from model text."""

    def test_fenced_json(self):
        """A ```json block is preferred."""
        from outcome_predictor.ml import parse_llm_response

        text = (
            "Here is my analysis.\n```json\n"
            '{"homeWinProbability": 0.62, "confidence": 0.7, '
            '"reasoning": "Better offense", "keyFactors": ["QB play"]}\n```'
        )

        response = parse_llm_response(text)

        assert response.home_win_probability == 0.62
        assert response.away_win_probability == pytest.approx(0.38)
        assert response.key_factors == ["QB play"]

    def test_json_in_prose(self):
        """The outermost braces are used when there is no fence."""
        from outcome_predictor.ml import parse_llm_response

        text = 'I think {"homeWinProbability": 0.4, "confidence": 0.55} is fair.'

        response = parse_llm_response(text)

        assert response.home_win_probability == 0.4
        assert response.reasoning == ""

    def test_snake_case_fields_accepted(self):
        """Field names work as well as aliases."""
        from outcome_predictor.ml import parse_llm_response

        response = parse_llm_response('{"home_win_probability": 0.5, "confidence": 0.5}')

        assert response.confidence == 0.5

    @pytest.mark.parametrize("text", [
        "No JSON at all",
        '{"homeWinProbability": 1.4, "confidence": 0.5}',
        '{"confidence": 0.5}',
        "{not json}",
    ])
    def test_invalid_responses_raise(self, text):
        """Missing, malformed or out-of-range answers are SourceUnavailable."""
        from outcome_predictor.errors import SourceUnavailable
        from outcome_predictor.ml import parse_llm_response

        with pytest.raises(SourceUnavailable):
            parse_llm_response(text)


class TestClaudeAPIClient:
    """Test the Anthropic client without network access."""

    def test_requires_api_key(self):
        """Constructing without a key raises MissingCredential."""
        from outcome_predictor.errors import MissingCredential
        from outcome_predictor.ml import ClaudeAPIClient

        with pytest.raises(MissingCredential) as exc_info:
            ClaudeAPIClient(api_key=None)

        assert exc_info.value.credential == "ANTHROPIC_API_KEY"

    def test_create_llm_client_without_key(self, settings):
        """The factory refuses the real client without a key but allows the mock."""
        from outcome_predictor.errors import MissingCredential
        from outcome_predictor.ml import MockLLMClient, create_llm_client

        with pytest.raises(MissingCredential):
            create_llm_client(settings)

        assert isinstance(create_llm_client(settings, use_mock=True), MockLLMClient)

    def test_extract_text_joins_text_blocks(self):
        """Only text blocks contribute to the answer."""
        from outcome_predictor.ml import ClaudeAPIClient

        client = ClaudeAPIClient(api_key="sk-test")
        data = {"content": [
            {"type": "text", "text": '{"homeWinProbability": 0.6,'},
            {"type": "tool_use", "id": "x"},
            {"type": "text", "text": ' "confidence": 0.7}'},
        ]}

        assert client.extract_text(data) == '{"homeWinProbability": 0.6, "confidence": 0.7}'

    def test_extract_text_empty_raises(self):
        """A response without text is a source failure."""
        from outcome_predictor.errors import SourceUnavailable
        from outcome_predictor.ml import ClaudeAPIClient

        with pytest.raises(SourceUnavailable):
            ClaudeAPIClient(api_key="sk-test").extract_text({"content": []})

    def test_generate_prediction_posts_messages_request(self):
        """The request carries the model, prompt and version header."""
        from unittest.mock import AsyncMock, patch
        from outcome_predictor.ml import ClaudeAPIClient

        client = ClaudeAPIClient(api_key="sk-test", model="test-model")
        reply = {"content": [{"type": "text", "text": '{"homeWinProbability": 0.6, "confidence": 0.7}'}]}

        with patch.object(ClaudeAPIClient, "_post_json", new=AsyncMock(return_value=reply)) as post:
            response = asyncio.run(client.generate_prediction("Who wins?"))

        assert response.home_win_probability == 0.6
        payload = post.call_args.args[1]
        headers = post.call_args.kwargs["headers"]
        assert payload["model"] == "test-model"
        assert payload["messages"][0]["content"] == "Who wins?"
        assert headers["x-api-key"] == "sk-test"
        assert headers["anthropic-version"] == "2023-06-01"


class TestMockLLMClient:
    """Test the deterministic mock client."""

    def test_same_prompt_same_answer(self):
        """Derived answers are reproducible and within the documented bands."""
        from outcome_predictor.ml import MockLLMClient

        client = MockLLMClient()

        first = asyncio.run(client.generate_prediction("KC vs BUF"))
        second = asyncio.run(client.generate_prediction("KC vs BUF"))

        assert first == second
        assert 0.35 <= first.home_win_probability <= 0.65
        assert 0.5 <= first.confidence <= 0.8
        assert client.call_count == 2

    def test_fixed_response(self):
        """A configured response is returned verbatim."""
        from outcome_predictor.ml import LLMResponse, MockLLMClient

        fixed = LLMResponse(home_win_probability=0.7, confidence=0.8)

        assert asyncio.run(MockLLMClient(response=fixed).generate_prediction("x")) is fixed

    def test_failure(self):
        """fail=True raises SourceUnavailable."""
        from outcome_predictor.errors import SourceUnavailable
        from outcome_predictor.ml import MockLLMClient

        with pytest.raises(SourceUnavailable):
            asyncio.run(MockLLMClient(fail=True).generate_prediction("x"))


class TestDefaultPromptBuilder:
    """Test prompt rendering."""

    def test_prompt_contains_game_records_and_news(
        self, upcoming_game, record_games, make_article
    ):
        """Teams, records, recent results, headlines and the JSON contract appear."""
        from outcome_predictor.ml import DefaultPromptBuilder
        from outcome_predictor.models import PredictionContext

        context = PredictionContext(
            game=upcoming_game,
            home_team_games=record_games("KC", 4, 1, exclude=("BUF",)),
            away_team_games=record_games("BUF", 2, 3, exclude=("KC",)),
            home_team_articles=[make_article("KC", title="Chiefs star returns")],
        )

        prompt = DefaultPromptBuilder().build_prompt(context)

        assert "Home Team: Kansas City Chiefs (KC)" in prompt
        assert "Away Team: Buffalo Bills (BUF)" in prompt
        assert "HOME TEAM RECORD: 4-1" in prompt
        assert "AWAY TEAM RECORD: 2-3" in prompt
        assert "[ESPN] Chiefs star returns" in prompt
        assert '"homeWinProbability"' in prompt
        assert "AWAY TEAM NEWS" not in prompt

    def test_recent_games_are_limited_and_newest_first(self, make_game):
        """Only the latest three results are listed."""
        from outcome_predictor.ml import DefaultPromptBuilder
        from outcome_predictor.models import team_by_abbreviation

        kc = team_by_abbreviation("KC")
        games = [
            make_game(home="KC", away="DEN", home_score=20, away_score=10, week=w)
            for w in range(1, 6)
        ]
        games.append(make_game(home="LV", away="KC", home_score=3, away_score=27, week=6))

        rows = DefaultPromptBuilder().format_recent_games(kc, games)

        assert len(rows) == 3
        assert rows[0].strip() == "W @ LV 27-3"

    def test_division_rivalry_flagged(self, make_game, kickoff):
        """Division games are called out."""
        from outcome_predictor.ml import DefaultPromptBuilder
        from outcome_predictor.models import PredictionContext

        game = make_game(home="KC", away="DEN", scheduled_at=kickoff)

        assert "Division rivalry game" in DefaultPromptBuilder().build_prompt(PredictionContext(game=game))


class TestLLMPredictor:
    """Test the predictor on top of a client."""

    def test_fixed_response_becomes_prediction(self, upcoming_game, settings):
        """Probability, confidence and factors carry through."""
        from outcome_predictor.ml import LLMPredictor, LLMResponse, MockLLMClient
        from outcome_predictor.models import Winner

        client = MockLLMClient(LLMResponse(
            home_win_probability=0.7, confidence=0.8,
            reasoning="Chiefs at home.", key_factors=["rest", "home crowd"],
        ))

        prediction = asyncio.run(LLMPredictor(client, settings=settings).predict(upcoming_game))

        assert prediction.home_win_probability == 0.7
        assert prediction.confidence == 0.8
        assert prediction.predicted_winner == Winner.HOME
        assert prediction.predictor_name == "llm"
        assert prediction.key_factors == ("rest", "home crowd")
        assert "rest; home crowd" in prediction.reasoning

    def test_analyst_notes_reach_prompt(self, upcoming_game, settings):
        """The analyst_notes feature is appended to the prompt."""
        from outcome_predictor.ml import LLMPredictor, MockLLMClient

        client = MockLLMClient()
        asyncio.run(
            LLMPredictor(client, settings=settings).predict(
                upcoming_game, features={"analyst_notes": "Snow expected"}
            )
        )

        assert client.last_prompt.endswith("Snow expected")

    def test_slow_client_times_out(self, upcoming_game, settings):
        """A client slower than the timeout surfaces as SourceUnavailable."""
        from outcome_predictor.errors import SourceUnavailable
        from outcome_predictor.ml import LLMPredictor, MockLLMClient

        predictor = LLMPredictor(MockLLMClient(delay=1.0), timeout_seconds=0.01, settings=settings)

        with pytest.raises(SourceUnavailable):
            asyncio.run(predictor.predict(upcoming_game))

    def test_client_failure_propagates(self, upcoming_game, settings):
        """Client errors are not swallowed by the predictor."""
        from outcome_predictor.errors import SourceUnavailable
        from outcome_predictor.ml import LLMPredictor, MockLLMClient

        with pytest.raises(SourceUnavailable):
            asyncio.run(LLMPredictor(MockLLMClient(fail=True), settings=settings).predict(upcoming_game))
