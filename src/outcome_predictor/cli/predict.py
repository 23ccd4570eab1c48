"""Command line entry point: forecast one game with the baseline + LLM ensemble."""

import asyncio
import logging
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from ..config import Settings, get_settings
from ..data import DataLoader, InMemoryGameRepository, SampleDataGenerator
from ..errors import OutcomePredictorError
from ..ml import BaselinePredictor, EnsemblePredictor, LLMPredictor, MockLLMClient, create_llm_client
from ..models import Game, Prediction, PredictionContext, Team, team_by_abbreviation
from ..utils import setup_logging, utc_now

console = Console()
logger = logging.getLogger(__name__)


def _resolve_team(abbreviation: str) -> Team:
    team = team_by_abbreviation(abbreviation)
    if team is None:
        raise click.BadParameter(f"Unknown team abbreviation: {abbreviation}")
    return team


def build_mock_pipeline(
    home: Team, away: Team, season: int, week: int, settings: Settings, seed: int = 42
) -> Tuple[DataLoader, EnsemblePredictor, Game]:
    """Sample season data behind mock sources, with the mock LLM."""
    generator = SampleDataGenerator(seed=seed)
    season_games = generator.generate_season(season, weeks=max(1, week - 1))
    game = generator.upcoming_game(home, away, season=season, week=week)
    articles = generator.generate_articles([home, away], reference=game.scheduled_at)

    loader = (
        DataLoader.builder(settings)
        .with_mock_scores(season_games)
        .with_mock_news(articles)
        .build()
    )
    baseline = BaselinePredictor(InMemoryGameRepository(season_games), settings=settings)
    llm = LLMPredictor(MockLLMClient(), settings=settings)
    return loader, EnsemblePredictor.standard(baseline, llm, settings), game


def build_live_pipeline(
    home: Team, away: Team, season: int, week: int, settings: Settings
) -> Tuple[DataLoader, EnsemblePredictor, Game]:
    """ESPN (+ NewsAPI when keyed) with the Claude client when keyed."""
    builder = DataLoader.builder(settings).with_espn()
    if settings.news_api_key:
        builder = builder.with_news_api()
    else:
        console.print("[yellow]NEWS_API_KEY not set, predicting without news[/yellow]")
    loader = builder.build()

    if settings.has_llm_credentials:
        client = create_llm_client(settings)
    else:
        console.print("[yellow]ANTHROPIC_API_KEY not set, using the mock LLM analyst[/yellow]")
        client = MockLLMClient()

    baseline = BaselinePredictor(settings=settings)
    llm = LLMPredictor(client, settings=settings)
    game = Game(home_team=home, away_team=away, scheduled_at=utc_now(), week=week, season=season)
    return loader, EnsemblePredictor.standard(baseline, llm, settings), game


async def run_prediction(
    loader: DataLoader,
    ensemble: EnsemblePredictor,
    game: Game,
    lookback_days: Optional[int] = None,
    force_refresh: bool = False,
) -> Tuple[PredictionContext, Prediction]:
    async with loader:
        context = await loader.load_prediction_context(game, lookback_days, force_refresh)
        try:
            prediction = await ensemble.predict_context(context)
        finally:
            for predictor, _ in ensemble.members:
                if isinstance(predictor, LLMPredictor):
                    await predictor.client.close()
    return context, prediction


def display_prediction(context: PredictionContext, prediction: Prediction) -> None:
    game = prediction.game

    data_table = Table(title="Prediction Context")
    data_table.add_column("Source")
    data_table.add_column(game.home_team.abbreviation, justify="right")
    data_table.add_column(game.away_team.abbreviation, justify="right")
    data_table.add_row("Games", str(len(context.home_team_games)), str(len(context.away_team_games)))
    data_table.add_row(
        "Articles", str(len(context.home_team_articles)), str(len(context.away_team_articles))
    )
    console.print(data_table)

    table = Table(title=f"{game.away_team.name} @ {game.home_team.name}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row(f"{game.home_team.abbreviation} win probability", f"{prediction.home_win_probability:.1%}")
    table.add_row(f"{game.away_team.abbreviation} win probability", f"{prediction.away_win_probability:.1%}")
    table.add_row("Confidence", f"{prediction.confidence:.1%}")
    table.add_row("Predicted winner", prediction.predicted_winner.value.upper())
    console.print(table)

    console.print("\n[bold]Reasoning[/bold]")
    console.print(prediction.reasoning)


@click.command()
@click.option("--home", required=True, help="Home team abbreviation (e.g. KC)")
@click.option("--away", required=True, help="Away team abbreviation (e.g. BUF)")
@click.option("--season", type=int, help="NFL season year (defaults to current season)")
@click.option("--week", type=int, default=11, show_default=True, help="Week of the game")
@click.option(
    "--mock/--live",
    default=True,
    help="Use generated sample data and the mock LLM (default), or live sources",
)
@click.option("--lookback-days", type=int, help="Days of news to include")
@click.option("--force-refresh", is_flag=True, help="Bypass cached data")
@click.option("--seed", type=int, default=42, show_default=True, help="Sample data seed (mock mode)")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def main(home, away, season, week, mock, lookback_days, force_refresh, seed, verbose):
    """Predict the outcome of an NFL game."""
    setup_logging(level="DEBUG" if verbose else "WARNING", force=True)

    settings = get_settings()
    season = season or settings.current_season
    home_team = _resolve_team(home)
    away_team = _resolve_team(away)
    if home_team == away_team:
        raise click.BadParameter("Home and away teams must differ")

    console.print(
        f"[bold blue]Outcome Predictor[/bold blue] {away_team.abbreviation} @ "
        f"{home_team.abbreviation}, week {week} {season} ({'mock' if mock else 'live'} data)"
    )

    try:
        if mock:
            loader, ensemble, game = build_mock_pipeline(
                home_team, away_team, season, week, settings, seed
            )
        else:
            loader, ensemble, game = build_live_pipeline(
                home_team, away_team, season, week, settings
            )
        context, prediction = asyncio.run(
            run_prediction(loader, ensemble, game, lookback_days, force_refresh)
        )
    except OutcomePredictorError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        if verbose:
            console.print_exception()
        raise click.Abort()

    display_prediction(context, prediction)


if __name__ == "__main__":
    main()
