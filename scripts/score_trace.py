# ABOUTME: Provides a CLI that scores answer histories and prints leaderboards and explanations.
# ABOUTME: Reads canonical answer events from parquet or CSV; all scoring stays in src/.

import logging
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from src.common.events import frame_to_events
from src.common.explainability import explain_score, format_score_explanation
from src.common.leaderboard import BREAKDOWN_COLUMNS, build_skill_leaderboard
from src.common.schemas import AnswerEvent, ScoreInput, ScoreResult
from src.prep_score.aggregation import utc_now
from src.prep_score.config import DEFAULT_CONFIG, DEFAULT_SKILL_CONFIG, load_scoring_config
from src.prep_score.scoring import compute_score
from src.prep_score.skill import compute_skill_score

console = Console()
app = typer.Typer(help="Score answer histories with the preparation-score algorithm.")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_configs(config: Optional[Path]):
    if config is None:
        return DEFAULT_CONFIG, DEFAULT_SKILL_CONFIG
    if not config.exists():
        console.print(f"[red]Missing config at {config}[/red]")
        raise typer.Exit(code=1)
    try:
        return load_scoring_config(config)
    except ValueError as exc:
        console.print(f"[red]Invalid config at {config}: {exc}[/red]")
        raise typer.Exit(code=1)


def _load_events(events_path: Path) -> pd.DataFrame:
    if not events_path.exists():
        console.print(f"[red]Missing events file at {events_path}[/red]")
        raise typer.Exit(code=1)
    if events_path.suffix == ".parquet":
        return pd.read_parquet(events_path)
    return pd.read_csv(events_path)


def _user_events(events_df: pd.DataFrame, user_id: str, quiz_id: Optional[str]) -> pd.DataFrame:
    if "user_id" not in events_df.columns:
        console.print("[red]Answer events are missing required columns: user_id.[/red]")
        raise typer.Exit(code=1)
    scoped = events_df[events_df["user_id"].astype(str) == user_id]
    if quiz_id is not None and "quiz_id" in scoped.columns:
        scoped = scoped[scoped["quiz_id"].astype(str) == quiz_id]
    if scoped.empty:
        console.print(f"[red]No answers found for user {user_id}[/red]")
        raise typer.Exit(code=1)
    return scoped


def _answer_events(events_path: Path, user_id: str, quiz_id: Optional[str]) -> List[AnswerEvent]:
    try:
        return frame_to_events(_user_events(_load_events(events_path), user_id, quiz_id))
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


def _breakdown_table(result: ScoreResult) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Component")
    table.add_column("Value")
    for name, value in result.breakdown().items():
        table.add_row(name, f"{value:.3f}")
    table.add_row("unique_questions", str(result.unique_questions))
    table.add_row("total_answers", str(result.total_answers))
    return table


@app.command()
def score(
    user_id: str = typer.Option(..., "--user-id", help="User whose answers to score."),
    bank_size: int = typer.Option(..., "--bank-size", help="Distinct questions available in the quiz bank."),
    events_path: Path = typer.Option(Path("data/answer_events.parquet"), "--events-path", help="Answer events parquet or CSV."),
    quiz_id: Optional[str] = typer.Option(None, "--quiz-id", help="Restrict to one quiz."),
    config: Optional[Path] = typer.Option(None, "--config", help="Scoring config YAML."),
) -> None:
    """
    Print the preparation score and its breakdown for one user.
    """
    prep_config, _ = _load_configs(config)
    events = _answer_events(events_path, user_id, quiz_id)
    result = compute_score(ScoreInput(answers=events, bank_size=bank_size), config=prep_config)

    console.rule("[bold blue]Preparation Score[/bold blue]")
    console.print(f"[bold]User:[/] {user_id}")
    console.print(f"[bold]Score:[/] {result.score}/100")
    console.print(f"[bold]Computed at:[/] {result.computed_at.isoformat()}")
    console.print()
    console.print(_breakdown_table(result))


@app.command()
def leaderboard(
    bank_size: int = typer.Option(..., "--bank-size", help="Distinct questions available in the quiz bank."),
    events_path: Path = typer.Option(Path("data/answer_events.parquet"), "--events-path", help="Answer events parquet or CSV."),
    quiz_id: Optional[str] = typer.Option(None, "--quiz-id", help="Restrict to one quiz."),
    limit: int = typer.Option(50, "--limit", help="Rows to keep per quiz."),
    output: Optional[Path] = typer.Option(None, "--output", help="Write the board to parquet or CSV."),
    config: Optional[Path] = typer.Option(None, "--config", help="Scoring config YAML."),
) -> None:
    """
    Rank every user by preparation score.
    """
    prep_config, _ = _load_configs(config)
    events_df = _load_events(events_path)
    if quiz_id is not None and "quiz_id" in events_df.columns:
        events_df = events_df[events_df["quiz_id"].astype(str) == quiz_id]

    try:
        board = build_skill_leaderboard(events_df, bank_size=bank_size, config=prep_config, limit=limit)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    if board.empty:
        console.print("[yellow]No answers to rank.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    for column in ["rank", "quiz_id", "user_id", "score"] + BREAKDOWN_COLUMNS:
        table.add_column(column)
    for _, row in board.iterrows():
        breakdown = [f"{row[col]:.2f}" for col in BREAKDOWN_COLUMNS]
        table.add_row(str(row["rank"]), str(row["quiz_id"] or "-"), str(row["user_id"]), str(row["score"]), *breakdown)
    console.print(table)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        if output.suffix == ".parquet":
            board.to_parquet(output, index=False)
        else:
            board.to_csv(output, index=False)
        console.print(f"[bold]Ranked {len(board):,} rows; board saved to {output}[/bold]")


@app.command()
def explain(
    user_id: str = typer.Option(..., "--user-id", help="User whose score to explain."),
    bank_size: int = typer.Option(..., "--bank-size", help="Distinct questions available in the quiz bank."),
    events_path: Path = typer.Option(Path("data/answer_events.parquet"), "--events-path", help="Answer events parquet or CSV."),
    quiz_id: Optional[str] = typer.Option(None, "--quiz-id", help="Restrict to one quiz."),
    config: Optional[Path] = typer.Option(None, "--config", help="Scoring config YAML."),
) -> None:
    """
    Explain which component holds a user's preparation score back.
    """
    prep_config, _ = _load_configs(config)
    events = _answer_events(events_path, user_id, quiz_id)
    result = compute_score(ScoreInput(answers=events, bank_size=bank_size), config=prep_config)
    console.print(format_score_explanation(explain_score(result, prep_config)))


@app.command()
def skill(
    user_id: str = typer.Option(..., "--user-id", help="User whose answers to score."),
    events_path: Path = typer.Option(Path("data/answer_events.parquet"), "--events-path", help="Answer events parquet or CSV."),
    quiz_id: Optional[str] = typer.Option(None, "--quiz-id", help="Restrict to one quiz."),
    config: Optional[Path] = typer.Option(None, "--config", help="Scoring config YAML."),
) -> None:
    """
    Print the skill-score variant (official bonus and trend) for one user.
    """
    _, skill_config = _load_configs(config)
    events = _answer_events(events_path, user_id, quiz_id)
    result = compute_skill_score(events, config=skill_config)

    console.print(f"[bold]Skill score:[/] {result.score:.2f}")
    console.print(f"  accuracy_weighted: {result.accuracy_weighted:.4f}")
    console.print(f"  volume_factor: {result.volume_factor:.4f}")
    console.print(f"  trend_multiplier: {result.trend_multiplier:.4f}")


@app.command()
def simulate(
    unique: int = typer.Option(..., "--unique", help="Distinct questions answered."),
    total: int = typer.Option(..., "--total", help="Total answers, retries included."),
    correct: int = typer.Option(..., "--correct", help="Correct answers."),
    bank_size: int = typer.Option(1000, "--bank-size", help="Distinct questions available in the quiz bank."),
    days_ago: float = typer.Option(0.0, "--days-ago", help="Spread answers uniformly over this many past days."),
    seed: int = typer.Option(42, "--seed", help="Random seed."),
) -> None:
    """
    Score a synthetic answer history to explore how the components react.
    """
    if unique > total or correct > total or min(unique, total, correct) < 0 or (total > 0 and unique == 0):
        raise typer.BadParameter("Expected 0 < unique <= total and 0 <= correct <= total.")

    now = utc_now()
    answers = synthesize_history(unique, total, correct, days_ago, seed, now)
    result = compute_score(ScoreInput(answers=answers, bank_size=bank_size), now=now)

    console.print(f"[bold]Scenario:[/] {unique} unique / {total} total / {correct} correct, bank {bank_size}")
    console.print(f"[bold]Score:[/] {result.score}/100")
    console.print(_breakdown_table(result))


def synthesize_history(unique: int, total: int, correct: int, days_ago: float, seed: int, now):
    """Random history touching every one of ``unique`` questions at least once."""
    rng = np.random.default_rng(seed)
    question_ids = np.arange(unique)
    if total > unique and unique > 0:
        question_ids = np.concatenate([question_ids, rng.integers(0, unique, size=total - unique)])
    correct_mask = np.zeros(total, dtype=bool)
    correct_mask[rng.choice(total, size=correct, replace=False)] = True
    ages = rng.uniform(0.0, days_ago, size=total) if days_ago > 0 else np.zeros(total)

    return [
        AnswerEvent(
            question_id=f"q{int(qid)}",
            is_correct=bool(is_correct),
            timestamp=now - timedelta(days=float(age)),
        )
        for qid, is_correct, age in zip(question_ids, correct_mask, ages)
    ]


if __name__ == "__main__":
    app()
