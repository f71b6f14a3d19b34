"""Command-line interface for the Tazkiyah discovery survey."""

import json
import logging
import sys
from pathlib import Path

import click

from tazkiyah.config.config import ConfigManager
from tazkiyah.config.logging_config import setup_survey_logging
from tazkiyah.storage.database import DatabaseService
from tazkiyah.storage.survey_repository import SqlSurveyRepository
from tazkiyah.survey.diseases import DISEASE_LABELS, PHASE1_DISEASES, PHASE2_DISEASES
from tazkiyah.survey.schemas import Phase1Request, Phase2Request, ReflectionRequest
from tazkiyah.survey.use_cases import (
    GenerateResultsUseCase,
    ResetSurveyUseCase,
    SubmitPhase1UseCase,
    SubmitPhase2UseCase,
    SubmitReflectionUseCase,
    ValidateSurveyProgressUseCase,
)

logger = logging.getLogger(__name__)


def _open_repository():
    config = ConfigManager.load_config()
    ConfigManager.initialize_directories(config)
    db_service = DatabaseService(config)
    db_service.create_tables()
    return db_service, SqlSurveyRepository(db_service)


def _echo_result(step: str, result) -> None:
    if result.is_err:
        click.echo(f"{step} failed: {result.message}", err=True)
        sys.exit(1)
    click.echo(f"== {step}")
    click.echo(json.dumps(result.value, indent=2))


@click.group()
def cli():
    """Tazkiyah Discovery Survey - guided spiritual self-assessment."""
    config = ConfigManager.load_config()
    setup_survey_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
        enable_file_logging=config.enable_file_logging,
    )


@cli.command()
def init_db():
    """Initialize the database and create tables."""
    try:
        config = ConfigManager.load_config()
        ConfigManager.validate_environment(config)
        ConfigManager.initialize_directories(config)

        db_service = DatabaseService(config)
        db_service.create_tables()

        click.echo(f"Database initialized at: {config.survey_db_path}")
        db_service.close()

    except Exception as e:
        click.echo(f"Error initializing database: {e}", err=True)
        sys.exit(1)


@cli.command()
def questions():
    """List the survey questions by phase."""
    for phase, diseases in ((1, PHASE1_DISEASES), (2, PHASE2_DISEASES)):
        click.echo(f"Phase {phase}")
        for disease in diseases:
            click.echo(f"  {disease.value}: {DISEASE_LABELS[disease]} (1-5)")
    click.echo("Reflection")
    click.echo("  strongestStruggle: 10-500 characters")
    click.echo("  dailyHabit: 10-500 characters")


@cli.command()
@click.option("--user-id", required=True, help="User ID to check")
def progress(user_id: str):
    """Show a user's survey progress."""
    try:
        db_service, repository = _open_repository()
    except Exception as e:
        click.echo(f"Error opening database: {e}", err=True)
        sys.exit(1)

    try:
        result = ValidateSurveyProgressUseCase(repository).get_current_progress(user_id)
        _echo_result("Progress", result)
    finally:
        db_service.close()


@cli.command()
@click.argument("answers_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--user-id", required=True, help="User ID to submit answers for")
def run(answers_file: Path, user_id: str):
    """Walk a user through the whole survey using answers from a JSON file.

    The file holds "phase1", "phase2" and "reflection" objects keyed with
    the camelCase request field names.
    """
    try:
        answers = json.loads(answers_file.read_text(encoding="utf-8"))
        phase1 = Phase1Request.model_validate(answers["phase1"])
        phase2 = Phase2Request.model_validate(answers["phase2"])
        reflection = ReflectionRequest.model_validate(answers["reflection"])
    except Exception as e:
        click.echo(f"Error reading answers: {e}", err=True)
        sys.exit(1)

    try:
        db_service, repository = _open_repository()
    except Exception as e:
        click.echo(f"Error opening database: {e}", err=True)
        sys.exit(1)

    try:
        navigator = ValidateSurveyProgressUseCase(repository)
        _echo_result("Start", navigator.get_current_progress(user_id))
        _echo_result("Welcome", navigator.advance_to_next_phase(user_id))
        _echo_result("Phase 1", SubmitPhase1UseCase(repository).execute(user_id, phase1))
        _echo_result("Phase 2", SubmitPhase2UseCase(repository).execute(user_id, phase2))
        _echo_result(
            "Reflection", SubmitReflectionUseCase(repository).execute(user_id, reflection)
        )
        _echo_result("Results", GenerateResultsUseCase(repository).execute(user_id))
    finally:
        db_service.close()


@cli.command()
@click.option("--user-id", required=True, help="User ID to reset")
@click.option("--force", is_flag=True, help="Reset without confirmation")
def reset(user_id: str, force: bool):
    """Reset a user's survey so it can be retaken."""
    if not force:
        click.confirm(
            f"This will delete all survey answers and results for {user_id}. Continue?",
            abort=True,
        )

    try:
        db_service, repository = _open_repository()
    except Exception as e:
        click.echo(f"Error opening database: {e}", err=True)
        sys.exit(1)

    try:
        _echo_result("Reset", ResetSurveyUseCase(repository).execute(user_id))
    finally:
        db_service.close()


if __name__ == "__main__":
    cli()
