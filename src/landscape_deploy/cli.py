"""Command-line interface for Landscape Deploy."""

import logging
from pathlib import Path
from typing import Optional

import typer
from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from typing_extensions import Annotated

from landscape_deploy import __version__
from landscape_deploy.config import Config
from landscape_deploy.config_manager import get_config_path, load_config, save_config
from landscape_deploy.exceptions import DeployError
from landscape_deploy.sync_engine import SiteDeploy

app = typer.Typer(
    name="landscape-deploy",
    help="Deploy a landscape website to AWS S3",
    add_completion=False,
)
console = Console()


# Color constants for consistent styling
class Colors:
    RED = "[red]"
    GREEN = "[green]"
    RESET = "[/red]"
    GREEN_RESET = "[/green]"


# Message templates for consistent formatting
class Messages:
    # Error messages
    CONFIG_LOAD_ERROR = "Error loading configuration: {error}"
    DEPLOY_ERROR = "Deploy failed: {error}"
    BUCKET_NOT_CONFIGURED = "Error: S3 bucket not configured. Use --bucket or run 'landscape-deploy init'"
    LANDSCAPE_DIR_NOT_FOUND = "Error: landscape directory not found: {path}"

    # Success messages
    CONFIG_SAVED = "Configuration saved to {path}"

    # Result states
    DRY_RUN_COMPLETED = "Dry run completed"
    DEPLOY_COMPLETED = "Landscape website deployed"


# Common message helpers
def error_msg(message: str) -> str:
    """Format error message with consistent styling."""
    return f"{Colors.RED}{message}{Colors.RESET}"


def success_msg(message: str) -> str:
    """Format success message with consistent styling."""
    return f"{Colors.GREEN}{message}{Colors.GREEN_RESET}"


def format_file_count(file_count: int, action: str) -> str:
    """Format file count message with consistent styling."""
    return f"\n{action} {file_count} file(s)"


def setup_logging(verbose: bool) -> None:
    """Send log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # boto's debug output drowns ours
    for name in ("boto3", "botocore", "s3transfer", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _load_and_configure(bucket: Optional[str], concurrency: Optional[int]) -> Config:
    """Load configuration from the environment and apply overrides."""
    try:
        config = Config.from_env()
        if bucket:
            config.s3.bucket_name = bucket
        if concurrency:
            config.s3.upload_concurrency = concurrency
        return config
    except Exception as e:
        console.print(error_msg(Messages.CONFIG_LOAD_ERROR.format(error=e)))
        raise typer.Exit(1)


def _resolve_defaults(bucket: Optional[str], landscape_dir: Optional[str]):
    """Fill missing arguments from the saved user configuration."""
    saved = load_config(get_config_path()) or {}
    return bucket or saved.get("bucket"), landscape_dir or saved.get("landscape_dir")


def _validate_configuration(config: Config) -> None:
    """Validate required configuration settings."""
    if not config.s3.bucket_name:
        console.print(error_msg(Messages.BUCKET_NOT_CONFIGURED))
        raise typer.Exit(1)


def _resolve_landscape_dir(landscape_dir: Optional[str]) -> Path:
    """Resolve the landscape directory to deploy."""
    path = Path(landscape_dir).resolve() if landscape_dir else Path.cwd()
    if not path.is_dir():
        console.print(error_msg(Messages.LANDSCAPE_DIR_NOT_FOUND.format(path=path)))
        raise typer.Exit(1)
    return path


def _display_plan(result: dict) -> None:
    """Display the upload decision of every file."""
    table = Table(title="Deploy Plan", border_style="bright_black")
    table.add_column("Key", style="bright_black")
    table.add_column("Decision", style="bright_black")

    for outcome in result["files"]:
        if outcome.failed:
            table.add_row(outcome.key, error_msg(escape(str(outcome.error.cause))))
        else:
            table.add_row(outcome.key, outcome.decision.value)

    console.print(table)


def _display_results(result: dict) -> None:
    """Display deploy results."""
    if result["dry_run"]:
        _display_plan(result)
        console.print(format_file_count(result["files_uploaded"], "Would upload"))
        console.print(success_msg(Messages.DRY_RUN_COMPLETED))
    else:
        console.print(format_file_count(result["files_uploaded"], "Uploaded"))
        for decision, count in sorted(result["files_skipped"].items()):
            console.print(f"[bright_black]{decision}: {count}[/bright_black]")
        console.print(success_msg(Messages.DEPLOY_COMPLETED))
    console.print()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"landscape-deploy {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """Deploy a landscape website to AWS S3."""


@app.command()
def deploy(
    bucket: Annotated[Optional[str], typer.Option("--bucket", "-b", help="Target S3 bucket")] = None,
    landscape_dir: Annotated[
        Optional[str], typer.Option("--landscape-dir", "-d", help="Landscape website directory")
    ] = None,
    concurrency: Annotated[
        Optional[int], typer.Option("--concurrency", min=1, help="Files uploaded concurrently")
    ] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Show what would be uploaded")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
) -> None:
    """Deploy the landscape website directory to S3."""
    bucket, landscape_dir = _resolve_defaults(bucket, landscape_dir)

    config = _load_and_configure(bucket, concurrency)
    _validate_configuration(config)
    verbose = verbose or config.verbose
    setup_logging(verbose)

    path = _resolve_landscape_dir(landscape_dir)

    try:
        result = SiteDeploy(config).deploy(path, dry_run=dry_run)
    except (DeployError, BotoCoreError, ClientError) as e:
        console.print(error_msg(Messages.DEPLOY_ERROR.format(error=escape(str(e)))))
        if verbose:
            console.print_exception()
        raise typer.Exit(1)

    _display_results(result)


@app.command()
def init(
    bucket: Annotated[str, typer.Option("--bucket", "-b", help="Default S3 bucket")],
    landscape_dir: Annotated[
        Optional[str], typer.Option("--landscape-dir", "-d", help="Default landscape website directory")
    ] = None,
) -> None:
    """Save default deploy settings."""
    config_data = {"bucket": bucket}
    if landscape_dir:
        config_data["landscape_dir"] = str(Path(landscape_dir).resolve())

    config_path = get_config_path()
    save_config(config_path, config_data)
    console.print(success_msg(Messages.CONFIG_SAVED.format(path=config_path)))


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
