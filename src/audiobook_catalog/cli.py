"""CLI entry point for the audiobook catalog."""

import json
from datetime import timedelta
from pathlib import Path

import click
from loguru import logger

from .builder import build_from_file, build_from_folder
from .config import CatalogConfig
from .errors import BookError
from .models import Book

log = logger.bind(stage="cli")


def duration_to_timestamp(duration: timedelta) -> str:
    """Convert a duration to HH:MM:SS."""
    total = int(duration.total_seconds())
    h = total // 3600
    m = (total % 3600) // 60
    s = total % 60
    return f"{h:02d}:{m:02d}:{s:02d}"


def _print_summary(book: Book) -> None:
    click.echo(f"{book.name} -- {book.author} ({duration_to_timestamp(book.duration)})")
    if book.cover_art_path:
        click.echo(f"  cover: {book.cover_art_path}")
    for book_file in book.files:
        click.echo(f"  {book_file.path.name}")
        for chapter in book_file.chapters:
            click.echo(f"    {duration_to_timestamp(chapter.duration)}  {chapter.title}")


@click.command()
@click.argument("source_path", type=click.Path(exists=True))
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(["json", "summary"]),
    default=None,
    help="Output as JSON or a human-readable chapter list. Defaults to json.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True),
    default=None,
    help="Path to .env file.",
)
def main(
    source_path: str,
    output_format: str | None,
    verbose: bool,
    config_file: str | None,
) -> None:
    """Describe an audiobook file or folder: name, author, chapters, cover art."""
    source = Path(source_path).resolve()

    config_kwargs: dict = {}
    if verbose:
        config_kwargs["verbose"] = True
    if output_format:
        config_kwargs["output_format"] = output_format
    if config_file:
        config_kwargs["_env_file"] = config_file

    config = CatalogConfig(**config_kwargs)
    config.setup_logging()

    log.debug(f"Building book from {source}")
    try:
        if source.is_dir():
            book = build_from_folder(source)
        else:
            book = build_from_file(source)
    except BookError as e:
        log.error(f"{e.kind}: {e}")
        raise click.ClickException(str(e)) from e

    if config.output_format == "summary":
        _print_summary(book)
    else:
        click.echo(json.dumps(book.to_dict(), indent=2))
