"""Command-line interface for Tuzuru.

This module defines the CLI commands using Click framework.

Commands:
- init: Scaffold a new blog in the current directory.
- generate: Generate the blog into the output directory.
- list: Print all posts as CSV.
- amend: Override a post's author or publication date.
- preview: Serve the blog locally, regenerating on change.
"""

from __future__ import annotations

import csv
import io
from pathlib import Path

import click
import questionary

from . import __version__
from .errors import TuzuruError
from .logging import configure_logging

_CONFIG_OPTION = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Path to tuzuru.yaml (defaults to ./tuzuru.yaml)",
)

LIST_HEADER = ("Published At", "Author", "Title", "File Path")
LIST_TITLE_WIDTH = 40


@click.group()
@click.version_option(version=__version__, prog_name="tuzuru")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
def cli(verbose: bool):
    """Tuzuru static blog generator."""
    configure_logging(verbose=verbose)


@cli.command()
def init():
    """Scaffold a new blog in the current directory."""
    from .initializer import BlogInitializer

    project_root = Path.cwd()
    try:
        BlogInitializer(project_root).initialize()
    except TuzuruError as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(f"Initialized Tuzuru blog in {project_root}")


@cli.command()
@_CONFIG_OPTION
def generate(config_path: Path | None):
    """Generate the blog into the output directory."""
    from .build import build_site

    project_root = Path.cwd()
    try:
        result = build_site(project_root, config_path)
    except TuzuruError as exc:
        _report_failure("Generate failed:", exc, project_root)
    for file in result.files:
        click.echo(f"  {file}")
    click.echo(f"Generated {len(result.files)} files into {result.output_dir}")
    if result.cleanup is not None and result.cleanup.deleted:
        click.echo(f"Removed {len(result.cleanup.deleted)} stale files")


@cli.command(name="list")
@_CONFIG_OPTION
def list_posts(config_path: Path | None):
    """Print all posts as CSV."""
    from .build import Tuzuru
    from .config import load_config

    project_root = Path.cwd()
    try:
        config = load_config(project_root, config_path)
        raw_source = Tuzuru(config).load_sources()
    except TuzuruError as exc:
        _report_failure("List failed:", exc, project_root)
    rows = []
    for post in raw_source.posts:
        base = config.unlisted_dir if post.is_unlisted else config.contents_dir
        rows.append(
            {
                "Published At": post.published_at.strftime("%Y-%m-%d"),
                "Author": post.author,
                "Title": _truncate(_post_title(post.content, post.path), LIST_TITLE_WIDTH),
                "File Path": _relative(post.path, base),
            }
        )
    click.echo(_csv_table(rows), nl=False)


@cli.command()
@click.argument("file", type=click.Path(path_type=Path, dir_okay=False))
@click.option("--published-at", default=None, help="New publication date, e.g. 2024-01-31 09:00:00 +0900")
@click.option("--author", default=None, help="New author, as 'Name' or 'Name <email>'")
def amend(file: Path, published_at: str | None, author: str | None):
    """Override the author or publication date of a post."""
    from .amend import FileAmender

    project_root = Path.cwd()
    amender = FileAmender(project_root)
    if published_at is None and author is None:
        published_at, author = _prompt_amend_values(amender, file)
    try:
        record = amender.amend(file, published_at=published_at, author=author)
    except TuzuruError as exc:
        _report_failure("Amend failed:", exc, project_root)
    if record is None:
        click.echo(f"Amended {file}")
    else:
        click.echo(f"Amended {file}: {record.author}, {record.date.isoformat()}")


@cli.command()
@click.option("--port", type=int, default=8000, show_default=True, help="Port to serve on")
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind")
@_CONFIG_OPTION
def preview(port: int, host: str, config_path: Path | None):
    """Serve the blog locally, regenerating when sources change."""
    from .config import load_config
    from .server import PreviewServer

    project_root = Path.cwd()
    try:
        config = load_config(project_root, config_path)
        PreviewServer(config, port=port, host=host).start()
    except TuzuruError as exc:
        _report_failure("Preview failed:", exc, project_root)


def _report_failure(heading: str, exc: TuzuruError, project_root: Path):
    """Print a styled error for a TuzuruError and exit with status 1."""
    click.echo(click.style(heading, fg="red", bold=True), err=True)
    click.echo(click.style(f"  File: {_relative(exc.path, project_root)}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
    raise SystemExit(1)


def _prompt_amend_values(amender, file: Path) -> tuple[str | None, str | None]:
    """Ask for the new values, showing the current ones as defaults."""
    path = file if file.is_absolute() else amender.working_directory / file
    current = amender.history.base_commit(path) if path.is_file() else None
    current_date = current.date.strftime("%Y-%m-%d %H:%M:%S %z") if current else ""
    current_author = current.author if current else ""

    published_at = questionary.text(
        "Published at (empty keeps current):",
        default=current_date,
        style=_questionary_style(),
    ).ask()
    if published_at is None:
        raise click.Abort()
    author = questionary.text(
        "Author (empty keeps current):",
        default=current_author,
        style=_questionary_style(),
    ).ask()
    if author is None:
        raise click.Abort()

    published_at = published_at.strip() or None
    author = author.strip() or None
    if published_at == current_date:
        published_at = None
    if author == current_author:
        author = None
    if published_at is None and author is None:
        raise click.ClickException("Nothing to amend")
    return published_at, author


def _post_title(content: str, path: Path) -> str:
    """Return the title of a markdown text, or the file stem when it has none."""
    from .extractors import TitleExtractor
    from .renderers import parse_markdown

    title, _ = TitleExtractor().extract(parse_markdown(content))
    return title or path.stem


def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."


def _csv_table(rows) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=LIST_HEADER, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


def _relative(path: Path, base: Path) -> str:
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return str(path)


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
