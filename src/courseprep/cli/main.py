"""Command-line interface for courseprep."""

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from courseprep import __version__
from courseprep.builder import Builder
from courseprep.config import OutputFormat
from courseprep.errors import CourseprepError
from courseprep.parser import Parser
from courseprep.project.iterator import flatten
from courseprep.project.scan import from_directory
from courseprep.project.tree import Project

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(log_level_name: str):
    """Send log messages of `log_level_name` and above to stderr via Rich."""
    log_level = logging.getLevelName(log_level_name.upper())

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    console_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
    )
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    root_logger.setLevel(logging.WARNING)
    logging.getLogger("courseprep").setLevel(log_level)


@click.group()
@click.version_option(version=__version__, prog_name="courseprep")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    help="Set the logging level.",
)
def cli(log_level):
    """Prepare course material from Markdown documents and notebooks."""
    setup_logging(log_level)


@cli.command()
@click.argument(
    "project_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
def build(project_dir: Path):
    """Build all outputs of the project in PROJECT_DIR."""
    try:
        result = Builder.for_project(project_dir).build()
    except CourseprepError as err:
        click.echo(f"Error: {err}", err=True)
        raise SystemExit(1)
    click.echo(f"Wrote {result.documents} documents and {result.files} other files.")


def generate_outline(titles: Project[str]) -> str:
    """Generate a Markdown outline of a project.

    The content of each item of `titles` is the title of the document."""
    lines = [f"# {titles.index.content}", ""]
    for entry in flatten(titles):
        title = entry.item.content
        if entry.chapter_index == 0 and entry.part_index > 0:
            if lines[-1]:
                lines.append("")
            lines.extend([f"## {title}", ""])
        elif entry.chapter_index > 0 and entry.doc_index == 0:
            lines.append(f"- {title}")
        elif entry.doc_index > 0:
            lines.append(f"  - {title}")
    return "\n".join(lines).rstrip() + "\n"


@cli.command()
@click.argument(
    "project_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
def outline(project_dir: Path):
    """Print an outline of the project in PROJECT_DIR."""
    try:
        builder = Builder.for_project(project_dir)
        parser = Parser.from_config(
            builder.config,
            OutputFormat.MARKDOWN,
            builder.template_engine,
            builder.template_vars(),
        )
        parsed = builder.parse(from_directory(project_dir), parser)
    except CourseprepError as err:
        click.echo(f"Error: {err}", err=True)
        raise SystemExit(1)

    def title(item, part, chapter) -> str:
        if item.content.variables.title:
            return item.content.variables.title
        if part is None:
            return str(builder.config.title)
        if chapter is None:
            return part.id
        return chapter.id if item is chapter.index else item.id

    click.echo(generate_outline(parsed.transform_parents(title)), nl=False)


if __name__ == "__main__":
    cli()
