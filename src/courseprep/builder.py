"""
Building all outputs of a course project.

The builder scans the project, parses every document once for each enabled
output format, and writes the results below the build directory:

- `<build>/<format>/<part>/<chapter>/<id>.<ext>` for each document,
- `<build>/solutions/<part>/<chapter>/<id>.<code-ext>` for the solution code,
- `<build>/tasks/<part>/<chapter>/<id>.yml` for the exercise definitions.

All documents are parsed and rendered for every format before any output is
written; the first failing document aborts the build.
"""

import logging
import shutil
from pathlib import Path
from typing import Any

import yaml
from attr import define, frozen
from configurator import Config

from courseprep.config import (
    OutputFormat,
    config_to_python,
    enabled_outputs,
    language_config,
    load_config,
)
from courseprep.core.document import EventDocument
from courseprep.errors import CourseprepError, causal_chain
from courseprep.parser import Parser
from courseprep.project.iterator import ProjectItem, flatten
from courseprep.project.scan import from_directory
from courseprep.project.tree import Chapter, Item, Part, Project
from courseprep.templates import TemplateEngine

logger = logging.getLogger(__name__)

PAGE_LAYOUT = "page.html"
SOLUTIONS_DIR = "solutions"
TASKS_DIR = "tasks"


@frozen
class BuildResult:
    documents: int = 0
    files: int = 0


def _write_file(path: Path, text: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def output_dir(entry: ProjectItem) -> Path:
    """The directory of an item relative to the root of an output tree."""
    return Path(*[name for name in (entry.part_id, entry.chapter_id) if name])


def _title(item: Item[EventDocument] | None, default: str) -> str:
    if item is None:
        return default
    return item.content.variables.title or default


@define
class Builder:
    project_path: Path
    config: Config
    template_engine: TemplateEngine

    @classmethod
    def for_project(cls, project_path: Path, config: Config | None = None) -> "Builder":
        project_path = Path(project_path)
        if config is None:
            config = load_config(project_path)
        return cls(project_path, config, TemplateEngine.for_project(project_path))

    @property
    def build_dir(self) -> Path:
        return self.project_path / str(self.config.build_dir)

    def template_vars(self) -> dict[str, Any]:
        """Variables that are available in every template."""
        variables = config_to_python(self.config.template_vars) or {}
        return {
            "project": {"title": str(self.config.title), **variables},
            **variables,
        }

    def parse(self, project: Project[str], parser: Parser) -> Project[EventDocument]:
        def parse_item(item: Item[str], part: Part | None, chapter: Chapter | None):
            return parser.parse(item.content, item.format, item.path)

        return project.transform_parents(parse_item)

    def render(
        self, parsed: Project[EventDocument], parser: Parser
    ) -> Project[str]:
        use_layout = (
            parser.output_format is OutputFormat.HTML
            and self.template_engine.has_template(PAGE_LAYOUT)
        )
        project_vars = self.template_vars()

        def render_item(item: Item[EventDocument], part: Part | None, chapter: Chapter | None):
            body = parser.render(item.content)
            if not use_layout:
                return body
            context = {
                **project_vars,
                "title": _title(item, item.id),
                "body": body,
                "part": {"id": part.id, "title": _title(part.index, part.id)} if part else None,
                "chapter": (
                    {"id": chapter.id, "title": _title(chapter.index, chapter.id)}
                    if chapter
                    else None
                ),
            }
            try:
                return self.template_engine.render(PAGE_LAYOUT, context)
            except Exception as err:
                raise CourseprepError(
                    f"error rendering page layout: {causal_chain(err)}", path=item.path
                ) from err

        return parsed.transform_parents(render_item)

    def write_outputs(self, rendered: Project[str], output_format: OutputFormat) -> int:
        count = 0
        root = self.build_dir / output_format.value
        for entry in flatten(rendered):
            if not entry.item.path.exists():
                continue
            path = root / output_dir(entry) / f"{entry.item.id}.{output_format.extension}"
            _write_file(path, entry.item.content)
            count += 1
        return count

    def write_exercises(self, parsed: Project[EventDocument]) -> int:
        """Write the solutions and task definitions of all documents."""
        code_ext = language_config(self.config).get("file_extension", "txt")
        count = 0
        for entry in flatten(parsed):
            variables = entry.item.content.variables
            relative = output_dir(entry)
            if variables.solution:
                path = self.build_dir / SOLUTIONS_DIR / relative / f"{entry.item.id}.{code_ext}"
                _write_file(path, variables.solution)
                count += 1
            if variables.task_definition:
                path = self.build_dir / TASKS_DIR / relative / f"{entry.item.id}.yml"
                text = yaml.safe_dump(
                    variables.task_definition.to_dict(), sort_keys=False, allow_unicode=True
                )
                _write_file(path, text)
                count += 1
        return count

    def copy_files(self, project: Project, output_format: OutputFormat) -> int:
        """Copy the non-document files of each chapter next to its outputs."""
        count = 0
        root = self.build_dir / output_format.value
        for entry in flatten(project):
            if entry.chapter_index == 0 or entry.doc_index != 0:
                continue
            chapter_dir = entry.item.path.parent
            for file in entry.files:
                target = root / output_dir(entry) / file.relative_to(chapter_dir)
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(file, target)
                count += 1
        return count

    def build(self) -> BuildResult:
        """Build all enabled outputs of the project.

        Every document is parsed and rendered for every output format before
        anything is written, so a failing document leaves no outputs behind."""
        outputs = enabled_outputs(self.config)
        logger.info(f"Building {self.project_path} for {[fmt.value for fmt in outputs]}")
        project = from_directory(self.project_path)
        rendered_outputs: list[tuple[OutputFormat, Project[str]]] = []
        exercises: Project[EventDocument] | None = None
        for output_format in outputs:
            logger.info(f"Parsing documents for {output_format.value}")
            parser = Parser.from_config(
                self.config, output_format, self.template_engine, self.template_vars()
            )
            parsed = self.parse(project, parser)
            rendered_outputs.append((output_format, self.render(parsed, parser)))
            if exercises is None:
                exercises = parsed

        documents = 0
        files = 0
        for output_format, rendered in rendered_outputs:
            logger.info(f"Writing {output_format.value} output")
            documents += self.write_outputs(rendered, output_format)
            files += self.copy_files(project, output_format)
        if exercises is not None:
            files += self.write_exercises(exercises)
        logger.info(f"Wrote {documents} documents and {files} other files")
        return BuildResult(documents, files)
