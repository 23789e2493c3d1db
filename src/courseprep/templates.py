import logging
from collections.abc import Mapping, Sequence
from functools import singledispatch
from pathlib import Path
from typing import Any

import jinja2
from jinja2 import DictLoader, FileSystemLoader, StrictUndefined

logger = logging.getLogger(__name__)

SHORTCODE_TEMPLATE_DIR = "shortcodes"
LAYOUT_TEMPLATE_DIR = "layouts"


@singledispatch
def get_jinja_loader(source) -> jinja2.BaseLoader:
    raise NotImplementedError(f"Cannot create loader for {source!r}")


@get_jinja_loader.register
def _(source: Path) -> jinja2.BaseLoader:
    if source.exists():
        return FileSystemLoader(source.absolute())
    else:
        raise FileNotFoundError(f"Cannot create loader for {source}")


@get_jinja_loader.register
def _(source: Mapping) -> jinja2.BaseLoader:
    return DictLoader(dict(source))


@get_jinja_loader.register
def _(source: Sequence) -> jinja2.BaseLoader:
    return jinja2.ChoiceLoader([get_jinja_loader(src) for src in source])


class TemplateEngine:
    """Resolve template names to rendered text.

    The engine is created once per build and only read afterwards."""

    def __init__(self, source):
        self.environment = jinja2.Environment(
            loader=get_jinja_loader(source),
            undefined=StrictUndefined,
            keep_trailing_newline=False,
            autoescape=False,
        )

    @classmethod
    def for_project(cls, project_dir: Path) -> "TemplateEngine":
        """Create an engine for the templates in `<project_dir>/templates`.

        Missing template directories are skipped, so that projects without
        shortcodes or layouts can still be built."""
        template_dir = Path(project_dir) / "templates"
        sources = [
            template_dir / subdir
            for subdir in (SHORTCODE_TEMPLATE_DIR, LAYOUT_TEMPLATE_DIR)
            if (template_dir / subdir).is_dir()
        ]
        logger.debug(f"Loading templates from {[src.as_posix() for src in sources]}")
        return cls(sources)

    def has_template(self, name: str) -> bool:
        try:
            self.environment.get_template(name)
        except jinja2.TemplateNotFound:
            return False
        return True

    def render(self, name: str, context: Mapping[str, Any]) -> str:
        """Render the template `name`.

        Raises `jinja2.TemplateNotFound` if no such template exists and other
        `jinja2.TemplateError`s if rendering fails."""
        template = self.environment.get_template(name)
        return template.render(context)
