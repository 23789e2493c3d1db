"""Pytest configuration and fixtures.

Logging Configuration:
---------------------
Application logs are suppressed during tests. Set the environment variable
COURSEPREP_ENABLE_TEST_LOGGING to enable live logging; COURSEPREP_LOG_LEVEL
selects the log level (default: INFO).
"""

import logging
import os
from pathlib import Path

import nbformat
import pytest
from nbformat.v4 import new_code_cell, new_markdown_cell, new_notebook, new_raw_cell

from courseprep.config import OutputFormat
from courseprep.core.processor import PreprocessorContext
from courseprep.templates import TemplateEngine

SHORTCODE_TEMPLATES = {
    "html/greet.tera.html": "Hello, {{ name }}!",
    "md/greet.tera.md": "Hello, {{ name }}!",
    "html/kbd.tera.html": "<kbd>{{ key }}</kbd>",
    "md/kbd.tera.md": "`{{ key }}`",
    "html/box.tera.html": "[{{ body }}]",
    "md/box.tera.md": "[{{ body }}]",
    "html/note.tera.html": '<div class="note">{{ body }}</div>',
    "md/note.tera.md": "> **Note:** {{ body }}",
    "html/course.tera.html": "{{ course }}",
    "md/course.tera.md": "{{ course }}",
    "html/broken.tera.html": "{{ undefined_variable }}",
    "md/broken.tera.md": "{{ undefined_variable }}",
}


def pytest_configure(config):
    """Suppress application logs unless explicitly enabled."""
    if os.environ.get("COURSEPREP_ENABLE_TEST_LOGGING"):
        config.option.log_cli = True
        config.option.log_cli_level = os.environ.get("COURSEPREP_LOG_LEVEL", "INFO")
        config.option.log_cli_format = "[%(asctime)s] %(levelname)-8s %(name)s - %(message)s"
        config.option.log_cli_date_format = "%H:%M:%S"
    else:
        config.option.log_cli = False
        logging.getLogger("courseprep").setLevel(logging.WARNING)


@pytest.fixture
def template_engine():
    return TemplateEngine(SHORTCODE_TEMPLATES)


@pytest.fixture
def html_ctx(template_engine):
    return PreprocessorContext(template_engine, OutputFormat.HTML)


@pytest.fixture
def md_ctx(template_engine):
    return PreprocessorContext(template_engine, OutputFormat.MARKDOWN)


def write_notebook(cells, path: Path | None = None, **metadata) -> str:
    """Return the JSON text of a notebook; also write it to `path` if given."""
    text = nbformat.writes(new_notebook(cells=cells, metadata=metadata))
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return text


@pytest.fixture
def make_notebook():
    return write_notebook


@pytest.fixture
def notebook_text():
    return write_notebook(
        [
            new_raw_cell("title: Loops\ntype: exercise"),
            new_markdown_cell("# Loops\n\nUse `for` loops."),
            new_code_cell("for i in range(3):\n    print(i)"),
        ],
        kernelspec={"display_name": "Python 3", "language": "python", "name": "python3"},
    )


def _write(path: Path, text: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def project_dir(tmp_path):
    """A small course project with one part and two chapters."""
    root = tmp_path / "course"
    _write(root / "config.yml", "title: Python Basics\ntemplate_vars:\n  course: PB\n")
    _write(root / "templates" / "shortcodes" / "html" / "kbd.tera.html", "<kbd>{{ key }}</kbd>")
    _write(root / "templates" / "shortcodes" / "md" / "kbd.tera.md", "`{{ key }}`")
    content = root / "content"
    _write(content / "index.md", "# Python Basics\n\nWelcome to {{ kbd(key=Tab) }}.\n")
    _write(content / "part1" / "index.md", "# Getting Started\n")
    _write(
        content / "part1" / "ch1" / "index.md",
        "---\ntitle: Variables\n---\nAbout variables.\n",
    )
    _write(
        content / "part1" / "ch1" / "assign.md",
        "# Assignment\n\nPress {{ kbd(key=Enter) }}.\n\n"
        "```python\nx = 1\n#| solution\ny = x + 1\n#| placeholder\ny = ...\n#| end\n```\n",
    )
    _write(content / "part1" / "ch1" / "img" / "logo.svg", "<svg></svg>\n")
    write_notebook(
        [
            new_raw_cell("title: Loops"),
            new_markdown_cell("# Loops"),
            new_code_cell("total = 0  #| solution\ntotal = ...  #| placeholder"),
        ],
        content / "part1" / "ch2" / "loops.ipynb",
        kernelspec={"display_name": "Python 3", "language": "python", "name": "python3"},
    )
    return root
