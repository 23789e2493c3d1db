"""
Conversion of Jupyter notebooks into semantic events.

Markdown cells are parsed like Markdown documents, code cells become fenced
code blocks in the language of the notebook, and cell outputs are converted
into events if requested. The front matter of a notebook is taken from its
first cell if that is a raw cell or a code cell marked as YAML by the editor.
"""

import json
import logging
from typing import Callable

import nbformat
from nbformat import NotebookNode

from courseprep.core.document import (
    EventDocument,
    FrontMatter,
    PositionedEvent,
    SourcePosition,
)
from courseprep.core.events import CodeBlock, End, Html, Start, Text
from courseprep.errors import FormatError
from courseprep.loaders.markdown import parse_markdown
from courseprep.shortcodes.scanner import find_code_spans

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "python"
PLAIN_TEXT_LANGUAGE = "plaintext"


def read_notebook(text: str) -> NotebookNode:
    try:
        return nbformat.reads(text, as_version=4)
    except (ValueError, KeyError) as err:
        raise FormatError(f"malformed notebook: {err}") from err


def notebook_language(nb: NotebookNode) -> str:
    metadata = nb.get("metadata", {})
    return (
        metadata.get("kernelspec", {}).get("language")
        or metadata.get("language_info", {}).get("name")
        or DEFAULT_LANGUAGE
    )


def is_front_matter_cell(cell: NotebookNode) -> bool:
    if cell.cell_type == "raw":
        return True
    if cell.cell_type == "code":
        return cell.get("metadata", {}).get("vscode", {}).get("languageId") == "yaml"
    return False


def escape_backslashes(text: str) -> str:
    """Protect backslashes in notebook Markdown from Markdown escapes.

    Backslashes in code spans are not interpreted by Markdown and are kept.

    >>> print(escape_backslashes(r"$\\{x\\}$ and `\\n`"))
    $\\\\{x\\\\}$ and `\\n`
    """
    result = []
    pos = 0
    for start, end in find_code_spans(text):
        result.append(text[pos:start].replace("\\", "\\\\"))
        result.append(text[start:end])
        pos = end
    result.append(text[pos:].replace("\\", "\\\\"))
    return "".join(result)


def load_notebook(
    text: str,
    preprocess: Callable[[str], str] | None = None,
    include_outputs: bool = False,
) -> EventDocument:
    """Load a notebook from its JSON representation.

    `preprocess` is applied to the source of every Markdown cell before it is
    parsed."""
    nb = read_notebook(text)
    cells = list(nb.cells)
    front_matter = FrontMatter()
    first_cell = 0
    if cells and is_front_matter_cell(cells[0]):
        try:
            front_matter = FrontMatter.from_yaml(cells[0].source)
        except FormatError as err:
            err.position = SourcePosition(1, 1, 0)
            raise
        first_cell = 1

    language = notebook_language(nb)
    content: list[PositionedEvent] = []
    for index, cell in enumerate(cells[first_cell:], first_cell):
        content.extend(cell_events(cell, index, language, preprocess, include_outputs))
    logger.debug(f"Loaded notebook with {len(cells)} cells")
    return EventDocument(front_matter, content)


def cell_events(
    cell: NotebookNode,
    index: int,
    language: str,
    preprocess: Callable[[str], str] | None = None,
    include_outputs: bool = False,
) -> list[PositionedEvent]:
    match cell.cell_type:
        case "markdown":
            source = cell.source
            if preprocess is not None:
                source = preprocess(source)
            return parse_markdown(escape_backslashes(source), cell=index)
        case "code":
            lines = cell.source.count("\n") + 1
            tag = CodeBlock(language)
            events = [
                (Start(tag), SourcePosition(1, 1, index)),
                (Text(_with_newline(cell.source)), SourcePosition(1, 1, index)),
                (End(tag), SourcePosition(lines, 1, index)),
            ]
            if include_outputs:
                position = SourcePosition(lines, 1, index)
                for output in cell.get("outputs", []):
                    events.extend((event, position) for event in output_events(output))
            return events
        case _:
            return []


def _with_newline(source: str) -> str:
    return source if not source or source.endswith("\n") else source + "\n"


def output_events(output: NotebookNode) -> list:
    match output.output_type:
        case "stream":
            return [
                Html(
                    f'<div class="alert alert-info">\n<p>{_join(output.text)}</p>\n</div>\n'
                )
            ]
        case "display_data" | "execute_result":
            events = []
            for mime_type, value in output.get("data", {}).items():
                events.extend(_data_events(mime_type, value))
            return events
        case "error":
            return [Text("Error")]
        case _:
            logger.debug(f"Ignoring output of type '{output.output_type}'")
            return []


def _data_events(mime_type: str, value) -> list:
    match mime_type:
        case "text/plain":
            tag = CodeBlock(PLAIN_TEXT_LANGUAGE, fenced=False)
            return [Start(tag), Text(_with_newline(_join(value))), End(tag)]
        case "image/png":
            data = _join(value).replace("\n", "")
            return [Html(f'<img src="data:image/png;base64,{data}"></img>')]
        case "image/svg+xml":
            return [Html(_join(value))]
        case "application/json":
            return [Text(json.dumps(value))]
        case "text/html":
            return [Html(_join(value))]
        case "application/javascript":
            return [Html(f"<script>{_join(value)}</script>")]
        case _:
            logger.debug(f"Ignoring output data of type '{mime_type}'")
            return []


def _join(value) -> str:
    if isinstance(value, list):
        return "".join(value)
    return str(value)
