import logging
from typing import Any

import nbformat
from attr import define, field
from nbformat import NotebookNode
from nbformat.v4 import new_code_cell, new_markdown_cell, new_notebook, new_raw_cell

from courseprep.core.document import EventDocument
from courseprep.core.events import CodeBlock, End, SemanticEvent, Start, Text
from courseprep.writers.markdown import MarkdownWriter

logger = logging.getLogger(__name__)


@define
class NotebookWriter:
    """Convert an `EventDocument` into a Jupyter notebook.

    Fenced code blocks in the notebook language become code cells, all other
    content is collected into Markdown cells between them. Front matter is
    stored as YAML in a leading raw cell."""

    language: str = "python"
    kernelspec: dict[str, Any] = field(factory=dict)
    language_info: dict[str, Any] = field(factory=dict)

    @classmethod
    def from_language_config(cls, language: str, config: dict) -> "NotebookWriter":
        return cls(
            language=language,
            kernelspec=dict(config.get("kernelspec", {})),
            language_info=dict(config.get("language_info", {})),
        )

    def is_code_cell(self, tag) -> bool:
        return isinstance(tag, CodeBlock) and tag.fenced and tag.language == self.language

    def write(self, doc: EventDocument) -> NotebookNode:
        cells = []
        if not doc.metadata.is_empty():
            cells.append(new_raw_cell(doc.metadata.to_yaml().rstrip("\n")))
        markdown: list[SemanticEvent] = []
        code: list[str] | None = None

        for event in doc.events():
            match event:
                case Start(tag=tag) if self.is_code_cell(tag):
                    cells.extend(_markdown_cells(markdown))
                    markdown = []
                    code = []
                case Text(text=text) if code is not None:
                    code.append(text)
                case End(tag=tag) if code is not None and self.is_code_cell(tag):
                    cells.append(new_code_cell("".join(code).rstrip("\n")))
                    code = None
                case _:
                    markdown.append(event)
        cells.extend(_markdown_cells(markdown))

        for index, cell in enumerate(cells):
            cell["id"] = f"cell-{index}"

        metadata = {}
        if self.kernelspec:
            metadata["kernelspec"] = self.kernelspec
        if self.language_info:
            metadata["language_info"] = self.language_info
        logger.debug(f"Created notebook with {len(cells)} cells")
        return new_notebook(cells=cells, metadata=metadata)

    def writes(self, doc: EventDocument) -> str:
        return nbformat.writes(self.write(doc))


def _markdown_cells(events: list[SemanticEvent]) -> list[NotebookNode]:
    if not events:
        return []
    source = MarkdownWriter().write(events).strip()
    return [new_markdown_cell(source)] if source else []
