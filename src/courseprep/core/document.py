"""
The normalized representation of a document.

An `EventDocument` is a sequence of semantic events, each paired with the
position in the source it was produced from, together with the document's
front matter and the side artifacts accumulated by event processors.
"""

from typing import Any, Iterator

import yaml
from attr import evolve, field, frozen

from courseprep.code_split.types import CodeTaskDefinition
from courseprep.core.events import SemanticEvent
from courseprep.errors import FormatError

DEFAULT_DOC_TYPE = "text"


@frozen
class SourcePosition:
    """A position in a source document; only used for diagnostics.

    >>> str(SourcePosition(4, 2))
    'line 4, column 2'
    >>> str(SourcePosition(1, cell=3))
    'cell 3, line 1, column 1'
    """

    line: int = 1
    column: int = 1
    cell: int | None = None

    def __str__(self):
        location = f"line {self.line}, column {self.column}"
        if self.cell is not None:
            return f"cell {self.cell}, {location}"
        return location


@frozen
class FrontMatter:
    title: str | None = None
    doc_type: str = DEFAULT_DOC_TYPE
    extra: dict[str, Any] = field(factory=dict, eq=False)

    @classmethod
    def from_dict(cls, data: dict | None) -> "FrontMatter":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise FormatError(f"front matter must be a mapping, not {type(data).__name__}")
        data = dict(data)
        title = data.pop("title", None)
        doc_type = data.pop("type", None) or DEFAULT_DOC_TYPE
        return cls(
            title=str(title) if title is not None else None,
            doc_type=str(doc_type),
            extra=data,
        )

    @classmethod
    def from_yaml(cls, text: str) -> "FrontMatter":
        """Parse front matter from YAML text.

        >>> FrontMatter.from_yaml("title: Loops").doc_type
        'text'
        """
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as err:
            raise FormatError(f"malformed front matter: {err}") from err
        return cls.from_dict(data)

    def is_empty(self) -> bool:
        return self == FrontMatter() and not self.extra

    def to_dict(self) -> dict:
        data = {}
        if self.title is not None:
            data["title"] = self.title
        if self.doc_type != DEFAULT_DOC_TYPE:
            data["type"] = self.doc_type
        data.update(self.extra)
        return data

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)


def split_front_matter(text: str) -> tuple[FrontMatter, str, int]:
    """Split a Markdown source into front matter and body.

    Returns the front matter, the body, and the number of lines preceding the
    body, so that positions in the body can be mapped back to the source.

    >>> meta, body, offset = split_front_matter("---\\ntitle: A\\n---\\n# A\\n")
    >>> meta.title, body, offset
    ('A', '# A\\n', 3)
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != "---":
        return FrontMatter(), text, 0
    for index, line in enumerate(lines[1:], 1):
        if line.rstrip() in ("---", "..."):
            front_matter = FrontMatter.from_yaml("".join(lines[1:index]))
            return front_matter, "".join(lines[index + 1 :]), index + 1
    raise FormatError("unterminated front matter block", position=SourcePosition(1))


@frozen
class DocumentVariables:
    """Artifacts accumulated while processing a document."""

    title: str = ""
    solution: str = ""
    task_definition: CodeTaskDefinition = field(factory=CodeTaskDefinition)


PositionedEvent = tuple[SemanticEvent, SourcePosition]


@frozen
class EventDocument:
    metadata: FrontMatter = field(factory=FrontMatter)
    content: tuple[PositionedEvent, ...] = field(factory=tuple, converter=tuple)
    variables: DocumentVariables = field(factory=DocumentVariables)

    def __iter__(self) -> Iterator[PositionedEvent]:
        return iter(self.content)

    def __len__(self) -> int:
        return len(self.content)

    def events(self) -> list[SemanticEvent]:
        return [event for event, _ in self.content]

    def with_content(self, content) -> "EventDocument":
        return evolve(self, content=tuple(content))

    def with_variables(self, **changes) -> "EventDocument":
        return evolve(self, variables=evolve(self.variables, **changes))
