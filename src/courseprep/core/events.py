"""
Semantic events of a document.

A document is represented as a flat sequence of events in the style of a
pull parser: `Start(tag)` and `End(tag)` bracket structural elements, all
other events are leaves. Both Markdown documents and notebooks are loaded into
this representation, so that all processors and writers work on either
format.
"""

from attr import field, frozen


# Tags
@frozen
class Paragraph:
    pass


@frozen
class Heading:
    level: int = 1


@frozen
class BlockQuote:
    pass


@frozen
class CodeBlock:
    """A code block; `info` is the complete info string of a fenced block."""

    info: str = ""
    fenced: bool = True

    @property
    def language(self) -> str:
        """The language named by the info string.

        >>> CodeBlock("python {id = 'ex1'}").language
        'python'
        >>> CodeBlock("").language
        ''
        """
        parts = self.info.split(maxsplit=1)
        return parts[0].split(",")[0] if parts else ""

    @property
    def attributes(self) -> str:
        """The part of the info string following the language."""
        parts = self.info.split(maxsplit=1)
        return parts[1].strip() if len(parts) > 1 else ""


@frozen
class List:
    """A list; `start` is `None` for unordered lists."""

    start: int | None = None

    @property
    def ordered(self) -> bool:
        return self.start is not None


@frozen
class Item:
    pass


@frozen
class FootnoteDefinition:
    label: str


@frozen
class Table:
    alignments: tuple[str, ...] = field(default=(), converter=tuple)


@frozen
class TableHead:
    pass


@frozen
class TableRow:
    pass


@frozen
class TableCell:
    pass


@frozen
class Emphasis:
    pass


@frozen
class Strong:
    pass


@frozen
class Strikethrough:
    pass


@frozen
class Link:
    dest: str
    title: str = ""


@frozen
class Image:
    dest: str
    title: str = ""


Tag = (
    Paragraph
    | Heading
    | BlockQuote
    | CodeBlock
    | List
    | Item
    | FootnoteDefinition
    | Table
    | TableHead
    | TableRow
    | TableCell
    | Emphasis
    | Strong
    | Strikethrough
    | Link
    | Image
)


# Events
@frozen
class Start:
    tag: Tag


@frozen
class End:
    tag: Tag


@frozen
class Text:
    text: str


@frozen
class Code:
    """Inline code."""

    text: str


@frozen
class Html:
    html: str


@frozen
class SoftBreak:
    pass


@frozen
class HardBreak:
    pass


@frozen
class Rule:
    pass


@frozen
class FootnoteReference:
    label: str


@frozen
class TaskListMarker:
    checked: bool


SemanticEvent = (
    Start
    | End
    | Text
    | Code
    | Html
    | SoftBreak
    | HardBreak
    | Rule
    | FootnoteReference
    | TaskListMarker
)


def is_code_block_start(event: SemanticEvent) -> bool:
    return isinstance(event, Start) and isinstance(event.tag, CodeBlock)


def is_code_block_end(event: SemanticEvent) -> bool:
    return isinstance(event, End) and isinstance(event.tag, CodeBlock)
