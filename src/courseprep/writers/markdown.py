"""
Serialization of semantic events as Markdown.

The writer is stateful: block quotes and list items indent the lines they
contain, ordered lists keep a running item number, and table cells are
buffered until the whole table is known.
"""

import re
from typing import Iterable

from courseprep.core.document import EventDocument
from courseprep.core.events import (
    BlockQuote,
    Code,
    CodeBlock,
    Emphasis,
    End,
    FootnoteDefinition,
    FootnoteReference,
    HardBreak,
    Heading,
    Html,
    Image,
    Item,
    Link,
    List,
    Paragraph,
    Rule,
    SemanticEvent,
    SoftBreak,
    Start,
    Strikethrough,
    Strong,
    Table,
    TableCell,
    TableRow,
    TaskListMarker,
    Text,
)

BACKTICK_RUN_REGEX = re.compile(r"`+")

_ALIGNMENT_RULES = {"left": ":---", "center": ":---:", "right": "---:"}


def backtick_fence(text: str, minimum: int = 1) -> str:
    """Return a backtick fence longer than any backtick run in `text`.

    >>> backtick_fence("a `b` c")
    '``'
    >>> backtick_fence("print(1)", minimum=3)
    '```'
    """
    longest = max((len(run) for run in BACKTICK_RUN_REGEX.findall(text)), default=0)
    return "`" * max(minimum, longest + 1)


def _link_target(dest: str, title: str) -> str:
    if title:
        escaped_title = title.replace('"', '\\"')
        return f'({dest} "{escaped_title}")'
    return f"({dest})"


class MarkdownWriter:
    """Convert semantic events back into Markdown text.

    >>> from courseprep.loaders.markdown import parse_markdown
    >>> print(MarkdownWriter().write(parse_markdown("# Title\\n\\n1. a\\n2. b\\n")), end="")
    # Title
    <BLANKLINE>
    1. a
    2. b
    """

    def __init__(self):
        self.output: list[str] = []
        self.padding: list[str] = []
        self.list_numbers: list[int | None] = []
        self.at_line_start = True
        self.after_marker = False
        self.inline_depth = 0
        self.needs_blank = False
        self.code: list[str] | None = None
        self.code_info = ""
        self.link_targets: list[str] = []
        self.table_rows: list[list[str]] = []
        self.table_alignments: tuple[str, ...] = ()
        self.row: list[str] | None = None
        self.cell: list[str] | None = None

    def write_document(self, doc: EventDocument) -> str:
        front_matter = ""
        if not doc.metadata.is_empty():
            front_matter = f"---\n{doc.metadata.to_yaml()}---\n\n"
        return front_matter + self.write(doc.events())

    def write(self, events: Iterable) -> str:
        """Write `events`; positioned events are accepted as well."""
        for event in events:
            if isinstance(event, tuple):
                event = event[0]
            self.write_event(event)
        return "".join(self.output).rstrip("\n") + "\n"

    def write_event(self, event: SemanticEvent):
        match event:
            case Start(tag=tag):
                self.start(tag)
            case End(tag=tag):
                self.end(tag)
            case Text(text=text):
                self.write_text(text)
            case Code(text=text):
                fence = backtick_fence(text)
                space = " " if text.startswith("`") or text.endswith("`") else ""
                self.write_text(f"{fence}{space}{text}{space}{fence}")
            case Html(html=html) if self.at_line_start and not self.inline_depth:
                self.block_start()
                self.write_text(html)
                self.end_block()
            case Html(html=html):
                self.write_text(html)
            case SoftBreak():
                self.write_text(" " if self.cell is not None else "\n")
            case HardBreak():
                self.write_text(" " if self.cell is not None else "\\\n")
            case Rule():
                self.block_start()
                self.write_text("---")
                self.end_block()
            case FootnoteReference(label=label):
                self.write_text(f"[^{label}]")
            case TaskListMarker(checked=checked):
                self.write_text("[x] " if checked else "[ ] ")
            case _:
                raise TypeError(f"Not a semantic event: {event!r}")

    def start(self, tag):
        match tag:
            case Paragraph():
                self.block_start()
                self.inline_depth += 1
            case Heading(level=level):
                self.block_start()
                self.inline_depth += 1
                self.write_text("#" * level + " ")
            case BlockQuote():
                self.block_start()
                self.padding.append("> ")
            case CodeBlock(info=info):
                self.block_start()
                self.code_info = info
                self.code = []
            case List(start=start):
                self.block_start()
                self.list_numbers.append(start)
            case Item():
                self.block_start()
                marker = self.item_marker()
                self.write_text(marker)
                self.padding.append(" " * len(marker))
                self.after_marker = True
            case FootnoteDefinition(label=label):
                self.block_start()
                self.write_text(f"[^{label}]: ")
                self.padding.append("    ")
                self.after_marker = True
            case Table(alignments=alignments):
                self.block_start()
                self.table_rows = []
                self.table_alignments = alignments
            case TableRow():
                self.row = []
            case TableCell():
                self.cell = []
            case Emphasis():
                self.write_text("*")
            case Strong():
                self.write_text("__")
            case Strikethrough():
                self.write_text("~~")
            case Link(dest=dest, title=title):
                self.link_targets.append(_link_target(dest, title))
                self.write_text("[")
            case Image(dest=dest, title=title):
                self.link_targets.append(_link_target(dest, title))
                self.write_text("![")

    def end(self, tag):
        match tag:
            case Paragraph() | Heading():
                self.inline_depth -= 1
                self.end_block()
            case BlockQuote():
                self.padding.pop()
                self.end_block()
            case CodeBlock():
                self.write_code_block()
                self.end_block()
            case List():
                self.list_numbers.pop()
                self.end_block()
                # Nested lists do not separate the items of the enclosing list.
                self.needs_blank = not self.list_numbers
            case Item() | FootnoteDefinition():
                self.newline()
                self.padding.pop()
                self.after_marker = False
            case TableCell():
                text = "".join(self.cell or []).strip().replace("|", "\\|")
                self.row.append(text)
                self.cell = None
            case TableRow():
                self.table_rows.append(self.row)
                self.row = None
            case Table():
                self.write_table()
                self.end_block()
            case Emphasis():
                self.write_text("*")
            case Strong():
                self.write_text("__")
            case Strikethrough():
                self.write_text("~~")
            case Link() | Image():
                self.write_text("]" + self.link_targets.pop())

    def item_marker(self) -> str:
        number = self.list_numbers[-1] if self.list_numbers else None
        if number is None:
            return "- "
        self.list_numbers[-1] = number + 1
        return f"{number}. "

    def prefix(self) -> str:
        return "".join(self.padding)

    def write_text(self, text: str):
        if self.code is not None:
            self.code.append(text)
            return
        if self.cell is not None:
            self.cell.append(text)
            return
        for index, line in enumerate(text.split("\n")):
            if index > 0:
                if self.at_line_start:
                    self.output.append(self.prefix().rstrip())
                self.output.append("\n")
                self.at_line_start = True
            if line:
                if self.at_line_start:
                    self.output.append(self.prefix())
                    self.at_line_start = False
                self.output.append(line)
        if text:
            self.after_marker = False

    def newline(self):
        if not self.at_line_start:
            self.output.append("\n")
            self.at_line_start = True

    def block_start(self):
        if self.after_marker:
            self.after_marker = False
            self.needs_blank = False
            return
        self.newline()
        if self.needs_blank and self.output:
            self.output.append(self.prefix().rstrip() + "\n")
        self.needs_blank = False

    def end_block(self):
        self.newline()
        self.needs_blank = True

    def write_code_block(self):
        code = "".join(self.code or [])
        if code and not code.endswith("\n"):
            code += "\n"
        fence = backtick_fence(code, minimum=3)
        self.code = None
        self.write_text(f"{fence}{self.code_info}\n{code}{fence}")

    def write_table(self):
        if not self.table_rows:
            return
        columns = max(len(row) for row in self.table_rows)
        alignments = list(self.table_alignments) + [""] * columns
        rules = [_ALIGNMENT_RULES.get(alignments[i], "---") for i in range(columns)]
        lines = [self.table_rows[0], rules, *self.table_rows[1:]]
        for row in lines:
            cells = list(row) + [""] * (columns - len(row))
            self.write_text("| " + " | ".join(cells) + " |\n")
        self.table_rows = []


def write_markdown(doc: EventDocument) -> str:
    return MarkdownWriter().write_document(doc)
