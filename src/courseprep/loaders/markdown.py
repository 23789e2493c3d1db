"""
Conversion of Markdown text into semantic events.

Markdown is tokenized by `markdown-it-py` using the CommonMark rules extended
by tables, strikethrough, and footnotes. The token stream is converted into the
flat event representation of `courseprep.core.events`.
"""

import logging
import re
from functools import cache

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.footnote import footnote_plugin

from courseprep.core.document import (
    EventDocument,
    PositionedEvent,
    SourcePosition,
    split_front_matter,
)
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
    SoftBreak,
    Start,
    Strikethrough,
    Strong,
    Table,
    TableCell,
    TableHead,
    TableRow,
    TaskListMarker,
    Text,
)

logger = logging.getLogger(__name__)

TASK_MARKER_REGEX = re.compile(r"^\[([ xX])\][ \t]+")
ALIGNMENT_REGEX = re.compile(r"text-align:\s*(\w+)")

# Tokens that only group other tokens and have no counterpart in the events.
_IGNORED_TOKENS = {
    "tbody_open",
    "tbody_close",
    "footnote_block_open",
    "footnote_block_close",
    "footnote_anchor",
}


@cache
def markdown_parser() -> MarkdownIt:
    return (
        MarkdownIt("commonmark")
        .enable(["table", "strikethrough"])
        .use(footnote_plugin)
    )


def parse_markdown(
    text: str, line_offset: int = 0, cell: int | None = None
) -> list[PositionedEvent]:
    """Convert Markdown `text` into positioned events.

    `line_offset` is the number of source lines preceding `text`, `cell` the
    index of the notebook cell `text` was taken from.

    >>> [type(event).__name__ for event, _ in parse_markdown("# Title")]
    ['Start', 'Text', 'End']
    """
    converter = _TokenConverter(line_offset, cell)
    converter.convert(markdown_parser().parse(text))
    return converter.events


def load_markdown(text: str) -> EventDocument:
    """Load a Markdown document, including its front matter."""
    front_matter, body, line_offset = split_front_matter(text)
    return EventDocument(front_matter, parse_markdown(body, line_offset))


class _TokenConverter:
    def __init__(self, line_offset: int, cell: int | None):
        self.line_offset = line_offset
        self.cell = cell
        self.events: list[PositionedEvent] = []
        self.open_tags: list = []
        self.line = 1

    def position(self, line: int | None = None) -> SourcePosition:
        return SourcePosition(line or self.line, 1, self.cell)

    def emit(self, event, line: int | None = None):
        self.events.append((event, self.position(line)))

    def start(self, tag, line: int | None = None):
        self.open_tags.append(tag)
        self.emit(Start(tag), line)

    def end(self, line: int | None = None):
        self.emit(End(self.open_tags.pop()), line)

    def convert(self, tokens: list[Token]):
        for index, token in enumerate(tokens):
            if token.map is not None:
                self.line = token.map[0] + 1 + self.line_offset
            self.convert_block(token, tokens, index)

    def convert_block(self, token: Token, tokens: list[Token], index: int):
        if token.type in _IGNORED_TOKENS or token.hidden:
            return
        match token.type:
            case "paragraph_open":
                self.start(Paragraph())
            case "heading_open":
                self.start(Heading(int(token.tag[1:])))
            case "blockquote_open":
                self.start(BlockQuote())
            case "bullet_list_open":
                self.start(List())
            case "ordered_list_open":
                self.start(List(int(token.attrs.get("start", 1))))
            case "list_item_open":
                self.start(Item())
            case "table_open":
                self.start(Table(_table_alignments(tokens, index)))
            case "thead_open":
                self.start(TableHead())
            case "tr_open":
                self.start(TableRow())
            case "th_open" | "td_open":
                self.start(TableCell())
            case "footnote_open":
                self.start(FootnoteDefinition(_footnote_label(token)))
            case (
                "paragraph_close"
                | "heading_close"
                | "blockquote_close"
                | "bullet_list_close"
                | "ordered_list_close"
                | "list_item_close"
                | "table_close"
                | "thead_close"
                | "tr_close"
                | "th_close"
                | "td_close"
                | "footnote_close"
            ):
                self.end()
            case "fence" | "code_block":
                self.code_block(token)
            case "html_block":
                self.emit(Html(token.content))
            case "hr":
                self.emit(Rule())
            case "inline":
                self.convert_inline(token.children or [])
            case _:
                logger.debug(f"Ignoring Markdown token '{token.type}'")

    def code_block(self, token: Token):
        fenced = token.type == "fence"
        tag = CodeBlock(token.info.strip(), fenced)
        self.start(tag)
        self.emit(Text(token.content), self.line + 1 if fenced else self.line)
        end_line = token.map[1] + self.line_offset if token.map else self.line
        self.end(end_line)

    def convert_inline(self, children: list[Token]):
        if self.at_item_start():
            children = self.task_list_marker(children)
        for child in children:
            match child.type:
                case "text" | "text_special":
                    self.emit(Text(child.content))
                case "code_inline":
                    self.emit(Code(child.content))
                case "softbreak":
                    self.emit(SoftBreak())
                    self.line += 1
                case "hardbreak":
                    self.emit(HardBreak())
                    self.line += 1
                case "html_inline":
                    self.emit(Html(child.content))
                case "em_open":
                    self.start(Emphasis())
                case "strong_open":
                    self.start(Strong())
                case "s_open":
                    self.start(Strikethrough())
                case "link_open":
                    self.start(
                        Link(str(child.attrs.get("href", "")), str(child.attrs.get("title", "")))
                    )
                case "em_close" | "strong_close" | "s_close" | "link_close":
                    self.end()
                case "image":
                    self.start(
                        Image(str(child.attrs.get("src", "")), str(child.attrs.get("title", "")))
                    )
                    self.convert_inline(child.children or [])
                    self.end()
                case "footnote_ref":
                    self.emit(FootnoteReference(_footnote_label(child)))
                case _:
                    logger.debug(f"Ignoring inline Markdown token '{child.type}'")

    def at_item_start(self) -> bool:
        recent = [event for event, _ in self.events[-2:]]
        return recent[-1:] == [Start(Item())] or recent == [Start(Item()), Start(Paragraph())]

    def task_list_marker(self, children: list[Token]) -> list[Token]:
        """Emit a `TaskListMarker` for items starting with `[ ]` or `[x]`."""
        if not children or children[0].type != "text":
            return children
        first = children[0]
        match = TASK_MARKER_REGEX.match(first.content)
        if match is None:
            return children
        self.emit(TaskListMarker(match[1] != " "))
        rest = first.content[match.end() :]
        if not rest:
            return children[1:]
        stripped = first.copy()
        stripped.content = rest
        return [stripped, *children[1:]]


def _table_alignments(tokens: list[Token], index: int) -> tuple[str, ...]:
    alignments = []
    for token in tokens[index + 1 :]:
        if token.type == "th_open":
            style = str(token.attrs.get("style", ""))
            match = ALIGNMENT_REGEX.search(style)
            alignments.append(match[1] if match else "")
        elif token.type == "thead_close":
            break
    return tuple(alignments)


def _footnote_label(token: Token) -> str:
    # Inline footnotes have no label; they are numbered instead.
    return str(token.meta.get("label") or token.meta.get("id", 0) + 1)
