import logging
from html import escape
from typing import Iterable

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
    TableHead,
    TableRow,
    TaskListMarker,
    Text,
)
from courseprep.loaders.markdown import parse_markdown

logger = logging.getLogger(__name__)


class HtmlRenderer:
    """Render semantic events as an HTML fragment."""

    def render(self, events: Iterable) -> str:
        """Render `events`; positioned events are accepted as well."""
        writer = _HtmlWriter()
        for event in events:
            if isinstance(event, tuple):
                event = event[0]
            writer.write(event)
        return writer.result()

    def render_markdown(self, text: str) -> str:
        return self.render(parse_markdown(text))


def _attr(name: str, value: str) -> str:
    return f' {name}="{escape(value)}"' if value else ""


class _HtmlWriter:
    def __init__(self):
        self.output: list[str] = []
        self.footnote_numbers: dict[str, int] = {}
        self.alignments: tuple[str, ...] = ()
        self.in_table_head = False
        self.table_body_open = False
        self.column = 0
        self.image_alt: list[str] | None = None

    def result(self) -> str:
        return "".join(self.output)

    def footnote_number(self, label: str) -> int:
        return self.footnote_numbers.setdefault(label, len(self.footnote_numbers) + 1)

    def write(self, event: SemanticEvent):
        if self.image_alt is not None and not _is_image_end(event):
            if isinstance(event, (Text, Code)):
                self.image_alt.append(event.text)
            return
        match event:
            case Start(tag=tag):
                self.start(tag)
            case End(tag=tag):
                self.end(tag)
            case Text(text=text):
                self.output.append(escape(text, quote=False))
            case Code(text=text):
                self.output.append(f"<code>{escape(text, quote=False)}</code>")
            case Html(html=html):
                self.output.append(html)
            case SoftBreak():
                self.output.append("\n")
            case HardBreak():
                self.output.append("<br />\n")
            case Rule():
                self.output.append("<hr />\n")
            case FootnoteReference(label=label):
                number = self.footnote_number(label)
                self.output.append(
                    f'<sup class="footnote-reference"><a href="#{escape(label)}">'
                    f"{number}</a></sup>"
                )
            case TaskListMarker(checked=checked):
                checked_attr = ' checked=""' if checked else ""
                self.output.append(f'<input disabled="" type="checkbox"{checked_attr}/>\n')
            case _:
                logger.debug(f"Cannot render event {event!r} as HTML")

    def start(self, tag):
        match tag:
            case Paragraph():
                self.output.append("<p>")
            case Heading(level=level):
                self.output.append(f"<h{level}>")
            case BlockQuote():
                self.output.append("<blockquote>\n")
            case CodeBlock() if tag.language:
                self.output.append(
                    f'<pre><code class="language-{escape(tag.language)}">'
                )
            case CodeBlock():
                self.output.append("<pre><code>")
            case List(start=None):
                self.output.append("<ul>\n")
            case List(start=1):
                self.output.append("<ol>\n")
            case List(start=start):
                self.output.append(f'<ol start="{start}">\n')
            case Item():
                self.output.append("<li>")
            case FootnoteDefinition(label=label):
                number = self.footnote_number(label)
                self.output.append(
                    f'<div class="footnote-definition" id="{escape(label)}">'
                    f'<sup class="footnote-definition-label">{number}</sup>\n'
                )
            case Table(alignments=alignments):
                self.alignments = alignments
                self.output.append("<table>")
            case TableHead():
                self.in_table_head = True
                self.output.append("<thead>")
            case TableRow():
                if not self.in_table_head and not self.table_body_open:
                    self.table_body_open = True
                    self.output.append("<tbody>\n")
                self.column = 0
                self.output.append("<tr>")
            case TableCell():
                cell = "th" if self.in_table_head else "td"
                alignment = (
                    self.alignments[self.column] if self.column < len(self.alignments) else ""
                )
                style = _attr("style", f"text-align: {alignment}" if alignment else "")
                self.output.append(f"<{cell}{style}>")
            case Emphasis():
                self.output.append("<em>")
            case Strong():
                self.output.append("<strong>")
            case Strikethrough():
                self.output.append("<del>")
            case Link(dest=dest, title=title):
                self.output.append(f'<a href="{escape(dest)}"{_attr("title", title)}>')
            case Image():
                self.image_alt = []

    def end(self, tag):
        match tag:
            case Paragraph():
                self.output.append("</p>\n")
            case Heading(level=level):
                self.output.append(f"</h{level}>\n")
            case BlockQuote():
                self.output.append("</blockquote>\n")
            case CodeBlock():
                self.output.append("</code></pre>\n")
            case List(start=None):
                self.output.append("</ul>\n")
            case List():
                self.output.append("</ol>\n")
            case Item():
                self.output.append("</li>\n")
            case FootnoteDefinition():
                self.output.append("</div>\n")
            case Table():
                if self.table_body_open:
                    self.output.append("</tbody>\n")
                self.output.append("</table>\n")
                self.table_body_open = False
                self.alignments = ()
            case TableHead():
                self.in_table_head = False
                self.output.append("</thead>\n")
            case TableRow():
                self.output.append("</tr>\n")
            case TableCell():
                self.output.append("</th>" if self.in_table_head else "</td>")
                self.column += 1
            case Emphasis():
                self.output.append("</em>")
            case Strong():
                self.output.append("</strong>")
            case Strikethrough():
                self.output.append("</del>")
            case Link():
                self.output.append("</a>")
            case Image(dest=dest, title=title):
                alt = "".join(self.image_alt or [])
                self.image_alt = None
                self.output.append(
                    f'<img src="{escape(dest)}" alt="{escape(alt)}"{_attr("title", title)} />'
                )


def _is_image_end(event: SemanticEvent) -> bool:
    return isinstance(event, End) and isinstance(event.tag, Image)
