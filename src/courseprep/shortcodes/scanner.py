"""
Locate code spans and shortcodes in raw document text.

## Classes

- `InlineMatch`: The location of an inline shortcode `{{ ... }}`.
- `BlockMatch`: The location of a block shortcode `{% ... %} ... {% end %}`.
"""

import re

from attr import frozen

INLINE_OPEN = "{{"
INLINE_CLOSE = "}}"
BLOCK_OPEN = "{%"
BLOCK_CLOSE = "%}"

BLOCK_TAG_REGEX = re.compile(r"\{%(.*?)%\}", re.DOTALL)
END_TAG = "end"


def find_code_spans(text: str) -> list[tuple[int, int]]:
    """Return the `(start, end)` offsets of all code spans in `text`.

    A run of three or more backticks opens a fenced span that is closed by the
    next run of the same length; a single backtick opens an inline span that
    is closed by the next backtick. Unclosed spans end the scan.

    >>> find_code_spans("a `b` c ```\\nd\\n``` e")
    [(2, 5), (8, 17)]
    """
    spans = []
    pos = 0
    while (start := text.find("`", pos)) >= 0:
        run = len(text[start:]) - len(text[start:].lstrip("`"))
        if run >= 3:
            delimiter = "`" * run
            close = text.find(delimiter, start + run)
        else:
            delimiter = "`"
            close = text.find(delimiter, start + 1)
        if close < 0:
            break
        end = close + len(delimiter)
        spans.append((start, end))
        pos = end
    return spans


def enclosing_span(
    spans: list[tuple[int, int]], start: int, end: int
) -> tuple[int, int] | None:
    for span_start, span_end in spans:
        if span_start <= start and end <= span_end:
            return span_start, span_end
    return None


@frozen
class InlineMatch:
    """`start` and `end` delimit the whole shortcode in the scanned text."""

    start: int
    end: int
    invocation: str


@frozen
class BlockMatch:
    """`start` and `end` delimit the shortcode including its `{% end %}`."""

    start: int
    end: int
    invocation: str
    body: str


def find_shortcode(
    text: str, pos: int = 0, spans: list[tuple[int, int]] | None = None
) -> InlineMatch | BlockMatch | int | None:
    """Find the first shortcode in `text` starting at `pos`.

    Returns `None` if there is no opening delimiter. If the earliest opening
    delimiter is not closed, its offset is returned instead of a match. Block
    tags that start inside one of the code `spans` do not count when looking
    for the `{% end %}` of a block shortcode.

    >>> find_shortcode("a {{ x }} b")
    InlineMatch(start=2, end=9, invocation=' x ')
    >>> find_shortcode("{% note %}\\nHi\\n{% end %}")
    BlockMatch(start=0, end=23, invocation=' note ', body='\\nHi\\n')
    >>> find_shortcode("a {{ x")
    2
    >>> text = "{% box %}`{% box %}`{% end %}"
    >>> find_shortcode(text, spans=find_code_spans(text)).end
    29
    """
    inline_start = text.find(INLINE_OPEN, pos)
    block_start = text.find(BLOCK_OPEN, pos)
    if inline_start < 0 and block_start < 0:
        return None
    if block_start < 0 or 0 <= inline_start < block_start:
        return _extract_inline(text, inline_start)
    return _extract_block(text, block_start, spans or [])


def _extract_inline(text: str, start: int) -> InlineMatch | int:
    close = text.find(INLINE_CLOSE, start + len(INLINE_OPEN))
    if close < 0:
        return start
    return InlineMatch(
        start, close + len(INLINE_CLOSE), text[start + len(INLINE_OPEN) : close]
    )


def _extract_block(
    text: str, start: int, spans: list[tuple[int, int]]
) -> BlockMatch | int:
    opener = BLOCK_TAG_REGEX.match(text, start)
    if opener is None or opener[1].strip() == END_TAG:
        return start
    # Block shortcodes nest; find the `{% end %}` at the same depth.
    depth = 1
    for tag in BLOCK_TAG_REGEX.finditer(text, opener.end()):
        if enclosing_span(spans, tag.start(), tag.start() + len(BLOCK_OPEN)):
            continue
        depth += -1 if tag[1].strip() == END_TAG else 1
        if depth == 0:
            return BlockMatch(
                start, tag.end(), opener[1], text[opener.end() : tag.start()]
            )
    return start
