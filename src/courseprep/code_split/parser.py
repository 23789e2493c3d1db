"""
Parser for code-task directives.

Exercise code marks the parts that only belong to the solution or only to the
placeholder handed out to students with directives. A directive is a line
comment (`#` or `//`) immediately followed by `|` and a keyword:

```python
def add(x, y):
    #| solution
    return x + y
    #| placeholder
    return ...
    #| end

result = add(1, 2)  #| solution
result = ...  #| placeholder
```

A directive on its own line opens (`solution`, `placeholder`) or closes
(`end`) a section; `placeholder` also switches an open solution section to its
placeholder half. A directive following code on the same line applies only to
that line.
"""

import re

from courseprep.code_split.types import CodeTaskDefinition, Segment, SegmentKind

_LEADER = r"(?:#|//)\|"
BLOCK_DIRECTIVE_REGEX = re.compile(
    rf"^(?P<indent>[ \t]*){_LEADER}[ \t]*(?P<keyword>.*?)[ \t]*$"
)
LINE_DIRECTIVE_REGEX = re.compile(
    rf"^(?P<code>.*?\S)(?P<space>[ \t]*){_LEADER}[ \t]*(?P<keyword>\S+)[ \t]*$"
)

KEYWORDS = {"solution", "placeholder", "end"}


class CodeSyntaxError(Exception):
    """A directive is malformed; `line` and `column` are 1-based."""

    def __init__(self, message: str, line: int, column: int = 1):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def __str__(self):
        return f"line {self.line}, column {self.column}: {self.message}"


class _SegmentBuilder:
    def __init__(self):
        self.segments: list[Segment] = []

    def add(self, kind: SegmentKind, text: str):
        if self.segments and self.segments[-1].kind is kind:
            last = self.segments.pop()
            text = last.text + text
        self.segments.append(Segment(kind, text))


def _strip_directive(match: re.Match, line: str) -> str:
    newline = "\n" if line.endswith("\n") else ""
    return match["code"] + newline


def parse_code_string(source: str) -> CodeTaskDefinition:
    """Parse annotated code into a `CodeTaskDefinition`.

    >>> task = parse_code_string("a = 1\\n#| solution\\nb = 2\\n#| end\\n")
    >>> task.split()
    ('a = 1\\n', 'a = 1\\nb = 2\\n')
    """
    builder = _SegmentBuilder()
    section = SegmentKind.COMMON
    opened_at = 0

    for line_num, line in enumerate(source.splitlines(keepends=True), 1):
        content = line.rstrip("\r\n")
        if match := BLOCK_DIRECTIVE_REGEX.match(content):
            keyword = match["keyword"]
            column = len(match["indent"]) + 1
            new_section = _next_section(section, keyword, opened_at, line_num, column)
            if new_section is SegmentKind.COMMON:
                opened_at = 0
            elif section is SegmentKind.COMMON:
                opened_at = line_num
            section = new_section
            continue
        if match := LINE_DIRECTIVE_REGEX.match(content):
            keyword = match["keyword"]
            column = len(match["code"]) + len(match["space"]) + 1
            kind = _line_kind(section, keyword, line_num, column)
            builder.add(kind, _strip_directive(match, line))
            continue
        builder.add(section, line)

    if section is not SegmentKind.COMMON:
        raise CodeSyntaxError(
            f"unterminated {section.value} section (opened at line {opened_at}); "
            f"expected '#| end'",
            line=opened_at,
        )
    return CodeTaskDefinition(builder.segments)


def _next_section(
    section: SegmentKind, keyword: str, opened_at: int, line: int, column: int
) -> SegmentKind:
    if keyword not in KEYWORDS:
        raise CodeSyntaxError(_unknown_keyword_message(keyword), line, column)
    match keyword, section:
        case "solution", SegmentKind.COMMON:
            return SegmentKind.SOLUTION
        case "solution", _:
            raise CodeSyntaxError(
                f"nested 'solution' marker inside the {section.value} section "
                f"opened at line {opened_at}",
                line,
                column,
            )
        case "placeholder", SegmentKind.PLACEHOLDER:
            raise CodeSyntaxError(
                f"nested 'placeholder' marker inside the placeholder section "
                f"opened at line {opened_at}",
                line,
                column,
            )
        case "placeholder", _:
            return SegmentKind.PLACEHOLDER
        case "end", SegmentKind.COMMON:
            raise CodeSyntaxError("'end' marker without an open section", line, column)
        case _:
            return SegmentKind.COMMON


def _line_kind(section: SegmentKind, keyword: str, line: int, column: int) -> SegmentKind:
    if keyword not in ("solution", "placeholder"):
        raise CodeSyntaxError(_unknown_keyword_message(keyword, trailing=True), line, column)
    if section is not SegmentKind.COMMON:
        raise CodeSyntaxError(
            f"line marker '{keyword}' inside a {section.value} section", line, column
        )
    return SegmentKind(keyword)


def _unknown_keyword_message(keyword: str, trailing: bool = False) -> str:
    if not keyword:
        return "missing directive keyword after '#|'"
    expected = "'solution' or 'placeholder'" if trailing else "'solution', 'placeholder' or 'end'"
    return f"unknown directive {keyword!r}; expected {expected}"
