"""
Parser for shortcode invocations.

An invocation is the text between the delimiters of a shortcode, e.g. the
`image(src="cat.png", width=200)` in `{{ image(src="cat.png", width=200) }}`.
It consists of a name and an optional parenthesized list of `key=value`
parameters. Values are quoted strings, numbers, `true`/`false`, or bare words.
"""

import re
from typing import Any

from attr import field, frozen

NAME_REGEX = re.compile(r"[A-Za-z_][\w-]*")
NUMBER_REGEX = re.compile(r"[+-]?\d+(\.\d+)?(?=[\s,)]|$)")
BARE_WORD_REGEX = re.compile(r"[^\s,()=\"']+")

_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"', "'": "'"}


class ShortcodeSyntaxError(Exception):
    """An invocation is malformed; `column` is 1-based."""

    def __init__(self, message: str, column: int):
        super().__init__(message)
        self.message = message
        self.column = column

    def __str__(self):
        return f"column {self.column}: {self.message}"


@frozen
class ShortcodeInvocation:
    name: str
    parameters: dict[str, Any] = field(factory=dict)
    body: str | None = None


class _InvocationScanner:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def error(self, message: str) -> ShortcodeSyntaxError:
        return ShortcodeSyntaxError(message, self.pos + 1)

    def skip_space(self):
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return self.text[self.pos] if not self.at_end() else ""

    def expect(self, char: str):
        if self.peek() != char:
            found = repr(self.peek()) if not self.at_end() else "end of input"
            raise self.error(f"expected {char!r}, found {found}")
        self.pos += 1

    def match(self, regex: re.Pattern) -> str | None:
        if match := regex.match(self.text, self.pos):
            self.pos = match.end()
            return match.group()
        return None

    def name(self, what: str) -> str:
        name = self.match(NAME_REGEX)
        if name is None:
            raise self.error(f"expected {what}")
        return name

    def value(self) -> Any:
        char = self.peek()
        if char in ('"', "'"):
            return self.string(char)
        if (number := self.match(NUMBER_REGEX)) is not None:
            return float(number) if "." in number else int(number)
        word = self.match(BARE_WORD_REGEX)
        if word is None:
            raise self.error("expected a parameter value")
        match word:
            case "true":
                return True
            case "false":
                return False
            case _:
                return word

    def string(self, quote: str) -> str:
        start = self.pos
        self.pos += 1
        chars = []
        while not self.at_end():
            char = self.text[self.pos]
            if char == quote:
                self.pos += 1
                return "".join(chars)
            if char == "\\" and self.pos + 1 < len(self.text):
                escaped = self.text[self.pos + 1]
                chars.append(_ESCAPES.get(escaped, "\\" + escaped))
                self.pos += 2
                continue
            chars.append(char)
            self.pos += 1
        self.pos = start
        raise self.error("unterminated string")


def parse_shortcode(text: str, body: str | None = None) -> ShortcodeInvocation:
    """Parse the text of a shortcode invocation.

    >>> parse_shortcode('figure(src="a.png", width=200, inline=true)')
    ShortcodeInvocation(name='figure', parameters={'src': 'a.png', 'width': 200, 'inline': True}, body=None)
    >>> parse_shortcode("toc").parameters
    {}
    """
    scanner = _InvocationScanner(text.strip())
    name = scanner.name("a shortcode name")
    parameters: dict[str, Any] = {}
    scanner.skip_space()
    if scanner.peek() == "(":
        scanner.pos += 1
        scanner.skip_space()
        while scanner.peek() != ")":
            key_column = scanner.pos + 1
            key = scanner.name("a parameter name")
            if key in parameters:
                raise ShortcodeSyntaxError(f"duplicate parameter {key!r}", key_column)
            scanner.skip_space()
            scanner.expect("=")
            scanner.skip_space()
            parameters[key] = scanner.value()
            scanner.skip_space()
            if scanner.peek() == ",":
                scanner.pos += 1
                scanner.skip_space()
            elif scanner.peek() != ")":
                found = repr(scanner.peek()) if not scanner.at_end() else "end of input"
                raise scanner.error(f"expected ',' or ')', found {found}")
        scanner.pos += 1
        scanner.skip_space()
    if not scanner.at_end():
        raise scanner.error(f"unexpected {scanner.peek()!r} after shortcode")
    return ShortcodeInvocation(name, parameters, body)
