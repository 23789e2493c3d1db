"""
Exceptions raised while processing course documents.

Every error raised by a processing stage derives from `CourseprepError`. Errors
carry the source position of the offending content where it is known and the
path of the document otherwise; the path is attached by the processor chain.

## Classes

- `CourseprepError`: Base class of all errors.
- `CodeParseError`: Malformed code-task directive inside a code block.
- `ShortCodeProcessError`: Shortcode syntax error or template failure.
- `FormatError`: Unknown file format or malformed front matter.
- `AttrParseError`: Malformed attributes of a fenced code block.
- `ConfigError`: Malformed project configuration.
"""

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from courseprep.core.document import SourcePosition


class CourseprepError(Exception):
    def __init__(
        self,
        message: str,
        position: "SourcePosition | None" = None,
        path: Path | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.path = path

    def with_path(self, path: Path) -> "CourseprepError":
        """Attach `path` unless the error already names a document."""
        if self.path is None:
            self.path = Path(path)
        return self

    def __str__(self):
        prefix = []
        if self.path is not None:
            prefix.append(self.path.as_posix())
        if self.position is not None:
            prefix.append(str(self.position))
        if prefix:
            return f"{': '.join(prefix)}: {self.message}"
        return self.message


class CodeParseError(CourseprepError):
    """A code block contains a malformed code-task directive.

    The position is the position of the end of the code block; the message
    summarizes the grammar error in human-readable form."""


class ShortCodeProcessError(CourseprepError):
    """A shortcode could not be parsed or its template could not be rendered."""

    @classmethod
    def from_template_error(cls, name: str, err: BaseException):
        return cls(f"error rendering shortcode '{name}': {causal_chain(err)}")


class FormatError(CourseprepError):
    pass


class AttrParseError(CourseprepError):
    pass


class ConfigError(CourseprepError):
    pass


def causal_chain(err: BaseException) -> str:
    """Render an exception together with all of its causes.

    >>> try:
    ...     try:
    ...         raise KeyError("x")
    ...     except KeyError as inner:
    ...         raise ValueError("outer") from inner
    ... except ValueError as e:
    ...     causal_chain(e)
    "outer: caused by KeyError: 'x'"
    """
    parts = [str(err)]
    current = err.__cause__ or err.__context__
    while current is not None:
        parts.append(f"caused by {type(current).__name__}: {current}")
        current = current.__cause__ or current.__context__
    return ": ".join(parts)
