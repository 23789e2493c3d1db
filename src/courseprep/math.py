"""
Rendering of TeX math in HTML output.

Inline math is written as `$...$`, display math as `$$...$$`. Math inside
code spans is left untouched, and a `$` that is preceded by a backslash or not
closed is kept as is.
"""

import html
import re

from courseprep.config import OutputFormat
from courseprep.core.processor import (
    Preprocessor,
    PreprocessorContext,
    register_preprocessor,
)
from courseprep.shortcodes.scanner import enclosing_span, find_code_spans

MATH_REGEX = re.compile(
    r"(?<!\\)\$\$(?P<display>.+?)(?<!\\)\$\$"
    r"|(?<![\\$])\$(?P<inline>[^\s$](?:[^$\n]*?[^\s\\$])?)\$(?!\$)",
    re.DOTALL,
)

# Characters that Markdown would interpret; they are encoded as character
# references so that the rendered math passes through Markdown unchanged.
_MARKDOWN_SPECIAL = set("\\`*_[]~^|#!")


def _protect(text: str) -> str:
    return "".join(
        f"&#{ord(char)};" if char in _MARKDOWN_SPECIAL else char
        for char in html.escape(text, quote=False)
    )


class MathRenderer:
    """Render math as markup for MathJax or KaTeX auto-rendering.

    >>> MathRenderer().render("x^2", display=False)
    '<span class="math inline">&#92;(x&#94;2&#92;)</span>'
    """

    def render(self, source: str, display: bool) -> str:
        if display:
            tex = _protect("\\[" + source + "\\]")
            return f'<div class="math display">{tex}</div>'
        tex = _protect("\\(" + source + "\\)")
        return f'<span class="math inline">{tex}</span>'


@register_preprocessor("math")
class MathPreprocessor(Preprocessor):
    def process(self, text: str, ctx: PreprocessorContext) -> str:
        if ctx.output_format is not OutputFormat.HTML:
            return text
        renderer = ctx.math_renderer or MathRenderer()
        spans = find_code_spans(text)
        result = []
        pos = 0
        while match := MATH_REGEX.search(text, pos):
            span = enclosing_span(spans, match.start(), match.start() + 1)
            if span is not None:
                result.append(text[pos : span[1]])
                pos = span[1]
                continue
            result.append(text[pos : match.start()])
            if match["display"] is not None:
                result.append(renderer.render(match["display"].strip(), display=True))
            else:
                result.append(renderer.render(match["inline"], display=False))
            pos = match.end()
        result.append(text[pos:])
        return "".join(result)
