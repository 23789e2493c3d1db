import logging

import jinja2
from attr import define

from courseprep.config import OutputFormat
from courseprep.core.processor import (
    Preprocessor,
    PreprocessorContext,
    register_preprocessor,
)
from courseprep.errors import ShortCodeProcessError
from courseprep.shortcodes.parser import (
    ShortcodeInvocation,
    ShortcodeSyntaxError,
    parse_shortcode,
)
from courseprep.shortcodes.scanner import (
    BLOCK_OPEN,
    BlockMatch,
    InlineMatch,
    enclosing_span,
    find_code_spans,
    find_shortcode,
)
from courseprep.writers.html import HtmlRenderer

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32


def template_name(name: str, output_format: OutputFormat) -> str:
    """Return the name of the template rendering the shortcode `name`.

    >>> template_name("figure", OutputFormat.HTML)
    'html/figure.tera.html'
    >>> template_name("figure", OutputFormat.NOTEBOOK)
    'md/figure.tera.md'
    """
    ext = output_format.template_extension
    return f"{ext}/{name}.tera.{ext}"


@register_preprocessor("shortcodes")
@define
class ShortcodeExpander(Preprocessor):
    """Replace shortcodes by their rendered templates.

    Shortcodes inside inline code or fenced code blocks are left untouched.
    The bodies of block shortcodes are expanded before the enclosing shortcode
    is rendered; `max_depth` limits how deeply block shortcodes may nest."""

    max_depth: int = DEFAULT_MAX_DEPTH

    @classmethod
    def from_context(cls, ctx: PreprocessorContext) -> "ShortcodeExpander":
        return cls(max_depth=ctx.shortcode_max_depth)

    def process(self, text: str, ctx: PreprocessorContext) -> str:
        return self.expand(text, ctx, depth=0)

    def expand(self, text: str, ctx: PreprocessorContext, depth: int) -> str:
        if depth > self.max_depth:
            raise ShortCodeProcessError(
                f"block shortcodes nested deeper than {self.max_depth} levels"
            )
        spans = find_code_spans(text)
        result = []
        pos = 0
        while pos < len(text):
            found = find_shortcode(text, pos, spans)
            if found is None:
                break
            if isinstance(found, int):
                # Unclosed delimiter: keep it and look for the next one.
                end = found + len(BLOCK_OPEN)
                result.append(text[pos:end])
                pos = end
                continue
            span = enclosing_span(spans, found.start, found.start + len(BLOCK_OPEN))
            if span is not None:
                result.append(text[pos : span[1]])
                pos = span[1]
                continue
            result.append(text[pos : found.start])
            result.append(self.render(found, ctx, depth))
            pos = found.end
        result.append(text[pos:])
        return "".join(result)

    def render(
        self, found: InlineMatch | BlockMatch, ctx: PreprocessorContext, depth: int
    ) -> str:
        match found:
            case InlineMatch(invocation=text):
                invocation = _parse(text)
                return self.render_template(invocation, ctx)
            case BlockMatch(invocation=text, body=body):
                body = self.expand(body.strip(), ctx, depth + 1)
                if ctx.output_format is OutputFormat.HTML:
                    body = _markup_renderer(ctx).render_markdown(body)
                invocation = _parse(text, body)
                return self.render_template(invocation, ctx) + "\n"
            case _:
                raise TypeError(f"Not a shortcode match: {found!r}")

    def render_template(
        self, invocation: ShortcodeInvocation, ctx: PreprocessorContext
    ) -> str:
        name = template_name(invocation.name, ctx.output_format)
        context = dict(ctx.template_vars)
        context.update(invocation.parameters)
        if invocation.body is not None:
            context["body"] = invocation.body
        logger.debug(f"Rendering shortcode '{invocation.name}' with {name}")
        try:
            return ctx.template_engine.render(name, context)
        except jinja2.TemplateNotFound as err:
            raise ShortCodeProcessError(
                f"unknown shortcode '{invocation.name}': template {name!r} not found"
            ) from err
        except Exception as err:
            # Filters, tests and operators raise arbitrary exceptions.
            raise ShortCodeProcessError.from_template_error(invocation.name, err) from err


def _parse(text: str, body: str | None = None) -> ShortcodeInvocation:
    try:
        return parse_shortcode(text, body)
    except ShortcodeSyntaxError as err:
        raise ShortCodeProcessError(
            f"shortcode syntax error in {text.strip()!r}: {err}"
        ) from err


def _markup_renderer(ctx: PreprocessorContext) -> HtmlRenderer:
    return ctx.markup_renderer or HtmlRenderer()
