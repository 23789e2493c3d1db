"""
Parsing of course documents for one output format.

A `Parser` loads a document, runs the configured processors on it, and renders
the result in its output format. The processors are looked up by name in the
processor registries; importing this module registers all processors that
courseprep provides.
"""

import logging
from pathlib import Path
from typing import Any

from attr import define, field, frozen
from configurator import Config

from courseprep.code_split.processor import CodeSplitProcessor
from courseprep.config import (
    InputFormat,
    OutputFormat,
    language_config,
    parser_settings,
    processor_names,
)
from courseprep.core.document import EventDocument, split_front_matter
from courseprep.core.events import Code, End, Heading, Start, Text
from courseprep.core.processor import PreprocessorContext, ProcessorChain
from courseprep.errors import ConfigError, CourseprepError
from courseprep.loaders.markdown import parse_markdown
from courseprep.loaders.notebook import load_notebook
from courseprep.math import MathPreprocessor, MathRenderer
from courseprep.shortcodes.expander import ShortcodeExpander
from courseprep.templates import TemplateEngine
from courseprep.writers.html import HtmlRenderer
from courseprep.writers.markdown import MarkdownWriter
from courseprep.writers.notebook import NotebookWriter

logger = logging.getLogger(__name__)

PROCESSOR_TYPES = (ShortcodeExpander, MathPreprocessor, CodeSplitProcessor)


@frozen
class ParserSettings:
    solutions: bool = False
    """Keep the solution in code blocks instead of the placeholder."""
    notebook_outputs: bool = False
    """Convert the outputs of notebook cells into events."""


def find_title(doc: EventDocument) -> str:
    """Return the text of the first level-1 heading of `doc`.

    >>> find_title(EventDocument(content=parse_markdown("Intro\\n# A `b` c\\n# D")))
    'A b c'
    """
    title: list[str] | None = None
    for event in doc.events():
        match event:
            case Start(tag=Heading(level=1)) if title is None:
                title = []
            case Text(text=text) | Code(text=text) if title is not None:
                title.append(text)
            case End(tag=Heading(level=1)) if title is not None:
                return "".join(title).strip()
    return ""


@define
class Parser:
    ctx: PreprocessorContext
    chain: ProcessorChain = field(factory=ProcessorChain)
    settings: ParserSettings = field(factory=ParserSettings)
    notebook_writer: NotebookWriter = field(factory=NotebookWriter)

    @classmethod
    def from_config(
        cls,
        config: Config,
        output_format: OutputFormat,
        template_engine: TemplateEngine,
        template_vars: dict[str, Any] | None = None,
        settings: ParserSettings | None = None,
    ) -> "Parser":
        if settings is None:
            try:
                settings = ParserSettings(**parser_settings(config, output_format))
            except TypeError as err:
                raise ConfigError(f"invalid parser settings: {err}") from err
        ctx = PreprocessorContext(
            template_engine=template_engine,
            output_format=output_format,
            template_vars=template_vars or {},
            markup_renderer=HtmlRenderer(),
            math_renderer=MathRenderer(),
            shortcode_max_depth=int(config.shortcode_max_depth),
            include_solutions=settings.solutions,
        )
        preprocessors, event_processors = processor_names(config, output_format)
        chain = ProcessorChain.from_names(preprocessors, event_processors, ctx)
        notebook_writer = NotebookWriter.from_language_config(
            config.prog_lang, language_config(config)
        )
        return cls(ctx, chain, settings, notebook_writer)

    @property
    def output_format(self) -> OutputFormat:
        return self.ctx.output_format

    def preprocess(self, text: str) -> str:
        return self.chain.preprocess(text, self.ctx)

    def load(self, content: str, input_format: InputFormat) -> EventDocument:
        match input_format:
            case InputFormat.MARKDOWN:
                front_matter, body, line_offset = split_front_matter(content)
                events = parse_markdown(self.preprocess(body), line_offset)
                return EventDocument(front_matter, events)
            case InputFormat.NOTEBOOK:
                return load_notebook(
                    content,
                    preprocess=self.preprocess,
                    include_outputs=self.settings.notebook_outputs,
                )

    def parse(
        self, content: str, input_format: InputFormat, path: Path | None = None
    ) -> EventDocument:
        """Load `content` and run all processors on it.

        Errors raised while processing are annotated with `path`."""
        logger.debug(f"Parsing {path or 'document'} for {self.output_format.value}")
        try:
            doc = self.load(content, input_format)
            doc = self.chain.process_events(doc)
        except CourseprepError as err:
            if path is not None:
                err.with_path(path)
            raise
        title = find_title(doc) or doc.metadata.title or ""
        return doc.with_variables(title=title)

    def render(self, doc: EventDocument) -> str:
        match self.output_format:
            case OutputFormat.HTML:
                return (self.ctx.markup_renderer or HtmlRenderer()).render(doc.content)
            case OutputFormat.MARKDOWN:
                return MarkdownWriter().write_document(doc)
            case OutputFormat.NOTEBOOK:
                return self.notebook_writer.writes(doc)
