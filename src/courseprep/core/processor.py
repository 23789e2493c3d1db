"""
Processing stages and the chain that applies them.

A `Preprocessor` rewrites the raw text of a document before it is parsed, an
`EventProcessor` rewrites the parsed `EventDocument`. A `ProcessorChain`
applies a list of both to a document; the first failing stage aborts the
chain.

The available processors form a closed set: each processor type registers
itself under a name in `PREPROCESSOR_TYPES` or `EVENT_PROCESSOR_TYPES`, and
project configurations refer to processors by these names.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

from attr import define, field, frozen

from courseprep.config import OutputFormat
from courseprep.core.document import EventDocument
from courseprep.errors import ConfigError

if TYPE_CHECKING:
    from courseprep.math import MathRenderer
    from courseprep.templates import TemplateEngine
    from courseprep.writers.html import HtmlRenderer

logger = logging.getLogger(__name__)


@frozen
class PreprocessorContext:
    """Read-only state shared by all preprocessors of a build."""

    template_engine: "TemplateEngine"
    output_format: OutputFormat
    template_vars: dict[str, Any] = field(factory=dict, eq=False)
    markup_renderer: "HtmlRenderer | None" = None
    math_renderer: "MathRenderer | None" = None
    shortcode_max_depth: int = 32
    include_solutions: bool = False


class Preprocessor(ABC):
    name: str = "preprocessor"

    @classmethod
    def from_context(cls, ctx: PreprocessorContext) -> "Preprocessor":
        return cls()

    @abstractmethod
    def process(self, text: str, ctx: PreprocessorContext) -> str:
        """Return the rewritten text.

        Must not depend on any state apart from `text` and `ctx`."""
        ...


class EventProcessor(ABC):
    name: str = "event processor"

    @classmethod
    def from_context(cls, ctx: PreprocessorContext) -> "EventProcessor":
        return cls()

    @abstractmethod
    def process(self, doc: EventDocument) -> EventDocument:
        """Return the rewritten document.

        The metadata of `doc` is preserved unless the processor explicitly
        transforms it."""
        ...


PREPROCESSOR_TYPES: dict[str, type[Preprocessor]] = {}
"""Mapping from name to preprocessor type.

Entries are added by each individual preprocessor type."""

EVENT_PROCESSOR_TYPES: dict[str, type[EventProcessor]] = {}
"""Mapping from name to event processor type.

Entries are added by each individual event processor type."""


def register_preprocessor(name: str) -> Callable[[type], type]:
    def register(cls):
        cls.name = name
        PREPROCESSOR_TYPES[name] = cls
        return cls

    return register


def register_event_processor(name: str) -> Callable[[type], type]:
    def register(cls):
        cls.name = name
        EVENT_PROCESSOR_TYPES[name] = cls
        return cls

    return register


@define
class ProcessorChain:
    preprocessors: list[Preprocessor] = field(factory=list)
    event_processors: list[EventProcessor] = field(factory=list)

    @classmethod
    def from_names(
        cls,
        preprocessor_names: list[str],
        event_processor_names: list[str],
        ctx: PreprocessorContext,
    ) -> "ProcessorChain":
        try:
            preprocessors = [
                PREPROCESSOR_TYPES[name].from_context(ctx) for name in preprocessor_names
            ]
            event_processors = [
                EVENT_PROCESSOR_TYPES[name].from_context(ctx)
                for name in event_processor_names
            ]
        except KeyError as err:
            raise ConfigError(f"unknown processor: {err.args[0]!r}") from None
        return cls(preprocessors, event_processors)

    def preprocess(self, text: str, ctx: PreprocessorContext) -> str:
        for preprocessor in self.preprocessors:
            logger.debug(f"Running preprocessor '{preprocessor.name}'")
            text = preprocessor.process(text, ctx)
        return text

    def process_events(self, doc: EventDocument) -> EventDocument:
        for processor in self.event_processors:
            logger.debug(f"Running event processor '{processor.name}'")
            doc = processor.process(doc)
        return doc
