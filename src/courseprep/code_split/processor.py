import logging
import tomllib

from attr import define

from courseprep.code_split.parser import CodeSyntaxError, parse_code_string
from courseprep.code_split.types import CodeTaskDefinition
from courseprep.core.document import EventDocument, PositionedEvent, SourcePosition
from courseprep.core.events import CodeBlock, End, Start, Text
from courseprep.core.processor import (
    EventProcessor,
    PreprocessorContext,
    register_event_processor,
)
from courseprep.errors import AttrParseError, CodeParseError

logger = logging.getLogger(__name__)


def parse_code_block_attributes(
    tag: CodeBlock, position: SourcePosition | None = None
) -> dict:
    """Parse the attributes of a fenced code block.

    Attributes follow the language in the info string as TOML inline table.

    >>> parse_code_block_attributes(CodeBlock('python {id = "ex1", hidden = true}'))
    {'id': 'ex1', 'hidden': True}
    >>> parse_code_block_attributes(CodeBlock("python"))
    {}
    """
    text = tag.attributes
    if not text:
        return {}
    try:
        return tomllib.loads(f"attributes = {text}")["attributes"]
    except tomllib.TOMLDecodeError as err:
        raise AttrParseError(
            f"could not parse attributes {text!r}: {err}", position=position
        ) from err


def _is_fenced_block(tag) -> bool:
    return isinstance(tag, CodeBlock) and tag.fenced


@register_event_processor("code_split")
@define
class CodeSplitProcessor(EventProcessor):
    """Replace the code in fenced code blocks by its placeholder.

    The solution code and the task definition of all blocks are accumulated in
    the document variables. With `keep_solutions` the code blocks retain the
    solution instead of the placeholder."""

    keep_solutions: bool = False

    @classmethod
    def from_context(cls, ctx: PreprocessorContext) -> "CodeSplitProcessor":
        return cls(keep_solutions=ctx.include_solutions)

    def process(self, doc: EventDocument) -> EventDocument:
        content: list[PositionedEvent] = []
        solution = doc.variables.solution
        task_definition = doc.variables.task_definition
        block_index = 0
        block_start: tuple[CodeBlock, SourcePosition] | None = None
        block_source: list[str] = []
        text_pos: SourcePosition | None = None

        for event, pos in doc.content:
            if isinstance(event, Start) and _is_fenced_block(event.tag):
                block_start = (event.tag, pos)
                block_source = []
                text_pos = None
                content.append((event, pos))
            elif block_start is not None and isinstance(event, Text):
                block_source.append(event.text)
                text_pos = text_pos or pos
            elif block_start is not None and isinstance(event, End) and _is_fenced_block(event.tag):
                block_index += 1
                block_task = self._split_block(
                    "".join(block_source), block_start, block_index, pos
                )
                placeholder, block_solution = block_task.split()
                text = block_solution if self.keep_solutions else placeholder
                content.append((Text(text.strip()), text_pos or pos))
                content.append((event, pos))
                solution = _append_code(solution, block_solution)
                task_definition = task_definition.extend(block_task)
                block_start = None
            else:
                content.append((event, pos))

        logger.debug(f"Split {block_index} code blocks")
        return doc.with_content(content).with_variables(
            solution=solution, task_definition=task_definition
        )

    @staticmethod
    def _split_block(
        source: str,
        block_start: tuple[CodeBlock, SourcePosition],
        block_index: int,
        end_pos: SourcePosition,
    ) -> CodeTaskDefinition:
        tag, start_pos = block_start
        attributes = parse_code_block_attributes(tag, start_pos)
        block_id = str(attributes.get("id", f"block-{block_index}"))
        try:
            return parse_code_string(source).with_block(block_id)
        except CodeSyntaxError as err:
            raise CodeParseError(
                f"code split syntax error in block {block_id!r}: {err}", position=end_pos
            ) from err


def _append_code(solution: str, block_solution: str) -> str:
    if solution and block_solution and not solution.endswith("\n"):
        solution += "\n"
    return solution + block_solution
