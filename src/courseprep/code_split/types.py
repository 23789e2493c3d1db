from enum import Enum
from typing import Iterable, Iterator

from attr import field, frozen


class SegmentKind(Enum):
    COMMON = "common"
    SOLUTION = "solution"
    PLACEHOLDER = "placeholder"

    @property
    def in_solution(self) -> bool:
        return self is not SegmentKind.PLACEHOLDER

    @property
    def in_placeholder(self) -> bool:
        return self is not SegmentKind.SOLUTION


@frozen
class Segment:
    kind: SegmentKind
    text: str
    block: str = ""
    """Identity of the code block the segment was taken from."""


@frozen
class CodeTaskDefinition:
    """The split of annotated code into solution and placeholder.

    Segments are kept in source order. Common segments contribute to both
    outputs, solution and placeholder segments only to one of them.

    >>> task = CodeTaskDefinition([
    ...     Segment(SegmentKind.COMMON, "a = 1\\n"),
    ...     Segment(SegmentKind.SOLUTION, "b = 2\\n"),
    ...     Segment(SegmentKind.PLACEHOLDER, "b = ...\\n"),
    ... ])
    >>> task.solution()
    'a = 1\\nb = 2\\n'
    >>> task.placeholder()
    'a = 1\\nb = ...\\n'
    """

    segments: tuple[Segment, ...] = field(factory=tuple, converter=tuple)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __bool__(self) -> bool:
        return bool(self.segments)

    def solution(self) -> str:
        return "".join(seg.text for seg in self.segments if seg.kind.in_solution)

    def placeholder(self) -> str:
        return "".join(seg.text for seg in self.segments if seg.kind.in_placeholder)

    def split(self) -> tuple[str, str]:
        """Return the placeholder and the solution."""
        return self.placeholder(), self.solution()

    def blocks(self) -> list[str]:
        """Return the identities of all blocks, in order of first appearance."""
        return list(dict.fromkeys(seg.block for seg in self.segments))

    def for_block(self, block: str) -> "CodeTaskDefinition":
        return CodeTaskDefinition(seg for seg in self.segments if seg.block == block)

    def extend(self, segments: Iterable[Segment]) -> "CodeTaskDefinition":
        return CodeTaskDefinition((*self.segments, *segments))

    def with_block(self, block: str) -> "CodeTaskDefinition":
        return CodeTaskDefinition(
            Segment(seg.kind, seg.text, block) for seg in self.segments
        )

    def to_dict(self) -> dict:
        return {
            "blocks": [
                {
                    "id": block,
                    "segments": [
                        {"kind": seg.kind.value, "text": seg.text}
                        for seg in self.for_block(block)
                    ],
                }
                for block in self.blocks()
            ]
        }
