"""
The structure of a course project.

A project consists of parts, parts consist of chapters, and chapters consist of
documents. The project, each part, and each chapter also have an index
document. All classes are immutable: transforming the content of the documents
creates a new tree with the same shape and ids.

## Classes

- `Item`: A document together with its content.
- `Chapter`: An index document, documents, and other files.
- `Part`: An index document and chapters.
- `Project`: An index document and parts.
"""

from pathlib import Path
from typing import Any, Callable, Generic, TypeVar

from attr import evolve, field, frozen

from courseprep.config import InputFormat

C = TypeVar("C")
D = TypeVar("D")


@frozen
class Item(Generic[C]):
    id: str
    format: InputFormat
    path: Path
    content: C

    @classmethod
    def from_path(cls, path: Path, content: C) -> "Item[C]":
        """Create an item for the document at `path`.

        >>> Item.from_path(Path("loops.ipynb"), "").format
        <InputFormat.NOTEBOOK: 'notebook'>
        """
        return cls(path.stem, InputFormat.from_extension(path.suffix), path, content)

    def with_content(self, content: D) -> "Item[D]":
        return evolve(self, content=content)


ItemFunction = Callable[[Any], Any]
ParentsFunction = Callable[[Item, "Part | None", "Chapter | None"], Any]


@frozen
class Chapter(Generic[C]):
    id: str
    index: Item[C]
    documents: tuple[Item[C], ...] = field(factory=tuple, converter=tuple)
    files: tuple[Path, ...] = field(factory=tuple, converter=tuple)

    def transform(self, fn: ItemFunction) -> "Chapter":
        return evolve(
            self,
            index=self.index.with_content(fn(self.index.content)),
            documents=[doc.with_content(fn(doc.content)) for doc in self.documents],
        )


@frozen
class Part(Generic[C]):
    id: str
    index: Item[C]
    chapters: tuple[Chapter[C], ...] = field(factory=tuple, converter=tuple)

    def transform(self, fn: ItemFunction) -> "Part":
        return evolve(
            self,
            index=self.index.with_content(fn(self.index.content)),
            chapters=[chapter.transform(fn) for chapter in self.chapters],
        )


@frozen
class Project(Generic[C]):
    project_path: Path
    index: Item[C]
    parts: tuple[Part[C], ...] = field(factory=tuple, converter=tuple)

    def items(self) -> list[Item[C]]:
        """Return all items in pre-order."""
        result = [self.index]
        for part in self.parts:
            result.append(part.index)
            for chapter in part.chapters:
                result.append(chapter.index)
                result.extend(chapter.documents)
        return result

    def transform(self, fn: ItemFunction) -> "Project":
        """Apply `fn` to the content of every item."""
        return evolve(
            self,
            index=self.index.with_content(fn(self.index.content)),
            parts=[part.transform(fn) for part in self.parts],
        )

    def transform_parents(self, fn: ParentsFunction) -> "Project":
        """Replace the content of every item by `fn(item, part, chapter)`.

        `part` and `chapter` are the part and chapter the item belongs to. The
        project index gets `None` for both, a part index gets `None` for the
        chapter. Items are visited in pre-order."""

        def apply(item: Item, part: Part | None, chapter: Chapter | None) -> Item:
            return item.with_content(fn(item, part, chapter))

        index = apply(self.index, None, None)
        parts = []
        for part in self.parts:
            part_index = apply(part.index, part, None)
            chapters = []
            for chapter in part.chapters:
                chapter_index = apply(chapter.index, part, chapter)
                documents = [apply(doc, part, chapter) for doc in chapter.documents]
                chapters.append(evolve(chapter, index=chapter_index, documents=documents))
            parts.append(evolve(part, index=part_index, chapters=chapters))
        return evolve(self, index=index, parts=parts)
