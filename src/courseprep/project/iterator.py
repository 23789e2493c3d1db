"""
Flattening of project trees into tagged sequences and their reconstruction.

Each item of a project is tagged by `(part_index, chapter_index, doc_index)`:

- `(0, 0, 0)` is the index of the project,
- `(p, 0, 0)` with `p >= 1` is the index of part `p`,
- `(p, c, 0)` with `c >= 1` is the index of chapter `c` of part `p`,
- `(p, c, d)` with `d >= 1` is document `d` of that chapter.

Indices are 1-based and entries are produced in pre-order, so that `rebuild`
can reconstruct the tree from the transitions between consecutive tags.
"""

from pathlib import Path
from typing import Any, Callable, Generic, Iterable, Iterator, TypeVar

from attr import evolve, field, frozen

from courseprep.project.tree import Chapter, Item, Part, Project

C = TypeVar("C")


@frozen
class ProjectItem(Generic[C]):
    part_index: int
    chapter_index: int
    doc_index: int
    item: Item[C]
    project_path: Path
    part_id: str | None = None
    chapter_id: str | None = None
    files: tuple[Path, ...] = field(factory=tuple, converter=tuple)
    """The non-document files of the chapter, for all entries of a chapter."""

    @property
    def tag(self) -> tuple[int, int, int]:
        return self.part_index, self.chapter_index, self.doc_index

    def with_content(self, content) -> "ProjectItem":
        return evolve(self, item=self.item.with_content(content))


class ProjectIterator(Generic[C]):
    """Iterate over the items of a project in pre-order."""

    def __init__(self, project: Project[C]):
        self.project = project

    def __iter__(self) -> Iterator[ProjectItem[C]]:
        project = self.project
        yield ProjectItem(0, 0, 0, project.index, project.project_path)
        for part_index, part in enumerate(project.parts, 1):
            yield ProjectItem(
                part_index, 0, 0, part.index, project.project_path, part.id
            )
            for chapter_index, chapter in enumerate(part.chapters, 1):
                for doc_index, doc in enumerate((chapter.index, *chapter.documents)):
                    yield ProjectItem(
                        part_index,
                        chapter_index,
                        doc_index,
                        doc,
                        project.project_path,
                        part.id,
                        chapter.id,
                        chapter.files,
                    )


def flatten(project: Project[C]) -> list[ProjectItem[C]]:
    return list(ProjectIterator(project))


class _ChapterBuilder:
    def __init__(self, entry: ProjectItem):
        self.id = entry.chapter_id
        self.index = entry.item
        self.files = entry.files
        self.documents: list[Item] = []

    def build(self) -> Chapter:
        return Chapter(self.id, self.index, self.documents, self.files)


class _PartBuilder:
    def __init__(self, entry: ProjectItem):
        self.id = entry.part_id
        self.index = entry.item
        self.chapters: list[_ChapterBuilder] = []

    def build(self) -> Part:
        return Part(self.id, self.index, [chapter.build() for chapter in self.chapters])


def rebuild(entries: Iterable[ProjectItem[C]]) -> Project[C]:
    """Reconstruct a project from its flattened entries.

    A change of the part index starts a new part, a change of the chapter
    index within a part starts a new chapter. Raises `ValueError` if the
    entries are not in the order produced by `flatten`."""
    entries = iter(entries)
    root = next(entries, None)
    if root is None or root.tag != (0, 0, 0):
        raise ValueError("Flattened project must start with the project index")

    parts: list[_PartBuilder] = []
    last_part, last_chapter = 0, 0
    for entry in entries:
        if entry.part_index == 0:
            raise ValueError(f"Unexpected entry {entry.tag} outside of a part")
        if entry.part_index != last_part:
            if entry.chapter_index != 0 or entry.doc_index != 0:
                raise ValueError(f"Expected the index of a new part, got {entry.tag}")
            parts.append(_PartBuilder(entry))
            last_part, last_chapter = entry.part_index, 0
        elif entry.chapter_index != last_chapter:
            if entry.doc_index != 0:
                raise ValueError(f"Expected the index of a new chapter, got {entry.tag}")
            parts[-1].chapters.append(_ChapterBuilder(entry))
            last_chapter = entry.chapter_index
        elif entry.chapter_index != 0 and entry.doc_index != 0:
            parts[-1].chapters[-1].documents.append(entry.item)
        else:
            raise ValueError(f"Duplicate index entry {entry.tag}")

    return Project(root.project_path, root.item, [part.build() for part in parts])


def transform_flat(project: Project, fn: Callable[[Any], Any]) -> Project:
    """Apply `fn` to the content of every item by flattening the project.

    The result is the same as that of `Project.transform()`."""
    return rebuild(entry.with_content(fn(entry.item.content)) for entry in flatten(project))
