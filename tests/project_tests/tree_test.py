from pathlib import Path

import pytest

from courseprep.config import InputFormat
from courseprep.project.tree import Chapter, Item, Part, Project


def item(name: str, content: str = "") -> Item[str]:
    return Item.from_path(Path(f"/course/{name}.md"), content or name)


@pytest.fixture
def project() -> Project[str]:
    ch1 = Chapter("ch1", item("ch1-index"), [item("a"), item("b")], [Path("/course/x.png")])
    ch2 = Chapter("ch2", item("ch2-index"), [item("c")])
    part1 = Part("part1", item("part1-index"), [ch1, ch2])
    part2 = Part("part2", item("part2-index"))
    return Project(Path("/course"), item("index"), [part1, part2])


def test_item_from_path():
    result = Item.from_path(Path("/course/loops.ipynb"), "{}")

    assert result.id == "loops"
    assert result.format is InputFormat.NOTEBOOK


def test_items_are_in_pre_order(project):
    assert [i.content for i in project.items()] == [
        "index",
        "part1-index",
        "ch1-index",
        "a",
        "b",
        "ch2-index",
        "c",
        "part2-index",
    ]


def test_transform_keeps_shape(project):
    result = project.transform(str.upper)

    assert [i.content for i in result.items()] == [
        i.content.upper() for i in project.items()
    ]
    assert [i.id for i in result.items()] == [i.id for i in project.items()]
    assert result.parts[0].chapters[0].files == (Path("/course/x.png"),)


def test_transform_identity(project):
    assert project.transform(lambda content: content) == project


def test_transform_parents_passes_enclosing_nodes(project):
    def describe(item, part, chapter):
        return (
            item.content,
            part.id if part else None,
            chapter.id if chapter else None,
        )

    result = project.transform_parents(describe)

    assert [i.content for i in result.items()] == [
        ("index", None, None),
        ("part1-index", "part1", None),
        ("ch1-index", "part1", "ch1"),
        ("a", "part1", "ch1"),
        ("b", "part1", "ch1"),
        ("ch2-index", "part1", "ch2"),
        ("c", "part1", "ch2"),
        ("part2-index", "part2", None),
    ]


def test_transform_parents_visits_in_pre_order(project):
    visited = []

    def record(item, part, chapter):
        visited.append(item.content)
        return item.content

    project.transform_parents(record)

    assert visited == [i.content for i in project.items()]


def test_transform_parents_stops_at_first_failure(project):
    visited = []

    def fail_on_b(item, part, chapter):
        visited.append(item.content)
        if item.content == "b":
            raise ValueError("b")
        return item.content

    with pytest.raises(ValueError):
        project.transform_parents(fail_on_b)

    assert visited[-1] == "b"
    assert "c" not in visited
