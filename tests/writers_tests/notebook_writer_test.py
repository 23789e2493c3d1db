import nbformat
import pytest

from courseprep.config import language_config, load_config
from courseprep.loaders.markdown import load_markdown
from courseprep.loaders.notebook import load_notebook
from courseprep.writers.notebook import NotebookWriter

DOCUMENT = """\
---
title: Loops
---
# Loops

Intro text.

```python
for i in range(3):
    print(i)
```

```bash
ls -l
```

More text.
"""


@pytest.fixture
def writer():
    return NotebookWriter.from_language_config(
        "python", language_config(load_config(user_config=False))
    )


def test_cells(writer):
    nb = writer.write(load_markdown(DOCUMENT))

    assert [cell.cell_type for cell in nb.cells] == ["raw", "markdown", "code", "markdown"]
    assert nb.cells[0].source == "title: Loops"
    assert nb.cells[1].source == "# Loops\n\nIntro text."
    assert nb.cells[2].source == "for i in range(3):\n    print(i)"
    assert nb.cells[3].source == "```bash\nls -l\n```\n\nMore text."


def test_code_cells_have_no_outputs(writer):
    nb = writer.write(load_markdown(DOCUMENT))

    assert nb.cells[2].outputs == []
    assert nb.cells[2].execution_count is None


def test_cell_ids_are_deterministic(writer):
    nb = writer.write(load_markdown(DOCUMENT))

    assert [cell.id for cell in nb.cells] == ["cell-0", "cell-1", "cell-2", "cell-3"]


def test_metadata(writer):
    nb = writer.write(load_markdown(DOCUMENT))

    assert nb.metadata.kernelspec.name == "python3"
    assert nb.metadata.language_info.name == "python"


def test_notebook_is_valid(writer):
    nb = nbformat.reads(writer.writes(load_markdown(DOCUMENT)), as_version=4)

    nbformat.validate(nb)


def test_no_front_matter_cell_without_metadata():
    nb = NotebookWriter().write(load_markdown("Text\n"))

    assert [cell.cell_type for cell in nb.cells] == ["markdown"]


def test_written_notebook_loads_again(writer):
    doc = load_markdown(DOCUMENT)

    reloaded = load_notebook(writer.writes(doc))

    assert reloaded.metadata == doc.metadata
    assert reloaded.events() == doc.events()
