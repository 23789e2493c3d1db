import pytest
from nbformat.v4 import (
    new_code_cell,
    new_markdown_cell,
    new_output,
    new_raw_cell,
)

from courseprep.code_split.processor import CodeSplitProcessor
from courseprep.core.events import CodeBlock, End, Heading, Html, Start, Text
from courseprep.errors import FormatError
from courseprep.loaders.notebook import escape_backslashes, load_notebook


def text_of(doc) -> str:
    return "".join(event.text for event in doc.events() if isinstance(event, Text))


def test_front_matter_from_raw_cell(notebook_text):
    doc = load_notebook(notebook_text)

    assert doc.metadata.title == "Loops"
    assert doc.metadata.doc_type == "exercise"
    assert "title" not in text_of(doc)


def test_markdown_and_code_cells(notebook_text):
    doc = load_notebook(notebook_text)

    assert doc.events()[:3] == [Start(Heading(1)), Text("Loops"), End(Heading(1))]
    assert doc.events()[-3:] == [
        Start(CodeBlock("python")),
        Text("for i in range(3):\n    print(i)\n"),
        End(CodeBlock("python")),
    ]


def test_positions_name_the_cell(notebook_text):
    doc = load_notebook(notebook_text)

    assert doc.content[0][1].cell == 1
    assert doc.content[-1][1].cell == 2
    assert doc.content[-1][1].line == 2


def test_front_matter_from_yaml_code_cell(make_notebook):
    cell = new_code_cell("title: From YAML", metadata={"vscode": {"languageId": "yaml"}})
    text = make_notebook([cell, new_markdown_cell("Body")])

    doc = load_notebook(text)

    assert doc.metadata.title == "From YAML"
    assert text_of(doc) == "Body"


def test_notebook_without_front_matter(make_notebook):
    doc = load_notebook(make_notebook([new_markdown_cell("Body")]))

    assert doc.metadata.title is None
    assert doc.metadata.doc_type == "text"


def test_raw_cells_after_the_first_are_skipped(make_notebook):
    text = make_notebook([new_markdown_cell("A"), new_raw_cell("raw")])

    assert text_of(load_notebook(text)) == "A"


def test_language_from_kernelspec(make_notebook):
    text = make_notebook(
        [new_code_cell("val x = 1")],
        kernelspec={"display_name": "Kotlin", "language": "kotlin", "name": "kotlin"},
    )

    assert load_notebook(text).events()[0] == Start(CodeBlock("kotlin"))


def test_preprocess_is_applied_to_markdown_cells(make_notebook):
    text = make_notebook([new_markdown_cell("hello"), new_code_cell("hello")])

    doc = load_notebook(text, preprocess=str.upper)

    assert Text("HELLO") in doc.events()
    assert Text("hello\n") in doc.events()


def test_backslashes_survive_markdown(make_notebook):
    text = make_notebook([new_markdown_cell(r"$\{x\}$ and `\n`")])

    assert text_of(load_notebook(text)) == r"$\{x\}$ and "


def test_escape_backslashes_keeps_code():
    assert escape_backslashes(r"\a `\b` \c") == r"\\a `\b` \\c"


def test_outputs_are_ignored_by_default(make_notebook):
    cell = new_code_cell("print(1)", outputs=[new_output("stream", name="stdout", text="1\n")])

    doc = load_notebook(make_notebook([cell]))

    assert len(doc) == 3


def test_outputs(make_notebook):
    cell = new_code_cell(
        "1 + 1",
        outputs=[
            new_output("stream", name="stdout", text="hi\n"),
            new_output("execute_result", data={"text/plain": "2"}, execution_count=1),
            new_output("display_data", data={"text/html": "<b>x</b>"}),
            new_output("error", ename="ValueError", evalue="bad", traceback=[]),
        ],
    )

    events = load_notebook(make_notebook([cell]), include_outputs=True).events()

    assert events[3] == Html('<div class="alert alert-info">\n<p>hi\n</p>\n</div>\n')
    assert events[4:7] == [
        Start(CodeBlock("plaintext", fenced=False)),
        Text("2\n"),
        End(CodeBlock("plaintext", fenced=False)),
    ]
    assert events[7] == Html("<b>x</b>")
    assert events[8] == Text("Error")


def test_outputs_are_not_exercise_code(make_notebook):
    cell = new_code_cell(
        "x = 1  #| solution\nx = ...  #| placeholder\nx",
        outputs=[new_output("execute_result", data={"text/plain": "1"}, execution_count=1)],
    )
    doc = load_notebook(make_notebook([cell]), include_outputs=True)

    result = CodeSplitProcessor().process(doc)

    assert result.variables.solution == "x = 1\nx\n"
    assert Text("1\n") in result.events()
    assert result.variables.task_definition.blocks() == ["block-1"]


def test_malformed_notebook():
    with pytest.raises(FormatError, match="malformed notebook"):
        load_notebook("{not json")


def test_malformed_front_matter_names_cell(make_notebook):
    text = make_notebook([new_raw_cell("title: [unclosed")])

    with pytest.raises(FormatError) as exc_info:
        load_notebook(text)

    assert exc_info.value.position.cell == 0
