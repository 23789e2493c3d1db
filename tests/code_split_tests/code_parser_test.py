import pytest

from courseprep.code_split.parser import CodeSyntaxError, parse_code_string
from courseprep.code_split.types import CodeTaskDefinition, SegmentKind


def test_code_without_directives_is_common():
    task = parse_code_string("a = 1\nb = 2\n")

    assert task.placeholder() == "a = 1\nb = 2\n"
    assert task.solution() == "a = 1\nb = 2\n"
    assert [seg.kind for seg in task] == [SegmentKind.COMMON]


def test_solution_section():
    task = parse_code_string("A\n#| solution\nS\n#| end\nB\n")

    assert task.solution() == "A\nS\nB\n"
    assert task.placeholder() == "A\nB\n"


def test_solution_with_placeholder_section():
    task = parse_code_string(
        "def f(x):\n"
        "    #| solution\n"
        "    return x + 1\n"
        "    #| placeholder\n"
        "    return ...\n"
        "    #| end\n"
    )

    assert task.solution() == "def f(x):\n    return x + 1\n"
    assert task.placeholder() == "def f(x):\n    return ...\n"


def test_placeholder_section_on_its_own():
    task = parse_code_string("#| placeholder\npass\n#| end\n")

    assert task.solution() == ""
    assert task.placeholder() == "pass\n"


def test_line_directives():
    task = parse_code_string("x = 1  #| solution\nx = ...  #| placeholder\nprint(x)\n")

    assert task.solution() == "x = 1\nprint(x)\n"
    assert task.placeholder() == "x = ...\nprint(x)\n"


def test_slash_comment_directives():
    task = parse_code_string("int x;\n//| solution\nx = 1;\n//| end\n")

    assert task.split() == ("int x;\n", "int x;\nx = 1;\n")


def test_ordinary_comments_are_kept():
    task = parse_code_string("# a comment\nx = 1  # another\n")

    assert task.solution() == "# a comment\nx = 1  # another\n"


def test_empty_source():
    task = parse_code_string("")

    assert task == CodeTaskDefinition()
    assert not task


def test_unterminated_section():
    with pytest.raises(CodeSyntaxError) as exc_info:
        parse_code_string("a\n#| solution\nb\n")

    assert exc_info.value.line == 2
    assert "unterminated solution section" in str(exc_info.value)


def test_end_without_open_section():
    with pytest.raises(CodeSyntaxError, match="without an open section") as exc_info:
        parse_code_string("a\n#| end\n")

    assert exc_info.value.line == 2


def test_nested_solution():
    with pytest.raises(CodeSyntaxError, match="nested 'solution' marker"):
        parse_code_string("#| solution\n#| solution\n#| end\n")


def test_nested_placeholder():
    with pytest.raises(CodeSyntaxError, match="nested 'placeholder' marker"):
        parse_code_string("#| placeholder\n#| placeholder\n#| end\n")


def test_unknown_directive():
    with pytest.raises(CodeSyntaxError, match="unknown directive 'answer'") as exc_info:
        parse_code_string("x = 1\n  #| answer\n")

    assert exc_info.value.line == 2
    assert exc_info.value.column == 3


def test_missing_keyword():
    with pytest.raises(CodeSyntaxError, match="missing directive keyword"):
        parse_code_string("#|\n")


def test_line_directive_inside_section():
    with pytest.raises(CodeSyntaxError, match="inside a solution section"):
        parse_code_string("#| solution\nx = 1  #| placeholder\n#| end\n")
