import pytest
from attr import evolve

from courseprep.errors import ShortCodeProcessError
from courseprep.shortcodes.expander import ShortcodeExpander
from courseprep.templates import TemplateEngine


@pytest.fixture
def expander():
    return ShortcodeExpander()


def test_text_without_shortcodes_is_unchanged(expander, md_ctx):
    assert expander.process("Just *text*.\n", md_ctx) == "Just *text*.\n"


def test_inline_shortcode(expander, md_ctx):
    text = 'Say {{ greet(name="World") }} now.'

    assert expander.process(text, md_ctx) == "Say Hello, World! now."


def test_template_depends_on_output_format(expander, md_ctx, html_ctx):
    text = "Press {{ kbd(key=Tab) }}."

    assert expander.process(text, md_ctx) == "Press `Tab`."
    assert expander.process(text, html_ctx) == "Press <kbd>Tab</kbd>."


def test_shortcode_in_inline_code_is_kept(expander, md_ctx):
    text = 'Write `{{ greet(name="x") }}` to greet.'

    assert expander.process(text, md_ctx) == text


def test_shortcode_in_fenced_code_is_kept(expander, md_ctx):
    text = "```jinja\n{% box %}x{% end %}\n{{ greet(name=a) }}\n```\n"

    assert expander.process(text, md_ctx) == text


def test_code_span_does_not_hide_following_shortcodes(expander, md_ctx):
    text = "`{{ kbd(key=a) }}` and {{ kbd(key=b) }}"

    assert expander.process(text, md_ctx) == "`{{ kbd(key=a) }}` and `b`"


def test_opener_in_code_span_does_not_swallow_following_shortcode(expander, md_ctx):
    text = "Type `{{` then {{ kbd(key=a) }}"

    assert expander.process(text, md_ctx) == "Type `{{` then `a`"


def test_block_body_with_shortcode_syntax_in_inline_code(expander, md_ctx):
    text = "{% box %}Write `{% box %}` to open a box.{% end %}"

    assert expander.process(text, md_ctx) == "[Write `{% box %}` to open a box.]\n"


def test_block_body_with_end_tag_in_fenced_code(expander, md_ctx):
    text = "{% box %}\n```\n{% note %}\n{% end %}\n```\n{% end %}"

    assert expander.process(text, md_ctx) == "[```\n{% note %}\n{% end %}\n```]\n"


def test_inline_shortcodes_before_block_shortcodes(expander, md_ctx):
    text = "a {{ kbd(key=x) }} b {% box %} c {% end %}"

    assert expander.process(text, md_ctx) == "a `x` b [c]\n"


def test_nested_block_shortcodes_expand_inner_first(expander, md_ctx):
    text = "{% box %}a {% box %}b{% end %}{% end %}"

    assert expander.process(text, md_ctx) == "[a [b]\n]\n"


def test_block_body_is_rendered_as_html(expander, html_ctx):
    text = "{% note %}\nSome *emphasis*.\n{% end %}"

    assert expander.process(text, html_ctx) == (
        '<div class="note"><p>Some <em>emphasis</em>.</p>\n</div>\n'
    )


def test_block_body_with_inline_shortcode(expander, md_ctx):
    text = "{% box %}{{ kbd(key=q) }}{% end %}"

    assert expander.process(text, md_ctx) == "[`q`]\n"


def test_template_vars_are_available(expander, md_ctx):
    ctx = evolve(md_ctx, template_vars={"course": "Python 101"})

    assert expander.process("{{ course }}", ctx) == "Python 101"


def test_parameters_override_template_vars(expander, md_ctx):
    ctx = evolve(md_ctx, template_vars={"course": "Python 101"})

    assert expander.process("{{ course(course=Java) }}", ctx) == "Java"


def test_unclosed_delimiters_are_copied(expander, md_ctx):
    text = "Set {{ x and {% unclosed"

    assert expander.process(text, md_ctx) == text


def test_unclosed_delimiter_before_shortcode(expander, md_ctx):
    assert expander.process("{% a {{ kbd(key=k) }}", md_ctx) == "{% a `k`"


def test_unknown_shortcode(expander, md_ctx):
    with pytest.raises(ShortCodeProcessError, match="unknown shortcode 'missing'"):
        expander.process("{{ missing }}", md_ctx)


def test_template_error_reports_cause(expander, md_ctx):
    with pytest.raises(ShortCodeProcessError) as exc_info:
        expander.process("{{ broken }}", md_ctx)

    assert "error rendering shortcode 'broken'" in str(exc_info.value)
    assert "undefined_variable" in str(exc_info.value)


def test_runtime_error_in_template_is_reported(expander, md_ctx):
    engine = TemplateEngine({"md/ratio.tera.md": "{{ count // 0 }}"})
    ctx = evolve(md_ctx, template_engine=engine)

    with pytest.raises(ShortCodeProcessError) as exc_info:
        expander.process("{{ ratio(count=3) }}", ctx)

    assert "error rendering shortcode 'ratio'" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, ZeroDivisionError)


def test_syntax_error(expander, md_ctx):
    with pytest.raises(ShortCodeProcessError, match="shortcode syntax error"):
        expander.process("{{ greet(name=) }}", md_ctx)


def test_nesting_depth_is_limited(md_ctx):
    expander = ShortcodeExpander(max_depth=1)

    assert expander.process("{% box %}x{% end %}", md_ctx) == "[x]\n"
    with pytest.raises(ShortCodeProcessError, match="nested deeper than 1 levels"):
        expander.process("{% box %}{% box %}x{% end %}{% end %}", md_ctx)
