import pytest
from configurator import Config

from courseprep.config import (
    InputFormat,
    OutputFormat,
    enabled_outputs,
    language_config,
    load_config,
    parser_settings,
    processor_names,
)
from courseprep.errors import ConfigError, FormatError


def test_default_config():
    config = load_config(user_config=False)

    assert isinstance(config, Config)
    assert config.title == "Course"
    assert config.shortcode_max_depth == 32


def test_all_outputs_are_enabled_by_default():
    config = load_config(user_config=False)

    assert enabled_outputs(config) == [
        OutputFormat.HTML,
        OutputFormat.MARKDOWN,
        OutputFormat.NOTEBOOK,
    ]


def test_project_config_overrides_defaults(tmp_path):
    (tmp_path / "config.yml").write_text(
        "title: My Course\noutputs:\n  notebook: false\n", encoding="utf-8"
    )

    config = load_config(tmp_path, user_config=False)

    assert config.title == "My Course"
    assert enabled_outputs(config) == [OutputFormat.HTML, OutputFormat.MARKDOWN]


def test_missing_project_config_is_ignored(tmp_path):
    config = load_config(tmp_path, user_config=False)

    assert config.title == "Course"


def test_processor_names_for_format():
    config = load_config(user_config=False)

    assert processor_names(config, OutputFormat.HTML) == (
        ["shortcodes", "math"],
        ["code_split"],
    )


def test_processors_can_be_disabled(tmp_path):
    (tmp_path / "config.yml").write_text(
        "parsers:\n  markdown:\n    preprocessors:\n      math: false\n", encoding="utf-8"
    )

    config = load_config(tmp_path, user_config=False)

    assert processor_names(config, OutputFormat.MARKDOWN) == (["shortcodes"], ["code_split"])


def test_parser_settings():
    config = load_config(user_config=False)

    assert parser_settings(config, OutputFormat.NOTEBOOK) == {
        "solutions": False,
        "notebook_outputs": False,
    }


def test_project_parser_settings_are_applied(tmp_path):
    (tmp_path / "config.yml").write_text(
        "parsers:\n  notebook:\n    settings:\n      solutions: true\n", encoding="utf-8"
    )

    config = load_config(tmp_path, user_config=False)

    assert parser_settings(config, OutputFormat.NOTEBOOK)["solutions"] is True
    assert parser_settings(config, OutputFormat.HTML)["solutions"] is False


def test_parsers_key_is_not_shadowed_by_configurator():
    config = load_config(user_config=False)

    assert config.parsers is Config.parsers
    assert processor_names(config, OutputFormat.NOTEBOOK)[1] == ["code_split"]


def test_language_config():
    config = load_config(user_config=False)

    assert language_config(config)["file_extension"] == "py"


def test_unsupported_language(tmp_path):
    (tmp_path / "config.yml").write_text("prog_lang: cobol\n", encoding="utf-8")

    config = load_config(tmp_path, user_config=False)

    with pytest.raises(ConfigError, match="unsupported language"):
        language_config(config)


def test_malformed_project_config(tmp_path):
    (tmp_path / "config.yml").write_text("title: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="could not read configuration"):
        load_config(tmp_path, user_config=False)


@pytest.mark.parametrize(
    "ext, fmt",
    [(".md", InputFormat.MARKDOWN), ("ipynb", InputFormat.NOTEBOOK)],
)
def test_input_format_from_extension(ext, fmt):
    assert InputFormat.from_extension(ext) is fmt


def test_input_format_rejects_unknown_extension():
    with pytest.raises(FormatError, match="invalid extension"):
        InputFormat.from_extension(".txt")


def test_output_format_extensions():
    assert OutputFormat.NOTEBOOK.extension == "ipynb"
    assert OutputFormat.NOTEBOOK.template_extension == "md"
    assert OutputFormat.from_name("html") is OutputFormat.HTML
