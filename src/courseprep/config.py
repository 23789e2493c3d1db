import logging
from enum import Enum
from pathlib import Path

from configurator import Config
from configurator.node import ConfigNode
from platformdirs import user_config_dir

from courseprep.errors import ConfigError, FormatError

logger = logging.getLogger(__name__)


class InputFormat(Enum):
    MARKDOWN = "markdown"
    NOTEBOOK = "notebook"

    @property
    def extension(self) -> str:
        return _INPUT_EXTENSIONS[self]

    @classmethod
    def from_extension(cls, ext: str) -> "InputFormat":
        """Return the input format for a file extension.

        >>> InputFormat.from_extension(".ipynb")
        <InputFormat.NOTEBOOK: 'notebook'>
        """
        ext = ext.lstrip(".")
        for fmt, fmt_ext in _INPUT_EXTENSIONS.items():
            if fmt_ext == ext:
                return fmt
        raise FormatError(f"invalid extension for input: {ext!r}")

    @classmethod
    def from_name(cls, name: str) -> "InputFormat":
        try:
            return cls(name)
        except ValueError:
            raise FormatError(f"invalid format name for input: {name!r}") from None


_INPUT_EXTENSIONS = {
    InputFormat.MARKDOWN: "md",
    InputFormat.NOTEBOOK: "ipynb",
}


class OutputFormat(Enum):
    MARKDOWN = "markdown"
    NOTEBOOK = "notebook"
    HTML = "html"

    @property
    def extension(self) -> str:
        return _OUTPUT_EXTENSIONS[self][0]

    @property
    def template_extension(self) -> str:
        """The extension used to look up shortcode templates.

        Notebooks are rendered from Markdown cells, so they share the Markdown
        templates."""
        return _OUTPUT_EXTENSIONS[self][1]

    @classmethod
    def from_extension(cls, ext: str) -> "OutputFormat":
        ext = ext.lstrip(".")
        for fmt, (fmt_ext, _) in _OUTPUT_EXTENSIONS.items():
            if fmt_ext == ext:
                return fmt
        raise FormatError(f"invalid extension for output: {ext!r}")

    @classmethod
    def from_name(cls, name: str) -> "OutputFormat":
        try:
            return cls(name)
        except ValueError:
            raise FormatError(f"invalid format name for output: {name!r}") from None


_OUTPUT_EXTENSIONS = {
    OutputFormat.MARKDOWN: ("md", "md"),
    OutputFormat.NOTEBOOK: ("ipynb", "md"),
    OutputFormat.HTML: ("html", "html"),
}


_python_config = {
    "file_extension": "py",
    "language_info": {
        "codemirror_mode": {"name": "ipython", "version": 3},
        "file_extension": ".py",
        "mimetype": "text/x-python",
        "name": "python",
        "nbconvert_exporter": "python",
        "pygments_lexer": "ipython3",
    },
    "kernelspec": {
        "display_name": "Python 3 (ipykernel)",
        "language": "python",
        "name": "python3",
    },
}


def _default_parser() -> dict:
    return {
        "preprocessors": {"shortcodes": True, "math": True},
        "event_processors": {"code_split": True},
        "settings": {"solutions": False, "notebook_outputs": False},
    }


_default_config = Config(
    {
        "title": "Course",
        "build_dir": "build",
        "prog_lang": "python",
        "languages": {"python": _python_config},
        "outputs": {"html": True, "markdown": True, "notebook": True},
        "parsers": {
            "html": _default_parser(),
            "markdown": _default_parser(),
            "notebook": _default_parser(),
        },
        "template_vars": {},
        "shortcode_max_depth": 32,
    }
)

PROJECT_CONFIG_NAME = "config.yml"

user_config_file = Path(user_config_dir("courseprep", "courseprep")) / "config.yml"


def load_config(project_dir: Path | None = None, user_config: bool = True) -> Config:
    """Return the configuration for a project.

    The defaults are overridden by the user configuration, which in turn is
    overridden by `config.yml` in the project directory."""
    config = _default_config
    sources = []
    if user_config:
        sources.append(user_config_file)
    if project_dir is not None:
        sources.append(Path(project_dir) / PROJECT_CONFIG_NAME)
    for path in sources:
        try:
            config = config + Config.from_path(path, optional=True)
        except Exception as err:
            raise ConfigError(f"could not read configuration: {err}", path=path) from err
        logger.debug(f"Merged configuration from {path}")
    return config


def config_to_python(config_node):
    if not isinstance(config_node, ConfigNode):
        return config_node
    data = config_node.data
    if isinstance(data, dict):
        return {key: config_to_python(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [config_to_python(item) for item in data]
    return data


def enabled_outputs(config: Config) -> list[OutputFormat]:
    outputs = config_to_python(config.outputs)
    return [OutputFormat.from_name(name) for name, enabled in outputs.items() if enabled]


def _parser_config(config: Config, output_format: OutputFormat) -> dict:
    # `Config.parsers` is configurator's registry of file parsers, so the
    # project's `parsers` key is only reachable by item access.
    parsers = config_to_python(config.get("parsers")) or {}
    try:
        return parsers[output_format.value] or {}
    except KeyError:
        raise ConfigError(f"no parser configured for {output_format.value!r}") from None


def processor_names(config: Config, output_format: OutputFormat) -> tuple[list[str], list[str]]:
    """Return the enabled preprocessor and event processor names for a format.

    Processors are configured as ordered mappings from name to a flag, so that
    project configurations can disable individual stages."""
    parser = _parser_config(config, output_format)
    return (
        [name for name, enabled in parser.get("preprocessors", {}).items() if enabled],
        [name for name, enabled in parser.get("event_processors", {}).items() if enabled],
    )


def language_config(config: Config) -> dict:
    prog_lang = config.prog_lang
    try:
        return config_to_python(config.languages[prog_lang])
    except KeyError:
        raise ConfigError(f"unsupported language: {prog_lang!r}") from None


def parser_settings(config: Config, output_format: OutputFormat) -> dict:
    return dict(_parser_config(config, output_format).get("settings") or {})
