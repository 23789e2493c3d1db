import logging
from pathlib import Path

from courseprep.config import InputFormat
from courseprep.errors import ConfigError
from courseprep.project.tree import Chapter, Item, Part, Project

logger = logging.getLogger(__name__)

CONTENT_DIR = "content"
INDEX_NAME = "index"

DOCUMENT_SUFFIXES = {f".{fmt.extension}" for fmt in InputFormat}


def is_document(path: Path) -> bool:
    return path.is_file() and path.suffix in DOCUMENT_SUFFIXES


def is_index_file(path: Path) -> bool:
    return INDEX_NAME in path.name


def load_item(path: Path) -> Item[str]:
    return Item.from_path(path, path.read_text(encoding="utf-8"))


def load_index(directory: Path) -> Item[str]:
    """Load the index of `directory`.

    `index.md` takes precedence over `index.ipynb`; if neither exists an empty
    Markdown index is created."""
    for fmt in (InputFormat.MARKDOWN, InputFormat.NOTEBOOK):
        path = directory / f"{INDEX_NAME}.{fmt.extension}"
        if path.is_file():
            return load_item(path)
    return Item(INDEX_NAME, InputFormat.MARKDOWN, directory / f"{INDEX_NAME}.md", "")


def _sorted_entries(directory: Path) -> list[Path]:
    return sorted(directory.iterdir(), key=lambda path: path.name)


def scan_chapter(directory: Path) -> Chapter[str]:
    documents = []
    files = []
    for path in _sorted_entries(directory):
        if is_document(path):
            if not is_index_file(path):
                documents.append(load_item(path))
        elif path.is_dir():
            files.extend(sorted(p for p in path.rglob("*") if p.is_file()))
        else:
            files.append(path)
    return Chapter(directory.name, load_index(directory), documents, files)


def scan_part(directory: Path) -> Part[str]:
    chapters = [scan_chapter(path) for path in _sorted_entries(directory) if path.is_dir()]
    return Part(directory.name, load_index(directory), chapters)


def from_directory(project_path: Path) -> Project[str]:
    """Build the project tree from `<project_path>/content`.

    Every subdirectory of the content directory is a part, every subdirectory
    of a part is a chapter. The content of each item is its source text."""
    project_path = Path(project_path)
    content_dir = project_path / CONTENT_DIR
    if not content_dir.is_dir():
        raise ConfigError(f"no '{CONTENT_DIR}' directory in project", path=project_path)
    parts = [scan_part(path) for path in _sorted_entries(content_dir) if path.is_dir()]
    project = Project(project_path, load_index(content_dir), parts)
    logger.info(
        f"Found {len(parts)} parts with {len(project.items())} documents in {project_path}"
    )
    return project
