"""
Course material preparation.

courseprep turns course documents written in Markdown or as Jupyter notebooks
into HTML pages, cleaned-up Markdown, notebooks, and, for exercises, separate
solution and placeholder versions of the embedded code.

## Modules:

- `courseprep.core`: Documents, events, and processors.
- `courseprep.code_split`: Splitting exercise code into solution and placeholder.
- `courseprep.shortcodes`: Expansion of template invocations in documents.
- `courseprep.loaders`: Loading Markdown documents and notebooks.
- `courseprep.writers`: Writing Markdown, notebooks, and HTML.
- `courseprep.project`: The structure of a course project.
- `courseprep.cli`: The command line interface.
"""

__version__ = "0.1.0"
