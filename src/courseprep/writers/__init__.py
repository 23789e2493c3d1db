"""
Writers serialize `EventDocument`s into the output formats.

- markdown: Markdown text
- notebook: Jupyter notebooks
- html: HTML fragments
"""
