"""
Loaders convert source documents into `EventDocument`s.

- markdown: Markdown documents with optional YAML front matter
- notebook: Jupyter notebooks
"""
