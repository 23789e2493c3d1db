"""
Course projects and their structure.

- tree: parts, chapters, and documents
- iterator: flattening projects and rebuilding them
- scan: reading the project structure from disk
"""
