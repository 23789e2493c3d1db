"""
The core classes of courseprep.

These classes represent the documents that are processed: the semantic events
documents consist of, the `EventDocument` wrapping them, and the processors
that transform documents.
"""
