"""The `courseprep` command."""
