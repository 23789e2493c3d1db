"""
Expansion of shortcodes, i.e., template invocations embedded in documents.

Inline shortcodes have the form `{{ name(key=value, ...) }}`, block shortcodes
the form `{% name(key=value, ...) %} body {% end %}`. Both are left untouched
inside inline code and fenced code blocks.
"""
