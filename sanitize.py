"""
Storage-time escaping of free-text user input.

The escaping is lossy: stored text cannot be turned back into what the user
typed, so it is applied exactly once, right before a value is stored.
"""

_REPLACEMENTS = (
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
    ("/", "&#x2F;"),
)


def sanitize_input(value):
    """Escape ``< > " ' /`` as HTML entities. Non-string values pass through."""
    if not isinstance(value, str):
        return value
    for char, entity in _REPLACEMENTS:
        value = value.replace(char, entity)
    return value
