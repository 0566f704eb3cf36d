"""
Text helpers for chat titles.
"""

ELLIPSIS = "..."


def derive_title(text: str, max_length: int = 30) -> str:
    """
    Build a chat title from the first user message.

    The first max_length characters are kept; "..." marks truncation.

    Example:
        >>> derive_title("I have a headache")
        'I have a headache'
        >>> derive_title("a" * 31)
        'aaaaaaaaaaaaaaaaaaaaaaaaaaaaaa...'
    """
    if len(text) > max_length:
        return text[:max_length] + ELLIPSIS
    return text
