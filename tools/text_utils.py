"""Text utilities for note editing and context assembly."""


def join_with_space(existing: str, addition: str) -> str:
    """Append ``addition`` to ``existing`` with one separating space.

    No space is inserted when ``existing`` is empty or already ends in
    whitespace.
    """
    if not existing:
        return addition
    if not addition:
        return existing
    if existing[-1].isspace():
        return existing + addition
    return f"{existing} {addition}"


def join_sections(*parts: str, separator: str = "\n\n") -> str:
    """Join the non-empty parts with ``separator``."""
    return separator.join(p for p in parts if p)


def keep_tail(text: str, max_chars: int, marker: str = "[...]\n") -> str:
    """Trim ``text`` from the front so at most ``max_chars`` remain."""
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text
    if max_chars <= len(marker):
        return text[-max_chars:]
    return marker + text[-(max_chars - len(marker)):]
