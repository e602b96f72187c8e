"""
Cover image filename sanitization.

Filenames are derived from the book title and publisher. Characters outside
letters, digits, space, hyphen and underscore are dropped (accented letters
included, they are not transliterated) and spaces become underscores. Two
books with the same sanitized title and publisher map to the same filename,
and the later upload overwrites the earlier file.
"""

import os
import re

_DISALLOWED = re.compile(r"[^a-zA-Z0-9_ -]")


def sanitize_text(text: str) -> str:
    """Strip unsafe characters and replace spaces with underscores."""
    return _DISALLOWED.sub("", text).replace(" ", "_")


def cover_extension(original_filename: str) -> str:
    """Extension of the uploaded file including the leading dot, or ''."""
    return os.path.splitext(os.path.basename(original_filename))[1]


def build_cover_filename(title: str, publisher: str, extension: str) -> str:
    """
    Build the stored cover filename for a book.

    Args:
        title: Raw book title
        publisher: Raw publisher name
        extension: Original file extension including the leading dot

    Returns:
        ``<title>_<publisher><extension>`` with both parts sanitized
    """
    return f"{sanitize_text(title)}_{sanitize_text(publisher)}{extension}"
