"""Field sanitizers for submitted comments.

One fixed function per field type:
- plain single-line text (author name)
- multi-line text (comment content)
- email address
- non-negative integer (parent id)

Comments are stored as plain text, so markup is removed rather than escaped;
escaping happens at render time.
"""

import math
import re
import unicodedata
from typing import Any

from email_validator import EmailNotValidError, validate_email


# <script>/<style> elements are dropped together with their content
_SCRIPT_STYLE = re.compile(r"<(script|style)[^>]*?>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]*>")
_LEADING_INT = re.compile(r"^\s*[+-]?\d+")
_WHITESPACE_RUN = re.compile(r"[\t\n\r\f\v ]+")
_INLINE_WHITESPACE_RUN = re.compile(r"[\t\f\v ]+")
_EMAIL_ALLOWED = re.compile(r"[^A-Za-z0-9!#$%&'*+/=?^_`{|}~.@-]")


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="ignore")
    if isinstance(value, (list, tuple, set, dict)):
        return ""
    return str(value)


def strip_markup(value: str) -> str:
    """Remove HTML/XML tags, dropping script and style content entirely."""
    value = _SCRIPT_STYLE.sub("", value)
    return _TAG.sub("", value)


def strip_control_characters(value: str, keep_newlines: bool = False) -> str:
    """Remove Unicode control characters (category ``Cc``).

    Tabs are turned into spaces; line feeds survive only when requested.
    """
    kept = []
    for char in value:
        if char == "\n" and keep_newlines:
            kept.append(char)
        elif char == "\t":
            kept.append(" ")
        elif unicodedata.category(char) != "Cc":
            kept.append(char)
    return "".join(kept)


def sanitize_text(value: Any) -> str:
    """Sanitize a single-line plain-text field.

    Markup and control characters are removed, whitespace runs (line breaks
    included) collapse to a single space, and the result is trimmed.
    """
    text = strip_markup(_to_str(value))
    text = strip_control_characters(text, keep_newlines=True)
    return _WHITESPACE_RUN.sub(" ", text).strip()


def sanitize_multiline(value: Any) -> str:
    """Sanitize a multi-line plain-text field.

    Same as :func:`sanitize_text` except that line breaks are kept
    (normalized to ``\\n``); trailing spaces on each line are removed.
    """
    text = _to_str(value).replace("\r\n", "\n").replace("\r", "\n")
    text = strip_markup(text)
    text = strip_control_characters(text, keep_newlines=True)
    text = _INLINE_WHITESPACE_RUN.sub(" ", text)
    return "\n".join(line.rstrip() for line in text.split("\n")).strip()


def sanitize_email(value: Any) -> str:
    """Strip whitespace and characters that can never appear in an address."""
    return _EMAIL_ALLOWED.sub("", _to_str(value).strip())


def absint(value: Any) -> int:
    """Convert a value to a non-negative integer.

    Leading integer digits are honored (``"12abc"`` is 12); anything without
    them is 0. Negative numbers become positive.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return abs(value)
    if isinstance(value, float):
        return abs(int(value)) if math.isfinite(value) else 0
    match = _LEADING_INT.match(_to_str(value))
    return abs(int(match.group())) if match else 0


def is_valid_email(value: str) -> bool:
    """Syntactic email validation (no DNS lookups)."""
    if not value:
        return False
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
