"""Whitespace normalization for text pulled out of HTML.

``get_text()`` on a parsed page returns the raw text nodes, which carry the
source document's indentation, stray tabs and long runs of empty lines.
:func:`normalize_whitespace` reduces that to readable paragraphs before the
text is embedded and stored.
"""

import re

# Horizontal whitespace only; newlines are handled separately so paragraph
# breaks survive.
_INLINE_WS = re.compile(r"[^\S\n]+")
_BLANK_LINES = re.compile(r"\n{3,}")


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace while keeping paragraph structure.

    - runs of spaces/tabs inside a line become one space
    - every line is trimmed
    - two or more blank lines collapse to exactly one
    - leading and trailing whitespace is removed

    >>> normalize_whitespace("  Hello \\t world\\n\\n\\n\\n  Bye  ")
    'Hello world\\n\\nBye'
    """
    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [_INLINE_WS.sub(" ", line).strip() for line in text.split("\n")]
    collapsed = _BLANK_LINES.sub("\n\n", "\n".join(lines))
    return collapsed.strip()
