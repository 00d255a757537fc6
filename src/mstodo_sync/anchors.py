"""Anchor tokens embedded in task lines.

An anchor is a caret followed by alphanumerics placed at the end of a line
(``Call Bob ^a100001``). It ties that line to a remote task through the
identity table.
"""

from __future__ import annotations

import re

__all__ = ["ANCHOR_PATTERN", "embed_anchor", "extract_anchor", "marker", "strip_anchor"]

# Rightmost caret+alnum run: no further caret may follow it on the line.
ANCHOR_PATTERN = re.compile(r"\^(?!.*\^)([A-Za-z0-9]+)")


def marker(anchor: str) -> str:
    return f"^{anchor}"


def extract_anchor(line: str) -> str | None:
    """Return the anchor token of ``line`` or None.

    Only the rightmost caret counts. A line whose last caret is not followed
    by an alphanumeric has no anchor, even if an earlier caret would match.
    """
    match = ANCHOR_PATTERN.search(line.strip())
    return match.group(1) if match else None


def strip_anchor(line: str, anchor: str) -> str:
    """Remove the first literal ``^anchor`` occurrence; whitespace is left as is.

    If the title itself contains ``^anchor`` earlier in the line, that
    earlier occurrence is the one removed.
    """
    return line.replace(marker(anchor), "", 1)


def embed_anchor(line: str, anchor: str) -> str:
    return f"{line} {marker(anchor)}"
