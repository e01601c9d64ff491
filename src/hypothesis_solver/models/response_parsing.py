"""
Helpers for building oracle prompts and reading oracle responses.

Responses are parsed line by line. A line that does not parse is dropped
on its own; the rest of the response is still used.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

from hypothesis_solver.structure import Constraint, KnownFact

# Appended to every prompt that expects marked lines back.
STRICT_FORMAT = (
    "\n\nImportant: output only the format above. "
    "No explanations, headings or markdown tables."
)

_NUMBERED_RE = re.compile(r"^\s*\d+[.)\s]+(.+)")
_BULLET_RE = re.compile(r"^\s*[-*]\s+(.+)")
_TABLE_ROW_RE = re.compile(r"^\|\s*\d")


def format_context(known: Mapping[str, KnownFact]) -> str:
    """
    Render known facts as ``key: value`` lines for a prompt.

    Facts below 0.6 confidence are marked ``[low confidence]``, facts below
    0.8 ``[medium confidence]``.
    """
    lines: list[str] = []
    for key, fact in known.items():
        mark = ""
        if fact.confidence < 0.6:
            mark = " [low confidence]"
        elif fact.confidence < 0.8:
            mark = " [medium confidence]"
        lines.append(f"{key}: {fact.value}{mark}")
    return "\n".join(lines)


def format_constraints(constraints: Sequence[Constraint]) -> str:
    """Render constraints as a bulleted list, or ``(none)``."""
    if not constraints:
        return "(none)"
    return "\n".join(f"- {c.description}" for c in constraints)


def split_table_cells(line: str) -> list[str]:
    """Split a markdown table row into its non-empty, stripped cells."""
    return [cell.strip() for cell in line.split("|") if cell.strip()]


def extract_marked(text: str | None, prefix: str) -> list[str]:
    """
    Extract marked items from an oracle response.

    Three formats are accepted, tried in order until one yields items:

    1. ``PREFIX: content`` lines
    2. markdown table rows starting with a number (``| 1 | key | text |``),
       returned as ``"key | text"``
    3. numbered or bulleted list items longer than 5 characters

    Args:
        text: Raw response text.
        prefix: Marker such as ``HYPOTHESIS`` or ``GAP``.

    Returns:
        Extracted items, stripped.
    """
    if not text:
        return []

    lines = text.splitlines()
    marker = re.compile(rf"^\s*{re.escape(prefix)}:\s*(.+)")

    results = [m.group(1).strip() for m in map(marker.match, lines) if m]
    if results:
        return results

    for line in lines:
        if not _TABLE_ROW_RE.match(line):
            continue
        cells = split_table_cells(line)
        if len(cells) >= 3:
            results.append(f"{cells[1].replace('`', '')} | {cells[2]}")
        elif len(cells) >= 2:
            results.append(f"{cells[0].replace('`', '')} | {cells[1]}")
    if results:
        return results

    for line in lines:
        m = _NUMBERED_RE.match(line) or _BULLET_RE.match(line)
        if m and len(m.group(1)) > 5:
            results.append(m.group(1).strip())
    return results


def parse_confidence(raw: str, default: float = 0.5) -> float:
    """Parse a confidence number, falling back to ``default``."""
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default
