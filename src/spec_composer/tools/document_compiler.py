"""Compile per-section histories into one header-delimited document.

Each section with renderable text becomes a block::

    ### Description
    <text>

Blocks follow registry order and are separated by a blank line. Sections
without text are omitted, so the document never contains empty headers.
A body line that would itself read as a header (``### Notes``) is written
with a leading backslash; the parser removes it again.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from ..models import AuthoringMode, Role, Section, Turn
from .document_parser import escape_header_lines

HEADING_PREFIX = "### "
BLOCK_SEPARATOR = "\n\n"


def section_heading(name: str) -> str:
    """``'### '`` + *name* with only its first character upper-cased."""
    return HEADING_PREFIX + name[:1].upper() + name[1:]


def section_text(turns: Sequence[Turn], mode: AuthoringMode) -> str:
    """Renderable text of one section's history.

    ``messages``: every user turn, joined by a blank line.
    ``document``: the most recent assistant turn that is not a notice.
    """
    if mode is AuthoringMode.MESSAGES:
        text = BLOCK_SEPARATOR.join(t.content for t in turns if t.role is Role.USER)
    else:
        text = next((t.content for t in reversed(turns) if t.role is Role.ASSISTANT and not t.notice), "")
    return text.strip()


def compile_blocks(
    turns_by_section: Mapping[str, Sequence[Turn]],
    sections: Iterable[Section],
    mode: AuthoringMode = AuthoringMode.DOCUMENT,
) -> list[tuple[str, str]]:
    """``(section_id, text)`` for every section, in order, that has text."""
    blocks: list[tuple[str, str]] = []
    for section in sections:
        text = section_text(turns_by_section.get(section.id, ()), mode)
        if text:
            blocks.append((section.id, text))
    return blocks


def compile_document(
    turns_by_section: Mapping[str, Sequence[Turn]],
    sections: Iterable[Section],
    mode: AuthoringMode = AuthoringMode.DOCUMENT,
) -> str:
    """Render the merged document.

    Headings use the section id rather than its display label; the parser
    recovers the id by lower-casing the heading.
    """
    return BLOCK_SEPARATOR.join(
        f"{section_heading(section_id)}\n{escape_header_lines(text)}"
        for section_id, text in compile_blocks(turns_by_section, sections, mode)
    )
