"""Parse a hand-edited document back into per-section content.

Grammar (line oriented, ``\\r\\n`` normalised to ``\\n``)::

    document    := preamble chunk*
    preamble    := line*               text before the first header, discarded
    chunk       := header body
    header      := "###" [ \\t]+ identifier [ \\t]* EOL
    identifier  := [A-Za-z]+
    body        := line*               up to the next header or end of input

A header may directly follow a body line. ``### Acceptance Criteria`` is
not a header because the identifier must be the whole rest of the line;
such a line stays in the enclosing body. A body line written as
``\\### Word`` (a header escaped with one leading backslash) loses that
backslash and is kept as body text.

The round trip is lossy: a section's history collapses into a single
synthetic assistant turn holding the body verbatim (minus surrounding
whitespace).
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from ..models import Role, Turn

HEADER_RE = re.compile(r"^###[ \t]+([A-Za-z]+)[ \t]*$")

_HEADER_LIKE = r"\\*###[ \t]+[A-Za-z]+[ \t]*"
_ESCAPE_RE = re.compile(rf"^(?={_HEADER_LIKE}\r?$)", re.MULTILINE)
_ESCAPED_RE = re.compile(rf"^\\({_HEADER_LIKE})$")


def escape_header_lines(text: str) -> str:
    """Prefix a backslash to every line that would otherwise parse as a header."""
    return _ESCAPE_RE.sub(r"\\", text)


@dataclass(frozen=True)
class DocumentChunk:
    section_id: str
    heading: str
    body: str


def iter_chunks(text: str) -> Iterator[DocumentChunk]:
    """Yield every header-delimited chunk, including ones with empty bodies."""
    heading: str | None = None
    body_lines: list[str] = []

    for line in text.replace("\r\n", "\n").split("\n"):
        m = HEADER_RE.match(line)
        if m:
            if heading is not None:
                yield DocumentChunk(heading.lower(), heading, "\n".join(body_lines).strip())
            heading = m.group(1)
            body_lines = []
        elif heading is not None:
            escaped = _ESCAPED_RE.match(line)
            body_lines.append(escaped.group(1) if escaped else line)

    if heading is not None:
        yield DocumentChunk(heading.lower(), heading, "\n".join(body_lines).strip())


def parse_document(text: str) -> dict[str, Turn]:
    """One synthetic assistant turn per section with a non-empty body.

    Ids are returned whether or not they are registered. A repeated id keeps
    its first position and takes the later body.
    """
    parsed: dict[str, Turn] = {}
    for chunk in iter_chunks(text):
        if chunk.body:
            parsed[chunk.section_id] = Turn(role=Role.ASSISTANT, content=chunk.body)
    return parsed
