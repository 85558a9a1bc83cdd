"""Section registry — the ordered list of section definitions."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from .errors import DuplicateIdError, LastSectionError, UnknownSectionError
from .models import DEFAULT_SECTIONS, NEW_SECTION_PLACEHOLDER, NEW_SECTION_PROMPT, Section

logger = logging.getLogger(__name__)

RegistryListener = Callable[["SectionRegistry"], None]

_EDITABLE_FIELDS = frozenset({"label", "placeholder", "guidance_prompt"})
_NON_LETTER_RE = re.compile(r"[^a-z]+")


def _letter_suffix(n: int) -> str:
    """0 → '', 1 → 'b', 2 → 'c', ..., 25 → 'z', 26 → 'ba', ..."""
    if n == 0:
        return ""
    digits = []
    while n:
        n, rem = divmod(n, 26)
        digits.append(chr(ord("a") + rem))
    return "".join(reversed(digits))


def _slugify(label: str) -> str:
    return _NON_LETTER_RE.sub("", label.lower()) or "section"


def _validate(sections: list[Section]) -> None:
    if not sections:
        raise LastSectionError("A section list must contain at least one section")
    seen: set[str] = set()
    for section in sections:
        if section.id in seen:
            raise DuplicateIdError(section.id)
        seen.add(section.id)


class SectionRegistry:
    """Ordered, non-empty collection of sections with unique ids.

    Listeners are called after every structural change (add, remove, edit,
    commit) so that conversation state can be reconciled against it.
    """

    def __init__(self, sections: Iterable[Section] | None = None) -> None:
        initial = list(sections) if sections is not None else list(DEFAULT_SECTIONS)
        _validate(initial)
        self._sections: list[Section] = initial
        self._listeners: list[RegistryListener] = []

    # -- read access ---------------------------------------------------------

    @property
    def sections(self) -> tuple[Section, ...]:
        return tuple(self._sections)

    @property
    def ids(self) -> list[str]:
        return [s.id for s in self._sections]

    @property
    def first(self) -> Section:
        return self._sections[0]

    def get(self, section_id: str) -> Section:
        for section in self._sections:
            if section.id == section_id:
                return section
        raise UnknownSectionError(section_id)

    def __contains__(self, section_id: object) -> bool:
        return any(s.id == section_id for s in self._sections)

    def __iter__(self) -> Iterator[Section]:
        return iter(tuple(self._sections))

    def __len__(self) -> int:
        return len(self._sections)

    # -- mutation ------------------------------------------------------------

    def new_section_id(self, label: str = "New Section") -> str:
        """Generate a letters-only id derived from *label* that is not yet registered."""
        base = _slugify(label)
        n = 0
        while f"{base}{_letter_suffix(n)}" in self:
            n += 1
        return f"{base}{_letter_suffix(n)}"

    def add(self, section: Section | None = None) -> Section:
        """Append *section*, or a fresh default section when none is given."""
        if section is None:
            label = f"New Section {len(self._sections) + 1}"
            section = Section(
                id=self.new_section_id("New Section"),
                label=label,
                placeholder=NEW_SECTION_PLACEHOLDER,
                guidance_prompt=NEW_SECTION_PROMPT,
            )
        elif section.id in self:
            raise DuplicateIdError(section.id)

        self._sections.append(section)
        logger.debug("Added section %r", section.id)
        self._notify()
        return section

    def remove(self, section_id: str) -> Section:
        section = self.get(section_id)
        if len(self._sections) <= 1:
            raise LastSectionError()
        self._sections.remove(section)
        logger.debug("Removed section %r", section_id)
        self._notify()
        return section

    def edit(self, section_id: str, **fields: Any) -> Section:
        """Partially update label / placeholder / guidance_prompt of a section."""
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")
        current = self.get(section_id)
        updated = current.model_copy(update=fields)
        self._sections[self._sections.index(current)] = updated
        self._notify()
        return updated

    def commit(self, sections: Iterable[Section]) -> None:
        """Atomically replace all sections; nothing changes if validation fails."""
        new_sections = list(sections)
        _validate(new_sections)
        self._sections = new_sections
        logger.debug("Committed sections: %s", ", ".join(self.ids))
        self._notify()

    # -- listeners -----------------------------------------------------------

    def subscribe(self, listener: RegistryListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
