"""Composer session: registry, store, active section and document in one place.

The session is the single writer of conversation state: the orchestrator
and hand-edited documents both go through it, and registry changes are
reconciled here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .errors import UnknownSectionError
from .logging_config import NullCallbacks, SessionCallbacks
from .models import AuthoringMode, Section, Turn
from .registry import SectionRegistry
from .store import ConversationStore
from .tools.document_compiler import compile_document
from .tools.document_parser import parse_document

logger = logging.getLogger(__name__)


def reconcile(store: ConversationStore, registry: SectionRegistry, active_section: str) -> tuple[list[str], str]:
    """Prune store entries of unregistered sections and repair the active pointer.

    Dropped histories are gone for good; a section re-added under the same
    id starts empty. Returns ``(dropped_ids, active_section)``.
    """
    dropped = store.prune(registry.ids)
    if active_section not in registry:
        active_section = registry.first.id
    return dropped, active_section


class ComposerSession:
    """In-memory state of one co-authoring session."""

    def __init__(
        self,
        sections: Iterable[Section] | None = None,
        *,
        mode: AuthoringMode = AuthoringMode.DOCUMENT,
        callbacks: SessionCallbacks | None = None,
    ) -> None:
        self.registry = SectionRegistry(sections)
        self.store = ConversationStore()
        self.mode = mode
        self.callbacks: SessionCallbacks = callbacks or NullCallbacks()

        self._active_section = self.registry.first.id
        self._held_document: str | None = None
        self._section_ids = set(self.registry.ids)
        self._generations: dict[str, int] = {}
        self._last_document = self.document

        self.registry.subscribe(self._on_registry_changed)
        self.store.subscribe(self._on_store_changed)

    # -- active section ------------------------------------------------------

    @property
    def active_section(self) -> str:
        return self._active_section

    def select_section(self, section_id: str) -> None:
        if section_id not in self.registry:
            raise UnknownSectionError(section_id)
        if section_id != self._active_section:
            self._active_section = section_id
            self.callbacks.on_active_section_changed(section_id)

    # -- document ------------------------------------------------------------

    @property
    def document(self) -> str:
        if self._held_document is not None:
            return self._held_document
        return compile_document(self.store.snapshot(), self.registry.sections, self.mode)

    @property
    def holds_document(self) -> bool:
        return self._held_document is not None

    def hold_document(self, document: str) -> None:
        """Show *document* verbatim until the next reconciling event."""
        self._held_document = document
        self._emit_document_if_changed()

    def release_document(self) -> None:
        """Go back to compiling the document from the store."""
        self._held_document = None
        self._emit_document_if_changed()

    def apply_edited_document(self, text: str) -> list[str]:
        """Fold a hand-edited document back into the store.

        Each registered section found in *text* gets its last assistant turn
        replaced (or one appended); sections not mentioned keep their history.
        Unregistered headings are skipped. The edited text becomes the held
        document. Returns the ids that were updated.
        """
        self._held_document = text
        applied: list[str] = []
        for section_id, turn in parse_document(text).items():
            if section_id not in self.registry:
                logger.warning("Ignoring edited content for unknown section %r", section_id)
                self.callbacks.on_warning(f"Unknown section {section_id!r} in edited document was ignored")
                continue
            self.store.replace_last_assistant_turn(section_id, turn.content)
            applied.append(section_id)
        self._emit_document_if_changed()
        return applied

    # -- turns ---------------------------------------------------------------

    def append_turn(self, section_id: str, turn: Turn) -> Turn:
        self.store.append_turn(section_id, turn)
        self.callbacks.on_turn_appended(section_id, turn)
        return turn

    # -- sections ------------------------------------------------------------

    def generation(self, section_id: str) -> int:
        """Bumped every time *section_id* is removed, so a re-added section is new."""
        return self._generations.get(section_id, 0)

    def commit_sections(self, sections: Iterable[Section]) -> None:
        """Bulk replace of the section list (the 'manage sections' save)."""
        self.registry.commit(sections)

    def _on_registry_changed(self, registry: SectionRegistry) -> None:
        dropped, active = reconcile(self.store, registry, self._active_section)
        current_ids = set(registry.ids)
        removed = self._section_ids - current_ids
        self._section_ids = current_ids
        for section_id in removed | set(dropped):
            self._generations[section_id] = self.generation(section_id) + 1

        if dropped or removed:
            self._held_document = None
        if active != self._active_section:
            self._active_section = active
            self.callbacks.on_active_section_changed(active)
        self._emit_document_if_changed()

    # -- notifications -------------------------------------------------------

    def _on_store_changed(self, section_id: str) -> None:
        self._emit_document_if_changed()

    def _emit_document_if_changed(self) -> None:
        document = self.document
        if document != self._last_document:
            self._last_document = document
            self.callbacks.on_document_updated(document)
