"""Conversation store: per-section turn histories, the source of truth."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from .models import Role, Turn

logger = logging.getLogger(__name__)

StoreListener = Callable[[str], None]


class ConversationStore:
    """Mapping of section id to an append-only, chronologically ordered turn list.

    The only in-place change allowed is :meth:`replace_last_assistant_turn`.
    Subscribers receive the id of every section that changed.
    """

    def __init__(self) -> None:
        self._turns: dict[str, list[Turn]] = {}
        self._listeners: list[StoreListener] = []

    def append_turn(self, section_id: str, turn: Turn) -> Turn:
        self._turns.setdefault(section_id, []).append(turn)
        self._notify(section_id)
        return turn

    def replace_last_assistant_turn(
        self,
        section_id: str,
        content: str,
        confidence: float | None = None,
    ) -> Turn:
        """Replace the most recent assistant turn, or append one if there is none.

        Notice turns are not content and are never replaced.
        """
        turn = Turn(role=Role.ASSISTANT, content=content, confidence=confidence)
        turns = self._turns.setdefault(section_id, [])
        for index in range(len(turns) - 1, -1, -1):
            if turns[index].role is Role.ASSISTANT and not turns[index].notice:
                turns[index] = turn
                break
        else:
            turns.append(turn)
        self._notify(section_id)
        return turn

    def turns(self, section_id: str) -> tuple[Turn, ...]:
        return tuple(self._turns.get(section_id, ()))

    def snapshot(self) -> dict[str, list[Turn]]:
        """Copy of the store; later mutations do not show through."""
        return {section_id: list(turns) for section_id, turns in self._turns.items()}

    def to_payload(self) -> dict[str, list[dict]]:
        return {
            section_id: [t.model_dump(mode="json", exclude_none=True) for t in turns]
            for section_id, turns in self._turns.items()
        }

    def prune(self, keep_ids: Iterable[str]) -> list[str]:
        """Drop every section not in *keep_ids*; return the dropped ids."""
        keep = set(keep_ids)
        dropped = [section_id for section_id in self._turns if section_id not in keep]
        for section_id in dropped:
            del self._turns[section_id]
            logger.info("Discarded history of removed section %r", section_id)
            self._notify(section_id)
        return dropped

    @property
    def section_ids(self) -> list[str]:
        return list(self._turns)

    def __contains__(self, section_id: object) -> bool:
        return section_id in self._turns

    def __len__(self) -> int:
        return len(self._turns)

    # -- listeners -----------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, section_id: str) -> None:
        for listener in list(self._listeners):
            listener(section_id)
