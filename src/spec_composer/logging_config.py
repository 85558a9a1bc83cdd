"""Rich console setup and session event callbacks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel

if TYPE_CHECKING:
    from .models import Turn

console = Console()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logger with Rich handler."""
    level = logging.DEBUG if verbose else (logging.ERROR if quiet else logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


logger = logging.getLogger("spec_composer")


# ---------------------------------------------------------------------------
# Session callbacks protocol
# ---------------------------------------------------------------------------


class SessionCallbacks(Protocol):
    """Protocol for reporting session events to a front end."""

    def on_turn_appended(self, section_id: str, turn: Turn) -> None: ...
    def on_document_updated(self, document: str) -> None: ...
    def on_active_section_changed(self, section_id: str) -> None: ...
    def on_loading_changed(self, loading: bool) -> None: ...
    def on_warning(self, message: str) -> None: ...
    def on_error(self, message: str) -> None: ...


class NullCallbacks:
    """Callbacks that ignore every event."""

    def on_turn_appended(self, section_id: str, turn: Turn) -> None:
        pass

    def on_document_updated(self, document: str) -> None:
        pass

    def on_active_section_changed(self, section_id: str) -> None:
        pass

    def on_loading_changed(self, loading: bool) -> None:
        pass

    def on_warning(self, message: str) -> None:
        pass

    def on_error(self, message: str) -> None:
        pass


class RichCallbacks:
    """Rich-based implementation of SessionCallbacks."""

    def __init__(self, *, show_user_turns: bool = False) -> None:
        self.show_user_turns = show_user_turns

    def on_turn_appended(self, section_id: str, turn: Turn) -> None:
        if turn.role.value == "user" and not self.show_user_turns:
            return
        title = f"[bold]{turn.role.value}[/] · {section_id}"
        if turn.confidence is not None:
            title += f" · confidence {turn.confidence:.2f}"
        console.print(Panel(Markdown(turn.content), title=title, title_align="left"))

    def on_document_updated(self, document: str) -> None:
        console.print("  [dim]Document updated[/]")

    def on_active_section_changed(self, section_id: str) -> None:
        console.print(f"  [cyan]Active section:[/] {section_id}")

    def on_loading_changed(self, loading: bool) -> None:
        if loading:
            console.print("  [dim]Thinking...[/]")

    def on_warning(self, message: str) -> None:
        console.print(f"  [yellow]WARNING:[/] {message}")

    def on_error(self, message: str) -> None:
        console.print(f"  [red]ERROR:[/] {message}")
