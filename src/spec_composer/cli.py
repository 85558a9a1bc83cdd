"""CLI entry point using Hydra.

Usage examples:
  speccomp mode=chat
  speccomp mode=chat model=gpt authoring=messages
  speccomp mode=chat transport=http endpoint=http://localhost:3001/api/chat
  speccomp mode=chat document_file=spec.md output_file=spec.md
  speccomp mode=sections
  speccomp mode=parse document_file=spec.md
"""

from __future__ import annotations

import shlex
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import hydra
from omegaconf import DictConfig, OmegaConf
from rich.table import Table

from ._hydra_conf import CLI_ONLY_KEYS, register_configs
from .completion import make_completion_client
from .config import apply_provider_fallbacks
from .credentials import ConfigCredentialProvider
from .errors import ComposerError
from .logging_config import RichCallbacks, console, setup_logging
from .models import ProjectConfig, Section
from .orchestrator import RequestOrchestrator
from .session import ComposerSession
from .tools.document_parser import parse_document

register_configs()

# ---------------------------------------------------------------------------
# Hydra DictConfig → Pydantic ProjectConfig bridge
# ---------------------------------------------------------------------------


def _to_project_config(cfg: DictConfig) -> ProjectConfig:
    """Convert a Hydra *DictConfig* to a Pydantic ``ProjectConfig``.

    CLI-only keys (``mode``, ``verbose``, etc.) are stripped before validation.
    An empty ``sections`` list selects the built-in sections. Provider
    credential env-var fallbacks are applied afterwards.
    """
    container: dict[str, Any] = OmegaConf.to_container(cfg, resolve=True)  # type: ignore[assignment]
    for key in CLI_ONLY_KEYS:
        container.pop(key, None)
    if not container.get("sections"):
        container.pop("sections", None)
    config = ProjectConfig.model_validate(container)
    return apply_provider_fallbacks(config)


def _sections_table(sections: tuple[Section, ...] | list[Section], active: str | None = None) -> Table:
    table = Table(title="Sections", show_lines=False)
    table.add_column("#", style="dim", width=4)
    table.add_column("Id", style="cyan")
    table.add_column("Label")
    table.add_column("Placeholder", style="dim")
    for i, section in enumerate(sections, 1):
        marker = " *" if section.id == active else ""
        table.add_row(str(i), section.id + marker, section.label, section.placeholder)
    return table


# ---------------------------------------------------------------------------
# Chat commands
# ---------------------------------------------------------------------------

_HELP = """\
  /tab <id>              switch the active section
  /sections              list sections
  /add [label]           add a section
  /remove <id>           remove a section (its history is discarded)
  /rename <id> <label>   change a section's label
  /history               show the active section's turns
  /doc                   show the compiled document
  /save <path>           write the compiled document to a file
  /edit <path>           load a hand-edited document from a file
  /help                  this help
  /quit                  leave
"""


def _cmd_tab(session: ComposerSession, args: list[str]) -> None:
    session.select_section(args[0].lower())


def _cmd_sections(session: ComposerSession, args: list[str]) -> None:
    console.print(_sections_table(session.registry.sections, session.active_section))


def _cmd_add(session: ComposerSession, args: list[str]) -> None:
    if args:
        label = " ".join(args)
        section = Section(id=session.registry.new_section_id(label), label=label)
        session.registry.add(section)
    else:
        section = session.registry.add()
    console.print(f"  [green]Added section[/] {section.id} ({section.label})")


def _cmd_remove(session: ComposerSession, args: list[str]) -> None:
    removed = session.registry.remove(args[0].lower())
    console.print(f"  [yellow]Removed section[/] {removed.id}")


def _cmd_rename(session: ComposerSession, args: list[str]) -> None:
    if len(args) < 2:
        raise ValueError("Usage: /rename <id> <label>")
    session.registry.edit(args[0].lower(), label=" ".join(args[1:]))


def _cmd_history(session: ComposerSession, args: list[str]) -> None:
    turns = session.store.turns(session.active_section)
    if not turns:
        console.print("  [dim]No messages yet.[/]")
    for turn in turns:
        console.print(f"  [bold]{turn.role.value}:[/] {turn.content}")


def _cmd_doc(session: ComposerSession, args: list[str]) -> None:
    console.print(session.document or "[dim]Start chatting to build your prompt...[/]")


def _cmd_save(session: ComposerSession, args: list[str]) -> None:
    Path(args[0]).write_text(session.document, encoding="utf-8")
    console.print(f"  [green]Written to {args[0]}[/]")


def _cmd_edit(session: ComposerSession, args: list[str]) -> None:
    text = Path(args[0]).read_text(encoding="utf-8")
    applied = session.apply_edited_document(text)
    console.print(f"  [green]Updated sections:[/] {', '.join(applied) or 'none'}")


def _cmd_help(session: ComposerSession, args: list[str]) -> None:
    console.print(_HELP)


_COMMANDS: dict[str, tuple[Callable[[ComposerSession, list[str]], None], int]] = {
    # name: (handler, required positional args)
    "tab": (_cmd_tab, 1),
    "sections": (_cmd_sections, 0),
    "add": (_cmd_add, 0),
    "remove": (_cmd_remove, 1),
    "rename": (_cmd_rename, 2),
    "history": (_cmd_history, 0),
    "doc": (_cmd_doc, 0),
    "save": (_cmd_save, 1),
    "edit": (_cmd_edit, 1),
    "help": (_cmd_help, 0),
}


def run_command(session: ComposerSession, line: str) -> bool:
    """Execute a ``/command`` line. Returns False when the user asked to quit."""
    parts = shlex.split(line[1:])
    if not parts:
        return True
    name, args = parts[0].lower(), parts[1:]
    if name in ("quit", "exit", "q"):
        return False
    entry = _COMMANDS.get(name)
    if entry is None:
        console.print(f"[yellow]Unknown command /{name}. Type /help for the list.[/]")
        return True
    handler, required = entry
    if len(args) < required:
        console.print(f"[yellow]/{name} needs {required} argument(s). Type /help for usage.[/]")
        return True
    handler(session, args)
    return True


# ---------------------------------------------------------------------------
# Mode handlers
# ---------------------------------------------------------------------------


def _chat_mode(cfg: DictConfig) -> None:
    config = _to_project_config(cfg)
    session = ComposerSession(config.sections, mode=config.authoring, callbacks=RichCallbacks())
    orchestrator = RequestOrchestrator(
        session,
        make_completion_client(config),
        ConfigCredentialProvider(config),
        model=config.model,
    )

    document_file = cfg.get("document_file")
    if document_file:
        applied = session.apply_edited_document(Path(document_file).read_text(encoding="utf-8"))
        console.print(f"[dim]Loaded {document_file}: {', '.join(applied) or 'no known sections'}[/]")

    console.print(f"[bold]{config.project_name}[/]: model {config.model}, {config.authoring.value} authoring")
    console.print(_sections_table(session.registry.sections, session.active_section))
    console.print("[dim]Type a message, or /help for commands.[/]")

    while True:
        try:
            line = console.input(f"[bold cyan]{session.active_section}>[/] ").strip()
        except (EOFError, KeyboardInterrupt):
            console.print()
            break
        if not line:
            continue
        try:
            if line.startswith("/"):
                if not run_command(session, line):
                    break
                continue
            orchestrator.submit(line, session.active_section)
        except (ComposerError, ValueError, OSError) as e:
            console.print(f"[red]{e}[/]")

    output_file = cfg.get("output_file")
    if output_file:
        Path(output_file).write_text(session.document, encoding="utf-8")
        console.print(f"[green]Document written to {output_file}[/]")


def _sections_mode(cfg: DictConfig) -> None:
    config = _to_project_config(cfg)
    console.print(_sections_table(config.sections))


def _parse_mode(cfg: DictConfig) -> None:
    config = _to_project_config(cfg)
    document_file = cfg.get("document_file")
    if not document_file:
        console.print("[red]document_file is required for parse mode[/]")
        sys.exit(1)

    parsed = parse_document(Path(document_file).read_text(encoding="utf-8"))
    known = {s.id for s in config.sections}

    table = Table(title=f"Sections in {document_file}")
    table.add_column("Id", style="cyan")
    table.add_column("Known", justify="center")
    table.add_column("Content")
    for section_id, turn in parsed.items():
        table.add_row(section_id, "yes" if section_id in known else "[yellow]no[/]", turn.content)
    console.print(table)
    if not parsed:
        console.print("[yellow]No '### Section' headers found.[/]")


_MODE_DISPATCH: dict[str, Any] = {
    "chat": _chat_mode,
    "sections": _sections_mode,
    "parse": _parse_mode,
}


# ---------------------------------------------------------------------------
# Hydra entry point
# ---------------------------------------------------------------------------


@hydra.main(config_path="conf", config_name="config", version_base=None)
def hydra_entry(cfg: DictConfig) -> None:
    """Hydra-managed CLI entry point."""
    setup_logging(verbose=cfg.get("verbose", False), quiet=cfg.get("quiet", False))

    mode = cfg.get("mode", "chat")
    handler = _MODE_DISPATCH.get(mode)
    if handler is None:
        console.print(f"[red]Unknown mode: {mode!r}. Choose from: {', '.join(_MODE_DISPATCH)}[/]")
        sys.exit(1)

    handler(cfg)


def main() -> None:
    """Package entry point (``[project.scripts]`` target)."""
    hydra_entry()  # pylint: disable=no-value-for-parameter
