"""Interactive fallback: turn prompted answers into command-line flags."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from rich.console import Console


@runtime_checkable
class InputSource(Protocol):
    """Supplies one line of user input per prompt. ``None`` means end of input."""

    def ask(self, prompt: str) -> str | None: ...


class ConsoleInput:
    """Reads answers from the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def ask(self, prompt: str) -> str | None:
        try:
            return self._console.input(f"{prompt} ")
        except EOFError:
            return None


class ScriptedInput:
    """Replays a fixed list of answers; records the prompts it was shown."""

    def __init__(self, answers: Iterable[str | None]) -> None:
        self._answers = list(answers)
        self.prompts: list[str] = []

    def ask(self, prompt: str) -> str | None:
        self.prompts.append(prompt)
        if not self._answers:
            return None
        return self._answers.pop(0)


def resolve_arguments(
    args: list[str],
    input_source: InputSource | None = None,
    once_token: str = "once",
) -> list[str]:
    """Return *args* unchanged, or prompt for them when none were given.

    Prompted answers are serialized into the same flags a user would type,
    so both paths share one validation step. A partial command line is
    never completed interactively.
    """
    if args:
        return args

    reader = input_source or ConsoleInput()
    source_dir = reader.ask("Source folder path:")
    destination_dir = reader.ask("Destination folder path:")
    interval = reader.ask(
        f"Sync interval (e.g. '5m' for 5 minutes, '1h' for 1 hour, "
        f"or '{once_token}' for one-time sync):"
    )
    log_file = reader.ask("Custom log file path (leave empty for default):")
    admin = reader.ask("Run with administrator privileges? (y/n):")

    if interval and interval.strip().lower() == once_token.lower():
        interval = None
    return to_flags(
        source_dir or "",
        destination_dir or "",
        interval=interval,
        log_file=log_file,
        admin=admin is not None and admin.strip().lower() == "y",
    )


def to_flags(
    source: str,
    destination: str,
    interval: str | None = None,
    log_file: str | None = None,
    admin: bool = False,
) -> list[str]:
    """Serialize option values into command-line flags. Blank optional values are dropped."""
    flags = ["--source", source.strip(), "--destination", destination.strip()]
    if interval and interval.strip():
        flags += ["--interval", interval.strip()]
    if log_file and log_file.strip():
        flags += ["--log-file", log_file.strip()]
    if admin:
        flags.append("--admin")
    return flags
