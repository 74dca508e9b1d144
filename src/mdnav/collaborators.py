"""System collaborators: clipboard, URL opener and external editor.

Each one raises a typed error from ``errors`` on failure; the navigation
engine turns those into status messages.
"""

import logging
import os
import shlex
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Protocol

from .errors import (
    ClipboardError,
    ClipboardUnavailableError,
    EditorError,
    EditorExitError,
    EditorNotConfiguredError,
    OpenError,
)

logger = logging.getLogger(__name__)


class Clipboard(Protocol):
    def copy(self, text: str) -> None: ...


class UrlOpener(Protocol):
    def open(self, url: str) -> None: ...


def default_clipboard_commands() -> list[list[str]]:
    """Clipboard commands to try on this platform, in order."""
    if sys.platform == "darwin":
        return [["pbcopy"]]
    if os.name == "nt":
        return [["clip"]]
    return [
        ["wl-copy"],
        ["xclip", "-selection", "clipboard"],
        ["xsel", "--clipboard", "--input"],
    ]


def default_open_command() -> list[str]:
    """Command that opens a URL with the desktop's default handler."""
    if sys.platform == "darwin":
        return ["open"]
    if os.name == "nt":
        return ["cmd", "/c", "start", ""]
    return ["xdg-open"]


class SystemClipboard:
    """Copies text by piping it into the platform's clipboard command."""

    def __init__(self, commands: list[list[str]] | None = None) -> None:
        self.commands = commands if commands is not None else default_clipboard_commands()

    def copy(self, text: str) -> None:
        available = [c for c in self.commands if shutil.which(c[0]) is not None]
        if not available:
            tried = ", ".join(c[0] for c in self.commands)
            raise ClipboardUnavailableError(f"none of {tried} found")

        errors = []
        for command in available:
            try:
                proc = subprocess.run(
                    command,
                    input=text,
                    text=True,
                    capture_output=True,
                    check=False,
                    timeout=5,
                )
            except (OSError, subprocess.SubprocessError) as e:
                errors.append(f"{command[0]}: {e}")
                continue
            if proc.returncode == 0:
                return
            errors.append(f"{command[0]} exited with status {proc.returncode}")

        raise ClipboardError("; ".join(errors))


class SystemOpener:
    """Opens URLs with the desktop's default handler."""

    def __init__(self, command: list[str] | None = None) -> None:
        self.command = command if command is not None else default_open_command()

    def open(self, url: str) -> None:
        if shutil.which(self.command[0]) is None:
            raise OpenError(f"no default handler ({self.command[0]} not found)")
        try:
            subprocess.Popen(
                [*self.command, url],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise OpenError(f"could not start {self.command[0]}: {e}") from e
        logger.info("Opened %s", url)


class Editor:
    """Runs an external editor on a file and waits for it to exit.

    The command comes from the config, then $VISUAL, then $EDITOR.
    """

    def __init__(self, command: str = "") -> None:
        self.command = command

    def argv(self) -> list[str]:
        command = self.command or os.environ.get("VISUAL") or os.environ.get("EDITOR") or ""
        args = shlex.split(command)
        if not args:
            raise EditorNotConfiguredError(
                "No editor configured (set editor in config.toml or $EDITOR)"
            )
        return args

    def edit(self, path: Path) -> None:
        args = self.argv()
        try:
            result = subprocess.run([*args, str(path)], check=False)
        except FileNotFoundError as e:
            raise EditorError(f"Editor '{args[0]}' not found") from e
        except OSError as e:
            raise EditorError(f"Error opening editor: {e}") from e
        if result.returncode != 0:
            raise EditorExitError(args[0], result.returncode)
