"""Configuration loading and defaults for mdnav."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .navigation import DEFAULT_MAX_HISTORY

DEFAULT_THEME = "textual-dark"


def get_config_dir() -> Path:
    """Get the mdnav config directory (XDG-style)."""
    return Path.home() / ".config" / "mdnav"


def get_config_path() -> Path:
    """Get the config file path."""
    return get_config_dir() / "config.toml"


@dataclass
class LinkConfig:
    """Link resolution configuration."""

    wiki_extension: str = ".md"
    case_insensitive_fallback: bool = True


@dataclass
class Config:
    """Application configuration."""

    editor: str = ""  # empty = $VISUAL, then $EDITOR
    theme: str = DEFAULT_THEME
    max_history: int = DEFAULT_MAX_HISTORY
    watch: bool = True
    links: LinkConfig = field(default_factory=LinkConfig)

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from file or create defaults."""
        config_path = get_config_path()

        if not config_path.exists():
            default_config = cls()
            default_config.save()
            return default_config

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        links_data = data.get("links", {})
        wiki_extension = links_data.get("wiki_extension", ".md")
        if wiki_extension and not wiki_extension.startswith("."):
            wiki_extension = f".{wiki_extension}"
        links = LinkConfig(
            wiki_extension=wiki_extension or ".md",
            case_insensitive_fallback=links_data.get("case_insensitive_fallback", True),
        )

        return cls(
            editor=data.get("editor", ""),
            theme=data.get("theme", DEFAULT_THEME),
            max_history=max(1, int(data.get("max_history", DEFAULT_MAX_HISTORY))),
            watch=data.get("watch", True),
            links=links,
        )

    def save(self) -> None:
        """Save configuration to file."""
        config_path = get_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        # Build TOML content manually (tomllib is read-only)
        lines = [
            '# mdnav Configuration',
            '',
            '# Editor command for editing files',
            '# Empty = use $VISUAL, then $EDITOR',
            f'editor = "{self.editor}"',
            '',
            '# Textual theme name (pick one interactively with "t")',
            f'theme = "{self.theme}"',
            '',
            '# Number of back/forward history entries to keep',
            f'max_history = {self.max_history}',
            '',
            '# Reload the open file when it changes on disk',
            f'watch = {str(self.watch).lower()}',
            '',
            '# Link resolution',
            '[links]',
            f'wiki_extension = "{self.links.wiki_extension}"  # appended to [[wiki links]]',
            f'case_insensitive_fallback = {str(self.links.case_insensitive_fallback).lower()}',
        ]

        config_path.write_text("\n".join(lines) + "\n")
