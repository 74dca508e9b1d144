"""Custom exceptions for mdnav."""

from pathlib import Path


class MdnavError(Exception):
    """Base exception for mdnav operations."""


class DocumentLoadError(MdnavError):
    """A document could not be loaded from disk."""

    reason = "could not be loaded"

    def __init__(self, path: Path, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        message = f"{path.name} {self.reason}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DocumentNotFoundError(DocumentLoadError):
    """The path does not exist or is not a file."""

    reason = "not found"


class DocumentUnreadableError(DocumentLoadError):
    """The file exists but cannot be read."""

    reason = "is not readable"


class InvalidTextError(DocumentLoadError):
    """The file is not valid UTF-8 text."""

    reason = "is not valid text"


class ResolutionError(MdnavError):
    """A link target could not be resolved."""


class AnchorNotFoundError(ResolutionError):
    """No heading in the document produces the requested anchor."""

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(f"Anchor not found: #{slug}")


class WikiLinkNotFoundError(ResolutionError):
    """No file matches a wiki link name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Link target not found: {name}")


class AmbiguousPathError(ResolutionError):
    """A wiki link name matches more than one file."""

    def __init__(self, name: str, candidates: list[Path]) -> None:
        self.name = name
        self.candidates = candidates
        names = ", ".join(p.name for p in candidates)
        super().__init__(f"Ambiguous link target {name}: {names}")


class ClipboardError(MdnavError):
    """Copying to the system clipboard failed."""


class ClipboardUnavailableError(ClipboardError):
    """No clipboard mechanism is available on this system."""


class OpenError(MdnavError):
    """An external URL could not be opened."""


class EditorError(MdnavError):
    """The external editor could not be run."""


class EditorNotConfiguredError(EditorError):
    """Neither the config nor the environment names an editor."""


class EditorExitError(EditorError):
    """The editor exited with a non-zero status."""

    def __init__(self, editor: str, returncode: int) -> None:
        self.editor = editor
        self.returncode = returncode
        super().__init__(f"Editor '{editor}' exited with status {returncode}")
