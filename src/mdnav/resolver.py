"""Resolving classified link targets into navigation actions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .document import Document, slugify
from .errors import AmbiguousPathError, AnchorNotFoundError, WikiLinkNotFoundError
from .links import (
    Anchor,
    External,
    FileWithAnchor,
    LinkTarget,
    RelativeFile,
    WikiLink,
)
from .loader import MARKDOWN_EXTENSIONS, load_document

logger = logging.getLogger(__name__)

Loader = Callable[[Path], Document]


@dataclass(frozen=True)
class JumpToHeading:
    """Select a heading in the document that is already open."""

    index: int


@dataclass(frozen=True)
class OpenDocument:
    """Switch to another document, optionally selecting a heading.

    ``anchor_error`` is set when the file loaded but the requested anchor
    is not in it.
    """

    document: Document
    heading_index: int | None = None
    anchor_error: AnchorNotFoundError | None = None


@dataclass(frozen=True)
class OpenExternal:
    """Hand a URL to the system opener."""

    url: str


Resolution = JumpToHeading | OpenDocument | OpenExternal


def resolve_anchor(document: Document, slug: str) -> int:
    """Index of the heading an anchor points at.

    Tries the anchor as written, then its slugified form, then a
    case-insensitive match on heading text. Duplicate anchors resolve to
    the first heading.

    Raises:
        AnchorNotFoundError: nothing matches
    """
    if not slug:
        raise AnchorNotFoundError(slug)

    for i, heading in enumerate(document.headings):
        if heading.anchor == slug:
            return i

    normalized = slugify(slug)
    if normalized:
        for i, heading in enumerate(document.headings):
            if heading.anchor == normalized:
                return i

    wanted = slug.lower()
    for i, heading in enumerate(document.headings):
        if heading.text.lower() == wanted:
            return i

    raise AnchorNotFoundError(slug)


def _base_directory(current_path: Path | None) -> Path:
    return current_path.parent if current_path is not None else Path.cwd()


def resolve_path(path: str, current_path: Path | None, extension: str = ".md") -> Path:
    """Resolve a relative link path against the current file's directory.

    A path without a suffix that does not exist is retried with the
    markdown extension appended. Existence is not required; the loader
    reports missing files.
    """
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = _base_directory(current_path) / candidate

    if not candidate.exists() and not candidate.suffix:
        with_extension = candidate.with_name(candidate.name + extension)
        if with_extension.exists():
            candidate = with_extension

    return candidate.resolve()


def resolve_wiki_link(
    name: str,
    current_path: Path | None,
    extension: str = ".md",
    case_insensitive: bool = True,
) -> Path:
    """Resolve a wiki link name to a file next to the current file.

    Resolution order:
    1. Exact name, then name with the markdown extension appended, using
       the filesystem's own lookup (so its case rules apply)
    2. If enabled, a case-insensitive match among the directory entries

    Raises:
        WikiLinkNotFoundError: no file matches
        AmbiguousPathError: the case-insensitive match is not unique
    """
    name = name.strip()
    directory = _base_directory(current_path)

    targets_to_try = [name]
    if Path(name).suffix.lower() not in MARKDOWN_EXTENSIONS:
        targets_to_try.append(f"{name}{extension}")

    for try_target in targets_to_try:
        candidate = directory / try_target
        if candidate.is_file():
            return candidate.resolve()

    if case_insensitive:
        matches: list[Path] = []
        for try_target in targets_to_try:
            candidate = directory / try_target
            wanted = candidate.name.lower()
            try:
                entries = list(candidate.parent.iterdir())
            except OSError:
                continue
            for entry in entries:
                if entry.name.lower() == wanted and entry.is_file() and entry not in matches:
                    matches.append(entry)
        if len(matches) == 1:
            return matches[0].resolve()
        if len(matches) > 1:
            raise AmbiguousPathError(name, sorted(matches))

    raise WikiLinkNotFoundError(name)


def _open(
    loader: Loader, path: Path, slug: str | None
) -> OpenDocument:
    document = loader(path)
    if not slug:
        return OpenDocument(document)
    try:
        return OpenDocument(document, resolve_anchor(document, slug))
    except AnchorNotFoundError as e:
        logger.warning("Opened %s but %s", path, e)
        return OpenDocument(document, None, e)


def resolve(
    target: LinkTarget,
    document: Document,
    current_path: Path | None = None,
    loader: Loader = load_document,
    *,
    wiki_extension: str = ".md",
    case_insensitive: bool = True,
) -> Resolution:
    """Turn a link target into a navigation action.

    Raises:
        ResolutionError: anchor or wiki link target not found
        DocumentLoadError: the target file could not be loaded
    """
    if current_path is None:
        current_path = document.path

    if isinstance(target, Anchor):
        return JumpToHeading(resolve_anchor(document, target.slug))

    if isinstance(target, External):
        return OpenExternal(target.url)

    if isinstance(target, RelativeFile):
        return _open(loader, resolve_path(target.path, current_path, wiki_extension), None)

    if isinstance(target, FileWithAnchor):
        path = resolve_path(target.path, current_path, wiki_extension)
        return _open(loader, path, target.slug)

    if isinstance(target, WikiLink):
        name, _, fragment = target.name.partition("#")
        fragment = fragment.strip()
        if not name.strip():
            return JumpToHeading(resolve_anchor(document, fragment))
        path = resolve_wiki_link(name, current_path, wiki_extension, case_insensitive)
        return _open(loader, path, fragment or None)

    raise TypeError(f"Unknown link target: {target!r}")
