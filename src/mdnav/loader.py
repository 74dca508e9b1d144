"""Loading markdown files into parsed documents."""

import logging
from collections import OrderedDict
from pathlib import Path

from .document import Document, parse_markdown
from .errors import (
    DocumentNotFoundError,
    DocumentUnreadableError,
    InvalidTextError,
)

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = (".md", ".markdown")


class FileCache:
    """LRU cache for file contents with mtime-based invalidation."""

    def __init__(self, max_size: int = 10) -> None:
        self._cache: OrderedDict[str, tuple[float, str]] = OrderedDict()
        self._max_size = max_size

    def get(self, path: Path) -> str | None:
        """Get cached content if valid, or None if not cached/stale."""
        key = str(path)
        if key not in self._cache:
            return None

        cached_mtime, content = self._cache[key]

        try:
            current_mtime = path.stat().st_mtime
            if current_mtime != cached_mtime:
                del self._cache[key]
                return None
        except OSError:
            del self._cache[key]
            return None

        self._cache.move_to_end(key)
        return content

    def put(self, path: Path, mtime: float, content: str) -> None:
        """Cache file content."""
        key = str(path)

        if len(self._cache) >= self._max_size and key not in self._cache:
            self._cache.popitem(last=False)

        self._cache[key] = (mtime, content)
        self._cache.move_to_end(key)

    def invalidate(self, path: Path) -> None:
        """Invalidate cache entry for a specific file."""
        self._cache.pop(str(path), None)

    def __len__(self) -> int:
        return len(self._cache)


# Shared cache instance
_file_cache = FileCache(max_size=10)


def invalidate_file_cache(path: Path) -> None:
    """Invalidate cache for a file (call when file changes)."""
    _file_cache.invalidate(path)


def read_markdown(path: Path, cache: FileCache | None = _file_cache) -> str:
    """Read a markdown file as text.

    Raises:
        DocumentNotFoundError: the path is missing or not a file
        DocumentUnreadableError: the OS refused to read it
        InvalidTextError: the bytes are not UTF-8
    """
    if cache is not None:
        content = cache.get(path)
        if content is not None:
            return content

    if not path.is_file():
        raise DocumentNotFoundError(path)

    try:
        mtime = path.stat().st_mtime
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise DocumentNotFoundError(path) from e
    except UnicodeDecodeError as e:
        raise InvalidTextError(path, e.reason) from e
    except OSError as e:
        raise DocumentUnreadableError(path, e.strerror or str(e)) from e

    if cache is not None:
        cache.put(path, mtime, content)
    return content


def load_document(path: Path) -> Document:
    """Read and parse a markdown file."""
    path = path.expanduser().resolve()
    document = parse_markdown(read_markdown(path), path=path)
    logger.debug("Loaded %s (%d headings)", path, len(document.headings))
    return document
