"""Tests for mdnav.loader module."""

import os
from pathlib import Path

import pytest

from mdnav.errors import DocumentNotFoundError, DocumentUnreadableError, InvalidTextError
from mdnav.loader import FileCache, invalidate_file_cache, load_document, read_markdown


class TestLoadDocument:
    def test_loads_and_parses(self, docs):
        document = load_document(docs / "api.md")
        assert document.path == (docs / "api.md").resolve()
        assert [h.text for h in document.headings] == ["API", "Endpoints", "Errors"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentNotFoundError) as exc_info:
            load_document(tmp_path / "missing.md")
        assert "missing.md not found" in str(exc_info.value)

    def test_directory_is_not_a_document(self, tmp_path):
        with pytest.raises(DocumentNotFoundError):
            load_document(tmp_path)

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "binary.md"
        path.write_bytes(b"# Title\n\xff\xfe\x00bad")
        with pytest.raises(InvalidTextError):
            load_document(path)

    def test_unreadable(self, tmp_path, monkeypatch):
        path = tmp_path / "locked.md"
        path.write_text("# Locked\n")

        def deny(self, *args, **kwargs):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(Path, "read_text", deny)
        with pytest.raises(DocumentUnreadableError) as exc_info:
            load_document(path)
        assert "Permission denied" in str(exc_info.value)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.md"
        path.write_text("")
        document = load_document(path)
        assert document.headings == []
        assert document.content == ""


class TestFileCache:
    def test_put_and_get(self, tmp_path):
        path = tmp_path / "a.md"
        path.write_text("hello")
        cache = FileCache()
        cache.put(path, path.stat().st_mtime, "hello")
        assert cache.get(path) == "hello"

    def test_stale_entry_dropped(self, tmp_path):
        path = tmp_path / "a.md"
        path.write_text("hello")
        cache = FileCache()
        mtime = path.stat().st_mtime
        cache.put(path, mtime, "hello")
        os.utime(path, (mtime + 10, mtime + 10))
        assert cache.get(path) is None
        assert len(cache) == 0

    def test_deleted_file_dropped(self, tmp_path):
        path = tmp_path / "a.md"
        path.write_text("hello")
        cache = FileCache()
        cache.put(path, path.stat().st_mtime, "hello")
        path.unlink()
        assert cache.get(path) is None

    def test_lru_eviction(self, tmp_path):
        cache = FileCache(max_size=2)
        paths = []
        for name in ("a", "b", "c"):
            path = tmp_path / f"{name}.md"
            path.write_text(name)
            paths.append(path)
        cache.put(paths[0], paths[0].stat().st_mtime, "a")
        cache.put(paths[1], paths[1].stat().st_mtime, "b")
        cache.get(paths[0])
        cache.put(paths[2], paths[2].stat().st_mtime, "c")
        assert cache.get(paths[1]) is None
        assert cache.get(paths[0]) == "a"
        assert cache.get(paths[2]) == "c"

    def test_invalidate(self, tmp_path):
        path = tmp_path / "a.md"
        path.write_text("hello")
        cache = FileCache()
        cache.put(path, path.stat().st_mtime, "hello")
        cache.invalidate(path)
        assert cache.get(path) is None


class TestReadMarkdown:
    def test_shared_cache_invalidation(self, tmp_path):
        path = tmp_path / "a.md"
        path.write_text("# One\n")
        assert read_markdown(path) == "# One\n"

        stat = path.stat()
        path.write_text("# Two\n")
        # Same mtime: only an explicit invalidation reveals the new text
        os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns))
        assert read_markdown(path) == "# One\n"
        invalidate_file_cache(path)
        assert read_markdown(path) == "# Two\n"

    def test_without_cache(self, tmp_path):
        path = tmp_path / "a.md"
        path.write_text("text")
        assert read_markdown(path, cache=None) == "text"
