"""Shared fixtures for mdnav tests."""

from pathlib import Path

import pytest

from mdnav.errors import ClipboardError, ClipboardUnavailableError, EditorExitError, OpenError
from mdnav.loader import _file_cache, load_document
from mdnav.navigation import NavigationEngine


GUIDE = """\
# Guide

Intro with a [local jump](#usage) and [the API](api.md#endpoints).

## Install

Run the installer. See [[notes]] and [[notes#Todo|todo list]].

### Linux

Use the package manager.

## Usage

Visit <https://example.com> or [docs](https://docs.example.com/start).

```
[[not-a-link]]
```

## FAQ

Nothing here.
"""

API = """\
# API

## Endpoints

Back to the [guide](guide.md#install).

## Errors

See [missing](nowhere.md).
"""

NOTES = """\
# Notes

## Todo

- write tests
"""


class FakeClipboard:
    """Records copied text; can be told to fail."""

    def __init__(self, error: ClipboardError | None = None) -> None:
        self.copied: list[str] = []
        self.error = error

    def copy(self, text: str) -> None:
        if self.error is not None:
            raise self.error
        self.copied.append(text)


class FakeOpener:
    """Records opened URLs; can be told to fail."""

    def __init__(self, fail: bool = False) -> None:
        self.opened: list[str] = []
        self.fail = fail

    def open(self, url: str) -> None:
        if self.fail:
            raise OpenError("no browser")
        self.opened.append(url)


class FakeEditor:
    """Records edited paths; optionally rewrites the file or fails."""

    def __init__(self, new_content: str | None = None, returncode: int = 0) -> None:
        self.edited: list[Path] = []
        self.new_content = new_content
        self.returncode = returncode

    def edit(self, path: Path) -> None:
        self.edited.append(path)
        if self.new_content is not None:
            path.write_text(self.new_content, encoding="utf-8")
        if self.returncode:
            raise EditorExitError("fake-editor", self.returncode)


@pytest.fixture(autouse=True)
def clear_file_cache():
    """Keep the shared file cache from leaking between tests."""
    _file_cache._cache.clear()
    yield
    _file_cache._cache.clear()


@pytest.fixture
def docs(tmp_path):
    """A small tree of linked markdown files."""
    root = tmp_path / "docs"
    root.mkdir()
    (root / "guide.md").write_text(GUIDE, encoding="utf-8")
    (root / "api.md").write_text(API, encoding="utf-8")
    (root / "notes.md").write_text(NOTES, encoding="utf-8")
    return root


@pytest.fixture
def clipboard():
    return FakeClipboard()


@pytest.fixture
def opener():
    return FakeOpener()


@pytest.fixture
def editor():
    return FakeEditor()


@pytest.fixture
def engine(docs, clipboard, opener, editor):
    """A NavigationEngine on guide.md with fake collaborators."""
    return NavigationEngine(
        load_document(docs / "guide.md"),
        opener=opener,
        clipboard=clipboard,
        editor=editor,
    )


@pytest.fixture
def unavailable_clipboard():
    return FakeClipboard(ClipboardUnavailableError("none of pbcopy found"))
