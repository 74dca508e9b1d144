"""Tests for mdnav.navigation module."""

import pytest

from mdnav.document import parse_markdown
from mdnav.errors import ClipboardError
from mdnav.links import Anchor, External, FileWithAnchor, Link, RelativeFile, WikiLink
from mdnav.loader import invalidate_file_cache, load_document
from mdnav.navigation import FileState, NavigationEngine, NavigationHistory, page_step

from conftest import FakeClipboard, FakeEditor, FakeOpener


def visible(engine):
    return [entry.heading.text for entry in engine.visible_headings()]


def link(target, text="link"):
    return Link(text, target, 0)


class TestNavigationHistory:
    def test_record_clears_forward(self):
        history = NavigationHistory()
        history.record(FileState(None))
        history.step_back(FileState(None, 1))
        assert history.can_go_forward
        history.record(FileState(None, 2))
        assert not history.can_go_forward

    def test_back_then_forward_is_identity(self):
        history = NavigationHistory()
        a, b = FileState(None, 1), FileState(None, 2)
        history.record(a)
        assert history.step_back(b) == a
        assert history.step_forward(a) == b
        assert history.back == [a]
        assert history.forward == []

    def test_empty_steps(self):
        history = NavigationHistory()
        assert history.step_back(FileState(None)) is None
        assert history.step_forward(FileState(None)) is None

    def test_bounded(self):
        history = NavigationHistory(max_entries=3)
        for i in range(5):
            history.record(FileState(None, i))
        assert [s.scroll_offset for s in history.back] == [2, 3, 4]

    def test_clear(self):
        history = NavigationHistory()
        history.record(FileState(None))
        history.clear()
        assert not history.can_go_back


class TestSelection:
    def test_initial_selection_is_first_heading(self, engine):
        assert engine.selected == "Guide"
        assert engine.selected_index == 0

    def test_select_next_and_previous(self, engine):
        assert engine.select_next()
        assert engine.selected == "Install"
        assert engine.select_next()
        assert engine.selected == "Linux"
        assert engine.select_previous()
        assert engine.selected == "Install"

    def test_select_stops_at_edges(self, engine):
        assert not engine.select_previous()
        engine.select("FAQ")
        assert not engine.select_next()
        assert engine.selected == "FAQ"

    def test_select_unknown_clears_selection(self, engine):
        assert not engine.select("Missing")
        assert engine.selected is None
        assert engine.section_text == engine.document.content

    def test_select_by_anchor(self, engine):
        assert engine.select("usage")
        assert engine.selected == "Usage"

    def test_select_first(self, engine):
        engine.select("FAQ")
        assert engine.select_first()
        assert engine.selected == "Guide"

    def test_empty_document(self):
        engine = NavigationEngine(parse_markdown("no headings"))
        assert engine.selected is None
        assert not engine.select_next()
        assert engine.visible_headings() == []
        assert engine.section_text == "no headings"

    def test_section_text_follows_selection(self, engine):
        engine.select("Linux")
        assert engine.section_text.startswith("### Linux")
        assert "## Usage" not in engine.section_text


class TestOutline:
    def test_depths(self, engine):
        depths = [(e.heading.text, e.depth) for e in engine.visible_headings()]
        assert depths == [
            ("Guide", 0),
            ("Install", 1),
            ("Linux", 2),
            ("Usage", 1),
            ("FAQ", 1),
        ]

    def test_collapse_hides_descendants(self, engine):
        status = engine.toggle_collapse("Install")
        assert status.kind == "success"
        assert visible(engine) == ["Guide", "Install", "Usage", "FAQ"]
        assert engine.visible_headings()[1].collapsed

    def test_collapse_round_trip(self, engine):
        before = engine.visible_headings()
        engine.toggle_collapse("Install")
        engine.toggle_collapse("Install")
        assert engine.visible_headings() == before
        assert engine.collapsed == set()

    def test_collapse_leaf_is_a_warning(self, engine):
        status = engine.toggle_collapse("FAQ")
        assert status.kind == "warning"
        assert engine.collapsed == set()

    def test_collapse_ancestor_parks_selection(self, engine):
        engine.select("Linux")
        engine.toggle_collapse("Install")
        assert engine.selected == "Install"
        engine.toggle_collapse("Install")
        assert engine.selected == "Linux"

    def test_collapse_all_and_expand_all(self, engine):
        engine.select("Linux")
        engine.collapse_all()
        assert visible(engine) == ["Guide"]
        assert engine.selected == "Guide"
        engine.expand_all()
        assert len(visible(engine)) == 5
        assert engine.selected == "Linux"

    def test_moving_skips_collapsed(self, engine):
        engine.toggle_collapse("Install")
        engine.select("Install")
        engine.select_next()
        assert engine.selected == "Usage"

    def test_selecting_hidden_heading_reveals_it(self, engine):
        engine.toggle_collapse("Install")
        engine.select("Linux")
        assert "Linux" in visible(engine)


class TestParentJump:
    def test_jump_to_parent_chain(self, engine):
        engine.select("Linux")
        assert engine.jump_to_parent().kind == "success"
        assert engine.selected == "Install"
        assert engine.jump_to_parent().kind == "success"
        assert engine.selected == "Guide"
        status = engine.jump_to_parent()
        assert status.kind == "warning"
        assert status.message == "Already at top level"
        assert engine.selected == "Guide"

    def test_jump_terminates_within_depth(self, engine):
        engine.select("Linux")
        steps = 0
        while engine.jump_to_parent().kind == "success":
            steps += 1
        assert steps == engine.document.depth(engine.document.index_of("Linux"))

    def test_parent_of(self, engine):
        assert engine.parent_of("Linux") == "Install"
        assert engine.parent_of("Guide") is None
        assert engine.parent_of("Missing") is None

    def test_no_selection(self, engine):
        engine.select(None)
        assert engine.jump_to_parent().kind == "warning"


class TestFilter:
    def test_filter_is_flat_list_of_matches(self, engine):
        status = engine.apply_filter("in")
        assert status.kind == "success"
        assert visible(engine) == ["Install", "Linux"]
        assert all(entry.depth >= 0 for entry in engine.visible_headings())

    def test_filter_moves_selection_to_first_match(self, engine):
        engine.apply_filter("usage")
        assert engine.selected == "Usage"

    def test_filter_keeps_matching_selection(self, engine):
        engine.select("Linux")
        engine.apply_filter("in")
        assert engine.selected == "Linux"

    def test_filter_without_matches_is_not_applied(self, engine):
        status = engine.apply_filter("zzz")
        assert status.kind == "warning"
        assert engine.filter_query is None
        assert len(visible(engine)) == 5

    def test_filter_ignores_collapse(self, engine):
        engine.toggle_collapse("Install")
        engine.apply_filter("linux")
        assert visible(engine) == ["Linux"]

    def test_clear_filter(self, engine):
        engine.apply_filter("in")
        engine.clear_filter()
        assert engine.filter_query is None
        assert len(visible(engine)) == 5

    def test_blank_query_clears(self, engine):
        engine.apply_filter("in")
        engine.apply_filter("   ")
        assert engine.filter_query is None


class TestDuplicateHeadings:
    CONTENT = (
        "# Guide\n\n## Install\n\n### Example\n\nFirst.\n\n#### Detail\n\n"
        "## Usage\n\n### Example\n\nSecond.\n\n#### Detail\n"
    )

    @pytest.fixture
    def dup_engine(self, tmp_path):
        path = tmp_path / "dup.md"
        path.write_text(self.CONTENT)
        return NavigationEngine(load_document(path))

    def test_walk_reaches_every_heading(self, dup_engine):
        indices = [dup_engine.selected_index]
        while dup_engine.select_next():
            indices.append(dup_engine.selected_index)
        assert indices == list(range(7))
        assert dup_engine.selected == "Detail@2"

    def test_section_text_of_repeated_heading(self, dup_engine):
        assert dup_engine.select("Example@2")
        assert dup_engine.selected_index == 5
        assert "Second." in dup_engine.section_text
        assert "First." not in dup_engine.section_text

    def test_collapse_is_per_occurrence(self, dup_engine):
        dup_engine.toggle_collapse("Example@2")
        assert dup_engine.collapsed == {"Example@2"}
        assert visible(dup_engine) == ["Guide", "Install", "Example", "Detail", "Usage", "Example"]
        dup_engine.toggle_collapse("Example")
        assert visible(dup_engine) == ["Guide", "Install", "Example", "Usage", "Example"]

    def test_parent_chain_stays_in_its_branch(self, dup_engine):
        dup_engine.select("Detail@2")
        dup_engine.jump_to_parent()
        assert dup_engine.selected == "Example@2"
        dup_engine.jump_to_parent()
        assert dup_engine.selected == "Usage"

    def test_filter_then_move_to_second_match(self, dup_engine):
        dup_engine.apply_filter("example")
        assert dup_engine.selected == "Example"
        assert dup_engine.select_next()
        assert dup_engine.selected == "Example@2"

    def test_reload_restores_repeated_selection(self, dup_engine):
        dup_engine.select("Detail@2")
        dup_engine.toggle_collapse("Example")
        dup_engine.path.write_text(self.CONTENT + "\nMore.\n")
        assert dup_engine.reload().kind == "success"
        assert dup_engine.selected == "Detail@2"
        assert dup_engine.collapsed == {"Example"}
        assert "More." in dup_engine.section_text


class TestFollowLink:
    def test_anchor_link_moves_selection_only(self, engine):
        status = engine.follow_link(link(Anchor("usage")))
        assert status.ok
        assert engine.selected == "Usage"
        assert not engine.history.can_go_back

    def test_file_link_pushes_history(self, engine, docs):
        engine.select("Install")
        status = engine.follow_link(link(FileWithAnchor("api.md", "endpoints")))
        assert status.kind == "success"
        assert engine.path == (docs / "api.md").resolve()
        assert engine.selected == "Endpoints"
        assert engine.history.back[-1].selected_heading == "Install"
        assert engine.history.forward == []

    def test_wiki_link_with_section(self, engine):
        engine.follow_link(link(WikiLink("notes#Todo")))
        assert engine.document.name == "notes.md"
        assert engine.selected == "Todo"

    def test_missing_anchor_opens_file_with_warning(self, engine):
        status = engine.follow_link(link(FileWithAnchor("api.md", "ghost")))
        assert status.kind == "warning"
        assert "ghost" in status.message
        assert engine.document.name == "api.md"
        assert engine.selected == "API"

    def test_missing_file_leaves_state_untouched(self, engine):
        engine.select("Usage")
        engine.follow_link(link(RelativeFile("api.md")))
        before = (engine.snapshot(), list(engine.history.back), list(engine.history.forward))

        status = engine.follow_link(link(RelativeFile("nowhere.md")))
        assert status.kind == "error"
        assert (engine.snapshot(), engine.history.back, engine.history.forward) == before

    def test_missing_anchor_in_same_document(self, engine):
        status = engine.follow_link(link(Anchor("ghost")))
        assert status.kind == "error"
        assert engine.selected == "Guide"

    def test_external_link_opens(self, engine, opener):
        status = engine.follow_link(link(External("https://example.com")))
        assert status.kind == "success"
        assert opener.opened == ["https://example.com"]
        assert not engine.history.can_go_back

    def test_external_falls_back_to_clipboard(self, docs):
        clipboard = FakeClipboard()
        engine = NavigationEngine(
            load_document(docs / "guide.md"),
            opener=FakeOpener(fail=True),
            clipboard=clipboard,
        )
        status = engine.follow_link(link(External("https://example.com")))
        assert status.kind == "warning"
        assert clipboard.copied == ["https://example.com"]

    def test_external_with_no_opener_and_no_clipboard(self, docs):
        engine = NavigationEngine(
            load_document(docs / "guide.md"),
            opener=FakeOpener(fail=True),
            clipboard=FakeClipboard(ClipboardError("broken")),
        )
        status = engine.follow_link(link(External("https://example.com")))
        assert status.kind == "error"

    def test_links_of_selected_section(self, engine):
        engine.select("Install")
        assert [l.target for l in engine.links] == [
            WikiLink("notes"),
            WikiLink("notes#Todo", "todo list"),
        ]
        engine.select("FAQ")
        assert engine.links == []


class TestHistoryNavigation:
    def test_back_and_forward_restore_state(self, engine, docs):
        engine.select("Install")
        engine.toggle_collapse("Install")
        guide_state = engine.snapshot()
        engine.follow_link(link(FileWithAnchor("api.md", "errors")))
        api_state = engine.snapshot()

        assert engine.go_back().kind == "success"
        assert engine.snapshot() == guide_state
        assert engine.collapsed == {"Install"}
        assert len(engine.history.forward) == 1

        assert engine.go_forward().kind == "success"
        assert engine.snapshot() == api_state

    def test_back_forward_symmetry(self, engine):
        engine.follow_link(link(RelativeFile("api.md")))
        engine.follow_link(link(RelativeFile("notes.md")))
        start = (engine.snapshot(), list(engine.history.back), list(engine.history.forward))
        engine.go_back()
        engine.go_forward()
        assert (engine.snapshot(), engine.history.back, engine.history.forward) == start

    def test_new_navigation_clears_forward(self, engine):
        engine.follow_link(link(RelativeFile("api.md")))
        engine.go_back()
        assert engine.history.can_go_forward
        engine.follow_link(link(RelativeFile("notes.md")))
        assert not engine.history.can_go_forward

    def test_empty_history(self, engine):
        assert engine.go_back().kind == "warning"
        assert engine.go_forward().kind == "warning"

    def test_back_to_deleted_file_is_atomic(self, engine, docs):
        engine.follow_link(link(RelativeFile("api.md")))
        engine.follow_link(link(RelativeFile("notes.md")))
        (docs / "api.md").unlink()
        before = (engine.snapshot(), list(engine.history.back), list(engine.history.forward))

        status = engine.go_back()
        assert status.kind == "error"
        assert (engine.snapshot(), engine.history.back, engine.history.forward) == before

    def test_restored_selection_missing_after_edit(self, engine, docs):
        engine.follow_link(link(FileWithAnchor("api.md", "errors")))
        engine.follow_link(link(RelativeFile("notes.md")))
        (docs / "api.md").write_text("# API\n\n## Other\n")
        invalidate_file_cache(docs / "api.md")
        engine.go_back()
        assert engine.document.name == "api.md"
        assert engine.selected is None

    def test_history_is_bounded(self, docs):
        engine = NavigationEngine(load_document(docs / "guide.md"), max_history=2)
        for name in ("api.md", "notes.md", "guide.md"):
            engine.open_path(docs / name)
        assert len(engine.history.back) == 2

    def test_open_path_missing(self, engine, docs):
        status = engine.open_path(docs / "ghost.md")
        assert status.kind == "error"
        assert not engine.history.can_go_back


class TestScroll:
    def test_scroll_clamped(self, engine):
        engine.viewport_height = 5
        engine.scroll_by(1000)
        assert engine.scroll_offset == engine.max_scroll
        engine.scroll_by(-1000)
        assert engine.scroll_offset == 0

    def test_selection_resets_scroll(self, engine):
        engine.viewport_height = 1
        engine.scroll_by(3)
        engine.select("Usage")
        assert engine.scroll_offset == 0

    @pytest.mark.parametrize(
        "height, pages, expected",
        [(20, 0.5, 10), (20, -0.5, -10), (1, 0.5, 1), (1, -0.5, -1), (0, -0.5, -1)],
    )
    def test_page_step(self, height, pages, expected):
        assert page_step(height, pages) == expected


class TestReloadAndEdit:
    def test_reload_keeps_view(self, engine, docs):
        engine.select("Linux")
        engine.toggle_collapse("Guide")
        engine.toggle_collapse("Guide")
        engine.apply_filter("li")
        (docs / "guide.md").write_text("# Guide\n\n## Install\n\n### Linux\n\nNew text.\n")
        status = engine.reload()
        assert status.kind == "success"
        assert engine.selected == "Linux"
        assert engine.filter_query == "li"
        assert "New text." in engine.section_text

    def test_reload_of_deleted_file(self, engine, docs):
        (docs / "guide.md").unlink()
        status = engine.reload()
        assert status.kind == "error"
        assert engine.document.name == "guide.md"

    def test_reload_without_path(self):
        engine = NavigationEngine(parse_markdown("# x"))
        assert engine.reload().kind == "warning"

    def test_edit_reloads(self, docs):
        editor = FakeEditor(new_content="# Guide\n\n## Added\n")
        engine = NavigationEngine(load_document(docs / "guide.md"), editor=editor)
        entered = []

        class Suspend:
            def __enter__(self):
                entered.append(True)

            def __exit__(self, *args):
                return False

        status = engine.edit(Suspend)
        assert status.kind == "success"
        assert entered == [True]
        assert editor.edited == [(docs / "guide.md").resolve()]
        assert [h.text for h in engine.document.headings] == ["Guide", "Added"]

    def test_edit_failure_still_reloads(self, docs):
        editor = FakeEditor(new_content="# Changed\n", returncode=1)
        engine = NavigationEngine(load_document(docs / "guide.md"), editor=editor)
        status = engine.edit()
        assert status.kind == "error"
        assert "exited with status 1" in status.message
        assert engine.document.headings[0].text == "Changed"


class TestCopy:
    def test_copy_section(self, engine, clipboard):
        engine.select("Install")
        status = engine.copy_section()
        assert status.kind == "success"
        assert clipboard.copied[0].startswith("## Install")
        assert "### Linux" in clipboard.copied[0]

    def test_copy_anchor_link(self, engine, clipboard):
        engine.select("Linux")
        engine.copy_anchor_link()
        assert clipboard.copied == ["guide.md#linux"]

    def test_copy_without_clipboard(self, docs, unavailable_clipboard):
        engine = NavigationEngine(load_document(docs / "guide.md"), clipboard=unavailable_clipboard)
        status = engine.copy_section()
        assert status.kind == "error"
        assert "No clipboard" in status.message

    def test_copy_anchor_without_selection(self, engine):
        engine.select(None)
        assert engine.copy_anchor_link().kind == "warning"

    @pytest.mark.parametrize("method", ["copy_section", "copy_anchor_link"])
    def test_copy_does_not_touch_navigation(self, engine, method):
        engine.select("Usage")
        before = engine.snapshot()
        getattr(engine, method)()
        assert engine.snapshot() == before
