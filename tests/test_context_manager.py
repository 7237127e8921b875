"""
Tests for ContextManager
"""

import re
from datetime import datetime, timedelta

from agentic.context import ContextManager, hash_content
from agentic.context.manager import normalize_content
from agentic.core.types import DynamicContentItem


def item(content: str, **kwargs) -> DynamicContentItem:
    return DynamicContentItem(content=content, **kwargs)


class TestTracking:
    """Tests for tracking context items."""

    def test_track_generates_id(self):
        """Test that items without an id get a generated one."""
        manager = ContextManager()

        tracked = manager.track(item("Project uses pytest"), position=3)

        assert re.match(r"^ctx-\d+-[a-z0-9]{7}$", tracked.id)
        assert tracked.hash == hash_content("Project uses pytest")
        assert tracked.position == 3
        assert tracked.priority == "medium"
        assert tracked.timestamp is not None
        assert manager.has_context(tracked.id)
        assert len(manager) == 1

    def test_track_keeps_fields(self):
        """Test that supplied fields are preserved."""
        stamp = datetime(2024, 1, 1)
        manager = ContextManager()

        tracked = manager.track(
            item("x", id="rules", title="Rules", category="docs", source="repo",
                 priority="high", timestamp=stamp, weight=0.5),
            position=0,
        )

        assert tracked.id == "rules"
        assert tracked.title == "Rules"
        assert tracked.category == "docs"
        assert tracked.source == "repo"
        assert tracked.priority == "high"
        assert tracked.timestamp == stamp
        assert tracked.weight == 0.5

    def test_duplicate_content_skipped(self):
        """Test that identical anonymous content is tracked once."""
        manager = ContextManager()

        assert manager.track(item("same"), 0) is not None
        assert manager.track(item("same"), 1) is None
        assert len(manager) == 1

    def test_duplicate_content_with_id_tracked(self):
        """Test that items with explicit ids bypass deduplication."""
        manager = ContextManager()

        manager.track(item("same"), 0)
        tracked = manager.track(item("same", id="explicit"), 1)

        assert tracked is not None
        assert len(manager) == 2

    def test_has_content_hash(self):
        """Test exact content lookup."""
        manager = ContextManager()
        manager.track(item("hello"), 0)

        assert manager.has_content_hash("hello")
        assert not manager.has_content_hash("Hello")

    def test_hash_is_truncated_sha256(self):
        """Test that hashes are 32 hex characters."""
        assert re.match(r"^[0-9a-f]{32}$", hash_content("anything"))


class TestSimilarity:
    """Tests for fuzzy duplicate detection."""

    def test_normalized_match(self):
        """Test that whitespace and case differences are ignored."""
        manager = ContextManager()
        manager.track(item("Hello   World\n"), 0)

        assert manager.has_similar_content("hello world")

    def test_contained_above_threshold(self):
        """Test containment with a high length ratio."""
        manager = ContextManager()
        manager.track(item("abcdefghij"), 0)

        assert manager.has_similar_content("abcdefghi")
        assert not manager.has_similar_content("abcde")
        assert manager.has_similar_content("abcde", similarity_threshold=0.5)

    def test_unrelated_content(self):
        """Test that different content is not similar."""
        manager = ContextManager()
        manager.track(item("alpha"), 0)

        assert not manager.has_similar_content("omega")

    def test_empty_manager(self):
        """Test that nothing is similar to an empty store."""
        assert not ContextManager().has_similar_content("anything")

    def test_normalize_content(self):
        """Test whitespace collapsing."""
        assert normalize_content("  A \t B\n\nC ") == "a b c"


class TestQueries:
    """Tests for lookup and statistics."""

    def _manager(self) -> ContextManager:
        manager = ContextManager()
        manager.track(item("a", id="1", category="docs", source="repo", priority="high",
                           timestamp=datetime(2024, 1, 1)), 0)
        manager.track(item("b", id="2", category="docs", source="user",
                           timestamp=datetime(2024, 1, 3)), 1)
        manager.track(item("c", id="3", category="code", source="repo", priority="low",
                           timestamp=datetime(2024, 1, 2)), 2)
        return manager

    def test_filters(self):
        """Test category, priority and source filters."""
        manager = self._manager()

        assert [i.id for i in manager.get_by_category("docs")] == ["1", "2"]
        assert [i.id for i in manager.get_by_priority("medium")] == ["2"]
        assert [i.id for i in manager.get_by_source("repo")] == ["1", "3"]
        assert manager.get_categories() == ["code", "docs"]
        assert manager.get("3").content == "c"
        assert manager.get("missing") is None
        assert [i.id for i in manager.get_all()] == ["1", "2", "3"]

    def test_stats(self):
        """Test summary statistics."""
        stats = self._manager().get_stats()

        assert stats.total_items == 3
        assert stats.by_category == {"docs": 2, "code": 1}
        assert stats.by_priority == {"high": 1, "medium": 1, "low": 1}
        assert stats.by_source == {"repo": 2, "user": 1}
        assert stats.oldest_timestamp == datetime(2024, 1, 1)
        assert stats.newest_timestamp == datetime(2024, 1, 3)

    def test_empty_stats(self):
        """Test statistics of an empty store."""
        stats = ContextManager().get_stats()

        assert stats.total_items == 0
        assert stats.by_category == {}
        assert stats.oldest_timestamp is None

    def test_remove(self):
        """Test that removal frees the content hash."""
        manager = self._manager()

        assert manager.remove("1")
        assert not manager.remove("1")
        assert not manager.has_content_hash("a")
        assert manager.track(item("a"), 5) is not None

    def test_clear(self):
        """Test removing everything."""
        manager = self._manager()

        manager.clear()

        assert len(manager) == 0
        assert not manager.has_content_hash("b")

    def test_injected_at_recent(self):
        """Test that tracking records the injection time."""
        manager = ContextManager()

        tracked = manager.track(item("x"), 0)

        assert datetime.now() - tracked.injected_at < timedelta(seconds=5)
