"""
Context Manager

Tracks content injected into a conversation so the same material is not
injected twice, and summarizes what has been injected.
"""

import hashlib
import random
import re
import string
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from agentic.core.types import ContextPriority, DynamicContentItem, TrackedContextItem
from agentic.observability.logging import StructuredLogger, get_logger

# Past this many items the similarity scan logs a warning.
MAX_ITEMS_WARNING = 1000


@dataclass
class ContextStats:
    """Summary of tracked context."""

    total_items: int = 0
    by_category: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)
    by_source: dict[str, int] = field(default_factory=dict)
    oldest_timestamp: datetime | None = None
    newest_timestamp: datetime | None = None


def hash_content(content: str) -> str:
    """First 32 hex chars (128 bits) of the SHA-256 digest."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:32]


def normalize_content(content: str) -> str:
    return re.sub(r"\s+", " ", content).strip().lower()


class ContextManager:
    """
    Tracks dynamically injected context.

    Items without an explicit id are deduplicated by content hash; items
    with an id are always tracked.
    """

    def __init__(self, logger: StructuredLogger | None = None):
        self._items: dict[str, TrackedContextItem] = {}
        self._hashes: set[str] = set()
        self._logger = (logger or get_logger()).child("ContextManager")

    def track(self, item: DynamicContentItem, position: int) -> TrackedContextItem | None:
        """
        Track a context item.

        Returns the tracked item, or None when it was skipped as a duplicate.
        """
        content_hash = hash_content(item.content)

        if not item.id and content_hash in self._hashes:
            self._logger.debug("Skipping duplicate context item by hash", hash=content_hash)
            return None

        item_id = item.id or self._generate_id()
        now = datetime.now()

        tracked = TrackedContextItem(
            **item.model_dump(exclude={"id", "timestamp", "priority"}),
            id=item_id,
            hash=content_hash,
            position=position,
            injected_at=now,
            timestamp=item.timestamp or now,
            priority=item.priority or "medium",
        )

        self._items[item_id] = tracked
        self._hashes.add(content_hash)

        self._logger.debug(
            "Tracked context item",
            id=item_id,
            category=item.category,
            position=position,
        )
        return tracked

    def has_context(self, item_id: str) -> bool:
        return item_id in self._items

    def has_content_hash(self, content: str) -> bool:
        return hash_content(content) in self._hashes

    def has_similar_content(self, content: str, similarity_threshold: float = 0.9) -> bool:
        """
        Fuzzy duplicate check.

        Content matches when, after whitespace and case normalization, it
        equals a tracked item, or one contains the other and their length
        ratio is at least the threshold.
        """
        if len(self._items) > MAX_ITEMS_WARNING:
            self._logger.warning(
                "Large number of context items, similarity check may be slow",
                count=len(self._items),
                threshold=MAX_ITEMS_WARNING,
            )

        normalized = normalize_content(content)

        for item in self._items.values():
            item_normalized = normalize_content(item.content or "")

            if normalized == item_normalized:
                return True

            if len(normalized) > len(item_normalized):
                longer, shorter = normalized, item_normalized
            else:
                longer, shorter = item_normalized, normalized

            if not longer:
                continue

            if len(shorter) / len(longer) >= similarity_threshold and shorter in longer:
                return True

        return False

    def get(self, item_id: str) -> TrackedContextItem | None:
        return self._items.get(item_id)

    def get_all(self) -> list[TrackedContextItem]:
        return list(self._items.values())

    def get_by_category(self, category: str) -> list[TrackedContextItem]:
        return [i for i in self._items.values() if i.category == category]

    def get_by_priority(self, priority: ContextPriority) -> list[TrackedContextItem]:
        return [i for i in self._items.values() if i.priority == priority]

    def get_by_source(self, source: str) -> list[TrackedContextItem]:
        return [i for i in self._items.values() if i.source == source]

    def get_categories(self) -> list[str]:
        """Sorted unique categories."""
        return sorted({i.category for i in self._items.values() if i.category})

    def get_stats(self) -> ContextStats:
        items = list(self._items.values())
        timestamps = [i.timestamp for i in items if i.timestamp]

        return ContextStats(
            total_items=len(items),
            by_category=dict(Counter(i.category for i in items if i.category)),
            by_priority=dict(Counter(i.priority or "medium" for i in items)),
            by_source=dict(Counter(i.source for i in items if i.source)),
            oldest_timestamp=min(timestamps) if timestamps else None,
            newest_timestamp=max(timestamps) if timestamps else None,
        )

    def remove(self, item_id: str) -> bool:
        item = self._items.pop(item_id, None)
        if item is None:
            return False

        self._hashes.discard(item.hash)
        self._logger.debug("Removed context item", id=item_id)
        return True

    def clear(self) -> None:
        self._items.clear()
        self._hashes.clear()
        self._logger.debug("Cleared all context")

    def __len__(self) -> int:
        return len(self._items)

    @staticmethod
    def _generate_id() -> str:
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=7))
        return f"ctx-{int(time.time() * 1000)}-{suffix}"
