"""
Context Module

Deduplicating tracker for content injected into conversations.
"""

from agentic.context.manager import ContextManager, ContextStats, hash_content

__all__ = [
    "ContextManager",
    "ContextStats",
    "hash_content",
]
