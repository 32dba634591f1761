"""In-process storage for extracted articles."""

from __future__ import annotations

__all__ = ["ArticleCache"]

from newsagent.storage.memory_cache import ArticleCache
