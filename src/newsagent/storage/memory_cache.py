from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from newsagent.discovery.url_utils import canonicalise_url
from newsagent.models import NormalizedArticle


@dataclass
class _Entry:
    article: NormalizedArticle
    stored_at: float


@dataclass
class ArticleCache:
    """Per-agent article cache keyed by canonical URL.

    Entries expire lazily: a read past the TTL drops the entry and misses.
    """

    ttl_s: float = 3600.0
    clock: Callable[[], float] = time.monotonic
    _entries: dict[str, _Entry] = field(default_factory=dict, init=False, repr=False)

    def get(self, url: str) -> NormalizedArticle | None:
        key = canonicalise_url(url)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() - entry.stored_at > self.ttl_s:
            del self._entries[key]
            return None
        return entry.article

    def set(self, url: str, article: NormalizedArticle) -> None:
        self._entries[canonicalise_url(url)] = _Entry(article, self.clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
