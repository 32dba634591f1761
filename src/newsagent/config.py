from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlsplit

import yaml

DEFAULT_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
SOURCE_TYPES = {"auto", "rss", "sitemap", "scraping", "extraction"}


def _coerce_bool(value: bool | str | int) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes", "y", "on"}:
            return True
        if normalized in {"false", "0", "no", "n", "off"}:
            return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def _coerce_int(value: int | str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid integer value: {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"Invalid integer value: {value!r}") from exc


def _coerce_float(value: float | int | str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"Invalid number value: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"Invalid number value: {value!r}") from exc


def _coerce_range(value: Any) -> tuple[int, int]:
    if isinstance(value, str):
        value = [part for part in value.replace("-", ",").split(",") if part.strip()]
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"Invalid range value: {value!r}")
    low, high = (_coerce_int(item) for item in value)
    if low < 0 or high < low:
        raise ValueError(f"Invalid range value: {value!r}")
    return low, high


@dataclass
class FetchConfig:
    timeout_s: float = 10.0
    max_attempts: int = 2
    backoff_s: float = 1.0

    def __post_init__(self) -> None:
        self.timeout_s = _coerce_float(self.timeout_s)
        self.max_attempts = _coerce_int(self.max_attempts)
        self.backoff_s = _coerce_float(self.backoff_s)
        if self.max_attempts < 1:
            raise ValueError("fetch.max_attempts must be at least 1")


@dataclass
class BrowserConfig:
    timeout_s: float = 15.0
    selector_timeout_s: float = 10.0
    launch_timeout_s: float = 30.0
    max_retries: int = 1
    max_pages: int = 50
    headless: bool = True
    user_agent: str = DEFAULT_BROWSER_USER_AGENT

    def __post_init__(self) -> None:
        self.timeout_s = _coerce_float(self.timeout_s)
        self.selector_timeout_s = _coerce_float(self.selector_timeout_s)
        self.launch_timeout_s = _coerce_float(self.launch_timeout_s)
        self.max_retries = _coerce_int(self.max_retries)
        self.max_pages = _coerce_int(self.max_pages)
        self.headless = _coerce_bool(self.headless)
        if self.max_retries < 1:
            raise ValueError("browser.max_retries must be at least 1")


@dataclass
class QualityConfig:
    min_content_length: int = 300
    min_paragraphs: int = 3
    max_contact_keywords: int = 0
    max_copyright_keywords: int = 0
    max_advertisement_keywords: int = 0
    quality_score_threshold: int = 60

    def __post_init__(self) -> None:
        self.min_content_length = _coerce_int(self.min_content_length)
        self.min_paragraphs = _coerce_int(self.min_paragraphs)
        self.max_contact_keywords = _coerce_int(self.max_contact_keywords)
        self.max_copyright_keywords = _coerce_int(self.max_copyright_keywords)
        self.max_advertisement_keywords = _coerce_int(self.max_advertisement_keywords)
        self.quality_score_threshold = _coerce_int(self.quality_score_threshold)


@dataclass
class DiscoveryConfig:
    max_sitemap_depth: int = 3
    max_child_sitemaps: int = 10

    def __post_init__(self) -> None:
        self.max_sitemap_depth = _coerce_int(self.max_sitemap_depth)
        self.max_child_sitemaps = _coerce_int(self.max_child_sitemaps)


@dataclass
class PolitenessConfig:
    batch_delay_ms: tuple[int, int] = (500, 1000)
    request_jitter_ms: tuple[int, int] = (100, 300)

    def __post_init__(self) -> None:
        self.batch_delay_ms = _coerce_range(self.batch_delay_ms)
        self.request_jitter_ms = _coerce_range(self.request_jitter_ms)


@dataclass
class AgentConfig:
    url: str = ""
    max_concurrency: int = 3
    cache_timeout_ms: int = 3_600_000
    user_agent: str = "News-Agent/1.0"
    # Accepted for compatibility; robots.txt is not consulted yet.
    respect_robots_txt: bool = True
    max_articles: int = 30
    feed_url: str | None = None
    source_type: str = "auto"
    fetch: FetchConfig = field(default_factory=FetchConfig)
    browser: BrowserConfig = field(default_factory=BrowserConfig)
    quality: QualityConfig = field(default_factory=QualityConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    politeness: PolitenessConfig = field(default_factory=PolitenessConfig)

    def __post_init__(self) -> None:
        self.max_concurrency = _coerce_int(self.max_concurrency)
        self.cache_timeout_ms = _coerce_int(self.cache_timeout_ms)
        self.max_articles = _coerce_int(self.max_articles)
        self.respect_robots_txt = _coerce_bool(self.respect_robots_txt)
        self.source_type = str(self.source_type).strip().lower()
        self.feed_url = self.feed_url or None

    @property
    def cache_ttl_s(self) -> float:
        return self.cache_timeout_ms / 1000.0

    def validate(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if self.max_articles < 1:
            raise ValueError("max_articles must be at least 1")
        if self.cache_timeout_ms < 0:
            raise ValueError("cache_timeout_ms must not be negative")
        if self.source_type not in SOURCE_TYPES:
            raise ValueError(f"Invalid source_type '{self.source_type}'")
        if self.url:
            _require_http_url(self.url, "url")
        if self.feed_url:
            _require_http_url(self.feed_url, "feed_url")

    def require_url(self) -> None:
        self.validate()
        if not self.url:
            raise ValueError("A seed url is required")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AgentConfig":
        sections = {
            "fetch": FetchConfig,
            "browser": BrowserConfig,
            "quality": QualityConfig,
            "discovery": DiscoveryConfig,
            "politeness": PolitenessConfig,
        }
        _check_keys(cls, data, "")
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key in sections:
                value = value or {}
                if not isinstance(value, Mapping):
                    raise ValueError(f"config section '{key}' must be a mapping, got {value!r}")
                _check_keys(sections[key], value, f"{key}.")
                kwargs[key] = sections[key](**value)
            elif isinstance(value, Mapping):
                raise ValueError(f"config key '{key}' is not a section")
            else:
                kwargs[key] = value
        config = cls(**kwargs)
        config.validate()
        return config


def _check_keys(section: type, data: Mapping[str, Any], prefix: str) -> None:
    known = {item.name for item in fields(section)}
    unknown = sorted(str(key) for key in data if key not in known)
    if unknown:
        raise ValueError(f"Unknown config key(s): {', '.join(prefix + key for key in unknown)}")


def _require_http_url(value: str, name: str) -> None:
    parts = urlsplit(value)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise ValueError(f"{name} must be an absolute http(s) URL: {value!r}")


DEFAULT_CONFIG_PATH = Path("newsagent.yaml")
ENV_PREFIX = "NEWSAGENT__"


def _deep_set(target: dict[str, Any], keys: list[str], value: Any) -> None:
    current = target
    for key in keys[:-1]:
        current = current.setdefault(key, {})
    current[keys[-1]] = value


def _parse_env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key, value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = key[len(ENV_PREFIX) :].lower().split("__")
        if not path or any(not part for part in path):
            continue
        _deep_set(overrides, path, value)
    return overrides


def _merge_dicts(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    path: Path | str = DEFAULT_CONFIG_PATH,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> AgentConfig:
    config_path = Path(path)
    data: dict[str, Any] = {}
    if config_path.exists():
        raw = config_path.read_text(encoding="utf-8")
        loaded = yaml.safe_load(raw) or {}
        if not isinstance(loaded, dict):
            raise ValueError("config file must define a mapping at the top level")
        data = loaded

    env_overrides = _parse_env_overrides(env if env is not None else os.environ)
    merged = _merge_dicts(data, env_overrides)
    if overrides:
        merged = _merge_dicts(merged, {k: v for k, v in overrides.items() if v is not None})
    return AgentConfig.from_dict(merged)
