from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable
from urllib.parse import urlsplit

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from newsagent.config import DEFAULT_BROWSER_USER_AGENT
from newsagent.discovery.url_utils import host_matches

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--window-size=1920,1080",
    "--disable-blink-features=AutomationControlled",
]

BLOCKED_RESOURCE_TYPES = frozenset({"image", "media", "font", "stylesheet"})

BLOCKED_HOSTS = (
    "googletagmanager.com",
    "google-analytics.com",
    "googlesyndication.com",
    "doubleclick.net",
    "adservice.google.com",
    "facebook.net",
    "connect.facebook.net",
    "scorecardresearch.com",
    "quantserve.com",
    "taboola.com",
    "outbrain.com",
    "hotjar.com",
    "amazon-adsystem.com",
    "adnxs.com",
    "criteo.com",
)

CONTENT_SELECTOR = 'article, main, [class*="article"], [class*="news-content"], .single-post, .post-content'

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Upgrade-Insecure-Requests": "1",
}

_CLOSED_MARKERS = ("target closed", "has been closed")


class BrowserError(Exception):
    """Base class for hardened browser failures."""


class BrowserFetchError(BrowserError):
    pass


class BrowserTimeoutError(BrowserError):
    pass


BrowserFactory = Callable[[], Awaitable[Any]]


@dataclass
class HardenedBrowser:
    """
    One shared headless Chromium for JS-rendered and bot-protected pages.

    Notes:
    - The browser is launched lazily on first use and recycled after
      ``max_pages`` navigations, as soon as no other page is in flight.
    - Every navigation gets a fresh page that is always closed afterwards.
    - Heavy resources and ad/tracking hosts are aborted at the route level;
      the top-level document is never blocked.
    """

    timeout_s: float = 15.0
    selector_timeout_s: float = 10.0
    settle_ms: int = 1000
    launch_timeout_s: float = 30.0
    max_retries: int = 1
    max_pages: int = 50
    headless: bool = True
    user_agent: str = DEFAULT_BROWSER_USER_AGENT
    backoff_multiplier: float = 2.0
    browser_factory: BrowserFactory | None = None
    log: Callable[[str], None] | None = None
    _browser: Any = field(default=None, init=False, repr=False)
    _playwright: Any = field(default=None, init=False, repr=False)
    _page_count: int = field(default=0, init=False, repr=False)
    _in_flight: int = field(default=0, init=False, repr=False)
    _needs_restart: bool = field(default=False, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @property
    def page_count(self) -> int:
        return self._page_count

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    async def launch(self) -> None:
        async with self._lock:
            await self._ensure_browser()

    async def navigate(self, url: str) -> str:
        """Render ``url`` and return the page HTML.

        Raises ``BrowserTimeoutError`` when navigation times out and
        ``BrowserFetchError`` for any other browser failure.
        """
        async with self._lock:
            await self._ensure_browser()
            browser = self._browser
            self._page_count += 1
            self._in_flight += 1

        page = None
        try:
            page = await browser.new_page(
                user_agent=self.user_agent,
                extra_http_headers=BROWSER_HEADERS,
                viewport={"width": 1920, "height": 1080},
            )
            await page.route("**/*", self._handle_route)
            await page.goto(url, wait_until="domcontentloaded", timeout=int(self.timeout_s * 1000))
            try:
                await page.wait_for_selector(CONTENT_SELECTOR, timeout=int(self.selector_timeout_s * 1000))
            except PlaywrightTimeoutError:
                self._log(f"[browser] No content selector on {url}, using page as rendered")
            await page.wait_for_timeout(self.settle_ms)
            return await page.content()
        except PlaywrightTimeoutError as exc:
            raise BrowserTimeoutError(f"Navigation timeout for {url}: {exc}") from exc
        except PlaywrightError as exc:
            if _is_closed_error(exc):
                self._needs_restart = True
            raise BrowserFetchError(f"Browser fetch failed for {url}: {exc}") from exc
        finally:
            if page is not None:
                try:
                    await page.close()
                except PlaywrightError as exc:
                    if _is_closed_error(exc):
                        self._needs_restart = True
            self._in_flight -= 1

    async def fetch_with_retry(self, url: str, max_retries: int | None = None) -> str | None:
        """Navigate with exponential backoff; ``None`` after the last failure.

        A navigation timeout stops the retries immediately.
        """
        attempts = max(1, max_retries if max_retries is not None else self.max_retries)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self.backoff_multiplier),
            retry=retry_if_exception_type(BrowserFetchError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self.navigate(url)
        except BrowserError as exc:
            self._log(f"[browser] Giving up on {url}: {exc}")
        return None

    async def cleanup(self) -> None:
        async with self._lock:
            await self._close_browser()

    async def _handle_route(self, route: Any) -> None:
        request = route.request
        if request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
            return
        if request.resource_type != "document" and _is_blocked_host(request.url):
            await route.abort()
            return
        await route.continue_()

    async def _ensure_browser(self) -> None:
        if self._browser is not None and self._needs_restart:
            self._log("[browser] Browser was closed, recreating")
            await self._close_browser()
        elif self._browser is not None and self._page_count >= self.max_pages and self._in_flight == 0:
            self._log(f"[browser] Recycling browser after {self._page_count} pages")
            await self._close_browser()
        if self._browser is None:
            self._browser = await self._launch()
            self._page_count = 0
            self._needs_restart = False

    async def _launch(self) -> Any:
        self._log("[browser] Launching browser")
        try:
            return await asyncio.wait_for(self._start_browser(), timeout=self.launch_timeout_s)
        except asyncio.TimeoutError as exc:
            await self._stop_driver()
            raise BrowserTimeoutError(f"Browser launch timed out after {self.launch_timeout_s}s") from exc
        except PlaywrightError as exc:
            await self._stop_driver()
            raise BrowserFetchError(f"Browser launch failed: {exc}") from exc

    async def _start_browser(self) -> Any:
        if self.browser_factory is not None:
            return await self.browser_factory()
        self._playwright = await async_playwright().start()
        return await self._playwright.chromium.launch(
            headless=self.headless,
            args=LAUNCH_ARGS,
            timeout=int(self.launch_timeout_s * 1000),
        )

    async def _stop_driver(self) -> None:
        playwright, self._playwright = self._playwright, None
        if playwright is not None:
            try:
                await playwright.stop()
            except PlaywrightError as exc:
                self._log(f"[browser] Driver stop failed: {exc}")

    async def _close_browser(self) -> None:
        browser, self._browser = self._browser, None
        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as exc:
                self._log(f"[browser] Close failed: {exc}")
        await self._stop_driver()
        self._page_count = 0
        self._needs_restart = False

    def _log(self, message: str) -> None:
        if self.log:
            self.log(message)


def _is_closed_error(exc: BaseException) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _CLOSED_MARKERS)


def _is_blocked_host(url: str) -> bool:
    hostname = urlsplit(url).hostname or ""
    return any(host_matches(hostname, domain) for domain in BLOCKED_HOSTS)
