from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from newsagent.models import FetchResult

DEFAULT_USER_AGENT = "News-Agent/1.0"

BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}


@dataclass
class HttpFetcher:
    timeout: float = 10.0
    max_attempts: int = 2
    backoff: float = 1.0
    user_agent: str = DEFAULT_USER_AGENT
    transport: httpx.AsyncBaseTransport | None = None

    async def fetch(self, url: str) -> FetchResult:
        """GET ``url``; failures come back as ``FetchResult.error``, never raised.

        Error responses (4xx, and 5xx once retries are exhausted) keep their
        status, headers and body so callers can inspect them for bot
        challenges.
        """
        started = _utc_now()
        clock = time.perf_counter()
        try:
            response = await self._fetch(url)
        except httpx.HTTPStatusError as exc:
            return _result_from_response(
                exc.response, started, clock, error=f"HTTP {exc.response.status_code}"
            )
        except httpx.HTTPError as exc:
            return FetchResult(
                url=url,
                fetched_at=started,
                error=f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__,
                elapsed_ms=_elapsed_ms(clock),
            )

        error = f"HTTP {response.status_code}" if response.status_code >= 400 else None
        return _result_from_response(response, started, clock, error=error)

    async def _fetch(self, url: str) -> httpx.Response:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, self.max_attempts)),
            wait=wait_exponential(multiplier=self.backoff, max=8),
            retry=retry_if_exception_type((httpx.TransportError, httpx.HTTPStatusError)),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._get(url)
        raise AssertionError("unreachable")  # pragma: no cover

    async def _get(self, url: str) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent, **BASE_HEADERS},
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            response = await client.get(url)
            if response.status_code >= 500:
                raise httpx.HTTPStatusError(
                    f"Server error: {response.status_code}",
                    request=response.request,
                    response=response,
                )
            return response


def _result_from_response(
    response: httpx.Response, started: datetime, clock: float, error: str | None
) -> FetchResult:
    return FetchResult(
        url=str(response.url),
        status_code=response.status_code,
        headers={key.lower(): value for key, value in response.headers.items()},
        content=response.text,
        error=error,
        elapsed_ms=_elapsed_ms(clock),
        fetched_at=started,
    )


def _elapsed_ms(clock: float) -> int:
    return int((time.perf_counter() - clock) * 1000)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
