# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Remote liveness prober.

One probe chain is a bounded loop over ``(method, attempt)``:

- a redirect status is resolved eagerly (one follow-up request to the ``Location``
  target with redirects followed) and is never retried;
- a non-2xx ``HEAD`` response, or a transport failure on ``HEAD``, is retried
  immediately as ``GET``;
- any other non-2xx response is retried as ``GET`` after a backoff wait, honoring
  ``Retry-After`` up to ``max_retry_after_time`` and otherwise waiting
  ``attempt**2 * 100ms`` up to ``max_retry_time``;
- once ``attempt`` reaches the retry budget the last status line is final.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from ..config import LinkCheckSettings, load_settings
from ..http.client import HttpClient
from ..http.headers import header_value
from ..http.models import HttpRequest, HttpResponse
from ..models.probe import GET, HEAD, ProbeRequest, ProbeResult
from ..uri import carry_fragment, is_redirect, join_location, request_host

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

BACKOFF_UNIT_SECONDS = 0.1


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """
    Parse a ``Retry-After`` header into seconds.

    Accepts delta-seconds and HTTP-dates; returns None for anything else.
    """
    if value is None:
        return None
    raw = value.strip()
    if not raw:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    return max(0.0, (when - current).total_seconds())


def exponential_backoff(attempt: int) -> float:
    """0s -> 0.1s -> 0.4s -> 0.9s ... for attempts 0, 1, 2, 3."""
    return (attempt**2) * BACKOFF_UNIT_SECONDS


class RemoteProber:
    """Checks whether an http(s) URI is alive, following the retry/redirect policy above."""

    def __init__(
        self,
        http_client: HttpClient,
        settings: LinkCheckSettings | None = None,
        *,
        sleep: Sleep | None = None,
    ):
        self.http_client = http_client
        self.settings = settings or load_settings()
        self._sleep = sleep or asyncio.sleep

    def build_headers(self, uri: str) -> dict[str, str]:
        headers = {
            "User-Agent": self.settings.user_agent,
            "Accept": "*/*",
        }
        host = request_host(uri)
        if host:
            headers["Host"] = host
        return headers

    async def _send(self, uri: str, method: str, *, follow_redirects: bool) -> HttpResponse:
        request = HttpRequest(
            url=uri,
            method=method,
            headers=self.build_headers(uri),
            timeout=self.settings.timeout,
            allow_redirects=follow_redirects,
        )
        return await self.http_client.request(request)

    async def probe(self, uri: str, method: str = HEAD, max_retries: int | None = None) -> ProbeResult:
        budget = self.settings.retry if max_retries is None else max(0, int(max_retries))
        request = ProbeRequest(uri=uri, method=method.upper())

        while True:
            response = await self._send(request.uri, request.method, follow_redirects=False)
            attempts = request.attempt + 1

            if response.status_code is None:
                # Network-level failures get one free method fallback, without waiting.
                if request.method == HEAD and request.attempt < budget:
                    logger.debug("HEAD %s failed (%s); retrying with GET", uri, response.error_message)
                    request = request.next_attempt(GET)
                    continue
                return ProbeResult(
                    ok=False,
                    message=response.error_message or "Request failed",
                    error_type=response.error_type,
                    attempts=attempts,
                )

            if is_redirect(response.status_code):
                return await self._resolve_redirect(request, response, attempts)

            if response.is_success:
                return ProbeResult(
                    ok=True,
                    message=response.status_line,
                    status_code=response.status_code,
                    attempts=attempts,
                )

            if request.attempt >= budget:
                return ProbeResult(
                    ok=False,
                    message=response.status_line,
                    status_code=response.status_code,
                    attempts=attempts,
                )

            if request.method == HEAD:
                logger.debug("HEAD %s returned %s; retrying with GET", uri, response.status_line)
            else:
                await self._backoff(response, request.attempt)
            request = request.next_attempt(GET)

    async def _resolve_redirect(self, request: ProbeRequest, response: HttpResponse, attempts: int) -> ProbeResult:
        """Follow a redirect hop to its final destination. ``message`` keeps the first hop's status."""
        first_hop = response.status_line
        destination = join_location(request.uri, header_value(response.headers, "Location"))
        if destination is None:
            return ProbeResult(
                ok=False,
                message=first_hop,
                redirected=True,
                redirect_to=None,
                status_code=response.status_code,
                attempts=attempts,
            )

        logger.debug("%s redirected (%s) to %s", request.uri, first_hop, destination)
        final = await self._send(destination, request.method, follow_redirects=True)
        if final.status_code is None:
            return ProbeResult(
                ok=False,
                message=f"{first_hop} ({final.error_message or 'Request failed'})",
                redirected=True,
                redirect_to=destination,
                status_code=response.status_code,
                error_type=final.error_type,
                attempts=attempts + 1,
            )

        return ProbeResult(
            ok=final.is_success,
            message=first_hop,
            redirected=True,
            redirect_to=carry_fragment(final.url or destination, request.uri),
            status_code=response.status_code,
            attempts=attempts + 1,
        )

    async def _backoff(self, response: HttpResponse, attempt: int) -> None:
        retry_after = parse_retry_after(header_value(response.headers, "Retry-After"))
        if retry_after is not None:
            delay, cap, source = retry_after, self.settings.max_retry_after_time, "Retry-After"
        else:
            delay, cap, source = exponential_backoff(attempt), self.settings.max_retry_time, "backoff"

        if delay <= 0:
            return
        if delay > cap:
            logger.debug("Skipping %s wait of %.1fs for %s (cap %.1fs)", source, delay, response.url, cap)
            return
        logger.debug("Waiting %.1fs (%s) before retrying %s", delay, source, response.url)
        await self._sleep(delay)


__all__ = ["BACKOFF_UNIT_SECONDS", "RemoteProber", "exponential_backoff", "parse_retry_after"]
