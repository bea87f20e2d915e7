# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed HttpClient implementation."""

from __future__ import annotations

import httpx

from ..config import LinkCheckSettings, load_settings
from ..errors import categorize_exception, describe_exception
from .client import HttpClient
from .models import HttpRequest, HttpResponse


class HttpxClient(HttpClient):
    """Asynchronous httpx client wrapper. Bodies are never read; only status and headers matter."""

    def __init__(self, settings: LinkCheckSettings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or load_settings()
        self._client = client or httpx.AsyncClient(
            follow_redirects=False,
            timeout=self.settings.timeout,
            verify=self.settings.verify_ssl,
        )

    async def request(self, request: HttpRequest) -> HttpResponse:
        headers = dict(request.headers or {})
        headers.setdefault("User-Agent", self.settings.user_agent)
        timeout = request.timeout if request.timeout is not None else self.settings.timeout

        try:
            async with self._client.stream(
                request.method,
                request.url,
                headers=headers,
                timeout=timeout,
                follow_redirects=request.allow_redirects,
            ) as resp:
                return HttpResponse(
                    ok=True,
                    status_code=resp.status_code,
                    reason=resp.reason_phrase,
                    headers=dict(resp.headers),
                    url=str(resp.url),
                )
        except Exception as exc:  # noqa: BLE001
            return HttpResponse(
                ok=False,
                url=request.url,
                error_message=describe_exception(exc),
                error_type=categorize_exception(exc).value,
            )

    async def aclose(self) -> None:
        await self._client.aclose()
