# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Programmable HttpClient implementations."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from .client import HttpClient
from .models import HttpRequest, HttpResponse

Responder = Callable[[HttpRequest], HttpResponse]


class StubHttpClient(HttpClient):
    """
    Deterministic, programmable HttpClient for tests.

    Each URL maps to a single response, a sequence consumed one per request (the last
    entry repeats), or a callable receiving the request.
    """

    def __init__(self, responses: dict[str, HttpResponse | Sequence[HttpResponse] | Responder] | None = None):
        self._responses = dict(responses or {})
        self._counts: dict[str, int] = {}
        self.requests: list[HttpRequest] = []
        self.closed = False

    def add(self, url: str, response: HttpResponse | Sequence[HttpResponse] | Responder) -> None:
        self._responses[url] = response

    def calls(self, url: str | None = None) -> list[HttpRequest]:
        if url is None:
            return list(self.requests)
        return [req for req in self.requests if req.url == url]

    async def request(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        entry = self._responses.get(request.url)
        if entry is None:
            return HttpResponse(ok=False, url=request.url, error_message="No stubbed response configured")
        if callable(entry):
            return entry(request)
        if isinstance(entry, HttpResponse):
            return entry
        index = self._counts.get(request.url, 0)
        self._counts[request.url] = index + 1
        return entry[min(index, len(entry) - 1)]

    async def aclose(self) -> None:
        self.closed = True
