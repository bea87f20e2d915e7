# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level deadlink facade for checking documents."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from contextlib import suppress
from pathlib import Path

from .config import LinkCheckSettings, load_settings
from .extract import extract_uris
from .http.client import HttpClient, create_default_http_client
from .ignore import IgnorePredicate
from .models.check import CheckItem, CheckResult
from .scan.checker import LinkChecker
from .scan.registry import ClientFactory, ProfileRegistry

PLAIN_TEXT_SUFFIXES = frozenset({".txt", ".text"})


class DeadLink:
    """
    Convenience wrapper that owns one HTTP client and one profile registry.

    Checks with equal settings share a result cache and a scheduler for as long as the
    wrapper lives; ``close()`` releases the client and drops every profile.

    Profiles whose TLS verification differs from ``settings`` get their own client from
    ``client_factory``. Without a factory an injected ``http_client`` serves every profile.
    """

    def __init__(
        self,
        settings: LinkCheckSettings | None = None,
        http_client: HttpClient | None = None,
        *,
        client_factory: ClientFactory | None = None,
    ):
        self.settings = settings or load_settings()
        self.http_client = http_client or create_default_http_client(self.settings)
        if client_factory is None and http_client is None:
            client_factory = create_default_http_client
        self.registry = ProfileRegistry(
            self.http_client,
            base_settings=self.settings,
            client_factory=client_factory,
        )
        self._runner: asyncio.Runner | None = None

    def checker(
        self,
        settings: LinkCheckSettings | None = None,
        *,
        is_ignored: IgnorePredicate | None = None,
    ) -> LinkChecker:
        profile = self.registry.get(settings or self.settings)
        return LinkChecker(profile, is_ignored=is_ignored)

    async def check_document(
        self,
        items: Iterable[CheckItem],
        document_path: str | None = None,
        *,
        settings: LinkCheckSettings | None = None,
    ) -> list[CheckResult]:
        return await self.checker(settings).check_document(items, document_path)

    async def check_text(
        self,
        text: str,
        document_path: str | None = None,
        *,
        settings: LinkCheckSettings | None = None,
        markdown: bool | None = None,
    ) -> list[CheckResult]:
        if markdown is None:
            markdown = not (document_path and Path(document_path).suffix.lower() in PLAIN_TEXT_SUFFIXES)
        items = extract_uris(text, markdown=markdown)
        return await self.check_document(items, document_path, settings=settings)

    def run(
        self,
        text: str,
        document_path: str | None = None,
        *,
        settings: LinkCheckSettings | None = None,
    ) -> list[CheckResult]:
        """Synchronous ``check_text``; repeated calls reuse one event loop."""
        if self._runner is None:
            self._runner = asyncio.Runner()
        return self._runner.run(self.check_text(text, document_path, settings=settings))

    async def aclose(self) -> None:
        with suppress(Exception):
            await self.registry.aclose()
        with suppress(Exception):
            await self.http_client.aclose()

    def close(self) -> None:
        runner, self._runner = self._runner, None
        if runner is None:
            asyncio.run(self.aclose())
            return
        try:
            runner.run(self.aclose())
        finally:
            runner.close()

    def __enter__(self) -> DeadLink:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()

    async def __aenter__(self) -> DeadLink:
        return self

    async def __aexit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        await self.aclose()
