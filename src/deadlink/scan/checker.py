# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-URI check policy: ignore rules, relative resolution, routing and diagnostics."""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable, Iterable
from urllib.parse import urlsplit

from ..errors import describe_exception
from ..ignore import IgnorePredicate, build_ignore_matcher
from ..models.check import (
    UNRESOLVED_RELATIVE_MESSAGE,
    CheckItem,
    CheckResult,
    CheckStatus,
    Diagnostic,
    Fix,
)
from ..models.probe import GET, HEAD, ProbeResult
from ..probe.local import probe_local
from ..uri import is_http, is_local, is_network_path, is_relative, resolve_uri, url_origin
from .registry import CheckProfile

logger = logging.getLogger(__name__)

LocalProber = Callable[[str], Awaitable[ProbeResult]]


class LinkChecker:
    """
    Decides what to do with each discovered URI and turns probe outcomes into results.

    The profile's cache and scheduler are borrowed, never copied. The ignore predicate
    and local prober are injectable.
    """

    def __init__(
        self,
        profile: CheckProfile,
        *,
        is_ignored: IgnorePredicate | None = None,
        local_prober: LocalProber | None = None,
    ):
        self.profile = profile
        self.settings = profile.settings
        self.is_ignored = is_ignored or build_ignore_matcher(self.settings.ignore, dot=self.settings.dot_in_ignore)
        self._probe_local = local_prober or probe_local

    def choose_method(self, uri: str) -> str:
        origin = url_origin(uri)
        if origin is not None and any(url_origin(entry) == origin for entry in self.settings.prefer_get):
            return GET
        return HEAD

    def _base_for(self, document_path: str | None) -> str | None:
        return self.settings.base_uri or document_path or None

    async def check_item(self, item: CheckItem, document_path: str | None = None) -> CheckResult:
        try:
            return await self._check(item, document_path)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Checking %s failed", item.uri)
            return self._failed(item, exc)

    async def _check(self, item: CheckItem, document_path: str | None) -> CheckResult:
        uri = item.uri
        if self.is_ignored(uri):
            return CheckResult(item=item, status=CheckStatus.IGNORED, uri=uri)

        base = self._base_for(document_path)
        if is_relative(uri):
            if not self.settings.check_relative:
                return CheckResult(item=item, status=CheckStatus.SKIPPED, uri=uri)
            if not base:
                diagnostic = Diagnostic(
                    message=UNRESOLVED_RELATIVE_MESSAGE,
                    start=item.index,
                    end=item.end,
                    location=item.location,
                )
                return CheckResult(item=item, status=CheckStatus.UNRESOLVED, uri=uri, diagnostic=diagnostic)

        if is_network_path(uri):
            scheme = urlsplit(base).scheme.lower() if base and is_http(base) else "https"
            uri = f"{scheme}:{uri}"

        resolved = resolve_uri(uri, base, http_only=self.settings.http_only) or uri

        local = is_local(resolved)
        if not local and not is_http(resolved):
            return CheckResult(item=item, status=CheckStatus.SKIPPED, uri=resolved)

        if local:
            probe = await self._probe_local(resolved)
        else:
            probe = await self.profile.probe_remote(resolved, self.choose_method(resolved), self.settings.retry)
        return self.interpret(item, resolved, probe)

    def interpret(self, item: CheckItem, uri: str, probe: ProbeResult) -> CheckResult:
        if probe.redirected and self.settings.ignore_redirects:
            return CheckResult(item=item, status=CheckStatus.REDIRECTED, uri=uri, probe=probe)

        if not probe.ok:
            return self._dead(item, uri, probe)

        if probe.redirected:
            fix = Fix(start=item.index, end=item.end, text=probe.redirect_to) if probe.redirect_to else None
            diagnostic = Diagnostic(
                message=f"{uri} is redirected to {probe.redirect_to}. ({probe.message})",
                start=item.index,
                end=item.end,
                location=item.location,
                fix=fix,
            )
            return CheckResult(item=item, status=CheckStatus.REDIRECTED, uri=uri, probe=probe, diagnostic=diagnostic)

        return CheckResult(item=item, status=CheckStatus.ALIVE, uri=uri, probe=probe)

    def _dead(self, item: CheckItem, uri: str, probe: ProbeResult) -> CheckResult:
        diagnostic = Diagnostic(
            message=f"{uri} is dead. ({probe.message})",
            start=item.index,
            end=item.end,
            location=item.location,
        )
        return CheckResult(item=item, status=CheckStatus.DEAD, uri=uri, probe=probe, diagnostic=diagnostic)

    def _failed(self, item: CheckItem, exc: BaseException) -> CheckResult:
        probe = ProbeResult(ok=False, message=describe_exception(exc), error_type=type(exc).__name__)
        return self._dead(item, item.uri, probe)

    async def check_document(self, items: Iterable[CheckItem], document_path: str | None = None) -> list[CheckResult]:
        """
        Check every item through the profile's scheduler; returns once all have settled.

        Results are in item order even though checks complete in any order.
        """
        pending = list(items)
        tasks = [functools.partial(self.check_item, item, document_path) for item in pending]
        outcomes = await self.profile.scheduler.run(tasks)

        results: list[CheckResult] = []
        for item, outcome in zip(pending, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                outcome = self._failed(item, outcome)
            results.append(outcome)
        return results


__all__ = ["LinkChecker", "LocalProber"]
