# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-configuration ownership of the result cache, scheduler and remote prober."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..config import LinkCheckSettings
from ..http.client import HttpClient
from ..models.probe import HEAD, ProbeResult
from ..probe.cache import ProbeCache
from ..probe.remote import RemoteProber
from .scheduler import TaskScheduler


@dataclass
class CheckProfile:
    """Everything one configuration snapshot needs to check links."""

    settings: LinkCheckSettings
    cache: ProbeCache
    scheduler: TaskScheduler
    prober: RemoteProber

    @classmethod
    def create(cls, settings: LinkCheckSettings, http_client: HttpClient) -> CheckProfile:
        return cls(
            settings=settings,
            cache=ProbeCache(settings.link_max_age_seconds),
            scheduler=TaskScheduler(
                concurrency=settings.concurrency,
                interval=settings.interval_seconds,
                interval_cap=settings.interval_cap,
            ),
            prober=RemoteProber(http_client, settings),
        )

    async def probe_remote(self, uri: str, method: str = HEAD, max_retries: int | None = None) -> ProbeResult:
        """Cache-fronted remote probe keyed by ``(uri, method, max_retries)``."""
        budget = self.settings.retry if max_retries is None else max(0, int(max_retries))
        return await self.cache.get_or_probe(
            (uri, method, budget),
            lambda: self.prober.probe(uri, method, budget),
        )


ProfileFactory = Callable[[LinkCheckSettings, HttpClient], CheckProfile]
ClientFactory = Callable[[LinkCheckSettings], HttpClient]


def transport_key(settings: LinkCheckSettings) -> tuple[bool]:
    """Settings baked into an HTTP client at construction; everything else is sent per request."""
    return (settings.verify_ssl,)


class ProfileRegistry:
    """
    Maps a settings snapshot to its CheckProfile, created on first use.

    Snapshots are compared by value, so identical options share one cache and one
    scheduler while differing options (e.g. another User-Agent) never share entries.

    Profiles whose transport settings differ from ``base_settings`` get their own client
    from ``client_factory``; without a factory every profile uses ``http_client``.
    """

    def __init__(
        self,
        http_client: HttpClient,
        *,
        factory: ProfileFactory | None = None,
        base_settings: LinkCheckSettings | None = None,
        client_factory: ClientFactory | None = None,
    ):
        self.http_client = http_client
        self._factory = factory or CheckProfile.create
        self._client_factory = client_factory
        self._base_transport = transport_key(base_settings) if base_settings is not None else None
        self._clients: dict[tuple[bool], HttpClient] = {}
        self._profiles: dict[LinkCheckSettings, CheckProfile] = {}

    def client_for(self, settings: LinkCheckSettings) -> HttpClient:
        key = transport_key(settings)
        if self._client_factory is None or key == self._base_transport:
            return self.http_client
        client = self._clients.get(key)
        if client is None:
            client = self._client_factory(settings)
            self._clients[key] = client
        return client

    def get(self, settings: LinkCheckSettings) -> CheckProfile:
        profile = self._profiles.get(settings)
        if profile is None:
            profile = self._factory(settings, self.client_for(settings))
            self._profiles[settings] = profile
        return profile

    def clear(self) -> None:
        for profile in self._profiles.values():
            profile.cache.clear()
        self._profiles.clear()

    async def aclose(self) -> None:
        """Drop every profile and close the clients this registry created."""
        self.clear()
        clients, self._clients = list(self._clients.values()), {}
        for client in clients:
            await client.aclose()

    def __contains__(self, settings: object) -> bool:
        return settings in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)


__all__ = ["CheckProfile", "ClientFactory", "ProfileFactory", "ProfileRegistry", "transport_key"]
