# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import httpx

from deadlink.config import LinkCheckSettings
from deadlink.http import HttpResponse, StubHttpClient
from deadlink.http.httpx_client import HttpxClient
from deadlink.probe.remote import RemoteProber, exponential_backoff, parse_retry_after


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _status(code: int, reason: str, headers=None, url=None) -> HttpResponse:
    return HttpResponse(ok=True, status_code=code, reason=reason, headers=headers or {}, url=url)


def _prober(client, **options) -> tuple[RemoteProber, RecordingSleep]:
    sleep = RecordingSleep()
    return RemoteProber(client, LinkCheckSettings(**options), sleep=sleep), sleep


def test_ok_head_response_is_alive():
    client = StubHttpClient({"http://example.test/200": _status(200, "OK")})
    prober, sleep = _prober(client)

    result = asyncio.run(prober.probe("http://example.test/200", "HEAD", 3))

    assert result.ok is True
    assert result.message == "200 OK"
    assert result.redirected is False
    assert result.redirect_to is None
    assert [r.method for r in client.requests] == ["HEAD"]
    assert sleep.delays == []


def test_request_headers_and_manual_redirects():
    client = StubHttpClient({"http://example.test:8080/x": _status(200, "OK")})
    prober, _ = _prober(client, user_agent="Mozilla/5.0 test")

    asyncio.run(prober.probe("http://example.test:8080/x"))

    request = client.requests[0]
    assert request.headers == {"User-Agent": "Mozilla/5.0 test", "Accept": "*/*", "Host": "example.test:8080"}
    assert request.allow_redirects is False


def test_not_found_exhausts_retries_with_get_and_backoff():
    client = StubHttpClient({"http://example.test/404": _status(404, "Not Found")})
    prober, sleep = _prober(client, retry=3)

    result = asyncio.run(prober.probe("http://example.test/404", "HEAD", 3))

    assert result.ok is False
    assert result.message == "404 Not Found"
    assert result.attempts == 4
    assert [r.method for r in client.requests] == ["HEAD", "GET", "GET", "GET"]
    # HEAD -> GET switch is immediate; later retries back off attempt**2 * 100ms.
    assert sleep.delays == [exponential_backoff(1), exponential_backoff(2)]
    assert sleep.delays == [0.1, 0.4]


def test_head_rejected_then_get_succeeds():
    client = StubHttpClient()
    client.add(
        "http://example.test/preferGET",
        lambda req: _status(200, "OK") if req.method == "GET" else _status(405, "Method Not Allowed"),
    )
    prober, sleep = _prober(client)

    result = asyncio.run(prober.probe("http://example.test/preferGET", "HEAD", 1))

    assert result.ok is True
    assert result.message == "200 OK"
    assert [r.method for r in client.requests] == ["HEAD", "GET"]
    assert sleep.delays == []


def test_zero_retries_reports_first_response():
    client = StubHttpClient({"http://example.test/500": _status(500, "Internal Server Error")})
    prober, _ = _prober(client)

    result = asyncio.run(prober.probe("http://example.test/500", "HEAD", 0))

    assert result.ok is False
    assert result.message == "500 Internal Server Error"
    assert len(client.requests) == 1


def test_redirect_is_resolved_and_never_retried():
    client = StubHttpClient(
        {
            "http://example.test/301": _status(301, "Moved Permanently", {"Location": "/200"}),
            "http://example.test/200": _status(200, "OK", url="http://example.test/200"),
        }
    )
    prober, sleep = _prober(client, retry=3)

    result = asyncio.run(prober.probe("http://example.test/301", "HEAD", 3))

    assert result.ok is True
    assert result.redirected is True
    assert result.redirect_to == "http://example.test/200"
    assert result.message == "301 Moved Permanently"
    assert [(r.url, r.allow_redirects) for r in client.requests] == [
        ("http://example.test/301", False),
        ("http://example.test/200", True),
    ]
    assert sleep.delays == []


def test_redirect_without_location_is_dead_and_terminal():
    client = StubHttpClient({"http://example.test/302": _status(302, "Found")})
    prober, _ = _prober(client, retry=3)

    result = asyncio.run(prober.probe("http://example.test/302", "HEAD", 3))

    assert result.ok is False
    assert result.redirected is True
    assert result.redirect_to is None
    assert result.message == "302 Found"
    assert len(client.requests) == 1


def test_redirect_preserves_original_fragment():
    client = StubHttpClient(
        {
            "http://mochajs.test/#bdd": _status(301, "Moved Permanently", {"location": "https://mochajs.test/"}),
            "https://mochajs.test/": _status(200, "OK", url="https://mochajs.test/"),
        }
    )
    prober, _ = _prober(client)

    result = asyncio.run(prober.probe("http://mochajs.test/#bdd"))

    assert result.redirect_to == "https://mochajs.test/#bdd"
    assert result.message == "301 Moved Permanently"


def test_redirect_to_dead_target_and_transport_failure():
    client = StubHttpClient(
        {
            "http://example.test/moved": _status(308, "Permanent Redirect", {"Location": "/gone"}),
            "http://example.test/gone": _status(404, "Not Found", url="http://example.test/gone"),
            "http://example.test/broken": _status(307, "Temporary Redirect", {"Location": "http://down.test/"}),
            "http://down.test/": HttpResponse(ok=False, error_message="connection refused", error_type="CONNECTION_ERROR"),
        }
    )
    prober, _ = _prober(client)

    dead = asyncio.run(prober.probe("http://example.test/moved"))
    assert dead.ok is False
    assert dead.redirected is True
    assert dead.redirect_to == "http://example.test/gone"
    assert dead.message == "308 Permanent Redirect"

    broken = asyncio.run(prober.probe("http://example.test/broken"))
    assert broken.ok is False
    assert broken.redirect_to == "http://down.test/"
    assert broken.message == "307 Temporary Redirect (connection refused)"
    assert broken.error_type == "CONNECTION_ERROR"


def test_transport_error_on_head_falls_back_to_get_without_waiting():
    failure = HttpResponse(ok=False, error_message="socket hang up", error_type="CONNECTION_ERROR")
    client = StubHttpClient({"http://example.test/flaky": [failure, _status(200, "OK")]})
    prober, sleep = _prober(client)

    result = asyncio.run(prober.probe("http://example.test/flaky", "HEAD", 3))

    assert result.ok is True
    assert [r.method for r in client.requests] == ["HEAD", "GET"]
    assert sleep.delays == []


def test_transport_error_on_get_is_terminal():
    failure = HttpResponse(ok=False, error_message="getaddrinfo ENOTFOUND", error_type="DNS_ERROR")
    client = StubHttpClient({"http://nowhere.test/": failure})
    prober, _ = _prober(client)

    result = asyncio.run(prober.probe("http://nowhere.test/", "GET", 3))

    assert result.ok is False
    assert result.message == "getaddrinfo ENOTFOUND"
    assert result.error_type == "DNS_ERROR"
    assert len(client.requests) == 1


def test_retry_after_is_honored_within_cap():
    limited = _status(429, "Too Many Requests", {"Retry-After": "2"})
    client = StubHttpClient({"http://example.test/limited": [limited, _status(200, "OK")]})
    prober, sleep = _prober(client, max_retry_after_time=10)

    result = asyncio.run(prober.probe("http://example.test/limited", "GET", 3))

    assert result.ok is True
    assert sleep.delays == [2.0]


def test_retry_after_beyond_cap_is_not_waited():
    limited = _status(503, "Service Unavailable", {"Retry-After": "60"})
    client = StubHttpClient({"http://example.test/busy": [limited, _status(200, "OK")]})
    prober, sleep = _prober(client, max_retry_after_time=10)

    result = asyncio.run(prober.probe("http://example.test/busy", "GET", 3))

    assert result.ok is True
    assert len(client.requests) == 2
    assert sleep.delays == []


def test_backoff_beyond_cap_is_not_waited():
    client = StubHttpClient({"http://example.test/500": _status(500, "Internal Server Error")})
    prober, sleep = _prober(client, max_retry_time=0.2)

    asyncio.run(prober.probe("http://example.test/500", "GET", 3))

    # 0s, 0.1s waited; 0.4s exceeds the cap and is skipped.
    assert sleep.delays == [0.1]
    assert len(client.requests) == 4


def test_parse_retry_after_formats():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert parse_retry_after("120") == 120.0
    assert parse_retry_after(" 1.5 ") == 1.5
    assert parse_retry_after("-3") == 0.0
    assert parse_retry_after(format_datetime(now + timedelta(seconds=30), usegmt=True), now=now) == 30.0
    assert parse_retry_after("soon") is None
    assert parse_retry_after("") is None
    assert parse_retry_after(None) is None


def test_probe_end_to_end_over_httpx_transport():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/301":
            return httpx.Response(301, headers={"Location": "/200"})
        if request.url.path == "/200":
            return httpx.Response(200)
        return httpx.Response(404)

    async def scenario():
        http_client = HttpxClient(
            LinkCheckSettings(),
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        prober = RemoteProber(http_client, LinkCheckSettings(retry=1), sleep=RecordingSleep())
        try:
            return await prober.probe("http://localhost:35481/301"), await prober.probe("http://localhost:35481/404")
        finally:
            await http_client.aclose()

    redirected, missing = asyncio.run(scenario())

    assert redirected.ok is True
    assert redirected.redirected is True
    assert redirected.redirect_to == "http://localhost:35481/200"
    assert redirected.message == "301 Moved Permanently"
    assert missing.ok is False
    assert missing.message == "404 Not Found"
    assert missing.attempts == 2


def test_internationalized_host_is_sent_idna_encoded():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    async def scenario():
        http_client = HttpxClient(
            LinkCheckSettings(),
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        prober = RemoteProber(http_client, LinkCheckSettings(), sleep=RecordingSleep())
        try:
            return await prober.probe("http://bücher.example:8080/katalog")
        finally:
            await http_client.aclose()

    result = asyncio.run(scenario())

    assert result.ok is True
    assert result.message == "200 OK"
    assert result.attempts == 1
    assert seen[0].headers["Host"] == "xn--bcher-kva.example:8080"
