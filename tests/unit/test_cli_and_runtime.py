# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
import json

import pytest

from deadlink.cli import main as cli_main
from deadlink.cli.main import build_parser, main, settings_from_args
from deadlink.config import LinkCheckSettings
from deadlink.http import HttpResponse, StubHttpClient
from deadlink.models.check import CheckStatus
from deadlink.runtime import DeadLink


def _redirecting_client() -> StubHttpClient:
    return StubHttpClient(
        {
            "http://example.test/old": HttpResponse(
                ok=True, status_code=301, reason="Moved Permanently", headers={"Location": "/new"}
            ),
            "http://example.test/new": HttpResponse(
                ok=True, status_code=200, reason="OK", url="http://example.test/new"
            ),
        }
    )


def test_build_parser_and_settings():
    args = build_parser().parse_args(
        [
            "README.md",
            "--json",
            "--ignore",
            "https://example.com/**",
            "--ignore",
            "./draft.md",
            "--prefer-get",
            "http://localhost:3000",
            "--retry",
            "1",
            "--no-check-relative",
            "--ignore-ssl-errors",
        ]
    )
    assert args.files == ["README.md"]
    assert args.json is True

    settings = settings_from_args(args)
    assert settings.ignore == ("https://example.com/**", "./draft.md")
    assert settings.prefer_get == ("http://localhost:3000",)
    assert settings.retry == 1
    assert settings.check_relative is False
    assert settings.verify_ssl is False
    assert settings.ignore_redirects is False


def test_cli_reports_dead_local_link(tmp_path, capsys, monkeypatch):
    monkeypatch.delenv("DEADLINK_BASE_URI", raising=False)
    (tmp_path / "exists.md").write_text("ok")
    doc = tmp_path / "README.md"
    doc.write_text("Intro\n\n[a](./exists.md) and [b](./missing.md)\n")

    code = main([str(doc)])

    out = capsys.readouterr().out.strip().splitlines()
    assert code == 1
    assert len(out) == 1
    assert out[0].startswith(f"{doc}:3:")
    assert "missing.md is dead" in out[0]


def test_cli_clean_document_exits_zero(tmp_path, capsys):
    doc = tmp_path / "README.md"
    doc.write_text("Nothing to see, mail me at mailto:someone@example.com\n")

    assert main([str(doc)]) == 0
    assert capsys.readouterr().out == ""


def test_cli_missing_file_exits_two(tmp_path, capsys):
    assert main([str(tmp_path / "nope.md")]) == 2
    assert "deadlink:" in capsys.readouterr().err


def test_cli_fix_rewrites_redirects(tmp_path, capsys, monkeypatch):
    client = _redirecting_client()
    monkeypatch.setattr(cli_main, "create_default_http_client", lambda settings: client)
    doc = tmp_path / "README.md"
    doc.write_text("See [old](http://example.test/old).\n")

    code = main([str(doc), "--fix", "--json"])

    problems = json.loads(capsys.readouterr().out)
    assert code == 1
    assert problems == [
        {
            "column": 11,
            "fix": {"range": [10, 33], "text": "http://example.test/new"},
            "line": 1,
            "message": "http://example.test/old is redirected to http://example.test/new. (301 Moved Permanently)",
            "path": str(doc),
            "range": [10, 33],
            "status": "REDIRECTED",
        }
    ]
    assert doc.read_text() == "See [old](http://example.test/new).\n"
    assert client.closed is True


def test_cli_ignore_redirects_has_no_problems(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(cli_main, "create_default_http_client", lambda settings: _redirecting_client())
    doc = tmp_path / "README.md"
    doc.write_text("See [old](http://example.test/old).\n")

    assert main([str(doc), "--ignore-redirects"]) == 0
    assert capsys.readouterr().out == ""


def test_cli_rejects_unknown_option_values(tmp_path):
    with pytest.raises(SystemExit):
        main([str(tmp_path / "README.md"), "--retry", "many"])


def test_deadlink_run_reuses_cache_and_closes_client():
    client = StubHttpClient(
        {"https://example.com/": HttpResponse(ok=True, status_code=200, reason="OK")}
    )
    settings = LinkCheckSettings(base_uri="https://example.com/")

    with DeadLink(settings, http_client=client) as deadlink:
        first = deadlink.run("Visit https://example.com/ today.")
        second = deadlink.run("Again: https://example.com/")

    assert [r.status for r in first] == [CheckStatus.ALIVE]
    assert [r.status for r in second] == [CheckStatus.ALIVE]
    assert len(client.requests) == 1
    assert client.closed is True
    assert len(deadlink.registry) == 0


def test_deadlink_profiles_differ_by_settings():
    client = StubHttpClient(
        {"https://example.com/": HttpResponse(ok=True, status_code=200, reason="OK")}
    )

    async def scenario():
        async with DeadLink(LinkCheckSettings(), http_client=client) as deadlink:
            await deadlink.check_text("https://example.com/")
            await deadlink.check_text("https://example.com/", settings=LinkCheckSettings(user_agent="Other/1.0"))
            await deadlink.check_text("https://example.com/")
            return len(deadlink.registry)

    profiles = asyncio.run(scenario())

    assert profiles == 2
    assert [r.headers["User-Agent"] for r in client.requests] == [LinkCheckSettings().user_agent, "Other/1.0"]


def test_plain_text_documents_skip_markdown_links():
    client = StubHttpClient()

    with DeadLink(LinkCheckSettings(), http_client=client) as deadlink:
        results = deadlink.run("[a](./missing.md)", document_path="/docs/notes.txt")

    assert results == []
    assert client.requests == []
