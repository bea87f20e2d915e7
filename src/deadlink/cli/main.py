# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""deadlink CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from ..config import LinkCheckSettings, load_settings
from ..extract import line_and_column, line_starts
from ..fixes import apply_fixes
from ..http import create_default_http_client
from ..log import setup_logging
from ..models.check import CheckResult
from ..runtime import DeadLink


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Report dead and redirected links in Markdown/text documents")
    parser.add_argument("files", nargs="+", help="Documents to check")
    parser.add_argument("--json", action="store_true", help="Output JSON instead of one line per problem")
    parser.add_argument("--fix", action="store_true", help="Rewrite redirected links to their final destination")
    parser.add_argument("--base-uri", help="Base URI used to resolve relative links")
    parser.add_argument("--ignore", action="append", default=None, metavar="GLOB", help="Skip URIs matching GLOB")
    parser.add_argument("--dot-in-ignore", action="store_true", help="Let ignore globs match names starting with '.'")
    parser.add_argument("--no-check-relative", action="store_true", help="Do not check relative links")
    parser.add_argument("--ignore-redirects", action="store_true", help="Do not report redirected links")
    parser.add_argument("--prefer-get", action="append", default=None, metavar="ORIGIN", help="Use GET instead of HEAD for ORIGIN")
    parser.add_argument("--http-only", action="store_true", help="Resolve every reference as a URL against the base URI")
    parser.add_argument("--retry", type=int, help="Maximum retries per link")
    parser.add_argument("--concurrency", type=int, help="Maximum simultaneous probes")
    parser.add_argument("--interval", type=int, help="Rate-limit window in milliseconds")
    parser.add_argument("--interval-cap", type=int, help="Maximum probe starts per window")
    parser.add_argument("--user-agent", help="User-Agent header to send")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument("--ignore-ssl-errors", action="store_true", help="Skip TLS verification")
    parser.add_argument("--log-level", help="Logging level (default: DEADLINK_LOG_LEVEL or WARNING)")
    return parser


def settings_from_args(args: argparse.Namespace) -> LinkCheckSettings:
    options: dict[str, Any] = {
        "baseURI": args.base_uri,
        "ignore": args.ignore,
        "preferGET": args.prefer_get,
        "retry": args.retry,
        "concurrency": args.concurrency,
        "interval": args.interval,
        "intervalCap": args.interval_cap,
        "userAgent": args.user_agent,
        "timeout": args.timeout,
    }
    flags = {
        "dotInIgnore": args.dot_in_ignore,
        "ignoreRedirects": args.ignore_redirects,
        "httpOnly": args.http_only,
    }
    options = {key: value for key, value in options.items() if value is not None}
    options.update({key: True for key, value in flags.items() if value})
    if args.no_check_relative:
        options["checkRelative"] = False
    if args.ignore_ssl_errors:
        options["verifySSL"] = False
    return load_settings(options)


def _format_results(path: str, text: str, results: list[CheckResult]) -> list[dict[str, Any]]:
    starts = line_starts(text)
    problems: list[dict[str, Any]] = []
    for result in results:
        if result.diagnostic is None:
            continue
        line, column = line_and_column(starts, result.diagnostic.start)
        entry = {"path": path, "line": line, "column": column, "status": result.status.value}
        entry.update(result.diagnostic.to_dict())
        problems.append(entry)
    problems.sort(key=lambda p: (p["line"], p["column"]))
    return problems


async def _check_files(deadlink: DeadLink, paths: list[str], *, fix: bool) -> list[dict[str, Any]]:
    problems: list[dict[str, Any]] = []
    for path in paths:
        text = Path(path).read_text(encoding="utf-8")
        results = await deadlink.check_text(text, document_path=path)
        problems.extend(_format_results(path, text, results))
        if fix:
            fixed, count = apply_fixes(text, (r.diagnostic for r in results if r.diagnostic is not None))
            if count:
                Path(path).write_text(fixed, encoding="utf-8")
    return problems


async def _run(settings: LinkCheckSettings, paths: list[str], *, fix: bool) -> list[dict[str, Any]]:
    async with DeadLink(settings, http_client=create_default_http_client(settings)) as deadlink:
        return await _check_files(deadlink, paths, fix=fix)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        settings = settings_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        problems = asyncio.run(_run(settings, args.files, fix=args.fix))
    except OSError as exc:
        print(f"deadlink: {exc}", file=sys.stderr)
        return 2

    if args.json:
        json.dump(problems, sys.stdout, indent=2, sort_keys=True)
        sys.stdout.write("\n")
    else:
        for problem in problems:
            print(f"{problem['path']}:{problem['line']}:{problem['column']}: {problem['message']}")

    return 1 if problems else 0


if __name__ == "__main__":
    raise SystemExit(main())
