"""Line-delimited JSON protocol shared by the language pack commands."""

from __future__ import annotations

import argparse
import json
import sys
from enum import Enum
from typing import Any, Callable, Iterable, Optional, TextIO

from waxpacks.facts import WIRE_API_VERSION, ScanFacts, ScanRequest

ScanFunction = Callable[[ScanRequest], ScanFacts]
ErrorClassifier = Callable[[BaseException], Optional["WireErrorCode"]]


class WireErrorCode(str, Enum):
    CONFIG_INVALID = "config_invalid"
    API_VERSION_UNSUPPORTED = "api_version_unsupported"
    SCAN_FAILED = "scan_failed"
    PARSER_INIT_FAILED = "parser_init_failed"


def error_response(
    api_version: int, language_id: str, code: WireErrorCode, message: str
) -> dict[str, Any]:
    """Build a tagged error response."""
    return {
        "type": "error",
        "api_version": api_version,
        "language_id": language_id,
        "code": WireErrorCode(code).value,
        "message": message,
        "diagnostics": [],
    }


def facts_response(api_version: int, language_id: str, facts: ScanFacts) -> dict[str, Any]:
    """Build a tagged scan-facts response."""
    return {
        "type": "scan_facts",
        "api_version": api_version,
        "language_id": language_id,
        "facts": facts.to_dict(),
    }


def _emit(writer: TextIO, response: dict[str, Any]) -> None:
    writer.write(json.dumps(response, separators=(",", ":")))
    writer.write("\n")
    writer.flush()


def _respond(
    line: str, language_id: str, scan: ScanFunction, classify_error: ErrorClassifier
) -> dict[str, Any]:
    try:
        request = ScanRequest.from_dict(json.loads(line))
    except ValueError as err:
        return error_response(
            WIRE_API_VERSION,
            language_id,
            WireErrorCode.CONFIG_INVALID,
            f"invalid scan request JSON: {err}",
        )

    if request.api_version != WIRE_API_VERSION:
        return error_response(
            WIRE_API_VERSION,
            request.language_id,
            WireErrorCode.API_VERSION_UNSUPPORTED,
            f"wire api_version {request.api_version} is unsupported; "
            f"expected {WIRE_API_VERSION}",
        )

    try:
        facts = scan(request)
    except Exception as err:
        code = classify_error(err)
        if code is None:
            raise
        return error_response(request.api_version, request.language_id, code, str(err))
    return facts_response(request.api_version, request.language_id, facts)


def run_stdio(
    reader: Iterable[str],
    writer: TextIO,
    language_id: str,
    scan: ScanFunction,
    classify_error: ErrorClassifier,
) -> None:
    """Answer the first non-blank request line from ``reader`` with one response line.

    ``classify_error`` maps a scan failure to a wire code; failures it maps to
    ``None`` are not the pack's own and propagate.
    """
    for line in reader:
        if not line.strip():
            continue
        _emit(writer, _respond(line, language_id, scan, classify_error))
        return


def pack_main(
    argv: Optional[list[str]],
    prog: str,
    language_id: str,
    scan: ScanFunction,
    classify_error: ErrorClassifier,
) -> int:
    """Run a language pack command; returns the process exit status."""
    parser = argparse.ArgumentParser(prog=prog)
    parser.add_argument("--stdio", action="store_true", help="Run language pack in stdio mode.")
    args = parser.parse_args(argv)
    if not args.stdio:
        print(f"usage: {prog} --stdio", file=sys.stderr)
        return 2
    run_stdio(sys.stdin, sys.stdout, language_id, scan, classify_error)
    return 0