import io
import json

import pytest

from waxpacks.facts import (
    WIRE_API_VERSION,
    LanguageMetadata,
    ScanFacts,
    ScanStatus,
)
from waxpacks.stdio import (
    WireErrorCode,
    error_response,
    facts_response,
    pack_main,
    run_stdio,
)


class PackFailure(Exception):
    pass


def fake_scan(request):
    if request.snapshot_id == "fail":
        raise PackFailure("boom")
    if request.snapshot_id == "crash":
        raise KeyError("unexpected")
    return ScanFacts(
        language=LanguageMetadata(request.language_id, "1", "eco", "parser", "1"),
        snapshot_id=request.snapshot_id,
        status=ScanStatus.PARTIAL,
    )


def classify(error):
    if isinstance(error, PackFailure):
        return WireErrorCode.SCAN_FAILED
    return None


def request_line(snapshot_id="snap-1", language_id="demo", api_version=WIRE_API_VERSION):
    return json.dumps(
        {
            "type": "scan",
            "api_version": api_version,
            "language_id": language_id,
            "repo_root": "/tmp/repo",
            "snapshot_id": snapshot_id,
            "config": {},
        }
    )


def run(lines):
    out = io.StringIO()
    run_stdio(lines, out, "demo", fake_scan, classify)
    return out.getvalue().splitlines()


def test_error_response_shape():
    response = error_response(1, "demo", WireErrorCode.CONFIG_INVALID, "bad")
    assert response["type"] == "error"
    assert response["code"] == WireErrorCode.CONFIG_INVALID.value
    assert response["message"] == "bad"
    assert response["diagnostics"] == []


def test_facts_response_embeds_facts():
    facts = fake_scan(type("R", (), {"snapshot_id": "s", "language_id": "demo"})())
    response = facts_response(1, "demo", facts)
    assert response["type"] == "scan_facts"
    assert response["facts"] == facts.to_dict()


def test_blank_lines_are_skipped_and_one_response_written():
    lines = run(["\n", "   \n", request_line("snap-a") + "\n", request_line("snap-b") + "\n"])
    assert len(lines) == 1
    response = json.loads(lines[0])
    assert response["facts"]["snapshot_id"] == "snap-a"


def test_no_input_writes_nothing():
    assert run(["\n"]) == []


def test_invalid_json_uses_pack_language_id():
    response = json.loads(run(["{not json}\n"])[0])
    assert response["language_id"] == "demo"
    assert response["api_version"] == WIRE_API_VERSION
    assert response["code"] == WireErrorCode.CONFIG_INVALID.value
    assert response["message"].startswith("invalid scan request JSON")


def test_unsupported_api_version_echoes_request_language():
    response = json.loads(run([request_line(language_id="other", api_version=7)])[0])
    assert response["code"] == WireErrorCode.API_VERSION_UNSUPPORTED.value
    assert response["language_id"] == "other"
    assert response["api_version"] == WIRE_API_VERSION


def test_classified_scan_error_becomes_error_response():
    response = json.loads(run([request_line("fail")])[0])
    assert response["code"] == WireErrorCode.SCAN_FAILED.value
    assert response["message"] == "boom"


def test_unclassified_error_propagates():
    with pytest.raises(KeyError):
        run([request_line("crash")])


def test_pack_main_without_stdio_returns_usage_status(capsys):
    status = pack_main([], "demo-pack", "demo", fake_scan, classify)
    assert status == 2
    assert "usage: demo-pack --stdio" in capsys.readouterr().err