import io
import json

import pytest

from waxpacks.facts import DiagnosticSeverity, ScanRequest, ScanStatus
from waxpacks.react import ReactLanguage, ReactScanError, classify_error, main
from waxpacks.stdio import WireErrorCode


def run_main(monkeypatch, text):
    stdout = io.StringIO()
    monkeypatch.setattr("sys.stdin", io.StringIO(text))
    monkeypatch.setattr("sys.stdout", stdout)
    status = main(["--stdio"])
    return status, stdout.getvalue()


def single_response(monkeypatch, text):
    status, output = run_main(monkeypatch, text)
    assert status == 0
    lines = output.splitlines()
    assert len(lines) == 1
    return json.loads(lines[0])


def test_scan_returns_stub_partial_facts_for_react():
    request = ScanRequest(
        api_version=1,
        language_id="react",
        repo_root="/tmp/repo",
        snapshot_id="snap-react",
    )
    facts = ReactLanguage().scan(request)
    assert facts.language.id == "react"
    assert facts.snapshot_id == "snap-react"
    assert facts.status == ScanStatus.PARTIAL
    assert facts.design_system_components == []
    assert facts.local_components == []
    assert facts.usage_sites == []
    assert len(facts.diagnostics) == 1
    assert facts.diagnostics[0].severity == DiagnosticSeverity.INFO
    assert facts.diagnostics[0].code == "react_scaffold"
    assert "scaffolded but not implemented" in facts.diagnostics[0].message


def test_scan_rejects_other_language():
    request = ScanRequest(1, "compose", "/tmp/repo", "snap-1")
    with pytest.raises(ReactScanError, match="invalid react language id: compose"):
        ReactLanguage().scan(request)


def test_classify_error_maps_pack_errors_only():
    assert classify_error(ReactScanError("x")) == WireErrorCode.SCAN_FAILED
    assert classify_error(RuntimeError("x")) is None


def test_stdio_cli_emits_one_scan_facts_response(monkeypatch):
    response = single_response(
        monkeypatch,
        '{"type":"scan","api_version":1,"language_id":"react","repo_root":"/tmp/repo",'
        '"snapshot_id":"snap-cli","config":{}}\n',
    )
    assert response["type"] == "scan_facts"
    assert response["api_version"] == 1
    assert response["language_id"] == "react"
    assert response["facts"]["language"]["id"] == "react"
    assert response["facts"]["snapshot_id"] == "snap-cli"


def test_invalid_json_returns_tagged_error_response(monkeypatch):
    response = single_response(monkeypatch, "{not json}\n")
    assert response["type"] == "error"
    assert response["api_version"] == 1
    assert response["language_id"] == "react"
    assert response["code"] == WireErrorCode.CONFIG_INVALID.value


def test_unsupported_api_version_returns_tagged_error_response(monkeypatch):
    response = single_response(
        monkeypatch,
        '{"type":"scan","api_version":2,"language_id":"react","repo_root":"/tmp/repo",'
        '"snapshot_id":"snap-bad-version","config":{}}\n',
    )
    assert response["api_version"] == 1
    assert response["language_id"] == "react"
    assert response["code"] == WireErrorCode.API_VERSION_UNSUPPORTED.value


def test_scan_error_echoes_request_language_id(monkeypatch):
    response = single_response(
        monkeypatch,
        '{"type":"scan","api_version":1,"language_id":"compose","repo_root":"/tmp/repo",'
        '"snapshot_id":"snap-1","config":{}}\n',
    )
    assert response["language_id"] == "compose"
    assert response["code"] == WireErrorCode.SCAN_FAILED.value


def test_valid_scan_response_keeps_request_and_snapshot(monkeypatch):
    response = single_response(
        monkeypatch,
        '{"type":"scan","api_version":1,"language_id":"react","repo_root":"/tmp/repo",'
        '"snapshot_id":"snap-42","config":{}}\n',
    )
    assert response["api_version"] == 1
    assert response["language_id"] == "react"
    assert response["facts"]["language"]["id"] == "react"
    assert response["facts"]["snapshot_id"] == "snap-42"


def test_main_without_stdio_flag_returns_usage_status(capsys):
    assert main([]) == 2
    assert "usage: wax-lang-react --stdio" in capsys.readouterr().err