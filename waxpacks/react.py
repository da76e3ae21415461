"""React language pack."""

from __future__ import annotations

from typing import Optional

from waxpacks.facts import (
    PACK_VERSION,
    Diagnostic,
    DiagnosticSeverity,
    LanguageMetadata,
    ScanFacts,
    ScanFactsError,
    ScanRequest,
    ScanStatus,
)
from waxpacks.stdio import WireErrorCode, pack_main

LANGUAGE_ID = "react"


class ReactScanError(Exception):
    """Raised when a React scan cannot produce facts."""


class ReactLanguage:
    """React language extractor."""

    def scan(self, request: ScanRequest) -> ScanFacts:
        """Return scaffold facts for a React scan request."""
        if request.language_id != LANGUAGE_ID:
            raise ReactScanError(f"invalid react language id: {request.language_id}")

        facts = ScanFacts(
            language=LanguageMetadata(
                id=LANGUAGE_ID,
                version=PACK_VERSION,
                ecosystem="react",
                parser_name="react-parser",
                parser_version="0.1.0",
            ),
            snapshot_id=request.snapshot_id,
            status=ScanStatus.PARTIAL,
            diagnostics=[
                Diagnostic(
                    severity=DiagnosticSeverity.INFO,
                    code="react_scaffold",
                    message="React extraction is scaffolded but not implemented.",
                )
            ],
        )
        try:
            facts.recompute_counts()
            facts.validate()
        except ScanFactsError as err:
            raise ReactScanError(f"react facts validation failed: {err}") from err
        return facts


def classify_error(error: BaseException) -> Optional[WireErrorCode]:
    """Map a React pack failure to its wire error code."""
    if isinstance(error, ReactScanError):
        return WireErrorCode.SCAN_FAILED
    return None


def main(argv: Optional[list[str]] = None) -> int:
    return pack_main(argv, "wax-lang-react", LANGUAGE_ID, ReactLanguage().scan, classify_error)