"""Generic text line-scanner language pack."""

from __future__ import annotations

from typing import Optional

from waxpacks.facts import (
    PACK_VERSION,
    Diagnostic,
    DiagnosticSeverity,
    LanguageMetadata,
    Metrics,
    ScanFacts,
    ScanFactsError,
    ScanRequest,
    ScanStatus,
)
from waxpacks.line_scan import (
    ConfigInvalidError,
    LineScanError,
    LineScanResult,
    parse_basic_scan_config,
    scan_repository,
)
from waxpacks.registry import RegistryError
from waxpacks.stdio import WireErrorCode, pack_main

LANGUAGE_ID = "basic"
PARSER_NAME = "text-line-scanner"

SCAFFOLD_MESSAGE = (
    "Basic text scanner is scaffolded; configure design_system_registry and roots to scan."
)


class BasicScanError(Exception):
    """Base class for failures of a basic scan."""


class InvalidLanguageIdError(BasicScanError):
    """The request names a language other than ``basic``."""

    def __init__(self, language_id: str) -> None:
        self.language_id = language_id
        super().__init__(f"invalid basic language id: {language_id}")


class InvalidFactsError(BasicScanError):
    """The assembled facts broke the contract."""

    def __init__(self, error: ScanFactsError) -> None:
        self.error = error
        super().__init__(f"basic facts validation failed: {error}")


class InvalidConfigError(BasicScanError):
    """The basic scan config was present but invalid."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"invalid basic scan config: {reason}")


class LineScanFailedError(BasicScanError):
    """The line scanner failed before facts could be assembled."""

    def __init__(self, error: LineScanError) -> None:
        self.error = error
        super().__init__(f"basic line scan failed: {error}")


def _metadata() -> LanguageMetadata:
    return LanguageMetadata(
        id=LANGUAGE_ID,
        version=PACK_VERSION,
        ecosystem="basic",
        parser_name=PARSER_NAME,
        parser_version=PACK_VERSION,
    )


def _scaffold_facts(request: ScanRequest) -> ScanFacts:
    return ScanFacts(
        language=_metadata(),
        snapshot_id=request.snapshot_id,
        status=ScanStatus.PARTIAL,
        diagnostics=[
            Diagnostic(
                severity=DiagnosticSeverity.INFO,
                code="basic_scaffold",
                message=SCAFFOLD_MESSAGE,
            )
        ],
        metrics=Metrics(files_scanned=0),
    )


def _facts_from_scan(request: ScanRequest, scan: LineScanResult) -> ScanFacts:
    return ScanFacts(
        language=_metadata(),
        snapshot_id=request.snapshot_id,
        status=scan.status,
        design_system_components=scan.design_system_components,
        local_components=scan.local_components,
        usage_sites=scan.usage_sites,
        diagnostics=scan.diagnostics,
        metrics=Metrics(files_scanned=scan.files_scanned),
    )


class BasicLanguage:
    """Generic text line-scanner language extractor."""

    def scan(self, request: ScanRequest) -> ScanFacts:
        """Scan the request's repository, or return scaffold facts if unconfigured."""
        if request.language_id != LANGUAGE_ID:
            raise InvalidLanguageIdError(request.language_id)

        try:
            scan_config = parse_basic_scan_config(request.config)
            if scan_config is None:
                facts = _scaffold_facts(request)
            else:
                result = scan_repository(request.repo_root, scan_config)
                facts = _facts_from_scan(request, result)
        except ConfigInvalidError as err:
            raise InvalidConfigError(err.reason) from err
        except RegistryError as err:
            raise InvalidConfigError(str(err)) from err
        except LineScanError as err:
            raise LineScanFailedError(err) from err

        try:
            facts.recompute_counts()
            facts.validate()
        except ScanFactsError as err:
            raise InvalidFactsError(err) from err
        return facts


def classify_error(error: BaseException) -> Optional[WireErrorCode]:
    """Map a basic pack failure to its wire error code."""
    if isinstance(error, (InvalidConfigError, InvalidLanguageIdError)):
        return WireErrorCode.CONFIG_INVALID
    if isinstance(error, BasicScanError):
        return WireErrorCode.SCAN_FAILED
    return None


def main(argv: Optional[list[str]] = None) -> int:
    return pack_main(argv, "wax-lang-basic", LANGUAGE_ID, BasicLanguage().scan, classify_error)