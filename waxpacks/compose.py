"""Compose language pack backed by the Kotlin source scanner."""

from __future__ import annotations

from typing import Optional

from waxpacks.compose_scan import (
    GRAMMAR_VERSION,
    PARSER_NAME,
    ComposeScanResult,
    KotlinScanError,
    ParserInitError,
    ScanConfigInvalidError,
    parse_compose_scan_config,
    scan_repository,
)
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
from waxpacks.registry import RegistryError
from waxpacks.stdio import WireErrorCode, pack_main

LANGUAGE_ID = "compose"

SCAFFOLD_MESSAGE = (
    "Compose extraction is scaffolded; configure design_system_registry and roots to scan."
)


class ComposeScanError(Exception):
    """Base class for failures of a Compose scan."""


class InvalidLanguageIdError(ComposeScanError):
    """The request names a language other than ``compose``."""

    def __init__(self, language_id: str) -> None:
        self.language_id = language_id
        super().__init__(f"invalid compose language id: {language_id}")


class InvalidFactsError(ComposeScanError):
    """The assembled facts broke the contract."""

    def __init__(self, error: ScanFactsError) -> None:
        self.error = error
        super().__init__(f"compose facts validation failed: {error}")


class InvalidConfigError(ComposeScanError):
    """The compose scan config was present but invalid."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"invalid compose scan config: {reason}")


class ParserInitFailedError(ComposeScanError):
    """The Kotlin parser could not be set up."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"parser init failed: {reason}")


class ScannerFailedError(ComposeScanError):
    """The scanner failed before facts could be assembled."""

    def __init__(self, error: BaseException) -> None:
        self.error = error
        super().__init__(f"compose scan failed: {error}")


def _metadata() -> LanguageMetadata:
    return LanguageMetadata(
        id=LANGUAGE_ID,
        version=PACK_VERSION,
        ecosystem="compose",
        parser_name=PARSER_NAME,
        parser_version=GRAMMAR_VERSION,
    )


def _scaffold_facts(request: ScanRequest) -> ScanFacts:
    return ScanFacts(
        language=_metadata(),
        snapshot_id=request.snapshot_id,
        status=ScanStatus.PARTIAL,
        diagnostics=[
            Diagnostic(
                severity=DiagnosticSeverity.INFO,
                code="compose_scaffold",
                message=SCAFFOLD_MESSAGE,
            )
        ],
        metrics=Metrics(files_scanned=0),
    )


def _facts_from_scan(request: ScanRequest, result: ComposeScanResult) -> ScanFacts:
    return ScanFacts(
        language=_metadata(),
        snapshot_id=request.snapshot_id,
        status=result.status,
        design_system_components=result.design_system_components,
        local_components=result.local_components,
        usage_sites=result.usage_sites,
        diagnostics=result.diagnostics,
        metrics=Metrics(files_scanned=result.files_scanned),
    )


class ComposeLanguage:
    """Compose language extractor."""

    def scan(self, request: ScanRequest) -> ScanFacts:
        """Scan the request's Kotlin sources, or return scaffold facts if unconfigured."""
        if request.language_id != LANGUAGE_ID:
            raise InvalidLanguageIdError(request.language_id)

        try:
            scan_config = parse_compose_scan_config(request.config)
            if scan_config is None:
                facts = _scaffold_facts(request)
            else:
                result = scan_repository(request.repo_root, scan_config)
                facts = _facts_from_scan(request, result)
        except ScanConfigInvalidError as err:
            raise InvalidConfigError(err.reason) from err
        except ParserInitError as err:
            raise ParserInitFailedError(err.reason) from err
        except (KotlinScanError, RegistryError) as err:
            raise ScannerFailedError(err) from err

        try:
            facts.recompute_counts()
            facts.validate()
        except ScanFactsError as err:
            raise InvalidFactsError(err) from err
        return facts


def classify_error(error: BaseException) -> Optional[WireErrorCode]:
    """Map a Compose pack failure to its wire error code."""
    if isinstance(error, InvalidConfigError):
        return WireErrorCode.CONFIG_INVALID
    if isinstance(error, ParserInitFailedError):
        return WireErrorCode.PARSER_INIT_FAILED
    if isinstance(error, ComposeScanError):
        return WireErrorCode.SCAN_FAILED
    return None


def main(argv: Optional[list[str]] = None) -> int:
    return pack_main(
        argv, "wax-lang-compose", LANGUAGE_ID, ComposeLanguage().scan, classify_error
    )