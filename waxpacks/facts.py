"""Scan facts contract shared by every language pack."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

SCHEMA_VERSION = 1
WIRE_API_VERSION = 1
PACK_VERSION = "0.1.0"

_LANGUAGE_ID_PATTERN = re.compile(r"[a-z][a-z0-9_-]{0,63}")


class ScanFactsError(ValueError):
    """Raised when scan facts violate the contract."""


def validate_language_id(value: Any) -> str:
    """Return ``value`` if it is a valid language id, else raise ``ValueError``."""
    if not isinstance(value, str) or not _LANGUAGE_ID_PATTERN.fullmatch(value):
        raise ValueError(f"invalid language id: {value!r}")
    return value


class DiagnosticSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ScanStatus(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"


class MatchStatus(str, Enum):
    RESOLVED = "resolved"
    CANDIDATE = "candidate"


@dataclass
class SourceLocation:
    file: str
    line: int
    column: Optional[int] = None


@dataclass
class Diagnostic:
    severity: DiagnosticSeverity
    code: str
    message: str
    location: Optional[SourceLocation] = None


@dataclass
class DesignSystemComponent:
    id: str
    symbol: str
    registry_symbol: str


@dataclass
class LocalComponent:
    id: str
    symbol: str
    location: SourceLocation


@dataclass
class UsageSite:
    id: str
    location: SourceLocation
    symbol: str
    match_status: MatchStatus
    registry_symbol: Optional[str] = None


@dataclass
class LanguageMetadata:
    id: str
    version: str
    ecosystem: str
    parser_name: str
    parser_version: str


@dataclass
class Metrics:
    adoption_coverage_ratio: Optional[float] = None
    parse_extract_ms: int = 0
    files_scanned: int = 0


@dataclass
class CountSummary:
    design_system_component_count: int = 0
    local_component_count: int = 0
    usage_site_count: int = 0
    resolved_count: int = 0
    candidate_count: int = 0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    return value


@dataclass
class ScanFacts:
    """Facts a language pack extracted from one repository snapshot."""

    language: LanguageMetadata
    snapshot_id: str
    status: ScanStatus
    design_system_components: list[DesignSystemComponent] = field(default_factory=list)
    local_components: list[LocalComponent] = field(default_factory=list)
    usage_sites: list[UsageSite] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    metrics: Metrics = field(default_factory=Metrics)
    counts: CountSummary = field(default_factory=CountSummary)
    scanned_at: datetime = field(default_factory=_utc_now)
    schema_version: int = SCHEMA_VERSION

    def _computed_counts(self) -> CountSummary:
        statuses = [site.match_status for site in self.usage_sites]
        return CountSummary(
            design_system_component_count=len(self.design_system_components),
            local_component_count=len(self.local_components),
            usage_site_count=len(self.usage_sites),
            resolved_count=statuses.count(MatchStatus.RESOLVED),
            candidate_count=statuses.count(MatchStatus.CANDIDATE),
        )

    def recompute_counts(self) -> None:
        """Refresh the count summary from the fact lists."""
        self.counts = self._computed_counts()

    def validate(self) -> None:
        """Raise ``ScanFactsError`` if the facts break the contract."""
        if self.schema_version != SCHEMA_VERSION:
            raise ScanFactsError(
                f"unsupported schema_version {self.schema_version}; expected {SCHEMA_VERSION}"
            )
        try:
            validate_language_id(self.language.id)
        except ValueError as err:
            raise ScanFactsError(str(err)) from err
        if not self.snapshot_id:
            raise ScanFactsError("snapshot_id must be non-empty")
        ratio = self.metrics.adoption_coverage_ratio
        if ratio is not None and not 0.0 <= ratio <= 1.0:
            raise ScanFactsError("adoption_coverage_ratio must be between 0 and 1")
        locations = [site.location for site in self.usage_sites]
        locations += [component.location for component in self.local_components]
        for location in locations:
            if location.line < 1:
                raise ScanFactsError(f"{location.file}: line numbers are one-based")
            if location.column is not None and location.column < 1:
                raise ScanFactsError(f"{location.file}: column numbers are one-based")
        for site in self.usage_sites:
            if site.match_status is MatchStatus.RESOLVED and not site.registry_symbol:
                raise ScanFactsError(f"resolved usage site {site.id} has no registry_symbol")
        if self.counts != self._computed_counts():
            raise ScanFactsError("counts do not match the extracted facts")

    def to_dict(self) -> dict[str, Any]:
        """Return the facts as a JSON-ready dictionary."""
        return _jsonable(self)


@dataclass
class ScanRequest:
    """A scan request sent by the engine to a language pack."""

    api_version: int
    language_id: str
    repo_root: str
    snapshot_id: str
    config: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "ScanRequest":
        """Build a request from decoded wire JSON, raising ``ValueError`` if malformed."""
        if not isinstance(data, dict):
            raise ValueError("scan request must be a JSON object")
        if data.get("type") != "scan":
            raise ValueError(f"unknown request type: {data.get('type')!r}")

        def required(name: str, kind: type) -> Any:
            if name not in data:
                raise ValueError(f"missing field `{name}`")
            value = data[name]
            if not isinstance(value, kind) or isinstance(value, bool):
                raise ValueError(f"field `{name}` has the wrong type")
            return value

        api_version = required("api_version", int)
        if api_version < 0:
            raise ValueError("field `api_version` must be non-negative")
        language_id = validate_language_id(required("language_id", str))
        repo_root = required("repo_root", str)
        snapshot_id = required("snapshot_id", str)
        config = data.get("config", {})
        if not isinstance(config, dict):
            raise ValueError("field `config` must be an object")
        return cls(
            api_version=api_version,
            language_id=language_id,
            repo_root=repo_root,
            snapshot_id=snapshot_id,
            config=dict(config),
        )