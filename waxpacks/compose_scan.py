"""Kotlin source scanner that finds Compose components and design-system usages."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional, Union

from waxpacks.facts import (
    DesignSystemComponent,
    Diagnostic,
    DiagnosticSeverity,
    LocalComponent,
    MatchStatus,
    ScanStatus,
    SourceLocation,
    UsageSite,
)
from waxpacks.kotlin_syntax import (
    KotlinSyntaxError,
    function_declarations,
    simple_calls,
    tokenize,
)
from waxpacks.registry import load_registry

PathLike = Union[str, Path]

PARSER_NAME = "tree-sitter-kotlin"
GRAMMAR_VERSION = "0.3.8"

COMPOSABLE_ANNOTATION = "Composable"


class KotlinScanError(Exception):
    """Base class for Kotlin scanner failures."""


class ScanConfigInvalidError(KotlinScanError):
    """The compose scan config was present but invalid."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"invalid compose scan config: {reason}")


class ParserInitError(KotlinScanError):
    """The Kotlin parser could not be set up."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Kotlin parser init failed: {reason}")


class KotlinScanIOError(KotlinScanError):
    """A filesystem operation failed during the scan."""

    def __init__(self, context: str, source: BaseException) -> None:
        self.context = context
        self.source = source
        super().__init__(f"{context}: {source}")


@dataclass(frozen=True)
class ComposeScanConfig:
    """Validated settings for the Kotlin scanner."""

    design_system_registry: Path
    roots: tuple[Path, ...]


@dataclass
class ComposeScanResult:
    """Output of the Kotlin scanner before contract validation."""

    design_system_components: list[DesignSystemComponent] = field(default_factory=list)
    local_components: list[LocalComponent] = field(default_factory=list)
    usage_sites: list[UsageSite] = field(default_factory=list)
    files_scanned: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)
    status: ScanStatus = ScanStatus.COMPLETE


def parse_compose_scan_config(config: Mapping[str, Any]) -> Optional[ComposeScanConfig]:
    """Validate the request config; ``None`` means no scan keys were given."""
    if "design_system_registry" not in config and "roots" not in config:
        return None

    if "design_system_registry" not in config:
        raise ScanConfigInvalidError(
            "design_system_registry is required when compose scan config is present"
        )
    registry = config["design_system_registry"]
    if not isinstance(registry, str) or not registry:
        raise ScanConfigInvalidError("design_system_registry must be a non-empty string")

    if "roots" not in config:
        raise ScanConfigInvalidError("roots is required when compose scan config is present")
    roots_value = config["roots"]
    if not isinstance(roots_value, list) or not roots_value:
        raise ScanConfigInvalidError("roots must be a non-empty array of strings")

    roots = []
    for index, root in enumerate(roots_value):
        if not isinstance(root, str) or not root:
            raise ScanConfigInvalidError(f"roots[{index}] must be a non-empty string")
        roots.append(Path(root))

    return ComposeScanConfig(design_system_registry=Path(registry), roots=tuple(roots))


def extract_from_source(
    source: str, file: str, resolve_targets: Mapping[str, str]
) -> tuple[list[LocalComponent], list[UsageSite]]:
    """Return the local ``@Composable`` components and registry usages in one file.

    Raises ``KotlinSyntaxError`` when the source cannot be tokenized.
    """
    tokens = tokenize(source)

    locals_found = [
        LocalComponent(
            id=f"local.{file}:{decl.line}:{decl.name}",
            symbol=decl.name,
            location=SourceLocation(file=file, line=decl.line, column=decl.column),
        )
        for decl in function_declarations(tokens)
        if COMPOSABLE_ANNOTATION in decl.annotations
        and decl.name[:1].isascii()
        and decl.name[:1].isupper()
    ]

    usages = [
        UsageSite(
            id=f"usage.{file}:{call.line}:{call.column}:{call.name}",
            location=SourceLocation(file=file, line=call.line, column=call.column),
            symbol=call.name,
            match_status=MatchStatus.RESOLVED,
            registry_symbol=resolve_targets[call.name],
        )
        for call in simple_calls(tokens)
        if call.name in resolve_targets
    ]
    return locals_found, usages


def _collect_kotlin_files(directory: Path) -> Iterator[Path]:
    try:
        with os.scandir(directory) as entries:
            found = [(Path(entry.path), entry.is_dir()) for entry in entries]
    except OSError as err:
        raise KotlinScanIOError(f"read Kotlin root {directory}", err) from err
    for path, is_dir in found:
        if is_dir:
            yield from _collect_kotlin_files(path)
        elif path.suffix == ".kt":
            yield path


def _relative_display(path: Path, repo_root: Path) -> str:
    try:
        return str(path.relative_to(repo_root))
    except ValueError:
        return str(path)


def scan_repository(repo_root: PathLike, config: ComposeScanConfig) -> ComposeScanResult:
    """Scan the configured roots' ``.kt`` files.

    Missing roots and unparsable files become warning diagnostics and make the
    status partial. Raises ``RegistryError`` for a malformed registry and
    ``KotlinScanIOError`` when a file or directory cannot be read.
    """
    repo_root = Path(repo_root)
    registry_path = repo_root / config.design_system_registry
    try:
        registry = load_registry(registry_path)
    except (OSError, UnicodeDecodeError) as err:
        raise KotlinScanIOError(f"read design-system registry {registry_path}", err) from err

    diagnostics: list[Diagnostic] = []
    kotlin_files: list[Path] = []
    missing_roots = False
    for root in config.roots:
        absolute_root = repo_root / root
        if not absolute_root.exists():
            missing_roots = True
            diagnostics.append(
                Diagnostic(
                    severity=DiagnosticSeverity.WARNING,
                    code="root_not_found",
                    message=(
                        f"configured root '{root}' does not exist under repo root; "
                        "no files scanned from it"
                    ),
                )
            )
        else:
            kotlin_files.extend(_collect_kotlin_files(absolute_root))
    kotlin_files.sort(key=lambda path: path.parts)

    local_components: list[LocalComponent] = []
    usage_sites: list[UsageSite] = []
    parse_failures = 0
    for file_path in kotlin_files:
        try:
            source = file_path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as err:
            raise KotlinScanIOError(f"read Kotlin source {file_path}", err) from err
        relative_file = _relative_display(file_path, repo_root)
        try:
            found_locals, found_usages = extract_from_source(
                source, relative_file, registry.resolve_targets
            )
        except KotlinSyntaxError as err:
            parse_failures += 1
            diagnostics.append(
                Diagnostic(
                    severity=DiagnosticSeverity.WARNING,
                    code="parse_failed",
                    message=f"failed to parse {relative_file} ({err}); file skipped",
                )
            )
            continue
        local_components.extend(found_locals)
        usage_sites.extend(found_usages)

    local_components.sort(key=lambda component: component.symbol)
    usage_sites.sort(key=lambda site: (site.location.file, site.location.line, site.symbol))

    has_gaps = parse_failures > 0 or missing_roots
    return ComposeScanResult(
        design_system_components=registry.design_system_components(),
        local_components=local_components,
        usage_sites=usage_sites,
        files_scanned=len(kotlin_files),
        diagnostics=diagnostics,
        status=ScanStatus.PARTIAL if has_gaps else ScanStatus.COMPLETE,
    )