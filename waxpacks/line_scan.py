"""Language-agnostic text line scanner for registry symbol matching."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any, Iterator, Mapping, Optional, Sequence, Union

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
from waxpacks.registry import load_registry

PathLike = Union[str, Path]

BASIC_TEXT_SCAN_DIAGNOSTIC = (
    "Basic text line scanner produced heuristic usage facts; parser-backed extraction is "
    "recommended for production. Heuristics strip // comments before matching (code after "
    "// inside strings or URLs may be missed)."
)

_WHITESPACE = (
    "\t\n\x0b\x0c\r \x85\xa0\u1680"
    + "".join(chr(code) for code in range(0x2000, 0x200B))
    + "\u2028\u2029\u202f\u205f\u3000"
)


class LineScanError(Exception):
    """Base class for text line scanner failures."""


class ConfigInvalidError(LineScanError):
    """The scan config payload was present but invalid."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"invalid basic scan config: {reason}")


class LineScanIOError(LineScanError):
    """A filesystem operation failed during the scan."""

    def __init__(self, context: str, source: BaseException) -> None:
        self.context = context
        self.source = source
        super().__init__(f"{context}: {source}")


@dataclass(frozen=True)
class BasicScanConfig:
    """Validated settings for the text line scanner.

    ``include_globs`` supports only ``*suffix`` patterns such as ``*.src``.
    """

    design_system_registry: Path
    roots: tuple[Path, ...]
    file_extensions: tuple[str, ...] = ()
    include_globs: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScannableLine:
    """Code portion of a source line and the byte column where it starts."""

    code: str
    start_column: int


@dataclass
class LineScanResult:
    """Output of the text line scanner before contract validation."""

    design_system_components: list[DesignSystemComponent] = field(default_factory=list)
    local_components: list[LocalComponent] = field(default_factory=list)
    usage_sites: list[UsageSite] = field(default_factory=list)
    files_scanned: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)
    status: ScanStatus = ScanStatus.PARTIAL


_CONFIG_KEYS = ("design_system_registry", "roots", "file_extensions", "include_globs")


def parse_basic_scan_config(config: Mapping[str, Any]) -> Optional[BasicScanConfig]:
    """Validate the request config; ``None`` means no scan keys were given."""
    if not any(key in config for key in _CONFIG_KEYS):
        return None

    if "design_system_registry" not in config:
        raise ConfigInvalidError(
            "design_system_registry is required when basic scan config is present"
        )
    registry = config["design_system_registry"]
    if not isinstance(registry, str) or not registry:
        raise ConfigInvalidError("design_system_registry must be a non-empty string")
    validate_repo_relative_path(registry, "design_system_registry")

    if "roots" not in config:
        raise ConfigInvalidError("roots is required when basic scan config is present")
    roots_value = config["roots"]
    if not isinstance(roots_value, list) or not roots_value:
        raise ConfigInvalidError("roots must be a non-empty array of strings")

    roots = []
    for index, root in enumerate(roots_value):
        if not isinstance(root, str) or not root:
            raise ConfigInvalidError(f"roots[{index}] must be a non-empty string")
        validate_repo_relative_path(root, f"roots[{index}]")
        roots.append(Path(root))

    return BasicScanConfig(
        design_system_registry=Path(registry),
        roots=tuple(roots),
        file_extensions=_parse_string_array(config, "file_extensions"),
        include_globs=_parse_string_array(config, "include_globs"),
    )


def _parse_string_array(config: Mapping[str, Any], key: str) -> tuple[str, ...]:
    if key not in config:
        return ()
    value = config[key]
    if not isinstance(value, list):
        raise ConfigInvalidError(f"{key} must be an array of strings")
    for index, entry in enumerate(value):
        if not isinstance(entry, str) or not entry:
            raise ConfigInvalidError(f"{key}[{index}] must be a non-empty string")
    return tuple(value)


def validate_repo_relative_path(path: str, field: str) -> None:
    """Raise ``ConfigInvalidError`` unless ``path`` stays inside the repository."""
    parsed = PurePath(path)
    if parsed.is_absolute():
        raise ConfigInvalidError(f"{field} must be a repo-relative path")
    if ".." in parsed.parts:
        raise ConfigInvalidError(f"{field} must not contain parent directory segments")


def _read_text(path: Path, context: str) -> str:
    try:
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as err:
        raise LineScanIOError(f"{context} {path}", err) from err


def _relative_display(path: Path, repo_root: Path) -> str:
    try:
        return str(path.relative_to(repo_root))
    except ValueError:
        return str(path)


def scan_repository(repo_root: PathLike, config: BasicScanConfig) -> LineScanResult:
    """Scan the configured roots for calls to registry symbols.

    Raises ``RegistryError`` for a malformed registry and ``LineScanIOError``
    when a file or directory cannot be read.
    """
    repo_root = Path(repo_root)
    registry_path = repo_root / config.design_system_registry
    try:
        registry = load_registry(registry_path)
    except (OSError, UnicodeDecodeError) as err:
        raise LineScanIOError(f"read design-system registry {registry_path}", err) from err

    source_files = [
        path
        for root in config.roots
        for path in _collect_source_files(
            repo_root / root, config.file_extensions, config.include_globs
        )
    ]
    source_files.sort(key=lambda path: path.parts)

    usage_sites: list[UsageSite] = []
    for file_path in source_files:
        source = _read_text(file_path, "read source file")
        usage_sites.extend(
            extract_usage_sites(
                source, _relative_display(file_path, repo_root), registry.resolve_targets
            )
        )
    usage_sites.sort(key=lambda site: (site.location.file, site.location.line, site.symbol))

    return LineScanResult(
        design_system_components=registry.design_system_components(),
        local_components=[],
        usage_sites=usage_sites,
        files_scanned=len(source_files),
        diagnostics=[
            Diagnostic(
                severity=DiagnosticSeverity.INFO,
                code="basic_text_scan",
                message=BASIC_TEXT_SCAN_DIAGNOSTIC,
            )
        ],
        status=ScanStatus.PARTIAL,
    )


def _collect_source_files(
    directory: Path, file_extensions: Sequence[str], include_globs: Sequence[str]
) -> Iterator[Path]:
    if not directory.exists():
        return
    try:
        with os.scandir(directory) as entries:
            paths = [Path(entry.path) for entry in entries]
    except OSError as err:
        raise LineScanIOError(f"read source root {directory}", err) from err

    for path in paths:
        try:
            mode = os.lstat(path).st_mode
        except OSError as err:
            raise LineScanIOError(f"read metadata for {path}", err) from err
        if stat.S_ISLNK(mode):
            continue
        if stat.S_ISDIR(mode):
            yield from _collect_source_files(path, file_extensions, include_globs)
        elif should_include_file(path, file_extensions, include_globs):
            yield path


def should_include_file(
    path: PathLike, file_extensions: Sequence[str], include_globs: Sequence[str]
) -> bool:
    """Decide whether a file takes part in the scan."""
    path = Path(path)
    if not file_extensions and not include_globs:
        return path.is_file()
    if any(extension_matches(path, extension) for extension in file_extensions):
        return True
    return any(glob_matches(path.name, pattern) for pattern in include_globs)


def _extension(name: str) -> Optional[str]:
    dot = name.rfind(".")
    if name == ".." or dot <= 0:
        return None
    return name[dot + 1 :]


def extension_matches(path: PathLike, extension: str) -> bool:
    """Compare a file's extension with ``extension``, ignoring ASCII case and a leading dot."""
    normalized = extension[1:] if extension.startswith(".") else extension
    actual = _extension(PurePath(path).name)
    if actual is None:
        return False
    return actual.encode("utf-8").lower() == normalized.encode("utf-8").lower()


def glob_matches(file_name: str, pattern: str) -> bool:
    """Match a file name against a literal name or a ``*suffix`` pattern."""
    if pattern.startswith("*"):
        return file_name.endswith(pattern[1:])
    return file_name == pattern


def _byte_length(text: str) -> int:
    return len(text.encode("utf-8"))


def _lines(source: str) -> Iterator[str]:
    if not source:
        return
    parts = source.split("\n")
    if parts[-1] == "":
        parts.pop()
    for part in parts:
        yield part[:-1] if part.endswith("\r") else part


def extract_usage_sites(
    source: str, file: str, resolve_targets: Mapping[str, str]
) -> list[UsageSite]:
    """Find ``symbol(`` calls for every known call name, line by line."""
    targets = sorted(resolve_targets.items())
    sites: list[UsageSite] = []
    for line_number, line in enumerate(_lines(source), start=1):
        scannable = scannable_line(line)
        if scannable is None:
            continue
        stripped = strip_string_literals(scannable.code)
        for call_symbol, registry_symbol in targets:
            pattern = f"{call_symbol}("
            start = stripped.find(pattern)
            while start != -1:
                if is_symbol_boundary(stripped, start):
                    column = scannable.start_column + _byte_length(stripped[:start]) + 1
                    sites.append(
                        UsageSite(
                            id=f"usage.{file}:{line_number}:{column}:{call_symbol}",
                            location=SourceLocation(file=file, line=line_number, column=column),
                            symbol=call_symbol,
                            match_status=MatchStatus.RESOLVED,
                            registry_symbol=registry_symbol,
                        )
                    )
                start = stripped.find(pattern, start + len(pattern))
    return sites


def scannable_line(line: str) -> Optional[ScannableLine]:
    """Return the code before any ``//`` comment, or ``None`` if there is none."""
    trimmed = line.lstrip(_WHITESPACE)
    if not trimmed or trimmed.startswith("//"):
        return None
    start_column = _byte_length(line[: len(line) - len(trimmed)])
    code = trimmed.split("//", 1)[0].strip(_WHITESPACE)
    if not code:
        return None
    return ScannableLine(code=code, start_column=start_column)


def strip_string_literals(line: str) -> str:
    """Blank out double-quoted string contents, quotes included, one space per character."""
    result = []
    in_string = False
    for ch in line:
        if ch == '"':
            in_string = not in_string
            result.append(" ")
        else:
            result.append(" " if in_string else ch)
    return "".join(result)


def is_symbol_boundary(line: str, start: int) -> bool:
    """True if the match at ``start`` is not part of a longer or qualified name."""
    if start == 0:
        return True
    before = line[start - 1]
    return not (before.isascii() and before.isalnum()) and before not in "_."