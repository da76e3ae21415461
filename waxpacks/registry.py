"""Design-system registry loading shared by the text and Kotlin scanners."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

from waxpacks.facts import DesignSystemComponent

PathLike = Union[str, Path]


class RegistryError(Exception):
    """Raised when a registry file is readable but does not describe components."""

    def __init__(self, path: PathLike, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"invalid design-system registry at {self.path}: {reason}")


@dataclass
class RegistryIndex:
    """Canonical registry symbols and the call names that resolve to them."""

    canonical_symbols: list[str] = field(default_factory=list)
    resolve_targets: dict[str, str] = field(default_factory=dict)

    def design_system_components(self) -> list[DesignSystemComponent]:
        """Return one component per canonical symbol, in symbol order."""
        return [
            DesignSystemComponent(id=f"ds.{symbol}", symbol=symbol, registry_symbol=symbol)
            for symbol in sorted(self.canonical_symbols)
        ]


def _component_symbol(component: Any) -> Any:
    if isinstance(component, dict):
        return component.get("symbol")
    return None


def load_registry(path: PathLike) -> RegistryIndex:
    """Load and index a registry JSON file.

    Raises ``OSError`` or ``UnicodeDecodeError`` when the file cannot be read
    and ``RegistryError`` when its content is not a valid registry.
    """
    path = Path(path)
    raw = path.read_bytes().decode("utf-8")
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as err:
        raise RegistryError(path, f"registry JSON is invalid: {err}") from err

    components = value.get("components") if isinstance(value, dict) else None
    if not isinstance(components, list):
        raise RegistryError(path, "registry JSON must contain a components array")

    canonical_symbols: list[str] = []
    resolve_targets: dict[str, str] = {}
    for index, component in enumerate(components):
        symbol = _component_symbol(component)
        if not isinstance(symbol, str):
            raise RegistryError(path, f"components[{index}] is missing symbol")
        canonical_symbols.append(symbol)
        resolve_targets[symbol] = symbol
        aliases = component.get("aliases")
        if not isinstance(aliases, list):
            continue
        for alias_index, alias in enumerate(aliases):
            if not isinstance(alias, str):
                raise RegistryError(
                    path, f"components[{index}].aliases[{alias_index}] must be a string"
                )
            resolve_targets[alias] = symbol

    if not canonical_symbols:
        raise RegistryError(path, "registry must declare at least one component symbol")

    return RegistryIndex(
        canonical_symbols=sorted(canonical_symbols),
        resolve_targets=dict(sorted(resolve_targets.items())),
    )