import json

import pytest

from waxpacks.registry import RegistryError, RegistryIndex, load_registry


def _write(tmp_path, payload):
    path = tmp_path / "registry.json"
    if isinstance(payload, str):
        path.write_text(payload, encoding="utf-8")
    else:
        path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_canonical_symbols_are_sorted(tmp_path):
    path = _write(
        tmp_path,
        {"components": [{"symbol": "TextField"}, {"symbol": "Card"}, {"symbol": "PrimaryButton"}]},
    )
    index = load_registry(path)
    assert index.canonical_symbols == sorted(["TextField", "Card", "PrimaryButton"])


def test_aliases_resolve_to_canonical_symbol(tmp_path):
    path = _write(
        tmp_path,
        {"components": [{"symbol": "PrimaryButton", "aliases": ["PrimaryBtn"]}]},
    )
    index = load_registry(path)
    assert index.resolve_targets["PrimaryBtn"] == "PrimaryButton"
    assert index.resolve_targets["PrimaryButton"] == "PrimaryButton"
    assert list(index.resolve_targets) == sorted(index.resolve_targets)


def test_non_list_aliases_are_ignored(tmp_path):
    path = _write(tmp_path, {"components": [{"symbol": "Card", "aliases": "CardAlias"}]})
    index = load_registry(path)
    assert index.resolve_targets == {"Card": "Card"}


def test_design_system_components_use_ds_prefix(tmp_path):
    path = _write(tmp_path, {"components": [{"symbol": "TextField"}, {"symbol": "Card"}]})
    components = load_registry(path).design_system_components()
    assert [c.symbol for c in components] == ["Card", "TextField"]
    assert [c.id for c in components] == ["ds.Card", "ds.TextField"]
    assert all(c.registry_symbol == c.symbol for c in components)


def test_design_system_components_from_index_directly():
    index = RegistryIndex(canonical_symbols=["Btn"], resolve_targets={"Btn": "Btn"})
    components = index.design_system_components()
    assert [c.id for c in components] == ["ds.Btn"]


def test_invalid_json_is_registry_error(tmp_path):
    path = _write(tmp_path, "{not json")
    with pytest.raises(RegistryError) as info:
        load_registry(path)
    assert info.value.reason.startswith("registry JSON is invalid")
    assert str(info.value).startswith("invalid design-system registry at")
    assert info.value.path == path


def test_missing_components_array(tmp_path):
    path = _write(tmp_path, {"schema_version": 1})
    with pytest.raises(RegistryError) as info:
        load_registry(path)
    assert info.value.reason == "registry JSON must contain a components array"


def test_non_object_root_has_no_components(tmp_path):
    path = _write(tmp_path, [1, 2])
    with pytest.raises(RegistryError) as info:
        load_registry(path)
    assert info.value.reason == "registry JSON must contain a components array"


def test_component_without_symbol(tmp_path):
    path = _write(tmp_path, {"components": [{"symbol": "Card"}, {"id": "ds.btn"}]})
    with pytest.raises(RegistryError) as info:
        load_registry(path)
    assert info.value.reason == "components[1] is missing symbol"


def test_non_string_alias(tmp_path):
    path = _write(tmp_path, {"components": [{"symbol": "Card", "aliases": ["Crd", 7]}]})
    with pytest.raises(RegistryError) as info:
        load_registry(path)
    assert info.value.reason == "components[0].aliases[1] must be a string"


def test_empty_components(tmp_path):
    path = _write(tmp_path, {"components": []})
    with pytest.raises(RegistryError) as info:
        load_registry(path)
    assert info.value.reason == "registry must declare at least one component symbol"


def test_missing_file_raises_os_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_registry(tmp_path / "absent.json")