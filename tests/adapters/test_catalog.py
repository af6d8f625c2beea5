from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from rolesync.adapters.catalog import JsonAssetCatalog
from rolesync.domain.errors import NotFoundError

if TYPE_CHECKING:
    from pathlib import Path


def _write(directory: Path, name: str, payload: object) -> None:
    (directory / f"{name}.json").write_text(json.dumps(payload), encoding="utf-8")


def test_collection_file_with_mixed_entries(tmp_path: Path) -> None:
    _write(tmp_path, "dmb", {"inscriptions": ["i1", {"id": "i2"}, {"inscription_id": "i3"}]})
    catalog = JsonAssetCatalog(tmp_path)

    assert catalog.has_collection("dmb")
    assert catalog.get_collection("dmb") == frozenset({"i1", "i2", "i3"})


def test_collection_is_loaded_once(tmp_path: Path) -> None:
    _write(tmp_path, "dmb", {"inscriptions": ["i1"]})
    catalog = JsonAssetCatalog(tmp_path)

    first = catalog.get_collection("dmb")
    (tmp_path / "dmb.json").unlink()

    assert catalog.get_collection("dmb") is first
    assert catalog.has_collection("dmb")


def test_missing_collection_is_not_found(tmp_path: Path) -> None:
    catalog = JsonAssetCatalog(tmp_path)

    assert not catalog.has_collection("dmb")
    with pytest.raises(NotFoundError) as excinfo:
        catalog.get_collection("dmb")
    assert excinfo.value.identifier == "dmb"


@pytest.mark.parametrize("name", ["../secrets", "a/b", "a\\b", ""])
def test_names_escaping_the_directory_are_rejected(tmp_path: Path, name: str) -> None:
    catalog = JsonAssetCatalog(tmp_path)

    assert not catalog.has_collection(name)
    with pytest.raises(NotFoundError):
        catalog.get_collection(name)


def test_malformed_file_raises_value_error(tmp_path: Path) -> None:
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    _write(tmp_path, "wrong", {"inscriptions": [1, 2]})
    catalog = JsonAssetCatalog(tmp_path)

    with pytest.raises(ValueError, match="not valid"):
        catalog.get_collection("broken")
    with pytest.raises(ValueError, match="not valid"):
        catalog.get_collection("wrong")
