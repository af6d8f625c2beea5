"""Asset catalog backed by provisioned ``<collection>.json`` files."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rolesync.domain.errors import NotFoundError

if TYPE_CHECKING:
    from pathlib import Path

    from rolesync.domain.ports import AssetCatalog

log = getLogger(__name__)


class CollectionFile(BaseModel):
    """``{"inscriptions": [...]}`` with bare ids or ``{"id": ...}`` objects."""

    model_config = ConfigDict(extra="ignore")

    inscriptions: list[str] = Field(default_factory=list[str])

    @field_validator("inscriptions", mode="before")
    @classmethod
    def _flatten_entries(cls, value: object) -> object:
        if not isinstance(value, list):
            return value
        flattened: list[object] = []
        for entry in value:  # pyright: ignore[reportUnknownVariableType]
            if isinstance(entry, dict):
                flattened.append(entry.get("id") or entry.get("inscription_id"))  # pyright: ignore[reportUnknownMemberType]
            else:
                flattened.append(entry)
        return flattened


class JsonAssetCatalog:
    """Read-only catalog; each collection file is parsed once per instance."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory
        self._collections: dict[str, frozenset[str]] = {}

    def _path_for(self, name: str) -> Path | None:
        if not name or name != name.strip() or any(sep in name for sep in ("/", "\\", "..")):
            return None
        return self._directory / f"{name}.json"

    def has_collection(self, name: str) -> bool:
        if name in self._collections:
            return True
        path = self._path_for(name)
        return path is not None and path.is_file()

    def get_collection(self, name: str) -> frozenset[str]:
        cached = self._collections.get(name)
        if cached is not None:
            return cached

        path = self._path_for(name)
        if path is None or not path.is_file():
            raise NotFoundError("collection", name)

        try:
            document = CollectionFile.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ValueError(f"Collection file {path} is not valid: {exc}") from exc

        identifiers = frozenset(document.inscriptions)
        log.info("Loaded collection %s with %s inscriptions", name, len(identifiers))
        self._collections[name] = identifiers
        return identifiers


if TYPE_CHECKING:
    from pathlib import Path as _Path

    _catalog_check: AssetCatalog = JsonAssetCatalog(_Path())
