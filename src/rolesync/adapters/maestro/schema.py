"""Pydantic models describing the Maestro address endpoints."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_BALANCE_FIELDS = ("total", "balance", "available")


class MaestroBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class InscriptionRef(MaestroBaseModel):
    inscription_id: str

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_id(cls, value: object) -> object:
        # older responses list inscriptions as plain id strings
        if isinstance(value, str):
            return {"inscription_id": value}
        return value


class Utxo(MaestroBaseModel):
    txid: str | None = None
    vout: int | None = None
    inscriptions: list[InscriptionRef] = Field(default_factory=list[InscriptionRef])

    @field_validator("inscriptions", mode="before")
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return [] if value is None else value


class UtxoPage(MaestroBaseModel):
    data: list[Utxo] = Field(default_factory=list[Utxo])
    next_cursor: str | None = None

    @field_validator("data", mode="before")
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("next_cursor", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def inscription_ids(self) -> set[str]:
        return {ref.inscription_id for utxo in self.data for ref in utxo.inscriptions}


def _to_decimal(value: object) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("Balance must be numeric, got a boolean")
    if isinstance(value, (int, Decimal)):
        return Decimal(value)
    if isinstance(value, (float, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Balance is not numeric: {value!r}") from exc
    if isinstance(value, Mapping):
        mapping = cast(Mapping[str, object], value)
        for key in _BALANCE_FIELDS:
            if key in mapping and mapping[key] is not None:
                return _to_decimal(mapping[key])
        raise ValueError(f"Balance object has none of {', '.join(_BALANCE_FIELDS)}")
    raise ValueError(f"Unsupported balance value: {value!r}")


class BalancesResponse(MaestroBaseModel):
    """``data`` maps a ticker (or dune id) to a scalar balance or a balance object."""

    data: dict[str, Decimal] = Field(default_factory=dict[str, Decimal])

    @field_validator("data", mode="before")
    @classmethod
    def _normalize_balances(cls, value: object) -> object:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            return value
        mapping = cast(Mapping[str, object], value)
        return {str(key): _to_decimal(raw) for key, raw in mapping.items()}

    def balance_of(self, key: str) -> Decimal:
        return self.data.get(key, Decimal(0))


__all__ = ["BalancesResponse", "InscriptionRef", "Utxo", "UtxoPage"]
