"""Holding criteria: one asset-class requirement mapped to a target grant."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import ClassVar

from rolesync.domain.errors import InvalidCriterionError
from rolesync.domain.model.enums import AssetClass


def _require_key(value: str, label: str) -> str:
    stripped = value.strip() if isinstance(value, str) else ""
    if not stripped:
        raise InvalidCriterionError(f"{label} must be a non-empty string")
    return stripped


def _as_amount(value: Decimal | int | float | str, label: str) -> Decimal:
    try:
        # floats go through str() so 0.1 stays 0.1
        amount = Decimal(str(value)) if not isinstance(value, Decimal) else value
    except InvalidOperation as exc:
        raise InvalidCriterionError(f"{label} must be a number, got {value!r}") from exc
    if not amount.is_finite() or amount < 0:
        raise InvalidCriterionError(f"{label} must be a finite non-negative number")
    return amount


@dataclass(frozen=True, slots=True)
class CollectionRequirement:
    """Hold at least ``required_count`` inscriptions of a catalogued collection."""

    ASSET_CLASS: ClassVar[AssetClass] = AssetClass.NFT

    collection_name: str
    required_count: int

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "collection_name", _require_key(self.collection_name, "collection_name")
        )
        if isinstance(self.required_count, bool) or not isinstance(self.required_count, int):
            raise InvalidCriterionError("required_count must be an integer")
        if self.required_count < 0:
            raise InvalidCriterionError("required_count must be non-negative")

    @property
    def asset_key(self) -> str:
        return self.collection_name

    @property
    def threshold(self) -> Decimal:
        return Decimal(self.required_count)


@dataclass(frozen=True, slots=True)
class TokenRequirement:
    """Hold at least ``required_amount`` of a fungible (DRC-20) token."""

    ASSET_CLASS: ClassVar[AssetClass] = AssetClass.TOKEN

    ticker: str
    required_amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "ticker", _require_key(self.ticker, "ticker"))
        object.__setattr__(
            self, "required_amount", _as_amount(self.required_amount, "required_amount")
        )

    @property
    def asset_key(self) -> str:
        return self.ticker

    @property
    def threshold(self) -> Decimal:
        return self.required_amount


@dataclass(frozen=True, slots=True)
class DuneRequirement:
    """Hold at least ``required_amount`` of a semi-fungible dune group."""

    ASSET_CLASS: ClassVar[AssetClass] = AssetClass.DUNE

    dune_id: str
    required_amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "dune_id", _require_key(self.dune_id, "dune_id"))
        object.__setattr__(
            self, "required_amount", _as_amount(self.required_amount, "required_amount")
        )

    @property
    def asset_key(self) -> str:
        return self.dune_id

    @property
    def threshold(self) -> Decimal:
        return self.required_amount


type Requirement = CollectionRequirement | TokenRequirement | DuneRequirement

_REQUIREMENT_TYPES = (CollectionRequirement, TokenRequirement, DuneRequirement)


@dataclass(frozen=True, slots=True)
class Criterion:
    """A configured rule mapping one holding requirement to a grant."""

    target_grant: str
    requirement: Requirement

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_grant", _require_key(self.target_grant, "target_grant"))
        if not isinstance(self.requirement, _REQUIREMENT_TYPES):
            raise InvalidCriterionError(
                f"Unsupported requirement type: {type(self.requirement).__name__}"
            )

    @property
    def asset_class(self) -> AssetClass:
        return self.requirement.ASSET_CLASS

    def describe(self) -> str:
        requirement = self.requirement
        match requirement:
            case CollectionRequirement(collection_name=name, required_count=count):
                return f"{count}x {name} -> {self.target_grant}"
            case TokenRequirement(ticker=ticker, required_amount=amount):
                return f"{amount} {ticker} -> {self.target_grant}"
            case DuneRequirement(dune_id=dune_id, required_amount=amount):
                return f"{amount} dune:{dune_id} -> {self.target_grant}"


def build_requirement(
    asset_class: AssetClass | str,
    asset_key: str,
    threshold: Decimal | int | str,
) -> Requirement:
    """Rebuild a requirement from its tag, key and threshold (storage form)."""

    match AssetClass(asset_class):
        case AssetClass.NFT:
            count = _as_amount(threshold, "required_count")
            if count != count.to_integral_value():
                raise InvalidCriterionError("required_count must be an integer")
            return CollectionRequirement(collection_name=asset_key, required_count=int(count))
        case AssetClass.TOKEN:
            return TokenRequirement(
                ticker=asset_key, required_amount=_as_amount(threshold, "amount")
            )
        case AssetClass.DUNE:
            return DuneRequirement(
                dune_id=asset_key, required_amount=_as_amount(threshold, "amount")
            )


def criteria_from_flat_record(  # noqa: PLR0913
    target_grant: str,
    *,
    collection_name: str | None = None,
    required_count: int | None = None,
    ticker: str | None = None,
    token_amount: Decimal | int | str | None = None,
    dune_id: str | None = None,
    dune_amount: Decimal | int | str | None = None,
) -> tuple[Criterion, ...]:
    """Split a flat NFT + token + dune record into one criterion per populated payload.

    Older configuration records carried all three asset classes side by side on a
    single row. Each populated payload becomes its own criterion for the same
    grant; a payload with a key but no threshold (or the reverse) is rejected.
    """

    criteria: list[Criterion] = []
    if collection_name is not None or required_count is not None:
        if collection_name is None or required_count is None:
            raise InvalidCriterionError("collection_name and required_count go together")
        criteria.append(
            Criterion(
                target_grant,
                CollectionRequirement(
                    collection_name=collection_name, required_count=required_count
                ),
            )
        )
    if ticker is not None or token_amount is not None:
        if ticker is None or token_amount is None:
            raise InvalidCriterionError("ticker and token_amount go together")
        criteria.append(
            Criterion(target_grant, TokenRequirement(ticker=ticker, required_amount=token_amount))  # type: ignore[arg-type]
        )
    if dune_id is not None or dune_amount is not None:
        if dune_id is None or dune_amount is None:
            raise InvalidCriterionError("dune_id and dune_amount go together")
        criteria.append(
            Criterion(target_grant, DuneRequirement(dune_id=dune_id, required_amount=dune_amount))  # type: ignore[arg-type]
        )
    if not criteria:
        raise InvalidCriterionError("A criterion record needs at least one asset payload")
    return tuple(criteria)
