"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class AssetClass(StrEnum):
    NFT = "nft"
    TOKEN = "token"
    DUNE = "dune"


class GrantPolicy(StrEnum):
    """How several criteria that target the same grant are combined."""

    ANY = "any"
    ALL = "all"
