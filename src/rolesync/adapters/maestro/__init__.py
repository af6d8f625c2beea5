"""Public interface for the Maestro holdings adapter."""

from __future__ import annotations

from .client import MaestroHoldingsClient, should_cache_payload
from .schema import BalancesResponse, InscriptionRef, Utxo, UtxoPage

__all__ = [
    "BalancesResponse",
    "InscriptionRef",
    "MaestroHoldingsClient",
    "Utxo",
    "UtxoPage",
    "should_cache_payload",
]
