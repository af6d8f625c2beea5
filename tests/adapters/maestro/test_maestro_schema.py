from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from rolesync.adapters.maestro import BalancesResponse, UtxoPage


def test_utxo_page_tolerates_nulls_and_blank_cursor() -> None:
    page = UtxoPage.model_validate(
        {
            "data": [{"txid": "t1", "inscriptions": None}, {"inscriptions": ["i1"]}],
            "next_cursor": "  ",
        }
    )

    assert page.next_cursor is None
    assert page.inscription_ids() == {"i1"}


def test_balance_object_falls_back_through_fields() -> None:
    balances = BalancesResponse.model_validate(
        {
            "data": {
                "a": {"total": 5, "balance": 4},
                "b": {"balance": "4.25"},
                "c": {"total": None, "available": 1},
            }
        }
    )

    assert balances.balance_of("a") == Decimal(5)
    assert balances.balance_of("b") == Decimal("4.25")
    assert balances.balance_of("c") == Decimal(1)
    assert balances.balance_of("missing") == Decimal(0)


@pytest.mark.parametrize("raw", [True, {"locked": 1}, "NaN-ish", [1]])
def test_unusable_balances_fail_validation(raw: object) -> None:
    with pytest.raises(ValidationError):
        BalancesResponse.model_validate({"data": {"DOGI": raw}})
