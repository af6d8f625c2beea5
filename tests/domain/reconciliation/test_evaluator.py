from __future__ import annotations

import asyncio
from decimal import Decimal

from rolesync.domain.model import (
    CollectionRequirement,
    Criterion,
    DuneRequirement,
    GrantPolicy,
    TokenRequirement,
    Wallet,
)
from rolesync.domain.reconciliation import CriterionEvaluator
from tests.helpers.holdings import FakeCatalog, FakeHoldings

DMB = {"i1", "i2", "i3", "i4"}


def _evaluator(holdings: FakeHoldings, catalog: FakeCatalog | None = None) -> CriterionEvaluator:
    return CriterionEvaluator(holdings=holdings, catalog=catalog or FakeCatalog({"dmb": DMB}))


def test_collection_count_sums_across_wallets() -> None:
    holdings = FakeHoldings(inscriptions={"D1": {"i1", "x9"}, "D2": {"i3"}})
    criterion = Criterion("role", CollectionRequirement("dmb", 2))

    satisfied = asyncio.run(
        _evaluator(holdings).is_satisfied(criterion, [Wallet("D1"), Wallet("D2")])
    )

    assert satisfied


def test_collection_count_below_threshold() -> None:
    holdings = FakeHoldings(inscriptions={"D1": {"i1", "x9", "x10"}})
    criterion = Criterion("role", CollectionRequirement("dmb", 2))

    assert not asyncio.run(_evaluator(holdings).is_satisfied(criterion, [Wallet("D1")]))


def test_zero_wallets_never_satisfy() -> None:
    holdings = FakeHoldings()
    criterion = Criterion("role", CollectionRequirement("dmb", 0))

    assert not asyncio.run(_evaluator(holdings).is_satisfied(criterion, []))
    assert holdings.calls == {}


def test_duplicate_wallets_are_counted_once() -> None:
    holdings = FakeHoldings(tokens={("D1", "DOGI"): 600})
    criterion = Criterion("role", TokenRequirement("DOGI", Decimal(1000)))
    wallets = [Wallet("D1"), Wallet("D1", provider="other")]

    assert not asyncio.run(_evaluator(holdings).is_satisfied(criterion, wallets))
    assert holdings.calls["token", "D1"] == 1


def test_token_balances_sum_exactly() -> None:
    holdings = FakeHoldings(
        tokens={("D1", "DOGI"): "0.1", ("D2", "DOGI"): "0.2"},
    )
    criterion = Criterion("role", TokenRequirement("DOGI", Decimal("0.3")))

    assert asyncio.run(
        _evaluator(holdings).is_satisfied(criterion, [Wallet("D1"), Wallet("D2")])
    )


def test_dune_balance_threshold() -> None:
    holdings = FakeHoldings(dunes={("D1", "dune"): 5})

    met = Criterion("role", DuneRequirement("dune", Decimal(5)))
    unmet = Criterion("role", DuneRequirement("dune", Decimal("5.01")))

    evaluator = _evaluator(holdings)
    assert asyncio.run(evaluator.is_satisfied(met, [Wallet("D1")]))
    assert not asyncio.run(evaluator.is_satisfied(unmet, [Wallet("D1")]))


def test_unknown_collection_fails_closed() -> None:
    holdings = FakeHoldings(inscriptions={"D1": DMB})
    criterion = Criterion("role", CollectionRequirement("missing", 0))

    assert not asyncio.run(_evaluator(holdings).is_satisfied(criterion, [Wallet("D1")]))


def test_any_policy_grants_when_one_criterion_is_met() -> None:
    holdings = FakeHoldings(inscriptions={"D1": {"i1"}})
    criteria = [
        Criterion("role", TokenRequirement("DOGI", Decimal(1000))),
        Criterion("role", CollectionRequirement("dmb", 1)),
    ]

    assert asyncio.run(
        _evaluator(holdings).evaluate_grant(criteria, [Wallet("D1")], policy=GrantPolicy.ANY)
    )


def test_all_policy_requires_every_criterion() -> None:
    holdings = FakeHoldings(inscriptions={"D1": {"i1"}}, tokens={("D1", "DOGI"): 10})
    criteria = [
        Criterion("role", CollectionRequirement("dmb", 1)),
        Criterion("role", TokenRequirement("DOGI", Decimal(1000))),
    ]
    evaluator = _evaluator(holdings)

    assert not asyncio.run(
        evaluator.evaluate_grant(criteria, [Wallet("D1")], policy=GrantPolicy.ALL)
    )
    holdings.tokens["D1", "DOGI"] = Decimal(1000)
    assert asyncio.run(evaluator.evaluate_grant(criteria, [Wallet("D1")], policy=GrantPolicy.ALL))


def test_any_policy_stops_at_first_met_criterion() -> None:
    holdings = FakeHoldings(inscriptions={"D1": {"i1"}})
    criteria = [
        Criterion("role", CollectionRequirement("dmb", 1)),
        Criterion("role", TokenRequirement("DOGI", Decimal(1))),
    ]

    assert asyncio.run(_evaluator(holdings).evaluate_grant(criteria, [Wallet("D1")]))
    assert holdings.calls["token", "D1"] == 0
