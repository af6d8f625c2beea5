"""Grant reconciliation: criterion evaluation and the per-pass engine."""

from __future__ import annotations

from .contracts import GrantAction, GrantDecision, PassResult, decide
from .engine import Reconciler
from .evaluator import CriterionEvaluator

__all__ = [
    "CriterionEvaluator",
    "GrantAction",
    "GrantDecision",
    "PassResult",
    "Reconciler",
    "decide",
]
