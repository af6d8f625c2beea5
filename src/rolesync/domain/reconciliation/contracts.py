"""Decision table and result records for reconciliation passes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class GrantDecision(StrEnum):
    GRANT = "grant"
    REVOKE = "revoke"
    KEEP = "keep"


def decide(*, currently_granted: bool, satisfied: bool) -> GrantDecision:
    """Level-triggered transition: compare desired state with the live grant."""

    if satisfied and not currently_granted:
        return GrantDecision.GRANT
    if currently_granted and not satisfied:
        return GrantDecision.REVOKE
    return GrantDecision.KEEP


@dataclass(frozen=True, slots=True)
class GrantAction:
    community_id: str
    member_id: str
    grant_id: str
    decision: GrantDecision
    applied: bool = True


@dataclass(slots=True)
class PassResult:
    """Counters and applied actions for one reconciliation pass."""

    communities: int = 0
    skipped_communities: int = 0
    skipped_grants: int = 0
    evaluated: int = 0
    skipped_members: int = 0
    unchanged: int = 0
    failed: int = 0
    actions: list[GrantAction] = field(default_factory=list[GrantAction])

    @property
    def granted(self) -> int:
        return sum(
            1 for a in self.actions if a.applied and a.decision is GrantDecision.GRANT
        )

    @property
    def revoked(self) -> int:
        return sum(
            1 for a in self.actions if a.applied and a.decision is GrantDecision.REVOKE
        )

    def applied_actions(self) -> list[GrantAction]:
        return [action for action in self.actions if action.applied]

    def summary(self) -> str:
        return (
            f"communities={self.communities} (skipped {self.skipped_communities}), "
            f"grants_skipped={self.skipped_grants}, evaluated={self.evaluated}, "
            f"members_skipped={self.skipped_members}, granted={self.granted}, "
            f"revoked={self.revoked}, unchanged={self.unchanged}, failed={self.failed}"
        )
