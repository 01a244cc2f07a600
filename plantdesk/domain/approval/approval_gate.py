from typing import Protocol

from .entities import ApprovalAction, GateDecision


class ApprovalGate(Protocol):
    def decide(
        self,
        actor_role: str,
        action: ApprovalAction,
        *,
        entity_kind: str = "",
    ) -> GateDecision:
        ...
