from plantdesk.domain.policies import PolicyProvider

from .entities import ApprovalAction, GateDecision


class DefaultApprovalGate:
    """
    Approval gate backed by the role policy table.

    Pure lookup: it neither logs nor creates records. Building and storing the
    approval record is the mutation gateway's job.
    """

    def __init__(self, policy_provider: PolicyProvider) -> None:
        self._policies = policy_provider

    def decide(
        self,
        actor_role: str,
        action: ApprovalAction,
        *,
        entity_kind: str = "",
    ) -> GateDecision:
        action = ApprovalAction(action)  # creates are never gated
        policy = self._policies.for_entity(entity_kind=entity_kind)

        if policy.requires_approval(actor_role):
            return GateDecision.REQUIRES_APPROVAL
        return GateDecision.DIRECT
