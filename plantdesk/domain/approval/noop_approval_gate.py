from .entities import GateDecision


class NoopApprovalGate:
    def decide(self, actor_role, action, **kwargs) -> GateDecision:
        return GateDecision.DIRECT
