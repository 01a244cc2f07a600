"""This module routes edits and deletes to human approval."""
from .entities import ApprovalAction, ApprovalStatus, GateDecision, ApprovalRecord
from .approval_gate import ApprovalGate
from .default_approval_gate import DefaultApprovalGate
from .noop_approval_gate import NoopApprovalGate
from .repository import (
    ApprovalRepositoryProtocol,
    RemoteApprovalRepository,
    InMemoryApprovalRepository,
)
