"""Optimistic list updates with confirm/rollback."""
from .reconciler import (
    PENDING_FIELD,
    OptimisticChange,
    optimistic_add,
    optimistic_update,
    optimistic_delete,
    confirm_add,
    confirm_update,
    generate_temp_id,
    is_pending,
)
from .optimistic_list import OptimisticList, PendingMutation, PendingState
