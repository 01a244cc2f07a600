"""Single entry point for create/update/delete."""
from .entities import MutationAction, MutationRequest, MutationResult, MutationState
from .reporting import ErrorReporter, LoggingErrorReporter
from .gateway import MutationGateway
