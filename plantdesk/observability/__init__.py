from .tracing import Span, new_trace_id, log_event, configure_logging
