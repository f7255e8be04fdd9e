from .payloads import PreparedRequest, build_request_body, to_r1_messages
from .streaming import create_openrouter_stream, zero_completion_retry_condition

__all__ = [
    "PreparedRequest",
    "build_request_body",
    "to_r1_messages",
    "create_openrouter_stream",
    "zero_completion_retry_condition",
]
