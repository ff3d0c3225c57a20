"""Custom resource plumbing: envelopes, notifier, reinvocation and the state machine."""

from .envelope import (
    InvalidPropertiesError,
    Request,
    RequestType,
    Response,
    ResponseStatus,
)
from .notifier import CompletionNotifier
from .provider import CustomResourceProvider, OperationState, PollResult
from .reinvoker import LambdaReinvoker, Reinvoker, ScheduledReinvoker, build_reinvoker

__all__ = [
    "CompletionNotifier",
    "CustomResourceProvider",
    "InvalidPropertiesError",
    "LambdaReinvoker",
    "OperationState",
    "PollResult",
    "Reinvoker",
    "Request",
    "RequestType",
    "Response",
    "ResponseStatus",
    "ScheduledReinvoker",
    "build_reinvoker",
]
