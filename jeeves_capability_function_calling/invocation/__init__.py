"""
Invocation handling: find a capability call in model text, validate it,
and run it.

    text -> extract() -> InvocationRequest -> Dispatcher.dispatch() -> CapabilityResult
"""

from .types import InvocationRequest, ValidatedCall
from .extractor import extract, looks_like_invocation, encode_invocation
from .dispatcher import Dispatcher

__all__ = [
    "InvocationRequest",
    "ValidatedCall",
    "extract",
    "looks_like_invocation",
    "encode_invocation",
    "Dispatcher",
]
