"""Bridge between the API and the external AI model scripts."""

from .exceptions import (
    CapabilityError,
    InvocationTimeoutError,
    NonZeroExitError,
    OutputTooLargeError,
    PayloadEncodingError,
    ProcessInvocationError,
    ProcessLaunchError,
    UnsupportedFileTypeError,
)
from .invoker import InvocationRequest, ProcessInvoker
from .service import AIService, InvocationAuditEntry

__all__ = [
    "AIService",
    "CapabilityError",
    "InvocationAuditEntry",
    "InvocationRequest",
    "InvocationTimeoutError",
    "NonZeroExitError",
    "OutputTooLargeError",
    "PayloadEncodingError",
    "ProcessInvocationError",
    "ProcessInvoker",
    "ProcessLaunchError",
    "UnsupportedFileTypeError",
]
