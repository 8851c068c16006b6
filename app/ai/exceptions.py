"""Exceptions raised while running external AI scripts."""


class ProcessInvocationError(RuntimeError):
    """Base exception raised when an external interpreter process fails."""


class ProcessLaunchError(ProcessInvocationError):
    """Raised when the interpreter process cannot be started at all.

    Covers OS failures as well as arguments the spawn primitive rejects, such
    as an embedded NUL byte or an invalid environment variable name.
    """

    def __init__(self, executable: str, error: Exception) -> None:
        super().__init__(f"Failed to start '{executable}': {error}")
        self.executable = executable
        self.original_error = error


class PayloadEncodingError(ProcessInvocationError):
    """Raised when the stdin payload cannot be serialized to JSON."""

    def __init__(self, error: Exception) -> None:
        super().__init__(f"Could not encode payload as JSON: {error}")
        self.original_error = error


class NonZeroExitError(ProcessInvocationError):
    """Raised when the process ran but terminated with a non-zero status."""

    def __init__(self, exit_code: int, stderr_text: str, stdout_text: str) -> None:
        diagnostic = stderr_text or stdout_text
        super().__init__(f"Python exited with code {exit_code}: {diagnostic}")
        self.exit_code = exit_code
        self.stderr_text = stderr_text
        self.stdout_text = stdout_text


class InvocationTimeoutError(ProcessInvocationError):
    """Raised when the process outlives the configured deadline."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Python process timed out after {timeout:g} seconds")
        self.timeout = timeout


class OutputTooLargeError(ProcessInvocationError):
    """Raised when a process writes more than the allowed bytes to a stream."""

    def __init__(self, stream: str, limit: int) -> None:
        super().__init__(f"Python process {stream} exceeded {limit} bytes")
        self.stream = stream
        self.limit = limit


class UnsupportedFileTypeError(ValueError):
    """Raised when text extraction is requested for an unknown file type."""

    def __init__(self, file_type: str) -> None:
        super().__init__(f"Unsupported file type: {file_type}")
        self.file_type = file_type


class CapabilityError(RuntimeError):
    """Raised by :class:`~app.ai.service.AIService` when a capability fails."""

    def __init__(self, capability: str, label: str, error: Exception) -> None:
        super().__init__(f"{label}: {error}")
        self.capability = capability
        self.original_error = error


__all__ = [
    "CapabilityError",
    "InvocationTimeoutError",
    "NonZeroExitError",
    "OutputTooLargeError",
    "PayloadEncodingError",
    "ProcessInvocationError",
    "ProcessLaunchError",
    "UnsupportedFileTypeError",
]
