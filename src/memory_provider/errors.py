"""Exceptions raised by the memory provider and its debug session model."""


class MemoryProviderError(RuntimeError):
    """Base class for memory provider errors."""


class NoActiveSessionError(MemoryProviderError):
    """Raised when no debug session is currently attached."""

    def __init__(self):
        super().__init__("No active debug session.")


class NoActiveFrameError(MemoryProviderError):
    """Raised when the active session has no selected stack frame."""

    def __init__(self):
        super().__init__("No active stack frame.")


class DAPRequestError(MemoryProviderError):
    """
    Raised when the debug adapter answers a request with `success: false`.

    :param command: The command of the rejected request.
    :param message: The error message reported by the adapter.
    """

    def __init__(self, command: str, message: str = ""):
        self.command = command
        self.message = message
        super().__init__(f"Request '{command}' failed: {message or 'unknown error'}")
