class RemoteFailure(RuntimeError):
    """Raised when a remote call errors or reports that it did not apply."""

    def __init__(self, message: str, rpc: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.rpc = rpc
        self.status_code = status_code


class ConfigurationError(ValueError):
    """Raised when the remote operating settings are missing or unreadable."""
    pass
