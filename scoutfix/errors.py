"""Base error type shared by every fatal remediation failure."""


class RemediationError(Exception):
    """A fatal error that aborts the run.

    Args:
        message: Human-readable description of what failed
        hint: Optional location context (URL, file path) shown after the message
    """

    def __init__(self, message: str, hint: str | None = None):
        self.hint = hint
        super().__init__(message)
