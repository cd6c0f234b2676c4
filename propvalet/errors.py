"""PropValet exception types."""


class PropValetError(Exception):
    """Base class for errors raised by PropValet components."""


class EmailGuardError(PropValetError):
    """An outbound email was refused by the email context guard.

    Always a hard failure: the caller must not attempt delivery.
    """

    def __init__(self, reason: str, context_type: str = ""):
        super().__init__(reason)
        self.reason = reason
        self.context_type = context_type


class EmbeddingUnavailableError(PropValetError):
    """No embedding backend is configured, or the backend call failed.

    Memory callers catch this and switch to their non-semantic fallback.
    """
