class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is missing, malformed or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced employee, task or record does not exist."""


class AuthorizationError(DomainError):
    """Raised when the caller's role lacks permission for an action."""


class InvalidTransitionError(DomainError):
    """Raised when a status change is not in the allowed transition table."""

    def __init__(self, from_status, to_status, detail: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        message = f"Transition {_label(from_status)} -> {_label(to_status)} is not allowed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ConflictError(DomainError):
    """Raised when a concurrent write won the race (stale state)."""


def _label(status) -> str:
    return getattr(status, "value", str(status))
