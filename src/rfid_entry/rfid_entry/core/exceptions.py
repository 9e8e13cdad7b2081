class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a requested user or record does not exist."""


class TokenError(DomainError):
    """Raised when a signup token is invalid, expired or does not match the tag."""


class StoreUnavailableError(Exception):
    """Raised when the key-value store cannot be reached."""
