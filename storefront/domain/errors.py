# storefront/domain/errors.py


class ValidationError(ValueError):
    """Bad input to a storefront operation. Always surfaced to the caller."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class InvalidTransitionError(ValidationError):
    """Requested order status change is not allowed from the current state."""


class NotFoundError(LookupError):
    pass


class ExternalServiceError(RuntimeError):
    """
    A collaborator (database, catalog, payment provider) failed.
    The underlying exception is attached as __cause__, nothing is retried here.
    """

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service


class PersistenceDurabilityWarning(UserWarning):
    """Local storage write failed, in-memory state was kept."""
