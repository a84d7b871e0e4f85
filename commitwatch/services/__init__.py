"""Service layer: business logic orchestration."""


class ServiceError(Exception):
    """Base service exception."""


class NotFoundError(ServiceError):
    """Resource not found (-> HTTP 404)."""


class ConflictError(ServiceError):
    """Business rule conflict (-> HTTP 409)."""


class AlreadySubscribedError(ConflictError):
    """The (email, username) subscription already exists (-> HTTP 409)."""


class ValidationError(ServiceError):
    """Input validation error (-> HTTP 422)."""


class StoreError(ServiceError):
    """Unexpected persistence failure (-> HTTP 500)."""
