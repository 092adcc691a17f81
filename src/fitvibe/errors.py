"""Domain exceptions mapped to HTTP status codes by the global error handlers."""

from __future__ import annotations


class NotFoundError(LookupError):
    """Requested entity does not exist (404)."""

    status_code = 404

    def __init__(self, entity: str, key: object | None = None) -> None:
        self.entity = entity
        self.key = key
        msg = f"{entity} not found" if key is None else f"{entity} {key} not found"
        super().__init__(msg)


class ForbiddenError(PermissionError):
    """Caller may not perform this operation on the entity (403)."""

    status_code = 403


class DomainRuleError(ValueError):
    """A business rule or state-transition guard was violated (400)."""

    status_code = 400


class ConflictError(DomainRuleError):
    """The operation conflicts with existing state (409)."""

    status_code = 409


class TooManyRequestsError(DomainRuleError):
    """A per-user action quota was exceeded (429)."""

    status_code = 429
