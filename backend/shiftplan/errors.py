# Overview: Domain error taxonomy shared by services, listeners, and routes.

"""
Planning Errors

Every business-rule failure raised by the services is one of the four
kinds below. Routes map them to HTTP status codes through ``status_code``;
listeners report them in exchange confirmations. Storage and transport
failures are not wrapped: they surface as SQLAlchemyError (or the
transport's own exception) and are treated as transient.
"""


class PlanningError(ValueError):
    """Base class for business-rule violations. Never retried as-is."""

    status_code = 400
    kind = "PLANNING_ERROR"


class NotFoundError(PlanningError):
    """Referenced entity id does not exist."""

    status_code = 404
    kind = "NOT_FOUND"


class ValidationError(PlanningError):
    """Malformed input: end <= start, missing field, mismatched expected owner."""

    status_code = 400
    kind = "VALIDATION"


class InvalidStateError(PlanningError):
    """Operation not permitted in the entity's current lifecycle state."""

    status_code = 409
    kind = "INVALID_STATE"


class ConflictError(PlanningError):
    """Uniqueness violation (e.g. a second schedule for the same week)."""

    status_code = 409
    kind = "CONFLICT"
