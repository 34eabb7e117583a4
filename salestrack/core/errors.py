# salestrack/core/errors.py

"""
Domain error taxonomy.

Raised by services and the access gate, turned into HTTP responses by the
handlers registered in ``salestrack.main``. The aggregation and objective
modules never raise these: they treat bad input as empty.
"""


class DomainError(Exception):
    """Base class for errors the API maps to a structured response."""


class ValidationError(DomainError):
    """User-correctable input problem, reported field by field."""

    def __init__(self, errors: dict[str, str]):
        super().__init__("Validation failed")
        self.errors = dict(errors)


class AccessDenied(DomainError):
    """Role or ownership violation. The message never names the rule."""

    def __init__(self):
        super().__init__("Access refused")


class NotFound(DomainError):
    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class UpstreamFailure(DomainError):
    """An outside service (email, identity store) failed or timed out."""

    def __init__(self, service: str, reason: str = ""):
        message = f"{service} is unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.service = service
        self.reason = reason
