"""Domain errors raised by the lifecycle services.

The HTTP layer maps each class to a status code and an error code in the
standard error envelope; services never build HTTP responses themselves.
"""


class TrackerError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code = 400
    code = "bad_request"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TrackerError):
    """Missing field, unknown status, malformed date range and the like."""

    status_code = 400
    code = "invalid_request"


class NotFoundError(TrackerError):
    """A project, issue, sprint, user or parent reference does not resolve."""

    status_code = 404
    code = "not_found"


class ForbiddenError(TrackerError):
    """The authorization policy denied the action."""

    status_code = 403
    code = "forbidden"
