"""
Error taxonomy for the buildpack shim service.

Every failure raised while handling a shim request is a ``ShimError``. The
two concrete kinds carry the HTTP status they map to, so the status decision
is made once, in the Flask error handler, rather than at each failing step.

    BadRequestError (400)  - invalid input or an unavailable v2 buildpack
    ServiceError    (500)  - local filesystem, archive or serialization failure
"""


class ShimError(Exception):
    """Base class for errors surfaced to the HTTP client."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(ShimError):
    """Bad request, HTTP status code 400."""

    status_code = 400


class ServiceError(ShimError):
    """Unrecoverable service failure, HTTP status code 500."""

    status_code = 500
