"""
Application error taxonomy.

Services raise these; the API layer renders them as
``{"error": <kind>, "detail": <message>}`` with the mapped status code.
"""


class AppError(Exception):
    kind = "internal"
    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(AppError):
    kind = "unauthenticated"
    status_code = 401
    default_detail = "Invalid authentication credentials"


class Forbidden(AppError):
    kind = "forbidden"
    status_code = 403
    default_detail = "You do not own this resource"


class NotFound(AppError):
    kind = "not_found"
    status_code = 404
    default_detail = "Resource not found"


class InvalidInput(AppError):
    kind = "invalid_input"
    status_code = 400
    default_detail = "Invalid input"


class NoPriorDonation(InvalidInput):
    kind = "no_prior_donation"
    default_detail = "You have not donated to this campaign"


class Conflict(AppError):
    kind = "conflict"
    status_code = 400
    default_detail = "Request conflicts with the current state"


class Upstream(AppError):
    kind = "upstream"
    status_code = 502
    default_detail = "Upstream provider error"


class Internal(AppError):
    pass
