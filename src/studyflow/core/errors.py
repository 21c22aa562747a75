"""Error taxonomy shared by services and the HTTP layer."""


class ApiError(Exception):
    """Base error carrying the client-facing detail and HTTP status."""

    status_code = 500

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    """Bad or missing input, out-of-range values."""

    status_code = 400


class AuthenticationError(ApiError):
    status_code = 401


class AuthorizationError(ApiError):
    """Role or ownership denial."""

    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    """Uniqueness violations and deletes blocked by dependent rows."""

    status_code = 409


class InternalError(ApiError):
    status_code = 500
