"""Domain errors raised by the services and mapped to HTTP status codes in main."""


class ServiceError(Exception):
    status_code = 400
    default_detail = "Bad request"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(ServiceError):
    # One fixed message for every verification failure.
    status_code = 401
    default_detail = "Unauthorized"

    def __init__(self):
        super().__init__(self.default_detail)


class Forbidden(ServiceError):
    status_code = 403
    default_detail = "Forbidden"


class NotFound(ServiceError):
    status_code = 404
    default_detail = "Not found"


class Conflict(ServiceError):
    status_code = 409
    default_detail = "Already exists"
