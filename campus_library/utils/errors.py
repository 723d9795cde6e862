class ApiError(Exception):
    """Client-facing error carrying the HTTP status the boundary handler should use."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class NotFoundError(ApiError):
    def __init__(self, message: str = "Resource not found."):
        super().__init__(404, message)


class ForbiddenError(ApiError):
    def __init__(self, message: str = "You do not have permission to perform this action."):
        super().__init__(403, message)


class BadRequestError(ApiError):
    def __init__(self, message: str):
        super().__init__(400, message)


class ConflictError(ApiError):
    def __init__(self, message: str):
        super().__init__(409, message)
