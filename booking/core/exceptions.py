from fastapi import HTTPException, status


class BookingError(HTTPException):
    """Base class for errors surfaced to API clients in the error envelope."""

    error_code = "error"

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class NotFoundError(BookingError):
    error_code = "not_found"

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class UnauthorizedError(BookingError):
    error_code = "unauthorized"

    def __init__(self, detail: str = "Not authorized to access this resource"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail)


class ValidationError(BookingError):
    error_code = "validation"

    def __init__(self, detail: str):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class ConflictError(BookingError):
    error_code = "conflict"

    def __init__(self, detail: str = "There is already an appointment scheduled at this time"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)
