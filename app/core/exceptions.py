from fastapi import status


class BookingAPIError(Exception):
    """Base error carrying the HTTP status it maps to at the API boundary."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def code(self) -> str:
        return f"HTTP_{self.status_code}"


class BadRequestError(BookingAPIError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(BookingAPIError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(BookingAPIError):
    status_code = status.HTTP_409_CONFLICT


class UpstreamError(BookingAPIError):
    """Square returned a non-2xx status, an unreadable body, or could not be reached.

    The upstream status and message are forwarded to the caller unchanged.
    """

    status_code = status.HTTP_502_BAD_GATEWAY
