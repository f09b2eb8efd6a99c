class BookingError(Exception):
    """Base error for the booking API; carries the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    status_code = 400


class NotFoundError(BookingError):
    status_code = 404


class StorageError(BookingError):
    status_code = 500
