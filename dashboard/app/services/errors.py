class UpstreamError(Exception):
    """The restaurant API rejected a request or could not be reached."""

    status_code: int | None = None

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ReservationConflict(UpstreamError):
    status_code = 409


class UpstreamValidationError(UpstreamError):
    status_code = 400


class UpstreamServerError(UpstreamError):
    status_code = 500


class UpstreamUnavailable(UpstreamError):
    """Transport failure or timeout; no response was received."""


class ScheduleLoadError(Exception):
    retryable = True

    def __init__(self, message: str, *, date: str, timezone: str) -> None:
        super().__init__(message)
        self.message = message
        self.date = date
        self.timezone = timezone


class DragError(Exception):
    pass


class ReservationBusy(DragError):
    pass


class ReservationNotFound(Exception):
    pass
