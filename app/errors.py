"""Exception taxonomy shared by the MeroShare client, linking flow and batch."""

from __future__ import annotations


class MeroShareError(Exception):
    pass


class Unauthenticated(MeroShareError):
    """Login was rejected or the platform did not hand back a token.

    Bad credentials and platform outages look the same at this layer.
    """


class InvalidCredentials(Unauthenticated):
    """The platform answered the login with 401."""


class FetchFailed(MeroShareError):
    pass


class NoBankRecord(MeroShareError):
    """The bank-details lookup returned an empty list."""


class ApplicationError(MeroShareError):
    """Base for every failed share submission."""


class InvalidPin(ApplicationError):
    pass


class ConflictOther(ApplicationError):
    def __init__(self, message: str) -> None:
        super().__init__(f"conflict: {message}")
        self.upstream_message = message


class SubmissionFailed(ApplicationError):
    def __init__(self, status_code: int | None, message: str = "") -> None:
        detail = message or f"failed to apply for share: {status_code}"
        super().__init__(detail)
        self.status_code = status_code


class DateConversionError(ValueError):
    pass


class OutOfRangeError(DateConversionError):
    pass


class InvalidMonthError(DateConversionError):
    pass


class InvalidDayError(DateConversionError):
    pass


class InvalidBSDateError(DateConversionError):
    pass


class StoreError(Exception):
    """Raised by the repositories when the database rejects an operation."""
