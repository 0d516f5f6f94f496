"""Exceptions raised while querying and decoding trips."""

from enum import Enum

from hafas_trips.domain.models.error_details import ErrorDetails


class TripQueryError(Exception):
    """Base class for all trip query failures."""


class InvalidPayloadError(TripQueryError):
    """The response violates the binary layout. Fatal, never retried locally."""


class TruncatedPayloadError(InvalidPayloadError):
    """An offset or length points beyond the buffered payload."""


class SessionExpiredReason(Enum):
    """Why the server-side search session is gone."""

    FAULT_CODE = "fault_code"  # server answered with a session fault
    SEQUENCE_RESET = "sequence_reset"  # continuation answered with sequence number 0


class SessionExpiredError(TripQueryError):
    """The server no longer knows the search; start a new query."""

    def __init__(self, reason: SessionExpiredReason, fault_code: int | None = None) -> None:
        self.reason = reason
        self.fault_code = fault_code
        detail = f" (fault {fault_code})" if fault_code is not None else ""
        super().__init__(f"session expired: {reason.value}{detail}")


class UnknownFaultError(TripQueryError):
    """The server reported a fault code outside the known taxonomy."""

    def __init__(self, fault_code: int, request_url: str | None) -> None:
        self.details = ErrorDetails(
            fault_code=fault_code,
            request_url=request_url,
            reason=f"error {fault_code} on {request_url}",
        )
        super().__init__(self.details.reason)

    @property
    def fault_code(self) -> int:
        # always set by __init__
        return self.details.fault_code  # type: ignore[return-value]


class TripServiceHttpError(TripQueryError):
    """The trip service answered with a non-success HTTP status."""

    def __init__(self, details: ErrorDetails) -> None:
        self.details = details
        super().__init__(details.reason)
