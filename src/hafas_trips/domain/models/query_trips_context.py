"""Continuation token domain model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class QueryTripsContext:
    """Opaque server state for requesting earlier or later trips.

    Created once per successful decode and echoed verbatim on the next page
    request. ``used_buffer_size`` is the number of decompressed bytes the
    decode consumed; it only sizes the next read buffer.
    """

    ident: str | None
    seq_nr: int
    ld: str | None
    used_buffer_size: int
    can_query_more: bool

    @property
    def can_query_later(self) -> bool:
        return self.can_query_more

    @property
    def can_query_earlier(self) -> bool:
        return self.can_query_more

    def next_buffer_size(self, base_size: int) -> int:
        """Buffer size hint for the following page."""
        return base_size + self.used_buffer_size
