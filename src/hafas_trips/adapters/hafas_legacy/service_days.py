"""Service-day calendar and schedule time reconstruction.

Trips do not carry absolute timestamps. A result has a base date, each trip
points at a bitmask of the days it runs on (the first set bit is the day it
actually runs), and times are stored as ``hhmm`` relative to that day.
"""

import logging
from datetime import date, datetime, timedelta, tzinfo

from hafas_trips.adapters.hafas_legacy.byte_arena import ByteArena
from hafas_trips.adapters.hafas_legacy.tables import StringTable
from hafas_trips.domain.exceptions import InvalidPayloadError

logger = logging.getLogger(__name__)

EPOCH = date(1980, 1, 1)
NO_TIME = 0xFFFF


def first_service_day_offset(bit_base: int, bitmask: bytes) -> tuple[int, bool]:
    """Day offset of the first set bit in a service-day bitmask.

    Zero bytes advance by 8 days; the first non-zero byte is scanned from its
    most significant bit. Returns the offset and whether a set bit was found;
    without one the offset accumulated over the whole range is returned.
    """
    offset = bit_base * 8
    for byte in bitmask:
        if byte == 0:
            offset += 8
            continue
        while not byte & 0x80:
            byte <<= 1
            offset += 1
        return offset, True
    return offset, False


class ServiceDayCalendar:
    """Resolves on which day, relative to the base date, a trip runs."""

    def __init__(self, arena: ByteArena, table_ptr: int, strings: StringTable) -> None:
        self._arena = arena
        self._table_ptr = table_ptr
        self._strings = strings

    def day_offset(self, entry_offset: int) -> int:
        arena = self._arena.seek(self._table_ptr + entry_offset)
        service_days_text = self._strings.read(arena)
        bit_base = arena.read_u16()
        bit_length = arena.read_u16()
        offset, found = first_service_day_offset(bit_base, arena.read_bytes(bit_length))
        if not found:
            logger.warning(
                f"No service day bit set in {bit_length} bytes at table offset {entry_offset} "
                f"({service_days_text!r}), using day offset {offset}"
            )
        return offset


def decode_base_date(days: int) -> date:
    """Day number counted from 1980-01-01 as day 1."""
    return EPOCH + timedelta(days=days - 1)


def decode_time(value: int, base_date: date, day_offset: int, tz: tzinfo) -> datetime | None:
    """Turn an ``hhmm`` value into an aware instant; 0xffff means no time.

    Hours may exceed 23 for trips running past midnight.
    """
    if value == NO_TIME:
        return None

    hours, minutes = divmod(value, 100)
    if minutes > 60:
        raise InvalidPayloadError(f"minutes out of range: {minutes}")

    day = base_date + timedelta(days=day_offset)
    naive = datetime(day.year, day.month, day.day) + timedelta(hours=hours, minutes=minutes)
    localize = getattr(tz, "localize", None)
    if localize is not None:
        return localize(naive)
    return naive.replace(tzinfo=tz)


def read_time(arena: ByteArena, base_date: date, day_offset: int, tz: tzinfo) -> datetime | None:
    return decode_time(arena.read_u16(), base_date, day_offset, tz)
