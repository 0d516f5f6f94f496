"""Lookup tables embedded in the binary trip response."""

import codecs
import logging
import struct
from dataclasses import dataclass, field

from hafas_trips.adapters.hafas_legacy.byte_arena import ByteArena
from hafas_trips.adapters.hafas_legacy.profile import LegacyProfile
from hafas_trips.domain.exceptions import InvalidPayloadError, TruncatedPayloadError
from hafas_trips.domain.models.line import LineAttr
from hafas_trips.domain.models.location import Location, LocationType, Point

logger = logging.getLogger(__name__)

STATION_RECORD_SIZE = 14
DEFAULT_CHARSET = "ascii"

_STATION_RECORD = struct.Struct("<HIii")

WHEEL_CHAIR_PREFIXES = ("bf ",)
BICYCLE_PREFIXES = ("FA ", "FB ", "FR ")
ON_DEMAND_PREFIXES = ("$R ", "ga ", "ja ", "Vs ", "mu ", "mx ")


class StringTable:
    """NUL-terminated strings addressed by 2-byte pointers relative to the table start.

    Pointer 0 means "absent". Strings are decoded with US-ASCII until the
    payload's own charset name (itself a table string) has been bound.
    """

    def __init__(self, arena: ByteArena, start: int, length: int) -> None:
        if length < 0:
            raise InvalidPayloadError(f"negative strings table length: {length}")
        self._table = arena.slice(start, start + length)
        self._charset = DEFAULT_CHARSET

    @property
    def charset(self) -> str:
        return self._charset

    def bind_charset(self, name: str | None) -> None:
        """Apply the payload charset read through this table."""
        if not name:
            raise InvalidPayloadError("missing string encoding")
        try:
            self._charset = codecs.lookup(name).name
        except LookupError as e:
            raise InvalidPayloadError(f"unknown string encoding: {name}") from e
        logger.debug(f"Strings table bound to charset {self._charset}")

    def resolve(self, pointer: int) -> str | None:
        if pointer == 0:
            return None
        if pointer >= len(self._table):
            raise TruncatedPayloadError(
                f"pointer {pointer} cannot exceed strings table size {len(self._table)}"
            )
        end = self._table.find(b"\x00", pointer)
        if end < 0:
            raise TruncatedPayloadError(f"unterminated string at pointer {pointer}")
        try:
            return self._table[pointer:end].decode(self._charset).strip()
        except UnicodeDecodeError as e:
            raise InvalidPayloadError(
                f"string at pointer {pointer} is not valid {self._charset}"
            ) from e

    def read(self, arena: ByteArena) -> str | None:
        """Consume a 2-byte pointer at the arena cursor and resolve it."""
        return self.resolve(arena.read_u16())


class StationTable:
    """Fixed 14-byte station records addressed by record index."""

    def __init__(
        self,
        arena: ByteArena,
        start: int,
        length: int,
        strings: StringTable,
        profile: LegacyProfile,
    ) -> None:
        if length < 0:
            raise InvalidPayloadError(f"negative stations table length: {length}")
        self._table = arena.slice(start, start + length)
        self._strings = strings
        self._profile = profile

    def resolve(self, index: int) -> Location:
        ptr = index * STATION_RECORD_SIZE
        if ptr + STATION_RECORD_SIZE > len(self._table):
            raise TruncatedPayloadError(
                f"pointer {ptr} cannot exceed stations table size {len(self._table)}"
            )
        name_ptr, station_id, lon, lat = _STATION_RECORD.unpack_from(self._table, ptr)
        place, name = self._profile.split_station_name(self._strings.resolve(name_ptr))
        return Location(
            type=LocationType.STATION,
            id=str(station_id) if station_id != 0 else None,
            place=place,
            name=name,
            coord=Point(lat_e6=lat, lon_e6=lon),
        )

    def read(self, arena: ByteArena) -> Location:
        """Consume a 2-byte record index at the arena cursor and resolve it."""
        return self.resolve(arena.read_u16())


class AttributeTable:
    """Key/value string-pointer blocks addressed in 4-byte units from a base offset.

    A block ends at a NUL key. Values of keys the caller does not ask for are
    skipped without being resolved.
    """

    def __init__(self, arena: ByteArena, base_offset: int, strings: StringTable) -> None:
        self._arena = arena
        self._base_offset = base_offset
        self._strings = strings

    def read(self, index: int, keys: frozenset[str]) -> dict[str, str | None]:
        arena = self._arena.seek(self._base_offset + index * 4)
        values: dict[str, str | None] = {}
        while True:
            key = self._strings.read(arena)
            if key is None:
                return values
            if key in keys:
                values[key] = self._strings.read(arena)
            else:
                arena.skip(2)


@dataclass(frozen=True)
class Remarks:
    """Line remarks classified from a comment table entry."""

    attrs: frozenset[LineAttr] = field(default_factory=frozenset)
    on_demand: bool = False
    comment: str | None = None
    texts: tuple[str, ...] = ()


def classify_remarks(comments: list[str]) -> Remarks:
    attrs: set[LineAttr] = set()
    on_demand = False
    comment = None
    for text in comments:
        if text.startswith(WHEEL_CHAIR_PREFIXES):
            attrs.add(LineAttr.WHEEL_CHAIR_ACCESS)
        elif text.startswith(BICYCLE_PREFIXES):
            attrs.add(LineAttr.BICYCLE_CARRIAGE)
        elif text.startswith(ON_DEMAND_PREFIXES):
            on_demand = True
            comment = text[5:]
    return Remarks(
        attrs=frozenset(attrs), on_demand=on_demand, comment=comment, texts=tuple(comments)
    )


class CommentTable:
    """Variable-length remark lists: a count followed by that many string pointers."""

    def __init__(self, arena: ByteArena, start: int, length: int, strings: StringTable) -> None:
        if length < 0:
            raise InvalidPayloadError(f"negative comments table length: {length}")
        self._table = arena.slice(start, start + length)
        self._strings = strings

    def resolve(self, pointer: int) -> list[str]:
        if pointer >= len(self._table):
            raise TruncatedPayloadError(
                f"pointer {pointer} cannot exceed comments table size {len(self._table)}"
            )
        entry = ByteArena(self._table).seek(pointer)
        count = entry.read_u16()
        comments = []
        for _ in range(count):
            text = self._strings.read(entry)
            if text is not None:
                comments.append(text)
        return comments

    def read(self, arena: ByteArena) -> list[str]:
        """Consume a 2-byte comment pointer at the arena cursor and resolve it."""
        return self.resolve(arena.read_u16())

    def read_remarks(self, arena: ByteArena) -> Remarks:
        return classify_remarks(self.read(arena))
