"""Decoder for the legacy HAFAS binary trip-search response.

The payload is a schema-less pointer structure. Fixed offsets in the file
header lead to the service-day table, string table, station table, comment
table and an extension header; the extension header leads to trip details
(realtime overlay, intermediate stops), disruptions and attribute blocks.
Trips and legs are fixed-stride arrays starting at 0x4a.

Decoding is synchronous and owns all of its state: every call builds its own
tables over its own arena.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from hafas_trips.adapters.hafas_legacy.byte_arena import ByteArena, load_payload
from hafas_trips.adapters.hafas_legacy.disruptions import DisruptionResolver
from hafas_trips.adapters.hafas_legacy.faults import build_context, fault_result
from hafas_trips.adapters.hafas_legacy.products import (
    infer_product,
    normalize_line_administration,
    normalize_line_name,
)
from hafas_trips.adapters.hafas_legacy.profile import LegacyProfile
from hafas_trips.adapters.hafas_legacy.service_days import (
    ServiceDayCalendar,
    decode_base_date,
    read_time,
)
from hafas_trips.adapters.hafas_legacy.tables import (
    AttributeTable,
    CommentTable,
    StationTable,
    StringTable,
)
from hafas_trips.domain.exceptions import (
    InvalidPayloadError,
    SessionExpiredError,
    SessionExpiredReason,
)
from hafas_trips.domain.models.leg import IndividualLeg, IndividualType, Leg, PublicLeg
from hafas_trips.domain.models.line import Line
from hafas_trips.domain.models.location import Location, LocationType, Point
from hafas_trips.domain.models.query_trips_result import QueryTripsResult, QueryTripsStatus
from hafas_trips.domain.models.stop import Stop
from hafas_trips.domain.models.trip import Trip

logger = logging.getLogger(__name__)

# 384 KiB covers a typical first page
DEFAULT_BUFFER_SIZE = 384 * 1024

SUPPORTED_VERSIONS = frozenset({5, 6})

# File header offsets
LOCATIONS_OFFSET = 0x02
NUM_TRIPS_OFFSET = 0x1E
TABLE_POINTERS_OFFSET = 0x20
STATION_POINTERS_OFFSET = 0x36
EXTENSION_HEADER_POINTER_OFFSET = 0x46
TRIPS_BASE = 0x4A

TRIP_STRIDE = 12
LEG_STRIDE = 20
LEG_OVERLAY_SIZE = 16
STOP_RECORD_SIZE = 26

# Extension header
MIN_EXTENSION_HEADER_LENGTH = 0x2C
TRIP_ATTRS_HEADER_LENGTH = 0x30
TRIP_ATTRS_MIN_LENGTH = 0x32
EXT_SEQ_NR_OFFSET = 0x08
EXT_TRIP_ATTRS_OFFSET = 0x2C

TRIP_DETAILS_VERSION = 1
TRIP_CANCELLED = 2

CANCELLED_ARRIVAL_BIT = 0x10
CANCELLED_DEPARTURE_BIT = 0x20

LEG_TYPE_WALK = 1
LEG_TYPE_PUBLIC = 2
INDIVIDUAL_LEG_TYPES = frozenset({LEG_TYPE_WALK, 3, 4})

LOCATION_STATION = 1
LOCATION_ADDRESS = 2
LOCATION_POI = 3

ROUTING_TYPES = {
    "FOOT": IndividualType.WALK,
    "BIKE": IndividualType.BIKE,
    "CAR": IndividualType.CAR,
    "P+R": IndividualType.CAR,
}

TRIP_ATTR_KEYS = frozenset({"ConnectionId"})
LEG_ATTR_KEYS = frozenset({"Direction", "Class", "Category", "GisRoutingType", "AdminCode"})


@dataclass(frozen=True)
class TripDetailsLayout:
    """Layout constants from the head of the trip-details region."""

    index_offset: int
    leg_offset: int
    leg_size: int
    stops_size: int
    stops_offset: int


@dataclass(frozen=True)
class LegOverlay:
    """Realtime data for one leg."""

    predicted_departure: datetime | None
    predicted_arrival: datetime | None
    predicted_departure_platform: str | None
    predicted_arrival_platform: str | None
    arrival_cancelled: bool
    departure_cancelled: bool
    first_stop_index: int
    num_stops: int


def normalize_platform(platform: str | None) -> str | None:
    if platform is None:
        return None
    platform = platform.strip()
    return platform or None


class _ResponseHeader:
    """File header of a single decode: table pointers and the strings table."""

    def __init__(self, arena: ByteArena) -> None:
        self.arena = arena
        self.service_days_ptr = arena.seek(TABLE_POINTERS_OFFSET).read_u32()
        self.string_table_ptr = arena.read_u32()
        self.station_table_ptr = arena.seek(STATION_POINTERS_OFFSET).read_u32()
        self.comment_table_ptr = arena.read_u32()
        self.extension_header_ptr = arena.seek(EXTENSION_HEADER_POINTER_OFFSET).read_u32()
        self.extension_header_length = arena.seek(self.extension_header_ptr).read_u32()
        self.strings = StringTable(
            arena, self.string_table_ptr, self.service_days_ptr - self.string_table_ptr
        )

    def read_fault_code(self) -> int:
        if self.extension_header_length < MIN_EXTENSION_HEADER_LENGTH:
            raise InvalidPayloadError(f"too short: {self.extension_header_length}")
        return self.arena.seek(self.extension_header_ptr + 4 + 12).read_u16()

    def bind_charset(self) -> None:
        """Apply the charset named right after the fault code."""
        arena = self.arena.seek(self.extension_header_ptr + 4 + 12 + 2)
        arena.skip(14)
        self.strings.bind_charset(self.strings.read(arena))

    def read_num_trips(self) -> int:
        return self.arena.seek(NUM_TRIPS_OFFSET).read_u16()


class _ResponseReader:
    """State of a single decode with trips: result header, continuation fields and tables."""

    def __init__(self, header: _ResponseHeader, profile: LegacyProfile, continuation: bool) -> None:
        self.arena = header.arena
        self.profile = profile
        self.tz = profile.timezone
        self.strings = header.strings

        arena = self.arena.seek(LOCATIONS_OFFSET)
        self.result_origin = self.read_location()
        self.result_destination = self.read_location()
        arena.skip(10)
        self.base_date = decode_base_date(arena.read_u16())
        arena.read_u16()  # second date, unused

        arena.seek(header.extension_header_ptr + EXT_SEQ_NR_OFFSET)
        self.seq_nr = arena.read_u16()
        if self.seq_nr == 0:
            if continuation:
                raise SessionExpiredError(SessionExpiredReason.SEQUENCE_RESET)
            raise InvalidPayloadError("illegal sequence number: 0")

        self.ident = self.strings.read(arena)
        self.trip_details_ptr = arena.read_u32()
        if self.trip_details_ptr == 0:
            raise InvalidPayloadError("no connection details")
        arena.skip(4)
        disruptions_ptr = arena.read_u32()
        arena.skip(10)
        self.ld = self.strings.read(arena)
        attrs_offset = arena.read_u32()
        self.trip_attrs_ptr = self.read_trip_attrs_ptr(header)

        self.layout = self.read_trip_details_layout()
        self.stations = StationTable(
            arena,
            header.station_table_ptr,
            header.comment_table_ptr - header.station_table_ptr,
            self.strings,
            profile,
        )
        self.comments = CommentTable(
            arena,
            header.comment_table_ptr,
            self.trip_details_ptr - header.comment_table_ptr,
            self.strings,
        )
        self.attributes = AttributeTable(arena, attrs_offset, self.strings)
        self.calendar = ServiceDayCalendar(arena, header.service_days_ptr, self.strings)
        self.disruptions = DisruptionResolver(
            arena, disruptions_ptr, self.strings, self.attributes
        )

    def read_location(self) -> Location:
        arena = self.arena
        name = self.strings.read(arena)
        arena.skip(2)
        location_type = arena.read_u16()
        lon = arena.read_i32()
        lat = arena.read_i32()
        coord = Point(lat_e6=lat, lon_e6=lon)

        if location_type == LOCATION_STATION:
            place, name = self.profile.split_station_name(name)
            return Location(LocationType.STATION, place=place, name=name, coord=coord)
        if location_type == LOCATION_ADDRESS:
            place, name = self.profile.split_address(name)
            return Location(LocationType.ADDRESS, place=place, name=name, coord=coord)
        if location_type == LOCATION_POI:
            place, name = self.profile.split_poi(name)
            return Location(LocationType.POI, place=place, name=name, coord=coord)
        raise InvalidPayloadError(f"unknown type: {location_type}  {name}")

    def read_trip_attrs_ptr(self, header: _ResponseHeader) -> int:
        length = header.extension_header_length
        if length < TRIP_ATTRS_HEADER_LENGTH:
            return 0
        if length < TRIP_ATTRS_MIN_LENGTH:
            raise InvalidPayloadError(f"too short: {length}")
        return self.arena.seek(header.extension_header_ptr + EXT_TRIP_ATTRS_OFFSET).read_u32()

    def read_trip_details_layout(self) -> TripDetailsLayout:
        arena = self.arena.seek(self.trip_details_ptr)
        version = arena.read_u16()
        if version != TRIP_DETAILS_VERSION:
            raise InvalidPayloadError(f"unknown trip details version: {version}")
        arena.skip(2)
        return TripDetailsLayout(
            index_offset=arena.read_u16(),
            leg_offset=arena.read_u16(),
            leg_size=arena.read_u16(),
            stops_size=arena.read_u16(),
            stops_offset=arena.read_u16(),
        )

    def time(self, day_offset: int) -> datetime | None:
        return read_time(self.arena, self.base_date, day_offset, self.tz)

    def read_trip(self, trip_index: int) -> Trip | None:
        """Decode one trip; None if the server marks it cancelled."""
        arena = self.arena.seek(TRIPS_BASE + trip_index * TRIP_STRIDE)
        service_days_offset = arena.read_u16()
        legs_offset = arena.read_u32()
        num_legs = arena.read_u16()
        num_changes = arena.read_u16()
        arena.read_u16()  # duration

        day_offset = self.calendar.day_offset(service_days_offset)

        arena.seek(self.trip_details_ptr + self.layout.index_offset + trip_index * 2)
        details_offset = arena.read_u16()
        arena.seek(self.trip_details_ptr + details_offset)
        realtime_status = arena.read_u16()

        connection_id = None
        if self.trip_attrs_ptr != 0:
            attrs_index = arena.seek(self.trip_attrs_ptr + trip_index * 2).read_u16()
            connection_id = self.attributes.read(attrs_index, TRIP_ATTR_KEYS).get("ConnectionId")

        legs: list[Leg] = []
        for leg_index in range(num_legs):
            leg = self.read_leg(trip_index, leg_index, legs_offset, details_offset, day_offset)
            previous = legs[-1] if legs else None
            if (
                isinstance(leg, IndividualLeg)
                and isinstance(previous, IndividualLeg)
                and previous.type == leg.type
            ):
                legs[-1] = previous.extended_to(leg)
            else:
                legs.append(leg)

        if realtime_status == TRIP_CANCELLED:
            logger.debug(f"Dropping cancelled trip {trip_index} ({connection_id})")
            return None
        if not legs:
            raise InvalidPayloadError(f"trip {trip_index} has no legs")

        return Trip(
            id=connection_id,
            origin=self.result_origin,
            destination=self.result_destination,
            legs=legs,
            num_changes=num_changes,
        )

    def read_leg(
        self,
        trip_index: int,
        leg_index: int,
        legs_offset: int,
        details_offset: int,
        day_offset: int,
    ) -> Leg:
        arena = self.arena.seek(TRIPS_BASE + legs_offset + leg_index * LEG_STRIDE)
        planned_departure = self.time(day_offset)
        departure_location = self.stations.read(arena)
        planned_arrival = self.time(day_offset)
        arrival_location = self.stations.read(arena)
        leg_type = arena.read_u16()
        line_name = self.strings.read(arena)
        planned_departure_platform = normalize_platform(self.strings.read(arena))
        planned_arrival_platform = normalize_platform(self.strings.read(arena))
        attrs_index = arena.read_u16()
        remarks = self.comments.read_remarks(arena)

        attrs = self.attributes.read(attrs_index, LEG_ATTR_KEYS)
        routing_type = attrs.get("GisRoutingType")

        overlay = self.read_overlay(details_offset, leg_index, day_offset)
        message = self.disruptions.resolve(trip_index, leg_index)
        intermediate_stops = self.read_intermediate_stops(overlay, day_offset)

        if leg_type in INDIVIDUAL_LEG_TYPES:
            return IndividualLeg(
                type=self.individual_type(leg_type, routing_type),
                departure_location=departure_location,
                departure_time=overlay.predicted_departure or planned_departure,
                arrival_location=arrival_location,
                arrival_time=overlay.predicted_arrival or planned_arrival,
            )

        if leg_type != LEG_TYPE_PUBLIC:
            raise InvalidPayloadError(f"unhandled type: {leg_type}")

        line_class = self.parse_line_class(attrs.get("Class"))
        product = infer_product(
            self.profile, remarks.on_demand, line_class, attrs.get("Category"), line_name
        )
        line = Line(
            product=product,
            label=normalize_line_name(line_name),
            operator=normalize_line_administration(attrs.get("AdminCode")),
            comment=remarks.comment,
            attrs=remarks.attrs,
        )

        direction = None
        direction_text = attrs.get("Direction")
        if direction_text is not None:
            place, name = self.profile.split_station_name(direction_text)
            direction = Location(LocationType.ANY, place=place, name=name)

        return PublicLeg(
            line=line,
            direction=direction,
            departure=Stop.departure_stop(
                departure_location,
                planned_departure,
                overlay.predicted_departure,
                planned_departure_platform,
                overlay.predicted_departure_platform,
                overlay.departure_cancelled,
            ),
            arrival=Stop.arrival_stop(
                arrival_location,
                planned_arrival,
                overlay.predicted_arrival,
                planned_arrival_platform,
                overlay.predicted_arrival_platform,
                overlay.arrival_cancelled,
            ),
            intermediate_stops=intermediate_stops,
            message=message,
        )

    @staticmethod
    def parse_line_class(value: str | None) -> int:
        if value is None:
            return 0
        try:
            return int(value)
        except ValueError as e:
            raise InvalidPayloadError(f"line class is not a number: {value!r}") from e

    @staticmethod
    def individual_type(leg_type: int, routing_type: str | None) -> IndividualType:
        if routing_type is None:
            return IndividualType.WALK if leg_type == LEG_TYPE_WALK else IndividualType.TRANSFER
        individual_type = ROUTING_TYPES.get(routing_type)
        if individual_type is None:
            raise InvalidPayloadError(f"unknown routingType: {routing_type}")
        return individual_type

    def read_overlay(self, details_offset: int, leg_index: int, day_offset: int) -> LegOverlay:
        if self.layout.leg_size != LEG_OVERLAY_SIZE:
            raise InvalidPayloadError(f"unhandled trip details leg size: {self.layout.leg_size}")

        arena = self.arena.seek(
            self.trip_details_ptr
            + details_offset
            + self.layout.leg_offset
            + leg_index * self.layout.leg_size
        )
        predicted_departure = self.time(day_offset)
        predicted_arrival = self.time(day_offset)
        predicted_departure_platform = normalize_platform(self.strings.read(arena))
        predicted_arrival_platform = normalize_platform(self.strings.read(arena))
        bits = arena.read_u16()
        arena.skip(2)
        first_stop_index = arena.read_u16()
        num_stops = arena.read_u16()

        return LegOverlay(
            predicted_departure=predicted_departure,
            predicted_arrival=predicted_arrival,
            predicted_departure_platform=predicted_departure_platform,
            predicted_arrival_platform=predicted_arrival_platform,
            arrival_cancelled=bool(bits & CANCELLED_ARRIVAL_BIT),
            departure_cancelled=bool(bits & CANCELLED_DEPARTURE_BIT),
            first_stop_index=first_stop_index,
            num_stops=num_stops,
        )

    def read_intermediate_stops(self, overlay: LegOverlay, day_offset: int) -> list[Stop]:
        if overlay.num_stops == 0:
            return []
        if self.layout.stops_size != STOP_RECORD_SIZE:
            raise InvalidPayloadError(f"unhandled stops size: {self.layout.stops_size}")

        arena = self.arena.seek(
            self.trip_details_ptr
            + self.layout.stops_offset
            + overlay.first_stop_index * self.layout.stops_size
        )
        stops = []
        for _ in range(overlay.num_stops):
            planned_departure = self.time(day_offset)
            planned_arrival = self.time(day_offset)
            planned_departure_platform = normalize_platform(self.strings.read(arena))
            planned_arrival_platform = normalize_platform(self.strings.read(arena))
            arena.skip(4)
            predicted_departure = self.time(day_offset)
            predicted_arrival = self.time(day_offset)
            predicted_departure_platform = normalize_platform(self.strings.read(arena))
            predicted_arrival_platform = normalize_platform(self.strings.read(arena))
            bits = arena.read_u16()
            arena.skip(2)
            location = self.stations.read(arena)

            trust_prediction = not self.profile.dominant_plan_stop_time or (
                planned_arrival is not None and planned_departure is not None
            )
            stops.append(
                Stop(
                    location=location,
                    planned_arrival_time=planned_arrival,
                    predicted_arrival_time=predicted_arrival if trust_prediction else None,
                    planned_arrival_platform=planned_arrival_platform,
                    predicted_arrival_platform=predicted_arrival_platform,
                    arrival_cancelled=bool(bits & CANCELLED_ARRIVAL_BIT),
                    planned_departure_time=planned_departure,
                    predicted_departure_time=predicted_departure if trust_prediction else None,
                    planned_departure_platform=planned_departure_platform,
                    predicted_departure_platform=predicted_departure_platform,
                    departure_cancelled=bool(bits & CANCELLED_DEPARTURE_BIT),
                )
            )
        return stops


class TripResponseDecoder:
    """Decodes binary trip responses into QueryTripsResult objects."""

    def __init__(self, profile: LegacyProfile | None = None) -> None:
        self._profile = profile or LegacyProfile()

    @property
    def profile(self) -> LegacyProfile:
        return self._profile

    def decode_body(
        self,
        body: bytes,
        request_url: str | None = None,
        size_hint: int = DEFAULT_BUFFER_SIZE,
        continuation: bool = False,
        origin: Location | None = None,
        via: Location | None = None,
        destination: Location | None = None,
    ) -> QueryTripsResult:
        """Buffer and decode a raw (usually GZIP-compressed) response body."""
        return self.decode(
            load_payload(body, size_hint),
            request_url,
            continuation=continuation,
            origin=origin,
            via=via,
            destination=destination,
        )

    def decode(
        self,
        arena: ByteArena,
        request_url: str | None = None,
        continuation: bool = False,
        origin: Location | None = None,
        via: Location | None = None,
        destination: Location | None = None,
    ) -> QueryTripsResult:
        """Decode a buffered payload.

        Args:
            arena: The complete decompressed payload.
            request_url: URL of the request, reported with unknown faults.
            continuation: Whether this answers an earlier/later page request.
            origin: Requested origin, echoed in the result.
            via: Requested via location, echoed in the result.
            destination: Requested destination, echoed in the result.

        Returns:
            QueryTripsResult with trips and continuation token, or a fault status.

        Raises:
            InvalidPayloadError: On any structural violation.
            SessionExpiredError: If the server session is gone.
            UnknownFaultError: For fault codes outside the known taxonomy.
        """
        version = arena.seek(0).read_u16()
        if version not in SUPPORTED_VERSIONS:
            raise InvalidPayloadError(f"unknown version: {version}")

        header = _ResponseHeader(arena)

        fault_code = header.read_fault_code()
        if fault_code != 0:
            return fault_result(fault_code, request_url, server_version=version)

        header.bind_charset()

        num_trips = header.read_num_trips()
        if num_trips == 0:
            return QueryTripsResult(
                status=QueryTripsStatus.OK,
                request_url=request_url,
                origin=origin,
                via=via,
                destination=destination,
                server_version=version,
            )

        reader = _ResponseReader(header, self._profile, continuation)

        trips = []
        for trip_index in range(num_trips):
            trip = reader.read_trip(trip_index)
            if trip is not None:
                trips.append(trip)

        logger.debug(
            f"Decoded {len(trips)} of {num_trips} trips (seq {reader.seq_nr}, "
            f"{arena.size} bytes, version {version})"
        )

        return QueryTripsResult(
            status=QueryTripsStatus.OK,
            request_url=request_url,
            origin=origin or reader.result_origin,
            via=via,
            destination=destination or reader.result_destination,
            context=build_context(reader.ident, reader.seq_nr, reader.ld, arena.size, trips),
            trips=trips,
            server_version=version,
        )
