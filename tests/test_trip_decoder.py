"""Tests for decoding binary trip responses."""

import struct
from datetime import datetime

import pytest
import pytz

from hafas_trips.adapters.hafas_legacy.byte_arena import ByteArena
from hafas_trips.adapters.hafas_legacy.profile import (
    DbLegacyProfile,
    LegacyProfile,
    OebbLegacyProfile,
)
from hafas_trips.adapters.hafas_legacy.trip_decoder import TripResponseDecoder
from hafas_trips.domain.exceptions import (
    InvalidPayloadError,
    SessionExpiredError,
    SessionExpiredReason,
    TruncatedPayloadError,
)
from hafas_trips.domain.models import (
    IndividualLeg,
    IndividualType,
    LineAttr,
    LocationType,
    Product,
    PublicLeg,
    QueryTripsResult,
    QueryTripsStatus,
)
from tests.hafas_payload_builder import (
    LEG_TRANSFER,
    LOCATION_ADDRESS,
    DisruptionSpec,
    StopSpec,
    TripSpec,
    build_fault_payload,
    build_payload,
    gzipped,
    public_leg,
    walk_leg,
)

BERLIN = pytz.timezone("Europe/Berlin")
URL = "https://reiseauskunft.bahn.de/bin/query.exe/dn?start=Suchen"


def at(hour: int, minute: int, day: int = 15) -> datetime:
    return BERLIN.localize(datetime(2024, 3, day, hour, minute))


def decode(
    payload: bytes, profile: LegacyProfile | None = None, continuation: bool = False
) -> QueryTripsResult:
    return TripResponseDecoder(profile).decode(ByteArena(payload), URL, continuation=continuation)


@pytest.fixture
def simple_trip() -> TripSpec:
    """One regional train from München to Augsburg."""
    return TripSpec(
        legs=[public_leg(0, 1, 800, 830, line_name="RE 1", category="RE")],
        connection_id="C-1-0",
    )


class TestHeader:
    """Tests for file and extension header handling."""

    def test_when_payload_is_valid_then_result_is_ok(self, simple_trip: TripSpec) -> None:
        """Given a valid single-trip payload, when decoding, then status OK with one trip."""
        result = decode(build_payload([simple_trip]))

        assert result.status is QueryTripsStatus.OK
        assert result.is_ok
        assert result.request_url == URL
        assert result.server_version == 6
        assert len(result.trips) == 1

    def test_result_carries_header_locations(self, simple_trip: TripSpec) -> None:
        """Given origin and destination records, when decoding, then they are on the result."""
        result = decode(build_payload([simple_trip]))

        assert result.origin is not None
        assert result.origin.type is LocationType.STATION
        assert result.origin.name == "München Hbf"
        assert result.origin.coord is not None
        assert result.origin.coord.lat_e6 == 48_140_229
        assert result.destination is not None
        assert result.destination.name == "Stuttgart Hbf"

    def test_address_origin_uses_address_split(self, simple_trip: TripSpec) -> None:
        """Given an address origin and the DB profile, when decoding, then place and street are split."""
        payload = build_payload(
            [simple_trip], origin=("München, Bayerstr. 10", LOCATION_ADDRESS)
        )

        result = decode(payload, DbLegacyProfile())

        assert result.origin is not None
        assert result.origin.type is LocationType.ADDRESS
        assert result.origin.place == "München"
        assert result.origin.name == "Bayerstr. 10"

    def test_unknown_location_type_is_fatal(self, simple_trip: TripSpec) -> None:
        """Given location type 7, when decoding, then InvalidPayloadError is raised."""
        with pytest.raises(InvalidPayloadError, match="unknown type"):
            decode(build_payload([simple_trip], origin=("Somewhere", 7)))

    def test_version_5_is_accepted(self, simple_trip: TripSpec) -> None:
        """Given version 5, when decoding, then the result is OK."""
        assert decode(build_payload([simple_trip], version=5)).server_version == 5

    @pytest.mark.parametrize("version", [4, 7, 0])
    def test_unknown_version_is_fatal(self, simple_trip: TripSpec, version: int) -> None:
        """Given an unsupported version, when decoding, then InvalidPayloadError is raised."""
        with pytest.raises(InvalidPayloadError, match="unknown version"):
            decode(build_payload([simple_trip], version=version))

    def test_short_extension_header_is_fatal(self, simple_trip: TripSpec) -> None:
        """Given an extension header length below 0x2c, when decoding, then InvalidPayloadError is raised."""
        payload = build_payload([simple_trip], with_trip_attrs=False, extension_length=0x2A)

        with pytest.raises(InvalidPayloadError, match="too short"):
            decode(payload)

    @pytest.mark.parametrize("length", [0x30, 0x31])
    def test_truncated_trip_attrs_header_is_fatal(self, simple_trip: TripSpec, length: int) -> None:
        """Given a length of 0x30 or 0x31, when decoding, then InvalidPayloadError is raised."""
        payload = build_payload([simple_trip], extension_length=length)

        with pytest.raises(InvalidPayloadError, match="too short"):
            decode(payload)

    def test_without_trip_attrs_trip_has_no_id(self, simple_trip: TripSpec) -> None:
        """Given a 0x2c extension header, when decoding, then trips carry no connection id."""
        result = decode(build_payload([simple_trip], with_trip_attrs=False))

        assert result.trips[0].id is None

    def test_zero_trips_is_ok_and_empty(self) -> None:
        """Given no trips and no fault, when decoding, then OK with an empty list and no token."""
        result = decode(build_payload([]))

        assert result.status is QueryTripsStatus.OK
        assert result.trips == []
        assert result.context is None

    def test_latin1_charset_is_applied(self) -> None:
        """Given an ISO-8859-1 payload, when decoding, then umlauts come out right."""
        trip = TripSpec(legs=[public_leg(0, 1, 800, 830, direction="Fürth")])

        result = decode(build_payload([trip], charset="ISO-8859-1"))

        leg = result.trips[0].legs[0]
        assert isinstance(leg, PublicLeg)
        assert leg.direction is not None
        assert leg.direction.name == "Fürth"
        assert leg.departure_location.name == "München Hbf"

    def test_gzip_body_is_decoded(self, simple_trip: TripSpec) -> None:
        """Given a GZIP-compressed body, when decoding the body, then the trips come out."""
        payload = build_payload([simple_trip])

        result = TripResponseDecoder().decode_body(gzipped(payload), URL, size_hint=64)

        assert len(result.trips) == 1
        assert result.context is not None
        assert result.context.used_buffer_size == len(payload)

    def test_decoder_reuse_keeps_responses_independent(self, simple_trip: TripSpec) -> None:
        """Given one decoder, when decoding trips, a fault and trips again, then no state leaks."""
        decoder = TripResponseDecoder()
        second_trip = TripSpec(legs=[walk_leg(0, 1, 900, 915)], connection_id="W-1")

        first = decoder.decode(ByteArena(build_payload([simple_trip], seq_nr=1)), URL)
        fault = decoder.decode(ByteArena(build_fault_payload(890)), URL)
        second = decoder.decode(
            ByteArena(build_payload([second_trip], seq_nr=4, ident="99.1", ld=None)), URL
        )

        assert fault.status is QueryTripsStatus.NO_TRIPS
        assert fault.context is None
        assert first.context is not None
        assert second.context is not None
        assert (second.context.seq_nr, second.context.ident, second.context.ld) == (4, "99.1", None)
        assert first.context.seq_nr == 1
        assert [t.id for t in second.trips] == ["W-1"]
        assert isinstance(second.trips[0].legs[0], IndividualLeg)


class TestContinuation:
    """Tests for the continuation token."""

    def test_token_carries_ident_sequence_and_ld(self, simple_trip: TripSpec) -> None:
        """Given ident, seqnr and ld, when decoding, then the context echoes them."""
        payload = build_payload([simple_trip], seq_nr=3, ident="84.1", ld="ld.9")

        context = decode(payload).context

        assert context is not None
        assert context.ident == "84.1"
        assert context.seq_nr == 3
        assert context.ld == "ld.9"
        assert context.used_buffer_size == len(payload)
        assert context.can_query_more is True

    def test_missing_ld_is_absent(self, simple_trip: TripSpec) -> None:
        """Given no ld string, when decoding, then the token has no ld."""
        context = decode(build_payload([simple_trip], ld=None)).context

        assert context is not None
        assert context.ld is None

    def test_sequence_zero_on_continuation_expires_session(self, simple_trip: TripSpec) -> None:
        """Given seqnr 0 answering a continuation, when decoding, then SessionExpiredError is raised."""
        with pytest.raises(SessionExpiredError) as exc_info:
            decode(build_payload([simple_trip], seq_nr=0), continuation=True)

        assert exc_info.value.reason is SessionExpiredReason.SEQUENCE_RESET

    def test_sequence_zero_on_first_query_is_invalid(self, simple_trip: TripSpec) -> None:
        """Given seqnr 0 answering a first query, when decoding, then InvalidPayloadError is raised."""
        with pytest.raises(InvalidPayloadError, match="sequence number"):
            decode(build_payload([simple_trip], seq_nr=0))

    def test_single_walk_trip_cannot_query_more(self) -> None:
        """Given one trip made of one walk leg, when decoding, then no more trips can be queried."""
        trip = TripSpec(legs=[walk_leg(0, 1, 800, 900)])

        context = decode(build_payload([trip])).context

        assert context is not None
        assert context.can_query_more is False
        assert context.can_query_later is False
        assert context.can_query_earlier is False


class TestLegs:
    """Tests for public and individual legs."""

    def test_public_leg_fields(self) -> None:
        """Given a public leg with platforms and attributes, when decoding, then all fields are set."""
        leg_spec = public_leg(
            0,
            1,
            800,
            830,
            line_name="ICE 598",
            category="ICE",
            direction="Berlin Hbf",
            planned_departure_platform="12",
            planned_arrival_platform=" 3 ",
            attributes={"AdminCode": "80____", "Class": "1"},
        )
        result = decode(build_payload([TripSpec(legs=[leg_spec], num_changes=0)]))

        leg = result.trips[0].legs[0]
        assert isinstance(leg, PublicLeg)
        assert leg.line.product is Product.HIGH_SPEED_TRAIN
        assert leg.line.label == "ICE598"
        assert leg.line.operator == "80"
        assert leg.direction is not None
        assert leg.direction.type is LocationType.ANY
        assert leg.direction.name == "Berlin Hbf"
        assert leg.departure.location.id == "8000261"
        assert leg.arrival.location.name == "Augsburg Hbf"
        assert leg.departure.planned_departure_time == at(8, 0)
        assert leg.arrival.planned_arrival_time == at(8, 30)
        assert leg.departure.planned_departure_platform == "12"
        assert leg.arrival.planned_arrival_platform == "3"
        assert leg.departure.predicted_departure_time is None

    def test_realtime_overlay_sets_predictions_and_cancellation(self) -> None:
        """Given an overlay with predictions and cancel bits, when decoding, then they are applied."""
        leg_spec = public_leg(
            0,
            1,
            800,
            830,
            predicted_departure=805,
            predicted_arrival=838,
            predicted_departure_platform="13",
            realtime_bits=0x10 | 0x20,
        )
        result = decode(build_payload([TripSpec(legs=[leg_spec])]))

        leg = result.trips[0].legs[0]
        assert isinstance(leg, PublicLeg)
        assert leg.departure.predicted_departure_time == at(8, 5)
        assert leg.departure.departure_delay_seconds == 300
        assert leg.arrival.predicted_arrival_time == at(8, 38)
        assert leg.departure.predicted_departure_platform == "13"
        assert leg.departure.departure_cancelled is True
        assert leg.arrival.arrival_cancelled is True
        assert leg.departure_time == at(8, 5)

    def test_comments_set_line_attributes(self) -> None:
        """Given wheelchair and bicycle remarks, when decoding, then the line carries both attrs."""
        leg_spec = public_leg(comments=["bf barrier-free", "FA bikes"])

        leg = decode(build_payload([TripSpec(legs=[leg_spec])])).trips[0].legs[0]

        assert isinstance(leg, PublicLeg)
        assert leg.line.has_attr(LineAttr.WHEEL_CHAIR_ACCESS)
        assert leg.line.has_attr(LineAttr.BICYCLE_CARRIAGE)

    def test_on_demand_remark_sets_product_and_comment(self) -> None:
        """Given an on-demand remark, when decoding, then product ON_DEMAND and comment set."""
        leg_spec = public_leg(
            line_name="Bus 612", category="BUS", comments=["$R 1 Call one hour ahead"]
        )

        leg = decode(build_payload([TripSpec(legs=[leg_spec])])).trips[0].legs[0]

        assert isinstance(leg, PublicLeg)
        assert leg.line.product is Product.ON_DEMAND
        assert leg.line.comment == "Call one hour ahead"

    def test_call_bus_category_is_on_demand(self) -> None:
        """Given category RUFBUS without remark, when decoding, then product is ON_DEMAND."""
        leg_spec = public_leg(line_name="RUFBUS 5", category="RUFBUS")

        leg = decode(build_payload([TripSpec(legs=[leg_spec])])).trips[0].legs[0]

        assert isinstance(leg, PublicLeg)
        assert leg.line.product is Product.ON_DEMAND

    def test_individual_leg_uses_predicted_times(self) -> None:
        """Given a walk with predicted times, when decoding, then the predictions are used."""
        leg_spec = walk_leg(0, 1, 800, 810)
        leg_spec.predicted_arrival = 812

        leg = decode(build_payload([TripSpec(legs=[leg_spec])])).trips[0].legs[0]

        assert isinstance(leg, IndividualLeg)
        assert leg.type is IndividualType.WALK
        assert leg.departure_time == at(8, 0)
        assert leg.arrival_time == at(8, 12)

    @pytest.mark.parametrize(
        ("routing_type", "expected"),
        [
            ("FOOT", IndividualType.WALK),
            ("BIKE", IndividualType.BIKE),
            ("CAR", IndividualType.CAR),
            ("P+R", IndividualType.CAR),
        ],
    )
    def test_routing_type_selects_mode(self, routing_type: str, expected: IndividualType) -> None:
        """Given a routing type, when decoding an individual leg, then its mode follows."""
        trip = TripSpec(legs=[walk_leg(0, 1, 800, 810, routing_type), public_leg(1, 2, 815, 900)])

        leg = decode(build_payload([trip])).trips[0].legs[0]

        assert isinstance(leg, IndividualLeg)
        assert leg.type is expected

    def test_unknown_routing_type_is_fatal(self) -> None:
        """Given routing type BOAT, when decoding, then InvalidPayloadError is raised."""
        trip = TripSpec(legs=[walk_leg(0, 1, 800, 810, "BOAT")])

        with pytest.raises(InvalidPayloadError, match="routingType"):
            decode(build_payload([trip]))

    def test_transfer_leg_type(self) -> None:
        """Given leg type 3 without routing type, when decoding, then a TRANSFER leg."""
        trip = TripSpec(
            legs=[
                public_leg(0, 1, 800, 830),
                walk_leg(1, 1, 830, 840, leg_type=LEG_TRANSFER),
                public_leg(1, 2, 845, 930),
            ]
        )

        leg = decode(build_payload([trip])).trips[0].legs[1]

        assert isinstance(leg, IndividualLeg)
        assert leg.type is IndividualType.TRANSFER

    def test_unknown_leg_type_is_fatal(self) -> None:
        """Given leg type 9, when decoding, then InvalidPayloadError is raised."""
        leg_spec = public_leg()
        leg_spec.type = 9

        with pytest.raises(InvalidPayloadError, match="unhandled type"):
            decode(build_payload([TripSpec(legs=[leg_spec])]))

    def test_non_numeric_class_is_fatal(self) -> None:
        """Given Class "x", when decoding, then InvalidPayloadError is raised."""
        leg_spec = public_leg(attributes={"Class": "x"})

        with pytest.raises(InvalidPayloadError, match="line class"):
            decode(build_payload([TripSpec(legs=[leg_spec])]))

    def test_station_index_out_of_range_is_fatal(self) -> None:
        """Given a leg pointing at station 99, when decoding, then TruncatedPayloadError is raised."""
        trip = TripSpec(legs=[public_leg(0, 99, 800, 830)])

        with pytest.raises(TruncatedPayloadError):
            decode(build_payload([trip]))


class TestWalkCoalescing:
    """Tests for merging adjacent individual legs."""

    def test_three_walks_merge_into_one(self) -> None:
        """Given three consecutive walk legs, when decoding, then one walk spans first to last."""
        trip = TripSpec(
            legs=[
                walk_leg(0, 1, 800, 810),
                walk_leg(1, 2, 810, 820),
                walk_leg(2, 3, 820, 835),
            ]
        )

        legs = decode(build_payload([trip])).trips[0].legs

        assert len(legs) == 1
        leg = legs[0]
        assert isinstance(leg, IndividualLeg)
        assert leg.departure_location.name == "München Hbf"
        assert leg.departure_time == at(8, 0)
        assert leg.arrival_location.name == "Stuttgart Hbf"
        assert leg.arrival_time == at(8, 35)

    def test_different_modes_are_not_merged(self) -> None:
        """Given a walk followed by a bike leg, when decoding, then both legs stay."""
        trip = TripSpec(legs=[walk_leg(0, 1, 800, 810), walk_leg(1, 2, 810, 830, "BIKE")])

        legs = decode(build_payload([trip])).trips[0].legs

        assert [leg.type for leg in legs] == [IndividualType.WALK, IndividualType.BIKE]  # type: ignore[union-attr]

    def test_walks_separated_by_public_leg_stay_apart(self) -> None:
        """Given walk, train, walk, when decoding, then three legs."""
        trip = TripSpec(
            legs=[walk_leg(0, 0, 750, 800), public_leg(0, 3, 800, 1000), walk_leg(3, 3, 1000, 1010)]
        )

        assert len(decode(build_payload([trip])).trips[0].legs) == 3


class TestCancelledTrips:
    """Tests for trips the server marks as cancelled."""

    def test_cancelled_trip_dropped_and_siblings_kept(self) -> None:
        """Given three trips with the middle one cancelled, when decoding, then two remain in order."""
        trips = [
            TripSpec(legs=[public_leg(0, 1, 800, 830)], connection_id="A"),
            TripSpec(legs=[public_leg(0, 1, 900, 930)], connection_id="B", realtime_status=2),
            TripSpec(legs=[public_leg(0, 1, 1000, 1030)], connection_id="C"),
        ]

        result = decode(build_payload(trips))

        assert [trip.id for trip in result.trips] == ["A", "C"]
        assert result.trips[1].first_departure_time == at(10, 0)


class TestTrips:
    """Tests for trip level data."""

    def test_trip_fields(self) -> None:
        """Given a two-leg trip with a change, when decoding, then id, changes and ends are set."""
        trip = TripSpec(
            legs=[public_leg(0, 1, 800, 830), public_leg(1, 3, 840, 1015, line_name="IC 2013")],
            connection_id="C-0",
            num_changes=1,
        )

        decoded = decode(build_payload([trip])).trips[0]

        assert decoded.id == "C-0"
        assert decoded.num_changes == 1
        assert decoded.first_departure_location.name == "München Hbf"
        assert decoded.last_arrival_location.name == "Stuttgart Hbf"
        assert decoded.last_arrival_time == at(10, 15)
        assert decoded.origin is not None
        assert decoded.origin.name == "München Hbf"

    def test_service_day_offset_moves_trip_date(self) -> None:
        """Given a trip running on day 10 after base, when decoding, then times are on that day."""
        trip = TripSpec(
            legs=[public_leg(0, 1, 800, 830)], service_day_base=1, service_day_bits=b"\x20"
        )

        decoded = decode(build_payload([trip])).trips[0]

        assert decoded.first_departure_time == at(8, 0, day=25)

    def test_trip_past_midnight(self) -> None:
        """Given an arrival at 2410, when decoding, then it is 00:10 on the next day."""
        trip = TripSpec(legs=[public_leg(0, 3, 2330, 2410)])

        decoded = decode(build_payload([trip])).trips[0]

        assert decoded.last_arrival_time == at(0, 10, day=16)


class TestIntermediateStops:
    """Tests for stops between a leg's departure and arrival."""

    def _trip(self) -> TripSpec:
        return TripSpec(
            legs=[
                public_leg(
                    0,
                    3,
                    800,
                    1000,
                    stops=[
                        StopSpec(
                            1,
                            planned_arrival=830,
                            planned_departure=832,
                            predicted_arrival=835,
                            predicted_departure=837,
                            planned_arrival_platform="2",
                        ),
                        StopSpec(2, planned_arrival=915, predicted_arrival=920, bits=0x20),
                    ],
                )
            ]
        )

    def test_stops_decoded_in_order(self) -> None:
        """Given two intermediate stops, when decoding, then they come out in order with times."""
        leg = decode(build_payload([self._trip()])).trips[0].legs[0]

        assert isinstance(leg, PublicLeg)
        first, second = leg.intermediate_stops
        assert first.location.name == "Augsburg Hbf"
        assert first.planned_arrival_time == at(8, 30)
        assert first.predicted_arrival_time == at(8, 35)
        assert first.predicted_departure_time == at(8, 37)
        assert first.planned_arrival_platform == "2"
        assert second.location.name == "Ulm Hbf"
        assert second.planned_departure_time is None
        assert second.departure_cancelled is True
        assert second.arrival_cancelled is False

    def test_dominant_plan_time_drops_predictions_without_both_planned_times(self) -> None:
        """Given the ÖBB profile, when a stop lacks a planned departure, then its predictions are dropped."""
        leg = decode(build_payload([self._trip()]), OebbLegacyProfile()).trips[0].legs[0]

        assert isinstance(leg, PublicLeg)
        first, second = leg.intermediate_stops
        assert first.predicted_arrival_time is not None
        assert second.predicted_arrival_time is None

    def test_unexpected_stop_record_size_is_fatal(self) -> None:
        """Given a stop record size of 24, when decoding a leg with stops, then InvalidPayloadError is raised."""
        with pytest.raises(InvalidPayloadError, match="stops size"):
            decode(build_payload([self._trip()], stop_record_size=24))

    def test_unexpected_overlay_size_is_fatal(self, simple_trip: TripSpec) -> None:
        """Given a leg overlay size of 18, when decoding, then InvalidPayloadError is raised."""
        with pytest.raises(InvalidPayloadError, match="leg size"):
            decode(build_payload([simple_trip], leg_overlay_size=18))

    def test_unknown_trip_details_version_is_fatal(self, simple_trip: TripSpec) -> None:
        """Given trip details version 2, when decoding, then InvalidPayloadError is raised."""
        with pytest.raises(InvalidPayloadError, match="trip details version"):
            decode(build_payload([simple_trip], trip_details_version=2))


class TestDisruptions:
    """Tests for disruption messages on legs."""

    def test_message_attached_to_matching_leg(self) -> None:
        """Given a disruption on leg 1, when decoding, then only leg 1 carries the text."""
        trip = TripSpec(
            legs=[public_leg(0, 1, 800, 830), public_leg(1, 3, 840, 1000)],
            disruptions=[DisruptionSpec(leg=1, text="Signal failure near Ulm &amp; Neu-Ulm")],
        )

        legs = decode(build_payload([trip])).trips[0].legs

        assert isinstance(legs[0], PublicLeg)
        assert isinstance(legs[1], PublicLeg)
        assert legs[0].message is None
        assert legs[1].message == "Signal failure near Ulm & Neu-Ulm"

    def test_short_text_overrides_long_text(self) -> None:
        """Given both texts, when decoding, then the HTML-formatted short text wins."""
        trip = TripSpec(
            legs=[public_leg()],
            disruptions=[DisruptionSpec(leg=0, text="long", short_text="Line 1<br/>closed")],
        )

        leg = decode(build_payload([trip])).trips[0].legs[0]

        assert isinstance(leg, PublicLeg)
        assert leg.message == "Line 1\nclosed"

    def test_chain_walks_past_other_legs(self) -> None:
        """Given records for legs 0 and 1 chained, when decoding leg 1, then its record is found."""
        trip = TripSpec(
            legs=[public_leg(0, 1, 800, 830), public_leg(1, 3, 840, 1000)],
            disruptions=[DisruptionSpec(leg=0, text="first"), DisruptionSpec(leg=1, text="second")],
        )

        legs = decode(build_payload([trip])).trips[0].legs

        assert [leg.message for leg in legs] == ["first", "second"]  # type: ignore[union-attr]

    def test_chain_cycle_is_fatal(self, simple_trip: TripSpec) -> None:
        """Given a record whose next pointer points at itself, when decoding, then InvalidPayloadError is raised."""
        simple_trip.disruptions = [DisruptionSpec(leg=5, text="loop")]
        payload = bytearray(build_payload([simple_trip]))
        ext_ptr = struct.unpack_from("<I", payload, 0x46)[0]
        disruptions_ptr = struct.unpack_from("<I", payload, ext_ptr + 0x14)[0]
        head = struct.unpack_from("<H", payload, disruptions_ptr + 2)[0]
        struct.pack_into("<H", payload, disruptions_ptr + head + 16, head)

        with pytest.raises(InvalidPayloadError, match="revisits"):
            decode(bytes(payload))
