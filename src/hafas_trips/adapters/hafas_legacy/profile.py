"""Network profiles for legacy HAFAS trip queries.

A profile carries the per-network knowledge the binary response does not
encode: the timezone its times are expressed in, which product bit stands for
which mode, and how station, address and POI names are split into place and
name.
"""

import re

import pytz

from hafas_trips.domain.models.line import Product

P_SPLIT_NAME_ONE_COMMA = re.compile(r"([^,]*), ([^,]*)")
P_SPLIT_NAME_FIRST_COMMA = re.compile(r"([^,]*), (.*)")


class LegacyProfile:
    """Base profile; subclasses override class attributes per network."""

    name = "default"
    timezone = pytz.timezone("Europe/Berlin")

    # Product for each class bit, least significant first.
    products_map: tuple[Product | None, ...] = (
        Product.HIGH_SPEED_TRAIN,
        Product.HIGH_SPEED_TRAIN,
        Product.REGIONAL_TRAIN,
        Product.REGIONAL_TRAIN,
        Product.SUBURBAN_TRAIN,
        Product.BUS,
        Product.FERRY,
        Product.SUBWAY,
        Product.TRAM,
        Product.ON_DEMAND,
    )

    # Only trust a predicted time at an intermediate stop if both planned times exist.
    dominant_plan_stop_time = False

    # (pattern, place group, name group); None keeps the whole string as name.
    station_name_split: tuple[re.Pattern[str], int, int] | None = None
    address_split: tuple[re.Pattern[str], int, int] | None = None
    poi_split: tuple[re.Pattern[str], int, int] | None = None

    @staticmethod
    def _split(
        value: str | None, rule: tuple[re.Pattern[str], int, int] | None
    ) -> tuple[str | None, str | None]:
        if value is None or rule is None:
            return None, value
        pattern, place_group, name_group = rule
        m = pattern.fullmatch(value)
        if m:
            return m.group(place_group), m.group(name_group)
        return None, value

    def split_station_name(self, name: str | None) -> tuple[str | None, str | None]:
        return self._split(name, self.station_name_split)

    def split_address(self, address: str | None) -> tuple[str | None, str | None]:
        return self._split(address, self.address_split)

    def split_poi(self, name: str | None) -> tuple[str | None, str | None]:
        return self._split(name, self.poi_split)

    def all_products_int(self) -> int:
        return (1 << len(self.products_map)) - 1

    def int_to_product(self, product_int: int) -> Product | None:
        """Map a numeric product class (bit set) to a single product.

        Bits mapping to different products make the value ambiguous, except
        that bus and on-demand together count as bus.
        """
        if product_int < 0 or product_int > self.all_products_int():
            raise ValueError(f"value {product_int} cannot be greater than {self.all_products_int()}")

        product: Product | None = None
        value = product_int
        for i in range(len(self.products_map) - 1, -1, -1):
            bit = 1 << i
            if value >= bit:
                p = self.products_map[i]
                if {product, p} == {Product.BUS, Product.ON_DEMAND}:
                    product = Product.BUS
                elif product is not None and p != product:
                    raise ValueError(f"ambiguous value: {product_int}")
                else:
                    product = p
                value -= bit
        return product


class DbLegacyProfile(LegacyProfile):
    """Deutsche Bahn: names come as "Name, Place", addresses as "Place, Street"."""

    name = "db"
    station_name_split = (P_SPLIT_NAME_ONE_COMMA, 2, 1)
    address_split = (P_SPLIT_NAME_FIRST_COMMA, 1, 2)


class OebbLegacyProfile(LegacyProfile):
    """Austrian federal railways."""

    name = "oebb"
    timezone = pytz.timezone("Europe/Vienna")
    products_map = (
        Product.HIGH_SPEED_TRAIN,
        Product.HIGH_SPEED_TRAIN,
        Product.HIGH_SPEED_TRAIN,
        None,
        Product.REGIONAL_TRAIN,
        Product.SUBURBAN_TRAIN,
        Product.BUS,
        Product.FERRY,
        Product.SUBWAY,
        Product.TRAM,
        Product.HIGH_SPEED_TRAIN,
        Product.ON_DEMAND,
        Product.HIGH_SPEED_TRAIN,
    )
    dominant_plan_stop_time = True
    address_split = (P_SPLIT_NAME_FIRST_COMMA, 1, 2)


PROFILES: dict[str, type[LegacyProfile]] = {
    "default": LegacyProfile,
    "db": DbLegacyProfile,
    "oebb": OebbLegacyProfile,
}


def get_profile(name: str | None) -> LegacyProfile:
    """Instantiate a profile by name, falling back to the default profile."""
    profile_class = PROFILES.get((name or "default").lower())
    if profile_class is None:
        raise ValueError(f"Unknown profile '{name}', known profiles: {', '.join(PROFILES)}")
    return profile_class()
