"""Product inference and line name normalization for legacy HAFAS lines."""

import logging
import re

from hafas_trips.adapters.hafas_legacy.profile import LegacyProfile
from hafas_trips.domain.models.line import Product

logger = logging.getLogger(__name__)

_HIGH_SPEED = (
    "EC ECE EN D EIC ICE IC ICT ICN ICD CNL MT OEC OIC RJ RJX WB THA TGV DNZ AIR ECB LYN NZ "
    "INZ RHI RHT TGD IRX EUR ES EST EM A AVE ARC ALS TAL TLG HOT X2 X FYR FYRA SC LE TLK "
    "PKP EIP INT HKX LOC NJ ICL FR FA FLUG FLX"
)
_REGIONAL = (
    "ATR ZUG R DPN RB RE ER DB VIA ENO IR IRE HEX WFB RT REX OS SP RX EZ ARZ OE MR PE NE MRB "
    "ERB HLB HSB OSB VBG AKN OLA UBB PEG NWB CAN BRB SBB VEC TLX TL HZL ABR CB WEG NEB ME MER "
    "ALX EB EBX "
    "VEN BOB SBS SES EVB STB STX AG PRE DBG SHB NOB RTB BLB NBE SOE SDG VE DAB WTB BE ARR HTB "
    "FEG NEG RBG MBB VEB LEO VX MSB P BA KTB ERX ATZ ATB CAT EXTRA EXT KD KM EX PCC ZR RNV "
    "DWE BKB GEX M WBA BEX VAE OPB OPX TER THU GW SE UEX KW KS KML"
)
_SUBURBAN = "S-BAHN BSB SWE RER WKD SKM SKW LKA"
_SUBWAY = "U MET METRO"
_TRAM = "NFT TRAM TRA WLB STRWLB SCHW-B"
_BUS = "B NFB SEV BUSSEV BSV FB EXB ICB TRO RFB RUF RFT LT NB POSTBUS"
_ON_DEMAND = "RUFBUS TB"
_ON_DEMAND_PREFIXES = ("AST", "ALT", "BUXI")
_FERRY = "SCHIFF FÄHRE FH FAE SCH AS AZS KAT BAT BAV"
_CABLECAR = "SEILBAHN SB ZAHNR GB LB FUN SL"

CATEGORY_PRODUCTS: dict[str, Product] = {}
for _codes, _product in (
    (_HIGH_SPEED, Product.HIGH_SPEED_TRAIN),
    (_REGIONAL, Product.REGIONAL_TRAIN),
    (_SUBURBAN, Product.SUBURBAN_TRAIN),
    (_SUBWAY, Product.SUBWAY),
    (_TRAM, Product.TRAM),
    (_BUS, Product.BUS),
    (_ON_DEMAND, Product.ON_DEMAND),
    (_FERRY, Product.FERRY),
    (_CABLECAR, Product.CABLECAR),
):
    for _code in _codes.split():
        CATEGORY_PRODUCTS[_code] = _product

CATEGORY_PATTERNS: tuple[tuple[re.Pattern[str], Product], ...] = (
    (re.compile(r"SN?\d*"), Product.SUBURBAN_TRAIN),
    (re.compile(r"STR\w{0,5}"), Product.TRAM),
    (re.compile(r"BUS\w{0,5}"), Product.BUS),
    (re.compile(r"TAX\w{0,5}"), Product.BUS),
)

# Known category that deliberately carries no product.
UNKNOWN_CATEGORIES = frozenset({"E"})

P_CATEGORY_FROM_NAME = re.compile(r"([A-Za-z]+).*")
P_NORMALIZE_LINE_NAME_BUS = re.compile(r"bus\s+(.*)", re.IGNORECASE)
P_NORMALIZE_LINE = re.compile(r"([A-Za-z/]+)[\s-]*([^#]*).*")
P_NORMALIZE_LINE_ADMINISTRATION = re.compile(r"([^_]*)_*")


def normalize_category(category: str | None) -> Product | None:
    """Look up a category string such as "ICE", "RB" or "STR"; None if unknown."""
    if not category:
        return None
    uc = category.upper()
    if uc in CATEGORY_PRODUCTS:
        return CATEGORY_PRODUCTS[uc]
    for pattern, product in CATEGORY_PATTERNS:
        if pattern.fullmatch(uc):
            return product
    if uc.startswith(_ON_DEMAND_PREFIXES):
        return Product.ON_DEMAND
    if uc not in UNKNOWN_CATEGORIES:
        logger.debug(f"Cannot normalize category '{category}'")
    return None


def category_from_name(line_name: str) -> str:
    """Leading letters of a line name, e.g. "RB" for "RB 27"."""
    m = P_CATEGORY_FROM_NAME.fullmatch(line_name)
    return m.group(1) if m else line_name


def normalize_line_name(line_name: str | None) -> str | None:
    if line_name is None:
        return None
    m = P_NORMALIZE_LINE_NAME_BUS.fullmatch(line_name)
    if m:
        return m.group(1)
    m = P_NORMALIZE_LINE.fullmatch(line_name)
    if m:
        return m.group(1) + m.group(2)
    return line_name


def normalize_line_administration(administration: str | None) -> str | None:
    """Operator code up to the first underscore, e.g. "vbb" for "vbb___"."""
    if administration is None:
        return None
    m = P_NORMALIZE_LINE_ADMINISTRATION.match(administration)
    return m.group(1) if m else administration


def infer_product(
    profile: LegacyProfile,
    on_demand: bool,
    line_class: int,
    category: str | None,
    line_name: str | None,
) -> Product:
    """Resolve a line's product by an ordered fallback chain.

    1. on-demand remark on the leg
    2. numeric product class, via the profile's bit map
    3. category string from the leg attributes
    4. leading letters of the line name
    """
    if on_demand:
        return Product.ON_DEMAND

    if line_class != 0:
        try:
            product = profile.int_to_product(line_class)
        except ValueError as e:
            logger.warning(f"Ignoring product class {line_class}: {e}")
        else:
            if product is not None:
                return product

    product = normalize_category(category)
    if product is not None:
        return product

    if line_name:
        product = normalize_category(category_from_name(line_name))
        if product is not None:
            return product

    return Product.UNKNOWN
