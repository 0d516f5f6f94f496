"""Disruption (HIM message) chain attached to trips."""

import html
import logging
import re

from hafas_trips.adapters.hafas_legacy.byte_arena import ByteArena
from hafas_trips.adapters.hafas_legacy.tables import AttributeTable, StringTable
from hafas_trips.domain.exceptions import InvalidPayloadError

logger = logging.getLogger(__name__)

DISRUPTIONS_TABLE_VERSION = 1
TEXT_KEYS = frozenset({"Text"})

P_HTML_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
P_HTML_TAG = re.compile(r"<[^>]*>")
P_HORIZONTAL_SPACE = re.compile(r"[ \t]+")


def resolve_entities(text: str | None) -> str | None:
    if text is None:
        return None
    return html.unescape(text)


def format_html(text: str | None) -> str | None:
    """Plain text from a short HTML fragment: line breaks kept, tags dropped."""
    if text is None:
        return None
    text = P_HTML_BREAK.sub("\n", text)
    text = P_HTML_TAG.sub("", text)
    text = P_HORIZONTAL_SPACE.sub(" ", html.unescape(text))
    return "\n".join(line.strip() for line in text.split("\n")).strip()


class DisruptionResolver:
    """Walks the per-trip linked list of disruption records.

    Record layout at ``table_ptr + offset``: a string, the leg index, two
    skipped bytes, four strings (line start, line end, id, title), the short
    text, the next-record pointer and, only when the leg index matches the
    leg being decoded, an attribute index holding the long ``Text``. The
    next pointer is always consumed before the leg index is compared.
    """

    def __init__(
        self,
        arena: ByteArena,
        table_ptr: int,
        strings: StringTable,
        attributes: AttributeTable,
    ) -> None:
        self._arena = arena
        self._table_ptr = table_ptr
        self._strings = strings
        self._attributes = attributes
        self._present = (
            table_ptr != 0 and arena.seek(table_ptr).read_u16() == DISRUPTIONS_TABLE_VERSION
        )

    def resolve(self, trip_index: int, leg_index: int) -> str | None:
        """Disruption text for one leg of one trip, or None."""
        if not self._present:
            return None

        arena = self._arena.seek(self._table_ptr + 2 + trip_index * 2)
        offset = arena.read_u16()
        visited: set[int] = set()
        text = None

        while offset != 0:
            if offset in visited:
                raise InvalidPayloadError(
                    f"disruption chain of trip {trip_index} revisits offset {offset}"
                )
            visited.add(offset)

            arena.seek(self._table_ptr + offset)
            self._strings.read(arena)  # "0"
            disruption_leg = arena.read_u16()
            arena.skip(2)  # bitmask
            self._strings.read(arena)  # start of line
            self._strings.read(arena)  # end of line
            self._strings.read(arena)  # id
            self._strings.read(arena)  # title
            short_text = format_html(self._strings.read(arena))

            offset = arena.read_u16()

            if disruption_leg == leg_index:
                attrs_index = arena.read_u16()
                values = self._attributes.read(attrs_index, TEXT_KEYS)
                text = resolve_entities(values.get("Text"))
                if short_text is not None:
                    text = short_text

        if text:
            logger.debug(f"Disruption on trip {trip_index} leg {leg_index}: {text[:80]}")
        return text
