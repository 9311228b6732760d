#!/usr/bin/env python3

"""Translate pyelftools attribute values into scope tree attribute values.

The translation is driven by the attribute form, with a few attribute names
that need their values interpreted: file indices, ``high_pc`` offsets,
range and location list pointers, and enumerated constants.
"""

from elftools.dwarf.compileunit import CompileUnit
from elftools.dwarf.die import DIE, AttributeValue
from elftools.dwarf.enums import (
    ENUM_DW_ACCESS,
    ENUM_DW_ATE,
    ENUM_DW_CC,
    ENUM_DW_INL,
    ENUM_DW_LANG,
)
from elftools.dwarf.locationlists import BaseAddressEntry as LocationBaseAddressEntry
from elftools.dwarf.locationlists import LocationEntry, LocationLists
from elftools.dwarf.ranges import BaseAddressEntry as RangeBaseAddressEntry
from elftools.dwarf.ranges import RangeEntry, RangeLists

from ..infrastructure.logging import get_logger
from .dwarf_constants import (
    ENUM_DW_ADDR,
    ENUM_DW_DS,
    ENUM_DW_END,
    ENUM_DW_ID,
    ENUM_DW_ORD,
    ENUM_DW_VIRTUALITY,
    ENUM_DW_VIS,
)
from .models import (
    IGNORED,
    UNKNOWN,
    AttrValue,
    BoolValue,
    ExpressionValue,
    IntValue,
    LocationListValue,
    RangesValue,
    StringValue,
    UidRefValue,
)
from .source_registry import UnitSources

logger = get_logger(__name__)

ADDRESS_FORMS = frozenset(
    {
        "DW_FORM_addr",
        "DW_FORM_addrx",
        "DW_FORM_addrx1",
        "DW_FORM_addrx2",
        "DW_FORM_addrx3",
        "DW_FORM_addrx4",
        "DW_FORM_GNU_addr_index",
    }
)
CONSTANT_FORMS = frozenset(
    {
        "DW_FORM_data1",
        "DW_FORM_data2",
        "DW_FORM_data4",
        "DW_FORM_data8",
        "DW_FORM_udata",
        "DW_FORM_sdata",
        "DW_FORM_implicit_const",
    }
)
FLAG_FORMS = frozenset({"DW_FORM_flag", "DW_FORM_flag_present"})
STRING_FORMS = frozenset(
    {
        "DW_FORM_string",
        "DW_FORM_strp",
        "DW_FORM_line_strp",
        "DW_FORM_strx",
        "DW_FORM_strx1",
        "DW_FORM_strx2",
        "DW_FORM_strx3",
        "DW_FORM_strx4",
        "DW_FORM_GNU_str_index",
        "DW_FORM_GNU_strp_alt",
        "DW_FORM_strp_sup",
    }
)
EXPRESSION_FORMS = frozenset(
    {"DW_FORM_exprloc", "DW_FORM_block", "DW_FORM_block1", "DW_FORM_block2", "DW_FORM_block4"}
)
UNIT_REFERENCE_FORMS = frozenset(
    {"DW_FORM_ref1", "DW_FORM_ref2", "DW_FORM_ref4", "DW_FORM_ref8", "DW_FORM_ref_udata"}
)
FOREIGN_REFERENCE_FORMS = frozenset(
    {
        "DW_FORM_ref_addr",
        "DW_FORM_ref_sig8",
        "DW_FORM_ref_sup4",
        "DW_FORM_ref_sup8",
        "DW_FORM_GNU_ref_alt",
    }
)
# Before DWARF 4, list pointers were encoded as plain constants
LEGACY_OFFSET_FORMS = frozenset({"DW_FORM_data4", "DW_FORM_data8"})
SECTION_OFFSET_FORM = "DW_FORM_sec_offset"

FILE_ATTRIBUTES = frozenset({"DW_AT_decl_file", "DW_AT_call_file"})
LOCATION_ATTRIBUTES = frozenset(
    {
        "DW_AT_location",
        "DW_AT_string_length",
        "DW_AT_return_addr",
        "DW_AT_data_member_location",
        "DW_AT_frame_base",
        "DW_AT_segment",
        "DW_AT_static_link",
        "DW_AT_use_location",
        "DW_AT_vtable_elem_location",
        "DW_AT_GNU_call_site_value",
        "DW_AT_call_value",
    }
)


def _reverse(table: dict) -> dict[int, str]:
    names: dict[int, str] = {}
    for name, value in table.items():
        if isinstance(value, int) and name.startswith("DW_") and not name.endswith("_user"):
            names.setdefault(value, name)
    return names


ENUMERATED_ATTRIBUTES: dict[str, dict[int, str]] = {
    "DW_AT_encoding": _reverse(ENUM_DW_ATE),
    "DW_AT_accessibility": _reverse(ENUM_DW_ACCESS),
    "DW_AT_visibility": _reverse(ENUM_DW_VIS),
    "DW_AT_virtuality": _reverse(ENUM_DW_VIRTUALITY),
    "DW_AT_language": _reverse(ENUM_DW_LANG),
    "DW_AT_identifier_case": _reverse(ENUM_DW_ID),
    "DW_AT_calling_convention": _reverse(ENUM_DW_CC),
    "DW_AT_inline": _reverse(ENUM_DW_INL),
    "DW_AT_ordering": _reverse(ENUM_DW_ORD),
    "DW_AT_decimal_sign": _reverse(ENUM_DW_DS),
    "DW_AT_endianity": _reverse(ENUM_DW_END),
    "DW_AT_address_class": _reverse(ENUM_DW_ADDR),
}


def symbolic_name(constant_name: str) -> str:
    """Strip the two namespacing segments: ``DW_LANG_C99`` -> ``C99``."""
    parts = constant_name.split("_", 2)
    return parts[2] if len(parts) == 3 else constant_name


def short_name(name: str | int, prefix: str) -> str:
    """Drop a ``DW_AT_``/``DW_TAG_`` prefix; unnamed codes become hex."""
    if isinstance(name, int):
        return f"0x{name:x}"
    return name[len(prefix) :] if name.startswith(prefix) else name


def _decode(value: bytes | str) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class AttributeMapper:
    """Maps the attributes of one unit's entries.

    Args:
        unit: The compilation unit being walked
        unit_sources: File index resolution for the unit
        base_address: The unit's DW_AT_low_pc, base of relative list entries
        range_lists: pyelftools range list reader, if the module has one
        location_lists: pyelftools location list reader, if the module has one
    """

    def __init__(
        self,
        unit: CompileUnit,
        unit_sources: UnitSources,
        base_address: int = 0,
        range_lists: RangeLists | None = None,
        location_lists: LocationLists | None = None,
    ) -> None:
        self.unit = unit
        self.unit_sources = unit_sources
        self.base_address = base_address
        self.range_lists = range_lists
        self.location_lists = location_lists
        self.version = unit["version"]

    def map(self, die: DIE, attr: AttributeValue, resolved: dict[str, AttrValue]) -> AttrValue:
        """
        Map one attribute of ``die``.

        Args:
            die: Entry owning the attribute
            attr: pyelftools attribute value
            resolved: Attributes of ``die`` mapped so far, keyed by short name

        Returns:
            The attribute's scope tree value
        """
        name = attr.name
        form = attr.form

        if name in FILE_ATTRIBUTES and form in CONSTANT_FORMS:
            return IntValue(self.unit_sources.attribute_source_id(attr.value))

        if name == "DW_AT_ranges":
            if self._is_list_pointer(form):
                return self._ranges(attr.value)
            return UNKNOWN

        if name in LOCATION_ATTRIBUTES and self._is_list_pointer(form):
            return self._location_list(die, attr.value)

        if name == "DW_AT_high_pc" and form in CONSTANT_FORMS:
            # Offset from low_pc rather than an address
            low_pc = resolved.get("low_pc")
            base = low_pc.value if isinstance(low_pc, IntValue) else 0
            return IntValue(base + attr.value)

        if name in ENUMERATED_ATTRIBUTES and form in CONSTANT_FORMS:
            constant = ENUMERATED_ATTRIBUTES[name].get(attr.value)
            if constant is not None:
                return StringValue(symbolic_name(constant))
            return IntValue(attr.value)

        if form in ADDRESS_FORMS or form in CONSTANT_FORMS or form == SECTION_OFFSET_FORM:
            return IntValue(attr.value)
        if form in FLAG_FORMS:
            return BoolValue(bool(attr.value))
        if form in STRING_FORMS:
            return StringValue(_decode(attr.value))
        if form in EXPRESSION_FORMS:
            return ExpressionValue(bytes(attr.value))
        if form in UNIT_REFERENCE_FORMS:
            return self._reference(die, attr)
        if form in FOREIGN_REFERENCE_FORMS:
            return IGNORED

        logger.debug(f"Unmapped attribute {name} with form {form} at 0x{die.offset:x}")
        return UNKNOWN

    def _is_list_pointer(self, form: str) -> bool:
        return form == SECTION_OFFSET_FORM or (
            self.version < 4 and form in LEGACY_OFFSET_FORMS
        )

    def _ranges(self, offset: int) -> AttrValue:
        if self.range_lists is None:
            return UNKNOWN
        ranges = []
        base = self.base_address
        for entry in self.range_lists.get_range_list_at_offset(offset, cu=self.unit):
            if isinstance(entry, RangeBaseAddressEntry):
                base = entry.base_address
            elif isinstance(entry, RangeEntry):
                if entry.is_absolute:
                    ranges.append((entry.begin_offset, entry.end_offset))
                else:
                    ranges.append((base + entry.begin_offset, base + entry.end_offset))
        return RangesValue(tuple(ranges))

    def _location_list(self, die: DIE, offset: int) -> AttrValue:
        if self.location_lists is None:
            return UNKNOWN
        entries = []
        base = self.base_address
        for entry in self.location_lists.get_location_list_at_offset(offset, die=die):
            if isinstance(entry, LocationBaseAddressEntry):
                base = entry.base_address
            elif isinstance(entry, LocationEntry):
                expr = bytes(entry.loc_expr)
                if entry.is_absolute:
                    entries.append((entry.begin_offset, entry.end_offset, expr))
                else:
                    entries.append((base + entry.begin_offset, base + entry.end_offset, expr))
        return LocationListValue(tuple(entries))

    def _reference(self, die: DIE, attr: AttributeValue) -> AttrValue:
        uid = self.unit.cu_offset + attr.value
        target = die.get_DIE_from_attribute(attr.name)
        linkage_name = target.attributes.get("DW_AT_linkage_name")
        if linkage_name is None:
            return UidRefValue(uid)
        return UidRefValue(uid, _decode(linkage_name.value))
