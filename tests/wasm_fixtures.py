"""Builders for synthetic WebAssembly modules carrying DWARF v4 sections.

The encoders here assemble just enough of the DWARF format (abbreviations,
32-bit units, version 4 line programs, range and location lists) to drive the
converter end to end without binary fixtures.
"""

import struct
from dataclasses import dataclass, field
from typing import Any

WASM_PREAMBLE = b"\x00asm\x01\x00\x00\x00"

# One empty function: count=1, body size=2, no locals, `end`
CODE_BODY = b"\x01\x02\x00\x0b"

# Module offset of the code section body in the ready-made modules
CODE_SECTION_OFFSET = 1000

# DWARF tags
DW_TAG_compile_unit = 0x11
DW_TAG_subprogram = 0x2E
DW_TAG_lexical_block = 0x0B
DW_TAG_variable = 0x34
DW_TAG_base_type = 0x24

# DWARF attributes
DW_AT_location = 0x02
DW_AT_name = 0x03
DW_AT_ordering = 0x09
DW_AT_byte_size = 0x0B
DW_AT_stmt_list = 0x10
DW_AT_low_pc = 0x11
DW_AT_high_pc = 0x12
DW_AT_language = 0x13
DW_AT_visibility = 0x17
DW_AT_comp_dir = 0x1B
DW_AT_inline = 0x20
DW_AT_abstract_origin = 0x31
DW_AT_address_class = 0x33
DW_AT_decl_file = 0x3A
DW_AT_decl_line = 0x3B
DW_AT_encoding = 0x3E
DW_AT_external = 0x3F
DW_AT_identifier_case = 0x42
DW_AT_type = 0x49
DW_AT_virtuality = 0x4C
DW_AT_ranges = 0x55
DW_AT_decimal_sign = 0x5E
DW_AT_endianity = 0x65
DW_AT_linkage_name = 0x6E

# DWARF forms
DW_FORM_addr = 0x01
DW_FORM_data2 = 0x05
DW_FORM_data4 = 0x06
DW_FORM_string = 0x08
DW_FORM_data1 = 0x0B
DW_FORM_strp = 0x0E
DW_FORM_ref4 = 0x13
DW_FORM_sec_offset = 0x17
DW_FORM_exprloc = 0x18
DW_FORM_flag_present = 0x19

DW_LANG_C99 = 0x0C
DW_ATE_signed = 0x05
DW_INL_inlined = 0x01


def uleb128(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def sleb128(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if (value == 0 and not byte & 0x40) or (value == -1 and byte & 0x40):
            out.append(byte)
            return bytes(out)
        out.append(byte | 0x80)


# --- WebAssembly container -------------------------------------------------


def wasm_name(name: str) -> bytes:
    encoded = name.encode("utf-8")
    return uleb128(len(encoded)) + encoded


def section(section_id: int, body: bytes) -> bytes:
    return bytes([section_id]) + uleb128(len(body)) + body


def custom_section(name: str, body: bytes) -> bytes:
    return section(0, wasm_name(name) + body)


def code_section(body: bytes = CODE_BODY) -> bytes:
    return section(10, body)


def padding_section(size: int) -> bytes:
    """A custom section named ``pad`` occupying exactly ``size`` bytes."""
    name = wasm_name("pad")
    for payload_len in range(len(name), size):
        if 1 + len(uleb128(payload_len)) + payload_len == size:
            return section(0, name + bytes(payload_len - len(name)))
    raise ValueError(f"No padding section of exactly {size} bytes")


def wasm_module(*sections: bytes) -> bytes:
    return WASM_PREAMBLE + b"".join(sections)


def module_with_code_offset(code_offset: int, debug_sections: dict[str, bytes]) -> bytes:
    """Module whose code section body starts exactly at ``code_offset``."""
    code = code_section()
    code_header = len(code) - len(CODE_BODY)
    padding = padding_section(code_offset - len(WASM_PREAMBLE) - code_header)
    customs = [custom_section(name, body) for name, body in debug_sections.items()]
    return wasm_module(padding, code, *customs)


# --- DWARF ------------------------------------------------------------------


@dataclass
class Entry:
    """A debugging information entry to encode.

    Attribute values depend on the form: ints for constants and addresses,
    ``str`` for strp/string, ``bytes`` for exprloc, another ``Entry`` for ref4
    and None for flag_present.
    """

    tag: int
    attrs: list[tuple[int, int, Any]] = field(default_factory=list)
    children: list["Entry"] = field(default_factory=list)


class DwarfBuilder:
    """Assembles .debug_abbrev, .debug_info and .debug_str for DWARF 4 units."""

    HEADER_SIZE = 11  # unit_length, version, abbrev offset, address size

    def __init__(self) -> None:
        self.strings = bytearray()
        self._string_offsets: dict[str, int] = {}
        self._abbrevs: dict[tuple, int] = {}
        self.offsets: dict[int, int] = {}

    def strp(self, text: str) -> int:
        offset = self._string_offsets.get(text)
        if offset is None:
            offset = len(self.strings)
            self.strings += text.encode("utf-8") + b"\x00"
            self._string_offsets[text] = offset
        return offset

    def _abbrev_code(self, entry: Entry) -> int:
        key = (entry.tag, bool(entry.children), tuple((at, form) for at, form, _ in entry.attrs))
        if key not in self._abbrevs:
            self._abbrevs[key] = len(self._abbrevs) + 1
        return self._abbrevs[key]

    def _encode_value(self, form: int, value: Any, unit_offset: int) -> bytes:
        if form in (DW_FORM_addr, DW_FORM_data4, DW_FORM_sec_offset):
            return struct.pack("<I", value)
        if form == DW_FORM_data1:
            return struct.pack("<B", value)
        if form == DW_FORM_data2:
            return struct.pack("<H", value)
        if form == DW_FORM_strp:
            return struct.pack("<I", self.strp(value))
        if form == DW_FORM_string:
            return value.encode("utf-8") + b"\x00"
        if form == DW_FORM_exprloc:
            return uleb128(len(value)) + value
        if form == DW_FORM_flag_present:
            return b""
        if form == DW_FORM_ref4:
            return struct.pack("<I", self.offsets.get(id(value), unit_offset) - unit_offset)
        raise ValueError(f"Unsupported form 0x{form:x}")

    def _encode_entry(self, entry: Entry, offset: int, unit_offset: int, out: bytearray) -> int:
        self.offsets[id(entry)] = offset
        data = uleb128(self._abbrev_code(entry))
        for _, form, value in entry.attrs:
            data += self._encode_value(form, value, unit_offset)
        out += data
        offset += len(data)
        if entry.children:
            for child in entry.children:
                offset = self._encode_entry(child, offset, unit_offset, out)
            out += b"\x00"
            offset += 1
        return offset

    def debug_info(self, *units: Entry) -> bytes:
        """Encode one DWARF 4 unit per root entry."""
        # The first pass fixes every entry's offset so references resolve
        for _ in range(2):
            section_data = bytearray()
            for root in units:
                unit_offset = len(section_data)
                dies = bytearray()
                self._encode_entry(root, unit_offset + self.HEADER_SIZE, unit_offset, dies)
                body = struct.pack("<HIB", 4, 0, 4) + bytes(dies)
                section_data += struct.pack("<I", len(body)) + body
        return bytes(section_data)

    def debug_abbrev(self) -> bytes:
        out = bytearray()
        for (tag, has_children, attrs), code in self._abbrevs.items():
            out += uleb128(code) + uleb128(tag) + bytes([1 if has_children else 0])
            for at, form in attrs:
                out += uleb128(at) + uleb128(form)
            out += b"\x00\x00"
        out += b"\x00"
        return bytes(out)

    def debug_str(self) -> bytes:
        return bytes(self.strings)

    def offset_of(self, entry: Entry) -> int:
        return self.offsets[id(entry)]


class LineProgramBuilder:
    """Assembles a DWARF 4 line program using standard opcodes only."""

    def __init__(
        self,
        include_dirs: tuple[str, ...] = ("src",),
        files: tuple[tuple[str, int], ...] = (("main.c", 1),),
    ) -> None:
        self.include_dirs = include_dirs
        self.files = files
        self.ops = bytearray()
        self._reset_state()

    def _reset_state(self) -> None:
        self._address: int | None = None
        self._line = 1
        self._column = 0

    def _move_to(self, address: int) -> None:
        if self._address is None:
            self.ops += b"\x00" + uleb128(5) + b"\x02" + struct.pack("<I", address)
        elif address != self._address:
            self.ops += b"\x02" + uleb128(address - self._address)
        self._address = address

    def set_file(self, file_index: int) -> "LineProgramBuilder":
        self.ops += b"\x04" + uleb128(file_index)
        return self

    def row(self, address: int, line: int, column: int = 0) -> "LineProgramBuilder":
        self._move_to(address)
        if line != self._line:
            self.ops += b"\x03" + sleb128(line - self._line)
            self._line = line
        if column != self._column:
            self.ops += b"\x05" + uleb128(column)
            self._column = column
        self.ops += b"\x01"
        return self

    def end_sequence(self, address: int) -> "LineProgramBuilder":
        self._move_to(address)
        self.ops += b"\x00\x01\x01"
        self._reset_state()
        return self

    def build(self) -> bytes:
        header = bytes([1, 1, 1]) + struct.pack("<b", -5) + bytes([14, 13])
        header += bytes([0, 1, 1, 1, 1, 0, 0, 0, 1, 0, 0, 1])
        header += b"".join(d.encode("utf-8") + b"\x00" for d in self.include_dirs) + b"\x00"
        header += b"".join(
            name.encode("utf-8") + b"\x00" + uleb128(dir_index) + uleb128(0) + uleb128(0)
            for name, dir_index in self.files
        )
        header += b"\x00"
        body = struct.pack("<HI", 4, len(header)) + header + bytes(self.ops)
        return struct.pack("<I", len(body)) + body


def range_list(*ranges: tuple[int, int]) -> bytes:
    """A .debug_ranges list terminated by the (0, 0) entry."""
    out = b"".join(struct.pack("<II", begin, end) for begin, end in ranges)
    return out + struct.pack("<II", 0, 0)


def location_list(*entries: tuple[int, int, bytes]) -> bytes:
    """A .debug_loc list terminated by the (0, 0) entry."""
    out = b"".join(
        struct.pack("<IIH", begin, end, len(expr)) + expr for begin, end, expr in entries
    )
    return out + struct.pack("<II", 0, 0)


# --- Ready-made scenarios ---------------------------------------------------


def compile_unit(children: list[Entry], stmt_list: bool = True) -> Entry:
    attrs = [
        (DW_AT_name, DW_FORM_strp, "main.c"),
        (DW_AT_comp_dir, DW_FORM_strp, "/proj"),
    ]
    if stmt_list:
        attrs.append((DW_AT_stmt_list, DW_FORM_sec_offset, 0))
    attrs += [
        (DW_AT_low_pc, DW_FORM_addr, 0),
        (DW_AT_high_pc, DW_FORM_data4, 0x100),
        (DW_AT_language, DW_FORM_data2, DW_LANG_C99),
    ]
    return Entry(DW_TAG_compile_unit, attrs, children)


def minimal_line_program() -> LineProgramBuilder:
    """Rows (10, 5, 3) and (20, 6, 1) closed by an end of sequence at 21."""
    return LineProgramBuilder().row(10, 5, 3).row(20, 6, 1).end_sequence(21)


def minimal_sections(
    line_program: LineProgramBuilder | None = None, decl_file: int = 1
) -> dict[str, bytes]:
    """One unit with a single live function `main` at [10, 22)."""
    builder = DwarfBuilder()
    main = Entry(
        DW_TAG_subprogram,
        [
            (DW_AT_name, DW_FORM_strp, "main"),
            (DW_AT_low_pc, DW_FORM_addr, 10),
            (DW_AT_high_pc, DW_FORM_data4, 12),
            (DW_AT_decl_file, DW_FORM_data1, decl_file),
            (DW_AT_decl_line, DW_FORM_data1, 5),
        ],
    )
    info = builder.debug_info(compile_unit([main]))
    program = line_program if line_program is not None else minimal_line_program()
    return {
        ".debug_abbrev": builder.debug_abbrev(),
        ".debug_info": info,
        ".debug_line": program.build(),
        ".debug_str": builder.debug_str(),
    }


@dataclass
class ScopeScenario:
    """Sections of the scope scenario plus entry offsets for assertions."""

    sections: dict[str, bytes]
    offsets: dict[str, int]


def scope_sections() -> ScopeScenario:
    """
    One unit exercising every scope tree feature:

    - ``main``: live subprogram with a type reference
    - ``dead``: subprogram at address 0, removed
    - ``inl``: inlined subprogram at address 0, keeps its entry
    - ``ranged_dead``: subprogram whose only range is dead, removed
    - a lexical block with one dead and one live range
    - ``counter``: variable with a location list
    - ``alias``: variable with an exprloc location referring to ``inl``
    - ``packed``: entry carrying one value of each enumerated attribute that
      pyelftools has no table for
    """
    builder = DwarfBuilder()

    int_type = Entry(
        DW_TAG_base_type,
        [
            (DW_AT_name, DW_FORM_strp, "int"),
            (DW_AT_encoding, DW_FORM_data1, DW_ATE_signed),
            (DW_AT_byte_size, DW_FORM_data1, 4),
        ],
    )
    block = Entry(DW_TAG_lexical_block, [(DW_AT_ranges, DW_FORM_sec_offset, 0)])
    main = Entry(
        DW_TAG_subprogram,
        [
            (DW_AT_name, DW_FORM_strp, "main"),
            (DW_AT_low_pc, DW_FORM_addr, 10),
            (DW_AT_high_pc, DW_FORM_data4, 12),
            (DW_AT_decl_file, DW_FORM_data1, 1),
            (DW_AT_decl_line, DW_FORM_data1, 5),
            (DW_AT_external, DW_FORM_flag_present, None),
            (DW_AT_type, DW_FORM_ref4, int_type),
        ],
        [block],
    )
    dead = Entry(
        DW_TAG_subprogram,
        [
            (DW_AT_name, DW_FORM_strp, "dead"),
            (DW_AT_low_pc, DW_FORM_addr, 0),
            (DW_AT_high_pc, DW_FORM_data4, 4),
        ],
    )
    inlined = Entry(
        DW_TAG_subprogram,
        [
            (DW_AT_name, DW_FORM_strp, "inl"),
            (DW_AT_linkage_name, DW_FORM_strp, "_Z3inlv"),
            (DW_AT_inline, DW_FORM_data1, DW_INL_inlined),
            (DW_AT_low_pc, DW_FORM_addr, 0),
            (DW_AT_high_pc, DW_FORM_data4, 4),
        ],
    )
    ranged_dead = Entry(
        DW_TAG_subprogram,
        [
            (DW_AT_name, DW_FORM_strp, "ranged_dead"),
            (DW_AT_ranges, DW_FORM_sec_offset, 24),
        ],
    )
    counter = Entry(
        DW_TAG_variable,
        [
            (DW_AT_name, DW_FORM_string, "counter"),
            (DW_AT_location, DW_FORM_sec_offset, 0),
        ],
    )
    alias = Entry(
        DW_TAG_variable,
        [
            (DW_AT_name, DW_FORM_string, "alias"),
            (DW_AT_abstract_origin, DW_FORM_ref4, inlined),
            (DW_AT_location, DW_FORM_exprloc, b"\x03\x00\x04\x00\x00"),
        ],
    )
    packed = Entry(
        DW_TAG_base_type,
        [
            (DW_AT_name, DW_FORM_string, "packed"),
            (DW_AT_visibility, DW_FORM_data1, 1),
            (DW_AT_virtuality, DW_FORM_data1, 2),
            (DW_AT_identifier_case, DW_FORM_data1, 3),
            (DW_AT_ordering, DW_FORM_data1, 1),
            (DW_AT_decimal_sign, DW_FORM_data1, 4),
            (DW_AT_endianity, DW_FORM_data1, 2),
            (DW_AT_address_class, DW_FORM_data1, 0),
        ],
    )

    info = builder.debug_info(
        compile_unit([int_type, main, dead, inlined, ranged_dead, counter, alias, packed])
    )
    # ranges: list at 0 -> (0, 2) dead, (30, 40) live; list at 24 -> (1, 3) dead
    ranges = range_list((0, 2), (30, 40)) + range_list((1, 3))
    sections = {
        ".debug_abbrev": builder.debug_abbrev(),
        ".debug_info": info,
        ".debug_line": minimal_line_program().build(),
        ".debug_str": builder.debug_str(),
        ".debug_ranges": ranges,
        ".debug_loc": location_list((10, 20, b"\x50")),
    }
    offsets = {
        "int": builder.offset_of(int_type),
        "main": builder.offset_of(main),
        "inl": builder.offset_of(inlined),
    }
    return ScopeScenario(sections=sections, offsets=offsets)
