#!/usr/bin/env python3

"""DWARF enumeration constants missing from pyelftools' enum tables.

pyelftools ships tables for base type encodings, accessibility, calling
conventions, inlining and languages only. The remaining enumerations that
scope attributes can carry are defined here in the same shape, so both kinds
of table can be reversed the same way.
"""

# DW_AT_visibility
ENUM_DW_VIS = {
    "DW_VIS_local": 0x01,
    "DW_VIS_exported": 0x02,
    "DW_VIS_qualified": 0x03,
}

# DW_AT_virtuality
ENUM_DW_VIRTUALITY = {
    "DW_VIRTUALITY_none": 0x00,
    "DW_VIRTUALITY_virtual": 0x01,
    "DW_VIRTUALITY_pure_virtual": 0x02,
}

# DW_AT_identifier_case
ENUM_DW_ID = {
    "DW_ID_case_sensitive": 0x00,
    "DW_ID_up_case": 0x01,
    "DW_ID_down_case": 0x02,
    "DW_ID_case_insensitive": 0x03,
}

# DW_AT_ordering (arrays)
ENUM_DW_ORD = {
    "DW_ORD_row_major": 0x00,
    "DW_ORD_col_major": 0x01,
}

# DW_AT_decimal_sign
ENUM_DW_DS = {
    "DW_DS_unsigned": 0x01,
    "DW_DS_leading_overpunch": 0x02,
    "DW_DS_trailing_overpunch": 0x03,
    "DW_DS_leading_separate": 0x04,
    "DW_DS_trailing_separate": 0x05,
}

# DW_AT_endianity
ENUM_DW_END = {
    "DW_END_default": 0x00,
    "DW_END_big": 0x01,
    "DW_END_little": 0x02,
}

# DW_AT_address_class; only the generic class is architecture independent
ENUM_DW_ADDR = {
    "DW_ADDR_none": 0x00,
}
