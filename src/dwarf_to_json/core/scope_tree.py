#!/usr/bin/env python3

"""Build the DWARF scope forest exported under ``x-scopes``."""

from elftools.dwarf.compileunit import CompileUnit
from elftools.dwarf.die import DIE
from elftools.dwarf.dwarfinfo import DWARFInfo

from ..infrastructure.logging import ProgressTracker, get_logger
from .attribute_values import AttributeMapper, short_name
from .dead_code import is_out_of_range
from .dwarf_reader import READER_ERRORS, iter_units
from .errors import DwarfFormatError
from .line_table import load_line_program
from .models import DebugInfoObj, IntValue, RangesValue, ScopeArena, UidValue
from .source_registry import SourceRegistry, UnitSources

logger = get_logger(__name__)

UNIT_TAGS = ("DW_TAG_compile_unit", "DW_TAG_type_unit")


class ScopeTreeBuilder:
    """Walks every unit's entries into a ScopeArena.

    Args:
        dwarf_info: DWARF reader over the module's sections
        registry: Source registry shared with the line table
    """

    def __init__(self, dwarf_info: DWARFInfo, registry: SourceRegistry) -> None:
        self.dwarf_info = dwarf_info
        self.registry = registry
        self.progress = ProgressTracker(logger, "Scope tree")

    def build(self) -> ScopeArena:
        """
        Build the scope forest and prune dead functions from it.

        Raises:
            DwarfFormatError: If an entry or attribute is malformed
            MissingEntryError: If a file attribute names a missing file entry
        """
        arena = ScopeArena()
        try:
            range_lists = self.dwarf_info.range_lists()
            location_lists = self.dwarf_info.location_lists()
        except READER_ERRORS as e:
            raise DwarfFormatError(f"Unreadable range or location lists: {e}") from e

        for unit in iter_units(self.dwarf_info):
            with self.progress.track_unit(unit):
                try:
                    self._walk_unit(unit, arena, range_lists, location_lists)
                except READER_ERRORS as e:
                    raise DwarfFormatError(
                        f"Malformed entries in unit at 0x{unit.cu_offset:x}: {e}"
                    ) from e

        removed = remove_dead_functions(arena)
        if removed:
            logger.debug(f"Removed {removed} dead subprogram entries")
        self.progress.report_summary()
        return arena

    def _unit_mapper(self, unit: CompileUnit, top_die: DIE, range_lists, location_lists) -> AttributeMapper:
        base_address = 0
        line_program = None
        comp_dir = None
        if top_die.tag in UNIT_TAGS:
            low_pc = top_die.attributes.get("DW_AT_low_pc")
            if low_pc is not None and low_pc.form == "DW_FORM_addr":
                base_address = low_pc.value
            comp_dir_attr = top_die.attributes.get("DW_AT_comp_dir")
            if comp_dir_attr is not None:
                comp_dir = comp_dir_attr.value
            if "DW_AT_stmt_list" in top_die.attributes:
                line_program = load_line_program(self.dwarf_info, unit)

        return AttributeMapper(
            unit,
            UnitSources(self.registry, line_program, comp_dir),
            base_address=base_address,
            range_lists=range_lists,
            location_lists=location_lists,
        )

    def _walk_unit(self, unit: CompileUnit, arena: ScopeArena, range_lists, location_lists) -> None:
        top_die = unit.get_top_DIE()
        mapper = self._unit_mapper(unit, top_die, range_lists, location_lists)

        root = arena.add(self._make_node(top_die, mapper))
        stack = [(root, top_die.iter_children())]
        while stack:
            parent, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                continue
            index = arena.add(self._make_node(child, mapper), parent)
            if child.has_children:
                stack.append((index, child.iter_children()))

    def _make_node(self, die: DIE, mapper: AttributeMapper) -> DebugInfoObj:
        self.progress.count_entry()
        node = DebugInfoObj(tag=short_name(die.tag, "DW_TAG_"))
        node.attrs["uid"] = UidValue(die.offset)
        for name, attr in die.attributes.items():
            node.attrs[short_name(name, "DW_AT_")] = mapper.map(die, attr, node.attrs)
        return node


def _is_inlined(node: DebugInfoObj) -> bool:
    # Any DW_AT_inline marks an abstract instance root
    return "inline" in node.attrs


def _is_dead(node: DebugInfoObj) -> bool:
    """
    Apply the dead code policy to one entry.

    Out-of-range code of an inlined subprogram is stripped, since the entry
    still describes inlined copies. Any other subprogram whose code is all out
    of range is dead.

    Returns:
        True if the entry must be removed with its subtree
    """
    is_subprogram = node.tag == "subprogram"

    low_pc = node.attrs.get("low_pc")
    high_pc = node.attrs.get("high_pc")
    if (
        is_subprogram
        and isinstance(low_pc, IntValue)
        and isinstance(high_pc, IntValue)
        and is_out_of_range(low_pc.value, high_pc.value)
    ):
        if not _is_inlined(node):
            return True
        del node.attrs["low_pc"]
        del node.attrs["high_pc"]
        return False

    ranges = node.attrs.get("ranges")
    if isinstance(ranges, RangesValue):
        live = tuple(r for r in ranges.ranges if not is_out_of_range(r[0], r[1]))
        if live != ranges.ranges:
            node.attrs["ranges"] = RangesValue(live)
        if not live and is_subprogram:
            if not _is_inlined(node):
                return True
            del node.attrs["ranges"]

    return False


def remove_dead_functions(arena: ScopeArena) -> int:
    """
    Prune dead subprograms from the forest.

    Removed entries stay in ``arena.nodes`` but are no longer reachable from
    ``arena.roots``.

    Returns:
        Number of entries removed (not counting their descendants)
    """
    removed = 0

    def prune(indices: list[int]) -> list[int]:
        nonlocal removed
        survivors = []
        for index in indices:
            node = arena[index]
            if _is_dead(node):
                removed += 1
                continue
            node.children = prune(node.children)
            survivors.append(index)
        return survivors

    arena.roots = prune(arena.roots)
    return removed
