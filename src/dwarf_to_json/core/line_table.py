#!/usr/bin/env python3

"""Build the address to source location table from DWARF line programs."""

from operator import attrgetter

from elftools.dwarf.compileunit import CompileUnit
from elftools.dwarf.dwarfinfo import DWARFInfo
from elftools.dwarf.lineprogram import LineProgram

from ..infrastructure.logging import ProgressTracker, get_logger
from .dead_code import is_out_of_range
from .dwarf_reader import READER_ERRORS, iter_units
from .errors import DwarfFormatError
from .models import LocationInfo, LocationRecord
from .source_registry import SourceRegistry, UnitSources

logger = get_logger(__name__)


def load_line_program(dwarf_info: DWARFInfo, unit: CompileUnit) -> LineProgram | None:
    """
    Return the unit's line program, or None when it has none.

    A header that cannot be parsed is treated like a missing program: the
    unit contributes no locations and conversion goes on.
    """
    try:
        return dwarf_info.line_program_for_CU(unit)
    except READER_ERRORS as e:
        logger.warning(
            f"Skipping unreadable line program of unit at 0x{unit.cu_offset:x}: {e}"
        )
        return None


class LineTableBuilder:
    """Runs each unit's line program and collects location records.

    Args:
        dwarf_info: DWARF reader over the module's sections
        registry: Source registry shared with the scope tree
    """

    def __init__(self, dwarf_info: DWARFInfo, registry: SourceRegistry) -> None:
        self.dwarf_info = dwarf_info
        self.registry = registry
        self.progress = ProgressTracker(logger, "Line table")
        self.dead_sequences = 0

    def build(self) -> LocationInfo:
        """
        Collect location records for every unit, sorted by address.

        Raises:
            DwarfFormatError: If a unit or its line program rows are malformed
            MissingEntryError: If a row references a missing file entry
        """
        locations: list[LocationRecord] = []

        for unit in iter_units(self.dwarf_info):
            with self.progress.track_unit(unit):
                try:
                    self._collect_unit(unit, locations)
                except READER_ERRORS as e:
                    raise DwarfFormatError(
                        f"Malformed line data in unit at 0x{unit.cu_offset:x}: {e}"
                    ) from e

        locations.sort(key=attrgetter("address"))

        if self.dead_sequences:
            logger.debug(f"Dropped {self.dead_sequences} dead function sequences")
        self.progress.report_summary()
        return LocationInfo(sources=self.registry.sources, locations=locations)

    def _collect_unit(self, unit: CompileUnit, locations: list[LocationRecord]) -> None:
        top_die = unit.get_top_DIE()
        if "DW_AT_stmt_list" not in top_die.attributes:
            logger.debug(f"Unit at 0x{unit.cu_offset:x} has no line program")
            return

        line_program = load_line_program(self.dwarf_info, unit)
        if line_program is None:
            return

        comp_dir_attr = top_die.attributes.get("DW_AT_comp_dir")
        unit_sources = UnitSources(
            self.registry,
            line_program,
            comp_dir_attr.value if comp_dir_attr is not None else None,
        )

        sequence: list[LocationRecord] = []
        for entry in line_program.get_entries():
            state = entry.state
            if state is None:
                continue
            self.progress.count_row()

            record = LocationRecord(
                address=state.address,
                source_id=unit_sources.source_id(state.file),
                line=state.line,
                column=state.column,
            )
            if not state.end_sequence:
                sequence.append(record)
                continue

            # The end row points one past the last instruction
            record.address -= 1
            if not sequence or sequence[-1].address < record.address:
                sequence.append(record)
            self._close_sequence(sequence, locations)
            sequence = []

        # Rows of a sequence the program never terminated
        locations.extend(sequence)

    def _close_sequence(
        self, sequence: list[LocationRecord], locations: list[LocationRecord]
    ) -> None:
        if not sequence:
            return
        start = sequence[0].address
        end = sequence[-1].address
        if is_out_of_range(start, end + 1):
            self.dead_sequences += 1
            logger.debug(f"Dropping dead function sequence at 0x{start:x}-0x{end:x}")
            return
        locations.extend(sequence)
