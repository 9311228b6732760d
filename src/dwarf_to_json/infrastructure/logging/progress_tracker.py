#!/usr/bin/env python3

"""Progress tracking for DWARF traversal."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from time import time
from typing import Any


class ProgressTracker:
    """
    Count compilation units, entries and line rows visited by a builder.

    Reports a one-line summary at DEBUG level when the builder finishes.
    """

    def __init__(self, logger: logging.Logger, label: str):
        """
        Initialize progress tracker.

        Args:
            logger: Logger instance for progress reporting
            label: Name of the builder being tracked
        """
        self.logger = logger
        self.label = label
        self.start_time = time()
        self.unit_count = 0
        self.entry_count = 0
        self.row_count = 0

    @contextmanager
    def track_unit(self, unit: Any) -> Iterator[None]:
        """
        Track one compilation unit.

        Args:
            unit: pyelftools CompileUnit being processed
        """
        self.unit_count += 1
        unit_start = time()
        unit_offset = getattr(unit, "cu_offset", 0)

        self.logger.debug(f"{self.label}: unit #{self.unit_count} at 0x{unit_offset:x}")
        try:
            yield
        except Exception as e:
            elapsed = time() - unit_start
            self.logger.debug(
                f"{self.label}: unit #{self.unit_count} failed after {elapsed:.3f}s: {e}"
            )
            raise

    def count_entry(self) -> None:
        self.entry_count += 1

    def count_row(self) -> None:
        self.row_count += 1

    def report_summary(self) -> None:
        """Report final processing statistics."""
        total_time = time() - self.start_time
        self.logger.debug(
            f"{self.label} complete: {self.unit_count} units, {self.entry_count} entries, "
            f"{self.row_count} rows in {total_time:.3f}s"
        )
