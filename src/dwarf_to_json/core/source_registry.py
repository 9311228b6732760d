#!/usr/bin/env python3

"""Source path registry shared by the line table and the scope tree."""

from elftools.dwarf.lineprogram import LineProgram

from ..infrastructure.logging import get_logger
from .errors import MissingEntryError
from .source_urls import rewrite_url

logger = get_logger(__name__)

# Source id used by scope attributes that name no file
NO_SOURCE = -1


def _to_text(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class SourceRegistry:
    """Ordered, duplicate-free list of source paths.

    A path's position in the list is its ``source_id``; ids are assigned in
    first-seen order and never change. Paths are rewritten through the
    ``sourceURLPrefixes`` table before they are compared, so two paths that
    rewrite to the same URL share one id.

    Args:
        prefixes: ``(prefix, replacement)`` pairs, first match wins
    """

    def __init__(self, prefixes: list[tuple[str, str]] | None = None) -> None:
        self.prefixes = prefixes or []
        self._sources: list[str] = []
        self._ids: dict[str, int] = {}

    def register(self, path: str) -> int:
        """Return the id of ``path`` after rewriting, appending it if it is new."""
        url = rewrite_url(path, self.prefixes)
        source_id = self._ids.get(url)
        if source_id is None:
            if url != path:
                logger.debug(f"Rewrote source {path} -> {url}")
            source_id = len(self._sources)
            self._sources.append(url)
            self._ids[url] = source_id
        return source_id

    @property
    def sources(self) -> list[str]:
        return list(self._sources)

    def __len__(self) -> int:
        return len(self._sources)


class UnitSources:
    """Resolves file indices of one compilation unit to registry ids.

    Args:
        registry: Shared source registry
        line_program: The unit's line program, if any
        comp_dir: The unit's DW_AT_comp_dir, if any
    """

    def __init__(
        self,
        registry: SourceRegistry,
        line_program: LineProgram | None,
        comp_dir: bytes | str | None = None,
    ) -> None:
        self.registry = registry
        self.line_program = line_program
        self.comp_dir = _to_text(comp_dir)
        self._cache: dict[int, int] = {}

    @property
    def version(self) -> int:
        if self.line_program is None:
            return 0
        return self.line_program.header["version"]

    def file_path(self, file_index: int) -> str:
        """
        Compose the path of a line program file entry.

        The path is ``directory/filename``; relative directories are placed
        under the compilation directory. DWARF 5 indexes files and
        directories from 0, earlier versions from 1 with directory 0 standing
        for the compilation directory.

        Raises:
            MissingEntryError: If the file table has no such entry
        """
        if self.line_program is None:
            raise MissingEntryError(file_index)

        header = self.line_program.header
        file_entries = header["file_entry"]
        idx = file_index if self.version >= 5 else file_index - 1
        if idx < 0 or idx >= len(file_entries):
            raise MissingEntryError(file_index)

        entry = file_entries[idx]
        file_name = _to_text(entry.name) or ""

        dir_index = entry.dir_index
        if self.version < 5 and dir_index == 0:
            if self.comp_dir is None:
                return file_name
            return f"{self.comp_dir}/{file_name}"

        directory = self._include_directory(dir_index)
        if directory is None:
            return file_name

        prefix = ""
        if not directory.startswith("/") and self.comp_dir is not None:
            prefix = f"{self.comp_dir}/"
        return f"{prefix}{directory}/{file_name}"

    def _include_directory(self, dir_index: int | None) -> str | None:
        include_dirs = self.line_program.header["include_directory"]
        if dir_index is None:
            return None
        idx = dir_index if self.version >= 5 else dir_index - 1
        if 0 <= idx < len(include_dirs):
            return _to_text(include_dirs[idx])
        return None

    def source_id(self, file_index: int) -> int:
        """Registry id for a file index of this unit."""
        source_id = self._cache.get(file_index)
        if source_id is None:
            source_id = self.registry.register(self.file_path(file_index))
            self._cache[file_index] = source_id
        return source_id

    def attribute_source_id(self, file_index: int) -> int:
        """
        Registry id for a ``decl_file``/``call_file`` attribute.

        An index without a file entry (including 0 before DWARF 5) yields
        ``NO_SOURCE``, as does any index in a unit without line program.
        """
        if self.line_program is None:
            return NO_SOURCE
        if file_index == 0 and self.version < 5:
            return NO_SOURCE
        try:
            return self.source_id(file_index)
        except MissingEntryError:
            logger.debug(f"File attribute index {file_index} has no file entry")
            return NO_SOURCE
