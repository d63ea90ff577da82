"""
Import manager session — one file, its units and its whole-file buffer.

Typical use::

    manager = ImportManager(source, "src/app.js")
    unit = manager.select_by_name("hello")
    manager.editor(unit).add_members(["extra"])
    manager.commit(unit)
    result = str(manager)
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .advisories import DEFAULT_ADVISORIES, AdvisoryLog
from .analyzer import AnalysisResult, SourceAnalyzer
from .buffer import EditMapping, SourceBuffer
from .config import Config
from .editor import UnitEditor
from .errors import ContractError
from .registry import UnitRegistry, list_units
from .synthesis import (
    make_commonjs_statement,
    make_dynamic_statement,
    make_module_statement,
)
from .units import Unit, UnitKind

logger = logging.getLogger(__name__)

INSERT_MODES = ("append", "prepend", "replace")


class ImportManager:
    """Analyze and edit the imports of one source file.

    Parameters
    ----------
    source:
        The file's source text.
    filename:
        Hash salt and diagnostics label.
    config:
        Settings; defaults are used when omitted.
    advisories:
        Deduplicating warning sink, normally shared by all sessions of a
        process.  When omitted, ``config.WARNINGS`` picks the shared log or
        a silent one.  An explicit log is used as given, its own
        ``enabled`` flag decides whether anything is printed.
    auto_analyze:
        Run :meth:`analyze` immediately.
    """

    def __init__(
        self,
        source: str,
        filename: str = "",
        config: Optional[Config] = None,
        advisories: Optional[AdvisoryLog] = None,
        auto_analyze: bool = True,
    ) -> None:
        self.config = config or Config()
        if advisories is None:
            advisories = DEFAULT_ADVISORIES if self.config.WARNINGS else AdvisoryLog(enabled=False)
        self.advisories = advisories
        self.source = source
        self.filename = filename
        self.code = SourceBuffer(source)
        self.analyzer = SourceAnalyzer(filename, self.config.ID_SCOPE)
        self.registry = UnitRegistry(self.config.ID_SCOPE, advisories)
        self._result: Optional[AnalysisResult] = None
        self._top_index = 0
        if auto_analyze:
            self.analyze()

    # ------------------------------------------------------------------
    # Analysis and selection
    # ------------------------------------------------------------------

    def analyze(self) -> AnalysisResult:
        """Discover and register all units; runs only once per session."""
        if self._result is not None:
            return self._result
        result = self.analyzer.analyze(self.source)
        for unit in result.units:
            self.registry.register(unit)
        self._top_index = result.first_statement
        self._result = result
        logger.debug(
            "%s: %d module, %d dynamic, %d commonjs unit(s)",
            self.filename or "<source>",
            len(result.module_units),
            len(result.dynamic_units),
            len(result.commonjs_units),
        )
        return result

    def _require_analysis(self) -> None:
        if self._result is None:
            raise ContractError("analyze() must run before units can be used")

    def select_by_name(self, name: str, kinds=None, allow_null: bool = False) -> Optional[Unit]:
        self._require_analysis()
        return self.registry.select_by_name(name, kinds, allow_null)

    def select_by_id(self, unit_id: int, allow_null: bool = False) -> Optional[Unit]:
        self._require_analysis()
        return self.registry.select_by_id(unit_id, allow_null)

    def select_by_hash(self, unit_hash, allow_null: bool = False) -> Optional[Unit]:
        self._require_analysis()
        return self.registry.select_by_hash(unit_hash, allow_null)

    def units(self, kinds=None) -> list[Unit]:
        return self.registry.units(kinds)

    def count(self, kind: UnitKind) -> int:
        return self.registry.count(kind)

    def list_units(self) -> str:
        """Listing of every live unit (id, hash, name, statement)."""
        return list_units(self.registry.units())

    def editor(self, unit: Unit) -> UnitEditor:
        """Edit operations bound to *unit*."""
        return UnitEditor(
            unit,
            self.analyzer,
            retire=self.registry.retire,
            default_quote=self.config.QUOTE,
        )

    # ------------------------------------------------------------------
    # Writing to the whole-file buffer
    # ------------------------------------------------------------------

    def _past_newline(self, index: int) -> Optional[int]:
        """Index after the line break starting at *index*, or None."""
        if self.source.startswith("\r\n", index):
            return index + 2
        if self.source.startswith("\n", index):
            return index + 1
        return None

    def _live(self, unit: Unit) -> None:
        if unit.retired:
            raise ContractError(f"Unit {unit.id} ({unit.hash}) was already removed or replaced")

    def commit(self, unit: Unit) -> None:
        """Write the unit's local text over its original span."""
        self._live(unit)
        self.code.overwrite(unit.start, unit.end, unit.text)

    def _blank_before(self, index: int) -> int:
        """Start of the spaces and tabs directly in front of *index*."""
        while index > 0 and self.source[index - 1] in " \t":
            index -= 1
        return index

    def remove(self, unit: Unit) -> None:
        """
        Delete the unit and tombstone it.

        A unit on its own line takes the whole line with it.  A unit sharing
        its line with earlier code only takes the blanks in front of it, so
        the line break stays.
        """
        self._live(unit)
        begin = self._blank_before(unit.start)
        if begin == 0 or self.source[begin - 1] in "\r\n":
            end = self._past_newline(unit.end) or unit.end
        else:
            end = unit.end
        # separate ranges keep text inserted at unit.start
        self.code.remove(begin, unit.start)
        self.code.remove(unit.start, end)
        self.registry.retire(unit)

    def insert_at_unit(self, unit: Unit, mode: str, text: str) -> None:
        """
        Insert *text* relative to *unit*.

        ``append`` places it after the unit's line, ``prepend`` before the
        unit and ``replace`` substitutes the unit, which is tombstoned.
        """
        if mode not in INSERT_MODES:
            raise ContractError(
                f"Invalid insert mode {mode!r}; expected one of {', '.join(INSERT_MODES)}"
            )
        self._live(unit)
        if mode == "append":
            index = self._past_newline(unit.end)
            if index is None:
                index = unit.end
                text = "\n" + text
            self.code.append_right(index, text)
        elif mode == "prepend":
            self.code.append_right(unit.start, text)
        else:
            if text.endswith("\n"):
                text = text[:-1]
            self.code.overwrite(unit.start, unit.end, text)
            self.registry.retire(unit)

    def insert_statement(self, text: str, position: str = "bottom") -> None:
        """
        Insert a new statement.

        ``"top"`` inserts before the first real statement (after leading
        comments); anything else inserts after the last module import, or
        at the top if there is none.  Removed or replaced imports still
        count, their original spans mark the end of the import block.
        """
        self._require_analysis()
        module_units = self.registry.units(UnitKind.MODULE, include_retired=True)
        if position == "top" or not module_units:
            index = self._top_index
            if index == len(self.source) and self.source and not self.source.endswith("\n"):
                text = "\n" + text
            self.code.append_right(index, text)
            return

        last = max(module_units, key=lambda u: u.end)
        index = self._past_newline(last.end)
        if index is None:
            index = last.end
            text = "\n" + text
        self.code.append_right(index, text)

    # ------------------------------------------------------------------
    # Synthesis helpers
    # ------------------------------------------------------------------

    def make_module_statement(
        self,
        path: str,
        default_members: Iterable[str] = (),
        members: Iterable[str] = (),
    ) -> str:
        return make_module_statement(path, default_members, members, quote=self.config.QUOTE)

    def make_dynamic_statement(self, path: str, var_name: str, declarator: Optional[str] = None) -> str:
        return make_dynamic_statement(
            path, declarator or self.config.DECLARATOR, var_name, quote=self.config.QUOTE
        )

    def make_commonjs_statement(self, path: str, var_name: str, declarator: Optional[str] = None) -> str:
        return make_commonjs_statement(
            path, declarator or self.config.DECLARATOR, var_name, quote=self.config.QUOTE
        )

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def has_changed(self) -> bool:
        return self.code.has_changed()

    def edit_map(self) -> list[EditMapping]:
        return self.code.edit_map()

    def __str__(self) -> str:
        return str(self.code)
