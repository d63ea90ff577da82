"""
Edit engine — mutations on a single unit's local buffer.

Every operation edits a copy of the unit's current text, re-derives the
unit structure by analyzing the edited text in isolation, and only then
replaces the unit's buffer and structural fields.  Spans are therefore
never patched by hand, and a failed edit leaves the unit untouched.
Nothing reaches the whole-file buffer until the session commits the unit.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from .analyzer import SourceAnalyzer
from .buffer import SourceBuffer
from .errors import ContractError, MatchError
from .units import Binding, BindingGroupKind, Unit, UnitKind

logger = logging.getLogger(__name__)

MODULE_NAME_MODES = ("string", "raw")


def _as_group(group) -> BindingGroupKind:
    if isinstance(group, BindingGroupKind):
        return group
    try:
        return BindingGroupKind(str(group).lower())
    except ValueError:
        raise ContractError(
            f"Unknown binding group {group!r}; expected 'default' or 'named'"
        ) from None


def _as_names(names) -> list[str]:
    if isinstance(names, str):
        names = [names]
    names = [str(n).strip() for n in names or []]
    if not names or not all(names):
        raise ContractError("At least one non-empty member name is required")
    return names


class UnitEditor:
    """Edit operations for one unit.

    Parameters
    ----------
    unit:
        The unit to edit.
    analyzer:
        Used to re-derive the unit after each edit.
    retire:
        Callback tombstoning the unit (normally ``UnitRegistry.retire``).
    default_quote:
        Quote used when a raw specifier is renamed in string mode.
    """

    def __init__(
        self,
        unit: Unit,
        analyzer: SourceAnalyzer,
        retire: Optional[Callable[[Unit], None]] = None,
        default_quote: str = '"',
    ) -> None:
        self.unit = unit
        self.analyzer = analyzer
        self._retire = retire
        self.default_quote = default_quote

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(self, edit: Callable[[SourceBuffer], object]) -> None:
        """Run *edit* on a copy of the local text and re-derive the unit."""
        if self.unit.retired:
            raise ContractError(f"Unit {self.unit.id} was removed and cannot be edited")
        buffer = SourceBuffer(self.unit.text)
        edit(buffer)
        text = str(buffer)
        structure = self.analyzer.analyze_unit_text(text, self.unit.kind)

        self.unit.code = SourceBuffer(text)
        self.unit.module = structure.module
        self.unit.default_members = structure.default_members
        self.unit.members = structure.members
        logger.debug("Unit %d is now: %s", self.unit.id, text)

    def _module_only(self) -> None:
        if self.unit.kind is not UnitKind.MODULE:
            raise ContractError(
                f"This method is only available for module imports, "
                f"not for {self.unit.kind.value} unit {self.unit.id}"
            )

    def _find(self, group: BindingGroupKind, name: str) -> Binding:
        self._module_only()
        if not name:
            raise ContractError(f"{group.value} member name must be set")
        matches = self.unit.group(group).find(name)
        if len(matches) != 1:
            problem = "Unable to locate" if not matches else "Found multiple"
            raise MatchError(
                f"{problem} {group.value} member(s) with name '{name}' "
                f"in unit {self.unit.id}:\n{self.unit.text}",
                [self.unit],
            )
        return matches[0]

    def _spaced(self, index: int, text: str) -> str:
        """Prefix *text* with a space if it would touch the previous token."""
        if index > 0 and not self.unit.text[index - 1].isspace():
            return " " + text
        return text

    # ------------------------------------------------------------------
    # Module
    # ------------------------------------------------------------------

    def rename_module(self, new_name: str, mode: str = "string") -> None:
        """
        Replace the module specifier.

        ``mode="string"`` wraps *new_name* in the unit's quote character,
        ``mode="raw"`` inserts it verbatim (dynamic and commonjs units only).
        """
        if mode not in MODULE_NAME_MODES:
            raise ContractError(
                f"Unknown mode {mode!r}. Valid modes are 'string' and 'raw'."
            )
        if self.unit.kind is UnitKind.MODULE and mode == "raw":
            raise ContractError("Raw module names are not allowed for module imports.")
        if not new_name:
            raise ContractError("A new module name must be provided")

        module = self.unit.module
        if mode == "string":
            quote = module.quotes or self.default_quote
            new_name = f"{quote}{new_name}{quote}"
        self._apply(lambda b: b.overwrite(module.start, module.end, new_name))

    # ------------------------------------------------------------------
    # Adding members
    # ------------------------------------------------------------------

    def add_default_members(self, names: Iterable[str]) -> None:
        self._module_only()
        names = _as_names(names)
        default = self.unit.default_members
        named = self.unit.members

        if default.count:
            index = default.entities[-1].abs_end
            text = default.separator + default.separator.join(names)
            self._apply(lambda b: b.append_right(index, text))
        elif named.start is None:
            # no bindings at all: build the clause in front of the specifier
            index = self.unit.module.start
            text = self._spaced(index, ", ".join(names) + " from ")
            self._apply(lambda b: b.append_right(index, text))
        else:
            index = named.start
            text = ", ".join(names) + ", "
            self._apply(lambda b: b.append_right(index, text))

    def add_members(self, names: Iterable[str]) -> None:
        self._module_only()
        names = _as_names(names)
        default = self.unit.default_members
        named = self.unit.members

        if named.count:
            index = named.entities[-1].abs_end
            text = named.separator + named.separator.join(names)
            self._apply(lambda b: b.append_right(index, text))
        elif named.start is not None:
            # empty braces
            block = "{ " + ", ".join(names) + " }"
            self._apply(lambda b: b.overwrite(named.start, named.end, block))
        elif not default.count:
            index = self.unit.module.start
            text = self._spaced(index, "{ " + ", ".join(names) + " } from ")
            self._apply(lambda b: b.append_right(index, text))
        else:
            index = default.end
            text = ", { " + ", ".join(names) + " }"
            self._apply(lambda b: b.append_right(index, text))

    # ------------------------------------------------------------------
    # Removing members
    # ------------------------------------------------------------------

    def remove_member(self, group, name: str) -> None:
        """Remove one binding; removing the last one removes the group."""
        group = _as_group(group)
        binding = self._find(group, name)
        if self.unit.group(group).count == 1:
            self.remove_members(group)
            return

        if binding.next is not None:
            start, end = binding.start, binding.next
        elif binding.last is not None:
            start, end = binding.last, binding.abs_end
        else:
            start, end = binding.start, binding.abs_end
        self._apply(lambda b: b.remove(start, end))

    def remove_members(self, group) -> None:
        """
        Remove a whole binding group with its punctuation.

        If the other group is empty as well, the statement falls back to a
        bare import (``import "m";``).
        """
        self._module_only()
        group = _as_group(group)
        target = self.unit.group(group)
        other = self.unit.group(group.other)
        default = self.unit.default_members
        named = self.unit.members

        if target.start is None:
            logger.debug("Unit %d has no %s members to remove", self.unit.id, group.value)
            return

        if other.start is not None:
            if group is BindingGroupKind.NAMED:
                start, end = default.end, named.end
            else:
                start, end = default.start, named.start
        else:
            start, end = target.start, self.unit.module.start
        self._apply(lambda b: b.remove(start, end))

    # ------------------------------------------------------------------
    # Renaming members
    # ------------------------------------------------------------------

    def rename_member(self, group, name: str, new_name: str, keep_alias: bool = False) -> None:
        """
        Rename a binding.

        With *keep_alias* an existing alias is preserved, otherwise it is
        dropped together with the old name.
        """
        group = _as_group(group)
        binding = self._find(group, name)
        if not new_name:
            raise ContractError("A new member name must be provided")
        end = binding.end if keep_alias else binding.abs_end
        self._apply(lambda b: b.overwrite(binding.start, end, new_name))

    def set_alias(self, group, name: str, alias: Optional[str]) -> None:
        """Set, replace or (with ``alias=None``) drop a binding's alias."""
        group = _as_group(group)
        binding = self._find(group, name)
        text = f"{name} as {alias}" if alias else name
        self._apply(lambda b: b.overwrite(binding.start, binding.abs_end, text))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def make_untraceable(self) -> None:
        """Tombstone the unit so name and hash lookups skip it."""
        if self._retire is not None:
            self._retire(self.unit)
        else:
            self.unit.retired = True
