"""
Identity registry — keeps the units of one session addressable.

Units are looked up by module name, id or hash.  Retired (tombstoned) units
stay in the registry so their id slot remains reserved, but name and hash
lookups never return them again.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, Optional

from .advisories import DEFAULT_ADVISORIES, AdvisoryLog
from .errors import ContractError, MatchError
from .units import KIND_ORDER, Unit, UnitKind, parse_kind

logger = logging.getLogger(__name__)


def list_units(units: Iterable[Unit]) -> str:
    """Human-readable listing of *units* (id, hash, name, statement)."""
    blocks = [unit.describe() for unit in units]
    return "\n" + "".join(blocks) if blocks else "\n(no import units)\n"


def _name_matches(unit: Unit, name: str) -> bool:
    short = unit.module.name
    return short == name or os.path.splitext(short)[0] == name


class UnitRegistry:
    """Index of the units of one file."""

    def __init__(
        self,
        id_scope: int = 1000,
        advisories: Optional[AdvisoryLog] = None,
    ) -> None:
        self.id_scope = id_scope
        self.advisories = advisories if advisories is not None else DEFAULT_ADVISORIES
        self._units: dict[UnitKind, list[Unit]] = {kind: [] for kind in KIND_ORDER}
        self._live: dict[UnitKind, int] = {kind: 0 for kind in KIND_ORDER}
        self._hashes: dict[str, Unit] = {}

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def register(self, unit: Unit) -> Unit:
        """Add *unit*, making its hash unique within the session.

        A colliding hash ``h`` becomes ``h#2``, ``h#3``… in registration
        order.
        """
        if unit.hash in self._hashes:
            self.advisories.warn(
                f"It seems like there are multiple imports of module "
                f"'{unit.module.name}'. You should examine that."
            )
            nr = 2
            while f"{unit.hash}#{nr}" in self._hashes:
                nr += 1
            unit.hash = f"{unit.hash}#{nr}"
        self._hashes[unit.hash] = unit
        self._units[unit.kind].append(unit)
        self._live[unit.kind] += 1
        return unit

    def retire(self, unit: Unit) -> None:
        """Tombstone *unit*; idempotent."""
        if unit.retired:
            return
        unit.retired = True
        self._live[unit.kind] -= 1
        logger.debug("Retired %s unit %d (%s)", unit.kind.value, unit.id, unit.hash)

    def count(self, kind: UnitKind) -> int:
        """Number of live units of *kind*."""
        return self._live[parse_kind(kind)]

    def units(self, kinds=None, include_retired: bool = False) -> list[Unit]:
        """Units of the given kinds (all kinds by default) in id order."""
        selected = self._resolve_kinds(kinds)
        return [
            unit
            for kind in selected
            for unit in self._units[kind]
            if include_retired or not unit.retired
        ]

    def __iter__(self):
        return iter(self.units())

    def _resolve_kinds(self, kinds) -> list[UnitKind]:
        if not kinds:
            return list(KIND_ORDER)
        if isinstance(kinds, (str, UnitKind)):
            kinds = [kinds]
        return [parse_kind(k) for k in kinds]

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _not_found(self, what: str, candidates: list[Unit], allow_null: bool, detail: str):
        if allow_null:
            self.advisories.warn(
                f"No import unit matched {what}; continuing because null "
                "results are allowed."
            )
            return None
        raise MatchError(list_units(candidates) + "___\n" + detail, candidates)

    def select_by_name(self, name: str, kinds=None, allow_null: bool = False) -> Optional[Unit]:
        """
        Select the single live unit whose module short name is *name*.

        *name* may omit the file extension (``"hello"`` matches
        ``./lib/hello.js``).

        Raises
        ------
        MatchError
            If nothing matches (unless *allow_null*) or several units match.
        """
        if not name:
            raise ContractError("The name must be provided")
        selected = self._resolve_kinds(kinds)
        candidates = self.units(selected)
        matches = [u for u in candidates if _name_matches(u, name)]

        if not matches:
            if len(selected) == 1:
                where = f"{selected[0].value}-imports"
            elif len(selected) < len(KIND_ORDER):
                where = " or ".join(f"{k.value}-imports" for k in selected)
            else:
                where = "any group"
            return self._not_found(
                f"name '{name}'", candidates, allow_null,
                f"Unable to locate import statement with name: '{name}' in {where}",
            )
        if len(matches) > 1:
            raise MatchError(
                list_units(matches)
                + f"___\nFound multiple matches for '{name}'. "
                "If no other solution is available you may select via hash.",
                matches,
            )
        return matches[0]

    def select_by_id(self, unit_id: int, allow_null: bool = False) -> Optional[Unit]:
        """Select a unit by its id.  Intended for tests and debugging."""
        try:
            unit_id = int(unit_id)
        except (TypeError, ValueError):
            raise ContractError(f"Id {unit_id!r} is not a number") from None

        slot = unit_id // self.id_scope
        if slot < 1 or slot > len(KIND_ORDER):
            raise ContractError(
                f"Id '{unit_id}' is invalid. Ids range from {self.id_scope} "
                f"to {len(KIND_ORDER) * self.id_scope}+"
            )
        kind = KIND_ORDER[slot - 1]
        pool = self._units[kind]
        matches = [u for u in pool if u.id == unit_id]

        if not matches:
            return self._not_found(
                f"id '{unit_id}'", self.units(kind), allow_null,
                f"Unable to locate import statement with id: '{unit_id}'",
            )
        unit = matches[0]
        if unit.retired:
            raise MatchError(
                list_units([unit]) + f"___\nImport statement with id '{unit_id}' was removed",
                [unit],
            )
        return unit

    def select_by_hash(self, unit_hash, allow_null: bool = False) -> Optional[Unit]:
        """Select a live unit by its (discovery-time) hash."""
        unit = self._hashes.get(str(unit_hash))
        if unit is None or unit.retired:
            return self._not_found(
                f"hash '{unit_hash}'", self.units(), allow_null,
                f"Hash '{unit_hash}' was not found",
            )
        return unit
