"""
Data model for discovered import constructs.

All spans on a unit's module descriptor and binding groups are relative to
the unit's own local buffer.  Only ``Unit.start``/``Unit.end`` are expressed
in whole-file coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .buffer import SourceBuffer
from .errors import ContractError


class UnitKind(str, Enum):
    """Syntactic family of an import construct."""
    MODULE = "module"
    DYNAMIC = "dynamic"
    COMMONJS = "commonjs"


# Discovery order, also the order of the id ranges (1x, 2x, 3x scope).
KIND_ORDER: tuple[UnitKind, ...] = (UnitKind.MODULE, UnitKind.DYNAMIC, UnitKind.COMMONJS)

# Names accepted wherever a kind is given as a string.
_KIND_ALIASES = {
    "module": UnitKind.MODULE,
    "es6": UnitKind.MODULE,
    "dynamic": UnitKind.DYNAMIC,
    "commonjs": UnitKind.COMMONJS,
    "cjs": UnitKind.COMMONJS,
}


def parse_kind(value) -> UnitKind:
    """Return the UnitKind for *value* (a UnitKind or one of its names)."""
    if isinstance(value, UnitKind):
        return value
    kind = _KIND_ALIASES.get(str(value).lower())
    if kind is None:
        raise ContractError(
            f"Invalid kind: {value!r} - should be one or more of: "
            "'module', 'dynamic', 'commonjs'"
        )
    return kind


class BindingGroupKind(str, Enum):
    """Which binding group of a module import an operation targets."""
    DEFAULT = "default"
    NAMED = "named"

    @property
    def other(self) -> "BindingGroupKind":
        return BindingGroupKind.NAMED if self is BindingGroupKind.DEFAULT else BindingGroupKind.DEFAULT


_GROUP_SELECTORS = {
    "member": (BindingGroupKind.NAMED, False),
    "members": (BindingGroupKind.NAMED, True),
    "defaultmember": (BindingGroupKind.DEFAULT, False),
    "defaultmembers": (BindingGroupKind.DEFAULT, True),
}


def resolve_group_selector(selector: str) -> tuple[BindingGroupKind, bool]:
    """Map a script selector string to ``(group, plural)``.

    ``"member"`` -> (NAMED, False), ``"defaultMembers"`` -> (DEFAULT, True).
    """
    resolved = _GROUP_SELECTORS.get(str(selector).lower())
    if resolved is None:
        raise ContractError(
            f"Unknown member selector {selector!r}; expected one of "
            "'member', 'members', 'defaultMember', 'defaultMembers'"
        )
    return resolved


@dataclass
class Alias:
    name: str
    start: int
    end: int


@dataclass
class Binding:
    """One imported name.

    ``start``/``end`` cover the name only, ``abs_end`` also covers the alias.
    ``last`` is the previous sibling's ``abs_end`` and ``next`` the following
    sibling's ``start``; both are None at the group edges.
    """
    name: str
    start: int
    end: int
    abs_end: int
    index: int
    alias: Optional[Alias] = None
    last: Optional[int] = None
    next: Optional[int] = None


@dataclass
class BindingGroup:
    entities: list[Binding] = field(default_factory=list)
    start: Optional[int] = None
    end: Optional[int] = None
    separator: str = ", "

    @property
    def count(self) -> int:
        return len(self.entities)

    @property
    def names(self) -> list[str]:
        return [b.name for b in self.entities]

    def find(self, name: str) -> list[Binding]:
        return [b for b in self.entities if b.name == name]

    def __bool__(self) -> bool:
        return bool(self.entities)


@dataclass
class ModuleDescriptor:
    """The module specifier of a unit.

    ``start``/``end`` include the quotes of a string specifier.  ``type`` is
    ``"string"`` for literal specifiers and ``"raw"`` for anything else, in
    which case ``name`` is ``"N/A"``.
    """
    name: str
    start: int
    end: int
    type: str = "string"
    quotes: Optional[str] = None
    path: str = ""


RAW_NAME = "N/A"


@dataclass
class Unit:
    kind: UnitKind
    id: int
    index: int
    start: int
    end: int
    code: SourceBuffer
    module: ModuleDescriptor
    default_members: BindingGroup = field(default_factory=BindingGroup)
    members: BindingGroup = field(default_factory=BindingGroup)
    hash: str = ""
    retired: bool = False

    @property
    def text(self) -> str:
        """Current text of the local buffer."""
        return str(self.code)

    @property
    def is_bare(self) -> bool:
        """True for a module import without any bindings (``import "m";``)."""
        return (
            self.kind is UnitKind.MODULE
            and not self.default_members
            and not self.members
        )

    def group(self, which: BindingGroupKind) -> BindingGroup:
        if self.kind is not UnitKind.MODULE:
            raise ContractError(
                f"Binding groups are only available for module imports, "
                f"not for {self.kind.value} unit {self.id}"
            )
        if which is BindingGroupKind.DEFAULT:
            return self.default_members
        return self.members

    def describe(self) -> str:
        """Listing block used in match errors and the CLI."""
        lines = [
            "___",
            f"ID:   {self.id}",
            f"HASH: {self.hash}",
            f"NAME: {self.module.name}",
            f"STATEMENT:\n{self.text}",
        ]
        if self.retired:
            lines.insert(1, "(removed)")
        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict:
        data = {
            "kind": self.kind.value,
            "id": self.id,
            "hash": self.hash,
            "index": self.index,
            "start": self.start,
            "end": self.end,
            "code": self.text,
            "retired": self.retired,
            "module": {
                "name": self.module.name,
                "start": self.module.start,
                "end": self.module.end,
                "type": self.module.type,
                "quotes": self.module.quotes,
            },
        }
        if self.kind is UnitKind.MODULE:
            data["defaultMembers"] = _group_to_dict(self.default_members)
            data["members"] = _group_to_dict(self.members)
        return data


def _group_to_dict(group: BindingGroup) -> dict:
    return {
        "count": group.count,
        "start": group.start,
        "end": group.end,
        "separator": group.separator,
        "entities": [
            {
                "name": b.name,
                "start": b.start,
                "end": b.end,
                "absEnd": b.abs_end,
                "index": b.index,
                "alias": (
                    {"name": b.alias.name, "start": b.alias.start, "end": b.alias.end}
                    if b.alias else None
                ),
                "last": b.last,
                "next": b.next,
            }
            for b in group.entities
        ],
    }
