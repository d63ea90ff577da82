"""
Source analyzer — discovers import constructs in JavaScript source.

Walks the top-level statements of a tree-sitter parse tree and emits one
``Unit`` per construct:

* ``import ... from "m"`` declarations        -> module units
* ``import("m")`` inside a top-level statement -> dynamic units
* ``require("m")`` inside a top-level statement -> commonjs units

Only the first dynamic import or require call of a statement is extracted;
further calls in the same statement are left alone.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Optional

from .buffer import SourceBuffer
from .errors import SourceSyntaxError
from .parser import OffsetMap, parse_source
from .units import (
    KIND_ORDER,
    RAW_NAME,
    Alias,
    Binding,
    BindingGroup,
    ModuleDescriptor,
    Unit,
    UnitKind,
)

logger = logging.getLogger(__name__)

# Top-level statements searched for dynamic imports and require calls.
_CALL_STATEMENTS = frozenset({
    "lexical_declaration",
    "variable_declaration",
    "expression_statement",
})

_QUOTES = ('"', "'", "`")

# Leading nodes skipped when looking for the first real statement.
_PREAMBLE_NODES = frozenset({"comment", "hash_bang_line", "hashbang_comment"})


@dataclass
class UnitStructure:
    """Structural fields derived from a single unit's text."""
    module: ModuleDescriptor
    default_members: BindingGroup = field(default_factory=BindingGroup)
    members: BindingGroup = field(default_factory=BindingGroup)


@dataclass
class AnalysisResult:
    """Units found by one analysis pass, in source order and per kind.

    ``first_statement`` is the offset of the first top-level node that is
    not a comment (the source length if there is none).
    """
    units: list[Unit] = field(default_factory=list)
    first_statement: int = 0

    def of_kind(self, kind: UnitKind) -> list[Unit]:
        return [u for u in self.units if u.kind is kind]

    @property
    def module_units(self) -> list[Unit]:
        return self.of_kind(UnitKind.MODULE)

    @property
    def dynamic_units(self) -> list[Unit]:
        return self.of_kind(UnitKind.DYNAMIC)

    @property
    def commonjs_units(self) -> list[Unit]:
        return self.of_kind(UnitKind.COMMONJS)


# ---------------------------------------------------------------------------
# Node helpers
# ---------------------------------------------------------------------------

def _named(node) -> list:
    """Named children of *node* without comments."""
    return [c for c in node.named_children if c.type != "comment"]


def _call_kind(node, offsets: OffsetMap) -> Optional[UnitKind]:
    """Return the unit kind a call_expression stands for, or None."""
    fn = node.child_by_field_name("function")
    args = node.child_by_field_name("arguments")
    if fn is None or args is None or not _named(args):
        return None
    if fn.type == "import":
        return UnitKind.DYNAMIC
    if fn.type == "identifier" and offsets.text_of(fn) == "require":
        return UnitKind.COMMONJS
    return None


def _find_import_call(node, offsets: OffsetMap, kinds: tuple[UnitKind, ...]):
    """Depth-first, source-ordered search for the first matching call.

    Returns ``(kind, call_node)`` or None.
    """
    if node.type == "call_expression":
        kind = _call_kind(node, offsets)
        if kind in kinds:
            return kind, node
    for child in node.named_children:
        found = _find_import_call(child, offsets, kinds)
        if found is not None:
            return found
    return None


def _module_descriptor(node, offsets: OffsetMap, base: int) -> ModuleDescriptor:
    """Describe a module specifier node relative to *base*."""
    start, end = offsets.span(node)
    text = offsets.text[start:end]
    literal = node.type == "string" or (
        node.type == "template_string"
        and not any(c.type == "template_substitution" for c in node.named_children)
    )
    if literal and len(text) >= 2 and text[0] in _QUOTES:
        path = text[1:-1]
        return ModuleDescriptor(
            name=path.split("/")[-1],
            start=start - base,
            end=end - base,
            type="string",
            quotes=text[0],
            path=path,
        )
    return ModuleDescriptor(
        name=RAW_NAME,
        start=start - base,
        end=end - base,
        type="raw",
        quotes=None,
        path=text,
    )


def _link(group: BindingGroup, text: str) -> BindingGroup:
    """Fill indices, sibling links, group span and separator."""
    entities = group.entities
    for index, binding in enumerate(entities):
        binding.index = index
        if index > 0:
            prev = entities[index - 1]
            binding.last = prev.abs_end
            prev.next = binding.start
    if len(entities) > 1:
        separator = text[entities[0].abs_end:entities[1].start]
        # only a comma and whitespace are reused, anything else (comments)
        # falls back to the plain separator
        if separator.count(",") == 1 and not separator.replace(",", "").strip():
            group.separator = separator
    return group


def _import_bindings(stmt, offsets: OffsetMap, base: int) -> tuple[BindingGroup, BindingGroup]:
    """Extract the default and named binding groups of an import_statement."""
    text = offsets.text
    default = BindingGroup()
    named = BindingGroup()
    clause = next((c for c in stmt.named_children if c.type == "import_clause"), None)
    if clause is None:
        return default, named

    for child in _named(clause):
        start, end = offsets.span(child)
        if child.type == "identifier":
            default.entities.append(Binding(
                name=text[start:end],
                start=start - base,
                end=end - base,
                abs_end=end - base,
                index=0,
            ))
        elif child.type == "namespace_import":
            ident = next(c for c in _named(child) if c.type == "identifier")
            a_start, a_end = offsets.span(ident)
            default.entities.append(Binding(
                name="*",
                start=start - base,
                end=start + 1 - base,
                abs_end=end - base,
                index=0,
                alias=Alias(text[a_start:a_end], a_start - base, a_end - base),
            ))
        elif child.type == "named_imports":
            named.start, named.end = start - base, end - base
            for spec in _named(child):
                if spec.type != "import_specifier":
                    continue
                s_start, s_end = offsets.span(spec)
                name_node = spec.child_by_field_name("name")
                alias_node = spec.child_by_field_name("alias")
                n_start, n_end = offsets.span(name_node)
                alias = None
                if alias_node is not None:
                    a_start, a_end = offsets.span(alias_node)
                    alias = Alias(text[a_start:a_end], a_start - base, a_end - base)
                named.entities.append(Binding(
                    name=text[n_start:n_end],
                    start=s_start - base,
                    end=n_end - base,
                    abs_end=s_end - base,
                    index=0,
                    alias=alias,
                ))

    if default.entities:
        default.start = default.entities[0].start
        default.end = default.entities[-1].abs_end

    local_text = text[base:]
    return _link(default, local_text), _link(named, local_text)


def _structure(stmt, kind: UnitKind, offsets: OffsetMap, base: int) -> Optional[UnitStructure]:
    """Derive the structure of one statement, or None if it holds no unit."""
    if kind is UnitKind.MODULE:
        source = stmt.child_by_field_name("source")
        module = _module_descriptor(source, offsets, base)
        default, named = _import_bindings(stmt, offsets, base)
        return UnitStructure(module=module, default_members=default, members=named)

    found = _find_import_call(stmt, offsets, (kind,))
    if found is None:
        return None
    _, call = found
    first_arg = _named(call.child_by_field_name("arguments"))[0]
    return UnitStructure(module=_module_descriptor(first_arg, offsets, base))


def compute_hash(kind: UnitKind, structure: UnitStructure, filename: str) -> str:
    """Content-derived identity of a unit.

    Depends on the module short name, the kind, the filename and, for module
    imports, every binding name and alias in encounter order.
    """
    parts = [structure.module.name, kind.value, filename]
    if kind is UnitKind.MODULE:
        for binding in structure.default_members.entities + structure.members.entities:
            if binding.alias is not None:
                parts.append(f"{binding.name}:{binding.alias.name}")
            else:
                parts.append(binding.name)
    digest = hashlib.sha256("\x1f".join(parts).encode("utf-8"))
    return digest.hexdigest()[:10]


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------

class SourceAnalyzer:
    """Find the import units of a source file.

    Parameters
    ----------
    filename:
        Used as hash salt and for diagnostics.
    id_scope:
        Width of each kind's id range; module ids start at ``1 * id_scope``,
        dynamic ids at ``2 * id_scope``, commonjs ids at ``3 * id_scope``.
    """

    def __init__(self, filename: str = "", id_scope: int = 1000) -> None:
        self.filename = filename
        self.id_scope = id_scope

    def id_base(self, kind: UnitKind) -> int:
        return (KIND_ORDER.index(kind) + 1) * self.id_scope

    def analyze(self, source: str) -> AnalysisResult:
        """
        Parse *source* and return all units in source order.

        Units carry their id and the raw (not yet disambiguated) hash.

        Raises
        ------
        SourceSyntaxError
            If the source does not parse; no partial result is returned.
        """
        parsed = parse_source(source, self.filename)
        offsets = parsed.offsets
        counters = {kind: 0 for kind in KIND_ORDER}
        result = AnalysisResult(first_statement=len(source))
        for node in parsed.root.children:
            if node.type not in _PREAMBLE_NODES:
                result.first_statement = offsets.char(node.start_byte)
                break

        for stmt in parsed.root.named_children:
            if stmt.type == "import_statement":
                kind = UnitKind.MODULE
                structure = _structure(stmt, kind, offsets, offsets.char(stmt.start_byte))
            elif stmt.type in _CALL_STATEMENTS:
                found = _find_import_call(stmt, offsets, (UnitKind.DYNAMIC, UnitKind.COMMONJS))
                if found is None:
                    continue
                kind = found[0]
                structure = _structure(stmt, kind, offsets, offsets.char(stmt.start_byte))
            else:
                continue

            start, end = offsets.span(stmt)
            index = counters[kind]
            counters[kind] += 1
            unit = Unit(
                kind=kind,
                id=self.id_base(kind) + index,
                index=index,
                start=start,
                end=end,
                code=SourceBuffer(source[start:end]),
                module=structure.module,
                default_members=structure.default_members,
                members=structure.members,
                hash=compute_hash(kind, structure, self.filename),
            )
            logger.debug(
                "Found %s unit %d (%s) at [%d, %d)",
                kind.value, unit.id, unit.module.name, start, end,
            )
            result.units.append(unit)

        return result

    def analyze_unit_text(self, text: str, kind: UnitKind) -> UnitStructure:
        """
        Re-derive the structure of a single unit from its local text.

        Raises
        ------
        SourceSyntaxError
            If *text* does not parse or no longer holds a unit of *kind*.
        """
        parsed = parse_source(text, self.filename)
        offsets = parsed.offsets
        for stmt in parsed.root.named_children:
            if kind is UnitKind.MODULE and stmt.type != "import_statement":
                continue
            if kind is not UnitKind.MODULE and stmt.type not in _CALL_STATEMENTS:
                continue
            structure = _structure(stmt, kind, offsets, 0)
            if structure is not None:
                return structure
        raise SourceSyntaxError(
            f"Edited text no longer contains a {kind.value} import: {text!r}",
            filename=self.filename,
        )
