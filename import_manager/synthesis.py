"""Builders for brand-new import statements.

The builders are pure: they return text ending in a newline and know nothing
about spans.  A synthesized statement only becomes a unit when a later
analysis pass discovers it.
"""

from __future__ import annotations

from typing import Iterable

from .errors import ContractError

DECLARATORS = ("const", "let", "var")


def _quoted(path: str, quote: str) -> str:
    if not path:
        raise ContractError("A module path must be provided")
    return f"{quote}{path}{quote}"


def _declaration(declarator: str, var_name: str) -> str:
    if declarator not in DECLARATORS:
        raise ContractError(
            f"Invalid declarator {declarator!r}; expected one of {', '.join(DECLARATORS)}"
        )
    if not var_name:
        raise ContractError("A variable name must be provided")
    return f"{declarator} {var_name}"


def make_module_statement(
    path: str,
    default_members: Iterable[str] = (),
    members: Iterable[str] = (),
    quote: str = '"',
) -> str:
    """``import a, { b, c } from "path";`` (a bare import without names)."""
    parts = []
    default_members = list(default_members)
    members = list(members)
    if default_members:
        parts.append(", ".join(default_members))
    if members:
        parts.append("{ " + ", ".join(members) + " }")
    clause = ", ".join(parts)
    if clause:
        clause += " from "
    return f"import {clause}{_quoted(path, quote)};\n"


def make_dynamic_statement(
    path: str,
    declarator: str = "const",
    var_name: str = "",
    quote: str = '"',
) -> str:
    """``const x = await import("path");``"""
    return f"{_declaration(declarator, var_name)} = await import({_quoted(path, quote)});\n"


def make_commonjs_statement(
    path: str,
    declarator: str = "const",
    var_name: str = "",
    quote: str = '"',
) -> str:
    """``const x = require("path");``"""
    return f"{_declaration(declarator, var_name)} = require({_quoted(path, quote)});\n"
