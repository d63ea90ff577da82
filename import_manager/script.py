"""
Action scripts — drive an ImportManager session from declarative sections.

A script is a list of *unit sections* (usually loaded from YAML)::

    - file: "**/app.js"
      module: hello
      actions:
        - select: members
          add: [extra]
        - select: module
          rename: ./lib/hello-clone.js
    - createModule: ./lib/logger.js
      defaultMembers: logger
      insert: top

Selector strings (``member``, ``defaultMembers``…) are resolved into a
binding group and a plural flag here, before the edit engine is called.
"""

from __future__ import annotations

import fnmatch
import json
import logging
import os
import re
from typing import Optional

from .errors import ContractError
from .session import ImportManager
from .units import BindingGroupKind, Unit, UnitKind, resolve_group_selector

logger = logging.getLogger(__name__)

_FALSE_RE = re.compile(r"^(?:false|no?|0)$", re.IGNORECASE)
_INSERT_KEYS = ("append", "prepend", "replace")


def as_bool(value) -> bool:
    """Lenient boolean: ``False``, ``None``, ``"false"``, ``"no"``, ``"n"``, ``"0"`` are false."""
    if not value:
        return False
    return not _FALSE_RE.match(str(value))


def _as_list(value) -> list:
    if value is None:
        return []
    return list(value) if isinstance(value, (list, tuple)) else [value]


def _as_action(action) -> dict:
    if isinstance(action, str):
        return {action: None}
    if isinstance(action, dict):
        return action
    raise ContractError(f"Only strings and mappings are allowed for actions, got {action!r}")


def file_matches(filename: str, patterns) -> bool:
    """True if *filename* (or its basename) matches any glob in *patterns*."""
    normalized = filename.replace("\\", "/")
    base = os.path.basename(normalized)
    return any(
        fnmatch.fnmatch(normalized, pattern) or fnmatch.fnmatch(base, pattern)
        for pattern in map(str, _as_list(patterns))
    )


class ScriptRunner:
    """Apply unit sections to one session."""

    def __init__(self, manager: ImportManager) -> None:
        self.manager = manager

    def run(self, sections) -> ImportManager:
        for section in _as_list(sections):
            self.run_section(section)
        return self.manager

    def run_section(self, section: dict) -> None:
        if not isinstance(section, dict):
            raise ContractError(f"A unit section must be a mapping, got {section!r}")

        # a section restricted to a file must find its unit
        allow_id = False
        allow_null = True
        if "file" in section:
            if not file_matches(self.manager.filename, section["file"]):
                logger.debug("Skipping section for %s", section["file"])
                return
            allow_id = True
            allow_null = False

        if "createModule" in section:
            self._create_module(section, allow_id, allow_null)
            return

        actions = [_as_action(a) for a in _as_list(section.get("actions"))]
        for action in actions[:-1]:
            if "remove" in action and action.get("select") is None:
                raise ContractError(
                    f"'remove' must be the last action of a unit section, got {actions!r}"
                )

        unit = self._select(section, allow_id, allow_null)
        if unit is None:
            return

        for action in actions:
            if not self._apply_action(unit, action):
                break

    # ------------------------------------------------------------------
    # Selection and creation
    # ------------------------------------------------------------------

    def _select(self, section: dict, allow_id: bool, allow_null: bool) -> Optional[Unit]:
        if not isinstance(section, dict):
            raise ContractError(f"A selection must be a mapping, got {section!r}")
        if "id" in section:
            if not allow_id:
                raise ContractError("Filename must be specified for selecting via id.")
            self.manager.advisories.warn("Selecting modules via id should only be used for testing.")
            return self.manager.select_by_id(section["id"], allow_null)
        if "hash" in section:
            return self.manager.select_by_hash(section["hash"], allow_null)
        if "module" in section:
            return self.manager.select_by_name(section["module"], section.get("type"), allow_null)
        raise ContractError("A unit section needs one of 'id', 'hash' or 'module'")

    def _create_module(self, section: dict, allow_id: bool, allow_null: bool) -> None:
        if allow_null:
            self.manager.advisories.warn(
                "No file specified for import statement creation! "
                "If the build fails, this could be the reason."
            )
        statement = self.manager.make_module_statement(
            section["createModule"],
            [str(n) for n in _as_list(section.get("defaultMembers"))],
            [str(n) for n in _as_list(section.get("members"))],
        )

        mode = next((key for key in section if key in _INSERT_KEYS), None)
        if mode is None:
            self.manager.insert_statement(statement, section.get("insert", "bottom"))
            return

        target_section = dict(section[mode] or {})
        target_section.setdefault("type", UnitKind.MODULE.value)
        target = self._select(target_section, allow_id, allow_null)
        if target is not None:
            self.manager.insert_at_unit(target, mode, statement)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _apply_action(self, unit: Unit, action: dict) -> bool:
        """Apply one action; returns False once the unit is gone."""
        if "debug" in action:
            logger.info("Unit %d:\n%s", unit.id, json.dumps(unit.to_dict(), indent=4))
            return True

        select = action.get("select")
        if select is None:
            if "remove" in action:
                self.manager.remove(unit)
                return False
            raise ContractError(f"Unknown action {action!r}")

        editor = self.manager.editor(unit)

        if select == "module":
            if "rename" not in action:
                raise ContractError("Selecting the module requires 'rename'")
            mode = action.get("modType", unit.module.type)
            editor.rename_module(str(action["rename"]), mode)
        else:
            group, plural = resolve_group_selector(select)
            if plural:
                if "remove" not in action and "add" not in action:
                    raise ContractError(f"'{select}' requires 'add' or 'remove'")
                if "remove" in action:
                    editor.remove_members(group)
                if "add" in action:
                    names = [str(n) for n in _as_list(action["add"])]
                    if group is BindingGroupKind.NAMED:
                        editor.add_members(names)
                    else:
                        editor.add_default_members(names)
            else:
                name = action.get("name")
                if "alias" in action:
                    alias = None if "remove" in action else action["alias"]
                    editor.set_alias(group, name, alias)
                elif "rename" in action:
                    keep_alias = as_bool(action.get("keepAlias", False))
                    editor.rename_member(group, name, str(action["rename"]), keep_alias)
                elif "remove" in action:
                    editor.remove_member(group, name)
                else:
                    raise ContractError(f"'{select}' requires 'alias', 'rename' or 'remove'")

        self.manager.commit(unit)
        return True


def run_script(manager: ImportManager, sections) -> ImportManager:
    """Run *sections* against *manager* and return it."""
    return ScriptRunner(manager).run(sections)
