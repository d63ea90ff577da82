"""
Unit tests for import_manager.editor

Every test edits a freshly analyzed unit and checks the local text together
with the re-derived structure.
"""

import textwrap

import pytest

from import_manager.analyzer import SourceAnalyzer
from import_manager.editor import UnitEditor
from import_manager.errors import ContractError, MatchError, SourceSyntaxError
from import_manager.units import BindingGroupKind, UnitKind

DEFAULT = BindingGroupKind.DEFAULT
NAMED = BindingGroupKind.NAMED


@pytest.fixture()
def analyzer():
    return SourceAnalyzer("src/app.js")


@pytest.fixture()
def make_editor(analyzer):
    def _make(source, **kwargs):
        unit = analyzer.analyze(source).units[0]
        return UnitEditor(unit, analyzer, **kwargs)
    return _make


FULL = 'import a, { b, c as d } from "m";'


# ---------------------------------------------------------------------------
# Module specifier
# ---------------------------------------------------------------------------

class TestRenameModule:
    def test_string_mode_keeps_quotes(self, make_editor):
        editor = make_editor("import x from './old.js';")
        editor.rename_module("./new.js")
        assert editor.unit.text == "import x from './new.js';"
        assert editor.unit.module.name == "new.js"
        assert editor.unit.module.quotes == "'"

    def test_hash_keeps_discovery_value(self, make_editor):
        editor = make_editor(FULL)
        before = editor.unit.hash
        editor.rename_module("n")
        assert editor.unit.text == 'import a, { b, c as d } from "n";'
        assert editor.unit.hash == before

    def test_raw_mode_on_commonjs(self, make_editor):
        editor = make_editor('const x = require("fs");')
        editor.rename_module("base + '/x.js'", mode="raw")
        assert editor.unit.text == "const x = require(base + '/x.js');"
        assert editor.unit.module.type == "raw"
        assert editor.unit.module.name == "N/A"

    def test_raw_specifier_renamed_with_default_quote(self, make_editor):
        editor = make_editor("const x = require(modulePath);", default_quote="'")
        editor.rename_module("fs")
        assert editor.unit.text == "const x = require('fs');"
        assert editor.unit.module.type == "string"

    def test_dynamic_unit(self, make_editor):
        editor = make_editor('const lazy = await import("./a.js");')
        editor.rename_module("./b.js")
        assert editor.unit.text == 'const lazy = await import("./b.js");'
        assert editor.unit.kind is UnitKind.DYNAMIC

    def test_raw_mode_rejected_for_module_imports(self, make_editor):
        editor = make_editor(FULL)
        with pytest.raises(ContractError):
            editor.rename_module("x", mode="raw")
        assert editor.unit.text == FULL

    def test_unknown_mode(self, make_editor):
        with pytest.raises(ContractError):
            make_editor('require("fs");').rename_module("x", mode="bytes")

    def test_empty_name(self, make_editor):
        with pytest.raises(ContractError):
            make_editor(FULL).rename_module("")


# ---------------------------------------------------------------------------
# Adding members
# ---------------------------------------------------------------------------

class TestAddMembers:
    def test_append_to_named_group(self, make_editor):
        editor = make_editor(FULL)
        editor.add_members(["e"])
        assert editor.unit.text == 'import a, { b, c as d, e } from "m";'
        assert editor.unit.members.names == ["b", "c", "e"]

    def test_several_names_use_group_separator(self, make_editor):
        source = textwrap.dedent("""\
            import {
                hello,
                hallo
            } from "./hello.js";""")
        editor = make_editor(source)
        editor.add_members(["hola", "ciao"])
        assert editor.unit.text == textwrap.dedent("""\
            import {
                hello,
                hallo,
                hola,
                ciao
            } from "./hello.js";""")

    def test_comment_between_members_is_not_repeated(self, make_editor):
        editor = make_editor('import { a /* keep */, b } from "m";')
        assert editor.unit.members.separator == ", "
        editor.add_members(["c"])
        assert editor.unit.text == 'import { a /* keep */, b, c } from "m";'

    def test_single_string_is_one_name(self, make_editor):
        editor = make_editor(FULL)
        editor.add_members("e")
        assert editor.unit.members.names == ["b", "c", "e"]

    def test_fill_empty_braces(self, make_editor):
        editor = make_editor('import {} from "m";')
        editor.add_members(["x", "y"])
        assert editor.unit.text == 'import { x, y } from "m";'

    def test_bare_import_gets_a_clause(self, make_editor):
        editor = make_editor('import "m";')
        editor.add_members(["x"])
        assert editor.unit.text == 'import { x } from "m";'
        assert editor.unit.is_bare is False

    def test_after_default_binding(self, make_editor):
        editor = make_editor('import a from "m";')
        editor.add_members(["b"])
        assert editor.unit.text == 'import a, { b } from "m";'
        assert editor.unit.default_members.names == ["a"]

    def test_add_default_to_named_only(self, make_editor):
        editor = make_editor('import { b } from "m";')
        editor.add_default_members(["a"])
        assert editor.unit.text == 'import a, { b } from "m";'

    def test_add_default_to_bare_import(self, make_editor):
        editor = make_editor('import "m";')
        editor.add_default_members(["a"])
        assert editor.unit.text == 'import a from "m";'

    def test_namespace_after_default(self, make_editor):
        editor = make_editor('import a from "m";')
        editor.add_default_members(["* as ns"])
        assert editor.unit.text == 'import a, * as ns from "m";'
        assert editor.unit.default_members.names == ["a", "*"]

    def test_invalid_result_leaves_unit_untouched(self, make_editor):
        editor = make_editor(FULL)
        with pytest.raises(SourceSyntaxError):
            editor.add_default_members(["x"])
        assert editor.unit.text == FULL
        assert editor.unit.default_members.names == ["a"]

    def test_empty_names_rejected(self, make_editor):
        editor = make_editor(FULL)
        with pytest.raises(ContractError):
            editor.add_members([])
        with pytest.raises(ContractError):
            editor.add_members(["a", " "])

    def test_not_available_for_require(self, make_editor):
        with pytest.raises(ContractError):
            make_editor('const x = require("fs");').add_members(["y"])


# ---------------------------------------------------------------------------
# Removing members
# ---------------------------------------------------------------------------

class TestRemoveMembers:
    def test_remove_first_named(self, make_editor):
        editor = make_editor(FULL)
        editor.remove_member(NAMED, "b")
        assert editor.unit.text == 'import a, { c as d } from "m";'

    def test_remove_last_named_with_alias(self, make_editor):
        editor = make_editor(FULL)
        editor.remove_member(NAMED, "c")
        assert editor.unit.text == 'import a, { b } from "m";'

    def test_remove_middle(self, make_editor):
        editor = make_editor('import { x, y, z } from "m";')
        editor.remove_member("named", "y")
        assert editor.unit.text == 'import { x, z } from "m";'
        x, z = editor.unit.members.entities
        assert x.next == z.start

    def test_last_binding_removes_the_group(self, make_editor):
        editor = make_editor('import a, { b } from "m";')
        editor.remove_member(NAMED, "b")
        assert editor.unit.text == 'import a from "m";'
        assert editor.unit.members.start is None

    def test_remove_named_group(self, make_editor):
        editor = make_editor(FULL)
        editor.remove_members(NAMED)
        assert editor.unit.text == 'import a from "m";'

    def test_remove_default_group(self, make_editor):
        editor = make_editor(FULL)
        editor.remove_members(DEFAULT)
        assert editor.unit.text == 'import { b, c as d } from "m";'

    def test_remove_only_default_member(self, make_editor):
        editor = make_editor(FULL)
        editor.remove_member(DEFAULT, "a")
        assert editor.unit.text == 'import { b, c as d } from "m";'

    def test_removing_everything_gives_bare_import(self, make_editor):
        editor = make_editor('import { b } from "m";')
        editor.remove_members(NAMED)
        assert editor.unit.text == 'import "m";'
        assert editor.unit.is_bare is True

    def test_remove_group_that_does_not_exist(self, make_editor):
        editor = make_editor('import a from "m";')
        editor.remove_members(NAMED)
        assert editor.unit.text == 'import a from "m";'

    def test_unknown_member(self, make_editor):
        editor = make_editor(FULL)
        with pytest.raises(MatchError):
            editor.remove_member(NAMED, "zzz")

    def test_ambiguous_member(self, make_editor):
        editor = make_editor('import { a, a as b } from "m";')
        with pytest.raises(MatchError):
            editor.remove_member(NAMED, "a")

    def test_unknown_group(self, make_editor):
        with pytest.raises(ContractError):
            make_editor(FULL).remove_members("others")


# ---------------------------------------------------------------------------
# Renaming and aliases
# ---------------------------------------------------------------------------

class TestRenameMembers:
    def test_rename_drops_alias(self, make_editor):
        editor = make_editor(FULL)
        editor.rename_member(NAMED, "c", "e")
        assert editor.unit.text == 'import a, { b, e } from "m";'

    def test_rename_keeps_alias(self, make_editor):
        editor = make_editor(FULL)
        editor.rename_member(NAMED, "c", "e", keep_alias=True)
        assert editor.unit.text == 'import a, { b, e as d } from "m";'
        assert editor.unit.members.entities[1].alias.name == "d"

    def test_rename_default(self, make_editor):
        editor = make_editor(FULL)
        editor.rename_member(DEFAULT, "a", "z")
        assert editor.unit.text == 'import z, { b, c as d } from "m";'

    def test_set_alias(self, make_editor):
        editor = make_editor(FULL)
        editor.set_alias(NAMED, "b", "bee")
        assert editor.unit.text == 'import a, { b as bee, c as d } from "m";'

    def test_replace_alias(self, make_editor):
        editor = make_editor(FULL)
        editor.set_alias(NAMED, "c", "dee")
        assert editor.unit.text == 'import a, { b, c as dee } from "m";'

    def test_drop_alias(self, make_editor):
        editor = make_editor(FULL)
        editor.set_alias(NAMED, "c", None)
        assert editor.unit.text == 'import a, { b, c } from "m";'
        assert editor.unit.members.entities[1].alias is None

    def test_missing_new_name(self, make_editor):
        with pytest.raises(ContractError):
            make_editor(FULL).rename_member(NAMED, "b", "")

    def test_edits_chain(self, make_editor):
        editor = make_editor(FULL)
        editor.remove_member(NAMED, "b")
        editor.add_members(["x"])
        editor.rename_member(DEFAULT, "a", "alpha")
        assert editor.unit.text == 'import alpha, { c as d, x } from "m";'


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    def test_make_untraceable_without_callback(self, make_editor):
        editor = make_editor(FULL)
        editor.make_untraceable()
        assert editor.unit.retired is True

    def test_make_untraceable_uses_callback(self, make_editor):
        retired = []
        editor = make_editor(FULL, retire=retired.append)
        editor.make_untraceable()
        assert retired == [editor.unit]

    def test_retired_unit_cannot_be_edited(self, make_editor):
        editor = make_editor(FULL)
        editor.make_untraceable()
        with pytest.raises(ContractError):
            editor.add_members(["x"])
