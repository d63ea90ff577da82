"""
Integration tests for ImportManager: analysis, commits, removal and
insertion into the whole-file buffer.
"""

import textwrap

import pytest

from import_manager.advisories import AdvisoryLog
from import_manager.config import Config
from import_manager.errors import ContractError, SourceSyntaxError
from import_manager.session import ImportManager
from import_manager.units import UnitKind

SOURCE = textwrap.dedent("""\
    /* license */
    import a from "a";
    import { b } from "b";
    const c = require("c");

    run();
""")


@pytest.fixture()
def manager():
    return ImportManager(SOURCE, "src/app.js", advisories=AdvisoryLog(enabled=False))


def _session(source, **kwargs):
    kwargs.setdefault("advisories", AdvisoryLog(enabled=False))
    return ImportManager(source, "src/app.js", **kwargs)


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

class TestAnalysis:
    def test_counts_and_listing(self, manager):
        assert manager.count(UnitKind.MODULE) == 2
        assert manager.count(UnitKind.DYNAMIC) == 0
        assert manager.count(UnitKind.COMMONJS) == 1
        listing = manager.list_units()
        assert "ID:   1000" in listing
        assert "ID:   3000" in listing

    def test_analyze_runs_once(self, manager):
        first = manager.analyze()
        assert manager.analyze() is first
        assert len(manager.units()) == 3

    def test_selection_requires_analysis(self):
        manager = _session(SOURCE, auto_analyze=False)
        with pytest.raises(ContractError):
            manager.select_by_name("a")
        manager.analyze()
        assert manager.select_by_name("a").id == 1000

    def test_syntax_error(self):
        with pytest.raises(SourceSyntaxError):
            _session("import { from 'x';\n")

    def test_untouched_session_renders_source(self, manager):
        assert str(manager) == SOURCE
        assert manager.has_changed() is False
        assert manager.edit_map() == []

    def test_config_id_scope(self):
        manager = _session(SOURCE, config=Config({"id_scope": 10}))
        assert [u.id for u in manager.units()] == [10, 11, 30]

    def test_disabled_warnings_use_silent_log(self):
        manager = ImportManager(SOURCE, config=Config({"warnings": False}))
        assert manager.advisories.enabled is False

    def test_explicit_advisories_are_used_as_given(self):
        log = AdvisoryLog()
        manager = ImportManager(SOURCE, config=Config({"warnings": False}), advisories=log)
        assert manager.advisories is log
        assert manager.registry.advisories is log


# ---------------------------------------------------------------------------
# Commit and remove
# ---------------------------------------------------------------------------

class TestCommit:
    def test_commit_writes_local_text(self, manager):
        unit = manager.select_by_name("b")
        manager.editor(unit).add_members(["bb"])
        assert str(manager) == SOURCE
        manager.commit(unit)
        assert 'import { b, bb } from "b";\n' in str(manager)
        assert manager.has_changed() is True

    def test_repeated_commits(self, manager):
        unit = manager.select_by_name("a")
        editor = manager.editor(unit)
        editor.rename_member("default", "a", "alpha")
        manager.commit(unit)
        editor.add_members(["beta"])
        manager.commit(unit)
        assert str(manager).splitlines()[1] == 'import alpha, { beta } from "a";'

    def test_edit_map_covers_committed_unit(self, manager):
        unit = manager.select_by_name("c")
        manager.editor(unit).rename_module("cc")
        manager.commit(unit)
        (mapping,) = manager.edit_map()
        assert (mapping.start, mapping.end) == (unit.start, unit.end)
        assert mapping.replacement == 'const c = require("cc");'

    def test_remove_deletes_line(self, manager):
        unit = manager.select_by_name("a")
        manager.remove(unit)
        assert str(manager) == SOURCE.replace('import a from "a";\n', "")
        assert unit.retired is True
        assert manager.count(UnitKind.MODULE) == 1

    def test_remove_last_line_without_newline(self):
        manager = _session('import a from "a";\nimport b from "b";')
        manager.remove(manager.select_by_name("b"))
        assert str(manager) == 'import a from "a";\n'

    def test_crlf_line_break_is_removed(self):
        manager = _session('import a from "a";\r\nrun();\r\n')
        manager.remove(manager.select_by_name("a"))
        assert str(manager) == "run();\r\n"

    def test_remove_second_import_on_shared_line(self):
        manager = _session('import a from "a"; import b from "b";\nrun();\n')
        manager.remove(manager.select_by_name("b"))
        assert str(manager) == 'import a from "a";\nrun();\n'

    def test_remove_indented_unit_takes_whole_line(self):
        manager = _session('import a from "a";\n  const c = require("c");\nrun();\n')
        manager.remove(manager.select_by_name("c"))
        assert str(manager) == 'import a from "a";\nrun();\n'

    def test_retired_unit_cannot_be_committed(self, manager):
        unit = manager.select_by_name("a")
        manager.remove(unit)
        with pytest.raises(ContractError):
            manager.commit(unit)
        with pytest.raises(ContractError):
            manager.remove(unit)

    def test_make_untraceable_through_session(self, manager):
        unit = manager.select_by_name("c")
        manager.editor(unit).make_untraceable()
        assert manager.select_by_name("c", allow_null=True) is None
        assert manager.count(UnitKind.COMMONJS) == 0


# ---------------------------------------------------------------------------
# Insertion
# ---------------------------------------------------------------------------

class TestInsertion:
    def test_insert_at_top_skips_leading_comment(self, manager):
        manager.insert_statement('import z from "z";\n', "top")
        assert str(manager).startswith('/* license */\nimport z from "z";\nimport a from "a";\n')

    def test_insert_at_bottom_follows_last_module_import(self, manager):
        manager.insert_statement('import z from "z";\n')
        assert 'import { b } from "b";\nimport z from "z";\nconst c' in str(manager)

    def test_bottom_without_module_imports_goes_to_top(self):
        manager = _session('// header\nconst c = require("c");\n')
        manager.insert_statement('import z from "z";\n')
        assert str(manager) == '// header\nimport z from "z";\nconst c = require("c");\n'

    def test_comment_only_source(self):
        manager = _session("// only a comment")
        manager.insert_statement('import z from "z";\n')
        assert str(manager) == '// only a comment\nimport z from "z";\n'

    def test_empty_source(self):
        manager = _session("")
        manager.insert_statement('import z from "z";\n', "top")
        assert str(manager) == 'import z from "z";\n'

    def test_last_import_without_newline(self):
        manager = _session('import a from "a";')
        manager.insert_statement('import z from "z";\n')
        assert str(manager) == 'import a from "a";\nimport z from "z";\n'

    def test_append_after_unit(self, manager):
        unit = manager.select_by_name("a")
        manager.insert_at_unit(unit, "append", 'import z from "z";\n')
        assert 'import a from "a";\nimport z from "z";\nimport { b }' in str(manager)

    def test_prepend_before_unit(self, manager):
        unit = manager.select_by_name("c")
        manager.insert_at_unit(unit, "prepend", 'import z from "z";\n')
        assert 'import z from "z";\nconst c = require("c");' in str(manager)

    def test_replace_retires_target(self, manager):
        unit = manager.select_by_name("b")
        manager.insert_at_unit(unit, "replace", 'import z from "z";\n')
        assert 'import a from "a";\nimport z from "z";\nconst c' in str(manager)
        assert unit.retired is True
        with pytest.raises(ContractError):
            manager.commit(unit)

    def test_bottom_follows_replaced_last_import(self, manager):
        manager.insert_at_unit(manager.select_by_name("b"), "replace", 'import r from "r";\n')
        manager.insert_statement('import z from "z";\n')
        result = str(manager)
        assert 'import r from "r";\nimport z from "z";\nconst c' in result
        assert result.index("import z") > result.index("import r")

    def test_bottom_follows_removed_last_import(self, manager):
        manager.remove(manager.select_by_name("b"))
        manager.insert_statement('import z from "z";\n')
        assert 'import a from "a";\nimport z from "z";\nconst c' in str(manager)

    def test_bottom_after_removed_import_on_shared_line(self):
        manager = _session('import a from "a"; import b from "b";\nrun();\n')
        manager.remove(manager.select_by_name("b"))
        manager.insert_statement("import z from 'z';\n")
        assert str(manager) == "import a from \"a\";\nimport z from 'z';\nrun();\n"

    def test_unknown_mode(self, manager):
        with pytest.raises(ContractError):
            manager.insert_at_unit(manager.select_by_name("a"), "after", "x;\n")

    def test_inserted_text_survives_neighbour_removal(self, manager):
        manager.insert_statement('import z from "z";\n')
        manager.remove(manager.select_by_name("c"))
        assert str(manager) == textwrap.dedent("""\
            /* license */
            import a from "a";
            import { b } from "b";
            import z from "z";

            run();
        """)

    def test_inserted_text_survives_neighbour_commit(self, manager):
        unit = manager.select_by_name("a")
        manager.insert_at_unit(unit, "prepend", 'import z from "z";\n')
        manager.editor(unit).add_members(["x"])
        manager.commit(unit)
        assert 'import z from "z";\nimport a, { x } from "a";' in str(manager)

    def test_synthesized_statements_use_config(self):
        manager = _session(SOURCE, config=Config({"quote": "'", "declarator": "let"}))
        assert manager.make_module_statement("./m.js", ["m"]) == "import m from './m.js';\n"
        assert manager.make_commonjs_statement("fs", "fs") == "let fs = require('fs');\n"
        assert (
            manager.make_dynamic_statement("./d.js", "d", declarator="var")
            == "var d = await import('./d.js');\n"
        )
