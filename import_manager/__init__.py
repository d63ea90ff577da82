"""
import_manager — analyze and edit the imports of JavaScript sources.

Public API for library usage::

    from import_manager import ImportManager

    manager = ImportManager(source, "src/app.js")
    unit = manager.select_by_name("hello")
    manager.editor(unit).add_members(["extra"])
    manager.commit(unit)
    print(str(manager))
"""

from .advisories import AdvisoryLog
from .analyzer import AnalysisResult, SourceAnalyzer
from .buffer import EditMapping, SourceBuffer
from .config import Config
from .editor import UnitEditor
from .errors import ContractError, ImportManagerError, MatchError, SourceSyntaxError
from .registry import UnitRegistry
from .script import run_script
from .session import ImportManager
from .synthesis import make_commonjs_statement, make_dynamic_statement, make_module_statement
from .units import Binding, BindingGroup, BindingGroupKind, ModuleDescriptor, Unit, UnitKind

__all__ = [
    "ImportManager", "run_script",
    "SourceAnalyzer", "AnalysisResult",
    "UnitRegistry", "UnitEditor",
    "SourceBuffer", "EditMapping",
    "Config", "AdvisoryLog",
    "Unit", "UnitKind", "ModuleDescriptor", "Binding", "BindingGroup", "BindingGroupKind",
    "make_module_statement", "make_dynamic_statement", "make_commonjs_statement",
    "ImportManagerError", "SourceSyntaxError", "MatchError", "ContractError",
]
