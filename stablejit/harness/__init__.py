"""
stablejit.harness: scenario matrix, compile-once harness and reports.
"""

from .harness import CompileOnceHarness, HarnessState
from .matrix import STANDARD_ARRAYS, Scenario, build_matrix, default_containers, make_scenario, render_access_method
from .report import ScenarioResult, SuiteReport

__all__ = [
	"CompileOnceHarness",
	"HarnessState",
	"STANDARD_ARRAYS",
	"Scenario",
	"ScenarioResult",
	"SuiteReport",
	"build_matrix",
	"default_containers",
	"make_scenario",
	"render_access_method",
]
