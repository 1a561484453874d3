# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Compile-once execution harness.

Per scenario:

  INIT             element 0 holds its default value (checked, never repaired)
  BASELINE_CALLED  call the access method uncompiled; remember `first`
  COMPILED         compile exactly that method (it must have one access site)
  MUTATED          flip element 0 from default to changed
  REVERIFIED       invoke the compiled code:
                     MUST_FOLD      -> result equals `first`
                     MUST_NOT_FOLD  -> result differs from `first` and a second
                                       invocation returns the same result again
  DONE             reset the registry

Any error ends the scenario in FAILED. The fold policy only picks which
assertion applies; what actually happened comes from the compiler.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, Optional

from stablejit.core.errors import (
	AssertionMismatch,
	CompilationError,
	ConstructionError,
	RuntimeTrapError,
	StableJitError,
)
from stablejit.core.kinds import boxed_equal, format_value
from stablejit.compiler.jit import Compiler
from stablejit.policy import FoldVerdict
from stablejit.registry import StableContainerRegistry

from .matrix import Scenario
from .report import ScenarioResult, SuiteReport


class HarnessState(Enum):
	INIT = "Init"
	BASELINE_CALLED = "BaselineCalled"
	COMPILED = "Compiled"
	MUTATED = "Mutated"
	REVERIFIED = "Reverified"
	DONE = "Done"
	FAILED = "Failed"


class CompileOnceHarness:
	def __init__(
		self,
		registry: StableContainerRegistry,
		compiler: Optional[Compiler] = None,
		*,
		introspect: bool = False,
	) -> None:
		self.registry = registry
		self.compiler = compiler or Compiler(registry)
		self.introspect = introspect
		self.state = HarnessState.INIT
		# State the last failed run was in when it failed.
		self.failed_at: Optional[HarnessState] = None

	def run(self, scenario: Scenario) -> ScenarioResult:
		"""
		Run one scenario; raises the scenario's StableJitError on failure.

		Any other exception is wrapped: a CompilationError while compiling, a
		RuntimeTrapError anywhere else.
		"""
		self.state = HarnessState.INIT
		self.failed_at = None
		try:
			return self._run(scenario)
		except StableJitError as err:
			self._fail()
			if err.scenario_id is None:
				err.scenario_id = scenario.id
			raise
		except Exception as err:
			self._fail()
			error_type = CompilationError if self.failed_at is HarnessState.BASELINE_CALLED else RuntimeTrapError
			raise error_type(
				f"{type(err).__name__}: {err}",
				scenario_id=scenario.id,
				method=scenario.method.name,
			) from err

	def _fail(self) -> None:
		self.failed_at = self.state
		self.state = HarnessState.FAILED

	def _run(self, scenario: Scenario) -> ScenarioResult:
		container = scenario.container
		handle = scenario.method
		if not container.holds_default(0):
			raise ConstructionError(
				f"element 0 of {container.name} does not hold its default value; reset the registry first",
				method=handle.name,
			)

		first = self.compiler.interpret(handle)
		self.state = HarnessState.BASELINE_CALLED

		sites = handle.access_sites()
		if len(sites) != 1:
			raise ConstructionError(
				f"'{handle.name}' must contain exactly one access call site, found {len(sites)}",
				method=handle.name,
			)
		artifact = self.compiler.compile(handle)
		self.state = HarnessState.COMPILED

		scenario.mutate()
		self.state = HarnessState.MUTATED

		kind = scenario.access.requested_kind
		observed = [("first", format_value(kind, first))]
		after = artifact.invoke()
		observed.append(("after", format_value(kind, after)))
		if scenario.expected is FoldVerdict.MUST_FOLD:
			if not boxed_equal(kind, first, after):
				raise self._mismatch(scenario, "compiled code re-read memory instead of folding the stable value", observed)
		else:
			if boxed_equal(kind, first, after):
				raise self._mismatch(scenario, "compiled code returned the pre-mutation value", observed)
			again = artifact.invoke()
			observed.append(("again", format_value(kind, again)))
			if not boxed_equal(kind, after, again):
				raise self._mismatch(scenario, "compiled code is not stable across invocations", observed)

		folded: Optional[bool] = None
		if self.introspect:
			folded = any(self.compiler.is_constant_folded_stable_read(n) for n in artifact.graph.nodes)
			if folded != (scenario.expected is FoldVerdict.MUST_FOLD):
				what = "contains" if folded else "lacks"
				raise self._mismatch(scenario, f"compiled graph {what} a folded stable read", observed)
		self.state = HarnessState.REVERIFIED

		artifact.invalidate()
		self.registry.reset_all()
		self.state = HarnessState.DONE
		return ScenarioResult(
			scenario_id=scenario.id,
			element_kind=scenario.kind.code,
			expected=str(scenario.expected),
			rule=scenario.rule,
			state=self.state.value,
			observed=tuple(observed),
			folded=folded,
		)

	def _mismatch(self, scenario: Scenario, message: str, observed: list[tuple[str, Any]]) -> AssertionMismatch:
		return AssertionMismatch(
			message,
			scenario_id=scenario.id,
			method=scenario.method.name,
			element_kind=scenario.kind.code,
			descriptor=scenario.access.describe(),
			expected=str(scenario.expected),
			observed=tuple(observed),
		)

	def run_all(
		self,
		scenarios: Iterable[Scenario],
		*,
		fail_fast: bool = False,
		on_result: Optional[Callable[[ScenarioResult], None]] = None,
	) -> SuiteReport:
		"""
		Run scenarios one at a time, each from a freshly reset registry.

		A failing scenario is recorded in the report with its error; the suite
		keeps going unless `fail_fast` is set.
		"""
		report = SuiteReport()
		for scenario in scenarios:
			self.registry.reset_all()
			try:
				result = self.run(scenario)
			except StableJitError as err:
				assert self.failed_at is not None
				result = ScenarioResult(
					scenario_id=scenario.id,
					element_kind=scenario.kind.code,
					expected=str(scenario.expected),
					rule=scenario.rule,
					state=self.failed_at.value,
					observed=getattr(err, "observed", ()),
					error=err,
				)
			finally:
				self.registry.reset_all()
			report.results.append(result)
			if on_result is not None:
				on_result(result)
			if fail_fast and not result.ok:
				report.stopped_early = True
				break
		return report


__all__ = ["CompileOnceHarness", "HarnessState"]
