# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from stablejit.core.errors import StableJitError


@dataclass
class ScenarioResult:
	scenario_id: str
	element_kind: str
	expected: str
	rule: int
	state: str
	# Rendered observations in protocol order: first, after, again.
	observed: tuple[tuple[str, str], ...] = ()
	# Introspection answer (None when the harness did not introspect).
	folded: Optional[bool] = None
	error: Optional[StableJitError] = None

	@property
	def ok(self) -> bool:
		return self.error is None

	def to_dict(self) -> dict[str, Any]:
		return {
			"scenario_id": self.scenario_id,
			"element_kind": self.element_kind,
			"expected": self.expected,
			"rule": self.rule,
			"state": self.state,
			"ok": self.ok,
			"observed": dict(self.observed),
			"folded": self.folded,
			"error": self.error.to_dict() if self.error is not None else None,
		}

	def format_line(self) -> str:
		if self.ok:
			values = ", ".join(f"{k}={v}" for k, v in self.observed)
			return f"[ok] {self.scenario_id} {self.expected} (rule {self.rule}) {values}".rstrip()
		assert self.error is not None
		return f"[fail] {self.scenario_id} {self.expected} (rule {self.rule}) at {self.state}: {self.error.format_human()}"


@dataclass
class SuiteReport:
	results: List[ScenarioResult] = field(default_factory=list)
	# Set when the suite stopped at the first failure.
	stopped_early: bool = False

	@property
	def ok(self) -> bool:
		return all(r.ok for r in self.results)

	@property
	def passed(self) -> int:
		return sum(1 for r in self.results if r.ok)

	@property
	def failed(self) -> List[ScenarioResult]:
		return [r for r in self.results if not r.ok]

	def result(self, scenario_id: str) -> ScenarioResult:
		for r in self.results:
			if r.scenario_id == scenario_id:
				return r
		raise KeyError(scenario_id)

	def summary(self) -> str:
		text = f"{self.passed}/{len(self.results)} scenarios passed"
		if self.failed:
			text += f", {len(self.failed)} failed"
		if self.stopped_early:
			text += " (stopped at first failure)"
		return text

	def to_dict(self) -> dict[str, Any]:
		return {
			"ok": self.ok,
			"total": len(self.results),
			"passed": self.passed,
			"failed": len(self.failed),
			"stopped_early": self.stopped_early,
			"scenarios": [r.to_dict() for r in self.results],
		}


__all__ = ["ScenarioResult", "SuiteReport"]
