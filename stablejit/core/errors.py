# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Structured, serializable errors for the stable-read check.

Every failure a scenario can hit maps to one reason code so a failing
kind/width combination is identifiable from a report line alone:

  construction        harness precondition violated (call sites, reset, bounds)
  compilation         the target method could not be compiled
  runtime-trap        compiled or interpreted code trapped while running
  assertion-mismatch  observed behavior disagrees with the fold verdict

None of these are retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from .diagnostics import Diagnostic


@dataclass(eq=False)
class StableJitError(Exception):
	message: str
	scenario_id: str | None = None
	method: str | None = None

	reason_code: ClassVar[str] = "error"

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"scenario_id": self.scenario_id,
			"method": self.method,
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.scenario_id:
			parts.append(f"scenario={self.scenario_id}")
		if self.method:
			parts.append(f"method={self.method}")
		return " ".join(parts)


@dataclass(eq=False)
class ConstructionError(StableJitError):
	reason_code: ClassVar[str] = "construction"


@dataclass(eq=False)
class CompilationError(StableJitError):
	diagnostics: tuple[Diagnostic, ...] = ()

	reason_code: ClassVar[str] = "compilation"

	def to_dict(self) -> dict[str, Any]:
		data = super().to_dict()
		data["diagnostics"] = [d.to_dict() for d in self.diagnostics]
		return data

	def format_human(self) -> str:
		text = super().format_human()
		if self.diagnostics:
			text += "\n" + "\n".join(d.format() for d in self.diagnostics)
		return text


@dataclass(eq=False)
class RuntimeTrapError(StableJitError):
	reason_code: ClassVar[str] = "runtime-trap"


@dataclass(eq=False)
class AssertionMismatch(StableJitError):
	element_kind: str | None = None
	descriptor: str | None = None
	expected: str | None = None
	# (label, rendered value) pairs, e.g. ("first", "0"), ("after", "2147483647").
	observed: tuple[tuple[str, str], ...] = ()

	reason_code: ClassVar[str] = "assertion-mismatch"

	def to_dict(self) -> dict[str, Any]:
		data = super().to_dict()
		data.update(
			{
				"element_kind": self.element_kind,
				"descriptor": self.descriptor,
				"expected": self.expected,
				"observed": dict(self.observed),
			}
		)
		return data

	def format_human(self) -> str:
		parts = [super().format_human()]
		if self.element_kind:
			parts.append(f"kind={self.element_kind}")
		if self.descriptor:
			parts.append(f"access={self.descriptor}")
		if self.expected:
			parts.append(f"expected={self.expected}")
		if self.observed:
			parts.append("observed=(" + ", ".join(f"{k}={v}" for k, v in self.observed) + ")")
		return " ".join(parts)


__all__ = [
	"AssertionMismatch",
	"CompilationError",
	"ConstructionError",
	"RuntimeTrapError",
	"StableJitError",
]
