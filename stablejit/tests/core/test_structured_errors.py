# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from stablejit.core.diagnostics import Diagnostic
from stablejit.core.errors import (
	AssertionMismatch,
	CompilationError,
	ConstructionError,
	RuntimeTrapError,
	StableJitError,
)
from stablejit.core.span import Span


def test_reason_codes_are_stable():
	assert ConstructionError("x").reason_code == "construction"
	assert CompilationError("x").reason_code == "compilation"
	assert RuntimeTrapError("x").reason_code == "runtime-trap"
	assert AssertionMismatch("x").reason_code == "assertion-mismatch"


def test_errors_are_catchable_as_base_and_carry_scenario():
	with pytest.raises(StableJitError) as info:
		raise RuntimeTrapError("boom", scenario_id="int[]@0:int", method="read_int_as_int")
	err = info.value
	assert err.to_dict() == {
		"reason_code": "runtime-trap",
		"message": "boom",
		"scenario_id": "int[]@0:int",
		"method": "read_int_as_int",
	}
	assert str(err) == "[runtime-trap] boom scenario=int[]@0:int method=read_int_as_int"


def test_assertion_mismatch_reports_kind_descriptor_and_observations():
	err = AssertionMismatch(
		"compiled code returned the pre-mutation value",
		scenario_id="int[]@0:long",
		element_kind="I",
		descriptor="int[]@0:long",
		expected="MustNotFold",
		observed=(("first", "0"), ("after", "0")),
	)
	text = err.format_human()
	assert text.startswith("[assertion-mismatch] compiled code returned the pre-mutation value")
	assert "kind=I" in text
	assert "expected=MustNotFold" in text
	assert "observed=(first=0, after=0)" in text
	assert err.to_dict()["observed"] == {"first": "0", "after": "0"}


def test_compilation_error_renders_diagnostics_with_location():
	diag = Diagnostic(message="unknown name 'NOPE'", code="E-NAME", phase="build", span=Span("<m>", 2, 24))
	err = CompilationError("cannot build graph", method="m", diagnostics=(diag,))
	assert "<m>:2:24: error[E-NAME]: unknown name 'NOPE'" in err.format_human()
	assert err.to_dict()["diagnostics"][0]["line"] == 2


def test_unknown_span_renders_file_only():
	assert str(Span()) == "<source>"
	assert str(Span("a.acc", 3)) == "a.acc:3"
