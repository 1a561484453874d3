# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import math
import sys

import pytest

from stablejit.compiler.jit import Compiler, CompilerOptions
from stablejit.core.errors import RuntimeTrapError
from stablejit.core.kinds import DBL_MAX, FLT_MAX
from stablejit.frontend import MethodHandle
from stablejit.registry import StableContainer


def _read(array: StableContainer, requested: str, offset: int = 0, *, unaligned: bool = False) -> MethodHandle:
	accessor = f"get_{requested}_unaligned" if unaligned else f"get_{requested}"
	source = (
		f"fn m() -> {requested} {{ return unsafe.{accessor}({array.name}, base({array.kind.type_name}) + {offset}); }}"
	)
	return MethodHandle(source, "m", {array.name: array})


def test_folded_read_returns_the_compile_time_value(compiler, registry):
	arr = registry.lookup("STABLE_INT_ARRAY")
	artifact = compiler.compile(_read(arr, "int"))
	assert "ret i32 0" in artifact.ir_text
	assert "inttoptr" not in artifact.ir_text
	arr.change()
	assert artifact.invoke() == 0
	assert compiler.interpret(_read(arr, "int")) == 2**31 - 1


def test_live_read_sees_mutation(compiler, registry):
	arr = registry.lookup("STABLE_INT_ARRAY")
	artifact = compiler.compile(_read(arr, "long"))
	assert "inttoptr" in artifact.ir_text
	assert "load i64" in artifact.ir_text
	assert artifact.invoke() == 0
	arr.change()
	expected = int.from_bytes(arr.read_bytes(0, 8), sys.byteorder, signed=True)
	assert expected != 0
	assert artifact.invoke() == expected
	assert artifact.invoke() == expected


def test_unaligned_read_uses_byte_alignment(compiler, registry):
	arr = registry.lookup("STABLE_SHORT_ARRAY")
	artifact = compiler.compile(_read(arr, "short", 1, unaligned=True))
	assert "align 1" in artifact.ir_text
	arr.change()
	assert artifact.invoke() == int.from_bytes(arr.read_bytes(1, 2), sys.byteorder, signed=True)


def test_unsigned_and_boolean_returns(compiler, registry):
	chars = registry.lookup("STABLE_CHAR_ARRAY")
	chars.change()
	assert compiler.compile(_read(chars, "char")).invoke() == 0xFFFF
	bools = registry.lookup("STABLE_BOOLEAN_ARRAY")
	bools.change()
	assert compiler.compile(_read(bools, "boolean")).invoke() is True


def test_floating_constants_keep_their_bits(compiler, registry):
	floats = registry.lookup("STABLE_FLOAT_ARRAY")
	floats.change()
	artifact = compiler.compile(_read(floats, "float"))
	assert "bitcast" in artifact.ir_text
	floats.reset()
	assert artifact.invoke() == FLT_MAX

	doubles = registry.lookup("STABLE_DOUBLE_ARRAY")
	doubles.write_bytes(0, (0x7FF8000000000123).to_bytes(8, sys.byteorder))
	assert math.isnan(compiler.compile(_read(doubles, "double")).invoke())
	doubles.change()
	assert compiler.compile(_read(doubles, "double")).invoke() == DBL_MAX


def test_reference_results_resolve_to_objects(compiler, registry):
	objs = registry.lookup("STABLE_OBJECT_ARRAY")
	folded = compiler.compile(_read(objs, "object"))
	assert folded.invoke() is None
	objs.change()
	assert folded.invoke() is None

	payload = objs.get(0)
	live = Compiler(registry, CompilerOptions(fold_stable_reads=False)).compile(_read(objs, "object"))
	assert live.invoke() is payload


def test_invalidated_artifact_traps(compiler, registry):
	artifact = compiler.compile(_read(registry.lookup("STABLE_LONG_ARRAY"), "long"))
	assert artifact.is_valid
	artifact.invalidate()
	assert not artifact.is_valid
	with pytest.raises(RuntimeTrapError) as info:
		artifact.invoke()
	assert info.value.method == "m"


@pytest.mark.parametrize("opt_level", [0, 2, 3])
def test_opt_levels_agree(registry, opt_level):
	arr = registry.lookup("STABLE_LONG_ARRAY")
	compiler = Compiler(registry, CompilerOptions(opt_level=opt_level))
	folded = compiler.compile(_read(arr, "long"))
	live = compiler.compile(_read(arr, "int"))
	arr.change()
	assert folded.invoke() == 0
	assert live.invoke() == int.from_bytes(arr.read_bytes(0, 4), sys.byteorder, signed=True)


def test_ir_hook_sees_every_compiled_method(registry):
	seen = []
	compiler = Compiler(registry, CompilerOptions(on_ir=lambda name, ir: seen.append((name, ir))))
	artifact = compiler.compile(_read(registry.lookup("STABLE_BYTE_ARRAY"), "byte"))
	assert seen == [("m", artifact.ir_text)]


def test_interpreter_traps_on_out_of_bounds_reads(compiler, registry):
	arr = registry.lookup("STABLE_LONG_ARRAY")
	with pytest.raises(RuntimeTrapError):
		compiler.interpret(_read(arr, "long", 16))
