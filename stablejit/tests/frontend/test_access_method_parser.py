# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from stablejit.core.errors import CompilationError
from stablejit.core.kinds import ElementKind
from stablejit.frontend import MethodHandle, accessor_name, parse_access_methods, parse_accessor
from stablejit.frontend.ast import Add, BaseOffset, ExprStmt, IntLit, MemberCall, Name, ReturnStmt
from stablejit.frontend.parser import parse_module

READ_INT_AS_LONG = """
fn read_int_as_long() -> long {
	return unsafe.get_long(STABLE_INT_ARRAY, base(int) + 0);
}
"""


def test_parse_access_method_shape():
	module = parse_module(READ_INT_AS_LONG, file="m.acc")
	assert [m.name for m in module.methods] == ["read_int_as_long"]
	method = module.method("read_int_as_long")
	assert method.return_type == "long"
	(stmt,) = method.body
	assert isinstance(stmt, ReturnStmt)
	call = stmt.value
	assert isinstance(call, MemberCall)
	assert (call.receiver, call.member) == ("unsafe", "get_long")
	array, offset = call.args
	assert array == Name("STABLE_INT_ARRAY", span=array.span)
	assert isinstance(offset, Add)
	assert isinstance(offset.left, BaseOffset) and offset.left.type_name == "int"
	assert isinstance(offset.right, IntLit) and offset.right.value == 0


def test_spans_point_into_the_source():
	method = parse_module(READ_INT_AS_LONG, file="m.acc").method("read_int_as_long")
	call = method.body[0].value
	assert call.span.file == "m.acc"
	assert call.span.line == 3
	assert call.span.column == 9
	assert method.span.line == 2


def test_comments_parenthesized_offsets_and_several_methods():
	source = """
# two methods in one module
fn a() -> int { return unsafe.get_int(X, (base(int) + 4)); }
// expression statements are allowed before the return
fn b() -> byte {
	unsafe.get_byte(X, base(byte) + 1);
	return unsafe.get_byte_unaligned(X, base(byte) + 1);
}
"""
	module = parse_module(source)
	assert [m.name for m in module.methods] == ["a", "b"]
	a_call = module.method("a").body[0].value
	assert isinstance(a_call.args[1], Add)
	b_body = module.method("b").body
	assert isinstance(b_body[0], ExprStmt)
	assert b_body[1].value.member == "get_byte_unaligned"


def test_parse_errors_become_diagnostics_with_location():
	source = "fn f() -> int {\n\treturn unsafe.get_int(X, ;\n}\n"
	module, diagnostics = parse_access_methods(source, file="bad.acc")
	assert module is None
	(diag,) = diagnostics
	assert diag.code == "E-PARSE"
	assert diag.phase == "parse"
	assert diag.span.file == "bad.acc"
	assert diag.span.line == 2
	assert diag.span.column is not None


def test_handle_raises_compilation_error_for_unparseable_source():
	handle = MethodHandle("fn f( -> int {}", "f", {})
	with pytest.raises(CompilationError) as info:
		handle.method()
	assert info.value.method == "f"
	assert info.value.diagnostics[0].code == "E-PARSE"


def test_handle_raises_compilation_error_for_missing_method():
	handle = MethodHandle(READ_INT_AS_LONG, "read_int_as_int", {})
	with pytest.raises(CompilationError) as info:
		handle.method()
	assert info.value.diagnostics[0].code == "E-NO-METHOD"


def test_handle_counts_access_sites():
	source = """
fn two() -> int {
	unsafe.get_int(X, base(int) + 0);
	return unsafe.get_int(X, base(int) + 0);
}
fn one() -> int { return unsafe.get_int(X, base(int) + 0); }
fn other() -> int { return helper.get_int(X, base(int) + 0); }
"""
	assert len(MethodHandle(source, "two", {}).access_sites()) == 2
	assert len(MethodHandle(source, "one", {}).access_sites()) == 1
	assert MethodHandle(source, "other", {}).access_sites() == []


def test_accessor_names():
	assert accessor_name(ElementKind.LONG) == "get_long"
	assert accessor_name(ElementKind.REFERENCE) == "get_object"
	assert accessor_name(ElementKind.SHORT, unaligned=True) == "get_short_unaligned"
	assert parse_accessor("get_char_unaligned") == (ElementKind.CHAR, True)
	assert parse_accessor("get_boolean") == (ElementKind.BOOL, False)
	assert parse_accessor("get_widget") is None
	assert parse_accessor("put_int") is None
