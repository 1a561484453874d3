# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lark front-end for access methods: source text -> `ast.Module`.

Parse errors surface as lark `UnexpectedInput`; callers that want diagnostics
instead use `stablejit.frontend.parse_access_methods`.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree

from .ast import (
	Add,
	BaseOffset,
	Expr,
	ExprStmt,
	IntLit,
	MemberCall,
	MethodDef,
	Module,
	Name,
	ReturnStmt,
	Stmt,
)
from stablejit.core.span import Span

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)


def parse_module(source: str, *, file: Optional[str] = None) -> Module:
	tree = _PARSER.parse(source)
	return _build_module(tree, file)


def _name(node: Tree) -> str:
	return node.data if isinstance(node.data, str) else node.data.value


def _span(node: Tree | Token, file: Optional[str]) -> Span:
	if isinstance(node, Token):
		return Span(file=file, line=node.line, column=node.column, end_line=node.end_line, end_column=node.end_column)
	return Span.from_meta(node.meta, file)


def _build_module(tree: Tree, file: Optional[str]) -> Module:
	methods = [_build_method(child, file) for child in tree.children if isinstance(child, Tree)]
	return Module(methods=methods, span=_span(tree, file))


def _type_name(node: Tree) -> str:
	tok = node.children[0]
	assert isinstance(tok, Token)
	return tok.value


def _build_method(node: Tree, file: Optional[str]) -> MethodDef:
	name_tok, ret_node, block = node.children
	assert isinstance(name_tok, Token) and isinstance(ret_node, Tree) and isinstance(block, Tree)
	body: List[Stmt] = [_build_stmt(stmt, file) for stmt in block.children if isinstance(stmt, Tree)]
	return MethodDef(
		name=name_tok.value,
		return_type=_type_name(ret_node),
		body=body,
		file=file,
		span=_span(node, file),
	)


def _build_stmt(node: Tree, file: Optional[str]) -> Stmt:
	kind = _name(node)
	value = _build_expr(node.children[0], file)
	if kind == "return_stmt":
		return ReturnStmt(value, span=_span(node, file))
	if kind == "expr_stmt":
		return ExprStmt(value, span=_span(node, file))
	raise TypeError(f"unexpected statement node '{kind}'")


def _build_expr(node: Tree | Token, file: Optional[str]) -> Expr:
	if isinstance(node, Token):
		# Inlined single-token rules only reach here through `(expr)` nesting.
		if node.type == "INT":
			return IntLit(int(node.value), span=_span(node, file))
		return Name(node.value, span=_span(node, file))
	kind = _name(node)
	span = _span(node, file)
	if kind == "int_lit":
		return IntLit(int(node.children[0]), span=span)
	if kind == "name":
		return Name(str(node.children[0]), span=span)
	if kind == "base_offset":
		return BaseOffset(_type_name(node.children[0]), span=span)
	if kind == "add":
		left, right = node.children
		return Add(_build_expr(left, file), _build_expr(right, file), span=span)
	if kind == "member_call":
		receiver, member, *rest = node.children
		args: List[Expr] = []
		if rest:
			(args_node,) = rest
			args = [_build_expr(arg, file) for arg in args_node.children]
		return MemberCall(str(receiver), str(member), args, span=span)
	raise TypeError(f"unexpected expression node '{kind}'")


__all__ = ["parse_module"]
