# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
AST for the access-method language.

Plain dataclasses, no semantics: the graph builder decides what a name or a
member call means.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from stablejit.core.span import Span


@dataclass(frozen=True)
class Located:
	span: Span = field(default_factory=Span, kw_only=True)


@dataclass(frozen=True)
class Expr(Located):
	pass


@dataclass(frozen=True)
class IntLit(Expr):
	value: int


@dataclass(frozen=True)
class Name(Expr):
	ident: str


@dataclass(frozen=True)
class BaseOffset(Expr):
	"""`base(kind)`: array base offset of an array of `kind`."""

	type_name: str


@dataclass(frozen=True)
class Add(Expr):
	left: Expr
	right: Expr


@dataclass(frozen=True)
class MemberCall(Expr):
	"""`receiver.member(args...)`; access calls look like `unsafe.get_int(...)`."""

	receiver: str
	member: str
	args: List[Expr] = field(default_factory=list)


@dataclass(frozen=True)
class Stmt(Located):
	pass


@dataclass(frozen=True)
class ReturnStmt(Stmt):
	value: Expr


@dataclass(frozen=True)
class ExprStmt(Stmt):
	value: Expr


@dataclass(frozen=True)
class MethodDef(Located):
	name: str
	return_type: str
	body: List[Stmt] = field(default_factory=list)
	file: Optional[str] = None


@dataclass(frozen=True)
class Module(Located):
	methods: List[MethodDef] = field(default_factory=list)

	def method(self, name: str) -> Optional[MethodDef]:
		for m in self.methods:
			if m.name == name:
				return m
		return None


def iter_calls(expr: Expr):
	"""Yield every MemberCall reachable from `expr` (outermost first)."""
	if isinstance(expr, MemberCall):
		yield expr
		for arg in expr.args:
			yield from iter_calls(arg)
	elif isinstance(expr, Add):
		yield from iter_calls(expr.left)
		yield from iter_calls(expr.right)


__all__ = [
	"Add",
	"BaseOffset",
	"Expr",
	"ExprStmt",
	"IntLit",
	"Located",
	"MemberCall",
	"MethodDef",
	"Module",
	"Name",
	"ReturnStmt",
	"Stmt",
	"iter_calls",
]
