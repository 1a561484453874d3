# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
AST -> graph construction.

Names resolve against the method handle's symbol table and become object
ConstantNodes; `base(kind)` and integer literals become int constants; every
`unsafe.get_*` call becomes one RawLoadNode. Nothing is folded here; the
result is exactly what the uncompiled path executes.
"""

from __future__ import annotations

from typing import Dict, Mapping

from stablejit.core.diagnostics import Diagnostic
from stablejit.core.errors import CompilationError
from stablejit.core.kinds import ElementKind
from stablejit.core.span import Span
from stablejit.frontend.accessors import ACCESS_RECEIVER, parse_accessor
from stablejit.frontend.ast import Add, BaseOffset, Expr, ExprStmt, IntLit, MemberCall, MethodDef, Name, ReturnStmt
from stablejit.frontend.handles import MethodHandle
from stablejit.registry import ARRAY_BASE_OFFSET

from .graph import AddNode, ConstantNode, Node, RawLoadNode, ReturnNode, StructuredGraph


class _BuildFailed(Exception):
	def __init__(self, diagnostic: Diagnostic) -> None:
		super().__init__(diagnostic.message)
		self.diagnostic = diagnostic


def _fail(message: str, span: Span, code: str = "E-BUILD") -> _BuildFailed:
	return _BuildFailed(Diagnostic(message=message, code=code, phase="build", span=span))


class GraphBuilder:
	"""Builds a StructuredGraph for one method."""

	def __init__(self, symbols: Mapping[str, object]) -> None:
		self.symbols = symbols
		self._object_constants: Dict[int, ConstantNode] = {}

	def build(self, method: MethodDef) -> StructuredGraph:
		try:
			return self._build(method)
		except _BuildFailed as failed:
			raise CompilationError(
				f"cannot build graph for '{method.name}': {failed.diagnostic.message}",
				method=method.name,
				diagnostics=(failed.diagnostic,),
			) from None

	def _build(self, method: MethodDef) -> StructuredGraph:
		try:
			return_kind = ElementKind.from_type_name(method.return_type)
		except KeyError:
			raise _fail(f"unknown return type '{method.return_type}'", method.span, "E-TYPE") from None
		graph = StructuredGraph(method.name, return_kind)
		self._object_constants = {}
		returned = False
		for stmt in method.body:
			if returned:
				raise _fail("statement after return is unreachable", stmt.span)
			if isinstance(stmt, ReturnStmt):
				value = self._expr(graph, stmt.value)
				self._check_return(graph, value, stmt.value.span)
				graph.add(ReturnNode(value))
				returned = True
			elif isinstance(stmt, ExprStmt):
				self._expr(graph, stmt.value)
		if not returned:
			raise _fail(f"method '{method.name}' does not return a value", method.span)
		return graph

	def _check_return(self, graph: StructuredGraph, value: Node, span: Span) -> None:
		kind = _value_kind(value)
		if kind is not graph.return_kind:
			found = kind.type_name if kind is not None else "an array"
			raise _fail(
				f"returns {found} but is declared to return {graph.return_kind.type_name}",
				span,
				"E-TYPE",
			)

	def _expr(self, graph: StructuredGraph, expr: Expr) -> Node:
		if isinstance(expr, IntLit):
			return graph.add(ConstantNode(expr.value, kind=ElementKind.LONG))
		if isinstance(expr, BaseOffset):
			try:
				ElementKind.from_type_name(expr.type_name)
			except KeyError:
				raise _fail(f"unknown element type '{expr.type_name}'", expr.span, "E-TYPE") from None
			return graph.add(ConstantNode(ARRAY_BASE_OFFSET, kind=ElementKind.LONG))
		if isinstance(expr, Name):
			return self._name(graph, expr)
		if isinstance(expr, Add):
			x = self._expr(graph, expr.left)
			y = self._expr(graph, expr.right)
			for operand, sub in ((x, expr.left), (y, expr.right)):
				if _value_kind(operand) is not ElementKind.LONG or isinstance(operand, RawLoadNode):
					raise _fail("only offset arithmetic is supported", sub.span, "E-TYPE")
			return graph.add(AddNode(x, y))
		if isinstance(expr, MemberCall):
			return self._access(graph, expr)
		raise _fail(f"unsupported expression {type(expr).__name__}", expr.span)

	def _name(self, graph: StructuredGraph, expr: Name) -> Node:
		if expr.ident not in self.symbols:
			raise _fail(f"unknown name '{expr.ident}'", expr.span, "E-NAME")
		value = self.symbols[expr.ident]
		# One constant node per distinct object, as a constant pool would.
		node = self._object_constants.get(id(value))
		if node is None:
			node = graph.add(ConstantNode(value))
			self._object_constants[id(value)] = node
		return node

	def _access(self, graph: StructuredGraph, call: MemberCall) -> Node:
		accessor = parse_accessor(call.member) if call.receiver == ACCESS_RECEIVER else None
		if accessor is None:
			raise _fail(f"unknown accessor '{call.receiver}.{call.member}'", call.span, "E-NAME")
		if len(call.args) != 2:
			raise _fail(f"{call.member} takes (array, offset), got {len(call.args)} arguments", call.span)
		array_expr, offset_expr = call.args
		array = self._expr(graph, array_expr)
		if not isinstance(array, ConstantNode) or array.kind is not None:
			raise _fail(f"{call.member} reads from a named array", array_expr.span, "E-TYPE")
		offset = self._expr(graph, offset_expr)
		if _value_kind(offset) is not ElementKind.LONG or isinstance(offset, RawLoadNode):
			raise _fail(f"{call.member} needs an offset computed from base() and literals", offset_expr.span, "E-TYPE")
		return graph.add(RawLoadNode(accessor.kind, array, offset, accessor.unaligned, span=call.span))


def _value_kind(node: Node) -> ElementKind | None:
	if isinstance(node, RawLoadNode):
		return node.kind
	if isinstance(node, ConstantNode):
		return node.kind
	if isinstance(node, AddNode):
		return ElementKind.LONG
	return None


def build_graph(handle: MethodHandle) -> StructuredGraph:
	"""Parse the handle's method and build its (unoptimized) graph."""
	return GraphBuilder(handle.symbols).build(handle.method())


__all__ = ["GraphBuilder", "build_graph"]
