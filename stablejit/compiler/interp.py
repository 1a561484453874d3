# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Graph interpreter: the uncompiled path.

Runs an unoptimized graph node by node. Raw loads always read live memory, so
the interpreter never observes a folded value.
"""

from __future__ import annotations

from typing import Any, Dict

from stablejit.core.errors import RuntimeTrapError
from stablejit.registry import StableContainer

from .graph import AddNode, ConstantNode, Node, RawLoadNode, ReturnNode, StructuredGraph


class GraphInterpreter:
	def run(self, graph: StructuredGraph) -> Any:
		values: Dict[int, Any] = {}
		for node in graph.nodes:
			if isinstance(node, ReturnNode):
				return values[id(node.value)]
			values[id(node)] = self._eval(graph, node, values)
		raise RuntimeTrapError(f"'{graph.method}' fell off the end without returning", method=graph.method)

	def _eval(self, graph: StructuredGraph, node: Node, values: Dict[int, Any]) -> Any:
		if isinstance(node, ConstantNode):
			return node.value
		if isinstance(node, AddNode):
			return values[id(node.x)] + values[id(node.y)]
		if isinstance(node, RawLoadNode):
			return self._load(graph, node, values[id(node.object)], values[id(node.offset)])
		raise RuntimeTrapError(f"cannot interpret {node!r}", method=graph.method)

	def _load(self, graph: StructuredGraph, node: RawLoadNode, array: Any, offset: int) -> Any:
		if not isinstance(array, StableContainer):
			raise RuntimeTrapError(f"raw load from non-array {array!r}", method=graph.method)
		try:
			raw = array.read_bytes(offset - array.base_offset, node.kind.width)
		except IndexError as err:
			raise RuntimeTrapError(str(err), method=graph.method) from err
		value = node.kind.decode(raw)
		if node.kind.is_reference:
			try:
				return array.resolve_reference(value)
			except LookupError as err:
				raise RuntimeTrapError(str(err), method=graph.method) from err
		return value


__all__ = ["GraphInterpreter"]
