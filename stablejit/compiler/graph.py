# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Graph IR for access methods.

Pipeline placement:
  source (frontend) -> AST -> graph (this file) -> stable phases -> LLVM -> machine code

Access methods are straight-line and argument-less, so a graph is a list of
value nodes plus one ReturnNode. Nodes compare by identity. A ConstantNode
either wraps a Python object (an array constant; `stable_dimension` > 0 once
the apply-stable phase recognized it) or a typed scalar (`kind` set), which is
what a folded raw load turns into.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, TypeVar

from stablejit.core.kinds import ElementKind
from stablejit.core.span import Span


class Node:
	"""Base class for graph nodes."""

	id: int = -1

	def inputs(self) -> tuple["Node", ...]:
		return ()


@dataclass(eq=False)
class ConstantNode(Node):
	value: Any
	# Typed scalar constants carry their kind; object constants leave it None.
	kind: Optional[ElementKind] = None
	stable_dimension: int = 0
	default_stable: bool = False
	# Set when this constant replaced a raw load of a stable element.
	folded_from: Optional["RawLoadNode"] = None

	def __repr__(self) -> str:
		if self.kind is not None:
			return f"Constant#{self.id}({self.kind.type_name} {self.value!r})"
		stable = f", stable={self.stable_dimension}" if self.stable_dimension else ""
		return f"Constant#{self.id}({self.value!r}{stable})"


@dataclass(eq=False)
class AddNode(Node):
	x: Node
	y: Node

	def inputs(self) -> tuple[Node, ...]:
		return (self.x, self.y)

	def __repr__(self) -> str:
		return f"Add#{self.id}(#{self.x.id}, #{self.y.id})"


@dataclass(eq=False)
class RawLoadNode(Node):
	"""Raw read of `kind` at `object` + `offset` (offset counted from the block start)."""

	kind: ElementKind
	object: Node
	offset: Node
	unaligned: bool = False
	span: Span = field(default_factory=Span)

	def inputs(self) -> tuple[Node, ...]:
		return (self.object, self.offset)

	def __repr__(self) -> str:
		tail = ", unaligned" if self.unaligned else ""
		return f"RawLoad#{self.id}({self.kind.type_name}, #{self.object.id} + #{self.offset.id}{tail})"


@dataclass(eq=False)
class ReturnNode(Node):
	value: Node

	def inputs(self) -> tuple[Node, ...]:
		return (self.value,)

	def __repr__(self) -> str:
		return f"Return#{self.id}(#{self.value.id})"


N = TypeVar("N", bound=Node)


class StructuredGraph:
	"""Nodes of one method in definition order; the ReturnNode comes last."""

	def __init__(self, method: str, return_kind: ElementKind) -> None:
		self.method = method
		self.return_kind = return_kind
		self.nodes: List[Node] = []
		self._next_id = 0

	def add(self, node: N) -> N:
		node.id = self._next_id
		self._next_id += 1
		self.nodes.append(node)
		return node

	def of_type(self, cls: type[N]) -> Iterator[N]:
		for node in self.nodes:
			if isinstance(node, cls):
				yield node

	@property
	def return_node(self) -> ReturnNode:
		for node in reversed(self.nodes):
			if isinstance(node, ReturnNode):
				return node
		raise LookupError(f"graph for '{self.method}' has no return")

	def replace(self, old: Node, new: Node) -> None:
		"""Replace every use of `old` by `new` (added to the graph if needed) and drop `old`."""
		if new not in self.nodes:
			self.add(new)
			# Keep definitions ahead of uses: move `new` to where `old` was.
			self.nodes.remove(new)
			self.nodes.insert(self.nodes.index(old), new)
		for node in self.nodes:
			for name in ("x", "y", "object", "offset", "value"):
				if getattr(node, name, None) is old and isinstance(node, (AddNode, RawLoadNode, ReturnNode)):
					setattr(node, name, new)
		self.nodes.remove(old)

	def remove_dead(self) -> None:
		"""Drop nodes not reachable from the return."""
		live: set[int] = set()
		work: List[Node] = [self.return_node]
		while work:
			node = work.pop()
			if id(node) in live:
				continue
			live.add(id(node))
			work.extend(node.inputs())
		self.nodes = [n for n in self.nodes if id(n) in live]

	def dump(self) -> str:
		return "\n".join([f"graph {self.method} -> {self.return_kind.type_name}"] + [f"  {n!r}" for n in self.nodes])


__all__ = [
	"AddNode",
	"ConstantNode",
	"Node",
	"RawLoadNode",
	"ReturnNode",
	"StructuredGraph",
]
