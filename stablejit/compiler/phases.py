# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Graph phases run by `Compiler.compile`.

  apply_stable  mark array constants that the registry tracks as stable
  canonicalize  fold offset arithmetic, then fold raw loads of stable elements
  check_bounds  reject constant-offset loads outside their array
"""

from __future__ import annotations

from stablejit.core.diagnostics import Diagnostic
from stablejit.core.errors import CompilationError
from stablejit.core.kinds import ElementKind
from stablejit.registry import StableContainer, StableContainerRegistry

from .graph import AddNode, ConstantNode, RawLoadNode, StructuredGraph
from .reflection import ConstantReflection


def apply_stable(graph: StructuredGraph, registry: StableContainerRegistry) -> int:
	"""
	Replace each constant wrapping a tracked container by one with a stable
	dimension of 1. Returns how many constants were replaced.
	"""
	replaced = 0
	for node in list(graph.of_type(ConstantNode)):
		if node.kind is not None or node.stable_dimension:
			continue
		registration = registry.registration(node.value)
		if registration is None:
			continue
		stable = ConstantNode(node.value, stable_dimension=1, default_stable=registration.default_stable)
		graph.replace(node, stable)
		replaced += 1
	return replaced


def _int_constant(node) -> int | None:
	if isinstance(node, ConstantNode) and node.kind is ElementKind.LONG and node.folded_from is None:
		return node.value
	return None


def canonicalize(graph: StructuredGraph, reflection: ConstantReflection, *, fold_stable_reads: bool = True) -> int:
	"""Fold what can be folded; returns the number of stable loads folded."""
	for add in list(graph.of_type(AddNode)):
		x, y = _int_constant(add.x), _int_constant(add.y)
		if x is not None and y is not None:
			graph.replace(add, ConstantNode(x + y, kind=ElementKind.LONG))
	folded = 0
	if fold_stable_reads:
		for load in list(graph.of_type(RawLoadNode)):
			offset = _int_constant(load.offset)
			if offset is None or not isinstance(load.object, ConstantNode):
				continue
			read = reflection.read_stable_element(load.object, load.kind, offset, unaligned=load.unaligned)
			if read is None:
				continue
			graph.replace(load, ConstantNode(read.value, kind=load.kind, folded_from=load))
			folded += 1
	graph.remove_dead()
	return folded


def check_bounds(graph: StructuredGraph) -> None:
	"""Reject raw loads whose constant offset falls outside their array's elements."""
	for load in graph.of_type(RawLoadNode):
		offset = _int_constant(load.offset)
		if offset is None or not isinstance(load.object, ConstantNode):
			continue
		array = load.object.value
		if not isinstance(array, StableContainer):
			continue
		start = offset - array.base_offset
		if start < 0 or start + load.kind.width > array.element_bytes:
			raise CompilationError(
				f"{load.kind.type_name} read at byte {start} is outside {array.type_label} {array.name}",
				method=graph.method,
				diagnostics=(
					Diagnostic(
						message=f"access [{start}, {start + load.kind.width}) exceeds {array.element_bytes} element bytes",
						code="E-BOUNDS",
						phase="build",
						span=load.span,
					),
				),
			)


__all__ = ["apply_stable", "canonicalize", "check_bounds"]
