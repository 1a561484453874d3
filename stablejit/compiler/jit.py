# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
The compiler service consumed by the harness.

  compile(handle)                      -> CompiledArtifact | CompilationError
  CompiledArtifact.invoke()            -> value | RuntimeTrapError
  is_constant_folded_stable_read(node) -> bool
  interpret(handle)                    -> value (the uncompiled path)

`compile` builds the method's graph, marks registry-tracked array constants
stable, folds what constant reflection allows and hands the result to the
LLVM backend. The artifact owns its machine code for its whole life.
"""

from __future__ import annotations

import ctypes
from dataclasses import dataclass
from typing import Any, Callable, Optional

from stablejit.core.errors import RuntimeTrapError
from stablejit.core.kinds import ElementKind
from stablejit.frontend.handles import MethodHandle
from stablejit.registry import StableContainer, StableContainerRegistry

from .builder import build_graph
from .graph import ConstantNode, Node, RawLoadNode, StructuredGraph
from .interp import GraphInterpreter
from .llvm_backend import LlvmBackend, NativeCode
from .phases import apply_stable, canonicalize, check_bounds
from .reflection import ConstantReflection


@dataclass
class CompilerOptions:
	"""Knobs of the compiler under test."""

	fold_stable_reads: bool = True
	# Unsound relaxations; the harness must catch a compiler configured with them.
	fold_width_mismatch: bool = False
	fold_unaligned: bool = False
	opt_level: int = 0
	# Called with (method name, LLVM IR text) for every compiled method.
	on_ir: Optional[Callable[[str, str], None]] = None


class CompiledArtifact:
	"""Installed code for exactly one method."""

	def __init__(self, method: str, graph: StructuredGraph, code: NativeCode) -> None:
		self.method = method
		self.graph = graph
		self.ir_text = code.ir_text
		self.return_kind = graph.return_kind
		self._code = code
		self._entry = ctypes.CFUNCTYPE(graph.return_kind.ctype)(code.address)
		self._resolver = _reference_resolver(graph)
		self._valid = True

	def __repr__(self) -> str:
		state = "valid" if self._valid else "invalidated"
		return f"CompiledArtifact({self.method}, {state})"

	@property
	def is_valid(self) -> bool:
		return self._valid

	def invalidate(self) -> None:
		"""Make the installed code unusable; later invocations trap."""
		self._valid = False

	def invoke(self) -> Any:
		if not self._valid:
			raise RuntimeTrapError(f"installed code for '{self.method}' has been invalidated", method=self.method)
		value = self.return_kind.from_native(self._entry())
		if self.return_kind is ElementKind.REFERENCE:
			if self._resolver is None:
				raise RuntimeTrapError(f"'{self.method}' returned a reference from no known array", method=self.method)
			try:
				return self._resolver(value)
			except LookupError as err:
				raise RuntimeTrapError(str(err), method=self.method) from err
		return value


def _reference_resolver(graph: StructuredGraph) -> Optional[Callable[[Any], Any]]:
	value = graph.return_node.value
	if isinstance(value, ConstantNode) and value.folded_from is not None:
		value = value.folded_from
	if isinstance(value, RawLoadNode) and isinstance(value.object, ConstantNode):
		array = value.object.value
		if isinstance(array, StableContainer):
			return array.resolve_reference
	return None


class Compiler:
	def __init__(
		self,
		registry: StableContainerRegistry,
		options: Optional[CompilerOptions] = None,
		backend: Optional[LlvmBackend] = None,
	) -> None:
		self.registry = registry
		self.options = options or CompilerOptions()
		self.backend = backend or LlvmBackend(opt_level=self.options.opt_level)
		self.reflection = ConstantReflection(
			fold_width_mismatch=self.options.fold_width_mismatch,
			fold_unaligned=self.options.fold_unaligned,
		)
		self._interpreter = GraphInterpreter()

	def optimize(self, handle: MethodHandle) -> StructuredGraph:
		"""Build the method's graph and run the stable phases on it."""
		graph = build_graph(handle)
		apply_stable(graph, self.registry)
		canonicalize(graph, self.reflection, fold_stable_reads=self.options.fold_stable_reads)
		check_bounds(graph)
		return graph

	def compile(self, handle: MethodHandle) -> CompiledArtifact:
		graph = self.optimize(handle)
		code = self.backend.emit(graph)
		if self.options.on_ir is not None:
			self.options.on_ir(handle.name, code.ir_text)
		return CompiledArtifact(handle.name, graph, code)

	def interpret(self, handle: MethodHandle) -> Any:
		"""Run the method on the uncompiled path (no stable phases, live reads)."""
		return self._interpreter.run(build_graph(handle))

	@staticmethod
	def is_constant_folded_stable_read(node: Node) -> bool:
		return isinstance(node, ConstantNode) and node.kind is not None and node.folded_from is not None


__all__ = ["CompiledArtifact", "Compiler", "CompilerOptions"]
