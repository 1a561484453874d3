# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Graph -> LLVM IR -> native code (llvmlite MCJIT).

Scope:
  - One argument-less function per graph, returning the method's kind:
    boolean/byte -> i8, short/char -> i16, int -> i32, long -> i64,
    float -> float, double -> double, object -> pointer-sized integer.
  - Array constants lower to their absolute block address; a raw load is
    `inttoptr(address + offset)` followed by a load (align 1 when unaligned).
  - Folded constants lower to immediates; floating immediates are materialized
    from their exact bit pattern with a bitcast so NaN payloads survive.

Each artifact gets its own target machine and engine: an MCJIT engine takes
ownership of the target machine it is created with.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from llvmlite import binding as llvm  # type: ignore
from llvmlite import ir  # type: ignore

from stablejit.core.diagnostics import Diagnostic
from stablejit.core.errors import CompilationError
from stablejit.core.kinds import ElementKind, host_word_bits
from stablejit.registry import StableContainer

from .graph import AddNode, ConstantNode, Node, RawLoadNode, ReturnNode, StructuredGraph

_LLVM_READY = False


def _init_llvm() -> None:
	global _LLVM_READY
	if not _LLVM_READY:
		llvm.initialize_native_target()
		llvm.initialize_native_asmprinter()
		_LLVM_READY = True


def llvm_type(kind: ElementKind, word_bits: int) -> ir.Type:
	if kind is ElementKind.FLOAT:
		return ir.FloatType()
	if kind is ElementKind.DOUBLE:
		return ir.DoubleType()
	if kind is ElementKind.REFERENCE:
		return ir.IntType(word_bits)
	return ir.IntType(kind.width * 8)


def _int_constant(bits: int, value: int) -> ir.Constant:
	# Emit in the signed range so unsigned kinds (char) and raw bit patterns
	# print as valid literals of their width.
	value &= (1 << bits) - 1
	if value >= 1 << (bits - 1):
		value -= 1 << bits
	return ir.Constant(ir.IntType(bits), value)


@dataclass
class NativeCode:
	name: str
	ir_text: str
	engine: Any
	address: int


class LlvmBackend:
	def __init__(self, opt_level: int = 0) -> None:
		_init_llvm()
		self.opt_level = opt_level
		self.word_bits = host_word_bits()
		self._word = ir.IntType(self.word_bits)
		self._target = llvm.Target.from_default_triple()

	def lower(self, graph: StructuredGraph, data_layout: str = "") -> ir.Module:
		"""Lower an optimized graph to an llvmlite module."""
		module = ir.Module(name=f"{graph.method}_module")
		module.triple = llvm.get_default_triple()
		if data_layout:
			module.data_layout = data_layout
		fn_ty = ir.FunctionType(llvm_type(graph.return_kind, self.word_bits), [])
		fn = ir.Function(module, fn_ty, name=graph.method)
		builder = ir.IRBuilder(fn.append_basic_block(name="entry"))
		values: Dict[int, ir.Value] = {}
		for node in graph.nodes:
			if isinstance(node, ReturnNode):
				builder.ret(values[id(node.value)])
				break
			values[id(node)] = self._lower_node(graph, builder, node, values)
		return module

	def emit(self, graph: StructuredGraph) -> NativeCode:
		tm = self._target.create_target_machine(opt=self.opt_level)
		ir_text = str(self.lower(graph, str(tm.target_data)))
		try:
			llvm_module = llvm.parse_assembly(ir_text)
			llvm_module.verify()
			engine = llvm.create_mcjit_compiler(llvm_module, tm)
			engine.finalize_object()
		except RuntimeError as err:
			raise CompilationError(
				f"LLVM rejected the IR for '{graph.method}'",
				method=graph.method,
				diagnostics=(Diagnostic(message=str(err), code="E-LLVM", phase="codegen"),),
			) from err
		address = engine.get_function_address(graph.method)
		if not address:
			raise CompilationError(f"no machine code emitted for '{graph.method}'", method=graph.method)
		return NativeCode(graph.method, ir_text, engine, address)

	def _lower_node(self, graph: StructuredGraph, builder: ir.IRBuilder, node: Node, values: Dict[int, ir.Value]) -> ir.Value:
		if isinstance(node, ConstantNode):
			return self._constant(graph, builder, node)
		if isinstance(node, AddNode):
			return builder.add(self._to_word(builder, values[id(node.x)]), self._to_word(builder, values[id(node.y)]))
		if isinstance(node, RawLoadNode):
			base = values[id(node.object)]
			offset = self._to_word(builder, values[id(node.offset)])
			addr = builder.add(base, offset, name=f"addr{node.id}")
			ty = llvm_type(node.kind, self.word_bits)
			ptr = builder.inttoptr(addr, ty.as_pointer(), name=f"ptr{node.id}")
			align = 1 if node.unaligned else node.kind.width
			return builder.load(ptr, name=f"v{node.id}", align=align, typ=ty)
		raise CompilationError(f"cannot lower {node!r}", method=graph.method)

	def _constant(self, graph: StructuredGraph, builder: ir.IRBuilder, node: ConstantNode) -> ir.Value:
		kind = node.kind
		if kind is None:
			if not isinstance(node.value, StableContainer):
				raise CompilationError(f"cannot embed {node.value!r} in compiled code", method=graph.method)
			return ir.Constant(self._word, node.value.address)
		ty = llvm_type(kind, self.word_bits)
		if kind is ElementKind.REFERENCE:
			return ir.Constant(ty, 0 if node.value is None else id(node.value))
		if kind.is_floating:
			bits = _int_constant(kind.width * 8, kind.to_bits(node.value))
			return builder.bitcast(bits, ty, name=f"c{node.id}")
		if kind is ElementKind.BOOL:
			return ir.Constant(ty, 1 if node.value else 0)
		return _int_constant(ty.width, node.value)

	def _to_word(self, builder: ir.IRBuilder, value: ir.Value) -> ir.Value:
		width = value.type.width
		if width == self.word_bits:
			return value
		if width > self.word_bits:
			return builder.trunc(value, self._word)
		return builder.zext(value, self._word)


__all__ = ["LlvmBackend", "NativeCode", "llvm_type"]
