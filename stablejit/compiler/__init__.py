"""
stablejit.compiler: the JIT whose stable-read folding the harness verifies.

Pipeline:
  MethodHandle -> GraphBuilder -> apply_stable -> canonicalize -> LlvmBackend -> CompiledArtifact

The uncompiled path (`Compiler.interpret`) runs the unoptimized graph on the
GraphInterpreter instead.
"""

from .builder import GraphBuilder, build_graph
from .graph import AddNode, ConstantNode, Node, RawLoadNode, ReturnNode, StructuredGraph
from .interp import GraphInterpreter
from .jit import CompiledArtifact, Compiler, CompilerOptions
from .llvm_backend import LlvmBackend, NativeCode
from .phases import apply_stable, canonicalize, check_bounds
from .reflection import ConstantReflection, StableRead

__all__ = [
	"AddNode",
	"CompiledArtifact",
	"Compiler",
	"CompilerOptions",
	"ConstantNode",
	"ConstantReflection",
	"GraphBuilder",
	"GraphInterpreter",
	"LlvmBackend",
	"NativeCode",
	"Node",
	"RawLoadNode",
	"ReturnNode",
	"StableRead",
	"StructuredGraph",
	"apply_stable",
	"build_graph",
	"canonicalize",
	"check_bounds",
]
