# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
stablejit: does a JIT fold stable array reads exactly when it is allowed to?

Layers, leaves first:
  - core: element kinds, errors, diagnostics
  - registry: stable containers in native memory
  - policy: fold eligibility of a raw access
  - frontend / compiler: access methods, graph IR, stable phases, llvmlite JIT
  - harness: scenario matrix, compile-once protocol, reports
"""

from .policy import AccessDescriptor, FoldPolicy, FoldVerdict, fold_verdict
from .registry import StableContainer, StableContainerRegistry

__all__ = [
	"AccessDescriptor",
	"FoldPolicy",
	"FoldVerdict",
	"StableContainer",
	"StableContainerRegistry",
	"fold_verdict",
]
