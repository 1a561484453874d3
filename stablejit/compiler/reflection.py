# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Constant reflection: reading stable array elements at compile time.

This is where the compiler decides, from the memory layout alone, whether a
raw load from a stable array constant can be replaced by the value currently
in memory. A read qualifies when it starts on an element boundary, covers
exactly one element, and does not reinterpret a reference slot as bits (or
bits as a reference). `CompilerOptions` can relax the width and alignment
checks to emulate an unsound compiler.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from stablejit.core.kinds import ElementKind
from stablejit.registry import StableContainer

from .graph import ConstantNode


@dataclass(frozen=True)
class StableRead:
	"""A value read from a stable element at compile time."""

	value: Any
	container: StableContainer
	displacement: int


class ConstantReflection:
	def __init__(self, *, fold_width_mismatch: bool = False, fold_unaligned: bool = False) -> None:
		self.fold_width_mismatch = fold_width_mismatch
		self.fold_unaligned = fold_unaligned

	def read_stable_element(
		self,
		array: ConstantNode,
		kind: ElementKind,
		offset: int,
		*,
		unaligned: bool = False,
	) -> Optional[StableRead]:
		"""
		Read `kind` at `offset` (from the block start) if it is a stable constant.

		Returns None whenever the load must stay a live memory read.
		"""
		if array.stable_dimension < 1 or not isinstance(array.value, StableContainer):
			return None
		container = array.value
		element = container.kind
		displacement = offset - container.base_offset
		if displacement < 0 or displacement + kind.width > container.element_bytes:
			return None
		if element.is_reference != kind.is_reference:
			return None
		on_boundary = displacement % element.width == 0
		if (unaligned or not on_boundary) and not self.fold_unaligned:
			return None
		if kind.width != element.width and not self.fold_width_mismatch:
			return None
		raw = container.read_bytes(displacement, kind.width)
		if not array.default_stable and not any(raw):
			return None
		value = kind.decode(raw)
		if kind.is_reference:
			value = container.resolve_reference(value)
		return StableRead(value, container, displacement)


__all__ = ["ConstantReflection", "StableRead"]
