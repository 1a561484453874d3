# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Stable container registry.

A StableContainer is a fixed-length array laid out in native memory the way a
managed runtime lays out arrays: a 16-byte header followed by the elements, so
element 0 lives at `base_offset` from the block address. Compiled code reads it
with genuine raw loads.

The registry owns the set of containers the compiler must treat as stable.
Membership is by identity, never by content: two arrays holding the same bytes
are different containers. It is an explicit object handed to the compiler and
the harness; nothing here is process-global.
"""

from __future__ import annotations

import ctypes
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from stablejit.core.kinds import ElementKind

ARRAY_BASE_OFFSET = 16
_WORD = 8


class StableContainer:
	"""A fixed-length array of one element kind backed by native memory."""

	def __init__(self, name: str, kind: ElementKind, length: int) -> None:
		if length <= 0:
			raise ValueError(f"container '{name}' needs a positive length, got {length}")
		self.name = name
		self.kind = kind
		self.length = length
		self.base_offset = ARRAY_BASE_OFFSET
		self.element_bytes = kind.width * length
		self.allocated_bytes = self.base_offset + self.element_bytes
		# Word storage keeps element 0 8-byte aligned.
		words = (self.allocated_bytes + _WORD - 1) // _WORD
		self._storage = (ctypes.c_uint64 * words)()
		self.address = ctypes.addressof(self._storage)
		# Objects stored since the last reset stay alive, so their addresses are
		# not reused while a slot may still hold them.
		self._referents: dict[int, Any] = {}

	def __repr__(self) -> str:
		return f"StableContainer({self.kind.type_name}[{self.length}] {self.name} @ {self.address:#x})"

	@property
	def type_label(self) -> str:
		return f"{self.kind.type_name}[]"

	def _check_range(self, offset: int, width: int) -> None:
		if offset < 0 or width <= 0 or offset + width > self.element_bytes:
			raise IndexError(
				f"raw access [{offset}, {offset + width}) outside {self.type_label} {self.name} "
				f"of {self.element_bytes} bytes"
			)

	def read_bytes(self, offset: int, width: int) -> bytes:
		"""Read `width` raw bytes at `offset` bytes past element 0."""
		self._check_range(offset, width)
		return ctypes.string_at(self.address + self.base_offset + offset, width)

	def write_bytes(self, offset: int, data: bytes) -> None:
		self._check_range(offset, len(data))
		ctypes.memmove(self.address + self.base_offset + offset, data, len(data))

	def get(self, index: int) -> Any:
		raw = self.read_bytes(self._element_offset(index), self.kind.width)
		value = self.kind.decode(raw)
		if self.kind.is_reference:
			return self.resolve_reference(value)
		return value

	def set(self, index: int, value: Any) -> None:
		if self.kind.is_reference:
			if value is None:
				stored = None
			else:
				stored = id(value)
				self._referents[stored] = value
		else:
			stored = value
		self.write_bytes(self._element_offset(index), self.kind.encode(stored))

	def _element_offset(self, index: int) -> int:
		if not 0 <= index < self.length:
			raise IndexError(f"index {index} out of bounds for {self.type_label} {self.name} of length {self.length}")
		return index * self.kind.width

	def resolve_reference(self, address: Optional[int]) -> Any:
		"""Map an address read from a reference slot back to its object."""
		if not address:
			return None
		try:
			return self._referents[address]
		except KeyError:
			raise LookupError(f"{address:#x} is not an object stored in {self.name}") from None

	def holds_default(self, index: int = 0) -> bool:
		"""True when element `index` holds its kind's default (all-zero) bit pattern."""
		return not any(self.read_bytes(self._element_offset(index), self.kind.width))

	def reset(self) -> None:
		"""Restore element 0 to the kind's default value."""
		self.set(0, self.kind.default_value())
		if self.kind.is_reference:
			live = {self.kind.decode(self.read_bytes(self._element_offset(i), self.kind.width)) for i in range(self.length)}
			self._referents = {address: obj for address, obj in self._referents.items() if address in live}

	def change(self) -> None:
		"""Flip element 0 from its default to the kind's "changed" value."""
		self.set(0, self.kind.changed_value())


@dataclass(frozen=True)
class Registration:
	container: StableContainer
	# When false, an element still holding its default value is not a constant.
	default_stable: bool = True


class StableContainerRegistry:
	"""Tracks the containers whose elements compiled code may treat as constants."""

	def __init__(self) -> None:
		self._entries: list[Registration] = []

	def register(self, container: StableContainer, *, default_stable: bool = True) -> StableContainer:
		"""
		Track `container` and return it as its own identity handle.

		Registering the same container twice is harmless; lookups use the first
		registration.
		"""
		self._entries.append(Registration(container, default_stable))
		return container

	def allocate(
		self,
		name: str,
		kind: ElementKind,
		length: int,
		*,
		default_stable: bool = True,
	) -> StableContainer:
		container = StableContainer(name, kind, length)
		container.reset()
		return self.register(container, default_stable=default_stable)

	def registration(self, value: object) -> Optional[Registration]:
		for entry in self._entries:
			if entry.container is value:
				return entry
		return None

	def is_tracked(self, value: object) -> bool:
		"""Identity-based membership test."""
		return self.registration(value) is not None

	def lookup(self, name: str) -> Optional[StableContainer]:
		for entry in self._entries:
			if entry.container.name == name:
				return entry.container
		return None

	def symbols(self) -> dict[str, StableContainer]:
		"""Name -> container table for resolving names in access methods."""
		table: dict[str, StableContainer] = {}
		for entry in self._entries:
			table.setdefault(entry.container.name, entry.container)
		return table

	def reset_all(self) -> None:
		"""
		Restore element 0 of every tracked container to its default value.

		Must run before every scenario; the harness never does it implicitly
		as a retry.
		"""
		for entry in self._entries:
			entry.container.reset()

	def __iter__(self) -> Iterator[StableContainer]:
		seen: set[int] = set()
		for entry in self._entries:
			if id(entry.container) not in seen:
				seen.add(id(entry.container))
				yield entry.container

	def __len__(self) -> int:
		return sum(1 for _ in self)


__all__ = [
	"ARRAY_BASE_OFFSET",
	"Registration",
	"StableContainer",
	"StableContainerRegistry",
]
