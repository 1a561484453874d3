# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Element kinds of stable arrays and the codecs for their raw bit patterns.

Every kind has a fixed byte width (Reference uses the host pointer width), a
struct format used to decode raw memory, the ctypes type used as the JIT
return ABI, and the default/changed value pair the harness flips element 0
between. Values are "boxed" the way a managed runtime would box them: Bool is
`bool`, integral kinds are `int` (Char is its unsigned code unit), floating
kinds are `float` and Reference is an object or `None`.
"""

from __future__ import annotations

import ctypes
import math
import struct
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional


def host_word_bits() -> int:
	"""Return the host pointer width in bits."""
	return struct.calcsize("P") * 8


FLT_MAX = struct.unpack("<f", b"\xff\xff\x7f\x7f")[0]
DBL_MAX = sys.float_info.max


@dataclass(frozen=True)
class KindInfo:
	type_name: str
	width: int
	fmt: str
	tag: str  # bool | signed | unsigned | float | reference
	ctype: Any
	default: Any
	changed: Optional[Callable[[], Any]]


class ElementKind(Enum):
	"""Declared kind of a container's slots, keyed by its one-letter code."""

	BOOL = "Z"
	BYTE = "B"
	SHORT = "S"
	CHAR = "C"
	INT = "I"
	LONG = "J"
	FLOAT = "F"
	DOUBLE = "D"
	REFERENCE = "L"

	@property
	def code(self) -> str:
		return self.value

	@property
	def info(self) -> KindInfo:
		return _KIND_INFO[self]

	@property
	def type_name(self) -> str:
		return self.info.type_name

	@property
	def width(self) -> int:
		return self.info.width

	@property
	def tag(self) -> str:
		return self.info.tag

	@property
	def is_reference(self) -> bool:
		return self is ElementKind.REFERENCE

	@property
	def is_floating(self) -> bool:
		return self.info.tag == "float"

	@property
	def ctype(self) -> Any:
		return self.info.ctype

	def default_value(self) -> Any:
		return self.info.default

	def changed_value(self) -> Any:
		"""Return the "changed" value; Reference yields a fresh object every call."""
		assert self.info.changed is not None
		return self.info.changed()

	def decode(self, raw: bytes) -> Any:
		"""
		Decode `raw` (exactly `width` bytes, host byte order) into a boxed value.

		Reference slots decode to the stored address (`None` for null); mapping
		an address back to its object is the container's job.
		"""
		if len(raw) != self.width:
			raise ValueError(f"{self.type_name} needs {self.width} bytes, got {len(raw)}")
		(value,) = struct.unpack("@" + self.info.fmt, raw)
		if self is ElementKind.BOOL:
			return value != 0
		if self is ElementKind.REFERENCE:
			return value or None
		return value

	def encode(self, value: Any) -> bytes:
		"""Encode a boxed value (an address for Reference) into raw bytes."""
		if self is ElementKind.BOOL:
			value = 1 if value else 0
		elif self is ElementKind.REFERENCE:
			value = value or 0
		return struct.pack("@" + self.info.fmt, value)

	def from_native(self, value: Any) -> Any:
		"""Box a value returned through the ctypes ABI of this kind."""
		if self is ElementKind.BOOL:
			return value != 0
		if self is ElementKind.REFERENCE:
			return value or None
		return value

	def to_bits(self, value: Any) -> int:
		"""Return the unsigned bit pattern of a boxed value."""
		return int.from_bytes(self.encode(value), sys.byteorder, signed=False)

	@classmethod
	def from_code(cls, code: str) -> "ElementKind":
		return cls(code.upper())

	@classmethod
	def from_type_name(cls, name: str) -> "ElementKind":
		kind = _BY_TYPE_NAME.get(name)
		if kind is None:
			raise KeyError(f"unknown element type '{name}'")
		return kind

	@classmethod
	def scalars(cls) -> tuple["ElementKind", ...]:
		return tuple(k for k in cls if not k.is_reference)


def _fresh_referent() -> object:
	# The first byte of the identity must be non-zero, so that a read of any
	# width at element 0 of a reference slot sees the change. Rejected
	# candidates stay alive until the loop ends so their addresses are not reused.
	rejected = []
	while True:
		candidate = object()
		if id(candidate).to_bytes(host_word_bits() // 8, sys.byteorder)[0]:
			return candidate
		rejected.append(candidate)


_KIND_INFO: dict[ElementKind, KindInfo] = {
	ElementKind.BOOL: KindInfo("boolean", 1, "B", "bool", ctypes.c_uint8, False, lambda: True),
	ElementKind.BYTE: KindInfo("byte", 1, "b", "signed", ctypes.c_int8, 0, lambda: 0x7F),
	ElementKind.SHORT: KindInfo("short", 2, "h", "signed", ctypes.c_int16, 0, lambda: 0x7FFF),
	ElementKind.CHAR: KindInfo("char", 2, "H", "unsigned", ctypes.c_uint16, 0, lambda: 0xFFFF),
	ElementKind.INT: KindInfo("int", 4, "i", "signed", ctypes.c_int32, 0, lambda: 0x7FFFFFFF),
	ElementKind.LONG: KindInfo("long", 8, "q", "signed", ctypes.c_int64, 0, lambda: 0x7FFFFFFFFFFFFFFF),
	ElementKind.FLOAT: KindInfo("float", 4, "f", "float", ctypes.c_float, 0.0, lambda: FLT_MAX),
	ElementKind.DOUBLE: KindInfo("double", 8, "d", "float", ctypes.c_double, 0.0, lambda: DBL_MAX),
	ElementKind.REFERENCE: KindInfo(
		"object", host_word_bits() // 8, "P", "reference", ctypes.c_void_p, None, _fresh_referent
	),
}

_BY_TYPE_NAME = {info.type_name: kind for kind, info in _KIND_INFO.items()}


def _canonical_float_bits(kind: ElementKind, value: float) -> int:
	# Every NaN compares equal to every other NaN, as boxed floats do.
	if math.isnan(value):
		return -1
	return kind.to_bits(value)


def boxed_equal(kind: ElementKind, left: Any, right: Any) -> bool:
	"""
	Compare two values read as `kind` the way boxed values compare.

	Floating kinds compare by canonical bit pattern (NaN equals NaN, 0.0 differs
	from -0.0); references compare by identity; everything else by value.
	"""
	if kind.is_reference:
		return left is right
	if kind.is_floating:
		return _canonical_float_bits(kind, left) == _canonical_float_bits(kind, right)
	return left == right


def format_value(kind: ElementKind, value: Any) -> str:
	"""Render a boxed value for reports (references by identity, not repr)."""
	if kind.is_reference:
		if value is None:
			return "null"
		return f"<{type(value).__name__}@{id(value):#x}>"
	if kind.is_floating:
		return f"{value!r} (bits={kind.to_bits(value):#x})"
	return repr(value)


__all__ = [
	"DBL_MAX",
	"ElementKind",
	"FLT_MAX",
	"KindInfo",
	"boxed_equal",
	"format_value",
	"host_word_bits",
]
