# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import math
import struct

import pytest

from stablejit.core.kinds import DBL_MAX, FLT_MAX, ElementKind, boxed_equal, format_value, host_word_bits


def test_scalar_widths_and_reference_width():
	assert [k.width for k in ElementKind.scalars()] == [1, 1, 2, 2, 4, 8, 4, 8]
	assert ElementKind.REFERENCE.width == host_word_bits() // 8
	assert len(ElementKind.scalars()) == 8


def test_lookup_by_code_and_type_name():
	assert ElementKind.from_code("j") is ElementKind.LONG
	assert ElementKind.from_type_name("object") is ElementKind.REFERENCE
	assert ElementKind.from_type_name("boolean") is ElementKind.BOOL
	with pytest.raises(KeyError):
		ElementKind.from_type_name("widget")
	with pytest.raises(ValueError):
		ElementKind.from_code("X")


def test_decode_follows_signedness_tags():
	assert ElementKind.CHAR.tag == "unsigned"
	assert ElementKind.CHAR.decode(b"\xff\xff") == 0xFFFF
	assert ElementKind.SHORT.decode(b"\xff\xff") == -1
	assert ElementKind.BYTE.decode(b"\x80") == -128
	assert ElementKind.BOOL.decode(b"\x02") is True
	assert ElementKind.BOOL.decode(b"\x00") is False
	assert ElementKind.REFERENCE.decode(bytes(ElementKind.REFERENCE.width)) is None


def test_decode_rejects_wrong_width():
	with pytest.raises(ValueError):
		ElementKind.INT.decode(b"\x00\x00")


def test_default_and_changed_values():
	assert ElementKind.BOOL.default_value() is False
	assert ElementKind.BOOL.changed_value() is True
	assert ElementKind.INT.changed_value() == 2**31 - 1
	assert ElementKind.LONG.changed_value() == 2**63 - 1
	assert ElementKind.CHAR.changed_value() == 0xFFFF
	assert ElementKind.FLOAT.changed_value() == FLT_MAX
	assert ElementKind.DOUBLE.changed_value() == DBL_MAX
	assert ElementKind.REFERENCE.default_value() is None
	assert ElementKind.REFERENCE.changed_value() is not ElementKind.REFERENCE.changed_value()


def test_flt_max_survives_float_encoding():
	assert struct.unpack("<f", struct.pack("<f", FLT_MAX))[0] == FLT_MAX
	assert ElementKind.FLOAT.to_bits(FLT_MAX) == 0x7F7FFFFF


def test_default_and_changed_bit_patterns_differ_for_every_kind():
	for kind in ElementKind.scalars():
		assert kind.to_bits(kind.default_value()) != kind.to_bits(kind.changed_value())


def test_boxed_equal_floats_by_bits():
	nan_a = struct.unpack("<d", struct.pack("<Q", 0x7FF8000000000001))[0]
	assert boxed_equal(ElementKind.DOUBLE, math.nan, nan_a)
	assert not boxed_equal(ElementKind.DOUBLE, 0.0, -0.0)
	assert boxed_equal(ElementKind.FLOAT, 1.5, 1.5)


def test_boxed_equal_references_by_identity():
	a, b = [1], [1]
	assert boxed_equal(ElementKind.REFERENCE, a, a)
	assert not boxed_equal(ElementKind.REFERENCE, a, b)
	assert boxed_equal(ElementKind.REFERENCE, None, None)


def test_format_value():
	assert format_value(ElementKind.REFERENCE, None) == "null"
	assert format_value(ElementKind.INT, 7) == "7"
	assert "bits=0x7f7fffff" in format_value(ElementKind.FLOAT, FLT_MAX)
