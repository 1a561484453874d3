# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Fold eligibility of raw reads from stable containers.

Given the declared kind of a stable container and a raw access into it, the
policy says whether compiled code must treat the value read as a constant
(MUST_FOLD) or must keep reading live memory (MUST_NOT_FOLD). Rules, first
match wins:

  1. unaligned access                                      -> MUST_NOT_FOLD
  2. requested kind == source kind                         -> MUST_FOLD
  3. same byte width, neither kind is Reference            -> MUST_FOLD
  4. Reference slot read as a scalar of reference width    -> MUST_NOT_FOLD
  5. anything else (width mismatch, reference boundary)    -> MUST_NOT_FOLD

Stability is anchored to naturally aligned element boundaries and to the
frozen bit pattern of a slot: reinterpreting equal-width scalars keeps the
pattern, reading across an element boundary or treating a reference as bits
does not. The policy is a pure function over the finite
kind x kind x alignment domain.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from stablejit.core.kinds import ElementKind


class FoldVerdict(Enum):
	MUST_FOLD = "MustFold"
	MUST_NOT_FOLD = "MustNotFold"

	def __str__(self) -> str:
		return self.value


@dataclass(frozen=True)
class AccessDescriptor:
	"""A raw read of `requested_kind` at `byte_offset` past element 0 of a `source_kind` array."""

	source_kind: ElementKind
	requested_kind: ElementKind
	byte_offset: int = 0
	aligned: bool = True

	def __post_init__(self) -> None:
		if self.byte_offset < 0:
			raise ValueError(f"byte offset must be >= 0, got {self.byte_offset}")
		if self.aligned and self.byte_offset % self.requested_kind.width != 0:
			raise ValueError(
				f"offset {self.byte_offset} is not a multiple of the {self.requested_kind.type_name} "
				f"width {self.requested_kind.width}; describe it as unaligned"
			)

	@classmethod
	def unaligned(cls, kind: ElementKind, byte_offset: int = 1) -> "AccessDescriptor":
		"""Same-kind read displaced from the element boundary."""
		return cls(kind, kind, byte_offset, aligned=False)

	@property
	def requested_width(self) -> int:
		return self.requested_kind.width

	@property
	def end(self) -> int:
		return self.byte_offset + self.requested_width

	def describe(self) -> str:
		"""Stable scenario label, e.g. `int[]@0:long` or `short[]@1:short!unaligned`."""
		label = f"{self.source_kind.type_name}[]@{self.byte_offset}:{self.requested_kind.type_name}"
		if not self.aligned:
			label += "!unaligned"
		return label


class FoldPolicy:
	"""
	The fold-eligibility rule table.

	`reference_width` defaults to the host pointer width; override it to ask
	what the rule says for another target.
	"""

	def __init__(self, reference_width: Optional[int] = None) -> None:
		self.reference_width = reference_width or ElementKind.REFERENCE.width

	def width_of(self, kind: ElementKind) -> int:
		if kind.is_reference:
			return self.reference_width
		return kind.width

	def rule_for(self, access: AccessDescriptor) -> int:
		"""Number (1-5) of the rule that decides `access`."""
		source, requested = access.source_kind, access.requested_kind
		if not access.aligned:
			return 1
		if requested is source:
			return 2
		same_width = self.width_of(requested) == self.width_of(source)
		if same_width and not source.is_reference and not requested.is_reference:
			return 3
		if source.is_reference and not requested.is_reference and same_width:
			return 4
		return 5

	def verdict(self, access: AccessDescriptor) -> FoldVerdict:
		if self.rule_for(access) in (2, 3):
			return FoldVerdict.MUST_FOLD
		return FoldVerdict.MUST_NOT_FOLD

	__call__ = verdict


def fold_verdict(access: AccessDescriptor, *, reference_width: Optional[int] = None) -> FoldVerdict:
	"""Module-level shorthand for `FoldPolicy(reference_width).verdict(access)`."""
	return FoldPolicy(reference_width).verdict(access)


__all__ = ["AccessDescriptor", "FoldPolicy", "FoldVerdict", "fold_verdict"]
