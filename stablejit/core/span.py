# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source spans for access-method diagnostics.

A Span carries best-effort file/line/column info. Front-end code builds spans
from lark tree metadata or from lark parse errors; `Span()` means unknown.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (best-effort file/line/column)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None

	@classmethod
	def from_meta(cls, meta: Any, file: Optional[str] = None) -> "Span":
		"""Build a Span from a lark `Tree.meta` (empty metas give an unknown span)."""
		if meta is None or getattr(meta, "empty", True):
			return cls(file=file)
		return cls(
			file=file,
			line=getattr(meta, "line", None),
			column=getattr(meta, "column", None),
			end_line=getattr(meta, "end_line", None),
			end_column=getattr(meta, "end_column", None),
		)

	@classmethod
	def from_error(cls, err: Any, file: Optional[str] = None) -> "Span":
		"""Build a Span from a lark `UnexpectedInput` (or anything with line/column)."""
		line = getattr(err, "line", None)
		column = getattr(err, "column", None)
		# lark reports -1 when the position is unknown (e.g. unexpected EOF).
		if line is not None and line < 0:
			line = None
		if column is not None and column < 0:
			column = None
		return cls(file=file, line=line, column=column)

	def __str__(self) -> str:
		where = self.file or "<source>"
		if self.line is None:
			return where
		if self.column is None:
			return f"{where}:{self.line}"
		return f"{where}:{self.line}:{self.column}"


__all__ = ["Span"]
