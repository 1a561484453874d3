# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Explicit method handles.

A MethodHandle names exactly one method of an access-method module together
with the symbol table its names resolve against. Scenarios carry one, so the
harness always knows which method to compile without inspecting call sites of
some wrapper.
"""

from __future__ import annotations

from typing import List, Mapping, Optional

from lark.exceptions import UnexpectedInput

from stablejit.core.diagnostics import Diagnostic
from stablejit.core.errors import CompilationError
from stablejit.core.span import Span

from . import parser as _parser
from .accessors import is_access_call
from .ast import ExprStmt, MemberCall, MethodDef, Module, ReturnStmt, iter_calls


def parse_access_methods(source: str, *, file: Optional[str] = None) -> tuple[Optional[Module], List[Diagnostic]]:
	"""Parse `source`, turning lark errors into diagnostics."""
	try:
		return _parser.parse_module(source, file=file), []
	except UnexpectedInput as err:
		diag = Diagnostic(
			message=str(err).strip().splitlines()[0],
			code="E-PARSE",
			phase="parse",
			span=Span.from_error(err, file),
		)
		return None, [diag]


class MethodHandle:
	"""A direct reference to one access method plus its symbol table."""

	def __init__(
		self,
		source: str,
		name: str,
		symbols: Mapping[str, object],
		*,
		file: Optional[str] = None,
	) -> None:
		self.source = source
		self.name = name
		self.symbols = dict(symbols)
		self.file = file or f"<{name}>"
		self._method: Optional[MethodDef] = None

	def __repr__(self) -> str:
		return f"MethodHandle({self.name})"

	def method(self) -> MethodDef:
		"""Parse (once) and return the named method; CompilationError if impossible."""
		if self._method is not None:
			return self._method
		module, diagnostics = parse_access_methods(self.source, file=self.file)
		if module is None:
			raise CompilationError(
				f"cannot parse access method '{self.name}'",
				method=self.name,
				diagnostics=tuple(diagnostics),
			)
		found = module.method(self.name)
		if found is None:
			raise CompilationError(
				f"method '{self.name}' is not defined",
				method=self.name,
				diagnostics=(
					Diagnostic(
						message=f"no method named '{self.name}' in {self.file}",
						code="E-NO-METHOD",
						phase="parse",
						span=module.span,
					),
				),
			)
		self._method = found
		return found

	def access_sites(self) -> List[MemberCall]:
		"""Every raw-access call site in the method body, in source order."""
		sites: List[MemberCall] = []
		for stmt in self.method().body:
			if isinstance(stmt, (ReturnStmt, ExprStmt)):
				sites.extend(c for c in iter_calls(stmt.value) if is_access_call(c.receiver, c.member))
		return sites


__all__ = ["MethodHandle", "parse_access_methods"]
