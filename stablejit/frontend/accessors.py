"""
Raw accessor names: `unsafe.get_<type>` and `unsafe.get_<type>_unaligned`.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from stablejit.core.kinds import ElementKind

ACCESS_RECEIVER = "unsafe"
_PREFIX = "get_"
_UNALIGNED = "_unaligned"


class Accessor(NamedTuple):
	kind: ElementKind
	unaligned: bool


def accessor_name(kind: ElementKind, unaligned: bool = False) -> str:
	name = _PREFIX + kind.type_name
	if unaligned:
		name += _UNALIGNED
	return name


def parse_accessor(member: str) -> Optional[Accessor]:
	"""Return the accessor named by `member`, or None if it is not one."""
	if not member.startswith(_PREFIX):
		return None
	rest = member[len(_PREFIX):]
	unaligned = rest.endswith(_UNALIGNED)
	if unaligned:
		rest = rest[: -len(_UNALIGNED)]
	try:
		kind = ElementKind.from_type_name(rest)
	except KeyError:
		return None
	return Accessor(kind, unaligned)


def is_access_call(receiver: str, member: str) -> bool:
	return receiver == ACCESS_RECEIVER and parse_accessor(member) is not None


__all__ = ["ACCESS_RECEIVER", "Accessor", "accessor_name", "is_access_call", "parse_accessor"]
