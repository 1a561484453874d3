# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Scenario matrix: every (source kind, requested kind, alignment) combination
the harness checks, with the verdict the fold policy predicts for it.

Each scenario reads through one generic access method rendered from its
descriptor, e.g. for `int[]@0:long`:

	fn read_int_as_long() -> long {
		return unsafe.get_long(STABLE_INT_ARRAY, base(int) + 0);
	}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from stablejit.core.errors import ConstructionError
from stablejit.core.kinds import ElementKind
from stablejit.frontend.accessors import ACCESS_RECEIVER, accessor_name
from stablejit.frontend.handles import MethodHandle
from stablejit.policy import AccessDescriptor, FoldPolicy, FoldVerdict
from stablejit.registry import StableContainer, StableContainerRegistry

# (name, kind, length): 16 bytes of elements each, so every read in the
# matrix stays in bounds.
STANDARD_ARRAYS: Tuple[Tuple[str, ElementKind, int], ...] = (
	("STABLE_BOOLEAN_ARRAY", ElementKind.BOOL, 16),
	("STABLE_BYTE_ARRAY", ElementKind.BYTE, 16),
	("STABLE_SHORT_ARRAY", ElementKind.SHORT, 8),
	("STABLE_CHAR_ARRAY", ElementKind.CHAR, 8),
	("STABLE_INT_ARRAY", ElementKind.INT, 4),
	("STABLE_LONG_ARRAY", ElementKind.LONG, 2),
	("STABLE_FLOAT_ARRAY", ElementKind.FLOAT, 4),
	("STABLE_DOUBLE_ARRAY", ElementKind.DOUBLE, 2),
	("STABLE_OBJECT_ARRAY", ElementKind.REFERENCE, 4),
)

UNALIGNED_DISPLACEMENT = 1


def default_containers(registry: StableContainerRegistry) -> List[StableContainer]:
	"""Return the standard stable arrays, allocating the ones `registry` lacks."""
	containers: List[StableContainer] = []
	for name, kind, length in STANDARD_ARRAYS:
		container = registry.lookup(name)
		if container is None:
			container = registry.allocate(name, kind, length)
		elif container.kind is not kind:
			raise ConstructionError(f"'{name}' is registered as {container.type_label}, expected {kind.type_name}[]")
		containers.append(container)
	return containers


def method_name(access: AccessDescriptor) -> str:
	name = f"read_{access.source_kind.type_name}_as_{access.requested_kind.type_name}"
	if not access.aligned:
		name += f"_unaligned_{access.byte_offset}"
	elif access.byte_offset:
		name += f"_at_{access.byte_offset}"
	return name


def render_access_method(container: StableContainer, access: AccessDescriptor) -> str:
	"""Render the one-read access method for `access` against `container`."""
	member = accessor_name(access.requested_kind, unaligned=not access.aligned)
	return (
		f"fn {method_name(access)}() -> {access.requested_kind.type_name} {{\n"
		f"\treturn {ACCESS_RECEIVER}.{member}({container.name}, "
		f"base({container.kind.type_name}) + {access.byte_offset});\n"
		"}\n"
	)


@dataclass
class Scenario:
	container: StableContainer
	access: AccessDescriptor
	expected: FoldVerdict
	# Policy rule (1-5) that produced `expected`.
	rule: int
	method: MethodHandle
	mutate: Callable[[], None] = field(repr=False)

	@property
	def id(self) -> str:
		return self.access.describe()

	@property
	def kind(self) -> ElementKind:
		return self.container.kind


def make_scenario(
	container: StableContainer,
	access: AccessDescriptor,
	*,
	policy: Optional[FoldPolicy] = None,
	symbols=None,
	source: Optional[str] = None,
	mutate: Optional[Callable[[], None]] = None,
) -> Scenario:
	"""
	Bind `access` to `container` and attach the policy's verdict.

	`source` replaces the rendered access method; its method must be named
	`method_name(access)`.
	"""
	policy = policy or FoldPolicy()
	if access.source_kind is not container.kind:
		raise ConstructionError(
			f"{access.describe()} does not describe {container.type_label} {container.name}",
			scenario_id=access.describe(),
		)
	if access.end > container.element_bytes:
		raise ConstructionError(
			f"{access.describe()} reads past the {container.element_bytes} element bytes of {container.name}",
			scenario_id=access.describe(),
		)
	if symbols is None:
		symbols = {container.name: container}
	handle = MethodHandle(
		source if source is not None else render_access_method(container, access),
		method_name(access),
		symbols,
		file=f"<{access.describe()}>",
	)
	return Scenario(
		container=container,
		access=access,
		expected=policy.verdict(access),
		rule=policy.rule_for(access),
		method=handle,
		mutate=mutate or container.change,
	)


def _descriptors(kind: ElementKind) -> Iterable[AccessDescriptor]:
	if kind.is_reference:
		yield AccessDescriptor(kind, kind)
		for requested in ElementKind.scalars():
			yield AccessDescriptor(kind, requested)
		return
	for requested in ElementKind.scalars():
		yield AccessDescriptor(kind, requested)
	if kind.width > 1:
		yield AccessDescriptor.unaligned(kind, UNALIGNED_DISPLACEMENT)


def build_matrix(
	registry: StableContainerRegistry,
	policy: Optional[FoldPolicy] = None,
	kinds: Optional[Iterable[ElementKind]] = None,
) -> List[Scenario]:
	"""
	Enumerate every scenario over the standard arrays of `registry`.

	  - each scalar kind read as all 8 scalar kinds at element 0
	  - object[] read as object and as all 8 scalar kinds
	  - a +1 byte unaligned same-kind read of every multi-byte scalar kind

	`kinds` restricts the source kinds.
	"""
	policy = policy or FoldPolicy()
	wanted = set(kinds) if kinds is not None else None
	containers = default_containers(registry)
	symbols = registry.symbols()
	scenarios: List[Scenario] = []
	for container in containers:
		if wanted is not None and container.kind not in wanted:
			continue
		for access in _descriptors(container.kind):
			scenarios.append(make_scenario(container, access, policy=policy, symbols=symbols))
	return scenarios


__all__ = [
	"STANDARD_ARRAYS",
	"Scenario",
	"build_matrix",
	"default_containers",
	"make_scenario",
	"method_name",
	"render_access_method",
]
