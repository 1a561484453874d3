# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
import pytest

from stablejit.compiler.jit import Compiler
from stablejit.harness.harness import CompileOnceHarness
from stablejit.harness.matrix import default_containers
from stablejit.registry import StableContainerRegistry


@pytest.fixture
def registry() -> StableContainerRegistry:
	"""A fresh registry holding the nine standard stable arrays."""
	reg = StableContainerRegistry()
	default_containers(reg)
	return reg


@pytest.fixture
def compiler(registry: StableContainerRegistry) -> Compiler:
	return Compiler(registry)


@pytest.fixture
def harness(registry: StableContainerRegistry, compiler: Compiler) -> CompileOnceHarness:
	return CompileOnceHarness(registry, compiler)
