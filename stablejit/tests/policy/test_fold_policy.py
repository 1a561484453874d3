# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import itertools

import pytest

from stablejit.core.kinds import ElementKind
from stablejit.policy import AccessDescriptor, FoldPolicy, FoldVerdict, fold_verdict

MUST_FOLD = FoldVerdict.MUST_FOLD
MUST_NOT_FOLD = FoldVerdict.MUST_NOT_FOLD
SCALARS = ElementKind.scalars()


@pytest.mark.parametrize("kind", list(ElementKind))
def test_same_kind_aligned_read_folds(kind):
	assert fold_verdict(AccessDescriptor(kind, kind)) is MUST_FOLD


def test_equal_width_scalars_fold():
	for source, requested in itertools.product(SCALARS, SCALARS):
		if source.width == requested.width:
			assert fold_verdict(AccessDescriptor(source, requested)) is MUST_FOLD, (source, requested)


def test_width_mismatch_never_folds():
	for source, requested in itertools.product(SCALARS, SCALARS):
		if source.width != requested.width:
			access = AccessDescriptor(source, requested)
			assert fold_verdict(access) is MUST_NOT_FOLD, access.describe()
			assert FoldPolicy().rule_for(access) == 5


def test_unaligned_never_folds_even_at_matching_width():
	for kind in ElementKind:
		for offset in (0, 1, 3):
			access = AccessDescriptor(kind, kind, offset, aligned=False)
			assert fold_verdict(access) is MUST_NOT_FOLD
			assert FoldPolicy().rule_for(access) == 1


def test_reference_read_as_reference_width_scalar_does_not_fold():
	policy = FoldPolicy()
	wide = [k for k in SCALARS if k.width == ElementKind.REFERENCE.width]
	assert wide
	for requested in wide:
		access = AccessDescriptor(ElementKind.REFERENCE, requested)
		assert policy(access) is MUST_NOT_FOLD
		assert policy.rule_for(access) == 4


def test_reference_boundary_is_never_crossed():
	for scalar in SCALARS:
		assert fold_verdict(AccessDescriptor(ElementKind.REFERENCE, scalar)) is MUST_NOT_FOLD
		assert fold_verdict(AccessDescriptor(scalar, ElementKind.REFERENCE, 0)) is MUST_NOT_FOLD


def test_reference_width_is_configurable():
	narrow = FoldPolicy(reference_width=4)
	assert narrow.rule_for(AccessDescriptor(ElementKind.REFERENCE, ElementKind.INT)) == 4
	assert narrow.rule_for(AccessDescriptor(ElementKind.REFERENCE, ElementKind.FLOAT)) == 4
	assert narrow.rule_for(AccessDescriptor(ElementKind.REFERENCE, ElementKind.LONG)) == 5
	# Reference never takes part in the equal-width scalar rule.
	assert narrow.rule_for(AccessDescriptor(ElementKind.INT, ElementKind.REFERENCE)) == 5


def test_policy_is_total_and_deterministic():
	policy = FoldPolicy()
	for source, requested in itertools.product(ElementKind, ElementKind):
		for aligned in (True, False):
			access = AccessDescriptor(source, requested, 0, aligned)
			first = policy.verdict(access)
			assert first in (MUST_FOLD, MUST_NOT_FOLD)
			assert all(policy.verdict(access) is first for _ in range(3))
			assert fold_verdict(access) is first


def test_concrete_short_scenarios():
	assert fold_verdict(AccessDescriptor(ElementKind.SHORT, ElementKind.SHORT)) is MUST_FOLD
	assert fold_verdict(AccessDescriptor.unaligned(ElementKind.SHORT)) is MUST_NOT_FOLD


def test_descriptor_validation():
	with pytest.raises(ValueError):
		AccessDescriptor(ElementKind.INT, ElementKind.INT, -4)
	with pytest.raises(ValueError):
		AccessDescriptor(ElementKind.INT, ElementKind.INT, 2)
	assert AccessDescriptor(ElementKind.INT, ElementKind.SHORT, 2).end == 4


def test_descriptor_labels():
	assert AccessDescriptor(ElementKind.INT, ElementKind.LONG).describe() == "int[]@0:long"
	assert AccessDescriptor.unaligned(ElementKind.SHORT).describe() == "short[]@1:short!unaligned"
	assert AccessDescriptor.unaligned(ElementKind.DOUBLE).requested_width == 8


def test_verdict_renders_as_its_name():
	assert str(MUST_FOLD) == "MustFold"
	assert str(MUST_NOT_FOLD) == "MustNotFold"
