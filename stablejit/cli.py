# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from stablejit.compiler.jit import Compiler, CompilerOptions
from stablejit.core.errors import StableJitError
from stablejit.core.kinds import ElementKind
from stablejit.harness.harness import CompileOnceHarness
from stablejit.harness.matrix import build_matrix
from stablejit.harness.report import ScenarioResult
from stablejit.policy import FoldPolicy
from stablejit.registry import StableContainerRegistry

_UNSOUND = {
	"width-mismatch": "fold_width_mismatch",
	"unaligned": "fold_unaligned",
}


def _kinds(value: str) -> List[ElementKind]:
	try:
		return [ElementKind.from_code(ch) for ch in value if not ch.isspace() and ch != ","]
	except ValueError:
		raise argparse.ArgumentTypeError(
			f"unknown kind letter in {value!r} (use {''.join(k.code for k in ElementKind)})"
		) from None


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(
		prog="stablejit",
		description="Check that the JIT folds stable array reads exactly when the fold policy allows it",
	)
	p.add_argument(
		"--kind",
		type=_kinds,
		default=None,
		help="Only run scenarios whose array has one of these element kinds (letters ZBSCIJFDL, e.g. IJ)",
	)
	p.add_argument("--list", action="store_true", help="Print the scenario matrix with verdicts and rules, then exit")
	p.add_argument("--json", action="store_true", help="Emit a machine-readable JSON report on stdout")
	p.add_argument("--fail-fast", action="store_true", help="Stop at the first failing scenario")
	p.add_argument(
		"--introspect",
		action="store_true",
		help="Also require the compiled graph to contain a folded stable read iff the verdict is MustFold",
	)
	p.add_argument("--emit-ir", action="store_true", help="Print the LLVM IR of every compiled method to stderr")
	p.add_argument(
		"--unsound",
		choices=sorted(_UNSOUND),
		action="append",
		default=[],
		help="Make the compiler fold reads it must not fold (the run is then expected to fail)",
	)
	p.add_argument("--opt-level", type=int, default=0, choices=range(4), help="LLVM target machine opt level (0-3)")
	return p


def main(argv: Optional[List[str]] = None) -> int:
	args = _build_parser().parse_args(argv)

	registry = StableContainerRegistry()
	policy = FoldPolicy()
	scenarios = build_matrix(registry, policy, kinds=args.kind)

	if args.list:
		if args.json:
			rows = [
				{"scenario_id": s.id, "method": s.method.name, "expected": str(s.expected), "rule": s.rule}
				for s in scenarios
			]
			print(json.dumps(rows, indent=2, sort_keys=True))
		else:
			for s in scenarios:
				print(f"{s.id:<32} {str(s.expected):<12} rule {s.rule}  {s.method.name}")
		return 0

	options = CompilerOptions(opt_level=args.opt_level)
	for name in args.unsound:
		setattr(options, _UNSOUND[name], True)
	if args.emit_ir:

		def _emit(method: str, ir_text: str) -> None:
			print(f"; ---- {method} ----", file=sys.stderr)
			print(ir_text, file=sys.stderr)

		options.on_ir = _emit

	def _progress(result: ScenarioResult) -> None:
		print(result.format_line(), file=sys.stderr)

	try:
		harness = CompileOnceHarness(registry, Compiler(registry, options), introspect=args.introspect)
		report = harness.run_all(scenarios, fail_fast=args.fail_fast, on_result=_progress)
	except StableJitError as err:
		print(err.format_human(), file=sys.stderr)
		return 1

	print(report.summary(), file=sys.stderr)
	if args.json:
		print(json.dumps(report.to_dict(), indent=2, sort_keys=True))
	return 0 if report.ok else 1


if __name__ == "__main__":
	sys.exit(main())
