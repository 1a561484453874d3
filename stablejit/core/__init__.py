"""
stablejit.core: element kinds, errors and diagnostics shared by every layer.

Modules:
  - kinds: ElementKind, value codecs, boxed equality
  - errors: structured error taxonomy (construction/compilation/trap/mismatch)
  - diagnostics, span: front-end diagnostic records
"""

from .diagnostics import Diagnostic
from .errors import (
	AssertionMismatch,
	CompilationError,
	ConstructionError,
	RuntimeTrapError,
	StableJitError,
)
from .kinds import ElementKind, boxed_equal, format_value, host_word_bits
from .span import Span

__all__ = [
	"AssertionMismatch",
	"CompilationError",
	"ConstructionError",
	"Diagnostic",
	"ElementKind",
	"RuntimeTrapError",
	"Span",
	"StableJitError",
	"boxed_equal",
	"format_value",
	"host_word_bits",
]
