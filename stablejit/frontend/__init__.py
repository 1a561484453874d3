"""
Access-method front-end: lark grammar, AST, accessor names and method handles.
"""

from .accessors import ACCESS_RECEIVER, Accessor, accessor_name, is_access_call, parse_accessor
from .handles import MethodHandle, parse_access_methods

__all__ = [
	"ACCESS_RECEIVER",
	"Accessor",
	"MethodHandle",
	"accessor_name",
	"is_access_call",
	"parse_access_methods",
	"parse_accessor",
]
