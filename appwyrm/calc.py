import ast
import operator
import re
from functools import singledispatch
from math import isfinite
from typing import NamedTuple

ALLOWED_CHARS = frozenset("0123456789+-*/(). ")
MAX_FRACTION_DIGITS = 6
MAX_EXPRESSION_LEN = 256

_BINARY_OPS = {
	ast.Add: operator.add,
	ast.Sub: operator.sub,
	ast.Mult: operator.mul,
	ast.Div: operator.truediv,
}
_UNARY_OPS = {
	ast.UAdd: operator.pos,
	ast.USub: operator.neg,
}


class CalcResult(NamedTuple):
	expression: str
	display: str


class _Unsupported(Exception):
	pass


@singledispatch
def _eval(node: ast.AST) -> float:
	raise _Unsupported(type(node).__name__)


@_eval.register
def _(node: ast.Expression) -> float:
	return _eval(node.body)


@_eval.register
def _(node: ast.Constant) -> float:
	if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
		raise _Unsupported(repr(node.value))

	return node.value


@_eval.register
def _(node: ast.UnaryOp) -> float:
	if (op := _UNARY_OPS.get(type(node.op))) is None:
		raise _Unsupported(type(node.op).__name__)

	return op(_eval(node.operand))


@_eval.register
def _(node: ast.BinOp) -> float:
	if (op := _BINARY_OPS.get(type(node.op))) is None:
		raise _Unsupported(type(node.op).__name__)

	return op(_eval(node.left), _eval(node.right))


def format_number(value: float) -> str:
	text = f"{value:,.{MAX_FRACTION_DIGITS}f}".rstrip("0").rstrip(".")
	return "0" if text in ("-0", "") else text


def evaluate(text: str) -> CalcResult | None:
	"""Evaluate plain arithmetic; anything else, or any error, is not a calculation."""
	trimmed = text.strip()
	if not trimmed or len(trimmed) > MAX_EXPRESSION_LEN or not set(trimmed) <= ALLOWED_CHARS:
		return None

	# '1//2' is a typo for division, not floor division.
	sanitized = re.sub(r"/{2,}", "/", trimmed)
	# '08' is decimal eight; Python's parser rejects leading zeros.
	source = re.sub(r"(?<![\d.])0+(?=\d)", "", sanitized)
	try:
		value = float(_eval(ast.parse(source, mode="eval")))
		if not isfinite(value):
			return None

		return CalcResult(sanitized, format_number(value))
	except (_Unsupported, SyntaxError, ZeroDivisionError, OverflowError, RecursionError, ValueError):
		return None
