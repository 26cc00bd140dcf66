"""PyPP #if expression evaluator

Conditions are parsed with ``ast.parse(mode="eval")`` and walked over a
fixed set of node types; nothing is handed to ``eval``. Supported:

    literals            1, 0x10, 'win32', True, None, (1, 2), [1, 2]
    names               resolved through the caller's lookup
    defined(NAME)       True when NAME resolves
    boolean             not a, a and b, a or b
    unary               -a, +a, ~a
    binary              + - * / // % ** << >> & | ^
    comparisons         == != < <= > >= in, not in, is, is not (chainable)
    conditional         a if cond else b

Integer and repeated-sequence results are size-bounded and ``%`` does not
format strings. Anything else raises ``ExpressionError``; the ``#if``
handler turns that into a false condition.
"""

import ast
import operator
from typing import Any, Callable

Resolver = Callable[[str], Any]


class ExpressionError(ValueError):
    """Raised when a condition cannot be parsed or evaluated."""


_UNARY = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Invert: operator.invert,
}

_BINARY = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
    ast.LShift: operator.lshift,
    ast.RShift: operator.rshift,
    ast.BitOr: operator.or_,
    ast.BitAnd: operator.and_,
    ast.BitXor: operator.xor,
}

_COMPARE = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
}

# Largest integer result, in bits, and longest repeated sequence a condition
# may build; `(10 ** 4096) ** 4096` or `'x' * 10 ** 10` would stall a pass
_MAX_INT_BITS = 1 << 16
_MAX_SEQUENCE_LENGTH = 1 << 20


def evaluate(expression: str, resolve: Resolver) -> Any:
    """Evaluate *expression*; *resolve* maps a name to its value or raises KeyError."""
    try:
        node = ast.parse(expression.strip(), mode='eval')
    except (SyntaxError, ValueError) as e:
        raise ExpressionError(f"invalid expression: {expression!r}") from e
    try:
        return _eval_node(node.body, resolve)
    except ExpressionError:
        raise
    except KeyError as e:
        raise ExpressionError(f"undefined name: {e.args[0]}") from e
    except (ArithmeticError, TypeError, ValueError, RecursionError, MemoryError) as e:
        raise ExpressionError(f"cannot evaluate {expression!r}: {e}") from e


def is_truthy(expression: str, resolve: Resolver) -> bool:
    return bool(evaluate(expression, resolve))


def _eval_node(node: ast.AST, resolve: Resolver) -> Any:
    if isinstance(node, ast.Constant):
        return node.value
    if isinstance(node, ast.Name):
        return resolve(node.id)
    if isinstance(node, (ast.Tuple, ast.List)):
        return tuple(_eval_node(elt, resolve) for elt in node.elts)
    if isinstance(node, ast.Call):
        return _eval_defined(node, resolve)
    if isinstance(node, ast.UnaryOp):
        op = _UNARY.get(type(node.op))
        if op is None:
            raise ExpressionError(f"unsupported unary operator: {type(node.op).__name__}")
        return op(_eval_node(node.operand, resolve))
    if isinstance(node, ast.BoolOp):
        if isinstance(node.op, ast.And):
            result = True
            for value in node.values:
                result = _eval_node(value, resolve)
                if not result:
                    return result
            return result
        result = False
        for value in node.values:
            result = _eval_node(value, resolve)
            if result:
                return result
        return result
    if isinstance(node, ast.BinOp):
        op = _BINARY.get(type(node.op))
        if op is None:
            raise ExpressionError(f"unsupported binary operator: {type(node.op).__name__}")
        left = _eval_node(node.left, resolve)
        right = _eval_node(node.right, resolve)
        _check_result_size(op, left, right)
        return op(left, right)
    if isinstance(node, ast.Compare):
        left = _eval_node(node.left, resolve)
        for op_node, comparator in zip(node.ops, node.comparators):
            right = _eval_node(comparator, resolve)
            if not _COMPARE[type(op_node)](left, right):
                return False
            left = right
        return True
    if isinstance(node, ast.IfExp):
        if _eval_node(node.test, resolve):
            return _eval_node(node.body, resolve)
        return _eval_node(node.orelse, resolve)
    raise ExpressionError(f"unsupported expression node: {type(node).__name__}")


def _check_result_size(op: Callable, left: Any, right: Any) -> None:
    """Raise ExpressionError when *op* on these operands would build a huge value."""
    if op is operator.pow:
        if _is_int(left) and _is_int(right) and right > 0 and abs(left) > 1:
            if left.bit_length() * right > _MAX_INT_BITS:
                raise ExpressionError(f"result of ** too large: exponent {right}")
    elif op is operator.lshift:
        if _is_int(left) and _is_int(right) and left and left.bit_length() + right > _MAX_INT_BITS:
            raise ExpressionError(f"result of << too large: shift {right}")
    elif op is operator.mod:
        if isinstance(left, (str, bytes)):
            raise ExpressionError("% formatting is not supported in conditions")
    elif op is operator.mul:
        if _is_int(left) and _is_int(right):
            if left.bit_length() + right.bit_length() > _MAX_INT_BITS:
                raise ExpressionError("result of * too large")
        else:
            for sequence, count in ((left, right), (right, left)):
                if isinstance(sequence, (str, bytes, tuple)) and _is_int(count):
                    if len(sequence) * count > _MAX_SEQUENCE_LENGTH:
                        raise ExpressionError(f"repeated sequence too long: {count} copies")


def _is_int(value: Any) -> bool:
    return isinstance(value, int)


def _eval_defined(node: ast.Call, resolve: Resolver) -> bool:
    if (
        isinstance(node.func, ast.Name)
        and node.func.id == 'defined'
        and len(node.args) == 1
        and isinstance(node.args[0], ast.Name)
        and not node.keywords
    ):
        try:
            resolve(node.args[0].id)
        except KeyError:
            return False
        return True
    raise ExpressionError("only defined(NAME) may be called in a condition")
