"""Calculator tool - evaluates arithmetic expressions.

Expressions are parsed with ``ast`` and walked node by node; only numbers,
arithmetic operators, a few constants and a fixed set of math functions
are accepted. Nothing is ever passed to ``eval``.
"""

import ast
import asyncio
import math
import operator
from typing import Any, Callable, Dict

from pydantic import BaseModel, Field

from ..registry.tool_registry import Tool, ToolDefinition

MAX_EXPONENT = 10_000
MAX_DIGITS = 4_300

_BINARY_OPERATORS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPERATORS: Dict[type, Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_CONSTANTS = {"pi": math.pi, "e": math.e}

_FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "sqrt": math.sqrt,
    "abs": abs,
    "round": round,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "log": math.log,
    "exp": math.exp,
    "floor": math.floor,
    "ceil": math.ceil,
}


class CalculatorError(Exception):
    """The expression could not be evaluated."""

    def __init__(self, message: str):
        super().__init__(f"Calculation error: {message}")


class CalculatorParams(BaseModel):
    expression: str = Field(description="Arithmetic expression, e.g. '2 * (3 + 4)' or 'sqrt(16)'")


def evaluate(expression: str) -> float:
    """Evaluate ``expression`` and return the result as a float.

    Raises:
        CalculatorError: Syntax errors, unsupported constructs, division by
            zero and math domain errors.
    """
    if not expression or not expression.strip():
        raise CalculatorError("empty expression")
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise CalculatorError(f"invalid syntax in '{expression}'") from e

    try:
        return float(_eval_node(tree.body))
    except CalculatorError:
        raise
    except ZeroDivisionError as e:
        raise CalculatorError("division by zero") from e
    except (ValueError, OverflowError, TypeError) as e:
        raise CalculatorError(str(e)) from e


def _eval_node(node: ast.AST) -> Any:
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise CalculatorError(f"unsupported literal {node.value!r}")
        return node.value

    if isinstance(node, ast.Name):
        if node.id not in _CONSTANTS:
            raise CalculatorError(f"unknown name '{node.id}'")
        return _CONSTANTS[node.id]

    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](_eval_node(node.operand))

    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        left = _eval_node(node.left)
        right = _eval_node(node.right)
        if isinstance(node.op, ast.Pow):
            _check_power(left, right)
        return _BINARY_OPERATORS[type(node.op)](left, right)

    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
            raise CalculatorError(f"unsupported function in '{ast.unparse(node)}'")
        if node.keywords:
            raise CalculatorError("keyword arguments are not supported")
        args = [_eval_node(arg) for arg in node.args]
        return _FUNCTIONS[node.func.id](*args)

    raise CalculatorError(f"unsupported expression '{ast.unparse(node)}'")


def _check_power(base: Any, exponent: Any) -> None:
    if abs(exponent) > MAX_EXPONENT:
        raise CalculatorError(f"exponent {exponent} is too large")
    # Estimated digits of the result; nested powers grow past any exponent bound.
    if abs(base) > 1 and exponent > 0 and exponent * math.log10(abs(base)) > MAX_DIGITS:
        raise CalculatorError("result is too large")


class CalculatorTool(Tool):
    """Evaluate math expressions."""

    name = "calculator"

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description="Evaluate math expressions",
            params_model=CalculatorParams,
        )

    async def call(self, params: CalculatorParams) -> float:
        return await asyncio.to_thread(evaluate, params.expression)
