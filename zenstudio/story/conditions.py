"""Branch condition expressions evaluated against story variables.

Grammar (lowest to highest precedence):

    expr       := and_expr (("or" | "||") and_expr)*
    and_expr   := not_expr (("and" | "&&") not_expr)*
    not_expr   := ("not" | "!") not_expr | comparison
    comparison := operand (("==" | "!=" | "<" | "<=" | ">" | ">=") operand)?
    operand    := NUMBER | STRING | "true" | "false" | NAME | "(" expr ")"

Names resolve to story variables; an unknown name resolves to nothing, which
is falsy and makes every comparison it takes part in false. Comparisons only
hold between values of one family: booleans, numbers (ints and floats) or
strings. `true == 1` and `"3" != 3` are both false.
"""

from __future__ import annotations

import operator
import re
from functools import lru_cache
from typing import Any, Callable, Mapping

from ..errors import ConditionSyntaxError
from ..models.datatypes import VariableValue

_TOKEN_PATTERN = re.compile(
    r"""
    \s*(?:
        (?P<number>-?\d+(?:\.\d+)?)
      | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
      | (?P<op>==|!=|<=|>=|&&|\|\||<|>|!|\(|\))
      | (?P<name>[A-Za-z_][A-Za-z0-9_.]*)
    )
    """,
    re.VERBOSE,
)

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_MISSING = object()

Node = tuple


def _tokenize(source: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    position = 0
    stripped_end = len(source.rstrip())
    while position < stripped_end:
        match = _TOKEN_PATTERN.match(source, position)
        if match is None or match.end() == position:
            raise ConditionSyntaxError(
                f"Unexpected character {source[position:].strip()[:1]!r} in condition "
                f"`{source}`."
            )
        kind = match.lastgroup or ""
        value = match.group(kind)
        if kind == "name" and value in {"and", "or", "not"}:
            kind = "op"
        tokens.append((kind, value))
        position = match.end()
    return tokens


class _Parser:
    """Recursive-descent parser producing a tuple-based syntax tree."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.tokens = _tokenize(source)
        self.index = 0

    def parse(self) -> Node:
        if not self.tokens:
            raise ConditionSyntaxError("Condition is empty.")
        node = self._or()
        if self.index != len(self.tokens):
            raise ConditionSyntaxError(
                f"Unexpected `{self.tokens[self.index][1]}` in condition `{self.source}`."
            )
        return node

    def _peek(self) -> tuple[str, str] | None:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _accept(self, *values: str) -> str | None:
        token = self._peek()
        if token is not None and token[0] == "op" and token[1] in values:
            self.index += 1
            return token[1]
        return None

    def _or(self) -> Node:
        node = self._and()
        while self._accept("or", "||"):
            node = ("or", node, self._and())
        return node

    def _and(self) -> Node:
        node = self._not()
        while self._accept("and", "&&"):
            node = ("and", node, self._not())
        return node

    def _not(self) -> Node:
        if self._accept("not", "!"):
            return ("not", self._not())
        return self._comparison()

    def _comparison(self) -> Node:
        left = self._operand()
        comparator = self._accept(*_COMPARATORS)
        if comparator is None:
            return left
        return ("cmp", comparator, left, self._operand())

    def _operand(self) -> Node:
        token = self._peek()
        if token is None:
            raise ConditionSyntaxError(f"Condition `{self.source}` ends unexpectedly.")
        kind, value = token
        self.index += 1
        if kind == "number":
            return ("lit", float(value) if "." in value else int(value))
        if kind == "string":
            return ("lit", re.sub(r"\\(.)", r"\1", value[1:-1]))
        if kind == "name":
            if value == "true":
                return ("lit", True)
            if value == "false":
                return ("lit", False)
            return ("var", value)
        if value == "(":
            node = self._or()
            if not self._accept(")"):
                raise ConditionSyntaxError(f"Missing `)` in condition `{self.source}`.")
            return node
        raise ConditionSyntaxError(f"Unexpected `{value}` in condition `{self.source}`.")


@lru_cache(maxsize=256)
def parse_condition(source: str) -> Node:
    """Parse a condition into a syntax tree, raising `ConditionSyntaxError` if malformed."""

    return _Parser(source).parse()


def _type_family(value: Any) -> str:
    """Group values that may be compared; `bool` is kept apart from numbers."""

    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "str"
    return "other"


def _value(node: Node, variables: Mapping[str, VariableValue]) -> Any:
    tag = node[0]
    if tag == "lit":
        return node[1]
    if tag == "var":
        return variables.get(node[1], _MISSING)
    return _truth(node, variables)


def _truth(node: Node, variables: Mapping[str, VariableValue]) -> bool:
    tag = node[0]
    if tag == "or":
        return _truth(node[1], variables) or _truth(node[2], variables)
    if tag == "and":
        return _truth(node[1], variables) and _truth(node[2], variables)
    if tag == "not":
        return not _truth(node[1], variables)
    if tag == "cmp":
        left = _value(node[2], variables)
        right = _value(node[3], variables)
        if left is _MISSING or right is _MISSING:
            return False
        family = _type_family(left)
        if family == "other" or family != _type_family(right):
            return False
        return bool(_COMPARATORS[node[1]](left, right))
    value = _value(node, variables)
    return value is not _MISSING and bool(value)


def evaluate_condition(source: str, variables: Mapping[str, VariableValue]) -> bool:
    """Evaluate a branch condition against story variables."""

    return _truth(parse_condition(source), variables)
