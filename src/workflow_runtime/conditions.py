"""Guard condition language.

Transition conditions are small boolean expressions evaluated against a
state machine's context. They are interpreted by a restricted parser; nothing is
ever handed to Python's ``eval``.

Grammar (lowest to highest precedence)::

    expr       := or_expr
    or_expr    := and_expr (("||" | "or") and_expr)*
    and_expr   := not_expr (("&&" | "and") not_expr)*
    not_expr   := "not" not_expr | comparison
    comparison := unary (("==" | "===" | "!=" | "!==" | "<" | "<=" | ">" | ">=") unary)?
    unary      := ("!" | "-") unary | primary
    primary    := NUMBER | STRING | true | false | null | undefined | PATH | "(" expr ")"

A PATH is a dotted context lookup such as ``cart.items.length``. Missing
segments yield ``null``; ``length`` yields the size of a list, string or mapping
that has no ``length`` key of its own.

``===``/``!==`` never equate a boolean with a number, while ``==`` does.
Nesting through parentheses and unary operators is capped at
``MAX_NESTING_DEPTH`` levels; deeper expressions are rejected as malformed.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from workflow_runtime.errors import ConditionEvaluationError

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>\d+(?:\.\d+)?)
  | (?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
  | (?P<op>===|!==|==|!=|<=|>=|&&|\|\||[<>!()\-])
  | (?P<path>[A-Za-z_$][A-Za-z0-9_$]*(?:\.[A-Za-z0-9_$]+)*)
    """,
    re.VERBOSE,
)

_LITERALS: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
    "True": True,
    "False": False,
    "None": None,
}
_KEYWORDS = {"and", "or", "not"}
_COMPARISON_OPS = {"==", "===", "!=", "!==", "<", "<=", ">", ">="}
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}

# Parentheses and unary operators nest; long "&&"/"||" chains do not count.
MAX_NESTING_DEPTH = 64


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    value: Any
    pos: int


def _tokenize(expression: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(expression):
        match = _TOKEN_RE.match(expression, pos)
        if match is None:
            raise ConditionEvaluationError(
                expression, f"unexpected character {expression[pos]!r} at {pos}"
            )
        kind = match.lastgroup or ""
        text = match.group()
        if kind == "number":
            tokens.append(_Token("literal", float(text) if "." in text else int(text), pos))
        elif kind == "string":
            body = re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), text[1:-1])
            tokens.append(_Token("literal", body, pos))
        elif kind == "op":
            tokens.append(_Token("op", text, pos))
        elif kind == "path":
            if text in _LITERALS:
                tokens.append(_Token("literal", _LITERALS[text], pos))
            elif text in _KEYWORDS:
                tokens.append(_Token("op", text, pos))
            else:
                tokens.append(_Token("path", tuple(text.split(".")), pos))
        pos = match.end()
    tokens.append(_Token("eof", None, pos))
    return tokens


# Expression tree. Each node evaluates itself against a read-only context.


@dataclass(frozen=True, slots=True)
class _Literal:
    value: Any

    def evaluate(self, context: Mapping[str, Any]) -> Any:
        return self.value


@dataclass(frozen=True, slots=True)
class _Path:
    segments: tuple[str, ...]

    def evaluate(self, context: Mapping[str, Any]) -> Any:
        current: Any = context
        for part in self.segments:
            if isinstance(current, Mapping):
                if part in current:
                    current = current[part]
                elif part == "length":
                    current = len(current)
                else:
                    return None
            elif isinstance(current, (list, tuple)):
                if part == "length":
                    current = len(current)
                elif part.isdigit() and int(part) < len(current):
                    current = current[int(part)]
                else:
                    return None
            elif isinstance(current, str) and part == "length":
                current = len(current)
            else:
                return None
        return current


@dataclass(frozen=True, slots=True)
class _Not:
    operand: Any

    def evaluate(self, context: Mapping[str, Any]) -> Any:
        return not self.operand.evaluate(context)


@dataclass(frozen=True, slots=True)
class _Negate:
    operand: Any

    def evaluate(self, context: Mapping[str, Any]) -> Any:
        value = self.operand.evaluate(context)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"cannot negate {type(value).__name__}")
        return -value


@dataclass(frozen=True, slots=True)
class _And:
    operands: tuple[Any, ...]

    def evaluate(self, context: Mapping[str, Any]) -> Any:
        value: Any = True
        for operand in self.operands:
            value = operand.evaluate(context)
            if not value:
                return value
        return value


@dataclass(frozen=True, slots=True)
class _Or:
    operands: tuple[Any, ...]

    def evaluate(self, context: Mapping[str, Any]) -> Any:
        value: Any = False
        for operand in self.operands:
            value = operand.evaluate(context)
            if value:
                return value
        return value


def _strict_equal(left: Any, right: Any) -> bool:
    # A boolean is never strictly equal to a number; int and float compare by value.
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    return bool(left == right)


@dataclass(frozen=True, slots=True)
class _Compare:
    op: str
    left: Any
    right: Any

    def evaluate(self, context: Mapping[str, Any]) -> bool:
        left = self.left.evaluate(context)
        right = self.right.evaluate(context)
        if self.op == "==":
            return bool(left == right)
        if self.op == "===":
            return _strict_equal(left, right)
        if self.op == "!=":
            return bool(left != right)
        if self.op == "!==":
            return not _strict_equal(left, right)
        # Ordering against a missing value is simply false.
        if left is None or right is None:
            return False
        if self.op == "<":
            return bool(left < right)
        if self.op == "<=":
            return bool(left <= right)
        if self.op == ">":
            return bool(left > right)
        return bool(left >= right)


class _Parser:
    def __init__(self, expression: str) -> None:
        self._expression = expression
        self._tokens = _tokenize(expression)
        self._pos = 0
        self._depth = 0

    def parse(self) -> Any:
        node = self._or()
        token = self._peek()
        if token.kind != "eof":
            self._fail(f"unexpected {token.value!r} at {token.pos}")
        return node

    def _peek(self) -> _Token:
        return self._tokens[self._pos]

    def _accept(self, *ops: str) -> str | None:
        token = self._peek()
        if token.kind == "op" and token.value in ops:
            self._pos += 1
            return str(token.value)
        return None

    def _fail(self, reason: str) -> None:
        raise ConditionEvaluationError(self._expression, reason)

    @contextmanager
    def _nested(self) -> Iterator[None]:
        self._depth += 1
        if self._depth > MAX_NESTING_DEPTH:
            self._fail(f"expression nested too deeply (limit {MAX_NESTING_DEPTH})")
        try:
            yield
        finally:
            self._depth -= 1

    def _or(self) -> Any:
        operands = [self._and()]
        while self._accept("||", "or"):
            operands.append(self._and())
        return operands[0] if len(operands) == 1 else _Or(tuple(operands))

    def _and(self) -> Any:
        operands = [self._not()]
        while self._accept("&&", "and"):
            operands.append(self._not())
        return operands[0] if len(operands) == 1 else _And(tuple(operands))

    def _not(self) -> Any:
        if self._accept("not"):
            with self._nested():
                return _Not(self._not())
        return self._comparison()

    def _comparison(self) -> Any:
        node = self._unary()
        op = self._accept(*_COMPARISON_OPS)
        if op is not None:
            node = _Compare(op, node, self._unary())
            token = self._peek()
            if token.kind == "op" and token.value in _COMPARISON_OPS:
                self._fail(f"chained comparison at {token.pos}")
        return node

    def _unary(self) -> Any:
        if self._accept("!"):
            with self._nested():
                return _Not(self._unary())
        if self._accept("-"):
            with self._nested():
                return _Negate(self._unary())
        return self._primary()

    def _primary(self) -> Any:
        token = self._peek()
        if token.kind == "literal":
            self._pos += 1
            return _Literal(token.value)
        if token.kind == "path":
            self._pos += 1
            return _Path(token.value)
        if self._accept("("):
            with self._nested():
                node = self._or()
            if not self._accept(")"):
                self._fail(f"expected ')' at {self._peek().pos}")
            return node
        if token.kind == "eof":
            self._fail("unexpected end of expression")
        self._fail(f"unexpected {token.value!r} at {token.pos}")


@lru_cache(maxsize=512)
def parse_condition(expression: str) -> Any:
    """Parse ``expression`` into an evaluable tree (cached per expression).

    Raises:
        ConditionEvaluationError: If the expression is not valid syntax.
    """
    return _Parser(expression).parse()


class ConditionEvaluator:
    """Evaluates guard expressions against a context snapshot.

    Stateless; a single instance can be shared by every state machine.
    """

    def check(self, expression: str | None, context: Mapping[str, Any]) -> bool:
        """Evaluate ``expression``, raising on malformed input.

        An empty or missing expression is always true.

        Raises:
            ConditionEvaluationError: If the expression cannot be parsed or evaluated.
        """
        if expression is None or not expression.strip():
            return True
        node = parse_condition(expression.strip())
        try:
            return bool(node.evaluate(context))
        except (TypeError, ValueError) as e:
            raise ConditionEvaluationError(expression, str(e)) from e

    def evaluate(self, expression: str | None, context: Mapping[str, Any]) -> bool:
        """Evaluate ``expression``; malformed expressions are logged and treated as false."""
        try:
            return self.check(expression, context)
        except ConditionEvaluationError as e:
            logger.error(str(e), extra={"condition": expression, "reason": e.reason})
            return False
